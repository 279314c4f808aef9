import json
from pathlib import Path
import sys
from typing import Dict, List, Optional, Tuple

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

ROOT = Path(__file__).resolve().parent
SRC_DIR = ROOT / 'src'
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from crime_profiler.api import FULL_BBOX, ChoroplethResult, CrimeProfilerClient
from crime_profiler.config import Settings, load_settings
from crime_profiler.rendering import build_legend, color_for_value
from crime_profiler.scale import ColoredBin, GlobalRange, build_scale, extract_values
from crime_profiler.utils import ApiRequestError, ConfigError, escape_html, format_number, setup_logger
from crime_profiler.utils.palette import NO_DATA_COLOR

logger = setup_logger('crime_profiler.app')

SA_CENTER = {"lat": -28.75, "lon": 22.9}
SA_ZOOM = 4.7
MUNICIPALITY_ZOOM = 8.0

MEASURE_LABELS: Dict[str, str] = {
    'indicator': 'Indicator',
    'sub_index': 'Sub-index',
    'index': 'Index',
}

PLOTLY_CONFIG = {
    'scrollZoom': True,
    'displaylogo': False,
    'modeBarButtonsToRemove': ['lasso2d', 'select2d']
}


@st.cache_resource(show_spinner=False)
def get_client(api_url: str, timeout: float) -> CrimeProfilerClient:
    return CrimeProfilerClient(api_url, timeout=timeout)


@st.cache_data(show_spinner=False, ttl=300)
def load_periods(api_url: str, timeout: float) -> List[Dict]:
    return get_client(api_url, timeout).get_periods()


@st.cache_data(show_spinner=False, ttl=300)
def load_themes(api_url: str, timeout: float, kind: str, period: str) -> List[str]:
    return get_client(api_url, timeout).get_themes(kind, period)


@st.cache_data(show_spinner=False, ttl=300)
def load_indicators(api_url: str, timeout: float, kind: str, theme: str, period: str) -> List[Dict]:
    return get_client(api_url, timeout).get_indicators(kind, theme, period)


@st.cache_data(show_spinner=False, ttl=3600)
def load_municipalities(api_url: str, timeout: float) -> List[Dict]:
    return get_client(api_url, timeout).get_municipalities()


@st.cache_data(show_spinner=False, ttl=300)
def load_choropleth(
    api_url: str,
    timeout: float,
    indicator: str,
    period: str,
    bbox: str,
    extent: Optional[str] = None,
) -> ChoroplethResult:
    return get_client(api_url, timeout).get_choropleth(indicator, period=period, bbox=bbox, extent=extent)


@st.cache_data(show_spinner=False)
def load_boundaries(path: str) -> Optional[Dict]:
    boundary_file = Path(path)
    if not boundary_file.exists():
        logger.warning(f'Boundary file not found: {boundary_file}')
        return None
    with boundary_file.open() as fh:
        return json.load(fh)


def bbox_center(bbox) -> Dict[str, float]:
    minx, miny, maxx, maxy = (float(v) for v in bbox)
    return {"lat": (miny + maxy) / 2, "lon": (minx + maxx) / 2}


def bbox_string(bbox) -> str:
    return ",".join(f"{float(v):.7f}" for v in bbox)


def municipality_frame(municipalities: List[Dict]) -> pd.DataFrame:
    rows = []
    for m in municipalities:
        bbox = m.get('bbox')
        if not bbox or len(bbox) != 4:
            continue
        center = bbox_center(bbox)
        rows.append({'code': str(m.get('code')), 'name': m.get('name') or str(m.get('code')), **center})
    return pd.DataFrame(rows, columns=['code', 'name', 'lat', 'lon'])


def decorate_items(items: pd.DataFrame, bins: List[ColoredBin], names: pd.DataFrame) -> pd.DataFrame:
    display = items.merge(names, on='code', how='left')
    display['name'] = display['name'].fillna(display['code'])
    display['fill'] = display['value'].apply(lambda v: color_for_value(v, bins))
    display['value_label'] = display['value'].apply(lambda v: 'No data' if pd.isna(v) else format_number(v))
    return display


def plot_choropleth(
    display: pd.DataFrame,
    geojson: Optional[Dict],
    center: Dict[str, float],
    zoom: float,
    title: str,
) -> go.Figure:
    frame = display if geojson is not None else display.dropna(subset=['lat', 'lon'])
    color_map = {c: c for c in frame['fill'].unique()}
    if geojson is not None:
        fig = px.choropleth_mapbox(
            frame,
            geojson=geojson,
            locations='code',
            color='fill',
            color_discrete_map=color_map,
            featureidkey='properties.code',
            title=title,
            mapbox_style='carto-positron',
            center=center,
            zoom=zoom,
            opacity=0.75,
        )
        fig.update_traces(marker_line_width=0.8, marker_line_color='#1f2937')
    else:
        # No polygons available: plot municipality centres instead
        fig = px.scatter_mapbox(
            frame,
            lat='lat',
            lon='lon',
            color='fill',
            color_discrete_map=color_map,
            title=title,
            mapbox_style='carto-positron',
            center=center,
            zoom=zoom,
        )
        fig.update_traces(marker={'size': 11, 'opacity': 0.85})
    fig.update_traces(
        customdata=frame[['name', 'code', 'value_label']].to_numpy(),
        hovertemplate='<b>%{customdata[0]}</b><br>%{customdata[1]}<br>%{customdata[2]}<extra></extra>',
    )
    fig.update_layout(margin={'r': 0, 't': 50, 'l': 0, 'b': 0}, showlegend=False)
    return fig


def render_legend(bins: List[ColoredBin], unit: Optional[str]) -> None:
    rows = build_legend(bins, unit)
    html = ''.join(
        f'<div style="display:flex;align-items:center;gap:8px;margin-bottom:6px">'
        f'<span style="width:18px;height:12px;border-radius:4px;border:1px solid #e5e7eb;background:{row["color"]}"></span>'
        f'<span style="font-size:13px">{escape_html(row["label"])}</span></div>'
        for row in rows
    )
    st.markdown(html, unsafe_allow_html=True)


def render_details(result: ChoroplethResult, period: str) -> None:
    st.markdown(f"**{escape_html(result.label)}**")
    st.caption(f"Period: {period}" + (f" · Unit: {result.unit}" if result.unit else ""))
    if result.description:
        st.write(result.description)
    if result.source_name:
        if result.source_url:
            st.markdown(f"Source: [{escape_html(result.source_name)}]({result.source_url})")
        else:
            st.markdown(f"Source: {escape_html(result.source_name)}")


def load_global_scale_inputs(
    settings: Settings, indicator: str, period: str, fix_across_periods: bool
) -> Tuple[List[float], GlobalRange]:
    """Full-extent distribution (or all-period range) used for stable binning."""
    try:
        result = load_choropleth(
            settings.api_url,
            settings.timeout,
            indicator,
            period,
            FULL_BBOX,
            'all_periods' if fix_across_periods else None,
        )
    except ApiRequestError as e:
        logger.error(f'Global extent error: {str(e)}')
        return [], GlobalRange()
    if fix_across_periods:
        return [], result.global_range
    return extract_values(result.items), GlobalRange()


def main():
    st.set_page_config(page_title='SA Crime Profiler', layout='wide')
    st.markdown('## SA Risk — Indicator Viewer')
    st.caption('Crime indicators per municipality, coloured on a log scale.')

    try:
        settings = load_settings()
    except ConfigError as err:
        st.error(str(err))
        st.stop()
    api = (settings.api_url, settings.timeout)

    try:
        periods = load_periods(*api)
    except ApiRequestError as err:
        logger.error(f'Catalog periods error: {str(err)}')
        st.error(f'Could not load periods: {err}')
        st.stop()
    if not periods:
        st.error('The catalog has no periods yet.')
        st.stop()

    st.sidebar.header('Explore')
    period_labels = {p['period']: str(p.get('label') or p['period']) for p in periods}
    period = st.sidebar.selectbox('Period', list(period_labels), format_func=period_labels.get)

    try:
        has_sub_index = bool(load_themes(*api, 'sub_index', period))
    except ApiRequestError as err:
        logger.error(f'Check sub_index availability failed: {str(err)}')
        has_sub_index = False
    measures = [m for m in MEASURE_LABELS if m != 'sub_index' or has_sub_index]
    measure = st.sidebar.radio('Measure', measures, format_func=MEASURE_LABELS.get, horizontal=True)

    if measure == 'index':
        st.info('The composite index is not published for mapping yet. Pick an indicator or sub-index.')
        st.stop()

    try:
        themes = load_themes(*api, measure, period)
    except ApiRequestError as err:
        logger.error(f'Themes load error: {str(err)}')
        themes = []
    if not themes:
        st.warning(f'No {MEASURE_LABELS[measure].lower()} themes for {period_labels[period]}.')
        st.stop()
    theme = st.sidebar.selectbox('Theme', themes)

    try:
        indicators = load_indicators(*api, measure, theme, period)
    except ApiRequestError as err:
        logger.error(f'Indicator catalog error: {str(err)}')
        indicators = []
    if not indicators:
        st.warning(f'No indicators under {theme}.')
        st.stop()
    indicator_labels = {i['key']: str(i.get('label') or i['key']) for i in indicators}
    indicator = st.sidebar.selectbox(MEASURE_LABELS[measure], list(indicator_labels), format_func=indicator_labels.get)

    st.sidebar.markdown('---')
    st.sidebar.subheader('Legend')
    reverse_colors = st.sidebar.checkbox('Reverse colours', value=False)
    fix_across_periods = st.sidebar.checkbox('Use the same min/max across all periods', value=False)

    try:
        municipalities = load_municipalities(*api)
    except ApiRequestError as err:
        logger.error(f'Municipality catalog error: {str(err)}')
        municipalities = []
    names = municipality_frame(municipalities)

    st.sidebar.markdown('---')
    query = st.sidebar.text_input('Search municipality', placeholder='e.g. Cape Town')
    candidates = municipalities
    if query.strip():
        try:
            candidates = get_client(*api).search_municipalities(query)
        except ApiRequestError as err:
            logger.error(f'Municipality search error: {str(err)}')
            st.sidebar.warning('Search is unavailable right now.')
        if not candidates:
            st.sidebar.caption('No matches.')
    by_name = {str(m.get('name') or m.get('code')): m for m in candidates if m.get('bbox')}
    focus = st.sidebar.selectbox('Zoom to municipality', ['All of South Africa'] + sorted(by_name))
    if focus in by_name:
        focus_bbox = by_name[focus]['bbox']
        view_bbox, center, zoom = bbox_string(focus_bbox), bbox_center(focus_bbox), MUNICIPALITY_ZOOM
    else:
        view_bbox, center, zoom = FULL_BBOX, SA_CENTER, SA_ZOOM

    try:
        result = load_choropleth(*api, indicator, period, view_bbox)
    except ApiRequestError as err:
        logger.error(f'Choropleth error: {str(err)}')
        st.error(f'Could not load {indicator_labels[indicator]}: {err}')
        result = ChoroplethResult(items=pd.DataFrame(columns=['code', 'value']), label=indicator)

    global_values, global_range = load_global_scale_inputs(settings, indicator, period, fix_across_periods)
    if fix_across_periods and not global_range.usable:
        st.caption('All-period range unavailable; using this period instead.')

    bins = build_scale(
        items=result.items,
        global_values=global_values,
        global_range=global_range,
        fix_across_periods=fix_across_periods,
        reverse_colors=reverse_colors,
        k=settings.buckets,
    )

    geojson = load_boundaries(settings.boundaries_path) if settings.boundaries_path else None
    display = decorate_items(result.items, bins, names)

    map_col, side_col = st.columns([3, 1])
    with map_col:
        if display.empty:
            st.info('No values for this selection.')
        fig = plot_choropleth(display, geojson, center, zoom, f"{result.label} – {period_labels[period]}")
        st.plotly_chart(fig, use_container_width=True, config=PLOTLY_CONFIG)
        missing = int(display['fill'].eq(NO_DATA_COLOR).sum()) if not display.empty else 0
        if missing:
            st.caption(f'{missing} municipalities have no data for this period.')

    with side_col:
        st.markdown('#### Legend (log scale)')
        render_legend(bins, result.unit)
        st.markdown('---')
        render_details(result, period_labels[period])
        if st.button('Prepare shapefile'):
            try:
                payload = get_client(*api).download_shapefile(indicator, period)
            except ApiRequestError as err:
                logger.error(f'Export error: {str(err)}')
                st.error(f'Export failed: {err}')
            else:
                st.download_button(
                    'Download shapefile (.zip)',
                    data=payload,
                    file_name=f'{indicator}_{period}.zip',
                    mime='application/zip',
                )


if __name__ == '__main__':
    main()
