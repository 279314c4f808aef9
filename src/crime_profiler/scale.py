"""Choose and colour the bins the map and legend are drawn with.

Sources are tried in order, each one falling through when it yields nothing:

1. fixed range across all periods (``gposmin``/``gvmax`` from the service)
2. zero-aware log bins over the full-extent distribution of the period
3. quantiles of whatever is in the current viewport
4. a linear 0-100 placeholder so the legend is never blank
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .bins import (
    DEFAULT_BUCKETS,
    Bin,
    bucket_count,
    compute_log_bins,
    compute_zero_aware_log_bins,
)
from .utils.logger_config import setup_logger
from .utils.palette import get_palette

logger = setup_logger(__name__)

PLACEHOLDER_MAX = 100.0


@dataclass(frozen=True)
class ColoredBin:
    min: float
    max: float
    color: str


@dataclass(frozen=True)
class GlobalRange:
    """Smallest positive value and maximum over every period of an indicator."""

    gposmin: Optional[float] = None
    gvmax: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GlobalRange":
        return cls(gposmin=_finite_or_none(payload.get("gposmin")), gvmax=_finite_or_none(payload.get("gvmax")))

    @property
    def usable(self) -> bool:
        return self.gvmax is not None


def _finite_or_none(value: Any) -> Optional[float]:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def extract_values(items: Any) -> List[float]:
    """
    Pull a sorted value distribution out of choropleth rows.

    ``items`` is either a DataFrame with a ``value`` column or an iterable of
    ``{"code": ..., "value": ...}`` mappings. Negative values are clamped to 0
    and non-finite ones dropped.
    """
    if items is None:
        return []
    if isinstance(items, pd.DataFrame):
        if 'value' not in items.columns:
            return []
        raw = items['value']
    else:
        raw = pd.Series([row.get('value') for row in items if isinstance(row, Mapping)], dtype=object)
    numeric = pd.to_numeric(raw, errors='coerce').astype(float)
    numeric = numeric[np.isfinite(numeric)].clip(lower=0)
    return sorted(numeric.tolist())


def quantile_bins(values: Sequence[float], k: Any = DEFAULT_BUCKETS) -> List[Bin]:
    """Lower bounds at the 0, 1/k, ... (k-1)/k quantiles of sorted ``values``."""
    if not len(values):
        return []
    count = bucket_count(k)
    n = len(values)
    mins = [values[math.floor((n - 1) * (i / count))] for i in range(count)]
    v_max = values[-1]
    return [
        Bin(min=float(m), max=float(mins[i + 1]) if i < count - 1 else float(v_max))
        for i, m in enumerate(mins)
    ]


def placeholder_bins(k: Any = DEFAULT_BUCKETS, upper: float = PLACEHOLDER_MAX) -> List[Bin]:
    count = bucket_count(k)
    step = upper / count
    return [Bin(min=i * step, max=(i + 1) * step if i < count - 1 else upper) for i in range(count)]


def colorize(bins: Iterable[Bin], palette: Sequence[str]) -> List[ColoredBin]:
    """Attach palette colours by position; extra bins reuse the last colour."""
    ordered = sorted(bins, key=lambda b: b.min)
    last = len(palette) - 1
    return [ColoredBin(min=b.min, max=b.max, color=palette[min(i, last)]) for i, b in enumerate(ordered)]


def resolve_bins(
    items: Any = None,
    global_values: Any = None,
    global_range: Optional[GlobalRange] = None,
    fix_across_periods: bool = False,
    k: Any = DEFAULT_BUCKETS,
) -> List[Bin]:
    """Uncoloured bins from the first source that produces any."""
    if fix_across_periods and global_range is not None and global_range.usable:
        bins = compute_log_bins(global_range.gposmin, global_range.gvmax, k)
        if bins:
            return bins
        logger.debug(f'Fixed range {global_range} unusable, falling back to period distribution')

    bins = compute_zero_aware_log_bins(global_values, k)
    if bins:
        return bins

    viewport = extract_values(items)
    if viewport:
        logger.debug(f'No global distribution, binning {len(viewport)} viewport values by quantile')
        return quantile_bins(viewport, k)

    logger.debug('No values at all, using placeholder scale')
    return placeholder_bins(k)


def build_scale(
    items: Any = None,
    global_values: Any = None,
    global_range: Optional[GlobalRange] = None,
    fix_across_periods: bool = False,
    reverse_colors: bool = False,
    k: Any = DEFAULT_BUCKETS,
) -> List[ColoredBin]:
    bins = resolve_bins(
        items=items,
        global_values=global_values,
        global_range=global_range,
        fix_across_periods=fix_across_periods,
        k=k,
    )
    return colorize(bins, get_palette(reverse_colors))


__all__ = [
    "ColoredBin",
    "GlobalRange",
    "extract_values",
    "quantile_bins",
    "placeholder_bins",
    "colorize",
    "resolve_bins",
    "build_scale",
]
