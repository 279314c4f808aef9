import pytest
import numpy as np
import pandas as pd
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from crime_profiler.bins import Bin, compute_log_bins, compute_zero_aware_log_bins
from crime_profiler.scale import (
    ColoredBin,
    GlobalRange,
    build_scale,
    colorize,
    extract_values,
    placeholder_bins,
    quantile_bins,
    resolve_bins,
)
from crime_profiler.utils.palette import BASE_PALETTE, get_palette


@pytest.fixture
def viewport_items():
    return [
        {'code': 'CPT', 'value': 120.0},
        {'code': 'JHB', 'value': 300.0},
        {'code': 'ETH', 'value': -4},
        {'code': 'NMA', 'value': None},
        {'code': 'BUF', 'value': 'n/a'},
        {'code': 'MAN', 'value': 15},
    ]


class TestPalette:
    def test_ten_lowercase_hex_colours(self):
        assert len(BASE_PALETTE) == 10
        assert len(set(BASE_PALETTE)) == 10
        for color in BASE_PALETTE:
            assert color.startswith('#') and len(color) == 7
            assert color == color.lower()
            int(color[1:], 16)

    def test_ends_of_ramp(self):
        assert BASE_PALETTE[0] == '#f1f5f9'
        assert BASE_PALETTE[-1] == '#b91c1c'

    def test_reverse_returns_copy(self):
        reversed_palette = get_palette(reverse=True)
        assert reversed_palette[0] == BASE_PALETTE[-1]
        assert reversed_palette[-1] == BASE_PALETTE[0]
        reversed_palette.append('#000000')
        assert len(get_palette()) == 10


class TestExtractValues:
    def test_from_rows(self, viewport_items):
        assert extract_values(viewport_items) == [0.0, 15.0, 120.0, 300.0]

    def test_from_frame(self):
        df = pd.DataFrame({'code': ['A', 'B', 'C'], 'value': [7, np.nan, np.inf]})
        assert extract_values(df) == [7.0]

    def test_empty_inputs(self):
        assert extract_values(None) == []
        assert extract_values([]) == []
        assert extract_values(pd.DataFrame({'code': ['A']})) == []


class TestQuantileBins:
    def test_deciles(self):
        values = [float(v) for v in range(11)]
        result = quantile_bins(values, 10)
        assert [b.min for b in result] == [float(v) for v in range(10)]
        assert result[-1].max == 10.0

    def test_repeated_values(self):
        result = quantile_bins([5.0, 5.0, 5.0], 4)
        assert len(result) == 4
        assert all(b.min == 5.0 and b.max == 5.0 for b in result)

    def test_empty(self):
        assert quantile_bins([], 10) == []


class TestPlaceholderBins:
    def test_linear_zero_to_hundred(self):
        result = placeholder_bins(10)
        assert [b.min for b in result] == pytest.approx([i * 10 for i in range(10)])
        assert result[-1].max == 100


class TestResolveBins:
    def test_fixed_range_wins(self):
        result = resolve_bins(
            global_values=[0, 1, 2, 3],
            global_range=GlobalRange(gposmin=2, gvmax=2000),
            fix_across_periods=True,
        )
        assert result == compute_log_bins(2, 2000, 10)

    def test_fixed_range_ignored_when_toggle_off(self):
        values = [0, 1, 10, 100]
        result = resolve_bins(
            global_values=values,
            global_range=GlobalRange(gposmin=2, gvmax=2000),
            fix_across_periods=False,
        )
        assert result == compute_zero_aware_log_bins(values, 10)

    def test_unusable_fixed_range_falls_back(self):
        values = [0, 1, 10, 100]
        for rng in [GlobalRange(), GlobalRange(gposmin=None, gvmax=50), GlobalRange(gposmin=0, gvmax=50)]:
            result = resolve_bins(global_values=values, global_range=rng, fix_across_periods=True)
            assert result == compute_zero_aware_log_bins(values, 10)

    def test_viewport_quantiles_when_no_global(self, viewport_items):
        result = resolve_bins(items=viewport_items, global_values=[])
        assert len(result) == 10
        assert result[0].min == 0.0
        assert result[-1].max == 300.0

    def test_placeholder_when_nothing(self):
        assert resolve_bins() == placeholder_bins(10)

    def test_custom_bucket_count(self):
        assert len(resolve_bins(global_values=list(range(50)), k=6)) == 6


class TestBuildScale:
    def test_colours_follow_ascending_order(self):
        result = build_scale(global_values=[0, 0, 1, 5, 10, 50, 100, 200, 500])
        assert len(result) == 10
        assert all(isinstance(b, ColoredBin) for b in result)
        assert [b.color for b in result] == list(BASE_PALETTE)
        assert result[0].min == 0
        assert result[-1].max == 500

    def test_reverse_colours(self):
        result = build_scale(global_values=[0, 1, 10, 100], reverse_colors=True, k=4)
        assert [b.color for b in result] == list(reversed(BASE_PALETTE))[:4]

    def test_more_bins_than_colours_reuse_last(self):
        result = colorize([Bin(float(i), float(i + 1)) for i in range(12)], BASE_PALETTE)
        assert result[-1].color == BASE_PALETTE[-1]
        assert result[-3].color == BASE_PALETTE[-1]

    def test_all_periods_mode(self):
        result = build_scale(
            global_range=GlobalRange.from_payload({'gposmin': '0.5', 'gvmax': 80}),
            fix_across_periods=True,
        )
        assert len(result) == 10
        assert np.isclose(result[0].min, 0.5)
        assert result[-1].max == 80


class TestGlobalRange:
    def test_from_payload(self):
        rng = GlobalRange.from_payload({'gposmin': 1.5, 'gvmax': '90'})
        assert rng == GlobalRange(1.5, 90.0)
        assert rng.usable

    def test_missing_or_bad_values(self):
        rng = GlobalRange.from_payload({'gvmax': 'NaN'})
        assert rng.gposmin is None
        assert rng.gvmax is None
        assert not rng.usable
