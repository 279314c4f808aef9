"""Choropleth binning and data access for the South African crime profiler."""

from .bins import (
    DEFAULT_BUCKETS,
    Bin,
    compute_log_bins,
    compute_zero_aware_log_bins,
)
from .scale import ColoredBin, GlobalRange, build_scale, extract_values
from .rendering import build_color_expression, build_legend, color_for_value
from .utils import format_number, escape_html, get_palette

__version__ = "0.1.0"

__all__ = [
    'DEFAULT_BUCKETS',
    'Bin',
    'compute_log_bins',
    'compute_zero_aware_log_bins',
    'ColoredBin',
    'GlobalRange',
    'build_scale',
    'extract_values',
    'build_color_expression',
    'build_legend',
    'color_for_value',
    'format_number',
    'escape_html',
    'get_palette',
]
