"""Turn coloured bins into a MapLibre paint expression and legend rows."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .scale import ColoredBin
from .utils.formatting import format_number
from .utils.palette import NO_DATA_COLOR


def _to_finite(value: Any) -> Optional[float]:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def color_for_value(value: Any, bins: Sequence[ColoredBin]) -> str:
    """Colour of the highest bin whose ``min`` the value reaches."""
    n = _to_finite(value)
    if n is None:
        return NO_DATA_COLOR
    for b in sorted(bins, key=lambda b: b.min, reverse=True):
        if n >= b.min:
            return b.color
    return NO_DATA_COLOR


def _rows(rows: Any) -> Iterable[Dict[str, Any]]:
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict('records')
    return rows


def build_color_expression(rows: Any, bins: Sequence[ColoredBin]) -> List[Any]:
    """
    Build a ``match`` expression keyed on the tile feature ``code`` property.

    Rows without a finite value are left to the expression's default colour.
    With nothing to colour at all a constant ``to-color`` expression is used.
    """
    valid = [r for r in _rows(rows) if _to_finite(r.get('value')) is not None]
    if not valid:
        return ["to-color", NO_DATA_COLOR]

    expr: List[Any] = ["match", ["get", "code"]]
    for row in valid:
        expr.extend([str(row['code']), color_for_value(row['value'], bins)])
    expr.append(NO_DATA_COLOR)
    return expr


def build_legend(bins: Sequence[ColoredBin], unit: Optional[str] = None) -> List[Dict[str, str]]:
    """Legend rows, highest bin first."""
    suffix = f" {unit}" if unit else ""
    return [
        {"color": b.color, "label": f"{format_number(b.min)} – {format_number(b.max)}{suffix}"}
        for b in sorted(bins, key=lambda b: b.min, reverse=True)
    ]


__all__ = ["color_for_value", "build_color_expression", "build_legend"]
