"""Label helpers for the legend, map popups and details panel."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def _round_half_away(n: float, places: int) -> Decimal:
    # Decimal(n) is the exact binary value, so ties are only real ties
    quantum = Decimal(1).scaleb(-places)
    return Decimal(n).quantize(quantum, rounding=ROUND_HALF_UP)


def format_number(x: Any) -> str:
    """
    Format an indicator value for display.

    Precision depends on magnitude: grouped thousands (at most one decimal)
    from 1,000 up, one decimal from 100, two decimals below that.
    Anything that cannot be read as a number comes back as ``str(x)``.

    Examples
    --------
    >>> format_number(1234.567)
    '1,234.6'
    >>> format_number(100)
    '100.0'
    >>> format_number(9.999)
    '10.00'
    """
    try:
        n = float(x)
    except (TypeError, ValueError):
        return str(x)

    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "Infinity" if n > 0 else "-Infinity"
    if n == 0:
        n = 0.0  # drop the sign of -0.0

    if abs(n) >= 1000:
        if n.is_integer():
            return f"{int(n):,}"
        rounded = _round_half_away(n, 1)
        if rounded == rounded.to_integral_value():
            return f"{int(rounded):,}"
        return f"{rounded:,.1f}"
    if abs(n) >= 100:
        return format(_round_half_away(n, 1), "f")
    return format(_round_half_away(n, 2), "f")


_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def escape_html(s: Any) -> str:
    """Escape text for inclusion in hover/popup HTML."""
    text = str(s)
    for raw, entity in _HTML_ESCAPES:
        text = text.replace(raw, entity)
    return text


__all__ = ["format_number", "escape_html"]
