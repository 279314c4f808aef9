"""Colour ramp shared by the map fill and the legend swatches."""

from __future__ import annotations

from typing import List, Tuple


# Ordered low -> high risk. Index 0 doubles as the "no/low data" swatch.
BASE_PALETTE: Tuple[str, ...] = (
    "#f1f5f9",  # light gray
    "#86efac",
    "#4ade80",
    "#22c55e",
    "#a3e635",
    "#facc15",  # yellow
    "#f59e0b",
    "#fb923c",  # orange
    "#ef4444",
    "#b91c1c",  # dark red
)

# Fill for regions without a usable value
NO_DATA_COLOR = "#cbd5e1"


def get_palette(reverse: bool = False) -> List[str]:
    """Return a fresh copy of the ramp, optionally flipped high -> low."""
    colors = list(BASE_PALETTE)
    if reverse:
        colors.reverse()
    return colors


__all__ = ["BASE_PALETTE", "NO_DATA_COLOR", "get_palette"]
