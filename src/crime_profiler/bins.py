"""Log-spaced choropleth bins.

Crime counts are heavily skewed: a handful of metros carry most of the
incidents, so equal-width buckets would paint nearly every municipality in the
lowest colour. Both binners here space their boundaries evenly in log space,
i.e. every bucket is a constant multiple of the previous one.

Neither function raises. Unusable input produces an empty list, which callers
treat as "try another source of values" rather than as an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Sequence

import numpy as np
import pandas as pd


DEFAULT_BUCKETS = 10


@dataclass(frozen=True)
class Bin:
    """Half-open interval [min, max); the top bin of a sequence includes max."""

    min: float
    max: float


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def bucket_count(k: Any) -> int:
    """Floor k, never going below a single bucket."""
    k = _as_float(k)
    if not math.isfinite(k):
        return 1
    return max(1, math.floor(k))


def _stitch(mins: Sequence[float], top: float) -> List[Bin]:
    # each max is the next computed min; only the last one is pinned
    last = len(mins) - 1
    return [
        Bin(min=float(m), max=float(mins[i + 1]) if i < last else float(top))
        for i, m in enumerate(mins)
    ]


def compute_log_bins(min_value: Any, max_value: Any, k: Any = DEFAULT_BUCKETS) -> List[Bin]:
    """
    Split ``[min_value, max_value]`` into ``max(1, floor(k))`` log-equal bins.

    Both bounds must be finite, strictly positive and ``min_value < max_value``;
    otherwise an empty list is returned.

    Parameters
    ----------
    min_value, max_value : float
        Positive range to cover.
    k : float, optional
        Requested bucket count (default: 10). Fractional values are floored,
        anything below 1 gives a single bin.

    Returns
    -------
    list of Bin
        Ascending, contiguous bins. The last ``max`` is exactly ``max_value``.
    """
    lo = _as_float(min_value)
    hi = _as_float(max_value)
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo <= 0 or hi <= 0 or lo >= hi:
        return []

    count = bucket_count(k)
    log_min = np.log(lo)
    log_max = np.log(hi)
    step = (log_max - log_min) / count

    mins = np.exp(log_min + np.arange(count) * step)
    return _stitch(mins.tolist(), hi)


def clean_values(values: Any) -> np.ndarray:
    """Sorted non-negative finite floats from ``values``; empty for non-sequences."""
    if not isinstance(values, (list, tuple, np.ndarray, pd.Series)):
        return np.empty(0, dtype=float)
    arr = np.array([_as_float(v) for v in values], dtype=float)
    arr = arr[np.isfinite(arr) & (arr >= 0)]
    return np.sort(arr)


def compute_zero_aware_log_bins(values: Any, k: Any = DEFAULT_BUCKETS) -> List[Bin]:
    """
    Bin an observed distribution with a dedicated bucket for zeros.

    Negative, non-finite and non-numeric entries are dropped first. The first
    bin covers ``[0, smallest positive value)`` and the positive range is log
    binned into ``max(1, floor(k) - 1)`` buckets, so ``k <= 1`` still gives two
    bins.

    Degenerate distributions never raise:

    * nothing usable -> ``[]``
    * only zeros -> ``floor(k)`` bins of ``Bin(0, 0)``
    * a single distinct positive value -> linear bins over ``[0, max]``
    """
    arr = clean_values(values)
    if arr.size == 0:
        return []

    count = bucket_count(k)
    max_val = float(arr[-1])
    if max_val == 0:
        return [Bin(min=0.0, max=0.0) for _ in range(count)]

    pos_min = float(arr[arr > 0][0])
    if pos_min == max_val:
        step = max_val / count
        return _stitch([i * step for i in range(count)], max_val)

    log_bins = compute_log_bins(pos_min, max_val, max(1, count - 1))
    return _stitch([0.0] + [b.min for b in log_bins], max_val)


__all__ = [
    "DEFAULT_BUCKETS",
    "Bin",
    "bucket_count",
    "clean_values",
    "compute_log_bins",
    "compute_zero_aware_log_bins",
]
