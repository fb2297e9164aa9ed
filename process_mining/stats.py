"""
Shared descriptive statistics for the analyzers.

Every duration-like statistic in the library is reported through
``describe``: integer milliseconds, sample standard deviation, and
nearest-rank percentiles taken as ``sorted[floor(n * q)]`` clamped to the
last element. The rounding points are part of the output contract, so all
analyzers go through this module rather than computing their own.

Confidence intervals follow the usual mean +/- t * s / sqrt(n) form, using
Student's t for small samples and the normal quantile from n = 30 up.
"""

import math
from typing import Any, Dict, Optional, Sequence

import numpy as np
from scipy import stats as scipy_stats

from .errors import InvalidInputError

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

UNIT_TO_MS = {
    "ms": 1,
    "seconds": MS_PER_SECOND,
    "s": MS_PER_SECOND,
    "minutes": MS_PER_MINUTE,
    "min": MS_PER_MINUTE,
    "hours": MS_PER_HOUR,
    "h": MS_PER_HOUR,
    "days": MS_PER_DAY,
    "d": MS_PER_DAY,
    "weeks": 7 * MS_PER_DAY,
    "w": 7 * MS_PER_DAY,
    "months": 30 * MS_PER_DAY,
    "years": 365 * MS_PER_DAY,
}

PERCENTILES = (("p75", 0.75), ("p90", 0.90), ("p95", 0.95), ("p99", 0.99))

LARGE_SAMPLE_SIZE = 30


def empty_stats() -> Dict[str, int]:
    """Zero-valued statistics block."""
    block = {"count": 0, "mean": 0, "median": 0, "min": 0, "max": 0, "stddev": 0}
    for key, _ in PERCENTILES:
        block[key] = 0
    return block


def percentile(sorted_values: Sequence[float], q: float) -> float:
    """Nearest-rank percentile on pre-sorted data (index clamped to the end)."""
    n = len(sorted_values)
    if n == 0:
        return 0
    return sorted_values[min(int(math.floor(n * q)), n - 1)]


def describe(values: Sequence[float]) -> Dict[str, int]:
    """
    Compute the standard statistics block for a list of values.

    Args:
        values: Observations, typically durations in milliseconds

    Returns:
        Dict with count, mean, median, min, max, stddev, p75, p90, p95, p99;
        every value rounded to an integer
    """
    if len(values) == 0:
        return empty_stats()

    arr = np.sort(np.asarray(values, dtype=float))
    n = len(arr)
    block = {
        "count": n,
        "mean": int(round(float(np.mean(arr)))),
        "median": int(round(float(np.median(arr)))),
        "min": int(round(float(arr[0]))),
        "max": int(round(float(arr[-1]))),
        "stddev": int(round(float(np.std(arr, ddof=1)))) if n > 1 else 0,
    }
    for key, q in PERCENTILES:
        block[key] = int(round(float(percentile(arr, q))))
    return block


def round_pct(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Percentage rounded to two decimals; ``default`` when denominator is 0."""
    if not denominator:
        return default
    return round(numerator / denominator * 100, 2)


def to_ms(value: float, unit: Optional[str] = "ms") -> float:
    """
    Normalize a duration to milliseconds.

    Unknown or missing units are treated as milliseconds.
    """
    factor = UNIT_TO_MS.get((unit or "ms").strip().lower(), 1)
    return value * factor


def confidence_interval(values: Sequence[float], level: float = 0.95) -> Optional[Dict[str, float]]:
    """
    Confidence interval for the mean of ``values``.

    Args:
        values: Sample observations
        level: Confidence level in (0, 1)

    Returns:
        Dict with level, lower, upper, marginOfError (two decimals), or None
        for an empty sample

    Raises:
        InvalidInputError: If level is not strictly between 0 and 1
    """
    if not 0 < level < 1:
        raise InvalidInputError(f"Confidence level must be in (0, 1), got {level}")
    n = len(values)
    if n == 0:
        return None

    arr = np.asarray(values, dtype=float)
    mean = float(np.mean(arr))
    if n > 1:
        std = float(np.std(arr, ddof=1))
        alpha = 1 - level
        if n >= LARGE_SAMPLE_SIZE:
            crit = float(scipy_stats.norm.ppf(1 - alpha / 2))
        else:
            crit = float(scipy_stats.t.ppf(1 - alpha / 2, n - 1))
        margin = crit * std / math.sqrt(n)
    else:
        margin = 0.0

    return {
        "level": level,
        "lower": round(mean - margin, 2),
        "upper": round(mean + margin, 2),
        "marginOfError": round(margin, 2),
    }


def format_duration(ms: Optional[float]) -> str:
    """Human-readable duration, e.g. 1.5h or 3.2d."""
    if ms is None:
        return "N/A"
    if ms < MS_PER_SECOND:
        return f"{ms:g}ms"
    if ms < MS_PER_MINUTE:
        return f"{ms / MS_PER_SECOND:.1f}s"
    if ms < MS_PER_HOUR:
        return f"{ms / MS_PER_MINUTE:.1f}min"
    if ms < MS_PER_DAY:
        return f"{ms / MS_PER_HOUR:.1f}h"
    return f"{ms / MS_PER_DAY:.1f}d"


def linear_slope(ys: Sequence[float], xs: Optional[Sequence[float]] = None) -> float:
    """Least-squares slope of ``ys`` against ``xs`` (index positions by default)."""
    if len(ys) < 2:
        return 0.0
    x = np.arange(len(ys), dtype=float) if xs is None else np.asarray(xs, dtype=float)
    slope, _ = np.polyfit(x, np.asarray(ys, dtype=float), 1)
    return float(slope)


def convert_for_json(obj: Any) -> Any:
    """Convert objects to JSON-serializable types, including numpy types."""
    if isinstance(obj, dict):
        return {str(k): convert_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple, set, frozenset)):
        return [convert_for_json(item) for item in obj]
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    else:
        return obj
