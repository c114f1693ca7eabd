"""
Statistic reducers (pure numpy).

Every reducer takes a sequence of numbers and returns a float. Empty input
resolves to 0 instead of nan/inf so downstream arithmetic stays finite.
Only percentile() raises, and only for a percentile outside [0, 100].

calculate() dispatches by statistic name, including legacy aliases
('mean', 'minimum', 'percentile90', 'sum', ...). Unknown names fall back to
the mean with a warning.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence, Union

import numpy as np

from timeviz.core.conventions import STATISTIC_TYPES
from timeviz.core.types import StatisticKind
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)


class InvalidArgumentError(ValueError):
    """Raised for an argument outside its documented domain."""


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def mean(values: Sequence[float]) -> float:
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.sum() / arr.size)


def minimum(values: Sequence[float]) -> float:
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.min())


def maximum(values: Sequence[float]) -> float:
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.max())


def median(values: Sequence[float]) -> float:
    """Middle value of a sorted copy; even length → mean of the two central values."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.median(arr))


def _round_one_decimal(value: float) -> float:
    # half-up, so 0.25 -> 0.3 and -0.25 -> -0.2
    return math.floor(value * 10 + 0.5) / 10


def mode(values: Sequence[float]) -> float:
    """
    Most frequent value after rounding to one decimal place.

    Ties go to the tied value that was seen first in the input.
    """
    vals = list(values)
    if not vals:
        return 0.0
    counts: dict[float, int] = {}
    for v in vals:
        key = _round_one_decimal(float(v))
        counts[key] = counts.get(key, 0) + 1

    best_value = float(vals[0])
    best_count = 0
    for key, count in counts.items():
        if count > best_count:
            best_count = count
            best_value = key
    return best_value


def percentile(values: Sequence[float], p: float) -> float:
    """
    Percentile by linear interpolation between the two nearest ranks.

    p=0 and p=100 return the exact minimum/maximum.

    Raises:
        InvalidArgumentError: if p is outside [0, 100].
    """
    if p < 0 or p > 100:
        raise InvalidArgumentError(f"Percentile must be between 0 and 100, got {p}")
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    ordered = np.sort(arr)
    if p == 0:
        return float(ordered[0])
    if p == 100:
        return float(ordered[-1])

    index = (p / 100) * (ordered.size - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(ordered[lower])
    fraction = index - lower
    return float(ordered[lower] * (1 - fraction) + ordered[upper] * fraction)


def total(values: Sequence[float]) -> float:
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.sum())


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n). Fewer than 2 values → 0."""
    arr = _as_array(values)
    if arr.size < 2:
        return 0.0
    # Constant input can leave float residue in the mean.
    if np.all(arr == arr[0]):
        return 0.0
    return float(np.sqrt(np.mean((arr - arr.mean()) ** 2)))


# -----------------------------------------------------------------------------
# Dispatcher
# -----------------------------------------------------------------------------

_REDUCERS: dict[str, Callable[[Sequence[float]], float]] = {
    "actual": mean,
    "average": mean,
    "mean": mean,
    "min": minimum,
    "minimum": minimum,
    "max": maximum,
    "maximum": maximum,
    "median": median,
    "mode": mode,
    "p25": lambda v: percentile(v, 25),
    "percentile25": lambda v: percentile(v, 25),
    "p75": lambda v: percentile(v, 75),
    "percentile75": lambda v: percentile(v, 75),
    "p90": lambda v: percentile(v, 90),
    "percentile90": lambda v: percentile(v, 90),
    "stddev": standard_deviation,
    "standardDeviation": standard_deviation,
    "total": total,
    "sum": total,
}

# Aliases collapsed to one canonical name per reducer.
_CANONICAL: dict[str, str] = {
    "mean": "average",
    "minimum": "min",
    "maximum": "max",
    "percentile25": "p25",
    "percentile75": "p75",
    "percentile90": "p90",
    "standardDeviation": "stddev",
    "sum": "total",
}


def _statistic_name(statistic: Union[StatisticKind, str, None]) -> str:
    if isinstance(statistic, StatisticKind):
        return statistic.value
    return str(statistic)


def is_known_statistic(statistic: Union[StatisticKind, str, None]) -> bool:
    return _statistic_name(statistic) in _REDUCERS


def canonical_statistic(statistic: Union[StatisticKind, str, None]) -> str:
    """
    Canonical name for a statistic or alias ('mean' → 'average', 'sum' → 'total').

    Unknown names map to 'average', matching the calculate() fallback.
    """
    name = _statistic_name(statistic)
    if name not in _REDUCERS:
        return "average"
    return _CANONICAL.get(name, name)


def calculate(values: Sequence[float], statistic: Union[StatisticKind, str, None]) -> float:
    """
    Apply the named statistic to values.

    'actual' resolves to the mean. Unknown names log a warning and use the mean.
    """
    name = _statistic_name(statistic)
    reducer = _REDUCERS.get(name)
    if reducer is None:
        logger.warning(f"Unknown statistic type: {name!r}, falling back to mean")
        reducer = mean
    return reducer(values)


def get_statistic_types() -> list[dict[str, str]]:
    """Statistics offered for selection, as {id, name, description} dicts."""
    return [dict(s) for s in STATISTIC_TYPES]
