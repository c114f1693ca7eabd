"""
Timestamp parsing, range and pattern filters, and time bucketing.

All timestamps and range boundaries are interpreted in UTC. A naive
timestamp (no offset) is taken to already be UTC. Weekday numbering is
0=Sunday .. 6=Saturday.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from timeviz.core.conventions import AGGREGATION_TYPES, WEEKDAY_COUNT
from timeviz.core.types import Granularity, Reading, TimeRange

TimestampLike = Union[str, pd.Timestamp, date]
RangeLike = Union[TimeRange, Mapping[str, Any]]

MONTH_ABBREVS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_STEPS: dict[Granularity, pd.DateOffset] = {
    Granularity.FIFTEEN_MIN: pd.DateOffset(minutes=15),
    Granularity.HOURLY: pd.DateOffset(hours=1),
    Granularity.DAILY: pd.DateOffset(days=1),
    Granularity.WEEKLY: pd.DateOffset(days=7),
    Granularity.MONTHLY: pd.DateOffset(months=1),
}


def parse_timestamp(value: TimestampLike) -> pd.Timestamp:
    """
    Parse an ISO-8601 string (or date/Timestamp) into a UTC Timestamp.

    Raises:
        ValueError: if the value cannot be parsed.
    """
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid date string: {value}") from e
    if pd.isna(ts):
        raise ValueError(f"Invalid date string: {value}")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _when(item: Union[Reading, TimestampLike]) -> pd.Timestamp:
    if isinstance(item, Reading):
        return item.when
    return parse_timestamp(item)


def _range_bounds(time_range: RangeLike) -> tuple[pd.Timestamp, pd.Timestamp]:
    if isinstance(time_range, TimeRange):
        start, end = time_range.start, time_range.end
    else:
        start, end = time_range["start"], time_range["end"]
    start_ts = parse_timestamp(start).normalize()
    end_ts = parse_timestamp(end).normalize() + pd.Timedelta(days=1) - pd.Timedelta(milliseconds=1)
    return start_ts, end_ts


def timestamp_index(items: Iterable[Union[Reading, TimestampLike]]) -> pd.DatetimeIndex:
    """UTC DatetimeIndex of readings (or timestamps), in input order."""
    return pd.DatetimeIndex([_when(item) for item in items], tz="UTC")


def is_in_range(timestamp: Union[Reading, TimestampLike], time_range: RangeLike) -> bool:
    """True if timestamp lies in [start 00:00, end 23:59:59.999] (UTC)."""
    start_ts, end_ts = _range_bounds(time_range)
    return start_ts <= _when(timestamp) <= end_ts


def filter_by_time_range(readings: Sequence[Reading], time_range: RangeLike) -> list[Reading]:
    start_ts, end_ts = _range_bounds(time_range)
    index = timestamp_index(readings)
    keep = (index >= start_ts) & (index <= end_ts)
    return [r for r, k in zip(readings, keep) if k]


def days_of_week(index: pd.DatetimeIndex) -> np.ndarray:
    """Weekdays of a DatetimeIndex with 0=Sunday .. 6=Saturday."""
    # pandas uses Monday=0
    return (np.asarray(index.dayofweek) + 1) % WEEKDAY_COUNT


def get_day_of_week(timestamp: Union[Reading, TimestampLike]) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (_when(timestamp).weekday() + 1) % WEEKDAY_COUNT


def get_hour(timestamp: Union[Reading, TimestampLike]) -> int:
    return _when(timestamp).hour


def date_key(timestamp: Union[Reading, TimestampLike]) -> str:
    """Calendar date as 'YYYY-MM-DD'."""
    return _when(timestamp).strftime("%Y-%m-%d")


def filter_by_day_of_week(readings: Sequence[Reading], days: Iterable[int] | None) -> Sequence[Reading]:
    """
    Keep readings whose weekday is in days.

    An empty selection or one covering all seven days returns readings unchanged.
    """
    wanted = set(days or ())
    if not wanted or len(wanted) >= WEEKDAY_COUNT:
        return readings
    keep = np.isin(days_of_week(timestamp_index(readings)), sorted(wanted))
    return [r for r, k in zip(readings, keep) if k]


def filter_by_hour_range(
    readings: Sequence[Reading], ranges: Iterable[Sequence[int]] | None
) -> Sequence[Reading]:
    """
    Keep readings whose hour falls in any inclusive [start, end] range.

    No ranges returns readings unchanged.
    """
    hour_ranges = [(int(r[0]), int(r[1])) for r in (ranges or ())]
    if not hour_ranges:
        return readings
    hours = np.asarray(timestamp_index(readings).hour)
    keep = np.zeros(len(hours), dtype=bool)
    for lo, hi in hour_ranges:
        keep |= (hours >= lo) & (hours <= hi)
    return [r for r, k in zip(readings, keep) if k]


# -----------------------------------------------------------------------------
# Bucketing
# -----------------------------------------------------------------------------


def bucket_starts(index: pd.DatetimeIndex, granularity: Union[Granularity, str]) -> pd.DatetimeIndex:
    """First instant of the bucket containing each timestamp of index."""
    g = Granularity.parse(granularity)
    if g is Granularity.FIFTEEN_MIN:
        return index.floor("15min")
    if g is Granularity.HOURLY:
        return index.floor("h")
    days = index.normalize()
    if g is Granularity.WEEKLY:
        return days - pd.to_timedelta(np.asarray(index.dayofweek), unit="D")
    if g is Granularity.MONTHLY:
        return days - pd.to_timedelta(np.asarray(index.day) - 1, unit="D")
    return days


def bucket_keys(
    timestamps: Union[pd.DatetimeIndex, Iterable[Union[Reading, TimestampLike]]],
    granularity: Union[Granularity, str],
) -> list[str]:
    """
    Canonical bucket key of every timestamp, in input order.

    15min/hourly → 'YYYY-MM-DDThh:mm', daily → 'YYYY-MM-DD',
    weekly → Monday of the week, monthly → 1st of the month.
    Unknown granularity is treated as daily.
    """
    g = Granularity.parse(granularity)
    index = timestamps if isinstance(timestamps, pd.DatetimeIndex) else timestamp_index(timestamps)
    fmt = "%Y-%m-%dT%H:%M" if g in (Granularity.FIFTEEN_MIN, Granularity.HOURLY) else "%Y-%m-%d"
    return list(bucket_starts(index, g).strftime(fmt))


def bucket_start(timestamp: Union[Reading, TimestampLike], granularity: Union[Granularity, str]) -> pd.Timestamp:
    """First instant of the bucket containing timestamp."""
    return bucket_starts(timestamp_index([timestamp]), granularity)[0]


def get_bucket_key(timestamp: Union[Reading, TimestampLike], granularity: Union[Granularity, str]) -> str:
    """Canonical bucket key of one timestamp (see bucket_keys)."""
    return bucket_keys([timestamp], granularity)[0]


def generate_bucket_range(time_range: RangeLike, granularity: Union[Granularity, str]) -> list[str]:
    """
    Every bucket key overlapping the range, in chronological order.

    The walk starts at the bucket containing range.start, so partial first
    weeks/months are included.
    """
    g = Granularity.parse(granularity)
    start_ts, end_ts = _range_bounds(time_range)
    step = _STEPS[g]

    steps: list[pd.Timestamp] = []
    current = bucket_start(start_ts, g)
    while current <= end_ts:
        steps.append(current)
        current = current + step
    return list(dict.fromkeys(bucket_keys(steps, g)))


def bucketize(readings: Iterable[Reading], granularity: Union[Granularity, str]) -> dict[str, list[Reading]]:
    """Group readings by bucket key, keys in order of first appearance."""
    readings = list(readings)
    buckets: dict[str, list[Reading]] = {}
    for key, reading in zip(bucket_keys(readings, granularity), readings):
        buckets.setdefault(key, []).append(reading)
    return buckets


def format_bucket_key(bucket_key: str, granularity: Union[Granularity, str]) -> str:
    """Display label for a bucket key."""
    g = Granularity.parse(granularity)
    if g in (Granularity.FIFTEEN_MIN, Granularity.HOURLY):
        return bucket_key.replace("T", " ")
    if g is Granularity.WEEKLY:
        return f"Week of {bucket_key}"
    if g is Granularity.MONTHLY:
        year, month = bucket_key.split("-")[:2]
        return f"{MONTH_ABBREVS[int(month) - 1]} {year}"
    return bucket_key


def get_aggregation_types() -> list[dict[str, str]]:
    return [dict(a) for a in AGGREGATION_TYPES]
