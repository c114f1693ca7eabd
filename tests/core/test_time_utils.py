"""Unit tests for timestamp parsing, filters and bucketing."""

import pandas as pd
import pytest

from timeviz.core.time_utils import (
    bucket_keys,
    bucket_start,
    bucketize,
    date_key,
    filter_by_day_of_week,
    filter_by_hour_range,
    filter_by_time_range,
    format_bucket_key,
    generate_bucket_range,
    get_aggregation_types,
    get_bucket_key,
    get_day_of_week,
    get_hour,
    is_in_range,
    parse_timestamp,
)
from timeviz.core.types import Granularity, Reading, TimeRange


@pytest.fixture
def week_readings():
    """One reading every 5 hours for a week starting Sunday 2024-01-07."""
    stamps = pd.date_range("2024-01-07T00:00:00Z", periods=34, freq="5h")
    return [
        Reading(timestamp=ts.strftime("%Y-%m-%dT%H:%M:%SZ"), entity_id="a", occupied=i % 10, capacity=10)
        for i, ts in enumerate(stamps)
    ]


def test_parse_timestamp_naive_is_utc():
    ts = parse_timestamp("2024-01-01T10:00:00")
    assert str(ts.tz) == "UTC"
    assert ts.hour == 10


def test_parse_timestamp_converts_offsets_to_utc():
    ts = parse_timestamp("2024-01-01T10:00:00+02:00")
    assert ts.hour == 8


@pytest.mark.parametrize("bad", ["not a date", "", "2024-13-45"])
def test_parse_timestamp_invalid(bad):
    with pytest.raises(ValueError, match="Invalid date string"):
        parse_timestamp(bad)


def test_day_of_week_sunday_is_zero():
    assert get_day_of_week("2024-01-07T12:00:00Z") == 0
    assert get_day_of_week("2024-01-08T12:00:00Z") == 1
    assert get_day_of_week("2024-01-13T12:00:00Z") == 6


def test_hour_and_date_key():
    r = Reading(timestamp="2024-01-07T23:45:00Z", entity_id="a")
    assert get_hour(r) == 23
    assert date_key(r) == "2024-01-07"


def test_is_in_range_end_is_inclusive_end_of_day():
    tr = TimeRange.from_strings("2024-01-01", "2024-01-03")
    assert is_in_range("2024-01-01T00:00:00Z", tr)
    assert is_in_range("2024-01-03T23:59:59Z", tr)
    assert not is_in_range("2024-01-04T00:00:00Z", tr)
    assert not is_in_range("2023-12-31T23:59:59Z", {"start": "2024-01-01", "end": "2024-01-03"})


def test_filter_by_time_range(week_readings):
    tr = TimeRange.from_strings("2024-01-08", "2024-01-08")
    kept = filter_by_time_range(week_readings, tr)
    assert kept
    assert all(date_key(r) == "2024-01-08" for r in kept)


@pytest.mark.parametrize("days", [[], [0, 1, 2, 3, 4, 5, 6], None])
def test_filter_by_day_of_week_identity(week_readings, days):
    assert list(filter_by_day_of_week(week_readings, days)) == week_readings


def test_filter_by_day_of_week_weekends(week_readings):
    kept = filter_by_day_of_week(week_readings, [0, 6])
    assert kept
    assert {get_day_of_week(r) for r in kept} <= {0, 6}


def test_filter_by_hour_range_inclusive(week_readings):
    kept = filter_by_hour_range(week_readings, [(7, 9), (16, 19)])
    assert kept
    assert all(7 <= get_hour(r) <= 9 or 16 <= get_hour(r) <= 19 for r in kept)
    assert list(filter_by_hour_range(week_readings, [])) == week_readings


@pytest.mark.parametrize(
    "granularity, expected",
    [
        (Granularity.FIFTEEN_MIN, "2024-01-10T10:30"),
        (Granularity.HOURLY, "2024-01-10T10:00"),
        (Granularity.DAILY, "2024-01-10"),
        (Granularity.WEEKLY, "2024-01-08"),
        (Granularity.MONTHLY, "2024-01-01"),
        ("bogus", "2024-01-10"),
    ],
)
def test_get_bucket_key(granularity, expected):
    assert get_bucket_key("2024-01-10T10:37:00Z", granularity) == expected


def test_weekly_bucket_of_sunday_is_previous_monday():
    assert get_bucket_key("2024-01-07T09:00:00Z", Granularity.WEEKLY) == "2024-01-01"
    assert bucket_start("2024-01-07T09:00:00Z", "weekly") == pd.Timestamp("2024-01-01T00:00:00Z")


def test_generate_bucket_range_daily():
    tr = {"start": "2024-01-01", "end": "2024-01-03"}
    assert generate_bucket_range(tr, "daily") == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_generate_bucket_range_weekly_includes_partial_first_week():
    tr = TimeRange.from_strings("2024-01-03", "2024-01-20")
    assert generate_bucket_range(tr, Granularity.WEEKLY) == ["2024-01-01", "2024-01-08", "2024-01-15"]


def test_generate_bucket_range_monthly():
    tr = TimeRange.from_strings("2024-01-15", "2024-03-01")
    assert generate_bucket_range(tr, Granularity.MONTHLY) == ["2024-01-01", "2024-02-01", "2024-03-01"]


def test_generate_bucket_range_hourly_covers_whole_day():
    keys = generate_bucket_range(TimeRange.from_strings("2024-01-01", "2024-01-01"), Granularity.HOURLY)
    assert len(keys) == 24
    assert keys[0] == "2024-01-01T00:00"
    assert keys[-1] == "2024-01-01T23:00"


@pytest.mark.parametrize("granularity", list(Granularity))
def test_bucketize_is_a_partition(week_readings, granularity):
    buckets = bucketize(week_readings, granularity)
    members = [r for bucket in buckets.values() for r in bucket]
    assert sorted(map(id, members)) == sorted(map(id, week_readings))
    assert set(buckets) == {get_bucket_key(r, granularity) for r in week_readings}
    for key, bucket in buckets.items():
        assert all(get_bucket_key(r, granularity) == key for r in bucket)


def test_bucketize_keeps_first_appearance_order():
    readings = [
        Reading(timestamp=f"2024-01-{day:02d}T10:00:00Z", entity_id="a", occupied=1, capacity=10)
        for day in (3, 1, 3, 2)
    ]
    buckets = bucketize(readings, Granularity.DAILY)
    assert list(buckets) == ["2024-01-03", "2024-01-01", "2024-01-02"]
    assert buckets["2024-01-03"] == [readings[0], readings[2]]


@pytest.mark.parametrize("granularity", list(Granularity))
def test_bucket_keys_match_single_keys(week_readings, granularity):
    stamps = [r.timestamp for r in week_readings] + ["2024-01-31T23:59:00Z", "2024-02-01T00:00:00Z"]
    assert bucket_keys(stamps, granularity) == [get_bucket_key(t, granularity) for t in stamps]


def test_bucket_keys_of_nothing():
    assert bucket_keys([], Granularity.DAILY) == []


def test_format_bucket_key():
    assert format_bucket_key("2024-01-01", "weekly") == "Week of 2024-01-01"
    assert format_bucket_key("2024-03-01", "monthly") == "Mar 2024"
    assert format_bucket_key("2024-01-01T10:15", "15min") == "2024-01-01 10:15"
    assert format_bucket_key("2024-01-01", "daily") == "2024-01-01"


def test_aggregation_types():
    assert [a["id"] for a in get_aggregation_types()] == [g.value for g in Granularity]
