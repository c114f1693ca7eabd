"""Tests for heatmap and calendar grids built from chart series."""

import numpy as np
import pandas as pd
import pytest

from timeviz.core.heatmap import (
    CALENDAR_ROWS,
    calendar_grid,
    calendar_values,
    date_hour_grid,
    day_hour_grid,
    points_frame,
)
from timeviz.core.types import AxisKind, ChartData, Series, SeriesPoint


def _series(series_id, points):
    pts = tuple(SeriesPoint(x=x, value=v) for x, v in points)
    return Series(id=series_id, name=series_id, color="#000000", points=pts, reference_value=0.0)


@pytest.fixture
def hourly_chart():
    first = _series(
        "a",
        [
            ("2024-01-01T10:00", 40.0),  # Monday
            ("2024-01-01T11:00", 60.0),
            ("2024-01-03T10:00", 80.0),  # Wednesday
        ],
    )
    second = _series("b", [("2024-01-01T10:00", 20.0)])
    return ChartData(series=(first, second), x_axis=AxisKind.TIME)


def test_points_frame_skips_non_time_points():
    frame = points_frame([_series("h", [(3, 10.0), ("2024-01-07T05:00", 20.0)])])
    assert len(frame) == 1
    row = frame.iloc[0]
    assert row["date"] == "2024-01-07"
    assert row["hour"] == 5
    assert row["weekday"] == 0


def test_date_hour_grid_uses_first_series(hourly_chart):
    grid = date_hour_grid(hourly_chart)
    assert list(grid.index) == ["2024-01-01", "2024-01-03"]
    assert list(grid.columns) == list(range(24))
    assert grid.loc["2024-01-01", 10] == 40.0
    assert grid.loc["2024-01-01", 11] == 60.0
    assert grid.loc["2024-01-03", 0] == 0.0


def test_date_hour_grid_empty():
    grid = date_hour_grid(ChartData(series=()))
    assert grid.empty
    assert list(grid.columns) == list(range(24))


def test_day_hour_grid(hourly_chart):
    grid = day_hour_grid(hourly_chart)
    assert list(grid.index) == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert grid.shape == (7, 24)
    assert grid.loc["Mon", 10] == 40.0
    assert grid.loc["Wed", 10] == 80.0
    assert grid.loc["Sun"].sum() == 0


def test_calendar_values_average_all_series(hourly_chart):
    daily = calendar_values(hourly_chart)
    expected = pd.Series({"2024-01-01": 40.0, "2024-01-03": 80.0}, name="value")
    expected.index.name = "date"
    pd.testing.assert_series_equal(daily, expected)


def test_calendar_grid_layout(hourly_chart):
    grid = calendar_grid(hourly_chart)
    assert list(grid.index) == CALENDAR_ROWS
    assert list(grid.columns) == ["2024-01-01"]
    assert grid.loc["Mon", "2024-01-01"] == 40.0
    assert grid.loc["Wed", "2024-01-01"] == 80.0
    assert np.isnan(grid.loc["Tue", "2024-01-01"])


def test_calendar_grid_empty():
    grid = calendar_grid(ChartData(series=()))
    assert list(grid.index) == CALENDAR_ROWS
    assert grid.columns.empty
