"""
Heatmap grids from chart series (pure pandas).

Only time-axis series (points keyed by bucket key) can be laid out on a
calendar; series on an hour or weekday axis yield empty grids.

  date_hour_grid: rows = dates (sorted), columns = hours 0-23, first series only
  day_hour_grid:  rows = Sun..Sat, columns = hours 0-23, first series only
  calendar_values: one mean value per date across all series
  calendar_grid:  calendar_values as weekday rows × week columns
Empty cells are 0, except in calendar_grid where missing days are nan.
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from timeviz.core.conventions import HOURS_PER_DAY, weekday_labels
from timeviz.core.time_utils import parse_timestamp
from timeviz.core.types import ChartData, Series

HOUR_COLUMNS = list(range(HOURS_PER_DAY))


def points_frame(series: Sequence[Series]) -> pd.DataFrame:
    """
    Long-format frame of time-axis points.

    Columns: series_id, timestamp (UTC), date ('YYYY-MM-DD'), hour, weekday
    (0=Sunday), value. Points whose x is not a bucket key are skipped.
    """
    rows = []
    for s in series:
        for p in s.points:
            if not isinstance(p.x, str):
                continue
            ts = parse_timestamp(p.x)
            rows.append(
                {
                    "series_id": s.id,
                    "timestamp": ts,
                    "date": ts.strftime("%Y-%m-%d"),
                    "hour": ts.hour,
                    "weekday": (ts.weekday() + 1) % 7,
                    "value": float(p.value),
                }
            )
    columns = ["series_id", "timestamp", "date", "hour", "weekday", "value"]
    return pd.DataFrame(rows, columns=columns)


def _grid(df: pd.DataFrame, index_col: str) -> pd.DataFrame:
    grid = df.pivot_table(index=index_col, columns="hour", values="value", aggfunc="mean")
    return grid.reindex(columns=HOUR_COLUMNS).fillna(0.0)


def date_hour_grid(chart: ChartData) -> pd.DataFrame:
    """Dates × 24 hours for the first series."""
    if not chart.series:
        return pd.DataFrame(columns=HOUR_COLUMNS, dtype=float)
    df = points_frame(chart.series[:1])
    if df.empty:
        return pd.DataFrame(columns=HOUR_COLUMNS, dtype=float)
    grid = _grid(df, "date").sort_index()
    grid.columns.name = None
    grid.index.name = "date"
    return grid


def day_hour_grid(chart: ChartData) -> pd.DataFrame:
    """7 weekdays (Sun..Sat) × 24 hours for the first series."""
    labels = weekday_labels()
    df = points_frame(chart.series[:1])
    if df.empty:
        grid = pd.DataFrame(0.0, index=range(7), columns=HOUR_COLUMNS)
    else:
        grid = _grid(df, "weekday").reindex(index=range(7)).fillna(0.0)
    grid.index = pd.Index(labels, name="weekday")
    grid.columns.name = None
    return grid


def calendar_values(chart: ChartData) -> pd.Series:
    """Mean point value per date across all series, sorted by date."""
    df = points_frame(chart.series)
    if df.empty:
        return pd.Series(dtype=float, name="value")
    daily = df.groupby("date")["value"].mean().sort_index()
    daily.name = "value"
    return daily


CALENDAR_ROWS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def calendar_grid(chart: ChartData) -> pd.DataFrame:
    """
    Daily values laid out as a calendar: rows Mon..Sun, columns = Monday of each week.

    Days without data are nan so they render as blank cells.
    """
    daily = calendar_values(chart)
    if daily.empty:
        return pd.DataFrame(index=CALENDAR_ROWS, dtype=float)
    dates = pd.to_datetime(daily.index)
    df = pd.DataFrame(
        {
            "week": (dates - pd.to_timedelta(dates.weekday, unit="D")).strftime("%Y-%m-%d"),
            "row": [CALENDAR_ROWS[d] for d in dates.weekday],
            "value": daily.to_numpy(),
        }
    )
    grid = df.pivot(index="row", columns="week", values="value").reindex(index=CALENDAR_ROWS)
    grid.columns.name = None
    return grid
