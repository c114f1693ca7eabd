"""Shared constants for the time-series pipeline.

Single source of truth for identifiers and option tables so the pipeline,
map synchronization, settings and UI agree on the same values.
"""

from __future__ import annotations

# Synthetic entity representing the union of all areas.
AGGREGATE_ID = "aggregate"
AGGREGATE_NAME = "All Areas"
AGGREGATE_COLOR = "#34495E"

COMBINED_ID = "combined"
COMBINED_COLOR = "#3498db"
DEFAULT_SERIES_COLOR = "#3498db"

WEEKDAY_COUNT = 7
HOURS_PER_DAY = 24

# Weekday numbering: 0=Sunday .. 6=Saturday.
DAY_OF_WEEK_OPTIONS = [
    {"id": 0, "name": "Sunday", "abbrev": "Sun", "color": "#E74C3C"},
    {"id": 1, "name": "Monday", "abbrev": "Mon", "color": "#3498DB"},
    {"id": 2, "name": "Tuesday", "abbrev": "Tue", "color": "#2ECC71"},
    {"id": 3, "name": "Wednesday", "abbrev": "Wed", "color": "#9B59B6"},
    {"id": 4, "name": "Thursday", "abbrev": "Thu", "color": "#F39C12"},
    {"id": 5, "name": "Friday", "abbrev": "Fri", "color": "#1ABC9C"},
    {"id": 6, "name": "Saturday", "abbrev": "Sat", "color": "#E67E22"},
]

# Fixed periods, half-open [start, end) in hours.
TIME_OF_DAY_OPTIONS = [
    {"id": "morning", "name": "Morning", "abbrev": "AM", "start": 6, "end": 12, "color": "#F39C12"},
    {"id": "afternoon", "name": "Afternoon", "abbrev": "PM", "start": 12, "end": 18, "color": "#E74C3C"},
    {"id": "evening", "name": "Evening", "abbrev": "Eve", "start": 18, "end": 24, "color": "#9B59B6"},
    {"id": "night", "name": "Night", "abbrev": "Night", "start": 0, "end": 6, "color": "#34495E"},
]

# Preset time patterns; ranges are [startHour, endHour] with endHour inclusive.
TIME_PATTERNS = {
    "all": [(0, 23)],
    "morning": [(6, 11)],
    "afternoon": [(12, 17)],
    "evening": [(18, 23)],
    "night": [(0, 5)],
    "peak": [(7, 9), (16, 19)],
    "offpeak": [(0, 6), (10, 15), (20, 23)],
    "business": [(9, 17)],
}

DATE_PATTERNS = {
    "all": [0, 1, 2, 3, 4, 5, 6],
    "weekdays": [1, 2, 3, 4, 5],
    "weekends": [0, 6],
}

DATASET_TYPES = {
    "occupancy": {
        "id": "occupancy",
        "name": "Occupancy",
        "description": "Parking space utilization percentage",
        "unit": "%",
        "y_axis_name": "Occupancy %",
        "default_statistic": "average",
    },
    "transactions": {
        "id": "transactions",
        "name": "Transactions",
        "description": "Parking revenue from paid spaces",
        "unit": "$",
        "y_axis_name": "Revenue ($)",
        "default_statistic": "total",
    },
}

AGGREGATION_TYPES = [
    {"id": "15min", "name": "15 Minutes"},
    {"id": "hourly", "name": "Hourly"},
    {"id": "daily", "name": "Daily"},
    {"id": "weekly", "name": "Weekly"},
    {"id": "monthly", "name": "Monthly"},
]

STATISTIC_TYPES = [
    {"id": "actual", "name": "Actual", "description": "Raw data values without aggregation"},
    {"id": "average", "name": "Average", "description": "Mean of all values in the bucket"},
    {"id": "median", "name": "Median", "description": "Middle value (50th percentile)"},
    {"id": "min", "name": "Minimum", "description": "Lowest value in the bucket"},
    {"id": "max", "name": "Maximum", "description": "Highest value in the bucket"},
    {"id": "mode", "name": "Mode", "description": "Most frequently occurring value"},
    {"id": "p25", "name": "25th Percentile", "description": "25% of values are below this"},
    {"id": "p75", "name": "75th Percentile", "description": "75% of values are below this"},
    {"id": "total", "name": "Total", "description": "Sum of all values in the bucket"},
    {"id": "stddev", "name": "Std Dev", "description": "Population standard deviation"},
]

# Short suffix shown after map and reference values; 'actual' has none
STATISTIC_ABBREVS = {
    "actual": "",
    "average": "avg",
    "median": "med",
    "min": "min",
    "max": "max",
    "mode": "mode",
    "p25": "p25",
    "p75": "p75",
    "total": "total",
}

CHART_TYPES = [
    {"id": "line", "name": "Line Chart"},
    {"id": "bar", "name": "Bar Chart"},
    {"id": "area", "name": "Area Chart"},
    {"id": "stacked-area", "name": "Stacked Area"},
    {"id": "heatmap", "name": "Heatmap"},
]

HEATMAP_MODES = [
    {"id": "date-hour", "name": "Date × Hour"},
    {"id": "day-hour", "name": "Day of Week × Hour"},
    {"id": "calendar", "name": "Calendar View"},
]


def hour_labels() -> list[str]:
    """Labels for an hour-of-day axis: '00:00' .. '23:00'."""
    return [f"{h:02d}:00" for h in range(HOURS_PER_DAY)]


def weekday_labels() -> list[str]:
    """Labels for a weekday axis: 'Sun' .. 'Sat'."""
    return [d["abbrev"] for d in DAY_OF_WEEK_OPTIONS]


def find_day_option(day: int) -> dict | None:
    for option in DAY_OF_WEEK_OPTIONS:
        if option["id"] == day:
            return option
    return None


def find_period_option(period_id: str) -> dict | None:
    for option in TIME_OF_DAY_OPTIONS:
        if option["id"] == period_id:
            return option
    return None
