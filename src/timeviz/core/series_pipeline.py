"""
Series pipeline: filtered readings → named chart series.

Steps for every run:
  1. Filter by time range, then weekday pattern (skipped for the dayOfWeek
     dimension), then hour pattern (skipped for the timeOfDay dimension).
  2. Split readings per series according to the series dimension.
  3. For time-axis dimensions (aoi, blockface) bucketize each series and
     reduce every bucket with bucket_statistic().
  4. reference_value of each series = mean of its point values.

bucket_points() is shared with map_sync so a map value and the matching
series reference value are always produced by the same code.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from timeviz.core import statistics
from timeviz.core.conventions import (
    AGGREGATE_COLOR,
    AGGREGATE_ID,
    AGGREGATE_NAME,
    COMBINED_COLOR,
    COMBINED_ID,
    DATASET_TYPES,
    DEFAULT_SERIES_COLOR,
    HOURS_PER_DAY,
    WEEKDAY_COUNT,
    find_day_option,
    find_period_option,
    hour_labels,
    weekday_labels,
)
from timeviz.core.time_utils import (
    bucketize,
    days_of_week,
    filter_by_day_of_week,
    filter_by_hour_range,
    filter_by_time_range,
    format_bucket_key,
    get_bucket_key,
    timestamp_index,
)
from timeviz.core.types import (
    AxisKind,
    ChartData,
    Dataset,
    DatasetKind,
    DataSources,
    DimensionType,
    Reading,
    Series,
    SeriesPoint,
)
from timeviz.state import PipelineConfig
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Shared building blocks (also used by map_sync)
# -----------------------------------------------------------------------------


def apply_filters(
    readings: Sequence[Reading], config: PipelineConfig, dimension_type: Optional[DimensionType] = None
) -> Sequence[Reading]:
    """
    Time range → date pattern → time pattern; each step is a no-op for 'all'.

    The date pattern is skipped for the dayOfWeek dimension and the time
    pattern for timeOfDay. dimension_type overrides config.dimension.type
    for that decision.
    """
    out = readings
    if config.time_range is not None:
        out = filter_by_time_range(out, config.time_range)
    dim_type = dimension_type or config.dimension.type
    if not config.date_pattern.is_all and dim_type is not DimensionType.DAY_OF_WEEK:
        out = filter_by_day_of_week(out, config.date_pattern.days)
    if not config.time_pattern.is_all and dim_type is not DimensionType.TIME_OF_DAY:
        out = filter_by_hour_range(out, config.time_pattern.ranges)
    return out


def weighted_occupancy(readings: Sequence[Reading]) -> float:
    """Capacity-weighted rate Σoccupied / Σcapacity * 100 (0 when capacity sums to 0)."""
    total_occupied = sum(r.occupied for r in readings)
    total_capacity = sum(r.capacity for r in readings)
    if total_capacity <= 0:
        return 0.0
    return (total_occupied / total_capacity) * 100


def uses_weighted_rate(statistic: str, kind: DatasetKind) -> bool:
    return (
        kind is DatasetKind.OCCUPANCY
        and statistics.is_known_statistic(statistic)
        and statistics.canonical_statistic(statistic) == "average"
    )


def bucket_statistic(bucket_readings: Sequence[Reading], statistic: str, kind: DatasetKind) -> float:
    """
    Reduce one bucket to a value.

    Occupancy under 'average' uses the capacity-weighted rate; every other
    case applies the statistic to the per-reading values.
    """
    if uses_weighted_rate(statistic, kind):
        return weighted_occupancy(bucket_readings)
    return statistics.calculate([r.value(kind) for r in bucket_readings], statistic)


def bucket_points(
    readings: Sequence[Reading], config: PipelineConfig, kind: DatasetKind
) -> tuple[SeriesPoint, ...]:
    """One point per non-empty bucket, sorted by bucket key."""
    buckets = bucketize(readings, config.granularity)
    points = [
        SeriesPoint(x=key, value=bucket_statistic(bucket, config.statistic, kind))
        for key, bucket in buckets.items()
    ]
    points.sort(key=lambda p: str(p.x))
    return tuple(points)


def reference_value(points: Sequence[SeriesPoint]) -> float:
    return statistics.mean([p.value for p in points])


def make_series(series_id: str, name: str, color: str, points: Sequence[SeriesPoint]) -> Series:
    points = tuple(points)
    return Series(id=series_id, name=name, color=color, points=points, reference_value=reference_value(points))


def group_by_entity(readings: Sequence[Reading]) -> dict[str, list[Reading]]:
    grouped: dict[str, list[Reading]] = {}
    for r in readings:
        grouped.setdefault(r.entity_id, []).append(r)
    return grouped


# -----------------------------------------------------------------------------
# Titles and axes
# -----------------------------------------------------------------------------


def chart_title(config: PipelineConfig, dataset: Optional[Dataset], kind: DatasetKind) -> str:
    """Human readable chart title for the current selection."""
    label = DATASET_TYPES[kind.value]["name"]
    dim = config.dimension
    selected = list(dim.selected)

    if dim.type is DimensionType.BLOCKFACE:
        if dim.segment_name:
            return f"{dim.segment_name} - {label}"
        if dim.segment_id:
            return f"Segment: {dim.segment_id} - {label}"
        return f"Block Segment - {label}"

    if dim.type is DimensionType.DAY_OF_WEEK:
        return f"{label} by Day of Week"

    if dim.type is DimensionType.TIME_OF_DAY:
        return f"{label} by Time of Day"

    def _name(entity_id: str) -> str:
        if entity_id == AGGREGATE_ID:
            return AGGREGATE_NAME
        entity = dataset.find_entity(entity_id) if dataset is not None else None
        return entity.name if entity is not None else str(entity_id)

    if not selected:
        return f"Parking {label}"
    if len(selected) == 1:
        return f"{_name(selected[0])} - {label}"
    if len(selected) <= 3:
        return f"{', '.join(_name(s) for s in selected)} - {label}"
    return f"{len(selected)} Areas - {label}"


def _time_labels(series: Sequence[Series], config: PipelineConfig) -> tuple[str, ...]:
    keys = sorted({str(p.x) for s in series for p in s.points})
    return tuple(format_bucket_key(k, config.granularity) for k in keys)


# -----------------------------------------------------------------------------
# Pipeline
# -----------------------------------------------------------------------------


class SeriesPipeline:
    """Builds ChartData from data sources and a PipelineConfig.

    Stateless between runs: every call to run() re-filters and re-buckets
    from the immutable readings.
    """

    def __init__(self, sources: DataSources) -> None:
        self.sources = sources

    def run(self, config: PipelineConfig, now: Optional[pd.Timestamp] = None) -> ChartData:
        """Run the full pipeline for config.

        now is used only for the live-value fallback of street segments
        without readings (defaults to the current UTC time).
        """
        layer = config.chart_layer
        kind = config.dataset_for(layer)
        dataset = self.sources.active(layer, kind)
        dim_type = config.dimension.type

        readings: Sequence[Reading] = dataset.readings if dataset is not None else ()
        filtered = apply_filters(readings, config)
        logger.debug(f"{dim_type.value}: {len(filtered)} of {len(readings)} readings after filters")

        if dim_type is DimensionType.AOI:
            series = self._aoi_series(filtered, dataset, config, kind)
            x_axis, x_labels = AxisKind.TIME, _time_labels(series, config)
        elif dim_type is DimensionType.DAY_OF_WEEK:
            series = self._day_of_week_series(filtered, config, kind)
            x_axis, x_labels = AxisKind.HOUR, tuple(hour_labels())
        elif dim_type is DimensionType.TIME_OF_DAY:
            series = self._time_of_day_series(filtered, config, kind)
            x_axis, x_labels = AxisKind.WEEKDAY, tuple(weekday_labels())
        else:
            series = self._blockface_series(filtered, dataset, config, kind, now)
            x_axis, x_labels = AxisKind.TIME, _time_labels(series, config)

        logger.info(f"pipeline run: dimension={dim_type.value} dataset={kind.value} series={len(series)}")
        return ChartData(
            series=tuple(series),
            x_axis=x_axis,
            x_labels=x_labels,
            y_axis_name=DATASET_TYPES[kind.value]["y_axis_name"],
            title=chart_title(config, dataset, kind),
            dataset=kind,
            statistic=config.statistic,
        )

    # -- aoi -------------------------------------------------------------------

    def _aoi_series(
        self,
        readings: Sequence[Reading],
        dataset: Optional[Dataset],
        config: PipelineConfig,
        kind: DatasetKind,
    ) -> list[Series]:
        if dataset is None:
            return []
        selected = list(config.dimension.selected)
        by_entity = group_by_entity(readings)
        series: list[Series] = []

        areas = [s for s in selected if s != AGGREGATE_ID]
        if config.combined_view and len(areas) >= 2:
            if AGGREGATE_ID in selected:
                series.append(self._aggregate_series(readings, config, kind))
            wanted = set(areas)
            merged = [r for r in readings if r.entity_id in wanted]
            name = "Combined Areas (Weighted)" if kind is DatasetKind.OCCUPANCY else "Combined Areas (Total)"
            series.append(make_series(COMBINED_ID, name, COMBINED_COLOR, bucket_points(merged, config, kind)))
            return series

        for entity_id in selected:
            if entity_id == AGGREGATE_ID:
                series.append(self._aggregate_series(readings, config, kind))
                continue
            entity = dataset.find_entity(entity_id)
            if entity is None:
                logger.debug(f"Skipping unknown area {entity_id!r}")
                continue
            points = bucket_points(by_entity.get(entity.id, []), config, kind)
            series.append(make_series(entity.id, entity.name, entity.color, points))
        return series

    def _aggregate_series(self, readings: Sequence[Reading], config: PipelineConfig, kind: DatasetKind) -> Series:
        return make_series(AGGREGATE_ID, AGGREGATE_NAME, AGGREGATE_COLOR, bucket_points(readings, config, kind))

    # -- dayOfWeek -------------------------------------------------------------

    def _day_of_week_series(
        self, readings: Sequence[Reading], config: PipelineConfig, kind: DatasetKind
    ) -> list[Series]:
        is_actual = config.statistic == "actual"
        index = timestamp_index(readings)
        weekdays = days_of_week(index)
        hours = np.asarray(index.hour)
        dates = list(index.strftime("%Y-%m-%d")) if is_actual else []
        series: list[Series] = []

        for day in config.dimension.selected:
            option = find_day_option(int(day))
            if option is None:
                continue
            rows = np.flatnonzero(weekdays == option["id"])
            if not len(rows):
                continue

            if is_actual:
                # One line per calendar date; hourly mean of sub-hour readings.
                by_date: dict[str, list[int]] = {}
                for i in rows:
                    by_date.setdefault(dates[i], []).append(i)
                for day_str, date_rows in by_date.items():
                    points = _hourly_points([readings[i] for i in date_rows], hours[date_rows], "average", kind)
                    series.append(
                        make_series(f"day-{option['id']}-{day_str}", f"{option['name']} ({day_str})", option["color"], points)
                    )
            else:
                points = _hourly_points([readings[i] for i in rows], hours[rows], config.statistic, kind)
                series.append(make_series(f"day-{option['id']}", option["name"], option["color"], points))
        return series

    # -- timeOfDay -------------------------------------------------------------

    def _time_of_day_series(
        self, readings: Sequence[Reading], config: PipelineConfig, kind: DatasetKind
    ) -> list[Series]:
        # 'actual' has no single value per weekday, use the mean
        statistic = "average" if config.statistic == "actual" else config.statistic
        index = timestamp_index(readings)
        weekdays = days_of_week(index)
        hours = np.asarray(index.hour)
        series: list[Series] = []

        for period_id in config.dimension.selected:
            option = find_period_option(str(period_id))
            if option is None:
                continue
            start, end = option["start"], option["end"]
            if start < end:
                in_period = (hours >= start) & (hours < end)
            else:
                in_period = (hours >= start) | (hours < end)
            rows = np.flatnonzero(in_period)
            if not len(rows):
                continue

            per_day: list[list[float]] = [[] for _ in range(WEEKDAY_COUNT)]
            for i in rows:
                per_day[weekdays[i]].append(readings[i].value(kind))
            points = [
                SeriesPoint(x=day, value=statistics.calculate(values, statistic) if values else 0.0)
                for day, values in enumerate(per_day)
            ]
            series.append(make_series(f"time-{option['id']}", option["name"], option["color"], points))
        return series

    # -- blockface -------------------------------------------------------------

    def _blockface_series(
        self,
        readings: Sequence[Reading],
        dataset: Optional[Dataset],
        config: PipelineConfig,
        kind: DatasetKind,
        now: Optional[pd.Timestamp],
    ) -> list[Series]:
        dim = config.dimension
        live_key = get_bucket_key(now if now is not None else pd.Timestamp.now(tz="UTC"), config.granularity)
        series: list[Series] = []

        if dataset is not None:
            by_entity = group_by_entity(readings)
            for entity_id in dim.selected:
                entity = dataset.find_entity(str(entity_id))
                if entity is None:
                    continue
                entity_readings = by_entity.get(entity.id, [])
                if entity_readings:
                    points = bucket_points(entity_readings, config, kind)
                    series.append(make_series(entity.id, entity.name, entity.color or DEFAULT_SERIES_COLOR, points))
                    continue
                live = entity.live_value(kind)
                if live is not None:
                    point = SeriesPoint(x=live_key, value=float(live))
                    series.append(make_series(entity.id, f"{entity.name} (Current)", entity.color, [point]))

        if not series and dim.current is not None:
            snapshot = dim.current
            name = dim.segment_name or snapshot.segment_name or "Segment"
            point = SeriesPoint(x=live_key, value=snapshot.value(kind))
            series.append(
                make_series(dim.segment_id or snapshot.segment_id, f"{name} (Current)", DEFAULT_SERIES_COLOR, [point])
            )
        return series


def _hourly_points(
    readings: Sequence[Reading], hours: Sequence[int], statistic: str, kind: DatasetKind
) -> list[SeriesPoint]:
    """One point per hour of day (0-23) that has readings; hours[i] is the hour of readings[i]."""
    per_hour: list[list[Reading]] = [[] for _ in range(HOURS_PER_DAY)]
    for r, hour in zip(readings, hours):
        per_hour[hour].append(r)
    points = []
    for hour, hour_readings in enumerate(per_hour):
        if not hour_readings:
            continue
        value = statistics.calculate([r.value(kind) for r in hour_readings], statistic)
        points.append(SeriesPoint(x=hour, value=value))
    return points
