"""Enums and immutable records for the time-series pipeline.

Readings, entities and datasets are created once by the loader and only read
afterwards. Series and chart payloads are created fresh on every pipeline run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import cached_property
from typing import Any, Optional, Union

import pandas as pd

from timeviz.core.conventions import (
    AGGREGATE_ID,
    DATE_PATTERNS,
    DEFAULT_SERIES_COLOR,
    TIME_PATTERNS,
    WEEKDAY_COUNT,
)
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)


class Granularity(Enum):
    """Bucket width for time aggregation."""
    FIFTEEN_MIN = "15min"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Union["Granularity", str, None]) -> "Granularity":
        """Return the matching granularity; unknown values degrade to DAILY."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            logger.debug(f"Unknown granularity {value!r}, using daily")
            return cls.DAILY


class StatisticKind(Enum):
    """Statistics offered to the user. Legacy aliases are resolved by statistics.calculate()."""
    ACTUAL = "actual"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"
    MODE = "mode"
    P25 = "p25"
    P75 = "p75"
    TOTAL = "total"
    STDDEV = "stddev"


class DimensionType(Enum):
    """Axis along which readings are split into chart series."""
    AOI = "aoi"
    DAY_OF_WEEK = "dayOfWeek"
    TIME_OF_DAY = "timeOfDay"
    BLOCKFACE = "blockface"


class AxisKind(Enum):
    """X-axis semantics of a chart payload."""
    TIME = "time"
    HOUR = "hour"
    WEEKDAY = "weekday"


class DatasetKind(Enum):
    OCCUPANCY = "occupancy"
    TRANSACTIONS = "transactions"

    @classmethod
    def parse(cls, value: Union["DatasetKind", str, None]) -> "DatasetKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.OCCUPANCY


class Layer(Enum):
    """Map layer an entity belongs to."""
    AOI = "aoi"
    BLOCKFACE = "blockface"


# -----------------------------------------------------------------------------
# Input records
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Reading:
    """One time-stamped observation for an entity.

    Occupancy readings carry occupied/capacity; transaction readings carry
    transactions. Blockface readings may carry both.
    """
    timestamp: str
    entity_id: str
    occupied: float = 0.0
    capacity: float = 0.0
    transactions: Optional[float] = None

    @cached_property
    def when(self) -> pd.Timestamp:
        """Timestamp parsed as a UTC pandas Timestamp."""
        from timeviz.core.time_utils import parse_timestamp

        return parse_timestamp(self.timestamp)

    @property
    def occupancy_pct(self) -> float:
        if self.capacity > 0:
            return (self.occupied / self.capacity) * 100
        return 0.0

    def value(self, kind: DatasetKind) -> float:
        """Per-reading value for the dataset kind (percentage or transaction amount)."""
        if kind is DatasetKind.TRANSACTIONS:
            return float(self.transactions or 0)
        return self.occupancy_pct


@dataclass(frozen=True)
class Entity:
    """An area of interest or a street segment (blockface)."""
    id: str
    name: str
    color: str = DEFAULT_SERIES_COLOR
    capacity: Optional[float] = None
    segment_id: Optional[str] = None
    base_occupancy: Optional[float] = None      # live metadata, used when no readings match
    base_transactions: Optional[float] = None

    def live_value(self, kind: DatasetKind) -> Optional[float]:
        if kind is DatasetKind.TRANSACTIONS:
            return self.base_transactions
        return self.base_occupancy


@dataclass(frozen=True)
class Dataset:
    """Entities plus their readings for one dataset kind."""
    kind: DatasetKind
    entities: tuple[Entity, ...] = ()
    readings: tuple[Reading, ...] = ()

    def find_entity(self, entity_id: str) -> Optional[Entity]:
        """Find an entity by id, then by segment id."""
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        for entity in self.entities:
            if entity.segment_id is not None and entity.segment_id == entity_id:
                return entity
        return None


@dataclass(frozen=True)
class DataSources:
    """All datasets available to the pipeline.

    Blockface readings carry both occupancy and transaction fields, so one
    blockface dataset serves both dataset kinds.
    """
    areas: Dataset
    area_transactions: Optional[Dataset] = None
    blockfaces: Optional[Dataset] = None

    def active(self, layer: Layer, kind: DatasetKind) -> Optional[Dataset]:
        if layer is Layer.BLOCKFACE:
            return self.blockfaces
        if kind is DatasetKind.TRANSACTIONS:
            return self.area_transactions
        return self.areas


# -----------------------------------------------------------------------------
# Filters and dimension
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeRange:
    """Inclusive date range; end is treated as end-of-day."""
    start: date
    end: date

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeRange":
        return cls(start=date.fromisoformat(start[:10]), end=date.fromisoformat(end[:10]))

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeRange":
        return cls.from_strings(str(data["start"]), str(data["end"]))


@dataclass(frozen=True)
class DatePattern:
    """Weekday filter. 'all', an empty set and the full week are equivalent."""
    name: str = "all"
    days: tuple[int, ...] = tuple(DATE_PATTERNS["all"])

    @property
    def is_all(self) -> bool:
        return self.name == "all" or not self.days or len(set(self.days)) >= WEEKDAY_COUNT

    @classmethod
    def preset(cls, name: str) -> "DatePattern":
        days = DATE_PATTERNS.get(name)
        if days is None:
            raise ValueError(f"Unknown date pattern {name!r}")
        return cls(name=name, days=tuple(days))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.name, "days": list(self.days)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DatePattern":
        days = data.get("days")
        if not isinstance(days, (list, tuple)):
            days = DATE_PATTERNS["all"]
        return cls(name=str(data.get("type", "all")), days=tuple(int(d) for d in days))


@dataclass(frozen=True)
class TimePattern:
    """Hour-of-day filter as inclusive [startHour, endHour] ranges."""
    name: str = "all"
    ranges: tuple[tuple[int, int], ...] = tuple(TIME_PATTERNS["all"])

    @property
    def is_all(self) -> bool:
        return self.name == "all" or not self.ranges

    @classmethod
    def preset(cls, name: str) -> "TimePattern":
        ranges = TIME_PATTERNS.get(name)
        if ranges is None:
            raise ValueError(f"Unknown time pattern {name!r}")
        return cls(name=name, ranges=tuple(tuple(r) for r in ranges))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.name, "ranges": [list(r) for r in self.ranges]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimePattern":
        ranges = data.get("ranges")
        if not isinstance(ranges, (list, tuple)):
            ranges = TIME_PATTERNS["all"]
        return cls(
            name=str(data.get("type", "all")),
            ranges=tuple((int(r[0]), int(r[1])) for r in ranges),
        )


@dataclass(frozen=True)
class LiveSnapshot:
    """Present-moment values for a street segment without time-series history."""
    segment_id: str
    segment_name: str = "Segment"
    occupancy: Optional[float] = None
    transactions: Optional[float] = None

    def value(self, kind: DatasetKind) -> float:
        if kind is DatasetKind.TRANSACTIONS:
            return float(self.transactions or 0)
        return float(self.occupancy) if self.occupancy is not None else 0.0


@dataclass(frozen=True)
class SeriesDimension:
    """Series grouping selection.

    selected holds entity ids (aoi/blockface), weekday numbers (dayOfWeek)
    or period ids (timeOfDay).
    """
    type: DimensionType = DimensionType.AOI
    selected: tuple[Any, ...] = (AGGREGATE_ID,)
    segment_id: Optional[str] = None
    segment_name: Optional[str] = None
    current: Optional[LiveSnapshot] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type.value, "selected": list(self.selected)}
        if self.segment_id is not None:
            d["segment_id"] = self.segment_id
        if self.segment_name is not None:
            d["segment_name"] = self.segment_name
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SeriesDimension":
        try:
            dim_type = DimensionType(data.get("type", DimensionType.AOI.value))
        except ValueError:
            logger.warning(f"Unknown series dimension {data.get('type')!r}, using aoi")
            return cls()
        selected = data.get("selected")
        if not isinstance(selected, (list, tuple)):
            selected = []
        if dim_type is DimensionType.DAY_OF_WEEK:
            selected = [int(s) for s in selected]
        return cls(
            type=dim_type,
            selected=tuple(selected),
            segment_id=data.get("segment_id"),
            segment_name=data.get("segment_name"),
        )


# -----------------------------------------------------------------------------
# Output records
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SeriesPoint:
    """One chart point: x is a bucket key, an hour (0-23) or a weekday (0-6)."""
    x: Union[str, int]
    value: float


@dataclass(frozen=True)
class Series:
    """A named chart series. reference_value is the mean of the point values."""
    id: str
    name: str
    color: str
    points: tuple[SeriesPoint, ...]
    reference_value: float

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "points": [{"x": p.x, "value": p.value} for p in self.points],
            "reference_value": self.reference_value,
        }


@dataclass(frozen=True)
class ChartData:
    """Everything the chart renderer needs for one pipeline run."""
    series: tuple[Series, ...]
    x_axis: AxisKind = AxisKind.TIME
    x_labels: tuple[str, ...] = ()
    y_axis_name: str = ""
    title: str = ""
    dataset: DatasetKind = DatasetKind.OCCUPANCY
    statistic: str = "average"

    @property
    def is_empty(self) -> bool:
        return not self.series or all(not s.points for s in self.series)

    def to_dict(self) -> dict[str, Any]:
        return {
            "series": [s.to_dict() for s in self.series],
            "x_axis": {"type": self.x_axis.value, "labels": list(self.x_labels)},
            "y_axis": {"name": self.y_axis_name},
            "title": self.title,
            "dataset": self.dataset.value,
            "statistic": self.statistic,
        }


@dataclass(frozen=True)
class MapValue:
    """Scalar for map coloring of one entity."""
    entity_id: str
    name: str
    value: float
    color: str = DEFAULT_SERIES_COLOR
    segment_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"entity_id": self.entity_id, "name": self.name, "value": self.value, "color": self.color}
        if self.segment_id is not None:
            d["segment_id"] = self.segment_id
        return d


@dataclass(frozen=True)
class MapLayerData:
    """Map values of one layer plus the fill color derived for each entity."""
    layer: Layer
    dataset: DatasetKind
    values: tuple[MapValue, ...] = ()
    fill_colors: dict[str, str] = field(default_factory=dict)
    value_range: tuple[float, float] = (0.0, 100.0)
