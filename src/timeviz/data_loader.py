"""Loading and validation of JSON datasets.

File formats:
    neighborhoods.json  {regions: [{id, name, color?, capacity?}],
                         readings: [{timestamp, regionId, occupied, capacity}]}
    transactions.json   {regions: [...], readings: [{timestamp, regionId, transactions}]}
    blockfaces.json     {blockfaces: [{id, segmentId?, name, color?, capacity?,
                                       baseOccupancy?, baseTransactions?}],
                         readings: [{timestamp, blockfaceId, occupied?, capacity?, transactions?}]}

The area occupancy dataset is required: problems raise. The transaction and
blockface datasets are optional: problems are logged and the dataset is None.
Invalid individual readings are dropped.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import pandas as pd

from timeviz.core.conventions import DEFAULT_SERIES_COLOR
from timeviz.core.time_utils import parse_timestamp
from timeviz.core.types import DatasetKind, Dataset, DataSources, Entity, Reading, TimeRange
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

AREA_FILENAME = "neighborhoods.json"
TRANSACTIONS_FILENAME = "transactions.json"
BLOCKFACES_FILENAME = "blockfaces.json"

PathLike = Union[str, Path]


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _valid_timestamp(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        parse_timestamp(value)
    except ValueError:
        return False
    return True


def validate_reading(raw: Any, id_field: str = "regionId") -> bool:
    """Occupancy reading: parseable timestamp, id, 0 <= occupied <= capacity, capacity > 0."""
    if not isinstance(raw, dict):
        return False
    entity_id = raw.get(id_field)
    if not isinstance(entity_id, str) or not entity_id:
        return False
    occupied = raw.get("occupied")
    capacity = raw.get("capacity")
    if not _is_number(occupied) or occupied < 0:
        return False
    if not _is_number(capacity) or capacity <= 0:
        return False
    if occupied > capacity:
        return False
    return _valid_timestamp(raw.get("timestamp"))


def validate_transaction_reading(raw: Any, id_field: str = "regionId") -> bool:
    """Transaction reading: parseable timestamp, id, transactions >= 0."""
    if not isinstance(raw, dict):
        return False
    entity_id = raw.get(id_field)
    if not isinstance(entity_id, str) or not entity_id:
        return False
    transactions = raw.get("transactions")
    if not _is_number(transactions) or transactions < 0:
        return False
    return _valid_timestamp(raw.get("timestamp"))


def validate_blockface_reading(raw: Any) -> bool:
    """Blockface reading: parseable timestamp and blockfaceId; numeric fields, when present, are >= 0."""
    if not isinstance(raw, dict):
        return False
    entity_id = raw.get("blockfaceId")
    if not isinstance(entity_id, str) or not entity_id:
        return False
    for key in ("occupied", "capacity", "transactions"):
        if key in raw and raw[key] is not None and (not _is_number(raw[key]) or raw[key] < 0):
            return False
    return _valid_timestamp(raw.get("timestamp"))


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if _is_number(value) else None


def _entity(raw: dict[str, Any]) -> Entity:
    entity_id = str(raw["id"])
    return Entity(
        id=entity_id,
        name=str(raw.get("name", entity_id)),
        color=str(raw.get("color") or DEFAULT_SERIES_COLOR),
        capacity=_optional_float(raw.get("capacity")),
        segment_id=raw.get("segmentId"),
        base_occupancy=_optional_float(raw.get("baseOccupancy")),
        base_transactions=_optional_float(raw.get("baseTransactions")),
    )


def _entities(raw_list: Iterable[Any]) -> tuple[Entity, ...]:
    return tuple(_entity(r) for r in raw_list if isinstance(r, dict) and r.get("id") is not None)


def _require_list(data: Any, key: str) -> list:
    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        raise ValueError(f"Invalid data: missing {key} array")
    return data[key]


def parse_area_dataset(data: Any) -> Dataset:
    """Area occupancy dataset from decoded JSON.

    Raises:
        ValueError: if regions/readings are missing or no reading is valid.
    """
    regions = _require_list(data, "regions")
    raw_readings = _require_list(data, "readings")
    readings = tuple(
        Reading(
            timestamp=r["timestamp"],
            entity_id=r["regionId"],
            occupied=float(r["occupied"]),
            capacity=float(r["capacity"]),
        )
        for r in raw_readings
        if validate_reading(r)
    )
    if not readings:
        raise ValueError("No valid readings found in data")
    dropped = len(raw_readings) - len(readings)
    if dropped:
        logger.warning(f"Dropped {dropped} invalid occupancy readings")
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=_entities(regions), readings=readings)


def parse_transaction_dataset(data: Any) -> Dataset:
    """Area transaction dataset from decoded JSON.

    Raises:
        ValueError: if regions/readings are missing or no reading is valid.
    """
    regions = _require_list(data, "regions")
    raw_readings = _require_list(data, "readings")
    readings = tuple(
        Reading(timestamp=r["timestamp"], entity_id=r["regionId"], transactions=float(r["transactions"]))
        for r in raw_readings
        if validate_transaction_reading(r)
    )
    if not readings:
        raise ValueError("No valid transaction readings found")
    dropped = len(raw_readings) - len(readings)
    if dropped:
        logger.warning(f"Dropped {dropped} invalid transaction readings")
    return Dataset(kind=DatasetKind.TRANSACTIONS, entities=_entities(regions), readings=readings)


def parse_blockface_dataset(data: Any) -> Dataset:
    """Blockface dataset (occupancy and transactions) from decoded JSON.

    Raises:
        ValueError: if blockfaces/readings are missing.
    """
    blockfaces = _require_list(data, "blockfaces")
    raw_readings = _require_list(data, "readings")
    readings = tuple(
        Reading(
            timestamp=r["timestamp"],
            entity_id=r["blockfaceId"],
            occupied=float(r.get("occupied") or 0),
            capacity=float(r.get("capacity") or 0),
            transactions=_optional_float(r.get("transactions")),
        )
        for r in raw_readings
        if validate_blockface_reading(r)
    )
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=_entities(blockfaces), readings=readings)


# -----------------------------------------------------------------------------
# Files
# -----------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def load_area_dataset(path: PathLike) -> Dataset:
    """Load the required area occupancy dataset.

    Raises:
        FileNotFoundError: if path does not exist.
        ValueError: if the file is not valid JSON or has no valid readings.
    """
    path = Path(path)
    try:
        data = _read_json(path)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid data format in {path}: {e}") from e
    dataset = parse_area_dataset(data)
    logger.info(f"Loaded {path.name}: {len(dataset.entities)} areas, {len(dataset.readings)} readings")
    return dataset


def _load_optional(path: Path, parser, label: str) -> Optional[Dataset]:
    try:
        dataset = parser(_read_json(path))
    except FileNotFoundError:
        logger.warning(f"{label} data not available at {path}")
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load {label} data from {path}: {e}")
        return None
    logger.info(f"Loaded {path.name}: {len(dataset.entities)} entities, {len(dataset.readings)} readings")
    return dataset


def load_transaction_dataset(path: PathLike) -> Optional[Dataset]:
    """Load the optional transaction dataset; None when missing or invalid."""
    return _load_optional(Path(path), parse_transaction_dataset, "Transaction")


def load_blockface_dataset(path: PathLike) -> Optional[Dataset]:
    """Load the optional blockface dataset; None when missing or invalid."""
    return _load_optional(Path(path), parse_blockface_dataset, "Blockface")


def load_data_sources(directory: PathLike) -> DataSources:
    """Load every dataset found in directory (the area dataset is required)."""
    directory = Path(directory)
    return DataSources(
        areas=load_area_dataset(directory / AREA_FILENAME),
        area_transactions=load_transaction_dataset(directory / TRANSACTIONS_FILENAME),
        blockfaces=load_blockface_dataset(directory / BLOCKFACES_FILENAME),
    )


# -----------------------------------------------------------------------------
# Time ranges
# -----------------------------------------------------------------------------


def available_time_range(readings: Iterable[Reading]) -> TimeRange:
    """UTC dates of the earliest and latest readings (today when there are none)."""
    stamps = [r.when for r in readings]
    if not stamps:
        today = pd.Timestamp.now(tz="UTC").date()
        return TimeRange(start=today, end=today)
    return TimeRange(start=min(stamps).date(), end=max(stamps).date())


def default_time_range(available: TimeRange) -> TimeRange:
    """One calendar month from the available start, clamped to the available end."""
    start = pd.Timestamp(available.start)
    end: date = (start + pd.DateOffset(months=1)).date()
    return TimeRange(start=available.start, end=min(end, available.end))


def unique_entity_ids(readings: Iterable[Reading]) -> list[str]:
    """Entity ids in order of first appearance."""
    return list(dict.fromkeys(r.entity_id for r in readings))
