"""Tests for dataset validation, parsing and file loading."""

import json
from datetime import date

import pytest

from timeviz.core.types import DatasetKind, Reading, TimeRange
from timeviz.data_loader import (
    available_time_range,
    default_time_range,
    load_area_dataset,
    load_blockface_dataset,
    load_data_sources,
    load_transaction_dataset,
    parse_area_dataset,
    parse_blockface_dataset,
    parse_transaction_dataset,
    unique_entity_ids,
    validate_blockface_reading,
    validate_reading,
    validate_transaction_reading,
)

AREAS = {
    "regions": [
        {"id": "mission", "name": "Mission", "color": "#2ecc71", "capacity": 100},
        {"id": "marina", "name": "Marina"},
    ],
    "readings": [
        {"timestamp": "2024-01-01T10:00:00Z", "regionId": "mission", "occupied": 50, "capacity": 100},
        {"timestamp": "2024-01-05T10:00:00Z", "regionId": "marina", "occupied": 10, "capacity": 40},
        {"timestamp": "bad", "regionId": "mission", "occupied": 50, "capacity": 100},
        {"timestamp": "2024-01-01T11:00:00Z", "regionId": "mission", "occupied": 150, "capacity": 100},
    ],
}


def _write(path, data):
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "raw, valid",
    [
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": 0, "capacity": 1}, True),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": 5, "capacity": 5}, True),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": 6, "capacity": 5}, False),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": -1, "capacity": 5}, False),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": 0, "capacity": 0}, False),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "", "occupied": 0, "capacity": 1}, False),
        ({"timestamp": "yesterday", "regionId": "a", "occupied": 0, "capacity": 1}, False),
        ({"regionId": "a", "occupied": 0, "capacity": 1}, False),
        ({"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "occupied": True, "capacity": 1}, False),
        ("not a dict", False),
    ],
)
def test_validate_reading(raw, valid):
    assert validate_reading(raw) is valid


def test_validate_transaction_and_blockface_readings():
    assert validate_transaction_reading({"timestamp": "2024-01-01", "regionId": "a", "transactions": 0})
    assert not validate_transaction_reading({"timestamp": "2024-01-01", "regionId": "a", "transactions": -2})
    assert validate_blockface_reading({"timestamp": "2024-01-01", "blockfaceId": "bf"})
    assert not validate_blockface_reading({"timestamp": "2024-01-01", "blockfaceId": "bf", "occupied": -1})


def test_parse_area_dataset_drops_invalid_readings():
    dataset = parse_area_dataset(AREAS)
    assert dataset.kind is DatasetKind.OCCUPANCY
    assert len(dataset.readings) == 2
    assert [e.id for e in dataset.entities] == ["mission", "marina"]
    assert dataset.find_entity("mission").capacity == 100
    assert dataset.find_entity("marina").capacity is None


@pytest.mark.parametrize(
    "data, message",
    [
        ({"readings": []}, "missing regions"),
        ({"regions": []}, "missing readings"),
        ({"regions": [], "readings": [{"timestamp": "bad"}]}, "No valid readings"),
        ([], "missing regions"),
    ],
)
def test_parse_area_dataset_errors(data, message):
    with pytest.raises(ValueError, match=message):
        parse_area_dataset(data)


def test_parse_transaction_dataset():
    dataset = parse_transaction_dataset(
        {
            "regions": [{"id": "a", "name": "A"}],
            "readings": [
                {"timestamp": "2024-01-01T00:00:00Z", "regionId": "a", "transactions": 12.5},
                {"timestamp": "2024-01-01T00:15:00Z", "regionId": "a", "transactions": "12"},
            ],
        }
    )
    assert dataset.kind is DatasetKind.TRANSACTIONS
    assert [r.transactions for r in dataset.readings] == [12.5]


def test_parse_blockface_dataset():
    dataset = parse_blockface_dataset(
        {
            "blockfaces": [{"id": "bf-1", "segmentId": "seg-1", "name": "Main", "baseOccupancy": 55}],
            "readings": [
                {"timestamp": "2024-01-01T00:00:00Z", "blockfaceId": "bf-1", "occupied": 3, "capacity": 6},
                {"timestamp": "2024-01-01T01:00:00Z", "blockfaceId": "bf-1", "transactions": 4},
            ],
        }
    )
    entity = dataset.find_entity("seg-1")
    assert entity.id == "bf-1"
    assert entity.base_occupancy == 55.0
    assert dataset.readings[0].occupancy_pct == 50.0
    assert dataset.readings[1].transactions == 4.0
    assert dataset.readings[1].capacity == 0


def test_load_area_dataset(tmp_path):
    dataset = load_area_dataset(_write(tmp_path / "neighborhoods.json", AREAS))
    assert len(dataset.readings) == 2


def test_load_area_dataset_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_area_dataset(tmp_path / "missing.json")


def test_load_area_dataset_invalid_json(tmp_path):
    with pytest.raises(ValueError, match="Invalid data format"):
        load_area_dataset(_write(tmp_path / "neighborhoods.json", "{oops"))


def test_optional_datasets_return_none(tmp_path):
    assert load_transaction_dataset(tmp_path / "transactions.json") is None
    assert load_blockface_dataset(_write(tmp_path / "blockfaces.json", "{oops")) is None
    assert load_blockface_dataset(_write(tmp_path / "other.json", {"readings": []})) is None


def test_load_data_sources(tmp_path):
    _write(tmp_path / "neighborhoods.json", AREAS)
    _write(
        tmp_path / "transactions.json",
        {"regions": AREAS["regions"], "readings": [{"timestamp": "2024-01-01", "regionId": "mission", "transactions": 1}]},
    )
    sources = load_data_sources(tmp_path)
    assert len(sources.areas.readings) == 2
    assert sources.area_transactions is not None
    assert sources.blockfaces is None


def test_available_and_default_time_range():
    readings = [
        Reading(timestamp="2024-01-15T23:00:00Z", entity_id="a"),
        Reading(timestamp="2024-03-31T08:00:00Z", entity_id="a"),
        Reading(timestamp="2024-01-10T00:00:00+00:00", entity_id="b"),
    ]
    available = available_time_range(readings)
    assert available == TimeRange(start=date(2024, 1, 10), end=date(2024, 3, 31))
    assert default_time_range(available) == TimeRange(start=date(2024, 1, 10), end=date(2024, 2, 10))

    short = TimeRange(start=date(2024, 1, 10), end=date(2024, 1, 20))
    assert default_time_range(short) == short
    assert unique_entity_ids(readings) == ["a", "b"]


def test_available_time_range_empty_is_today():
    tr = available_time_range([])
    assert tr.start == tr.end
