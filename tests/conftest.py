# tests/conftest.py
"""Shared fixtures: small hand-checked datasets."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure timeviz package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def area_dataset():
    """Two areas with different capacities, one reading each at 10:00 on Mon 2024-01-01 and Tue 2024-01-02.

    Daily capacity-weighted aggregate: Mon (80+10)/150 = 60%, Tue (40+40)/150 = 53.33%.
    Unweighted mean of percentages:    Mon (80+20)/2  = 50%, Tue (40+80)/2  = 60%.
    """
    from timeviz.core.types import Dataset, DatasetKind, Entity, Reading

    entities = (
        Entity(id="north", name="North", color="#ff0000", capacity=100),
        Entity(id="south", name="South", color="#00ff00", capacity=50),
        Entity(id="east", name="East", color="#0000ff", capacity=20),  # no readings
    )
    readings = (
        Reading(timestamp="2024-01-01T10:00:00Z", entity_id="north", occupied=80, capacity=100),
        Reading(timestamp="2024-01-01T10:00:00Z", entity_id="south", occupied=10, capacity=50),
        Reading(timestamp="2024-01-02T10:00:00Z", entity_id="north", occupied=40, capacity=100),
        Reading(timestamp="2024-01-02T10:00:00Z", entity_id="south", occupied=40, capacity=50),
    )
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=entities, readings=readings)


@pytest.fixture
def transaction_dataset():
    from timeviz.core.types import Dataset, DatasetKind, Entity, Reading

    entities = (
        Entity(id="north", name="North"),
        Entity(id="south", name="South"),
    )
    readings = (
        Reading(timestamp="2024-01-01T10:00:00Z", entity_id="north", transactions=10.0),
        Reading(timestamp="2024-01-01T11:00:00Z", entity_id="north", transactions=30.0),
        Reading(timestamp="2024-01-01T10:00:00Z", entity_id="south", transactions=5.0),
    )
    return Dataset(kind=DatasetKind.TRANSACTIONS, entities=entities, readings=readings)


@pytest.fixture
def blockface_dataset():
    """bf-1 has two readings on 2024-01-01 (daily weighted 75%); bf-2 only has live values."""
    from timeviz.core.types import Dataset, DatasetKind, Entity, Reading

    entities = (
        Entity(id="bf-1", name="Main St 100", segment_id="seg-1", capacity=10, base_occupancy=42.0,
               base_transactions=3.5),
        Entity(id="bf-2", name="Oak St 200", segment_id="seg-2", capacity=8, base_occupancy=30.0,
               base_transactions=1.25),
    )
    readings = (
        Reading(timestamp="2024-01-01T10:00:00Z", entity_id="bf-1", occupied=5, capacity=10, transactions=2.0),
        Reading(timestamp="2024-01-01T11:00:00Z", entity_id="bf-1", occupied=10, capacity=10, transactions=4.0),
    )
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=entities, readings=readings)


@pytest.fixture
def sources(area_dataset, transaction_dataset, blockface_dataset):
    from timeviz.core.types import DataSources

    return DataSources(areas=area_dataset, area_transactions=transaction_dataset, blockfaces=blockface_dataset)
