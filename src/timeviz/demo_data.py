"""Deterministic synthetic datasets for demos and tests.

Occupancy follows a per-category daily curve scaled by a weekday factor,
plus gaussian noise from a seeded numpy Generator. The same seed always
produces the same readings.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from timeviz.core.types import DatasetKind, Dataset, DataSources, Entity, Reading
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_START = "2024-01-01"
DEFAULT_SEED = 12345

# id, name, capacity, category, color
DEMO_AREAS: list[tuple[str, str, int, str, str]] = [
    ("downtown-civic-center", "Downtown/Civic Center", 2500, "commercial", "#e74c3c"),
    ("financial-district", "Financial District", 2200, "commercial", "#c0392b"),
    ("mission", "Mission", 1500, "entertainment", "#2ecc71"),
    ("north-beach", "North Beach", 1000, "entertainment", "#1abc9c"),
    ("marina", "Marina", 1200, "residential_urban", "#3498db"),
    ("noe-valley", "Noe Valley", 500, "residential_urban", "#0e6655"),
    ("outer-sunset", "Outer Sunset", 550, "residential_suburban", "#145a32"),
    ("golden-gate-park", "Golden Gate Park", 150, "park", "#196f3d"),
]

# id, segment id, name, capacity, category
DEMO_BLOCKFACES: list[tuple[str, str, str, int, str]] = [
    ("bf-market-100", "seg-1001", "Market St 100 block", 24, "commercial"),
    ("bf-valencia-500", "seg-2005", "Valencia St 500 block", 18, "entertainment"),
    ("bf-chestnut-2000", "seg-3020", "Chestnut St 2000 block", 16, "residential_urban"),
]

# Occupancy multiplier per hour of day (0-23)
HOURLY_PATTERN: dict[str, list[float]] = {
    "commercial": [0.15, 0.10, 0.08, 0.06, 0.05, 0.08, 0.20, 0.45, 0.70, 0.85, 0.95, 0.98,
                   0.95, 0.92, 0.90, 0.88, 0.80, 0.65, 0.45, 0.35, 0.28, 0.22, 0.18, 0.15],
    "entertainment": [0.40, 0.25, 0.15, 0.10, 0.08, 0.08, 0.10, 0.15, 0.25, 0.35, 0.45, 0.55,
                      0.60, 0.55, 0.50, 0.50, 0.55, 0.60, 0.70, 0.82, 0.92, 0.95, 0.85, 0.60],
    "residential_urban": [0.85, 0.88, 0.90, 0.90, 0.88, 0.82, 0.75, 0.60, 0.50, 0.40, 0.35, 0.35,
                          0.38, 0.40, 0.42, 0.45, 0.55, 0.65, 0.75, 0.82, 0.85, 0.88, 0.88, 0.85],
    "residential_suburban": [0.92, 0.94, 0.95, 0.95, 0.94, 0.88, 0.80, 0.68, 0.58, 0.50, 0.48, 0.48,
                             0.50, 0.50, 0.52, 0.55, 0.62, 0.72, 0.82, 0.88, 0.90, 0.92, 0.92, 0.92],
    "park": [0.05, 0.03, 0.02, 0.02, 0.02, 0.05, 0.10, 0.20, 0.35, 0.50, 0.65, 0.75,
             0.80, 0.80, 0.75, 0.70, 0.60, 0.50, 0.40, 0.30, 0.20, 0.12, 0.08, 0.05],
}

# Multiplier per weekday, 0=Sunday .. 6=Saturday
DAY_PATTERN: dict[str, list[float]] = {
    "commercial": [0.30, 1.00, 1.00, 1.00, 1.00, 0.95, 0.35],
    "entertainment": [0.85, 0.55, 0.58, 0.62, 0.72, 1.00, 0.95],
    "residential_urban": [0.90, 0.85, 0.85, 0.85, 0.85, 0.88, 0.92],
    "residential_suburban": [0.95, 0.88, 0.88, 0.88, 0.88, 0.90, 0.95],
    "park": [1.00, 0.40, 0.42, 0.45, 0.50, 0.65, 0.95],
}

HOURLY_RATE = 3.50  # dollars per occupied space-hour
PAID_FRACTION = 0.6


def _timestamps(start: str, days: int, interval_minutes: int) -> pd.DatetimeIndex:
    periods = days * 24 * 60 // interval_minutes
    return pd.date_range(start=pd.Timestamp(start, tz="UTC"), periods=periods, freq=f"{interval_minutes}min")

def _iso(ts: pd.DatetimeIndex) -> list[str]:
    return list(ts.strftime("%Y-%m-%dT%H:%M:%SZ"))


def occupancy_rates(
    timestamps: pd.DatetimeIndex, category: str, rng: np.random.Generator, noise: float = 0.05
) -> np.ndarray:
    """Occupancy fraction in [0, 1] for each timestamp."""
    hourly = np.asarray(HOURLY_PATTERN[category])
    daily = np.asarray(DAY_PATTERN[category])
    weekday = (timestamps.weekday.to_numpy() + 1) % 7
    base = hourly[timestamps.hour.to_numpy()] * daily[weekday]
    return np.clip(base + rng.normal(0.0, noise, size=len(timestamps)), 0.0, 1.0)


def generate_area_dataset(
    start: str = DEFAULT_START,
    days: int = 14,
    interval_minutes: int = 15,
    areas: Optional[Sequence[tuple[str, str, int, str, str]]] = None,
    seed: int = DEFAULT_SEED,
) -> Dataset:
    """Occupancy readings for every area at a fixed interval."""
    areas = list(areas if areas is not None else DEMO_AREAS)
    rng = np.random.default_rng(seed)
    ts = _timestamps(start, days, interval_minutes)
    stamps = _iso(ts)

    entities = []
    readings: list[Reading] = []
    for area_id, name, capacity, category, color in areas:
        entities.append(Entity(id=area_id, name=name, color=color, capacity=float(capacity)))
        occupied = np.round(occupancy_rates(ts, category, rng) * capacity)
        readings.extend(
            Reading(timestamp=t, entity_id=area_id, occupied=float(o), capacity=float(capacity))
            for t, o in zip(stamps, occupied)
        )
    logger.debug(f"Generated {len(readings)} occupancy readings for {len(entities)} areas")
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=tuple(entities), readings=tuple(readings))


def generate_transaction_dataset(
    start: str = DEFAULT_START,
    days: int = 14,
    interval_minutes: int = 15,
    areas: Optional[Sequence[tuple[str, str, int, str, str]]] = None,
    seed: int = DEFAULT_SEED,
) -> Dataset:
    """Revenue readings (dollars per interval) for every area."""
    areas = list(areas if areas is not None else DEMO_AREAS)
    rng = np.random.default_rng(seed + 1)
    ts = _timestamps(start, days, interval_minutes)
    stamps = _iso(ts)
    hours = interval_minutes / 60

    entities = []
    readings: list[Reading] = []
    for area_id, name, capacity, category, color in areas:
        entities.append(Entity(id=area_id, name=name, color=color, capacity=float(capacity)))
        occupied = occupancy_rates(ts, category, rng) * capacity
        revenue = occupied * PAID_FRACTION * HOURLY_RATE * hours * rng.uniform(0.8, 1.2, size=len(ts))
        readings.extend(
            Reading(timestamp=t, entity_id=area_id, transactions=round(float(v), 2))
            for t, v in zip(stamps, revenue)
        )
    return Dataset(kind=DatasetKind.TRANSACTIONS, entities=tuple(entities), readings=tuple(readings))


def generate_blockface_dataset(
    start: str = DEFAULT_START,
    days: int = 14,
    interval_minutes: int = 60,
    blockfaces: Optional[Sequence[tuple[str, str, str, int, str]]] = None,
    seed: int = DEFAULT_SEED,
) -> Dataset:
    """Street-segment readings carrying both occupancy and revenue, plus live base values."""
    blockfaces = list(blockfaces if blockfaces is not None else DEMO_BLOCKFACES)
    rng = np.random.default_rng(seed + 2)
    ts = _timestamps(start, days, interval_minutes)
    stamps = _iso(ts)
    hours = interval_minutes / 60

    entities = []
    readings: list[Reading] = []
    for bf_id, segment_id, name, capacity, category in blockfaces:
        rates = occupancy_rates(ts, category, rng, noise=0.1)
        occupied = np.round(rates * capacity)
        revenue = occupied * HOURLY_RATE * hours
        entities.append(
            Entity(
                id=bf_id,
                name=name,
                capacity=float(capacity),
                segment_id=segment_id,
                base_occupancy=round(float(rates.mean() * 100), 1),
                base_transactions=round(float(revenue.mean()), 2),
            )
        )
        readings.extend(
            Reading(
                timestamp=t,
                entity_id=bf_id,
                occupied=float(o),
                capacity=float(capacity),
                transactions=round(float(v), 2),
            )
            for t, o, v in zip(stamps, occupied, revenue)
        )
    return Dataset(kind=DatasetKind.OCCUPANCY, entities=tuple(entities), readings=tuple(readings))


def generate_sources(start: str = DEFAULT_START, days: int = 14, seed: int = DEFAULT_SEED) -> DataSources:
    """All three demo datasets over the same period."""
    return DataSources(
        areas=generate_area_dataset(start=start, days=days, seed=seed),
        area_transactions=generate_transaction_dataset(start=start, days=days, seed=seed),
        blockfaces=generate_blockface_dataset(start=start, days=days, seed=seed),
    )
