"""
Map values kept in step with the chart.

map_value(entity) = mean over buckets of bucket_statistic(bucket), using the
same apply_filters() and bucket_points() as the series pipeline. The map
fill of an entity and the reference line of its chart series are therefore
the same number for the same configuration.

The street segment layer applies the day and hour patterns even while the
chart is split by day of week or time of day.
"""

from __future__ import annotations

from typing import Sequence

from timeviz.core.series_pipeline import apply_filters, bucket_points, group_by_entity, reference_value
from timeviz.core.types import DatasetKind, DataSources, DimensionType, Layer, MapValue, Reading
from timeviz.state import PipelineConfig
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)


def map_value(entity_readings: Sequence[Reading], config: PipelineConfig, kind: DatasetKind) -> float:
    """Scalar for one entity from its already-filtered readings (0 when there are none)."""
    return reference_value(bucket_points(entity_readings, config, kind))


def compute_map_values(sources: DataSources, config: PipelineConfig, layer: Layer) -> list[MapValue]:
    """
    One MapValue per entity of the layer.

    Areas without matching readings get 0. Street segments without matching
    readings get their live metadata value (0 when absent).
    """
    kind = config.dataset_for(layer)
    dataset = sources.active(layer, kind)
    if dataset is None:
        logger.debug(f"No {kind.value} dataset for layer {layer.value}")
        return []

    # street segments always honor both day and hour patterns
    dimension_type = DimensionType.BLOCKFACE if layer is Layer.BLOCKFACE else None
    by_entity = group_by_entity(apply_filters(dataset.readings, config, dimension_type))
    results: list[MapValue] = []
    for entity in dataset.entities:
        entity_readings = by_entity.get(entity.id, [])
        if entity_readings:
            value = map_value(entity_readings, config, kind)
        elif layer is Layer.BLOCKFACE:
            value = float(entity.live_value(kind) or 0)
        else:
            value = 0.0
        results.append(
            MapValue(
                entity_id=entity.id,
                name=entity.name,
                value=value,
                color=entity.color,
                segment_id=entity.segment_id,
            )
        )
    return results
