"""UI-independent controller for the visualizer.

VisualizerController owns the data sources, the current PipelineConfig and
DisplaySettings, and turns user actions (control changes, map clicks) into
new immutable configurations. The NiceGUI page in timeviz.app only forwards
events here and renders what comes back.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Mapping, Optional

import pandas as pd

from timeviz.core.conventions import AGGREGATE_ID
from timeviz.core.map_sync import compute_map_values
from timeviz.core.series_pipeline import SeriesPipeline
from timeviz.core.types import (
    ChartData,
    DataSources,
    DimensionType,
    Entity,
    Layer,
    LiveSnapshot,
    MapLayerData,
    MapValue,
    SeriesDimension,
    TimeRange,
)
from timeviz.data_loader import available_time_range, default_time_range
from timeviz.figure_generator import FigureGenerator, map_fill_colors
from timeviz.settings_config import Settings
from timeviz.state import DisplaySettings, PipelineConfig
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

_PIPELINE_FIELDS = frozenset(f.name for f in fields(PipelineConfig))
_DISPLAY_FIELDS = frozenset(f.name for f in fields(DisplaySettings))


class VisualizerController:
    """Holds visualizer state and produces chart and map output.

    **Public API:**

    - **apply_changes(**changes)** - replace PipelineConfig fields, returns the new config.
    - **apply_display_changes(**changes)** - replace DisplaySettings fields.
    - **chart_data()** / **figure()** - run the pipeline, optionally render it.
    - **map_values(layer)** / **map_layer(layer)** - map scalars and fill colors.
    - **map_view(layer)** - map layer data plus its bar figure, computed once.
    - **handle_area_click(area_id, toggle=False)** - map click on an area.
    - **handle_segment_click(segment_id, properties)** - map click on a street segment.
    """

    def __init__(
        self,
        sources: DataSources,
        *,
        config: Optional[PipelineConfig] = None,
        display: Optional[DisplaySettings] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Args:
            sources: DataSources to visualize.
            config: Initial configuration. If None, taken from settings when
                given, else defaults.
            display: Initial display settings, resolved the same way.
            settings: Optional Settings; when set, every change is saved.
        """
        self.sources = sources
        self.settings = settings
        self.pipeline = SeriesPipeline(sources)
        self.available_range: TimeRange = available_time_range(sources.areas.readings)

        if config is None:
            config = settings.get_pipeline_config() if settings is not None else PipelineConfig()
        if display is None:
            display = settings.get_display_settings() if settings is not None else DisplaySettings()
        if config.time_range is None:
            config = config.evolve(time_range=default_time_range(self.available_range))

        self.config: PipelineConfig = config
        self.display: DisplaySettings = display

    # -------------------------------------------------------------------------
    # State changes
    # -------------------------------------------------------------------------

    def apply_changes(self, **changes: Any) -> PipelineConfig:
        """Replace PipelineConfig fields and persist.

        Raises:
            ValueError: if a key is not a PipelineConfig field.
        """
        unknown = set(changes) - _PIPELINE_FIELDS
        if unknown:
            raise ValueError(f"Unknown pipeline setting(s): {sorted(unknown)}")
        self.config = self.config.evolve(**changes)
        logger.debug(f"apply_changes: {sorted(changes)}")
        self._persist()
        return self.config

    def apply_display_changes(self, **changes: Any) -> DisplaySettings:
        unknown = set(changes) - _DISPLAY_FIELDS
        if unknown:
            raise ValueError(f"Unknown display setting(s): {sorted(unknown)}")
        self.display = self.display.evolve(**changes)
        self._persist()
        return self.display

    def reset(self) -> None:
        """Back to default settings (and delete the saved file, if any)."""
        if self.settings is not None:
            self.settings.reset()
        self.config = PipelineConfig(time_range=default_time_range(self.available_range))
        self.display = DisplaySettings()
        logger.info("Reset visualizer settings to defaults")

    def _persist(self) -> None:
        if self.settings is None:
            return
        self.settings.set_pipeline_config(self.config)
        self.settings.set_display_settings(self.display)
        try:
            self.settings.save()
        except OSError as ex:
            logger.warning(f"Failed to save settings: {ex}")

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def chart_data(self, now: Optional[pd.Timestamp] = None) -> ChartData:
        return self.pipeline.run(self.config, now=now)

    def figure(self, now: Optional[pd.Timestamp] = None) -> dict:
        """Plotly figure dict for the current chart."""
        generator = FigureGenerator(layer=self.config.chart_layer)
        return generator.make_figure(self.chart_data(now=now), self.display)

    def map_values(self, layer: Layer = Layer.AOI) -> list[MapValue]:
        return compute_map_values(self.sources, self.config, layer)

    def map_layer(self, layer: Layer = Layer.AOI) -> MapLayerData:
        """Map values of one layer with the fill color of every entity."""
        kind = self.config.dataset_for(layer)
        values = self.map_values(layer)
        fill_colors = map_fill_colors(values, kind, self.display.color_scheme_for(layer))
        if values:
            value_range = (min(v.value for v in values), max(v.value for v in values))
        else:
            value_range = (0.0, 0.0)
        return MapLayerData(
            layer=layer,
            dataset=kind,
            values=tuple(values),
            fill_colors=fill_colors,
            value_range=value_range,
        )

    def map_view(self, layer: Layer = Layer.AOI) -> tuple[MapLayerData, dict]:
        """Map layer data and its bar figure from a single map value computation."""
        data = self.map_layer(layer)
        figure = FigureGenerator(layer=layer).make_map_figure(
            list(data.values), data.dataset, self.display, statistic=self.config.statistic
        )
        return data, figure

    def map_figure(self, layer: Layer = Layer.AOI) -> dict:
        return self.map_view(layer)[1]

    def selected_areas(self) -> list[str]:
        """Selected area ids without the aggregate (what the map highlights)."""
        dim = self.config.dimension
        if dim.type is not DimensionType.AOI:
            return []
        return [s for s in dim.selected if s != AGGREGATE_ID]

    # -------------------------------------------------------------------------
    # Map clicks
    # -------------------------------------------------------------------------

    def handle_area_click(self, area_id: str, toggle: bool = False) -> PipelineConfig:
        """Update the area selection after a click on area_id.

        Plain click: select only area_id; clicking the sole selected area
        returns to the aggregate. Toggle click (ctrl): add or remove area_id,
        dropping the aggregate; an emptied selection falls back to the aggregate.
        """
        current = list(self.config.dimension.selected) if self.config.dimension.type is DimensionType.AOI else []

        if toggle:
            if area_id in current:
                selected = [s for s in current if s != area_id] or [AGGREGATE_ID]
            else:
                selected = [s for s in current if s != AGGREGATE_ID] + [area_id]
        elif current == [area_id]:
            selected = [AGGREGATE_ID]
        else:
            selected = [area_id]

        logger.debug(f"area click {area_id!r} toggle={toggle}: selected={selected}")
        return self.apply_changes(dimension=SeriesDimension(type=DimensionType.AOI, selected=tuple(selected)))

    def handle_segment_click(self, segment_id: str, properties: Optional[Mapping[str, Any]] = None) -> PipelineConfig:
        """Chart a clicked street segment.

        A featured segment (one with history in the blockface dataset) is
        matched by segment id, meter id, entity id or name. Any other segment
        is charted from the live values in properties.
        """
        properties = properties or {}
        segment_name = str(properties.get("meterId") or properties.get("segmentId") or segment_id)
        featured = self._find_featured_segment(segment_id, segment_name, properties)

        if featured is not None:
            dimension = SeriesDimension(
                type=DimensionType.BLOCKFACE,
                selected=(featured.id,),
                segment_id=segment_id,
                segment_name=featured.name,
            )
        else:
            dimension = SeriesDimension(
                type=DimensionType.BLOCKFACE,
                selected=(),
                segment_id=segment_id,
                segment_name=segment_name,
                current=LiveSnapshot(
                    segment_id=segment_id,
                    segment_name=segment_name,
                    occupancy=_number(properties.get("occupancy")),
                    transactions=_number(properties.get("transactions")) or 0.0,
                ),
            )
        logger.debug(f"segment click {segment_id!r}: featured={featured is not None}")
        return self.apply_changes(dimension=dimension)

    def _find_featured_segment(self, segment_id: str, segment_name: str, properties: Mapping[str, Any]) -> Optional[Entity]:
        dataset = self.sources.blockfaces
        if dataset is None:
            return None
        entity = dataset.find_entity(segment_id)
        if entity is None and properties.get("meterId"):
            entity = dataset.find_entity(str(properties["meterId"]))
        if entity is None:
            entity = next((e for e in dataset.entities if e.name == segment_name), None)
        return entity


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None
