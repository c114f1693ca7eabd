"""Run configuration and display state for the visualizer.

PipelineConfig is the immutable snapshot consumed by one pipeline run.
DisplaySettings holds presentation-only state (color schemes, chart type,
layer visibility) and is passed explicitly to rendering calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from timeviz.core.types import (
    DatasetKind,
    DatePattern,
    DimensionType,
    Granularity,
    Layer,
    SeriesDimension,
    TimePattern,
    TimeRange,
)
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration snapshot for one pipeline run.

    time_range of None means no time-range filtering. statistic is kept as a
    string so legacy aliases ('mean', 'p90', ...) pass through to
    statistics.calculate() unchanged.
    """
    time_range: Optional[TimeRange] = None
    granularity: Granularity = Granularity.DAILY
    statistic: str = "average"
    dimension: SeriesDimension = field(default_factory=SeriesDimension)
    date_pattern: DatePattern = field(default_factory=DatePattern)
    time_pattern: TimePattern = field(default_factory=TimePattern)
    combined_view: bool = False
    aoi_dataset: DatasetKind = DatasetKind.OCCUPANCY
    blockface_dataset: DatasetKind = DatasetKind.OCCUPANCY

    @property
    def chart_layer(self) -> Layer:
        """Layer whose dataset feeds the chart for the current dimension."""
        if self.dimension.type is DimensionType.BLOCKFACE:
            return Layer.BLOCKFACE
        return Layer.AOI

    def dataset_for(self, layer: Layer) -> DatasetKind:
        if layer is Layer.BLOCKFACE:
            return self.blockface_dataset
        return self.aoi_dataset

    def evolve(self, **changes: Any) -> "PipelineConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict. The time range is included when set."""
        d: dict[str, Any] = {
            "granularity": self.granularity.value,
            "statistic": self.statistic,
            "dimension": self.dimension.to_dict(),
            "date_pattern": self.date_pattern.to_dict(),
            "time_pattern": self.time_pattern.to_dict(),
            "combined_view": self.combined_view,
            "aoi_dataset": self.aoi_dataset.value,
            "blockface_dataset": self.blockface_dataset.value,
        }
        if self.time_range is not None:
            d["time_range"] = self.time_range.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineConfig":
        """Deserialize from a dict; missing keys take defaults, unknown keys are ignored."""
        time_range = None
        tr = data.get("time_range")
        if isinstance(tr, dict):
            try:
                time_range = TimeRange.from_dict(tr)
            except (KeyError, ValueError) as e:
                logger.warning(f"Ignoring invalid time_range {tr!r}: {e}")

        dimension = data.get("dimension")
        date_pattern = data.get("date_pattern")
        time_pattern = data.get("time_pattern")
        return cls(
            time_range=time_range,
            granularity=Granularity.parse(data.get("granularity", Granularity.DAILY.value)),
            statistic=str(data.get("statistic", "average")),
            dimension=SeriesDimension.from_dict(dimension) if isinstance(dimension, dict) else SeriesDimension(),
            date_pattern=DatePattern.from_dict(date_pattern) if isinstance(date_pattern, dict) else DatePattern(),
            time_pattern=TimePattern.from_dict(time_pattern) if isinstance(time_pattern, dict) else TimePattern(),
            combined_view=bool(data.get("combined_view", False)),
            aoi_dataset=DatasetKind.parse(data.get("aoi_dataset")),
            blockface_dataset=DatasetKind.parse(data.get("blockface_dataset")),
        )


@dataclass(frozen=True)
class DisplaySettings:
    """Presentation state for chart and map rendering."""
    aoi_color_scheme: str = "viridis"
    blockface_color_scheme: str = "viridis"
    chart_type: str = "line"            # line | bar | area | stacked-area | heatmap
    heatmap_mode: Optional[str] = None  # date-hour | day-hour | calendar; None picks date-hour
    precision: int = 1                  # decimals shown in tooltips and tables
    aoi_visible: bool = True
    blockface_visible: bool = False

    def color_scheme_for(self, layer: Layer) -> str:
        if layer is Layer.BLOCKFACE:
            return self.blockface_color_scheme
        return self.aoi_color_scheme

    def visible_layers(self) -> list[Layer]:
        """Map layers switched on, areas first."""
        flags = ((Layer.AOI, self.aoi_visible), (Layer.BLOCKFACE, self.blockface_visible))
        return [layer for layer, visible in flags if visible]

    def evolve(self, **changes: Any) -> "DisplaySettings":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "aoi_color_scheme": self.aoi_color_scheme,
            "blockface_color_scheme": self.blockface_color_scheme,
            "chart": {
                "type": self.chart_type,
                "heatmap_mode": self.heatmap_mode,
                "precision": self.precision,
            },
            "layers": {
                "aoi_visible": self.aoi_visible,
                "blockface_visible": self.blockface_visible,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DisplaySettings":
        chart = data.get("chart")
        if not isinstance(chart, dict):
            chart = {}
        layers = data.get("layers")
        if not isinstance(layers, dict):
            layers = {}
        return cls(
            aoi_color_scheme=str(data.get("aoi_color_scheme", "viridis")),
            blockface_color_scheme=str(data.get("blockface_color_scheme", "viridis")),
            chart_type=str(chart.get("type", "line")),
            heatmap_mode=chart.get("heatmap_mode"),  # Can be None
            precision=int(chart.get("precision", 1)),
            aoi_visible=bool(layers.get("aoi_visible", True)),
            blockface_visible=bool(layers.get("blockface_visible", False)),
        )
