"""Unit tests for PipelineConfig and DisplaySettings serialization."""

from datetime import date

import pytest

from timeviz.core.conventions import AGGREGATE_ID
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
from timeviz.state import DisplaySettings, PipelineConfig


def test_pipeline_config_defaults():
    config = PipelineConfig()
    assert config.time_range is None
    assert config.granularity is Granularity.DAILY
    assert config.statistic == "average"
    assert config.dimension.type is DimensionType.AOI
    assert config.dimension.selected == (AGGREGATE_ID,)
    assert config.date_pattern.is_all
    assert config.time_pattern.is_all
    assert config.chart_layer is Layer.AOI


def test_pipeline_config_round_trip():
    config = PipelineConfig(
        time_range=TimeRange(start=date(2024, 1, 1), end=date(2024, 1, 31)),
        granularity=Granularity.HOURLY,
        statistic="p75",
        dimension=SeriesDimension(type=DimensionType.DAY_OF_WEEK, selected=(1, 3)),
        date_pattern=DatePattern.preset("weekdays"),
        time_pattern=TimePattern.preset("peak"),
        combined_view=True,
        aoi_dataset=DatasetKind.TRANSACTIONS,
    )
    restored = PipelineConfig.from_dict(config.to_dict())
    assert restored == config


def test_pipeline_config_from_dict_is_tolerant():
    config = PipelineConfig.from_dict(
        {
            "granularity": "fortnightly",
            "aoi_dataset": "bogus",
            "dimension": {"type": "galaxy", "selected": ["x"]},
            "time_range": {"start": "not-a-date", "end": "2024-01-01"},
            "unknown": 1,
        }
    )
    assert config.granularity is Granularity.DAILY
    assert config.aoi_dataset is DatasetKind.OCCUPANCY
    assert config.dimension == SeriesDimension()
    assert config.time_range is None


def test_pipeline_config_evolve_is_a_copy():
    config = PipelineConfig()
    changed = config.evolve(statistic="max")
    assert changed.statistic == "max"
    assert config.statistic == "average"
    with pytest.raises(AttributeError):
        config.statistic = "min"


def test_chart_layer_and_dataset_for():
    config = PipelineConfig(
        dimension=SeriesDimension(type=DimensionType.BLOCKFACE, selected=("bf-1",)),
        blockface_dataset=DatasetKind.TRANSACTIONS,
    )
    assert config.chart_layer is Layer.BLOCKFACE
    assert config.dataset_for(Layer.BLOCKFACE) is DatasetKind.TRANSACTIONS
    assert config.dataset_for(Layer.AOI) is DatasetKind.OCCUPANCY


def test_date_and_time_patterns():
    assert DatePattern(name="custom", days=()).is_all
    assert DatePattern(name="custom", days=(0, 1, 2, 3, 4, 5, 6)).is_all
    assert not DatePattern.preset("weekends").is_all
    assert TimePattern.preset("peak").ranges == ((7, 9), (16, 19))
    with pytest.raises(ValueError):
        DatePattern.preset("holidays")
    assert DatePattern.from_dict({"type": "custom", "days": [2, 4]}) == DatePattern(name="custom", days=(2, 4))


def test_display_settings_round_trip():
    display = DisplaySettings(
        aoi_color_scheme="plasma",
        blockface_color_scheme="turbo",
        chart_type="heatmap",
        heatmap_mode="calendar",
        precision=2,
        blockface_visible=True,
    )
    d = display.to_dict()
    assert d["chart"]["type"] == "heatmap"
    assert d["layers"]["blockface_visible"] is True
    assert DisplaySettings.from_dict(d) == display
    assert display.color_scheme_for(Layer.BLOCKFACE) == "turbo"


def test_display_settings_from_partial_dict():
    display = DisplaySettings.from_dict({"chart": "not a dict", "aoi_color_scheme": "magma"})
    assert display.aoi_color_scheme == "magma"
    assert display.chart_type == "line"
    assert display.aoi_visible is True


def test_visible_layers():
    assert DisplaySettings().visible_layers() == [Layer.AOI]
    assert DisplaySettings(blockface_visible=True).visible_layers() == [Layer.AOI, Layer.BLOCKFACE]
    assert DisplaySettings(aoi_visible=False, blockface_visible=True).visible_layers() == [Layer.BLOCKFACE]
    assert DisplaySettings(aoi_visible=False).visible_layers() == []
