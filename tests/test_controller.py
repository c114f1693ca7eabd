"""Tests for VisualizerController state changes and map click handling."""

from datetime import date

import pytest

from timeviz.controller import VisualizerController
from timeviz.core.conventions import AGGREGATE_ID
from timeviz.core.types import DatasetKind, DimensionType, Granularity, Layer, TimeRange
from timeviz.settings_config import Settings
from timeviz.state import DisplaySettings, PipelineConfig


@pytest.fixture
def controller(sources):
    return VisualizerController(sources)


def test_initial_time_range_defaults_to_available_data(controller):
    assert controller.available_range == TimeRange(start=date(2024, 1, 1), end=date(2024, 1, 2))
    assert controller.config.time_range == controller.available_range


def test_apply_changes_returns_new_config(controller):
    before = controller.config
    after = controller.apply_changes(granularity=Granularity.WEEKLY, statistic="max")
    assert after is controller.config
    assert after.granularity is Granularity.WEEKLY
    assert before.granularity is Granularity.DAILY
    with pytest.raises(ValueError, match="Unknown pipeline setting"):
        controller.apply_changes(chart_type="bar")


def test_apply_display_changes(controller):
    controller.apply_display_changes(chart_type="bar")
    assert controller.display.chart_type == "bar"
    with pytest.raises(ValueError):
        controller.apply_display_changes(statistic="max")


def test_changes_are_persisted(sources, tmp_path):
    settings = Settings.load(config_path=tmp_path / "settings.json")
    controller = VisualizerController(sources, settings=settings)
    controller.apply_changes(statistic="median")
    controller.apply_display_changes(aoi_color_scheme="plasma")

    reloaded = Settings.load(config_path=tmp_path / "settings.json")
    assert reloaded.get_pipeline_config().statistic == "median"
    assert reloaded.get_display_settings().aoi_color_scheme == "plasma"

    restored = VisualizerController(sources, settings=reloaded)
    assert restored.config.statistic == "median"
    assert restored.config.time_range == restored.available_range

    restored.reset()
    assert restored.config.statistic == "average"
    assert not (tmp_path / "settings.json").exists()


def test_chart_and_map_agree(controller):
    controller.handle_area_click("north")
    (series,) = controller.chart_data().series
    values = {v.entity_id: v.value for v in controller.map_values(Layer.AOI)}
    assert values["north"] == pytest.approx(series.reference_value)


def test_map_layer_fill_colors(controller):
    layer = controller.map_layer(Layer.AOI)
    assert layer.dataset is DatasetKind.OCCUPANCY
    assert set(layer.fill_colors) == {"north", "south", "east"}
    assert layer.value_range == (0.0, pytest.approx(60.0))


def test_figure_and_map_figure(controller):
    assert controller.figure()["data"]
    assert controller.map_figure(Layer.BLOCKFACE)["data"]


# ---------------------------------------------------------------------------
# Area clicks
# ---------------------------------------------------------------------------


def test_plain_click_selects_single_area_and_toggles_back(controller):
    controller.handle_area_click("north")
    assert controller.config.dimension.selected == ("north",)
    assert controller.selected_areas() == ["north"]

    controller.handle_area_click("south")
    assert controller.config.dimension.selected == ("south",)

    controller.handle_area_click("south")
    assert controller.config.dimension.selected == (AGGREGATE_ID,)
    assert controller.selected_areas() == []


def test_toggle_click_adds_and_removes(controller):
    controller.handle_area_click("north", toggle=True)
    assert controller.config.dimension.selected == ("north",)

    controller.handle_area_click("south", toggle=True)
    assert controller.config.dimension.selected == ("north", "south")

    controller.handle_area_click("north", toggle=True)
    assert controller.config.dimension.selected == ("south",)

    controller.handle_area_click("south", toggle=True)
    assert controller.config.dimension.selected == (AGGREGATE_ID,)


def test_area_click_leaves_other_dimensions(controller):
    controller.handle_segment_click("seg-1", {})
    controller.handle_area_click("north", toggle=True)
    assert controller.config.dimension.type is DimensionType.AOI
    assert controller.config.dimension.selected == ("north",)


# ---------------------------------------------------------------------------
# Segment clicks
# ---------------------------------------------------------------------------


def test_featured_segment_click(controller):
    controller.handle_segment_click("seg-1", {"segmentId": "seg-1"})
    dim = controller.config.dimension
    assert dim.type is DimensionType.BLOCKFACE
    assert dim.selected == ("bf-1",)
    assert dim.segment_name == "Main St 100"
    assert dim.current is None
    assert controller.config.chart_layer is Layer.BLOCKFACE


def test_featured_segment_found_by_name(controller):
    controller.handle_segment_click("tile-123", {"meterId": "Oak St 200"})
    assert controller.config.dimension.selected == ("bf-2",)


def test_non_featured_segment_click_charts_live_values(controller):
    controller.handle_segment_click("seg-77", {"occupancy": 64, "capacity": 12})
    dim = controller.config.dimension
    assert dim.selected == ()
    assert dim.segment_id == "seg-77"
    assert dim.segment_name == "seg-77"
    assert dim.current.occupancy == 64.0
    assert dim.current.transactions == 0.0

    (series,) = controller.chart_data().series
    assert series.name == "seg-77 (Current)"
    assert series.points[0].value == 64.0


def test_explicit_config_and_display_win_over_settings(sources, tmp_path):
    settings = Settings.load(config_path=tmp_path / "settings.json")
    settings.set_pipeline_config(PipelineConfig(statistic="min"))
    controller = VisualizerController(
        sources, config=PipelineConfig(statistic="max"), display=DisplaySettings(precision=3), settings=settings
    )
    assert controller.config.statistic == "max"
    assert controller.display.precision == 3


def test_map_view_computes_values_once(controller, monkeypatch):
    import timeviz.controller as controller_module

    calls = []
    real = controller_module.compute_map_values

    def counting(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(controller_module, "compute_map_values", counting)
    data, figure = controller.map_view(Layer.AOI)
    assert len(calls) == 1
    assert sorted(v.entity_id for v in data.values) == sorted(figure["data"][0]["customdata"])


def test_layer_visibility_is_a_display_setting(controller):
    controller.apply_display_changes(aoi_visible=False, blockface_visible=True)
    assert controller.display.visible_layers() == [Layer.BLOCKFACE]
