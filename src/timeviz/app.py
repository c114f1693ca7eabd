"""NiceGUI page for the parking time-series visualizer.

Left: control panel (datasets, filters, series dimension, chart options).
Right: the plotly chart, a bar view of the map values (clickable, selects
areas or street segments like a map click) and a table of the same values.

All state lives in VisualizerController; widgets only forward changes and
re-render from the controller.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Optional

from nicegui import ui
from nicegui.events import GenericEventArguments

from timeviz.colorscales import COLORSCALE_OPTIONS
from timeviz.controller import VisualizerController
from timeviz.core.conventions import (
    AGGREGATE_ID,
    AGGREGATE_NAME,
    AGGREGATION_TYPES,
    CHART_TYPES,
    DATE_PATTERNS,
    DAY_OF_WEEK_OPTIONS,
    HEATMAP_MODES,
    STATISTIC_TYPES,
    TIME_OF_DAY_OPTIONS,
    TIME_PATTERNS,
)
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
from timeviz.data_loader import load_data_sources
from timeviz.demo_data import generate_sources
from timeviz.figure_generator import format_value
from timeviz.settings_config import Settings
from timeviz.utils.gui_defaults import setUpGuiDefaults
from timeviz.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

DATA_DIR_ENV = "TIMEVIZ_DATA_DIR"

_DIMENSION_LABELS = {
    DimensionType.AOI.value: "Areas",
    DimensionType.DAY_OF_WEEK.value: "Day of Week",
    DimensionType.TIME_OF_DAY.value: "Time of Day",
    DimensionType.BLOCKFACE.value: "Street Segment",
}

_DATASET_LABELS = {k.value: k.value.capitalize() for k in DatasetKind}
_LAYER_LABELS = {Layer.AOI.value: "Areas", Layer.BLOCKFACE.value: "Street Segments"}
_SCHEME_OPTIONS = {o["value"]: o["label"] for o in COLORSCALE_OPTIONS}


def _options(table: list[dict[str, Any]]) -> dict[Any, str]:
    return {item["id"]: item["name"] for item in table}


class VisualizerPage:
    """Builds the page and keeps widgets in step with the controller."""

    def __init__(self, controller: VisualizerController) -> None:
        self.controller = controller
        self._syncing = False

        # Widget refs (set in build())
        self._start_input: Optional[ui.input] = None
        self._end_input: Optional[ui.input] = None
        self._dimension_select: Optional[ui.select] = None
        self._area_select: Optional[ui.select] = None
        self._day_select: Optional[ui.select] = None
        self._period_select: Optional[ui.select] = None
        self._segment_select: Optional[ui.select] = None
        self._combined_checkbox: Optional[ui.checkbox] = None
        self._toggle_checkbox: Optional[ui.checkbox] = None
        self._map_layer_toggle: Optional[ui.toggle] = None
        self._chart: Optional[ui.plotly] = None
        self._map_plot: Optional[ui.plotly] = None
        self._map_table: Optional[ui.table] = None
        self._status_label: Optional[ui.label] = None

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def build(self) -> None:
        with ui.splitter(value=22).classes("w-full h-screen") as splitter:
            with splitter.before:
                self._build_controls()
            with splitter.after:
                with ui.column().classes("w-full h-full p-4 gap-2"):
                    self._status_label = ui.label("").classes("text-gray-600")
                    self._chart = ui.plotly({}).classes("w-full h-96")
                    with ui.row().classes("w-full gap-4 no-wrap"):
                        with ui.column().classes("flex-1 w-0"):
                            self._map_layer_toggle = ui.toggle(
                                dict(_LAYER_LABELS),
                                value=Layer.AOI.value,
                                on_change=lambda e: None if self._syncing else self.refresh(),
                            )
                            self._map_plot = ui.plotly({}).classes("w-full h-96")
                            self._map_plot.on("plotly_click", self._on_map_click)
                        with ui.column().classes("flex-1 w-0"):
                            self._map_table = ui.table(
                                columns=[
                                    {"name": "name", "label": "Name", "field": "name", "align": "left", "sortable": True},
                                    {"name": "value", "label": "Value", "field": "value", "sortable": True},
                                ],
                                rows=[],
                                row_key="entity_id",
                            ).classes("w-full h-96")
        self.refresh()

    def _select(
        self,
        label: str,
        options: dict[Any, str],
        value: Any,
        on_change: Callable[[Any], None],
        multiple: bool = False,
    ) -> ui.select:
        # ui.select rejects values missing from options (e.g. legacy names from saved settings)
        if multiple:
            value = [v for v in value or [] if v in options]
        elif value not in options:
            value = None
        select = ui.select(
            options=options,
            value=value,
            label=label,
            multiple=multiple,
            on_change=lambda e: None if self._syncing else on_change(e.value),
        ).classes("w-full")
        if multiple:
            select.props("use-chips")
        return select

    def _build_controls(self) -> None:
        c = self.controller
        config, display = c.config, c.display
        sources = c.sources

        with ui.column().classes("w-full h-full p-4 gap-3 overflow-y-auto"):
            with ui.card().classes("w-full"):
                ui.label("Data").classes("font-semibold")
                self._select(
                    "Area dataset",
                    _DATASET_LABELS,
                    config.aoi_dataset.value,
                    lambda v: self._apply(aoi_dataset=DatasetKind.parse(v)),
                )
                self._select(
                    "Segment dataset",
                    _DATASET_LABELS,
                    config.blockface_dataset.value,
                    lambda v: self._apply(blockface_dataset=DatasetKind.parse(v)),
                )
                tr = config.time_range or c.available_range
                with ui.row().classes("w-full gap-2 no-wrap"):
                    self._start_input = ui.input("Start", value=tr.start.isoformat()).classes("flex-1")
                    self._end_input = ui.input("End", value=tr.end.isoformat()).classes("flex-1")
                self._start_input.on("blur", self._on_time_range)
                self._end_input.on("blur", self._on_time_range)
                ui.label(
                    f"Available: {c.available_range.start.isoformat()} to {c.available_range.end.isoformat()}"
                ).classes("text-xs text-gray-500")

            with ui.card().classes("w-full"):
                ui.label("Aggregation").classes("font-semibold")
                self._select(
                    "Granularity",
                    _options(AGGREGATION_TYPES),
                    config.granularity.value,
                    lambda v: self._apply(granularity=Granularity.parse(v)),
                )
                self._select(
                    "Statistic",
                    _options(STATISTIC_TYPES),
                    config.statistic,
                    lambda v: self._apply(statistic=str(v)),
                )
                self._select(
                    "Days",
                    {name: name.capitalize() for name in DATE_PATTERNS},
                    config.date_pattern.name,
                    lambda v: self._apply(date_pattern=DatePattern.preset(str(v))),
                )
                self._select(
                    "Hours",
                    {name: name.capitalize() for name in TIME_PATTERNS},
                    config.time_pattern.name,
                    lambda v: self._apply(time_pattern=TimePattern.preset(str(v))),
                )

            with ui.card().classes("w-full"):
                ui.label("Series").classes("font-semibold")
                self._dimension_select = self._select(
                    "Split by",
                    _DIMENSION_LABELS,
                    config.dimension.type.value,
                    lambda v: self._apply_dimension(),
                )
                area_options = {AGGREGATE_ID: AGGREGATE_NAME, **{e.id: e.name for e in sources.areas.entities}}
                self._area_select = self._select(
                    "Areas", area_options, [AGGREGATE_ID], lambda v: self._apply_dimension(), multiple=True
                )
                self._day_select = self._select(
                    "Days of week",
                    _options(DAY_OF_WEEK_OPTIONS),
                    [1, 2, 3, 4, 5],
                    lambda v: self._apply_dimension(),
                    multiple=True,
                )
                self._period_select = self._select(
                    "Times of day",
                    _options(TIME_OF_DAY_OPTIONS),
                    [o["id"] for o in TIME_OF_DAY_OPTIONS],
                    lambda v: self._apply_dimension(),
                    multiple=True,
                )
                segment_options = {e.id: e.name for e in sources.blockfaces.entities} if sources.blockfaces else {}
                self._segment_select = self._select(
                    "Street segment", segment_options, None, lambda v: self._apply_dimension()
                )
                self._combined_checkbox = ui.checkbox(
                    "Combine selected areas",
                    value=config.combined_view,
                    on_change=lambda e: None if self._syncing else self._apply(combined_view=bool(e.value)),
                )
                self._toggle_checkbox = ui.checkbox("Click adds to selection", value=False)

            with ui.card().classes("w-full"):
                ui.label("Display").classes("font-semibold")
                self._select(
                    "Chart type",
                    _options(CHART_TYPES),
                    display.chart_type,
                    lambda v: self._apply_display(chart_type=str(v)),
                )
                self._select(
                    "Heatmap",
                    _options(HEATMAP_MODES),
                    display.heatmap_mode or "date-hour",
                    lambda v: self._apply_display(heatmap_mode=str(v)),
                )
                self._select(
                    "Area colors",
                    _SCHEME_OPTIONS,
                    display.aoi_color_scheme,
                    lambda v: self._apply_display(aoi_color_scheme=str(v)),
                )
                self._select(
                    "Segment colors",
                    _SCHEME_OPTIONS,
                    display.blockface_color_scheme,
                    lambda v: self._apply_display(blockface_color_scheme=str(v)),
                )
                ui.checkbox(
                    "Show areas on map",
                    value=display.aoi_visible,
                    on_change=lambda e: self._apply_display(aoi_visible=bool(e.value)),
                )
                ui.checkbox(
                    "Show street segments on map",
                    value=display.blockface_visible,
                    on_change=lambda e: self._apply_display(blockface_visible=bool(e.value)),
                )

            ui.button("Reset Settings", on_click=self._on_reset).classes("w-full")

        self._sync_dimension_widgets()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _apply(self, **changes: Any) -> None:
        self.controller.apply_changes(**changes)
        self.refresh()

    def _apply_display(self, **changes: Any) -> None:
        self.controller.apply_display_changes(**changes)
        self.refresh()

    def _apply_dimension(self) -> None:
        dim_type = DimensionType(self._dimension_select.value)
        if dim_type is DimensionType.AOI:
            dimension = SeriesDimension(type=dim_type, selected=tuple(self._area_select.value or [AGGREGATE_ID]))
        elif dim_type is DimensionType.DAY_OF_WEEK:
            dimension = SeriesDimension(type=dim_type, selected=tuple(int(d) for d in self._day_select.value or []))
        elif dim_type is DimensionType.TIME_OF_DAY:
            dimension = SeriesDimension(type=dim_type, selected=tuple(self._period_select.value or []))
        else:
            entity = None
            if self._segment_select.value and self.controller.sources.blockfaces is not None:
                entity = self.controller.sources.blockfaces.find_entity(self._segment_select.value)
            if entity is None:
                dimension = SeriesDimension(type=dim_type, selected=())
            else:
                dimension = SeriesDimension(
                    type=dim_type,
                    selected=(entity.id,),
                    segment_id=entity.segment_id,
                    segment_name=entity.name,
                )
        self._apply(dimension=dimension)
        self._sync_dimension_widgets()

    def _on_time_range(self, _e: Any = None) -> None:
        try:
            time_range = TimeRange.from_strings(self._start_input.value, self._end_input.value)
        except ValueError as ex:
            ui.notify(f"Invalid date: {ex}", type="warning")
            return
        if time_range.end < time_range.start:
            ui.notify("End date is before start date", type="warning")
            return
        self._apply(time_range=time_range)

    def _on_map_click(self, e: GenericEventArguments) -> None:
        points = (e.args or {}).get("points") or []
        if not points:
            logger.warning("Plotly click event received but no points found")
            return
        custom = points[0].get("customdata")
        if isinstance(custom, (list, tuple)):
            custom = custom[0] if custom else None
        if not custom:
            return
        entity_id = str(custom)

        if self._current_map_layer() is Layer.BLOCKFACE:
            self.controller.handle_segment_click(entity_id, {})
        else:
            self.controller.handle_area_click(entity_id, toggle=bool(self._toggle_checkbox.value))
        self._sync_dimension_widgets()
        self.refresh()

    def _on_reset(self) -> None:
        self.controller.reset()
        # rebuild every widget from the defaults
        ui.navigate.reload()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _current_map_layer(self) -> Layer:
        if self._map_layer_toggle is None or not self._map_layer_toggle.value:
            return Layer.AOI
        return Layer(self._map_layer_toggle.value)

    def _sync_map_layers(self, visible: list[Layer]) -> None:
        """Offer only the visible layers in the map layer toggle."""
        if self._map_layer_toggle is None:
            return
        options = {layer.value: _LAYER_LABELS[layer.value] for layer in visible}
        value = self._map_layer_toggle.value
        if value not in options:
            value = next(iter(options), None)
        self._syncing = True
        try:
            self._map_layer_toggle.set_options(options, value=value)
            self._map_layer_toggle.set_visibility(bool(options))
        finally:
            self._syncing = False

    def _sync_dimension_widgets(self) -> None:
        """Show the selector for the current dimension and mirror its selection."""
        dim = self.controller.config.dimension
        self._syncing = True
        try:
            self._dimension_select.value = dim.type.value
            self._area_select.set_visibility(dim.type is DimensionType.AOI)
            self._combined_checkbox.set_visibility(dim.type is DimensionType.AOI)
            self._day_select.set_visibility(dim.type is DimensionType.DAY_OF_WEEK)
            self._period_select.set_visibility(dim.type is DimensionType.TIME_OF_DAY)
            self._segment_select.set_visibility(dim.type is DimensionType.BLOCKFACE)
            if dim.type is DimensionType.AOI:
                self._area_select.value = list(dim.selected)
            elif dim.type is DimensionType.BLOCKFACE:
                self._segment_select.value = dim.selected[0] if dim.selected else None
        finally:
            self._syncing = False

    def refresh(self) -> None:
        """Re-render chart, map bars and map table from the controller."""
        c = self.controller
        visible = c.display.visible_layers()
        self._sync_map_layers(visible)
        layer = self._current_map_layer()

        if self._chart is not None:
            self._chart.update_figure(c.figure())
        if self._map_plot is not None and self._map_table is not None:
            self._map_plot.set_visibility(bool(visible))
            self._map_table.set_visibility(bool(visible))
            if visible:
                map_layer, map_fig = c.map_view(layer)
                self._map_plot.update_figure(map_fig)
                self._map_table.rows = [
                    {
                        "entity_id": v.entity_id,
                        "name": v.name,
                        "value": format_value(v.value, map_layer.dataset, c.display.precision, c.config.statistic),
                    }
                    for v in map_layer.values
                ]
                self._map_table.update()
        if self._status_label is not None:
            tr = c.config.time_range
            period = f"{tr.start.isoformat()} to {tr.end.isoformat()}" if tr else "all data"
            highlighted = ", ".join(c.selected_areas()) or AGGREGATE_NAME
            self._status_label.text = f"{period} | {c.config.statistic} | selected: {highlighted}"


def build_page(controller: VisualizerController) -> VisualizerPage:
    """Build the visualizer page for controller inside the current NiceGUI context."""
    setUpGuiDefaults()
    ui.page_title("Parking Time-Series Visualizer")
    page = VisualizerPage(controller)
    page.build()
    return page


# ----------------------------
# Entrypoint
# ----------------------------

def main() -> None:
    """Run the visualizer on the datasets in $TIMEVIZ_DATA_DIR, or on demo data."""
    configure_logging()

    data_dir = os.environ.get(DATA_DIR_ENV)
    if data_dir:
        sources = load_data_sources(data_dir)
    else:
        logger.info(f"{DATA_DIR_ENV} not set, using generated demo data")
        sources = generate_sources()

    settings = Settings.load()

    @ui.page("/")
    def index() -> None:
        build_page(VisualizerController(sources, settings=settings))

    ui.run(reload=False, title="timeviz")


if __name__ in {"__main__", "__mp_main__"}:
    main()
