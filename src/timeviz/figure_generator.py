"""Plotly figure generation for the visualizer.

This module provides the FigureGenerator class for creating Plotly figure
dictionaries from ChartData and DisplaySettings, separating figure generation
from the pipeline and from UI concerns.
"""

from __future__ import annotations

from typing import Optional, Sequence

import plotly.graph_objects as go

from timeviz.colorscales import occupancy_to_color, plotly_colorscale, transaction_to_color
from timeviz.core.conventions import STATISTIC_ABBREVS, hour_labels, weekday_labels
from timeviz.core.heatmap import calendar_grid, date_hour_grid, day_hour_grid
from timeviz.core.types import AxisKind, ChartData, DatasetKind, Layer, MapValue, Series
from timeviz.state import DisplaySettings
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

EMPTY_MESSAGE = "No data available for selected filters"
TITLE_COLOR = "#2c3e50"
EMPTY_TEXT_COLOR = "#7f8c8d"


def _value_format(kind: DatasetKind) -> tuple[str, str]:
    """(prefix, suffix) for displayed values."""
    if kind is DatasetKind.TRANSACTIONS:
        return "$", ""
    return "", "%"


def statistic_label(statistic: Optional[str]) -> str:
    """Short statistic suffix ('avg', 'p75', ...); unknown names are shown as given."""
    if not statistic:
        return ""
    return STATISTIC_ABBREVS.get(statistic, statistic)


def format_value(value: float, kind: DatasetKind, precision: int = 1, statistic: Optional[str] = None) -> str:
    """
    Display text for a map or reference value.

    Transactions of $1000 and more are abbreviated ($1.2K, $3.4M). A
    statistic adds its short label as a suffix ('55.0% avg').
    """
    if kind is DatasetKind.TRANSACTIONS:
        if value >= 1_000_000:
            text = f"${value / 1_000_000:.1f}M"
        elif value >= 1_000:
            text = f"${value / 1_000:.1f}K"
        else:
            text = f"${value:.{precision}f}"
    else:
        text = f"{value:.{precision}f}%"
    label = statistic_label(statistic)
    return f"{text} {label}" if label else text


def map_fill_colors(values: Sequence[MapValue], kind: DatasetKind, scheme_id: str) -> dict[str, str]:
    """
    Fill color per entity id.

    Occupancy maps 0-100 onto the scheme; transactions are scaled to the
    min..max of the given values.
    """
    if not values:
        return {}
    if kind is DatasetKind.TRANSACTIONS:
        lo = min(v.value for v in values)
        hi = max(v.value for v in values)
        return {v.entity_id: transaction_to_color(v.value, lo, hi, scheme_id) for v in values}
    return {v.entity_id: occupancy_to_color(v.value, scheme_id) for v in values}


class FigureGenerator:
    """Generates Plotly figure dictionaries from chart data and display settings.

    Supports line, bar, area and stacked-area charts with a dashed reference
    line per series, plus date×hour, day×hour and calendar heatmaps.
    """

    def __init__(self, layer: Layer = Layer.AOI) -> None:
        """
        Args:
            layer: Map layer whose color scheme is used for heatmaps.
        """
        self.layer = layer

    def make_figure(self, chart: ChartData, display: DisplaySettings) -> dict:
        """Generate a Plotly figure dictionary for chart."""
        logger.info(
            f"FigureGenerator.make_figure: chart_type={display.chart_type}, "
            f"heatmap_mode={display.heatmap_mode}, series={len(chart.series)}"
        )
        if chart.is_empty:
            result = self._figure_empty(chart)
        elif display.chart_type == "heatmap":
            if chart.x_axis is not AxisKind.TIME:
                logger.warning(f"Heatmap needs a time axis, got {chart.x_axis.value}. Falling back to line chart.")
                result = self._figure_series(chart, display.evolve(chart_type="line"))
            elif display.heatmap_mode == "calendar":
                result = self._figure_calendar(chart, display)
            else:
                result = self._figure_heatmap(chart, display)
        else:
            result = self._figure_series(chart, display)

        logger.debug(f"Figure generated: {len(result.get('data', []))} traces")
        return result

    # -------------------------------------------------------------------------
    # Layout helpers
    # -------------------------------------------------------------------------

    def _base_layout(self, chart: ChartData) -> dict:
        return dict(
            title=dict(text=chart.title, x=0.5, font=dict(size=16, color=TITLE_COLOR)),
            margin=dict(l=60, r=40, t=60, b=60),
            uirevision="keep",
        )

    def _y_axis(self, chart: ChartData) -> dict:
        if chart.dataset is DatasetKind.TRANSACTIONS:
            return dict(title=chart.y_axis_name, rangemode="tozero", tickprefix="$")
        return dict(title=chart.y_axis_name, range=[0, 100], ticksuffix="%")

    def _x_values(self, chart: ChartData, series: Series) -> list:
        if chart.x_axis is AxisKind.HOUR:
            labels = hour_labels()
            return [labels[int(p.x)] for p in series.points]
        if chart.x_axis is AxisKind.WEEKDAY:
            labels = weekday_labels()
            return [labels[int(p.x)] for p in series.points]
        return [str(p.x) for p in series.points]

    def _x_axis(self, chart: ChartData) -> dict:
        if chart.x_axis is AxisKind.HOUR:
            return dict(title="Hour of Day", type="category", categoryorder="array", categoryarray=hour_labels())
        if chart.x_axis is AxisKind.WEEKDAY:
            return dict(title="Day of Week", type="category", categoryorder="array", categoryarray=weekday_labels())
        return dict(type="date")

    # -------------------------------------------------------------------------
    # Figures
    # -------------------------------------------------------------------------

    def _figure_empty(self, chart: ChartData) -> dict:
        fig = go.Figure()
        fig.update_layout(**self._base_layout(chart))
        fig.update_layout(
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            annotations=[
                dict(
                    text=EMPTY_MESSAGE,
                    xref="paper",
                    yref="paper",
                    x=0.5,
                    y=0.5,
                    showarrow=False,
                    font=dict(size=16, color=EMPTY_TEXT_COLOR),
                )
            ],
        )
        return fig.to_dict()

    def _figure_series(self, chart: ChartData, display: DisplaySettings) -> dict:
        """Line / bar / area / stacked-area traces plus one dashed reference line per series."""
        chart_type = display.chart_type
        prefix, suffix = _value_format(chart.dataset)
        fig = go.Figure()

        for s in chart.series:
            x = self._x_values(chart, s)
            y = s.values
            hover = f"%{{x}}<br>{s.name}: {prefix}%{{y:.{display.precision}f}}{suffix}<extra></extra>"
            if chart_type == "bar":
                fig.add_trace(go.Bar(x=x, y=y, name=s.name, marker_color=s.color, hovertemplate=hover))
            else:
                trace = dict(
                    x=x,
                    y=y,
                    name=s.name,
                    mode="lines+markers" if len(y) < 50 else "lines",
                    line=dict(color=s.color, shape="spline" if chart_type == "line" else "linear"),
                    hovertemplate=hover,
                )
                if chart_type == "area":
                    trace["fill"] = "tozeroy"
                elif chart_type == "stacked-area":
                    trace["stackgroup"] = "total"
                fig.add_trace(go.Scatter(**trace))

            if s.points:
                fig.add_hline(
                    y=s.reference_value,
                    line=dict(color=s.color, dash="dash", width=2),
                    opacity=0.7,
                    annotation_text=format_value(s.reference_value, chart.dataset, display.precision, chart.statistic),
                    annotation_position="top right",
                    annotation_font=dict(size=10, color=s.color),
                )

        fig.update_layout(**self._base_layout(chart))
        fig.update_layout(
            xaxis=self._x_axis(chart),
            yaxis=self._y_axis(chart),
            showlegend=len(chart.series) > 1,
            barmode="group",
            hovermode="x unified" if chart.x_axis is AxisKind.TIME else "closest",
        )
        return fig.to_dict()

    def _heat_range(self, chart: ChartData) -> dict:
        if chart.dataset is DatasetKind.OCCUPANCY:
            return dict(zmin=0, zmax=100)
        return {}

    def _figure_heatmap(self, chart: ChartData, display: DisplaySettings) -> dict:
        """Date × hour (default) or day-of-week × hour grid of the first series."""
        if display.heatmap_mode == "day-hour":
            grid = day_hour_grid(chart)
            y_title = "Day"
        else:
            grid = date_hour_grid(chart)
            y_title = "Date"

        fig = go.Figure(
            go.Heatmap(
                z=grid.to_numpy().tolist(),
                x=hour_labels(),
                y=[str(i) for i in grid.index],
                colorscale=plotly_colorscale(display.color_scheme_for(self.layer)),
                colorbar=dict(title=chart.y_axis_name),
                hovertemplate=f"%{{y}} %{{x}}: %{{z:.{display.precision}f}}<extra></extra>",
                **self._heat_range(chart),
            )
        )
        fig.update_layout(**self._base_layout(chart))
        fig.update_layout(
            xaxis=dict(title="Hour of Day", type="category"),
            yaxis=dict(title=y_title, type="category", autorange="reversed"),
        )
        return fig.to_dict()

    def _figure_calendar(self, chart: ChartData, display: DisplaySettings) -> dict:
        """Daily means on a week × weekday calendar grid."""
        grid = calendar_grid(chart)
        fig = go.Figure(
            go.Heatmap(
                z=grid.to_numpy().tolist(),
                x=[str(c) for c in grid.columns],
                y=list(grid.index),
                colorscale=plotly_colorscale(display.color_scheme_for(self.layer)),
                colorbar=dict(title=chart.y_axis_name),
                xgap=2,
                ygap=2,
                hoverongaps=False,
                hovertemplate=f"Week of %{{x}} %{{y}}: %{{z:.{display.precision}f}}<extra></extra>",
                **self._heat_range(chart),
            )
        )
        fig.update_layout(**self._base_layout(chart))
        fig.update_layout(
            xaxis=dict(title="Week", type="category"),
            yaxis=dict(type="category", autorange="reversed"),
        )
        return fig.to_dict()

    def make_map_figure(
        self,
        values: Sequence[MapValue],
        kind: DatasetKind,
        display: DisplaySettings,
        title: Optional[str] = None,
        statistic: Optional[str] = None,
    ) -> dict:
        """Horizontal bars of map values, colored and labeled as the map shows them."""
        colors = map_fill_colors(values, kind, display.color_scheme_for(self.layer))
        ordered = sorted(values, key=lambda v: v.value)
        prefix, suffix = _value_format(kind)
        fig = go.Figure(
            go.Bar(
                x=[v.value for v in ordered],
                y=[v.name for v in ordered],
                orientation="h",
                marker_color=[colors[v.entity_id] for v in ordered],
                customdata=[v.entity_id for v in ordered],
                text=[format_value(v.value, kind, display.precision, statistic) for v in ordered],
                textposition="auto",
                hovertemplate=f"%{{y}}: {prefix}%{{x:.{display.precision}f}}{suffix}<extra></extra>",
            )
        )
        x_axis = dict(rangemode="tozero", tickprefix="$") if kind is DatasetKind.TRANSACTIONS else dict(
            range=[0, 100], ticksuffix="%"
        )
        fig.update_layout(
            title=dict(text=title or "", x=0.5),
            margin=dict(l=140, r=20, t=40, b=40),
            xaxis=x_axis,
            showlegend=False,
            uirevision="keep",
        )
        return fig.to_dict()
