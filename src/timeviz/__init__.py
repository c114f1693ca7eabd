"""
timeviz: parking occupancy and revenue time series for areas and street segments.

This package provides:
- SeriesPipeline: filtered readings -> bucketed, reduced chart series
- compute_map_values: per-entity map scalars that match the chart reference lines
- FigureGenerator: plotly figure dicts for chart data
- VisualizerController and a NiceGUI app (timeviz.app)
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from timeviz.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from timeviz.utils.logging import configure_logging, get_logger

from timeviz.core.map_sync import compute_map_values
from timeviz.core.series_pipeline import SeriesPipeline
from timeviz.core.statistics import InvalidArgumentError, calculate
from timeviz.core.types import ChartData, DataSources, Dataset, Entity, Reading, TimeRange
from timeviz.controller import VisualizerController
from timeviz.figure_generator import FigureGenerator
from timeviz.state import DisplaySettings, PipelineConfig

# Keep timeviz logs from reaching the root logger until an application
# calls configure_logging().
_logger = logging.getLogger("timeviz")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "ChartData",
    "DataSources",
    "Dataset",
    "DisplaySettings",
    "Entity",
    "FigureGenerator",
    "InvalidArgumentError",
    "PipelineConfig",
    "Reading",
    "SeriesPipeline",
    "TimeRange",
    "VisualizerController",
    "calculate",
    "compute_map_values",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
