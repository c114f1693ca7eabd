"""Utility functions for timeviz."""

from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]

# gui_defaults imports nicegui; import it from timeviz.utils.gui_defaults directly.
