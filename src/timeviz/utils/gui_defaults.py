"""Default classes and props for the NiceGUI elements used by the app."""

from __future__ import annotations

from nicegui import ui

from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

# tailwind text size -> quasar size
_QUASAR_SIZES = {
    "text-xs": "xs",
    "text-sm": "sm",
    "text-base": "md",
    "text-lg": "lg",
}


def setUpGuiDefaults(text_size: str = "text-sm") -> None:
    """Make every control dense and use one text size.

    Args:
        text_size: Tailwind CSS text size class ('text-xs' .. 'text-lg').
    """
    quasar_size = _QUASAR_SIZES[text_size]
    logger.debug(f'using text_size:"{text_size}" quasar size:{quasar_size}')

    ui.label.default_classes(f"{text_size} select-text")
    ui.checkbox.default_props(f"dense size={quasar_size}")
    ui.checkbox.default_classes(text_size)
    for element in (ui.button, ui.select, ui.input, ui.radio, ui.expansion, ui.toggle):
        element.default_classes(text_size)
        element.default_props("dense")
