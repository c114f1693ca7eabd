"""Color schemes for map fills and heatmaps.

Each scheme has five hex stops. scheme_color() interpolates linearly between
the two stops surrounding t in [0, 1]. plotly_colorscale() converts a scheme
into a plotly colorscale so charts and map fills share the same colors.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

UNKNOWN_SCHEME_COLOR = "#888888"

COLOR_SCHEMES: Dict[str, Dict[str, object]] = {
    "viridis": {"name": "Viridis", "description": "Purple to green to yellow (colorblind-friendly)",
                "stops": ["#440154", "#3b528b", "#21918c", "#5ec962", "#fde725"]},
    "plasma": {"name": "Plasma", "description": "Purple to orange to yellow",
               "stops": ["#0d0887", "#7e03a8", "#cc4778", "#f89540", "#f0f921"]},
    "inferno": {"name": "Inferno", "description": "Black to purple to orange to yellow",
                "stops": ["#000004", "#57106e", "#bc3754", "#f98e09", "#fcffa4"]},
    "magma": {"name": "Magma", "description": "Black to purple to pink to white",
              "stops": ["#000004", "#51127c", "#b73779", "#fc8961", "#fcfdbf"]},
    "cividis": {"name": "Cividis", "description": "Blue to gray to yellow (colorblind-optimized)",
                "stops": ["#00224e", "#3d4e67", "#7d7f7c", "#b8ae6f", "#fee838"]},
    "turbo": {"name": "Turbo", "description": "Rainbow-like with improved uniformity",
              "stops": ["#30123b", "#4662d7", "#35aac3", "#a4d848", "#f9fb0e"]},
    "ylgnbu": {"name": "YlGnBu", "description": "Yellow to green to blue",
               "stops": ["#ffffd9", "#a1dab4", "#41b6c4", "#2c7fb8", "#253494"]},
    "ylorrd": {"name": "YlOrRd", "description": "Yellow to orange to red",
               "stops": ["#ffffb2", "#fecc5c", "#fd8d3c", "#f03b20", "#bd0026"]},
    "rdylgn": {"name": "RdYlGn", "description": "Red to yellow to green (traffic light)",
               "stops": ["#d73027", "#fc8d59", "#fee08b", "#91cf60", "#1a9850"]},
    "blues": {"name": "Blues", "description": "Light to dark blue",
              "stops": ["#f7fbff", "#c6dbef", "#6baed6", "#2171b5", "#08306b"]},
    "spectral": {"name": "Spectral", "description": "Red to yellow to blue (diverging)",
                 "stops": ["#d53e4f", "#fc8d59", "#fee08b", "#99d594", "#3288bd"]},
    "pubugn": {"name": "PuBuGn", "description": "Purple to blue to green",
               "stops": ["#f6eff7", "#bdc9e1", "#67a9cf", "#1c9099", "#016c59"]},
}

# Options for a select widget
COLORSCALE_OPTIONS: List[Dict[str, str]] = [
    {"label": str(scheme["name"]), "value": scheme_id} for scheme_id, scheme in COLOR_SCHEMES.items()
]


def _stops(scheme_id: str) -> Optional[Sequence[str]]:
    scheme = COLOR_SCHEMES.get(scheme_id)
    if scheme is None:
        return None
    return scheme["stops"]  # type: ignore[return-value]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def lerp_color(color1: str, color2: str, t: float) -> str:
    """Linear interpolation between two '#rrggbb' colors."""
    c1 = [int(color1[i:i + 2], 16) for i in (1, 3, 5)]
    c2 = [int(color2[i:i + 2], 16) for i in (1, 3, 5)]
    r, g, b = (_round_half_up(a + (b - a) * t) for a, b in zip(c1, c2))
    return f"#{r:02x}{g:02x}{b:02x}"


def scheme_color(t: float, scheme_id: str) -> str:
    """Color at position t (clamped to [0, 1]) of a scheme; unknown scheme → #888888."""
    stops = _stops(scheme_id)
    if stops is None:
        return UNKNOWN_SCHEME_COLOR
    t = max(0.0, min(1.0, float(t)))
    n_segments = len(stops) - 1
    segment = min(n_segments - 1, math.floor(t * n_segments))
    segment_t = t * n_segments - segment
    return lerp_color(stops[segment], stops[segment + 1], segment_t)


def occupancy_to_color(value: float, scheme_id: str) -> str:
    """Occupancy percentage 0-100 → color."""
    return scheme_color(max(0.0, min(100.0, value)) / 100, scheme_id)


def transaction_to_color(value: float, min_value: float, max_value: float, scheme_id: str) -> str:
    """Transaction amount scaled to [min_value, max_value] → color; equal bounds → mid color."""
    if max_value == min_value:
        return scheme_color(0.5, scheme_id)
    return scheme_color((value - min_value) / (max_value - min_value), scheme_id)


def plotly_colorscale(scheme_id: str) -> List[List[object]]:
    """Plotly colorscale [[0.0, c0], [0.25, c1], ...] for a scheme (Viridis when unknown)."""
    stops = _stops(scheme_id) or COLOR_SCHEMES["viridis"]["stops"]
    n = len(stops) - 1
    return [[i / n, color] for i, color in enumerate(stops)]


def get_color_schemes() -> List[Dict[str, object]]:
    return [{"id": scheme_id, **scheme} for scheme_id, scheme in COLOR_SCHEMES.items()]
