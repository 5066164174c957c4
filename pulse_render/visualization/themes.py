"""
Theme definitions for pulse card rendering.

Themes are read-only mappings. Renderers receive the theme as an argument
and derive per-element styles with `merge_styles`; nothing mutates a theme
in place.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


_FONT_STYLE = {
    'font-family': 'Lato, "Helvetica Neue", Helvetica, Arial, sans-serif',
}

_COLORS = {
    'brand': 'rgb(45,134,212)',
    'purple': 'rgb(135,93,175)',
    'gray_1': 'rgb(248,248,248)',
    'gray_2': 'rgb(189,193,191)',
    'gray_3': 'rgb(124,131,129)',
    'gray_4': 'rgb(57,67,64)',       # ~25% gray
    'error': '#EF8C8C',
    'unsupported': '#F9D45C',
    # Sparkline raster colors as RGB tuples
    'sparkline_line': (211, 227, 241),
    'sparkline_dot': (45, 134, 212),
    'sparkline_ring': (255, 255, 255),
}

PULSE_THEME: Mapping[str, Any] = _freeze({
    'colors': _COLORS,

    'styles': {
        'font': _FONT_STYLE,
        'section': _FONT_STYLE,
        'header': {
            **_FONT_STYLE,
            'font-size': '16px',
            'font-weight': 700,
            'color': _COLORS['gray_4'],
            'text-decoration': 'none',
        },
        'scalar': {
            **_FONT_STYLE,
            'font-size': '24px',
            'font-weight': 700,
            'color': _COLORS['brand'],
        },
        'bar_th': {
            **_FONT_STYLE,
            'font-size': '10px',
            'font-weight': 400,
            'color': _COLORS['gray_4'],
            'border-bottom': f"4px solid {_COLORS['gray_1']}",
            'padding-top': '0px',
            'padding-bottom': '10px',
        },
        'bar_td': {
            **_FONT_STYLE,
            'font-size': '16px',
            'font-weight': 400,
            'text-align': 'left',
            'padding-right': '1em',
            'padding-top': '8px',
        },
    },

    # Sparkline raster geometry, in pixels
    'sparkline': {
        'width': 524,
        'height': 130,
        'pad': 8,
        'thickness': 3,
        'dot_radius': 6,
        'ring_thickness': 2,
    },
})


def merge_styles(*style_maps: Optional[Mapping[str, Any]]) -> dict:
    """Merge style maps left to right; later keys win. None entries are ignored."""
    merged = {}
    for style_map in style_maps:
        if style_map:
            merged.update(style_map)
    return merged


def style(*style_maps: Optional[Mapping[str, Any]]) -> str:
    """
    Compile one or more CSS style maps into a string.

        style({'font-weight': 400, 'color': 'white'}) -> "font-weight: 400; color: white;"
    """
    return " ".join(f"{k}: {v};" for k, v in merge_styles(*style_maps).items())


def get_color(theme: Mapping[str, Any], name: str) -> Any:
    return theme['colors'][name]


def get_style(theme: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    return theme['styles'][name]
