"""
Pulse card renderer

Renders a saved question's query result as an HTML fragment with images,
for pulse emails (cid: attachments) or previews and PNG snapshots (inline
data URIs).
"""

from .config import RenderOptions, card_url, get_render_options, render_options
from .errors import DataError, ImageEncodingError, PulseRenderError, RenderError
from .render import (
    RenderOutcome,
    RenderStatus,
    render_card_outcome,
    render_pulse_card,
    render_pulse_card_body,
    render_pulse_card_for_display,
    render_pulse_card_to_png,
    render_pulse_section,
)
from .visualization.auto_detection import CardType, detect_pulse_card_type
from .visualization.image_bundle import ImageBundle, RenderMode, make_image_bundle
from .visualization.renderers import RenderedFragment

__all__ = [
    'RenderOptions',
    'card_url',
    'get_render_options',
    'render_options',
    'DataError',
    'ImageEncodingError',
    'PulseRenderError',
    'RenderError',
    'RenderOutcome',
    'RenderStatus',
    'render_card_outcome',
    'render_pulse_card',
    'render_pulse_card_body',
    'render_pulse_card_for_display',
    'render_pulse_card_to_png',
    'render_pulse_section',
    'CardType',
    'detect_pulse_card_type',
    'ImageBundle',
    'RenderMode',
    'make_image_bundle',
    'RenderedFragment',
]
