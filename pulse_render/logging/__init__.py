"""
Logging utilities for the pulse card renderer.
"""

from .render_logger import (
    card_context,
    get_logger,
    image_logger,
    render_logger,
    set_log_level,
    snapshot_logger,
)

__all__ = [
    'card_context',
    'get_logger',
    'image_logger',
    'render_logger',
    'set_log_level',
    'snapshot_logger',
]
