"""
Error types raised while rendering a pulse card.

None of these escape the card assembly boundary: `render.py` converts them
into the fixed failure fragment.
"""

from typing import Any, Optional


class PulseRenderError(Exception):
    """Base class for card rendering errors."""

    def __init__(self, message: str, card_id: Optional[Any] = None):
        super().__init__(message)
        self.card_id = card_id


class DataError(PulseRenderError):
    """The query result carried an error message from the query layer."""


class RenderError(PulseRenderError):
    """A transform or raster step failed for a card."""


class ImageEncodingError(RenderError):
    """No PNG writer is available to encode a raster image."""
