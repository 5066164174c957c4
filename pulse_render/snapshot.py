"""
PNG snapshots of rendered cards.

The card markup is wrapped in a minimal HTML document and handed to a
document rasterizer. PlaywrightRasterizer (headless Chromium) is used when
the caller does not supply one; install it with `pip install pulse-render[snapshot]`.
"""

import io
from typing import Optional, Protocol

from PIL import Image as PILImage

from .errors import RenderError
from .logging import snapshot_logger
from .visualization.markup import h
from .visualization.renderers import RenderedFragment
from .visualization.themes import style

CARD_WIDTH = 400


class DocumentRasterizer(Protocol):
    def rasterize(self, html: str, width: int) -> bytes:
        """Render an HTML document at the given viewport width to image bytes."""
        ...


class PlaywrightRasterizer:
    """Screenshots HTML with headless Chromium."""

    def __init__(self, device_scale_factor: float = 1.0):
        self.device_scale_factor = device_scale_factor

    def rasterize(self, html: str, width: int) -> bytes:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            try:
                page = browser.new_page(viewport={"width": width, "height": 1},
                                        device_scale_factor=self.device_scale_factor)
                page.set_content(html, wait_until="load")
                return page.screenshot(full_page=True, type="png")
            finally:
                browser.close()


def html_document(fragment: RenderedFragment) -> str:
    """Wrap a card's markup in a bare white HTML page."""
    return "<!DOCTYPE html>" + h(
        'html', None,
        h('head', None, h('meta', {'charset': 'utf-8'})),
        h('body', {'style': style({'margin': 0,
                                   'padding': 0,
                                   'background-color': 'white'})},
          fragment.content),
    ).to_html()


def _ensure_png(image_bytes: bytes) -> bytes:
    """Re-encode rasterizer output as PNG if it came back in another format."""
    with PILImage.open(io.BytesIO(image_bytes)) as image:
        if image.format == 'PNG':
            return image_bytes
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        return buffer.getvalue()


def render_html_to_png(fragment: RenderedFragment, width: int = CARD_WIDTH,
                       rasterizer: Optional[DocumentRasterizer] = None) -> bytes:
    """
    Rasterize a rendered card.

    Args:
        fragment: Card rendered in INLINE mode (attachments cannot be resolved here)
        width: Viewport width in pixels
        rasterizer: Document rasterizer; PlaywrightRasterizer when None

    Returns:
        PNG image bytes

    Raises:
        RenderError: If the rasterizer fails or returns something that is not an image
    """
    rasterizer = rasterizer or PlaywrightRasterizer()
    document = html_document(fragment)

    try:
        image_bytes = rasterizer.rasterize(document, width)
        png_bytes = _ensure_png(image_bytes)
    except Exception as e:
        snapshot_logger.error(f"card snapshot failed | width:{width} | error:{e}")
        raise RenderError(f"Card snapshot failed: {e}") from e

    snapshot_logger.debug(f"card snapshot rendered | width:{width} | bytes:{len(png_bytes)}")
    return png_bytes
