"""
Sparkline generation using matplotlib for pulse cards.
"""

import io
from typing import Any, Mapping, Optional, Sequence

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend for server environments

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Circle
from PIL import Image as PILImage

from ..errors import ImageEncodingError
from ..logging import image_logger
from .themes import PULSE_THEME, get_color

# Figures are sized in pixels; at 72 dpi one point is one pixel
_DPI = 72


def normalize_series(values: Sequence[float], floor: Optional[float] = None) -> np.ndarray:
    """
    Scale values onto [0, 1] by their range.

    Args:
        values: Numeric values
        floor: Minimum divisor, e.g. 1 so small ranges are not stretched

    Returns:
        numpy array of normalized values; all zeros for a constant series
    """
    arr = np.asarray(values, dtype=float)
    value_range = arr.max() - arr.min()
    if floor is not None:
        value_range = max(floor, value_range)
    if value_range == 0:
        return np.zeros_like(arr)
    return (arr - arr.min()) / value_range


def _rgb(color) -> tuple:
    return tuple(c / 255 for c in color)


class ChartGenerator:
    """Draws the fixed-layout sparkline used by sparkline cards."""

    def __init__(self, theme: Mapping[str, Any] = PULSE_THEME):
        self.theme = theme
        self.geometry = theme['sparkline']

    def _new_figure(self, canvas_width: int, canvas_height: int) -> Figure:
        fig = Figure(figsize=(canvas_width / _DPI, canvas_height / _DPI), dpi=_DPI)
        FigureCanvasAgg(fig)
        fig.patch.set_alpha(0)

        # Axes span the whole canvas in pixel units, origin top-left
        ax = fig.add_axes([0, 0, 1, 1])
        ax.set_xlim(0, canvas_width)
        ax.set_ylim(canvas_height, 0)
        ax.axis('off')
        return fig

    def _to_png(self, fig: Figure, canvas_width: int, canvas_height: int) -> bytes:
        PILImage.init()
        if 'PNG' not in PILImage.SAVE:
            raise ImageEncodingError("No appropriate image writer found!")

        fig.canvas.draw()
        rendered = PILImage.fromarray(np.asarray(fig.canvas.buffer_rgba()))

        # figsize * dpi can round a pixel short; pin the canvas to the exact size
        if rendered.size != (canvas_width, canvas_height):
            image = PILImage.new('RGBA', (canvas_width, canvas_height), (0, 0, 0, 0))
            image.paste(rendered, (0, 0))
        else:
            image = rendered

        buffer = io.BytesIO()
        try:
            image.save(buffer, format='PNG')
        except (KeyError, OSError) as e:
            raise ImageEncodingError(f"PNG encoding failed: {e}") from e
        return buffer.getvalue()

    def create_sparkline(self, xs: Sequence[float], ys: Sequence[float],
                         width: int, height: int) -> bytes:
        """
        Plot normalized points as a sparkline with a ring on the last point.

        Args:
            xs: x values in [0, 1]
            ys: y values in [0, 1]
            width: Plot width in pixels, excluding padding
            height: Plot height in pixels, excluding padding

        Returns:
            PNG image bytes of (width + 2*pad) x (height + 2*pad) pixels

        Raises:
            ValueError: If xs and ys are empty or of different lengths
            ImageEncodingError: If no PNG writer is available
        """
        if len(xs) == 0 or len(xs) != len(ys):
            raise ValueError(f"Sparkline needs matching non-empty xs and ys, got {len(xs)} and {len(ys)}")

        pad = self.geometry['pad']
        radius = self.geometry['dot_radius']
        fig = self._new_figure(width + 2 * pad, height + 2 * pad)
        ax = fig.axes[0]

        xt = pad + width * np.asarray(xs, dtype=float)
        yt = pad + height - height * np.asarray(ys, dtype=float)

        ax.plot(xt, yt,
                color=_rgb(get_color(self.theme, 'sparkline_line')),
                linewidth=self.geometry['thickness'],
                solid_capstyle='round',
                solid_joinstyle='round',
                antialiased=True)

        last = (xt[-1], yt[-1])
        ax.add_patch(Circle(last, radius,
                            facecolor=_rgb(get_color(self.theme, 'sparkline_dot')),
                            edgecolor='none',
                            zorder=3,
                            antialiased=True))
        ax.add_patch(Circle(last, radius,
                            fill=False,
                            edgecolor=_rgb(get_color(self.theme, 'sparkline_ring')),
                            linewidth=self.geometry['ring_thickness'],
                            zorder=4,
                            antialiased=True))

        image_bytes = self._to_png(fig, width + 2 * pad, height + 2 * pad)
        image_logger.debug(f"rendered sparkline | points:{len(xt)} | bytes:{len(image_bytes)}")
        return image_bytes


def render_sparkline_to_png(xs: Sequence[float], ys: Sequence[float], width: int, height: int,
                            theme: Mapping[str, Any] = PULSE_THEME) -> bytes:
    """Takes two sequences of numbers between 0 and 1 and plots them as a sparkline."""
    return ChartGenerator(theme).create_sparkline(xs, ys, width, height)
