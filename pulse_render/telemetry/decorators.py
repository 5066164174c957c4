"""
Tracing decorator for card render entry points
"""

import functools
from typing import Callable, Optional

from .config import get_tracer
from .utils import add_span_attributes, record_exception, set_span_status


def _card_id(card):
    card_id = card.get('id') if isinstance(card, dict) else getattr(card, 'id', None)
    return None if card_id is None else str(card_id)


def trace_card_render(operation: Optional[str] = None):
    """
    Open a span around a card render.

    The wrapped function takes (render_mode, timezone, card, result, ...).
    The span carries the card id and render mode; the function adds the
    classified card type and outcome to it through current_span().

    Args:
        operation: Span name suffix (defaults to the function name)
    """
    def decorator(func: Callable) -> Callable:
        span_name = f"pulse_render.{operation or func.__name__}"

        @functools.wraps(func)
        def wrapper(render_mode, timezone, card, *args, **kwargs):
            tracer = get_tracer()
            if not tracer:
                return func(render_mode, timezone, card, *args, **kwargs)

            with tracer.start_as_current_span(span_name, record_exception=False) as span:
                add_span_attributes(span, {
                    "pulse.render.mode": getattr(render_mode, 'value', render_mode),
                    "pulse.card.id": _card_id(card),
                })
                try:
                    fragment = func(render_mode, timezone, card, *args, **kwargs)
                except Exception as e:
                    record_exception(span, e, escaped=True)
                    set_span_status(span, False, str(e))
                    raise
                return fragment

        return wrapper
    return decorator
