"""
Span helpers used by the card renderer. All of them accept None for the
span so callers need not check whether telemetry is on.
"""

from typing import Any, Mapping, Optional

from ..logging import get_logger

logger = get_logger('TELEMETRY_UTILS')

# Longer attribute values are cut down before export
MAX_ATTRIBUTE_LENGTH = 256


def current_span():
    """The active recording span, or None when telemetry is not initialized."""
    from .config import is_telemetry_initialized

    if not is_telemetry_initialized():
        return None

    from opentelemetry import trace
    span = trace.get_current_span()
    return span if span.is_recording() else None


def _attribute_value(value: Any):
    if isinstance(value, (bool, int, float)):
        return value
    text = "null" if value is None else str(value)
    return text if len(text) <= MAX_ATTRIBUTE_LENGTH else text[:MAX_ATTRIBUTE_LENGTH] + "..."


def add_span_attributes(span, attributes: Mapping[str, Any]):
    """Set attributes on a span, stringifying and truncating non-primitive values."""
    if not span or not attributes:
        return

    for key, value in attributes.items():
        try:
            span.set_attribute(key, _attribute_value(value))
        except Exception as e:
            logger.debug(f"failed to set span attribute | key:{key} | error:{e}")


def set_span_status(span, success: bool, message: Optional[str] = None):
    if not span:
        return

    from opentelemetry.trace import Status, StatusCode

    if success:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, message or "card render failed"))


def record_exception(span, exception: BaseException, escaped: bool = False):
    """Record an exception on a span, tagged with the card id when it carries one."""
    if not span:
        return

    span.record_exception(exception, escaped=escaped)
    card_id = getattr(exception, 'card_id', None)
    if card_id is not None:
        span.set_attribute("pulse.card.id", str(card_id))
