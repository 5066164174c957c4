"""
OpenTelemetry metrics for card rendering

Counts renders per visualization and outcome, their duration, and render
errors by type. Every record_* function is a no-op until
initialize_telemetry() has created the instruments.
"""

import time
from typing import Any, Dict, Optional

from ..logging import get_logger

logger = get_logger('TELEMETRY_METRICS')

# name -> instrument, filled by initialize_metrics()
_instruments: Dict[str, Any] = {}

RENDERS_TOTAL = "pulse_card_renders_total"
RENDER_DURATION = "pulse_card_render_duration_seconds"
RENDER_ERRORS_TOTAL = "pulse_render_errors_total"


def initialize_metrics() -> bool:
    """Create the render metric instruments on the renderer's meter."""
    from .config import get_meter

    meter = get_meter()
    if not meter:
        logger.debug("metrics not available | meter not initialized")
        return False

    try:
        _instruments[RENDERS_TOTAL] = meter.create_counter(
            name=RENDERS_TOTAL,
            description="Pulse card renders by card type, render mode and outcome",
            unit="1",
        )
        _instruments[RENDER_DURATION] = meter.create_histogram(
            name=RENDER_DURATION,
            description="Time to render one pulse card, including its images",
            unit="s",
        )
        _instruments[RENDER_ERRORS_TOTAL] = meter.create_counter(
            name=RENDER_ERRORS_TOTAL,
            description="Card render failures by error type",
            unit="1",
        )
    except Exception as e:
        _instruments.clear()
        logger.error(f"metrics initialization failed | error: {e}")
        return False

    logger.info(f"metrics initialized | instruments:{len(_instruments)}")
    return True


def _metric_attributes(prefix: str, attributes: Dict[str, Any]) -> Dict[str, str]:
    return {
        f"{prefix}.{key}": str(value)
        for key, value in attributes.items()
        if isinstance(value, (str, int, float, bool))
    }


def record_card_render(card_type: str, render_mode: str, duration: float, success: bool, **attributes):
    """
    Record one card render.

    Args:
        card_type: Classified visualization (scalar, bar...), or "unknown"
        render_mode: inline or attachment
        duration: Render time in seconds
        success: False when the failure fragment was rendered
        **attributes: Additional card context
    """
    if not _instruments:
        return

    metric_attributes = {
        "card_type": card_type,
        "render_mode": render_mode,
        "success": str(success).lower(),
        **_metric_attributes("card", attributes),
    }
    try:
        _instruments[RENDERS_TOTAL].add(1, metric_attributes)
        _instruments[RENDER_DURATION].record(duration, metric_attributes)
    except Exception as e:
        logger.debug(f"failed to record render metrics | error:{e}")
        return

    logger.debug(f"recorded render metrics | type:{card_type} | duration:{duration:.3f}s | success:{success}")


def record_render_error(error_type: str, operation: str, **attributes):
    """Count a render failure by error class and the operation it happened in."""
    if not _instruments:
        return

    try:
        _instruments[RENDER_ERRORS_TOTAL].add(1, {
            "error_type": error_type,
            "operation": operation,
            **_metric_attributes("error", attributes),
        })
    except Exception as e:
        logger.debug(f"failed to record error metric | error:{e}")


class MetricsTimer:
    """
    Time a card render and record it on exit.

    The block fills in card_type once the card is classified and clears
    success when the failure fragment is used.
    """

    def __init__(self, render_mode: str, **attributes):
        self.render_mode = render_mode
        self.attributes = attributes
        self.card_type = "unknown"
        self.success = True
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        record_card_render(self.card_type, self.render_mode, duration,
                           self.success and exc_type is None, **self.attributes)


def get_metrics_status() -> Dict[str, Any]:
    """Which render instruments exist, for health checks."""
    return {
        "enabled": bool(_instruments),
        "instruments": sorted(_instruments),
    }
