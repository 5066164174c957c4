"""
Opt-in OpenTelemetry tracing and metrics for card rendering.
"""

from .config import (
    get_meter,
    get_telemetry_config,
    get_tracer,
    initialize_telemetry,
    is_telemetry_enabled,
    is_telemetry_initialized,
    shutdown_telemetry,
)
from .decorators import trace_card_render
from .metrics import (
    MetricsTimer,
    get_metrics_status,
    initialize_metrics,
    record_card_render,
    record_render_error,
)
from .utils import add_span_attributes, current_span, record_exception, set_span_status

__all__ = [
    # Setup
    'get_meter',
    'get_telemetry_config',
    'get_tracer',
    'initialize_telemetry',
    'is_telemetry_enabled',
    'is_telemetry_initialized',
    'shutdown_telemetry',

    # Tracing
    'trace_card_render',
    'add_span_attributes',
    'current_span',
    'record_exception',
    'set_span_status',

    # Metrics
    'MetricsTimer',
    'get_metrics_status',
    'initialize_metrics',
    'record_card_render',
    'record_render_error',
]
