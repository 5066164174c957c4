"""
OpenTelemetry setup for the pulse renderer

Tracing and metrics are opt-in: nothing is exported until the embedding
application (a pulse sender, a preview server) calls initialize_telemetry().
Until then the tracer and meter are None and every instrumentation helper
returns immediately.
"""

import os
from typing import Any, Dict, Optional

from ..logging import get_logger

logger = get_logger('TELEMETRY')

_telemetry_initialized = False
_tracer = None
_meter = None

# Metrics are pushed to the collector on this interval
METRIC_EXPORT_INTERVAL_MS = 10000


def get_telemetry_config() -> Dict[str, Any]:
    """
    Get telemetry configuration from environment variables.

    Returns:
        Dictionary with configuration values
    """
    return {
        "enabled": os.getenv('OTEL_TELEMETRY_ENABLED', 'true').lower() in ('true', '1', 'yes', 'on'),
        "service_name": os.getenv('OTEL_SERVICE_NAME', 'pulse-render'),
        "endpoint": os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT', 'http://localhost:4317'),
        "environment": os.getenv('DEPLOYMENT_ENVIRONMENT', 'development'),
    }


def is_telemetry_enabled() -> bool:
    return get_telemetry_config()["enabled"]


def is_telemetry_initialized() -> bool:
    return _telemetry_initialized


def _build_providers(config: Dict[str, Any]):
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create({
        "service.name": config["service_name"],
        "service.namespace": "pulse",
        "deployment.environment": config["environment"],
    })

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=config["endpoint"], insecure=True))
    )

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=config["endpoint"], insecure=True),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    return tracer_provider, meter_provider


def initialize_telemetry(config: Optional[Dict[str, Any]] = None) -> bool:
    """
    Install OTLP tracer and meter providers and create the render metrics.

    Args:
        config: Overrides for get_telemetry_config() (tests, embedding apps)

    Returns:
        True if telemetry is active, False if disabled or unavailable
    """
    global _telemetry_initialized, _tracer, _meter

    if _telemetry_initialized:
        return True

    config = {**get_telemetry_config(), **(config or {})}
    if not config["enabled"]:
        logger.info("telemetry disabled via configuration")
        return False

    try:
        from opentelemetry import metrics, trace

        logger.info(f"initializing telemetry | endpoint:{config['endpoint']} | service:{config['service_name']}")
        tracer_provider, meter_provider = _build_providers(config)
        trace.set_tracer_provider(tracer_provider)
        metrics.set_meter_provider(meter_provider)

        _tracer = trace.get_tracer("pulse_render")
        _meter = metrics.get_meter("pulse_render")
        _telemetry_initialized = True

    except ImportError as e:
        logger.warning(f"telemetry disabled | missing dependencies: {e}")
        return False
    except Exception as e:
        logger.exception(f"telemetry initialization failed | error: {e}")
        return False

    from .metrics import initialize_metrics
    initialize_metrics()
    logger.info("telemetry initialization complete")
    return True


def get_tracer():
    """The renderer's tracer, or None before initialization."""
    return _tracer if _telemetry_initialized else None


def get_meter():
    """The renderer's meter, or None before initialization."""
    return _meter if _telemetry_initialized else None


def shutdown_telemetry():
    """Flush pending spans and metrics and uninstall the providers' exporters."""
    global _telemetry_initialized, _tracer, _meter

    if not _telemetry_initialized:
        return

    try:
        from opentelemetry import metrics, trace

        for provider in (trace.get_tracer_provider(), metrics.get_meter_provider()):
            shutdown = getattr(provider, 'shutdown', None)
            if shutdown:
                shutdown()
        logger.info("telemetry shutdown complete")

    except Exception as e:
        logger.error(f"telemetry shutdown error | error: {e}")

    finally:
        _telemetry_initialized = False
        _tracer = None
        _meter = None
