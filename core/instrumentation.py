"""
OpenTelemetry instrumentation setup.

Tracing is always available through the OpenTelemetry API; the SDK,
OTLP exporter and Django auto-instrumentation are only wired up when
``OBSERVABILITY_ENABLED`` is set.
"""

import logging

from django.conf import settings
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode  # noqa: F401

logger = logging.getLogger(__name__)

_configured = False


def setup_opentelemetry() -> bool:
    """
    Configure the tracer provider, OTLP exporter and Django instrumentation.

    Returns:
        True if instrumentation was configured by this call
    """
    global _configured

    if _configured:
        return False
    if not getattr(settings, "OBSERVABILITY_ENABLED", False):
        logger.debug("Observability disabled, skipping OpenTelemetry setup")
        return False

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.django import DjangoInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": settings.OTEL_SERVICE_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                insecure=settings.OTEL_EXPORTER_OTLP_INSECURE,
            )
        )
    )
    trace.set_tracer_provider(trace_provider)

    DjangoInstrumentor().instrument()

    _configured = True
    logger.info(
        "OpenTelemetry instrumentation configured",
        extra={"otlp_endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT},
    )
    return True


def get_tracer(name: str):
    """
    Get a tracer instance for manual instrumentation.

    Without a configured SDK the API hands back a no-op tracer.
    """
    return trace.get_tracer(name)
