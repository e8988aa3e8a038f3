"""OpenTelemetry tracing.

Tracing is off unless ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set. Spans opened
through ``get_tracer`` are no-ops in that case, so services can create them
unconditionally.
"""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.config import settings
from app.core.result import ServiceResult

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Meta polls the webhook endpoints; tracing every delivery is noise
EXCLUDED_URLS = "health,api/docs,api/redoc,api/openapi.json,api/v1/webhooks/whatsapp"


def _tracer_provider() -> TracerProvider:
    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.namespace": "whatsapp-crm",
            "service.version": "1.0.0",
            "deployment.environment": "development" if settings.DEBUG else "production",
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True)
        )
    )
    return provider


def setup_all_instrumentation(app: "FastAPI", engine: "AsyncEngine | None" = None) -> bool:
    """Export traces and instrument FastAPI, the database, Redis and httpx.

    Returns:
        True if tracing was enabled
    """
    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        logger.info("Telemetry disabled: OTEL_EXPORTER_OTLP_ENDPOINT not configured")
        return False

    try:
        provider = _tracer_provider()
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=provider, excluded_urls=EXCLUDED_URLS
        )
        # Outbound Cloud API calls
        HTTPXClientInstrumentor().instrument(tracer_provider=provider)
        RedisInstrumentor().instrument(tracer_provider=provider)
        if engine is not None:
            SQLAlchemyInstrumentor().instrument(
                engine=engine.sync_engine,
                tracer_provider=provider,
                enable_commenter=True,
            )
    except Exception as e:
        logger.warning(f"Failed to setup telemetry: {e}")
        return False

    logger.info(f"Telemetry enabled: exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for manual span creation."""
    return trace.get_tracer(name)


def record_result(span: trace.Span, result: ServiceResult) -> None:
    """Tag a span with the outcome of a service call."""
    span.set_attribute("crm.success", result.success)
    if result.code:
        span.set_attribute("crm.error_code", result.code.value)
        span.set_status(trace.Status(trace.StatusCode.ERROR, result.error))
