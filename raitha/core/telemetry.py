"""OpenTelemetry telemetry setup for distributed tracing."""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from raitha.config import settings

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def setup_telemetry(app: "FastAPI") -> None:
    """Configure OpenTelemetry tracing for the FastAPI application.

    This sets up:
    - TracerProvider with service name resource
    - OTLP exporter to send traces to the collector
    - FastAPI instrumentation for automatic request tracing
    """
    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        logger.info("Telemetry disabled: OTEL_EXPORTER_OTLP_ENDPOINT not configured")
        return

    try:
        resource = Resource.create(
            {
                "service.name": settings.OTEL_SERVICE_NAME,
                "service.version": "1.0.0",
                "deployment.environment": "development" if settings.DEBUG else "production",
            }
        )

        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)

        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True,  # Set to False for production with TLS
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=tracer_provider,
            excluded_urls="health,api/docs,api/redoc,api/openapi.json",
        )

        logger.info(
            f"Telemetry enabled: exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}"
        )

    except Exception as e:
        logger.warning(f"Failed to setup telemetry: {e}")


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for manual span creation.

    Example:
        tracer = get_tracer(__name__)
        with tracer.start_as_current_span("translate") as span:
            span.set_attribute("translation.target", "kn")
    """
    return trace.get_tracer(name)


def instrument_httpx() -> None:
    """Instrument httpx for translation and push provider tracing."""
    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

    HTTPXClientInstrumentor().instrument()
    logger.info("httpx instrumentation enabled")


def instrument_sqlalchemy() -> None:
    """Instrument SQLAlchemy for database tracing."""
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    SQLAlchemyInstrumentor().instrument(enable_commenter=True)
    logger.info("SQLAlchemy instrumentation enabled")


def instrument_redis() -> None:
    """Instrument Redis for change feed tracing."""
    from opentelemetry.instrumentation.redis import RedisInstrumentor

    RedisInstrumentor().instrument()
    logger.info("Redis instrumentation enabled")


def setup_all_instrumentation(app: "FastAPI") -> None:
    """Setup telemetry with the httpx, SQLAlchemy and Redis instrumentations."""
    setup_telemetry(app)

    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        instrument_httpx()
        instrument_sqlalchemy()
        instrument_redis()
