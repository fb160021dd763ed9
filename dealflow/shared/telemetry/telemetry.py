"""OpenTelemetry tracing for the API, the database and outbound mail calls.

Spans cover inbound requests (FastAPI), SQL statements (SQLAlchemy) and
Resend API calls (httpx). Exporter is chosen by TELEMETRY_EXPORTER:
``console``, ``otlp`` (gRPC, needs TELEMETRY_OTLP_ENDPOINT) or ``none``.
"""

import logging
import threading

import httpx
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Liveness probes are polled constantly; they are not traced.
UNTRACED_URLS = "/api/v1/health"


def _build_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    if exporter_type == "none":
        return None
    if exporter_type == "otlp":
        if otlp_endpoint:
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        logger.warning("TELEMETRY_OTLP_ENDPOINT not set; falling back to console exporter")
    elif exporter_type != "console":
        logger.warning("Unknown exporter type '%s', using console", exporter_type)
    return ConsoleSpanExporter()


class Telemetry:
    """Tracer provider plus the instrumentations dealflow installs.

    Instrumentation failures are logged and never stop the app from starting.
    """

    def __init__(self, service_name: str, service_version: str, environment: str) -> None:
        self.resource = Resource(
            attributes={
                SERVICE_NAME: service_name,
                SERVICE_VERSION: service_version,
                "deployment.environment": environment,
            }
        )
        self.provider: TracerProvider | None = None

    def start(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Create and register the global tracer provider."""
        try:
            provider = TracerProvider(
                resource=self.resource, sampler=TraceIdRatioBased(sample_rate)
            )
            exporter = _build_exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Failed to initialize telemetry")
            return None
        self.provider = provider
        logger.info(
            "Tracing started (exporter=%s, sample_rate=%s)", exporter_type, sample_rate
        )
        return provider

    def instrument(
        self,
        app: FastAPI,
        engine: AsyncEngine | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Instrument the app, and the engine and mail HTTP client when given."""
        if self.provider is None:
            return
        try:
            FastAPIInstrumentor.instrument_app(
                app, tracer_provider=self.provider, excluded_urls=UNTRACED_URLS
            )
            if engine is not None:
                SQLAlchemyInstrumentor().instrument(
                    engine=engine.sync_engine,
                    tracer_provider=self.provider,
                    enable_commenter=True,
                )
            if http_client is not None:
                HTTPXClientInstrumentor.instrument_client(
                    http_client, tracer_provider=self.provider
                )
        except Exception:
            logger.exception("Failed to install tracing instrumentation")

    def shutdown(self) -> None:
        """Flush pending spans and stop the provider."""
        if self.provider is None:
            return
        try:
            self.provider.shutdown()
        except Exception:
            logger.exception("Error during telemetry shutdown")
        self.provider = None


_current: Telemetry | None = None
_lock = threading.RLock()


def get_telemetry() -> Telemetry | None:
    """Telemetry installed at startup, if any."""
    with _lock:
        return _current


def set_telemetry(telemetry: Telemetry | None) -> None:
    global _current
    with _lock:
        _current = telemetry
