"""Distributed tracing configuration.

Wraps OpenTelemetry setup for an OTLP collector with optional
auto-instrumentation for FastAPI, Redis, and HTTPX. Also provides a small
context manager for scoped spans used by the search pipeline.
"""

from typing import Any, Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode
import structlog

logger = structlog.get_logger("tracing")


def configure_tracing(
    service_name: str,
    otlp_endpoint: str = "http://localhost:4317",
    environment: str = "local",
    app: Optional[FastAPI] = None,
) -> Optional[trace.Tracer]:
    """Configure distributed tracing for a service.

    Parameters
    - service_name: Logical service identifier used in trace resources
    - otlp_endpoint: Collector endpoint for exporting spans
    - environment: Deployment environment recorded on the resource
    - app: FastAPI application to instrument, if any

    Returns
    - A tracer instance for ad-hoc span creation, or ``None`` on failure
    """
    try:
        tracer_provider = TracerProvider(
            resource=Resource.create({
                "service.name": service_name,
                "deployment.environment": environment,
            })
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
        )
        trace.set_tracer_provider(tracer_provider)

        try:
            if app is not None:
                FastAPIInstrumentor.instrument_app(app)
            RedisInstrumentor().instrument()
            HTTPXClientInstrumentor().instrument()
            logger.info("Automatic instrumentation enabled")
        except Exception as e:
            # Partial failure is acceptable; log but continue.
            logger.warning("Failed to enable some instrumentation", error=str(e))

        logger.info(
            "Distributed tracing configured",
            service_name=service_name,
            otlp_endpoint=otlp_endpoint,
        )
        return trace.get_tracer(service_name)

    except Exception as e:
        logger.error("Failed to configure tracing", error=str(e))
        return None


class TracingContext:
    """Context manager for tracing operations.

    Starts a span on entry and ensures it ends, recording success or error.
    """

    def __init__(self, tracer: trace.Tracer, operation_name: str, **attributes: Any):
        self.tracer = tracer
        self.operation_name = operation_name
        self.attributes = attributes
        self.span: Optional[trace.Span] = None

    def __enter__(self) -> trace.Span:
        self.span = self.tracer.start_span(self.operation_name)
        for key, value in self.attributes.items():
            self.span.set_attribute(key, str(value))
        return self.span

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.span:
            if exc_type is not None:
                self.span.set_status(Status(StatusCode.ERROR, exc_type.__name__))
            else:
                self.span.set_status(Status(StatusCode.OK))
            self.span.end()


class SearchTracer:
    """Span helpers with stable names for the search pipeline.

    Uses the globally configured tracer provider; when tracing is disabled the
    OpenTelemetry API hands out no-op spans.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.tracer = trace.get_tracer(service_name)

    def trace_search_query(self, dataset_id: str, dimension: str, **attributes: Any) -> TracingContext:
        """Trace a dimension search request."""
        return TracingContext(
            self.tracer,
            "search.query",
            dataset_id=dataset_id,
            dimension=dimension,
            **attributes
        )

    def trace_index_operation(self, operation: str, instance_id: str, dimension: str) -> TracingContext:
        """Trace a create/delete index operation."""
        return TracingContext(
            self.tracer,
            "search_index.operation",
            operation=operation,
            instance_id=instance_id,
            dimension=dimension,
        )
