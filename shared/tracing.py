"""Tracing utilities built on OpenTelemetry."""

import os
from contextlib import contextmanager
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode


_configured = False


def configure_tracing(
    service_name: str,
    env: str,
    otel_exporter: Optional[str] = None,
    enable_console: bool = False,
) -> None:
    """Install a tracer provider for the process.

    Spans go to the OTLP collector at ``otel_exporter`` and, when
    ``enable_console`` is set, to stdout. Only the first call takes effect.
    """
    global _configured
    if _configured:
        return

    resource = Resource.create({
        "service.name": service_name,
        "service.version": "1.0.0",
        "service.namespace": "supplier-portal",
        "service.instance.id": os.getenv("HOSTNAME", "unknown"),
        "deployment.environment": env,
    })
    provider = TracerProvider(resource=resource)

    if otel_exporter:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_exporter, insecure=otel_exporter.startswith("http://")))
        )
    if enable_console:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _configured = True


def instrument_app(app: Any) -> None:
    """Create a server span for every request handled by ``app``."""
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")


def get_tracer(name: str):
    """Get a tracer instance."""
    return trace.get_tracer(name)


@contextmanager
def trace_operation(operation_name: str, **attributes):
    """Context manager to trace an operation."""
    tracer = get_tracer(__name__)
    with tracer.start_as_current_span(operation_name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)

        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.set_attribute("error", True)
            span.set_attribute("error.message", str(exc))
            raise
