"""OpenTelemetry setup and spans for the election workflows.

Tracing is off unless ``ENABLE_TRACING`` is set. Without a tracer provider the
spans opened by :func:`workflow_span` are no-ops, so services use it
unconditionally.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import Span
from sqlalchemy.engine import Engine

from elections.core.config import Settings

_SERVICE_NAME_ATTRIBUTE = "service.name"
_tracer = trace.get_tracer("elections")


def configure_tracing(settings: Settings) -> bool:
    """Install the global tracer provider for ``settings.app_name``.

    Spans go to the OTLP collector at ``otel_exporter_endpoint`` when one is
    configured and to stdout otherwise. Returns False when tracing is disabled
    or a provider for this service is already installed.
    """
    if not settings.enable_tracing:
        return False

    current = trace.get_tracer_provider()
    if (
        isinstance(current, TracerProvider)
        and current.resource.attributes.get(_SERVICE_NAME_ATTRIBUTE) == settings.app_name
    ):
        return False

    provider = TracerProvider(resource=Resource(attributes={_SERVICE_NAME_ATTRIBUTE: settings.app_name}))
    if settings.otel_exporter_endpoint:
        processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_endpoint, insecure=True))
    else:
        processor = SimpleSpanProcessor(ConsoleSpanExporter())
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    LoggingInstrumentor().instrument(set_logging_format=True)
    return True


def instrument_fastapi_app(app: FastAPI) -> None:
    FastAPIInstrumentor().instrument_app(app)


def instrument_sqlalchemy_engine(engine: Engine) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine)


@contextmanager
def workflow_span(operation: str, *, purpose: str, **attributes: Any) -> Iterator[Span]:
    """Open an ``election.<operation>`` span tagged with the flow purpose.

    Attribute values of ``None`` are dropped; OpenTelemetry rejects them.
    """
    with _tracer.start_as_current_span(f"election.{operation}") as span:
        span.set_attribute("election.purpose", purpose)
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"election.{key}", value)
        yield span


__all__ = [
    "configure_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "workflow_span",
]
