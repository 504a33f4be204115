# ontogen/shared/observability.py
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

from ontogen.shared.config import settings

_provider: Optional[TracerProvider] = None


def setup_tracing() -> TracerProvider:
    """
    Sets the global tracer provider once per process.

    Spans are only exported (to the console) in DEBUG mode; otherwise they
    exist to give log lines a trace and span id.
    """
    global _provider
    if _provider is not None:
        return _provider

    resource = Resource.create(attributes={
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.environment": settings.APP_ENV.value,
    })
    provider = TracerProvider(resource=resource)
    if settings.DEBUG:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def setup_observability(app: FastAPI) -> None:
    """Configures tracing and auto-instruments the HTTP application."""
    provider = setup_tracing()
    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)


def get_tracer(name: str):
    """
    Utility to get a tracer for manual instrumentation in use cases.
    Usage:
        tracer = get_tracer(__name__)
        with tracer.start_as_current_span("use_case.execute_statement"):
            ...
    """
    return trace.get_tracer(name)
