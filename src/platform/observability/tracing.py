"""
OpenTelemetry tracing for the booking API and the expiry worker.

- Spans are exported over OTLP/gRPC only when OTEL_EXPORTER_OTLP_ENDPOINT is set,
  so local runs and tests record nothing
- Requests (FastAPI) and statements (SQLAlchemy) are instrumented automatically;
  use cases open their own spans through trace.get_tracer(__name__)
- Lifecycle events carry the current trace context in their Kafka headers
"""

import os
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON


class TracingConfig:
    """One tracer provider per process; main.py and the worker entry point own it."""

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool = False,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        self.enable_console = (
            enable_console or os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        )
        self._provider: TracerProvider | None = None

    def setup(self) -> None:
        provider = TracerProvider(
            resource=Resource(attributes={SERVICE_NAME: self.service_name}),
            # Cancellations and expiry ticks are low volume; keep every trace
            sampler=ALWAYS_ON,
        )
        exporters = []
        if self.otlp_endpoint:
            exporters.append(OTLPSpanExporter(endpoint=self.otlp_endpoint))
        if self.enable_console:
            exporters.append(ConsoleSpanExporter())
        for exporter in exporters:
            provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(provider)
        self._provider = provider

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = 'health,metrics') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        # AsyncEngine wraps the sync engine the instrumentor hooks into
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()


def inject_trace_context(*, headers: dict[str, str] | None = None) -> dict[str, str]:
    """Current trace context as W3C headers, for a lifecycle event's Kafka message."""
    carrier = dict(headers or {})
    inject(carrier)
    return carrier
