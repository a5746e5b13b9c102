"""
OpenTelemetry tracing for the analysis pipeline

Spans are opened around the pipeline stages (rule loading, parsing,
evaluation). Until ``initialize_tracing`` installs a provider, the helpers
fall through to OpenTelemetry's no-op tracer.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, StatusCode

from .config import TelemetryConfig

logger = logging.getLogger(__name__)

TRACER_NAME = "promtriage"

_tracer: Optional[trace.Tracer] = None

P = ParamSpec("P")
T = TypeVar("T")


def _build_provider(config: TelemetryConfig) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(config.get_resource_attributes()),
        sampler=ParentBased(TraceIdRatioBased(config.tracing.sample_rate)),
    )
    if config.should_export_traces():
        tracing = config.tracing
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=tracing.otlp_endpoint,
                    headers=tracing.otlp_headers,
                    insecure=tracing.otlp_insecure,
                )
            )
        )
        logger.info(f"Exporting spans to {tracing.otlp_endpoint}")
    return provider


def initialize_tracing(config: TelemetryConfig) -> None:
    """Install the SDK tracer provider described by ``config``"""
    global _tracer

    if not (config.enabled and config.tracing.enabled):
        logger.info("Tracing is disabled")
        return

    trace.set_tracer_provider(_build_provider(config))
    _tracer = trace.get_tracer(TRACER_NAME, config.tracing.service_version)
    logger.info(f"Tracing initialized (sample_rate={config.tracing.sample_rate})")


def get_tracer() -> trace.Tracer:
    return _tracer if _tracer is not None else trace.NoOpTracer()


@contextmanager
def trace_operation(name: str, attributes: Optional[dict[str, Any]] = None) -> Iterator[Span]:
    """
    Run the enclosed block inside a span called ``name``

    A failing block marks the span as errored; the exception propagates.
    """
    with get_tracer().start_as_current_span(
        name, attributes=attributes, record_exception=True, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(StatusCode.ERROR, f"{type(e).__name__}: {e}")
            raise


def trace_sync(name: Optional[str] = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator wrapping every call of a function in its own span"""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with trace_operation(span_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def set_attribute(key: str, value: Any) -> None:
    """Set an attribute on the current span, if one is recording"""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
