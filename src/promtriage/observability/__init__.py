"""
Observability module for promtriage

Provides logging setup, OpenTelemetry tracing and Prometheus self-metrics
for analysis runs.
"""

from .config import LoggingConfig, MetricsConfig, TelemetryConfig, TracingConfig
from .init import (
    configure_logging,
    initialize_observability,
    shutdown_observability,
)
from .metrics import MetricsCollector, get_metrics, initialize_metrics
from .tracer import get_tracer, set_attribute, trace_operation, trace_sync

__all__ = [
    "TelemetryConfig",
    "TracingConfig",
    "MetricsConfig",
    "LoggingConfig",
    "configure_logging",
    "get_tracer",
    "trace_operation",
    "trace_sync",
    "set_attribute",
    "get_metrics",
    "initialize_metrics",
    "MetricsCollector",
    "initialize_observability",
    "shutdown_observability",
]
