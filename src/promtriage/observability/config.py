"""
Telemetry configuration for OpenTelemetry, Prometheus and logging

Nested under the ``telemetry`` section of AnalyzerConfig, so every field can
be set from promtriage.yml or from ``PROMTRIAGE_TELEMETRY__...`` variables.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .. import __version__


class TracingConfig(BaseModel):
    """Span export for the analysis pipeline"""

    enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    service_name: str = Field(default="promtriage", description="Service name for traces")
    service_version: str = Field(default=__version__, description="Service version")

    otlp_endpoint: Optional[str] = Field(
        default=None, description="OTLP gRPC collector, e.g. http://localhost:4317; unset keeps spans local"
    )
    otlp_headers: dict[str, str] = Field(
        default_factory=dict, description="Extra gRPC metadata sent with every export"
    )
    otlp_insecure: bool = Field(default=True, description="Use insecure connection for OTLP")

    sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Fraction of root spans kept",
    )


class MetricsConfig(BaseModel):
    """Self-monitoring Prometheus metrics configuration"""

    enabled: bool = Field(default=True, description="Collect promtriage's own metrics")
    default_labels: dict[str, str] = Field(
        default_factory=dict, description="Constant labels added to every metric"
    )
    duration_buckets: list[float] = Field(
        default_factory=lambda: [0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        description="Histogram buckets for analysis duration (in seconds)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: str = Field(default="WARNING", description="Log level")
    format: Literal["text", "json"] = Field(default="text", description="Log format")
    include_trace_id: bool = Field(
        default=True, description="Add trace/span IDs to log records when tracing is on"
    )


class TelemetryConfig(BaseModel):
    """The ``telemetry`` section of AnalyzerConfig"""

    enabled: bool = Field(default=True, description="Master switch for tracing and self-metrics")

    tracing: TracingConfig = Field(default_factory=TracingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    environment: str = Field(
        default="development",
        description="Value of the deployment.environment resource attribute",
    )

    def get_resource_attributes(self) -> dict[str, str]:
        return {
            "service.name": self.tracing.service_name,
            "service.version": self.tracing.service_version,
            "deployment.environment": self.environment,
        }

    def should_export_traces(self) -> bool:
        return self.enabled and self.tracing.enabled and self.tracing.otlp_endpoint is not None
