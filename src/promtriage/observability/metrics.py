"""
Prometheus metrics about promtriage itself

Counts analyses and per-status rule outcomes and times each analysis. The
collector owns a private CollectorRegistry whose exposition is served by the
HTTP server at /metrics.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest

from .config import TelemetryConfig

logger = logging.getLogger(__name__)


@dataclass
class MetricsCollector:
    """Central metrics collector for analysis runs"""

    config: TelemetryConfig
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    analyses_total: Counter = field(init=False)
    analysis_duration: Histogram = field(init=False)
    rule_results_total: Counter = field(init=False)
    rules_loaded_total: Counter = field(init=False)
    build_info: Info = field(init=False)

    def __post_init__(self):
        labels = list(self.config.metrics.default_labels)

        self.analyses_total = Counter(
            "promtriage_analyses_total",
            "Total number of analysis runs",
            labelnames=["outcome"] + labels,
            registry=self.registry,
        )

        self.analysis_duration = Histogram(
            "promtriage_analysis_duration_seconds",
            "Duration of analysis runs",
            labelnames=labels,
            buckets=self.config.metrics.duration_buckets,
            registry=self.registry,
        )

        self.rule_results_total = Counter(
            "promtriage_rule_results_total",
            "Rule evaluation results by rule type and status",
            labelnames=["rule_type", "status"] + labels,
            registry=self.registry,
        )

        self.rules_loaded_total = Counter(
            "promtriage_rules_loaded_total",
            "Number of rules loaded from disk",
            labelnames=["kind"] + labels,
            registry=self.registry,
        )

        self.build_info = Info("promtriage_build", "Build information", registry=self.registry)
        self.build_info.info(
            {
                "version": self.config.tracing.service_version,
                "environment": self.config.environment,
            }
        )

        logger.debug("Prometheus metrics initialized")

    def _labels(self, **labels: str) -> dict[str, str]:
        return {**self.config.metrics.default_labels, **labels}

    @contextmanager
    def time_analysis(self):
        """Time an analysis run and count it as success or error"""
        start_time = time.time()
        outcome = "error"
        try:
            yield
            outcome = "success"
        finally:
            duration = self.analysis_duration
            if self.config.metrics.default_labels:
                duration = duration.labels(**self._labels())
            duration.observe(time.time() - start_time)
            self.analyses_total.labels(**self._labels(outcome=outcome)).inc()

    def record_rule_result(self, rule_type: str, status: str) -> None:
        self.rule_results_total.labels(**self._labels(rule_type=rule_type, status=status)).inc()

    def record_rules_loaded(self, kind: str, count: int) -> None:
        self.rules_loaded_total.labels(**self._labels(kind=kind)).inc(count)

    def get_metrics_text(self) -> str:
        """Get metrics in Prometheus text format"""
        return generate_latest(self.registry).decode("utf-8")


_metrics: Optional[MetricsCollector] = None


def initialize_metrics(config: TelemetryConfig) -> MetricsCollector:
    global _metrics
    _metrics = MetricsCollector(config)
    return _metrics


def get_metrics() -> Optional[MetricsCollector]:
    """Get the global metrics collector, None when metrics are off"""
    return _metrics


def reset_metrics() -> None:
    global _metrics
    _metrics = None
