"""
Test suite for logging, tracing and self-metrics setup
"""

import json
import logging

import pytest

from promtriage.observability import (
    LoggingConfig,
    TelemetryConfig,
    configure_logging,
    get_metrics,
    initialize_observability,
    shutdown_observability,
    trace_operation,
    trace_sync,
)
from promtriage.observability.metrics import MetricsCollector


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:
    """Test logging configuration"""

    def test_json_lines_on_stderr(self, capsys, restore_logging):
        configure_logging(LoggingConfig(level="INFO", format="json"))
        logging.getLogger("promtriage.test").info("rules loaded")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["message"] == "rules loaded"
        assert record["levelname"] == "INFO"
        assert record["name"] == "promtriage.test"

    def test_level_filters_records(self, capsys, restore_logging):
        configure_logging(LoggingConfig(level="ERROR"))
        logging.getLogger("promtriage.test").warning("quiet")

        assert "quiet" not in capsys.readouterr().err


class TestTracing:
    """Test tracing helpers without an installed provider"""

    def test_trace_operation_reraises(self):
        with pytest.raises(RuntimeError, match="boom"):
            with trace_operation("promtriage.test"):
                raise RuntimeError("boom")

    def test_trace_sync_preserves_result(self):
        @trace_sync("promtriage.add")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"


class TestSelfMetrics:
    """Test the Prometheus self-metrics collector"""

    def test_failed_analysis_counted_as_error(self):
        collector = MetricsCollector(TelemetryConfig())

        with pytest.raises(ValueError):
            with collector.time_analysis():
                raise ValueError("bad input")

        text = collector.get_metrics_text()
        assert 'promtriage_analyses_total{outcome="error"} 1.0' in text
        assert "promtriage_analysis_duration_seconds_count 1.0" in text

    def test_default_labels(self):
        config = TelemetryConfig(metrics={"default_labels": {"cluster": "prod"}})
        collector = MetricsCollector(config)
        collector.record_rule_result("gauge_threshold", "RED")

        labels = {"rule_type": "gauge_threshold", "status": "RED", "cluster": "prod"}
        assert collector.registry.get_sample_value("promtriage_rule_results_total", labels) == 1.0

    def test_duration_observed_without_default_labels(self):
        collector = MetricsCollector(TelemetryConfig())

        with collector.time_analysis():
            pass

        registry = collector.registry
        assert registry.get_sample_value("promtriage_analysis_duration_seconds_count") == 1.0
        assert registry.get_sample_value("promtriage_analyses_total", {"outcome": "success"}) == 1.0

    def test_duration_carries_default_labels(self):
        config = TelemetryConfig(metrics={"default_labels": {"cluster": "prod"}})
        collector = MetricsCollector(config)

        with collector.time_analysis():
            pass

        assert (
            collector.registry.get_sample_value(
                "promtriage_analysis_duration_seconds_count", {"cluster": "prod"}
            )
            == 1.0
        )

    def test_collectors_use_private_registries(self):
        first = MetricsCollector(TelemetryConfig())
        second = MetricsCollector(TelemetryConfig())
        first.record_rules_loaded("evaluation", 3)

        assert 'kind="evaluation"' not in second.get_metrics_text()


class TestInitialization:
    """Test the observability entry point"""

    def test_initialize_and_shutdown(self, restore_logging):
        initialize_observability(TelemetryConfig())
        assert get_metrics() is not None

        shutdown_observability()
        assert get_metrics() is None

    def test_metrics_disabled(self, restore_logging):
        initialize_observability(TelemetryConfig(metrics={"enabled": False}))
        try:
            assert get_metrics() is None
        finally:
            shutdown_observability()
