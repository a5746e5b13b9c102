"""
Test suite for rule and result models
"""

import pytest
from pydantic import ValidationError

from promtriage.models import (
    CompositeRule,
    EvaluationResult,
    GaugeRule,
    LoadDetectionRule,
    LoadDetectionThreshold,
    LoadLevel,
    Status,
    Summary,
)

from conftest import make_rule


class TestStatus:
    """Test status ordering helpers"""

    def test_elevated_saturates_at_red(self):
        assert Status.GREEN.elevated() is Status.YELLOW
        assert Status.YELLOW.elevated() is Status.RED
        assert Status.RED.elevated() is Status.RED

    def test_suppressed_saturates_at_green(self):
        assert Status.RED.suppressed() is Status.YELLOW
        assert Status.YELLOW.suppressed() is Status.GREEN
        assert Status.GREEN.suppressed() is Status.GREEN

    def test_parse(self):
        """Test case-insensitive parsing"""
        assert Status.parse("red") is Status.RED
        assert Status.parse(" Yellow ") is Status.YELLOW
        assert Status.parse("purple") is None


class TestRuleValidation:
    """Test load-time rule validation"""

    def test_discriminator_selects_variant(self):
        rule = make_rule(rule_type="gauge_threshold", metric_name="m")
        assert isinstance(rule, GaugeRule)

        rule = make_rule(
            rule_type="composite",
            composite_config={"metrics": [{"name": "a", "source": "m"}]},
        )
        assert isinstance(rule, CompositeRule)

    def test_unknown_rule_type_rejected(self):
        with pytest.raises(ValidationError):
            make_rule(rule_type="summary", metric_name="m")

    def test_gauge_requires_metric_name(self):
        with pytest.raises(ValidationError, match="metric_name is required"):
            make_rule(rule_type="gauge_threshold")

    def test_percentage_requires_config(self):
        with pytest.raises(ValidationError):
            make_rule(rule_type="percentage", metric_name="m")

    def test_low_must_be_below_high(self):
        with pytest.raises(ValidationError, match="low threshold must be less than high"):
            make_rule(rule_type="gauge_threshold", metric_name="m", thresholds={"low": 10, "high": 5})

    def test_existence_check_allowed(self):
        """Test that low == high == 0 is accepted"""
        rule = make_rule(rule_type="gauge_threshold", metric_name="m", thresholds={"low": 0, "high": 0})
        assert rule.thresholds.is_existence_check

    def test_load_level_band_order_checked(self):
        with pytest.raises(ValidationError, match="high load level"):
            make_rule(
                rule_type="gauge_threshold",
                metric_name="m",
                thresholds={"low": 1, "high": 2},
                load_level_thresholds={"high": {"low": 9, "high": 3}},
            )

    def test_histogram_percentiles_ordered(self):
        with pytest.raises(ValidationError, match="p95_good must be less than p95_warn"):
            make_rule(
                rule_type="histogram",
                metric_name="h",
                thresholds={"p95_good": 1.0, "p95_warn": 0.5},
            )

    def test_invalid_version_spec_rejected(self):
        with pytest.raises(ValidationError, match="invalid version format"):
            make_rule(rule_type="gauge_threshold", metric_name="m", acs_versions=["latest"])

    def test_correlation_operator_checked(self):
        with pytest.raises(ValidationError):
            make_rule(
                rule_type="gauge_threshold",
                metric_name="m",
                correlation={"suppress_if": [{"metric_name": "x", "operator": "ne"}]},
            )

    def test_correlation_status_normalized(self):
        rule = make_rule(
            rule_type="gauge_threshold",
            metric_name="m",
            correlation={"elevate_if": [{"metric_name": "x", "operator": "gt", "status": "red"}]},
        )
        assert rule.correlation.elevate_if[0].status is Status.RED

    def test_display_name(self):
        """Test result naming per rule kind"""
        gauge = make_rule(rule_type="gauge_threshold", metric_name="m", display_name="Pretty")
        assert gauge.name == "m"

        percentage = make_rule(
            rule_type="percentage",
            display_name="Pretty",
            percentage_config={"numerator": "a", "denominator": "b"},
        )
        assert percentage.name == "Pretty"


class TestReviewStatus:
    """Test review metadata formatting"""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"reviewed": "yes", "last_review_by": "ann", "last_review_on": "2025-01-01"},
             "yes (last review: ann on 2025-01-01)"),
            ({"reviewed": "yes", "last_review_by": "ann"}, "yes (last review: ann)"),
            ({"reviewed": "yes"}, "yes"),
            ({"last_review_by": "ann", "last_review_on": "2025-01-01"}, "Last review: ann on 2025-01-01"),
            ({"last_review_on": "2025-01-01"}, "Last review: 2025-01-01"),
            ({}, "review status unavailable"),
        ],
    )
    def test_review_status(self, fields, expected):
        rule = make_rule(rule_type="gauge_threshold", metric_name="m", **fields)
        assert rule.review_status() == expected

    def test_remediation_for(self):
        rule = make_rule(rule_type="gauge_threshold", metric_name="m", remediation={"red": "fix it"})
        assert rule.remediation_for(Status.RED) == "fix it"
        assert rule.remediation_for(Status.GREEN) == ""


class TestLoadDetectionModels:
    """Test load detection bands"""

    def test_open_bounds(self):
        band = LoadDetectionThreshold(level=LoadLevel.HIGH, min_value=500)
        assert band.contains(500)
        assert band.contains(1e9)
        assert not band.contains(499.9)

    def test_max_is_exclusive(self):
        band = LoadDetectionThreshold(level=LoadLevel.LOW, max_value=100)
        assert band.contains(0)
        assert not band.contains(100)

    def test_band_order_checked(self):
        with pytest.raises(ValidationError):
            LoadDetectionThreshold(level=LoadLevel.MEDIUM, min_value=500, max_value=100)

    def test_metric_source_fallback(self):
        rule = LoadDetectionRule(metrics=[{"name": "pods"}, {"name": "c", "source": "containers"}])
        assert [m.metric for m in rule.metrics] == ["pods", "containers"]


class TestSummary:
    """Test summary tallies"""

    def test_from_results(self):
        results = [
            EvaluationResult(rule_name="a", status=Status.RED),
            EvaluationResult(rule_name="b", status=Status.GREEN),
            EvaluationResult(rule_name="c", status=Status.GREEN),
        ]
        summary = Summary.from_results(results)
        assert summary.total_analyzed == 3
        assert (summary.red_count, summary.yellow_count, summary.green_count) == (1, 0, 2)
        assert summary.percentage(Status.GREEN) == pytest.approx(66.666, rel=1e-3)

    def test_empty_summary_percentage(self):
        assert Summary().percentage(Status.RED) == 0.0
