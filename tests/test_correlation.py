"""
Test suite for correlation adjustments
"""

import pytest

from promtriage.correlation import apply_correlation, condition_holds
from promtriage.models import CorrelationCondition, EvaluationResult, Status

from conftest import build_store, make_rule


def rule_with(**correlation):
    return make_rule(rule_type="gauge_threshold", metric_name="m", correlation=correlation)


def result(status: Status) -> EvaluationResult:
    return EvaluationResult(rule_name="m", status=status, message="msg", value=1.0)


class TestConditionHolds:
    """Test single correlation conditions"""

    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            ("gt", 5, True),
            ("gt", 10, False),
            ("gte", 10, True),
            ("lt", 11, True),
            ("lte", 10, True),
            ("eq", 10, True),
            ("eq", 9, False),
        ],
    )
    def test_operators(self, operator, value, expected):
        condition = CorrelationCondition(metric_name="x", operator=operator, value=value)
        assert condition_holds(condition, build_store({"x": 10})) is expected

    def test_multiple_samples_are_summed(self):
        store = build_store({"x": [({"a": "1"}, 4), ({"a": "2"}, 7)]})
        condition = CorrelationCondition(metric_name="x", operator="gt", value=10)
        assert condition_holds(condition, store)

    def test_missing_metric_never_holds(self):
        condition = CorrelationCondition(metric_name="absent", operator="lt", value=100)
        assert not condition_holds(condition, build_store({}))


class TestApplyCorrelation:
    """Test status adjustment by suppress/elevate conditions"""

    def test_no_correlation_returns_same_result(self):
        original = result(Status.RED)
        rule = make_rule(rule_type="gauge_threshold", metric_name="m")
        assert apply_correlation(rule, build_store({}), original) is original

    def test_suppress_steps_down(self):
        rule = rule_with(suppress_if=[{"metric_name": "load", "operator": "lt", "value": 100}])
        adjusted = apply_correlation(rule, build_store({"load": 5}), result(Status.RED))
        assert adjusted.status is Status.YELLOW
        assert adjusted.message == "msg"

    def test_suppress_saturates_at_green(self):
        rule = rule_with(suppress_if=[{"metric_name": "load", "operator": "lt", "value": 100}])
        original = result(Status.GREEN)
        assert apply_correlation(rule, build_store({"load": 5}), original) is original

    def test_elevate_steps_up(self):
        rule = rule_with(elevate_if=[{"metric_name": "errors", "operator": "gt", "value": 0}])
        adjusted = apply_correlation(rule, build_store({"errors": 3}), result(Status.GREEN))
        assert adjusted.status is Status.YELLOW

    def test_elevate_saturates_at_red(self):
        rule = rule_with(elevate_if=[{"metric_name": "errors", "operator": "gt", "value": 0}])
        store = build_store({"errors": 3})
        assert apply_correlation(rule, store, result(Status.YELLOW)).status is Status.RED
        original = result(Status.RED)
        assert apply_correlation(rule, store, original) is original

    def test_explicit_target_status(self):
        rule = rule_with(
            elevate_if=[{"metric_name": "errors", "operator": "gt", "value": 0, "status": "RED"}]
        )
        adjusted = apply_correlation(rule, build_store({"errors": 3}), result(Status.GREEN))
        assert adjusted.status is Status.RED

    def test_suppress_then_elevate(self):
        rule = rule_with(
            suppress_if=[{"metric_name": "a", "operator": "eq", "value": 1}],
            elevate_if=[
                {"metric_name": "b", "operator": "eq", "value": 1},
                {"metric_name": "c", "operator": "eq", "value": 1},
            ],
        )
        store = build_store({"a": 1, "b": 1, "c": 1})
        assert apply_correlation(rule, store, result(Status.YELLOW)).status is Status.RED

    def test_condition_not_met(self):
        rule = rule_with(suppress_if=[{"metric_name": "load", "operator": "lt", "value": 100}])
        original = result(Status.RED)
        assert apply_correlation(rule, build_store({"load": 500}), original) is original
