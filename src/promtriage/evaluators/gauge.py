"""
Gauge threshold evaluator

Compares the first sample of a gauge against low/high boundaries. Three
shapes are supported:

- higher is worse: below low is GREEN, below high is YELLOW, otherwise RED
- lower is worse: at or above high is GREEN, at or above low is YELLOW
- existence check (low == high == 0, lower is worse): any positive value is
  GREEN and zero is RED, with no YELLOW band
"""

from ..metrics import MetricStore
from ..models import EvaluationResult, GaugeRule, LoadLevel, RuleType, Status
from .base import (
    Evaluator,
    band_higher_is_worse,
    band_lower_is_worse,
    format_human_number,
    interpolate,
    not_evaluated,
    register_evaluator,
    select_thresholds,
)


@register_evaluator
class GaugeEvaluator(Evaluator):
    rule_type = RuleType.GAUGE

    def evaluate(
        self, rule: GaugeRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        if not rule.metric_name:
            return not_evaluated(rule.name, "Metric name not specified")

        metric = store.get_metric(rule.metric_name)
        if metric is None:
            return not_evaluated(rule.name, f"Metric {rule.metric_name} not found")

        value = metric.single_value()
        thresholds = select_thresholds(rule, load_level)

        if thresholds.higher_is_worse:
            status = band_higher_is_worse(value, thresholds.low, thresholds.high)
        elif thresholds.is_existence_check:
            status = Status.GREEN if value > 0 else Status.RED
        else:
            status = band_lower_is_worse(value, thresholds.low, thresholds.high)

        message = interpolate(
            rule.messages.for_status(status),
            value,
            {"value_human": format_human_number(value, 0)},
        )
        return EvaluationResult(rule_name=rule.name, status=status, message=message, value=value)
