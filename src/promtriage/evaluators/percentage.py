"""
Percentage evaluator

Computes numerator / denominator * 100 from two metrics. A higher
percentage is always worse for this rule kind. A zero denominator means
there has been no activity yet and is reported as GREEN.
"""

from ..metrics import MetricStore
from ..models import EvaluationResult, LoadLevel, PercentageRule, RuleType
from .base import (
    Evaluator,
    band_higher_is_worse,
    interpolate,
    not_evaluated,
    register_evaluator,
    select_thresholds,
)

DEFAULT_ZERO_ACTIVITY = "No activity yet (denominator is zero)"


@register_evaluator
class PercentageEvaluator(Evaluator):
    rule_type = RuleType.PERCENTAGE

    def evaluate(
        self, rule: PercentageRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        config = rule.percentage_config

        numerator_metric = store.get_metric(config.numerator)
        if numerator_metric is None:
            return not_evaluated(rule.name, f"Numerator metric {config.numerator} not found")

        denominator_metric = store.get_metric(config.denominator)
        if denominator_metric is None:
            return not_evaluated(
                rule.name, f"Denominator metric {config.denominator} not found"
            )

        numerator = numerator_metric.single_value()
        denominator = denominator_metric.single_value()

        if denominator == 0:
            return not_evaluated(rule.name, rule.messages.zero_activity or DEFAULT_ZERO_ACTIVITY)

        percentage = numerator / denominator * 100
        thresholds = select_thresholds(rule, load_level)
        status = band_higher_is_worse(percentage, thresholds.low, thresholds.high)

        message = interpolate(
            rule.messages.for_status(status),
            percentage,
            {"numerator": numerator, "denominator": denominator},
        )
        return EvaluationResult(
            rule_name=rule.name, status=status, message=message, value=percentage
        )
