"""
Composite rule evaluator

Binds several source metrics to short names and runs an ordered list of
checks against them; the first check that fires decides the status and
message.
"""

from collections.abc import Mapping

from ..metrics import MetricStore
from ..models import (
    CompositeCheck,
    CompositeRule,
    EvaluationResult,
    LoadLevel,
    RuleType,
    Status,
)
from .base import Evaluator, not_evaluated, register_evaluator, select_thresholds


def render_composite_message(template: str, values: Mapping[str, float]) -> str:
    """Replace each literal ``{name}`` with the bound value, rounded to an integer"""
    message = template
    for name, value in values.items():
        message = message.replace(f"{{{name}}}", f"{value:.0f}")
    return message


def check_fires(check: CompositeCheck, values: Mapping[str, float], default_min_ratio: float) -> bool:
    if check.check_type == "not_zero":
        return any(values.get(name) == 0 for name in check.metrics if name in values)

    if check.check_type == "ratio":
        if check.numerator not in values or check.denominator not in values:
            return False
        denominator = values[check.denominator]
        if denominator == 0:
            return False
        min_ratio = check.min_ratio or default_min_ratio
        return values[check.numerator] / denominator < min_ratio

    return False


@register_evaluator
class CompositeEvaluator(Evaluator):
    rule_type = RuleType.COMPOSITE

    def evaluate(
        self, rule: CompositeRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        values: dict[str, float] = {}
        details = []
        for bound in rule.composite_config.metrics:
            metric = store.get_metric(bound.source)
            if metric is None:
                return not_evaluated(rule.name, f"Metric {bound.source} not found")
            values[bound.name] = metric.single_value() or 0.0
            details.append(f"{bound.name}: {values[bound.name]:.3f}")

        default_min_ratio = select_thresholds(rule, load_level).min_ratio
        status = Status.GREEN
        template = rule.messages.green
        for check in rule.composite_config.checks:
            if check_fires(check, values, default_min_ratio):
                status = Status.parse(check.status) or status
                template = check.message
                break

        return EvaluationResult(
            rule_name=rule.name,
            status=status,
            message=render_composite_message(template, values),
            details=details,
        )
