"""
Queue balance evaluator

Splits a counter by its operation label and compares the number of add
operations with the number of remove operations. A growing difference means
items are piling up in the queue.
"""

from ..metrics import MetricStore
from ..models import EvaluationResult, LoadLevel, QueueRule, RuleType
from .base import (
    Evaluator,
    band_higher_is_worse,
    interpolate,
    not_evaluated,
    register_evaluator,
    select_thresholds,
)


@register_evaluator
class QueueEvaluator(Evaluator):
    rule_type = RuleType.QUEUE

    def evaluate(
        self, rule: QueueRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        metric = store.get_metric(rule.metric_name)
        if metric is None:
            return not_evaluated(rule.name, f"Metric {rule.metric_name} not found")

        config = rule.queue_config
        by_operation = metric.values_by_label(config.operation_label)
        added = by_operation.get(config.add_value, 0.0)
        removed = by_operation.get(config.remove_value, 0.0)
        diff = added - removed

        thresholds = select_thresholds(rule, load_level)
        status = band_higher_is_worse(diff, thresholds.low, thresholds.high)

        message = interpolate(
            rule.messages.for_status(status),
            diff,
            {"add": added, "remove": removed, "diff": diff},
        )
        return EvaluationResult(rule_name=rule.name, status=status, message=message, value=diff)
