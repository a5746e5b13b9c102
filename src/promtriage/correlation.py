"""
Correlation adjustments

After a rule is evaluated its status can be moved by conditions on other
metrics: ``suppress_if`` conditions that hold step the status down one level
and ``elevate_if`` conditions step it up, unless the condition names an
explicit target status. Conditions apply in order, suppressions first.
"""

import logging
import operator
from typing import Callable

from .metrics import MetricStore
from .models import CorrelationCondition, EvaluationResult, RuleBase

logger = logging.getLogger(__name__)

OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "gt": operator.gt,
    "lt": operator.lt,
    "eq": operator.eq,
    "gte": operator.ge,
    "lte": operator.le,
}


def condition_holds(condition: CorrelationCondition, store: MetricStore) -> bool:
    """Evaluate a condition; a missing metric never holds"""
    metric = store.get_metric(condition.metric_name)
    if metric is None:
        return False

    if len(metric.samples) == 1:
        value = metric.samples[0].value
    else:
        value = metric.sum_values()

    compare = OPERATORS.get(condition.operator)
    return compare is not None and compare(value, condition.value)


def apply_correlation(
    rule: RuleBase, store: MetricStore, result: EvaluationResult
) -> EvaluationResult:
    """Return ``result`` with its status adjusted by the rule's correlation block"""
    if rule.correlation is None:
        return result

    status = result.status
    for condition in rule.correlation.suppress_if:
        if condition_holds(condition, store):
            status = condition.status or status.suppressed()
    for condition in rule.correlation.elevate_if:
        if condition_holds(condition, store):
            status = condition.status or status.elevated()

    if status is result.status:
        return result

    logger.debug(f"Correlation moved {result.rule_name} from {result.status.value} to {status.value}")
    return result.model_copy(update={"status": status})
