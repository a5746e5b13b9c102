"""
Cache hit rate evaluator

hits / (hits + misses) * 100, where a higher rate is better. The rule's
``higher_is_worse`` flag is not consulted for this rule kind.
"""

from ..metrics import MetricStore
from ..models import CacheHitRule, EvaluationResult, LoadLevel, RuleType
from .base import (
    Evaluator,
    band_lower_is_worse,
    interpolate,
    not_evaluated,
    register_evaluator,
    select_thresholds,
)

DEFAULT_ZERO_ACTIVITY = "No cache activity yet (0 hits, 0 misses)"


@register_evaluator
class CacheHitEvaluator(Evaluator):
    rule_type = RuleType.CACHE_HIT

    def evaluate(
        self, rule: CacheHitRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        config = rule.cache_config

        hits_metric = store.get_metric(config.hits_metric)
        if hits_metric is None:
            return not_evaluated(rule.name, f"Hits metric {config.hits_metric} not found")

        misses_metric = store.get_metric(config.misses_metric)
        if misses_metric is None:
            return not_evaluated(rule.name, f"Misses metric {config.misses_metric} not found")

        hits = hits_metric.single_value()
        misses = misses_metric.single_value()
        total = hits + misses

        if total == 0:
            return not_evaluated(rule.name, rule.messages.zero_activity or DEFAULT_ZERO_ACTIVITY)

        hit_rate = hits / total * 100
        thresholds = select_thresholds(rule, load_level)
        status = band_lower_is_worse(hit_rate, thresholds.low, thresholds.high)

        message = interpolate(
            rule.messages.for_status(status), hit_rate, {"hits": hits, "misses": misses}
        )
        return EvaluationResult(rule_name=rule.name, status=status, message=message, value=hit_rate)
