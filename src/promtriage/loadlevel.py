"""
Cluster load level detection

Combines the configured metrics into a weighted average and maps it onto the
first matching band of the load detection rule.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from .errors import InvalidLoadLevelError
from .metrics import MetricStore
from .models import LoadDetectionRule, LoadLevel

logger = logging.getLogger(__name__)


class LoadLevelDetector:
    """Detects the cluster load level from a metrics snapshot"""

    def __init__(self, rules: Sequence[LoadDetectionRule] = ()):
        self.rules = list(rules)

    def score(self, store: MetricStore) -> Optional[float]:
        """Weighted average of the first rule's metrics, or None if none were found"""
        if not self.rules:
            return None

        weighted_sum = 0.0
        total_weight = 0.0
        for definition in self.rules[0].metrics:
            metric = store.get_metric(definition.metric)
            if metric is None:
                continue
            weighted_sum += metric.sum_values() * definition.weight
            total_weight += definition.weight

        if total_weight == 0:
            return None
        return weighted_sum / total_weight

    def detect(self, store: MetricStore) -> LoadLevel:
        score = self.score(store)
        if score is None:
            logger.debug("No load detection metrics found, assuming medium load")
            return LoadLevel.MEDIUM

        for band in self.rules[0].thresholds:
            if band.contains(score):
                logger.debug(f"Load score {score:.2f} maps to {band.level.value}")
                return band.level

        return LoadLevel.MEDIUM


def parse_load_level(value: str) -> LoadLevel:
    try:
        return LoadLevel(value.strip().lower())
    except ValueError:
        raise InvalidLoadLevelError(f"invalid load level override: {value}") from None


def resolve_load_level(
    store: MetricStore, detector: LoadLevelDetector, override: Optional[str] = None
) -> LoadLevel:
    """Use the override when given, otherwise detect from the snapshot"""
    if override:
        return parse_load_level(override)
    return detector.detect(store)
