"""
Base evaluator interface and shared evaluation helpers

Defines the Evaluator contract, the registry mapping each rule kind to its
evaluator, load-aware threshold selection, and message interpolation.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Optional

from ..errors import PromtriageError
from ..metrics import MetricStore
from ..models import EvaluationResult, LoadLevel, RuleBase, RuleType, Status, Thresholds

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{(\w+)(?::([^}]+))?\}")


class Evaluator(ABC):
    """
    Abstract base class for rule evaluators

    An evaluator turns one rule plus one metrics snapshot into an
    EvaluationResult. Missing data must never raise: it is reported as a
    GREEN result whose message explains what was missing.
    """

    rule_type: ClassVar[RuleType]

    @abstractmethod
    def evaluate(
        self, rule: RuleBase, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        """Evaluate ``rule`` against ``store`` at the given load level"""


class EvaluatorRegistry:
    """
    Registry for the available evaluators

    Holds one evaluator instance per rule kind and dispatches rules to them.
    """

    def __init__(self):
        self._evaluators: dict[RuleType, Evaluator] = {}

    def register(self, evaluator_class: type[Evaluator]) -> None:
        rule_type = getattr(evaluator_class, "rule_type", None)
        if rule_type is None:
            raise ValueError(
                f"Evaluator class {evaluator_class.__name__} must have a 'rule_type' attribute"
            )

        self._evaluators[rule_type] = evaluator_class()
        logger.debug(f"Registered evaluator: {rule_type.value}")

    def get(self, rule_type: RuleType) -> Optional[Evaluator]:
        return self._evaluators.get(rule_type)

    def supported_types(self) -> list[RuleType]:
        return list(self._evaluators)

    def evaluate(
        self, rule: RuleBase, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        evaluator = self.get(rule.kind)
        if evaluator is None:
            raise PromtriageError(f"No evaluator registered for rule type {rule.rule_type}")
        return evaluator.evaluate(rule, store, load_level)


# Global registry instance
registry = EvaluatorRegistry()


def register_evaluator(evaluator_class: type[Evaluator]) -> type[Evaluator]:
    """Decorator for registering evaluator classes"""
    registry.register(evaluator_class)
    return evaluator_class


def select_thresholds(rule: RuleBase, load_level: LoadLevel) -> Thresholds:
    """
    Resolve the thresholds in force for ``rule`` at ``load_level``

    A load-level block only replaces low/high/higher_is_worse when it sets
    low or high; each of p95_good, p95_warn and min_ratio is replaced
    independently when non-zero. Anything unset falls back to the rule's
    default thresholds.
    """
    if rule.load_level_thresholds is None:
        return rule.thresholds

    selected = rule.load_level_thresholds.for_level(load_level)
    if selected is None:
        return rule.thresholds

    update: dict[str, Any] = {}
    if selected.low > 0 or selected.high > 0:
        if selected.low > 0:
            update["low"] = selected.low
        if selected.high > 0:
            update["high"] = selected.high
        update["higher_is_worse"] = selected.higher_is_worse
    for name in ("p95_good", "p95_warn", "min_ratio"):
        if getattr(selected, name) > 0:
            update[name] = getattr(selected, name)

    return rule.thresholds.model_copy(update=update)


def band_higher_is_worse(value: float, low: float, high: float) -> Status:
    if value < low:
        return Status.GREEN
    if value < high:
        return Status.YELLOW
    return Status.RED


def band_lower_is_worse(value: float, low: float, high: float) -> Status:
    if value >= high:
        return Status.GREEN
    if value >= low:
        return Status.YELLOW
    return Status.RED


def _default_format(value: Any) -> str:
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def interpolate(template: str, value: float, extras: Optional[Mapping[str, Any]] = None) -> str:
    """
    Fill ``{name}`` and ``{name:spec}`` placeholders in a message template

    ``value`` is always bound and defaults to no decimals; the other names
    come from ``extras``. Format specs follow the format-spec mini-language.
    Unknown placeholders, and specs that do not apply to the bound value,
    are left in the text untouched.
    """
    bindings: dict[str, Any] = {**(extras or {}), "value": value}

    def substitute(match: re.Match) -> str:
        name, spec = match.group(1), match.group(2)
        if name not in bindings:
            return match.group(0)
        bound = bindings[name]
        if spec is None:
            return format(bound, ".0f") if name == "value" else _default_format(bound)
        try:
            return format(bound, spec)
        except (TypeError, ValueError):
            logger.debug(f"Cannot apply format spec {spec!r} to {name}")
            return match.group(0)

    return _PLACEHOLDER_RE.sub(substitute, template)


def format_human_number(value: float, decimals: int = 2) -> str:
    """Format with space-separated thousands, e.g. 1234567.5 -> '1 234 567.50'"""
    return f"{value:,.{decimals}f}".replace(",", " ")


def not_evaluated(rule_name: str, message: str, value: float = 0.0) -> EvaluationResult:
    """GREEN result for a rule whose data is absent or inactive"""
    return EvaluationResult(rule_name=rule_name, status=Status.GREEN, message=message, value=value)
