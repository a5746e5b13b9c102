"""
Rule evaluators

One evaluator per rule kind, each registered with the global registry on
import:
- GaugeEvaluator, PercentageEvaluator, QueueEvaluator
- HistogramEvaluator, CacheHitEvaluator, CompositeEvaluator

The +Inf overflow check is not rule-driven and is exposed as a function.
"""

# Import evaluators to trigger registration
from .base import (
    Evaluator,
    EvaluatorRegistry,
    format_human_number,
    interpolate,
    register_evaluator,
    registry,
    select_thresholds,
)
from .cache import CacheHitEvaluator
from .composite import CompositeEvaluator
from .gauge import GaugeEvaluator
from .histogram import HistogramEvaluator, evaluate_histogram_overflow
from .percentage import PercentageEvaluator
from .queue import QueueEvaluator

__all__ = [
    "registry",
    "EvaluatorRegistry",
    "Evaluator",
    "register_evaluator",
    "select_thresholds",
    "interpolate",
    "format_human_number",
    "evaluate_histogram_overflow",
    "GaugeEvaluator",
    "PercentageEvaluator",
    "QueueEvaluator",
    "HistogramEvaluator",
    "CacheHitEvaluator",
    "CompositeEvaluator",
]
