"""
Histogram evaluators

``HistogramEvaluator`` estimates P95/P99 latency from cumulative buckets and
grades the P95. The percentile is reported as the upper boundary of the
first bucket whose cumulative count reaches the target, not interpolated
within the bucket.

``evaluate_histogram_overflow`` is not driven by rules: it runs for every
histogram in the snapshot and flags bucket layouts whose highest finite
boundary is too low, i.e. where too many observations land in +Inf.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..metrics import MetricSample, MetricStore, parse_le
from ..models import EvaluationResult, HistogramRule, LoadLevel, RuleType, Status
from .base import (
    Evaluator,
    band_higher_is_worse,
    format_human_number,
    interpolate,
    not_evaluated,
    register_evaluator,
    select_thresholds,
)

logger = logging.getLogger(__name__)

OVERFLOW_RED_PCT = 50.0
OVERFLOW_YELLOW_PCT = 25.0
OVERFLOW_REVIEW_STATUS = "Automatically generated rule; review by the code author"


@register_evaluator
class HistogramEvaluator(Evaluator):
    rule_type = RuleType.HISTOGRAM

    def evaluate(
        self, rule: HistogramRule, store: MetricStore, load_level: LoadLevel
    ) -> EvaluationResult:
        bucket_metric = store.get_metric(f"{rule.metric_name}_bucket")
        if bucket_metric is None:
            return not_evaluated(rule.name, f"Histogram buckets for {rule.metric_name} not found")

        buckets = sorted(bucket_metric.histogram_buckets(), key=lambda b: b.le)
        if not buckets:
            return not_evaluated(rule.name, "No histogram buckets found")

        total = buckets[-1].count
        if total == 0:
            return not_evaluated(rule.name, "No histogram data yet")

        p95_target = total * 0.95
        p99_target = total * 0.99
        p95: Optional[float] = None
        p99: Optional[float] = None
        for bucket in buckets:
            if p95 is None and bucket.count >= p95_target:
                p95 = bucket.le
            if p99 is None and bucket.count >= p99_target:
                p99 = bucket.le
            if p95 is not None and p99 is not None:
                break

        # The last bucket always reaches both targets, so neither stays None
        p95 = p95 if p95 is not None else buckets[-1].le
        p99 = p99 if p99 is not None else buckets[-1].le

        thresholds = select_thresholds(rule, load_level)
        status = band_higher_is_worse(p95, thresholds.p95_good, thresholds.p95_warn)

        message = interpolate(rule.messages.for_status(status), p95, {"p95": p95, "p99": p99})
        return EvaluationResult(
            rule_name=rule.name,
            status=status,
            message=message,
            value=p95,
            details=[f"p95: {p95:.3f}", f"p99: {p99:.3f}", f"count: {total:.0f}"],
        )


@dataclass(frozen=True)
class SeriesOverflow:
    """+Inf overflow figures for one label combination of a histogram"""

    percentage: float
    inf_observations: float
    total: float
    highest_finite_le: float


def overflow_status(percentage: float) -> Status:
    if percentage > OVERFLOW_RED_PCT:
        return Status.RED
    if percentage > OVERFLOW_YELLOW_PCT:
        return Status.YELLOW
    return Status.GREEN


def measure_series_overflow(samples: list[MetricSample]) -> Optional[SeriesOverflow]:
    """
    Compute the +Inf share for one series of ``_bucket`` samples

    Returns None when the series has no +Inf bucket, no finite bucket or a
    zero total, since there is nothing to judge.
    """
    inf_count: Optional[float] = None
    highest: Optional[tuple[float, float]] = None

    for sample in samples:
        le = parse_le(sample.labels.get("le", ""))
        if le is None:
            continue
        if math.isinf(le):
            inf_count = sample.value
        elif highest is None or le > highest[0]:
            highest = (le, sample.value)

    if inf_count is None or highest is None or inf_count == 0:
        return None

    highest_le, highest_count = highest
    inf_observations = inf_count - highest_count
    if inf_observations < 0:
        # Cumulative counts went backwards; the series is inconsistent
        return SeriesOverflow(-1.0, inf_observations, inf_count, highest_le)

    return SeriesOverflow(
        percentage=inf_observations / inf_count * 100.0,
        inf_observations=inf_observations,
        total=inf_count,
        highest_finite_le=highest_le,
    )


def evaluate_single_overflow(base_name: str, store: MetricStore) -> Optional[EvaluationResult]:
    """Worst-case +Inf overflow across all series of one histogram"""
    bucket_metric = store.get_metric(f"{base_name}_bucket")
    if bucket_metric is None:
        return None

    measured = [
        measure_series_overflow(samples)
        for _, samples in sorted(bucket_metric.series().items())
    ]
    measured = [m for m in measured if m is not None]
    if not measured:
        return None

    consistent = [m for m in measured if m.percentage >= 0]
    if len(consistent) < len(measured):
        logger.debug(f"Skipped inconsistent bucket series for {base_name}")
    worst = max(consistent, key=lambda m: m.percentage, default=SeriesOverflow(0.0, 0.0, 0.0, 0.0))

    pct = format_human_number(worst.percentage)
    highest_le = format_human_number(worst.highest_finite_le)

    details = []
    description = store.help_text(base_name) or bucket_metric.help
    if description:
        details.append(f"Metric Description: {description}")
    details += [
        f"Total Number of Observations: {format_human_number(worst.total)} unit",
        f"Observations in +Inf bucket: {format_human_number(worst.inf_observations)} unit",
        f"Percentage of observations in +Inf bucket: {pct} %",
        f"Highest non-infinity bucket: {highest_le} unit",
    ]

    action_user = action_developer = ""
    if worst.percentage > OVERFLOW_YELLOW_PCT:
        message = (
            f"{pct}% of observations are in +Inf bucket "
            f"({format_human_number(worst.inf_observations)} out of "
            f"{format_human_number(worst.total)}). This indicates the metric designer "
            "likely didn't expect processing durations to be so high. "
            f"Highest non-infinity bucket: {highest_le}"
        )
        action_user = (
            f"Further investigation is required to understand why values exceed {highest_le}. "
            "Check if there are other alerts for this specific metric with more precise context."
        )
        action_developer = (
            "Review code paths and metric instrumentation to confirm whether "
            "observed latencies are expected."
        )
    else:
        message = (
            f"{pct}% of observations in +Inf bucket (acceptable). "
            f"Highest non-infinity bucket: {highest_le}"
        )

    return EvaluationResult(
        rule_name=f"{base_name} (+Inf overflow check)",
        status=overflow_status(worst.percentage),
        message=message,
        value=worst.percentage,
        details=details,
        review_status=OVERFLOW_REVIEW_STATUS,
        remediation=action_user,
        potential_action_user=action_user,
        potential_action_developer=action_developer,
    )


def evaluate_histogram_overflow(store: MetricStore) -> list[EvaluationResult]:
    """Run the +Inf overflow check for every histogram in the snapshot"""
    results = []
    for base_name in store.histogram_base_names():
        result = evaluate_single_overflow(base_name, store)
        if result is not None:
            results.append(result)
    return results
