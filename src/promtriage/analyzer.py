"""
Analysis orchestration

``evaluate_all_rules`` is the engine: filter rules by ACS version, evaluate
each one, apply correlation and rule metadata, append the +Inf overflow
results and tally the summary. ``run_analysis`` and ``analyze_file`` wrap it
with version detection, load level resolution and file handling.
"""

import logging
from collections.abc import Sequence
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .correlation import apply_correlation
from .errors import InvalidVersionError
from .evaluators import evaluate_histogram_overflow, registry
from .loadlevel import LoadLevelDetector, resolve_load_level
from .metrics import MetricStore, parse_metrics_file
from .models import AnalysisReport, EvaluationResult, LoadLevel, RuleBase, Summary
from .observability import get_metrics, set_attribute, trace_operation
from .rules import RuleSet
from .versions import filter_rules_by_version, parse_version

logger = logging.getLogger(__name__)

OVERFLOW_RULE_TYPE = "histogram_overflow"


@dataclass
class AnalysisOptions:
    """Inputs for a file-level analysis run; empty strings mean "not set" """

    rules_dir: Union[str, Path] = "./automated-rules"
    load_level_dir: Optional[Union[str, Path]] = None
    cluster_name: str = ""
    load_level_override: str = ""
    acs_version_override: str = ""


def evaluate_rule(rule: RuleBase, store: MetricStore, load_level: LoadLevel) -> EvaluationResult:
    """Evaluate one rule, then apply its correlation block and metadata"""
    result = registry.evaluate(rule, store, load_level)
    result = apply_correlation(rule, store, result)

    remediation = rule.remediation_for(result.status)
    return result.model_copy(
        update={
            "review_status": rule.review_status(),
            "remediation": remediation,
            "potential_action_user": remediation,
            "timestamp": datetime.now(),
        }
    )


def evaluate_all_rules(
    rules: Sequence[RuleBase],
    store: MetricStore,
    load_level: LoadLevel,
    acs_version: str = "",
) -> AnalysisReport:
    """
    Evaluate a rule set against one metrics snapshot

    Rule results come first, in rule order, followed by one overflow result
    per histogram in the snapshot. The summary counts every result.
    """
    metrics = get_metrics()

    with trace_operation("promtriage.evaluate_all_rules", {"rules.count": len(rules)}):
        results = []
        for rule in filter_rules_by_version(rules, acs_version):
            result = evaluate_rule(rule, store, load_level)
            results.append(result)
            if metrics:
                metrics.record_rule_result(rule.rule_type, result.status.value)

        for result in evaluate_histogram_overflow(store):
            results.append(result)
            if metrics:
                metrics.record_rule_result(OVERFLOW_RULE_TYPE, result.status.value)

        summary = Summary.from_results(results)
        set_attribute("results.red", summary.red_count)

    return AnalysisReport(
        acs_version=acs_version,
        load_level=load_level,
        results=results,
        summary=summary,
    )


def resolve_acs_version(store: MetricStore, override: str = "") -> str:
    """Use the override when given, otherwise detect it from the snapshot"""
    if override:
        if parse_version(override) is None:
            raise InvalidVersionError(f"invalid ACS version override: {override}")
        return override

    detected = store.detect_acs_version()
    if detected:
        logger.info(f"Detected ACS version: {detected}")
        return detected

    logger.warning("Could not detect ACS version, evaluating all rules")
    return ""


def run_analysis(
    store: MetricStore,
    rule_set: RuleSet,
    cluster_name: str = "",
    load_level_override: str = "",
    acs_version_override: str = "",
) -> AnalysisReport:
    """Analyze an already parsed snapshot with an already loaded rule set"""
    metrics = get_metrics()

    with metrics.time_analysis() if metrics else nullcontext():
        acs_version = resolve_acs_version(store, acs_version_override)

        detector = LoadLevelDetector(rule_set.load_rules)
        load_level = resolve_load_level(store, detector, load_level_override)
        logger.info(f"Detected load level: {load_level.value}")

        report = evaluate_all_rules(rule_set.rules, store, load_level, acs_version)

    return report.model_copy(update={"cluster_name": cluster_name})


def analyze_file(metrics_file: Union[str, Path], options: Optional[AnalysisOptions] = None) -> AnalysisReport:
    """
    Run the full pipeline on a metrics dump on disk

    Raises:
        RuleLoadError: the rules directory or a rule file is invalid
        MetricsParseError: the metrics file cannot be read
        InvalidLoadLevelError: the load level override is not low/medium/high
        InvalidVersionError: the ACS version override does not parse
    """
    options = options or AnalysisOptions()
    cluster_name = options.cluster_name or extract_cluster_name(metrics_file)

    with trace_operation("promtriage.analyze_file", {"metrics.file": str(metrics_file)}):
        logger.info(f"Loading rules from {options.rules_dir}")
        with trace_operation("promtriage.load_rules"):
            rule_set = RuleSet.load(options.rules_dir, options.load_level_dir)

        logger.info(f"Parsing metrics from {metrics_file}")
        with trace_operation("promtriage.parse_metrics"):
            store = parse_metrics_file(metrics_file)
        logger.info(f"Parsed {len(store)} metrics")

        return run_analysis(
            store,
            rule_set,
            cluster_name=cluster_name,
            load_level_override=options.load_level_override,
            acs_version_override=options.acs_version_override,
        )


def extract_cluster_name(filename: Union[str, Path]) -> str:
    """Derive a cluster name, e.g. ``prod-sensor-metrics.txt`` -> ``prod``"""
    name = Path(filename).name
    suffix = Path(name).suffix
    if suffix:
        name = name[: -len(suffix)]
    for trailer in ("-sensor-metrics", "-metrics"):
        if name.endswith(trailer):
            name = name[: -len(trailer)]
    return name
