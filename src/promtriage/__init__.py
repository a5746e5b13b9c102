"""
promtriage - rule-based health triage for Prometheus metrics dumps

Parses a Prometheus text exposition snapshot, evaluates a directory of
declarative TOML rules against it and produces a RED/YELLOW/GREEN report.
"""

__version__ = "0.1.0"

# Core API exports
from .analyzer import AnalysisOptions, analyze_file, evaluate_all_rules, run_analysis
from .config import AnalyzerConfig
from .metrics import MetricStore, parse_metrics_file, parse_metrics_text
from .models import AnalysisReport, EvaluationResult, LoadLevel, Status
from .rules import RuleSet, load_rules

__all__ = [
    "analyze_file",
    "run_analysis",
    "evaluate_all_rules",
    "AnalysisOptions",
    "AnalyzerConfig",
    "MetricStore",
    "parse_metrics_file",
    "parse_metrics_text",
    "AnalysisReport",
    "EvaluationResult",
    "LoadLevel",
    "Status",
    "RuleSet",
    "load_rules",
    "__version__",
]
