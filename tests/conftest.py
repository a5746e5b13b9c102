"""
Pytest configuration and shared fixtures for promtriage tests

Provides metric store builders, rule builders, and paths to the bundled
rule set and metrics fixture.
"""

from pathlib import Path
from typing import Any, Union

import pytest

from promtriage.config import set_config
from promtriage.metrics import Metric, MetricSample, MetricStore, parse_metrics_file
from promtriage.models import rule_adapter
from promtriage.observability.metrics import reset_metrics
from promtriage.rules import RuleSet

REPO_ROOT = Path(__file__).parent.parent
RULES_DIR = REPO_ROOT / "automated-rules"
FIXTURES_DIR = Path(__file__).parent / "fixtures"
SAMPLE_METRICS = FIXTURES_DIR / "prod-sensor-metrics.txt"

SampleSpec = Union[float, list[tuple[dict[str, str], float]]]


def build_store(metrics: dict[str, SampleSpec], help_texts: dict[str, str] = None) -> MetricStore:
    """
    Build a MetricStore from plain values

    Each value is either a single float (one unlabelled sample) or a list of
    (labels, value) pairs.
    """
    help_texts = help_texts or {}
    built = {}
    for name, spec in metrics.items():
        if isinstance(spec, (int, float)):
            samples = [MetricSample(labels={}, value=float(spec))]
        else:
            samples = [MetricSample(labels=labels, value=float(value)) for labels, value in spec]
        built[name] = Metric(name=name, help=help_texts.get(name, ""), samples=samples)
    for name, text in help_texts.items():
        built.setdefault(name, Metric(name=name, help=text))
    return MetricStore(built)


def buckets(pairs: list[tuple[str, float]], **labels: str) -> list[tuple[dict[str, str], float]]:
    """Turn [(le, count), ...] into bucket samples sharing ``labels``"""
    return [({**labels, "le": le}, count) for le, count in pairs]


def make_rule(**fields: Any):
    return rule_adapter.validate_python(fields)


@pytest.fixture(autouse=True)
def clean_globals():
    """Keep the global configuration and metrics collector per test"""
    set_config(None)
    reset_metrics()
    yield
    set_config(None)
    reset_metrics()


@pytest.fixture
def rules_dir() -> Path:
    return RULES_DIR


@pytest.fixture
def sample_metrics_file() -> Path:
    return SAMPLE_METRICS


@pytest.fixture
def sample_store() -> MetricStore:
    """The parsed metrics fixture"""
    return parse_metrics_file(SAMPLE_METRICS)


@pytest.fixture
def rule_set() -> RuleSet:
    """The bundled rule set, including load detection rules"""
    return RuleSet.load(RULES_DIR)


@pytest.fixture
def write_rule(tmp_path):
    """Write a TOML rule file into a temporary rules directory"""

    def _write(filename: str, content: str) -> Path:
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
