"""
Parsed Prometheus metrics and their query surface

Metrics are keyed by sample name exactly as they appear in the dump, so a
histogram ``foo`` shows up as ``foo_bucket``, ``foo_sum`` and ``foo_count``
entries (plus a ``foo`` entry carrying the HELP/TYPE metadata). Parsing is
delegated to ``prometheus_client.parser``.
"""

import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from prometheus_client.parser import text_string_to_metric_families

from .errors import MetricsParseError
from .observability import trace_sync

logger = logging.getLogger(__name__)

# Metrics whose labels carry the ACS build version, most specific first
VERSION_METRICS = (
    "rox_sensor_version_info",
    "rox_central_version_info",
    "rox_version",
)
VERSION_LABELS = ("version", "rox_version")


@dataclass(frozen=True)
class MetricSample:
    labels: Mapping[str, str] = field(default_factory=dict)
    value: float = 0.0


@dataclass(frozen=True)
class HistogramBucket:
    le: float
    count: float


def series_key(labels: Mapping[str, str], exclude: tuple[str, ...] = ("le",)) -> str:
    """Fingerprint a label set as sorted ``key=value`` pairs"""
    return ",".join(
        f"{key}={value}" for key, value in sorted(labels.items()) if key not in exclude
    )


def parse_le(raw: str) -> Optional[float]:
    try:
        return float(raw)
    except ValueError:
        return None


@dataclass
class Metric:
    """A named metric and all of its samples, in dump order"""

    name: str
    help: str = ""
    type: str = ""
    samples: list[MetricSample] = field(default_factory=list)

    def single_value(self) -> Optional[float]:
        """Value of the first sample, or None when there are no samples"""
        if not self.samples:
            return None
        return self.samples[0].value

    def sum_values(self) -> float:
        return sum(sample.value for sample in self.samples)

    def values_by_label(self, label_key: str) -> dict[str, float]:
        """Map each value of ``label_key`` to the last sample seen with it"""
        values = {}
        for sample in self.samples:
            if label_key in sample.labels:
                values[sample.labels[label_key]] = sample.value
        return values

    def histogram_buckets(self) -> list[HistogramBucket]:
        """Finite ``le`` buckets in dump order; the +Inf bucket is left out"""
        buckets = []
        for sample in self.samples:
            le = parse_le(sample.labels.get("le", ""))
            if le is None or math.isinf(le):
                continue
            buckets.append(HistogramBucket(le=le, count=sample.value))
        return buckets

    def series(self, exclude: tuple[str, ...] = ("le",)) -> dict[str, list[MetricSample]]:
        """Group samples by their label set, ignoring the ``exclude`` labels"""
        grouped: dict[str, list[MetricSample]] = {}
        for sample in self.samples:
            grouped.setdefault(series_key(sample.labels, exclude), []).append(sample)
        return grouped


class MetricStore(Mapping[str, Metric]):
    """Read-only mapping of metric name to Metric for one snapshot"""

    def __init__(self, metrics: Optional[Mapping[str, Metric]] = None):
        self._metrics: dict[str, Metric] = dict(metrics or {})

    def __getitem__(self, name: str) -> Metric:
        return self._metrics[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def get_metric(self, name: str) -> Optional[Metric]:
        """Look up a metric that has at least one sample"""
        metric = self._metrics.get(name)
        if metric is None or not metric.samples:
            return None
        return metric

    def histogram_base_names(self) -> list[str]:
        """Base names of every histogram with a populated ``_bucket`` series"""
        return sorted(
            name[: -len("_bucket")]
            for name, metric in self._metrics.items()
            if name.endswith("_bucket") and metric.samples
        )

    def histogram_sum(self, base_name: str) -> Optional[float]:
        metric = self.get_metric(f"{base_name}_sum")
        return metric.single_value() if metric else None

    def histogram_count(self, base_name: str) -> Optional[float]:
        metric = self.get_metric(f"{base_name}_count")
        return metric.single_value() if metric else None

    def help_text(self, name: str) -> str:
        metric = self._metrics.get(name)
        return metric.help if metric else ""

    def detect_acs_version(self) -> Optional[str]:
        """Read the ACS version from well-known version info metrics"""
        for metric_name in VERSION_METRICS:
            metric = self._metrics.get(metric_name)
            if metric is None:
                continue
            for sample in metric.samples:
                for label in VERSION_LABELS:
                    if sample.labels.get(label):
                        return sample.labels[label]
        return None


def _families_by_line(text: str) -> Iterator:
    """Parse sample lines one at a time under their HELP/TYPE header, dropping bad ones"""
    header: list[str] = []
    in_samples = False
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            if in_samples:
                header, in_samples = [], False
            header.append(stripped)
            continue
        in_samples = True
        try:
            families = list(text_string_to_metric_families("\n".join(header + [stripped]) + "\n"))
        except ValueError as e:
            logger.warning(f"Skipping malformed metrics line {number}: {e}")
            continue
        yield from families


def _parse_families(text: str) -> list:
    try:
        return list(text_string_to_metric_families(text))
    except ValueError as e:
        logger.warning(f"Metrics dump contains malformed lines ({e}), parsing line by line")
        return list(_families_by_line(text))


@trace_sync("promtriage.parse_metrics_text")
def parse_metrics_text(text: str) -> MetricStore:
    """
    Parse a Prometheus text exposition dump into a MetricStore

    Sample lines that cannot be parsed are logged and skipped; the rest of
    the dump is kept.
    """
    metrics: dict[str, Metric] = {}

    def entry(name: str) -> Metric:
        if name not in metrics:
            metrics[name] = Metric(name=name)
        return metrics[name]

    for family in _parse_families(text):
        base = entry(family.name)
        base.help = base.help or family.documentation
        base.type = base.type or family.type
        for sample in family.samples:
            metric = entry(sample.name)
            metric.help = metric.help or family.documentation
            metric.type = metric.type or family.type
            metric.samples.append(MetricSample(labels=dict(sample.labels), value=float(sample.value)))

    logger.debug(f"Parsed {len(metrics)} metrics")
    return MetricStore(metrics)


def parse_metrics_file(path: Union[str, Path]) -> MetricStore:
    """Read and parse a metrics dump from disk"""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise MetricsParseError(f"failed to read metrics file {path}: {e}") from e
    return parse_metrics_text(text)
