"""
Core data models for promtriage

Defines the rule model (one pydantic variant per rule kind, combined into a
discriminated union), load detection rules, and the evaluation output
structures. Rule-level validation happens here, at load time, so that the
evaluators can rely on well-formed input.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from .versions import validate_version_spec


class Status(str, Enum):
    """Tri-state health status, ordered GREEN < YELLOW < RED"""

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def elevated(self) -> "Status":
        """One step worse, saturating at RED"""
        return _STATUS_ORDER[min(self.rank + 1, len(_STATUS_ORDER) - 1)]

    def suppressed(self) -> "Status":
        """One step better, saturating at GREEN"""
        return _STATUS_ORDER[max(self.rank - 1, 0)]

    @classmethod
    def parse(cls, value: str) -> Optional["Status"]:
        """Case-insensitive lookup; None for anything unrecognised"""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


_STATUS_ORDER = [Status.GREEN, Status.YELLOW, Status.RED]


class LoadLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RuleType(str, Enum):
    GAUGE = "gauge_threshold"
    PERCENTAGE = "percentage"
    QUEUE = "queue_operations"
    HISTOGRAM = "histogram"
    CACHE_HIT = "cache_hit_rate"
    COMPOSITE = "composite"
    LOAD_DETECTION = "load_detection"


class Thresholds(BaseModel):
    """Threshold boundaries; ``low == high == 0`` marks an existence check"""

    model_config = ConfigDict(frozen=True)

    low: float = 0.0
    high: float = 0.0
    higher_is_worse: bool = False
    p95_good: float = 0.0
    p95_warn: float = 0.0
    min_ratio: float = 0.0

    @property
    def is_existence_check(self) -> bool:
        return self.low == 0 and self.high == 0

    def check_band_order(self, label: str = "") -> None:
        if self.is_existence_check:
            return
        if self.low >= self.high:
            prefix = f"{label}: " if label else ""
            raise ValueError(f"{prefix}low threshold must be less than high threshold")


class LoadLevelThresholds(BaseModel):
    """Optional per-load-level overrides of the default thresholds"""

    model_config = ConfigDict(frozen=True)

    low: Optional[Thresholds] = None
    medium: Optional[Thresholds] = None
    high: Optional[Thresholds] = None

    def for_level(self, level: LoadLevel) -> Optional[Thresholds]:
        return getattr(self, level.value)

    @model_validator(mode="after")
    def check_bands(self) -> "LoadLevelThresholds":
        for level in LoadLevel:
            band = self.for_level(level)
            if band is not None:
                band.check_band_order(f"{level.value} load level")
        return self


class Messages(BaseModel):
    model_config = ConfigDict(frozen=True)

    green: str = ""
    yellow: str = ""
    red: str = ""
    zero_activity: str = ""

    def for_status(self, status: Status) -> str:
        return getattr(self, status.value.lower())


class Remediation(BaseModel):
    """Suggested action per status; only ``red`` is usually filled in"""

    model_config = ConfigDict(frozen=True)

    red: str = ""
    yellow: str = ""
    green: str = ""

    def for_status(self, status: Status) -> str:
        return getattr(self, status.value.lower())


class CorrelationCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric_name: str = Field(min_length=1)
    operator: Literal["gt", "lt", "eq", "gte", "lte"]
    value: float = 0.0
    status: Optional[Status] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            return value.strip().upper()
        return value


class CorrelationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    suppress_if: list[CorrelationCondition] = Field(default_factory=list)
    elevate_if: list[CorrelationCondition] = Field(default_factory=list)


class GaugeConfig(BaseModel):
    """Gauge rules are configured entirely through thresholds"""

    model_config = ConfigDict(frozen=True)


class PercentageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    numerator: str = Field(min_length=1)
    denominator: str = Field(min_length=1)


class QueueConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation_label: str = Field(min_length=1)
    add_value: str = ""
    remove_value: str = ""


class HistogramConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit: str = ""


class CacheConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    hits_metric: str = Field(min_length=1)
    misses_metric: str = Field(min_length=1)


class CompositeMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    source: str = Field(min_length=1)


class CompositeCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    check_type: str
    metrics: list[str] = Field(default_factory=list)
    numerator: str = ""
    denominator: str = ""
    min_ratio: float = 0.0
    status: str = ""
    message: str = ""


class CompositeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    metrics: list[CompositeMetric] = Field(min_length=1)
    checks: list[CompositeCheck] = Field(default_factory=list)


class RuleBase(BaseModel):
    """Fields shared by every evaluable rule kind"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rule_type: str
    metric_name: str = ""
    display_name: str = ""
    description: str = ""

    # Review metadata
    reviewed: str = ""
    last_review_by: str = ""
    last_review_on: str = ""

    thresholds: Thresholds = Field(default_factory=Thresholds)
    messages: Messages = Field(default_factory=Messages)
    remediation: Optional[Remediation] = None
    load_level_thresholds: Optional[LoadLevelThresholds] = None
    correlation: Optional[CorrelationConfig] = None

    # ACS version applicability
    acs_versions: list[str] = Field(default_factory=list)
    min_acs_version: str = ""
    max_acs_version: str = ""

    @property
    def kind(self) -> RuleType:
        return RuleType(self.rule_type)

    @property
    def name(self) -> str:
        """Name used to label this rule's evaluation result"""
        return self.display_name or self.metric_name

    @field_validator("acs_versions")
    @classmethod
    def check_acs_versions(cls, value: list[str]) -> list[str]:
        for spec in value:
            validate_version_spec(spec)
        return value

    @field_validator("min_acs_version", "max_acs_version")
    @classmethod
    def check_version_bound(cls, value: str) -> str:
        if value:
            validate_version_spec(value)
        return value

    @model_validator(mode="after")
    def check_thresholds(self) -> "RuleBase":
        self.thresholds.check_band_order()
        return self

    def review_status(self) -> str:
        review, by, on = self.reviewed, self.last_review_by, self.last_review_on
        if review and by and on:
            return f"{review} (last review: {by} on {on})"
        if review and (by or on):
            return f"{review} (last review: {by or on})"
        if review:
            return review
        if by and on:
            return f"Last review: {by} on {on}"
        if by or on:
            return f"Last review: {by or on}"
        return "review status unavailable"

    def remediation_for(self, status: Status) -> str:
        if self.remediation is None:
            return ""
        return self.remediation.for_status(status)


class _MetricNamedRule(RuleBase):
    """Rules whose result is always labelled with the metric name"""

    @property
    def name(self) -> str:
        return self.metric_name

    @model_validator(mode="after")
    def require_metric_name(self) -> "_MetricNamedRule":
        if not self.metric_name:
            raise ValueError(f"metric_name is required for {self.rule_type} rules")
        return self


class GaugeRule(_MetricNamedRule):
    rule_type: Literal["gauge_threshold"]
    gauge_config: Optional[GaugeConfig] = None


class PercentageRule(RuleBase):
    rule_type: Literal["percentage"]
    percentage_config: PercentageConfig


class QueueRule(_MetricNamedRule):
    rule_type: Literal["queue_operations"]
    queue_config: QueueConfig


class HistogramRule(_MetricNamedRule):
    rule_type: Literal["histogram"]
    histogram_config: Optional[HistogramConfig] = None

    @model_validator(mode="after")
    def check_percentile_thresholds(self) -> "HistogramRule":
        if self.thresholds.p95_good >= self.thresholds.p95_warn:
            raise ValueError("p95_good must be less than p95_warn")
        return self


class CacheHitRule(RuleBase):
    rule_type: Literal["cache_hit_rate"]
    cache_config: CacheConfig


class CompositeRule(RuleBase):
    rule_type: Literal["composite"]
    composite_config: CompositeConfig


Rule = Annotated[
    Union[GaugeRule, PercentageRule, QueueRule, HistogramRule, CacheHitRule, CompositeRule],
    Field(discriminator="rule_type"),
]

rule_adapter: TypeAdapter[Rule] = TypeAdapter(Rule)


class LoadDetectionMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    source: str = ""
    weight: float = 0.0

    @property
    def metric(self) -> str:
        return self.source or self.name


class LoadDetectionThreshold(BaseModel):
    """A load band; a zero bound means that side is open"""

    model_config = ConfigDict(frozen=True)

    level: LoadLevel
    min_value: float = 0.0
    max_value: float = 0.0

    def contains(self, value: float) -> bool:
        if self.min_value > 0 and value < self.min_value:
            return False
        if self.max_value > 0 and value >= self.max_value:
            return False
        return True

    @model_validator(mode="after")
    def check_order(self) -> "LoadDetectionThreshold":
        if self.min_value > 0 and self.max_value > 0 and self.min_value >= self.max_value:
            raise ValueError(f"{self.level.value} band: min_value must be less than max_value")
        return self


class LoadDetectionRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    rule_type: Literal["load_detection"] = "load_detection"
    display_name: str = ""
    metrics: list[LoadDetectionMetric] = Field(default_factory=list)
    thresholds: list[LoadDetectionThreshold] = Field(default_factory=list)


class EvaluationResult(BaseModel):
    """Outcome of evaluating one rule against one metrics snapshot"""

    model_config = ConfigDict(frozen=True)

    rule_name: str
    status: Status = Status.GREEN
    message: str = ""
    value: float = 0.0
    details: list[str] = Field(default_factory=list)
    review_status: str = ""
    remediation: str = ""
    potential_action_user: str = ""
    potential_action_developer: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_analyzed: int = 0
    red_count: int = 0
    yellow_count: int = 0
    green_count: int = 0

    @classmethod
    def from_results(cls, results: list[EvaluationResult]) -> "Summary":
        counts = {status: 0 for status in Status}
        for result in results:
            counts[result.status] += 1
        return cls(
            total_analyzed=len(results),
            red_count=counts[Status.RED],
            yellow_count=counts[Status.YELLOW],
            green_count=counts[Status.GREEN],
        )

    def percentage(self, status: Status) -> float:
        if self.total_analyzed == 0:
            return 0.0
        count = {
            Status.RED: self.red_count,
            Status.YELLOW: self.yellow_count,
            Status.GREEN: self.green_count,
        }[status]
        return count / self.total_analyzed * 100


class AnalysisReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    cluster_name: str = ""
    acs_version: str = ""
    load_level: LoadLevel = LoadLevel.MEDIUM
    timestamp: datetime = Field(default_factory=datetime.now)
    results: list[EvaluationResult] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)

    def results_with_status(self, status: Status) -> list[EvaluationResult]:
        """Results of one status, sorted by rule name for display"""
        return sorted(
            (r for r in self.results if r.status == status), key=lambda r: r.rule_name
        )
