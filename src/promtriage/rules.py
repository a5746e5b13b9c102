"""
Rule loading

Rules live one per TOML file in a flat directory. Each file is parsed and
validated into its rule variant; the first invalid file aborts the load so a
broken rule set is never partially applied. Load detection rules live in a
separate directory, conventionally ``<rules_dir>/load-level``.
"""

import logging
import tomllib
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .errors import RuleLoadError
from .models import LoadDetectionRule, RuleBase, rule_adapter
from .observability import get_metrics

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise RuleLoadError(f"failed to read file: {e}", str(path)) from e
    except tomllib.TOMLDecodeError as e:
        raise RuleLoadError(f"failed to parse TOML: {e}", str(path)) from e


def _rule_files(directory: PathLike) -> list[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        raise RuleLoadError(f"rules directory not found: {directory}")
    return sorted(directory.glob("*.toml"))


def load_rule(path: PathLike) -> RuleBase:
    """Load and validate a single rule file"""
    path = Path(path)
    data = _read_toml(path)
    try:
        return rule_adapter.validate_python(data)
    except ValidationError as e:
        raise RuleLoadError(f"validation failed: {e}", str(path)) from e


def load_rules(rules_dir: PathLike) -> list[RuleBase]:
    """Load every ``*.toml`` rule in ``rules_dir``, in file name order"""
    rules = [load_rule(path) for path in _rule_files(rules_dir)]
    logger.info(f"Loaded {len(rules)} rules from {rules_dir}")
    return rules


def load_load_detection_rules(load_level_dir: PathLike) -> list[LoadDetectionRule]:
    rules = []
    for path in _rule_files(load_level_dir):
        data = _read_toml(path)
        try:
            rules.append(LoadDetectionRule.model_validate(data))
        except ValidationError as e:
            raise RuleLoadError(f"validation failed: {e}", str(path)) from e
    logger.info(f"Loaded {len(rules)} load detection rules from {load_level_dir}")
    return rules


@dataclass(frozen=True)
class RuleSet:
    """
    The immutable rule set shared by every analysis run

    Loaded once (per CLI invocation, or at server startup) and only ever
    read afterwards.
    """

    rules: Sequence[RuleBase] = field(default_factory=tuple)
    load_rules: Sequence[LoadDetectionRule] = field(default_factory=tuple)

    @classmethod
    def load(cls, rules_dir: PathLike, load_level_dir: Optional[PathLike] = None) -> "RuleSet":
        """
        Load evaluation rules and load detection rules

        Evaluation rules are mandatory. Load detection rules are optional:
        if they cannot be loaded the detector falls back to medium load.
        """
        rules = load_rules(rules_dir)
        load_level_dir = load_level_dir or Path(rules_dir) / "load-level"
        try:
            load_rules_ = load_load_detection_rules(load_level_dir)
        except RuleLoadError as e:
            logger.warning(f"Could not load load detection rules: {e}")
            load_rules_ = []

        metrics = get_metrics()
        if metrics:
            metrics.record_rules_loaded("evaluation", len(rules))
            metrics.record_rules_loaded("load_detection", len(load_rules_))
        return cls(rules=tuple(rules), load_rules=tuple(load_rules_))

    def __len__(self) -> int:
        return len(self.rules)
