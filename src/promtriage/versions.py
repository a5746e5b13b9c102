"""
ACS version parsing and rule applicability

Versions are reduced to a (major, minor, patch) tuple by regex extraction, so
strings such as "4.8.2-rc.1" or "v4.7" parse as well. Anything that does not
contain a major.minor pair is unparseable and makes every comparison fail
closed.

Supported specifiers in a rule's ``acs_versions`` list:

- ``"4.7"`` exact match (patch defaults to 0)
- ``"4.7+"`` and ``">=4.7"`` lower bound, inclusive
- ``"4.7-4.9"`` inclusive range
"""

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional, TypeVar

if TYPE_CHECKING:
    from .models import RuleBase

logger = logging.getLogger(__name__)

Version = tuple[int, int, int]

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")
_PLAIN = r"\d+\.\d+(?:\.\d+)?"
_SPEC_RE = re.compile(rf"^(?:{_PLAIN}\+?|>={_PLAIN}|{_PLAIN}-{_PLAIN})$")

R = TypeVar("R", bound="RuleBase")


def parse_version(version: str) -> Optional[Version]:
    """Extract (major, minor, patch) from a version string, or None"""
    match = _VERSION_RE.search(version.strip())
    if not match:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def compare_versions(v1: Version, v2: Version) -> int:
    """Return -1, 0 or 1 as v1 is lower than, equal to or higher than v2"""
    return (v1 > v2) - (v1 < v2)


def validate_version_spec(spec: str) -> str:
    """Raise ValueError if ``spec`` is not a supported version specifier"""
    if not _SPEC_RE.match(spec.strip()):
        raise ValueError(
            f"invalid version format: {spec} "
            "(expected format: 4.7, 4.7.1, 4.7+, >=4.7, or 4.7-4.9)"
        )
    return spec


def matches_version(version: str, spec: str) -> bool:
    """Check whether ``version`` satisfies a single specifier"""
    ver = parse_version(version)
    if ver is None:
        return False

    if "-" in spec:
        parts = spec.split("-")
        if len(parts) == 2:
            low, high = parse_version(parts[0]), parse_version(parts[1])
            if low is None or high is None:
                return False
            return low <= ver <= high

    if spec.startswith(">="):
        minimum = parse_version(spec[2:])
        return minimum is not None and ver >= minimum

    if spec.endswith("+"):
        minimum = parse_version(spec[:-1])
        return minimum is not None and ver >= minimum

    exact = parse_version(spec)
    return exact is not None and ver == exact


def version_at_least(version: str, minimum: str) -> bool:
    v1, v2 = parse_version(version), parse_version(minimum)
    if v1 is None or v2 is None:
        return False
    return compare_versions(v1, v2) >= 0


def version_at_most(version: str, maximum: str) -> bool:
    v1, v2 = parse_version(version), parse_version(maximum)
    if v1 is None or v2 is None:
        return False
    return compare_versions(v1, v2) <= 0


def is_rule_applicable(rule: "RuleBase", acs_version: str) -> bool:
    """
    Decide whether a rule applies to the given ACS version

    A rule without constraints applies everywhere. ``acs_versions`` entries
    are OR-ed together and take priority; min/max bounds are only consulted
    when the list is empty, and both must hold.
    """
    if not rule.acs_versions and not rule.min_acs_version and not rule.max_acs_version:
        return True

    if rule.acs_versions:
        return any(matches_version(acs_version, spec) for spec in rule.acs_versions)

    if rule.min_acs_version and not version_at_least(acs_version, rule.min_acs_version):
        return False
    if rule.max_acs_version and not version_at_most(acs_version, rule.max_acs_version):
        return False
    return True


def filter_rules_by_version(rules: Sequence[R], acs_version: str) -> list[R]:
    """Return the rules applicable to ``acs_version`` (all of them if it is empty)"""
    if not acs_version:
        return list(rules)

    filtered = [rule for rule in rules if is_rule_applicable(rule, acs_version)]
    skipped = len(rules) - len(filtered)
    if skipped:
        logger.info(f"Skipped {skipped} rules not applicable to ACS {acs_version}")
    return filtered
