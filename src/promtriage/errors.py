"""
Exception hierarchy for promtriage

Structural and configuration problems raise one of these and abort the
analysis run. Missing metric data never raises; evaluators report it as a
GREEN result with an explanatory message instead.
"""

from typing import Optional


class PromtriageError(Exception):
    """Base class for all promtriage errors"""


class RuleLoadError(PromtriageError):
    """A rule file or rules directory could not be read, parsed or validated"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"failed to load rule {path}: {message}"
        super().__init__(message)


class MetricsParseError(PromtriageError):
    """A Prometheus metrics dump could not be read"""


class InvalidLoadLevelError(PromtriageError):
    """A load level override is not one of low, medium or high"""


class InvalidVersionError(PromtriageError):
    """An explicit ACS version override could not be parsed"""
