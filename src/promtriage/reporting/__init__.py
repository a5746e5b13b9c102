"""
Report output

Console (optionally colored), markdown and JSON renderings of an
AnalysisReport.
"""

from .renderer import (
    ReportRenderer,
    render_console,
    render_json,
    render_markdown,
    render_report,
)

__all__ = [
    "ReportRenderer",
    "render_console",
    "render_markdown",
    "render_json",
    "render_report",
]
