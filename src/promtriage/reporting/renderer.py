"""
Report rendering

Console and markdown reports are Jinja2 templates shipped in the package's
``templates`` directory. A user-supplied markdown template gets the same
context and the format_bytes, format_percent and format_value filters; if it
cannot be loaded or rendered the built-in one is used.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import click
import jinja2

from ..models import AnalysisReport, Status

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
CONSOLE_TEMPLATE = "console.txt.jinja2"
MARKDOWN_TEMPLATE = "report.md.jinja2"

_STATUS_COLORS = {Status.RED: "red", Status.YELLOW: "yellow", Status.GREEN: "green"}


def format_bytes(value: float) -> str:
    if value < 1024:
        return f"{value:.0f}B"
    if value < 1024**2:
        return f"{value / 1024:.1f}KB"
    if value < 1024**3:
        return f"{value / 1024**2:.1f}MB"
    return f"{value / 1024**3:.2f}GB"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_value(value: float) -> str:
    return f"{value:.2f}"


class ReportRenderer:
    """Renders an AnalysisReport through Jinja2 templates"""

    def __init__(self, templates_dir: Union[str, Path] = TEMPLATES_DIR, color: bool = False):
        self.color = color
        self.env = self._make_env(jinja2.FileSystemLoader(str(templates_dir)))

    def _make_env(self, loader: jinja2.BaseLoader) -> jinja2.Environment:
        env = jinja2.Environment(
            loader=loader,
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=jinja2.StrictUndefined,
        )
        env.filters["paint"] = self.paint
        env.filters["format_bytes"] = format_bytes
        env.filters["format_percent"] = format_percent
        env.filters["format_value"] = format_value
        return env

    def paint(self, text: Any, fg: Optional[str] = None, bold: bool = False) -> str:
        """Style text for a terminal; a no-op when color is off"""
        if not self.color:
            return str(text)
        return click.style(str(text), fg=fg, bold=bold or None)

    @staticmethod
    def context(report: AnalysisReport) -> dict[str, Any]:
        summary = report.summary
        return {
            "report": report,
            "summary": summary,
            "red_results": report.results_with_status(Status.RED),
            "yellow_results": report.results_with_status(Status.YELLOW),
            "green_results": report.results_with_status(Status.GREEN),
            "summary_rows": [
                (status.value, _STATUS_COLORS[status], count, summary.percentage(status))
                for status, count in (
                    (Status.RED, summary.red_count),
                    (Status.YELLOW, summary.yellow_count),
                    (Status.GREEN, summary.green_count),
                )
            ],
        }

    def render(self, template_name: str, report: AnalysisReport) -> str:
        try:
            template = self.env.get_template(template_name)
        except jinja2.TemplateNotFound:
            logger.error(f"Template not found: {template_name}")
            raise
        return template.render(**self.context(report))

    def render_file(self, template_path: Union[str, Path], report: AnalysisReport) -> str:
        """Render a template from an arbitrary path on disk"""
        template_path = Path(template_path)
        env = self._make_env(jinja2.FileSystemLoader(str(template_path.parent)))
        return env.get_template(template_path.name).render(**self.context(report))


def render_console(report: AnalysisReport, color: bool = True) -> str:
    return ReportRenderer(color=color).render(CONSOLE_TEMPLATE, report)


def render_markdown(report: AnalysisReport, template_path: Optional[Union[str, Path]] = None) -> str:
    """Render markdown, preferring ``template_path`` when it renders to something"""
    renderer = ReportRenderer()
    if template_path:
        try:
            rendered = renderer.render_file(template_path, report)
            if rendered.strip():
                return rendered
            logger.warning(f"Template {template_path} rendered nothing, using built-in template")
        except (OSError, jinja2.TemplateError) as e:
            logger.warning(f"Could not render template {template_path}: {e}, using built-in template")

    return renderer.render(MARKDOWN_TEMPLATE, report)


def render_json(report: AnalysisReport) -> str:
    return report.model_dump_json(indent=2)


def render_report(
    report: AnalysisReport,
    fmt: str = "console",
    template_path: Optional[Union[str, Path]] = None,
    color: bool = True,
) -> str:
    if fmt == "markdown":
        return render_markdown(report, template_path)
    if fmt == "json":
        return render_json(report)
    if fmt == "console":
        return render_console(report, color=color)
    raise ValueError(f"Unknown report format: {fmt}")
