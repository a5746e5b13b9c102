"""
Command-line interface for promtriage

Provides CLI commands for:
- Analyzing a metrics dump: promtriage analyze metrics.txt
- Checking rule files: promtriage validate ./automated-rules
- Listing rules: promtriage list-rules
- Running the HTTP server: promtriage serve --port 8080
- Showing configuration: promtriage config --show
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from . import __version__
from .analyzer import AnalysisOptions, analyze_file
from .config import get_config
from .errors import PromtriageError
from .observability import initialize_observability, shutdown_observability
from .reporting import render_report
from .rules import load_rules


@click.group()
@click.version_option(version=__version__, prog_name="promtriage")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for progress messages on stderr",
)
def cli(log_level: Optional[str]):
    """promtriage - rule-based health triage for Prometheus metrics dumps"""
    config = get_config()
    if log_level:
        config = config.model_copy(update={"log_level": log_level.upper()})
    initialize_observability(config.telemetry_config())


@cli.command()
@click.argument("metrics_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--rules", "rules_dir", type=click.Path(), help="Directory containing TOML rules")
@click.option("--load-level-dir", type=click.Path(), help="Directory containing load detection rules")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["console", "markdown", "json"]),
    default=None,
    help="Output format",
)
@click.option("--cluster", default="", help="Cluster name (derived from the file name if not given)")
@click.option("--load-level", default="", help="Override detected load level (low/medium/high)")
@click.option("--acs-version", default="", help="Override detected ACS version")
@click.option("--template", type=click.Path(), help="Path to a markdown template")
def analyze(
    metrics_file: str,
    rules_dir: Optional[str],
    load_level_dir: Optional[str],
    output: Optional[str],
    fmt: Optional[str],
    cluster: str,
    load_level: str,
    acs_version: str,
    template: Optional[str],
):
    """Analyze a Prometheus metrics file"""
    config = get_config()
    rules_dir = rules_dir or str(config.rules.rules_dir)
    if load_level_dir is None and config.rules.load_level_dir is not None:
        load_level_dir = str(config.rules.load_level_dir)

    options = AnalysisOptions(
        rules_dir=rules_dir,
        load_level_dir=load_level_dir,
        cluster_name=cluster,
        load_level_override=load_level,
        acs_version_override=acs_version,
    )

    try:
        report = analyze_file(metrics_file, options)
    except PromtriageError as e:
        click.echo(f"❌ Analysis failed: {e}", err=True)
        sys.exit(1)

    content = render_report(
        report,
        fmt=fmt or config.report.format,
        template_path=template or config.report.template_path,
        color=config.report.color and output is None,
    )

    if output is None:
        click.echo(content, nl=False)
        return

    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Report written to {output}", err=True)


@cli.command()
@click.argument("rules_dir", required=False, type=click.Path())
def validate(rules_dir: Optional[str]):
    """Validate TOML rule files"""
    rules_dir = rules_dir or str(get_config().rules.rules_dir)
    click.echo(f"Validating rules in {rules_dir}...")

    try:
        rules = load_rules(rules_dir)
    except PromtriageError as e:
        click.echo(f"❌ Validation failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ All {len(rules)} rules are valid!")


@cli.command(name="list-rules")
@click.argument("rules_dir", required=False, type=click.Path())
def list_rules(rules_dir: Optional[str]):
    """List all available rules"""
    rules_dir = rules_dir or str(get_config().rules.rules_dir)

    try:
        rules = load_rules(rules_dir)
    except PromtriageError as e:
        click.echo(f"❌ Failed to load rules: {e}", err=True)
        sys.exit(1)

    click.echo(f"Found {len(rules)} rules:\n")
    for rule in rules:
        click.echo(f"- {rule.display_name or rule.metric_name} ({rule.rule_type}): {rule.description}")


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Listen port")
def serve(host: Optional[str], port: Optional[int]):
    """Run the HTTP analysis server"""
    import uvicorn

    from .server import create_app

    config = get_config()
    try:
        app = create_app(config)
    except PromtriageError as e:
        click.echo(f"❌ Failed to start server: {e}", err=True)
        sys.exit(1)

    try:
        uvicorn.run(
            app,
            host=host or config.server.host,
            port=port or config.server.port,
            log_level=config.log_level.lower(),
        )
    finally:
        shutdown_observability()


@cli.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--format", type=click.Choice(["yaml", "json"]), default="yaml", help="Output format")
def config(show: bool, format: str):
    """Manage promtriage configuration"""
    if show:
        config_dict = get_config().model_dump(mode="json")

        click.echo("🔧 Current promtriage Configuration")
        click.echo("=" * 40)

        if format == "yaml":
            click.echo(yaml.safe_dump(config_dict, default_flow_style=False, indent=2))
        else:
            click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo("Use --show to display current configuration")
        click.echo("Available options:")
        click.echo("  --show          Show current configuration")
        click.echo("  --format yaml   Output in YAML format (default)")
        click.echo("  --format json   Output in JSON format")


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
