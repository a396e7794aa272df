"""Load test reporter CLI.

Usage:
    python -m loadreport run [CONFIG]            # Run all scenarios, write reports
    python -m loadreport serve                   # HTTP control surface
    python -m loadreport render <result.json>    # Rebuild a report from saved JSON
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .api import run_api_server
from .errors import ConfigError, LoadReportError
from .logging_setup import setup_logging
from .pipeline import RunSummary, rerender, run_all
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
console = Console()


def _init(log_level: str | None) -> Settings:
    settings = get_settings()
    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    return settings


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Load Test Results")
    table.add_column("Scenario", style="cyan")
    table.add_column("Avg Latency (ms)", justify="right")
    table.add_column("Req/sec", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Report")

    for run in summary.runs:
        result = run.result
        report = str(run.report_path) if run.report_path else f"[red]{run.error}[/red]"
        table.add_row(
            run.config.name,
            f"{result.latency.average:.2f}",
            f"{result.requests.average:.2f}",
            str(result.errors),
            report,
        )
    console.print(table)

    if summary.comparison_path:
        console.print(f"[green]Comparison report:[/green] {summary.comparison_path}")
    elif summary.comparison_error:
        console.print(f"[red]Comparison report failed:[/red] {summary.comparison_error}")


@click.group()
def cli() -> None:
    """Run HTTP load tests and render PDF reports."""


@cli.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option("--output-dir", type=click.Path(path_type=Path), help="Reports directory")
@click.option("--log-level", default=None, help="Logging level (default from settings)")
def run(config_path: Path | None, output_dir: Path | None, log_level: str | None) -> None:
    """Run every scenario in CONFIG_PATH and write PDF reports."""
    settings = _init(log_level)
    if output_dir is not None:
        settings.output.reports_dir = output_dir
        settings.output.json_dir = output_dir / "json"

    try:
        summary = run_all(settings, config_path=config_path)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)
    except LoadReportError as e:
        logger.error("Run aborted: %s", e)
        sys.exit(1)

    _print_summary(summary)
    if summary.failures:
        sys.exit(2)


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", default=None, type=int, help="Bind port")
@click.option("--log-level", default=None, help="Logging level (default from settings)")
def serve(host: str | None, port: int | None, log_level: str | None) -> None:
    """Start the HTTP control surface."""
    settings = _init(log_level)
    if host:
        settings.api.host = host
    if port:
        settings.api.port = port
    run_api_server(settings)


@cli.command()
@click.argument("result_file", type=click.Path(exists=True, path_type=Path))
@click.option("--name", default=None, help="Scenario name shown in the report")
@click.option("--duration", default=None, type=int, help="Test duration for the fallback timeline")
def render(result_file: Path, name: str | None, duration: int | None) -> None:
    """Rebuild a report from a saved RESULT_FILE."""
    settings = _init(None)
    try:
        path = rerender(result_file, settings, name=name, duration=duration)
    except LoadReportError as e:
        logger.error("%s", e)
        sys.exit(1)
    console.print(f"[green]PDF saved:[/green] {path}")


if __name__ == "__main__":
    cli()
