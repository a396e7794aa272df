"""End-to-end run: measure every scenario, save results, write reports.

Scenarios run strictly one after another. For each one the raw JSON is
saved before the report is rendered, so a rendering failure never loses
the measurement. Completed results accumulate for the comparison report.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .charts.renderer import ChartRenderer
from .collectors.load_generator import LoadGenerator
from .config import LoadTestConfig, load_scenarios
from .errors import RenderError, ReportIOError
from .logging_setup import log_context
from .models import MeasurementResult
from .ranking import ScenarioOutcome
from .report.composer import ReportComposer
from .settings import Settings
from .storage import (
    ensure_directories,
    load_result_json,
    report_path,
    save_result_json,
    timestamp_ms,
)

logger = logging.getLogger(__name__)

MeasureFn = Callable[[LoadTestConfig], MeasurementResult]


def measure_with_httpx(config: LoadTestConfig) -> MeasurementResult:
    return LoadGenerator(config).run()


@dataclass
class ScenarioRun:
    """What happened to one scenario."""

    config: LoadTestConfig
    result: MeasurementResult
    json_path: Path | None = None
    report_path: Path | None = None
    error: str | None = None


@dataclass
class RunSummary:
    """Outcome of a full run across all scenarios."""

    runs: list[ScenarioRun] = field(default_factory=list)
    comparison_path: Path | None = None
    comparison_error: str | None = None

    @property
    def report_paths(self) -> list[Path]:
        paths = [r.report_path for r in self.runs if r.report_path is not None]
        if self.comparison_path is not None:
            paths.append(self.comparison_path)
        return paths

    @property
    def failures(self) -> list[str]:
        errors = [r.error for r in self.runs if r.error]
        if self.comparison_error:
            errors.append(self.comparison_error)
        return errors


def create_composer(settings: Settings) -> ReportComposer:
    renderer = ChartRenderer(
        width=settings.chart.width, height=settings.chart.height, scale=settings.chart.scale
    )
    return ReportComposer(renderer)


def run_all(
    settings: Settings,
    config_path: Path | None = None,
    measure: MeasureFn = measure_with_httpx,
    composer: ReportComposer | None = None,
) -> RunSummary:
    """Run every configured scenario and write its reports.

    Raises:
        ConfigError: If the config file cannot be read or validated.
        ReportIOError: If the output directories cannot be created.
    """
    scenario_file = load_scenarios(config_path or settings.config_path)
    reports_dir = settings.output.reports_dir
    json_dir = settings.output.results_dir
    ensure_directories(reports_dir, json_dir)

    composer = composer or create_composer(settings)
    summary = RunSummary()
    completed: list[ScenarioOutcome] = []

    for config in scenario_file.scenarios:
        with log_context(scenario=config.name):
            logger.info("Running test: %s", config.name)
            result = measure(config)
            run = ScenarioRun(config=config, result=result)
            try:
                run.json_path = save_result_json(result, config.name, json_dir)
            except ReportIOError as e:
                run.error = str(e)
                logger.error("Saving results for %s failed: %s", config.name, e)
            summary.runs.append(run)
            completed.append(ScenarioOutcome(name=config.name, result=result))

            if scenario_file.multi_scenario:
                target = report_path(reports_dir, config.name)
            else:
                target = reports_dir / f"load-test-{timestamp_ms()}.pdf"
            try:
                run.report_path = composer.write_single(result, config, target)
            except (RenderError, ReportIOError) as e:
                run.error = "; ".join(filter(None, [run.error, str(e)]))
                logger.error("Report for %s failed: %s", config.name, e)

    if len(completed) > 1:
        target = reports_dir / f"comparison-report-{timestamp_ms()}.pdf"
        try:
            summary.comparison_path = composer.write_comparison(completed, target)
            logger.info("Comparison PDF saved: %s", target)
        except (RenderError, ReportIOError) as e:
            summary.comparison_error = str(e)
            logger.error("Comparison report failed: %s", e)

    logger.info(
        "All tests completed: %d report(s), %d failure(s)",
        len(summary.report_paths),
        len(summary.failures),
    )
    return summary


def rerender(
    result_path: Path,
    settings: Settings,
    name: str | None = None,
    duration: int | None = None,
    composer: ReportComposer | None = None,
) -> Path:
    """Rebuild a single-scenario report from a saved JSON result.

    Raises:
        ResultFileError: If the saved result cannot be read.
        RenderError: If the report cannot be rendered.
        ReportIOError: If the output directory or file cannot be written.
    """
    result = load_result_json(result_path)
    scenario_name = name or result_path.stem
    # Display only: the recorded URL is shown as saved, not validated
    config = LoadTestConfig.model_construct(
        name=scenario_name,
        url=result.url or "unknown",
        duration=duration or result.duration or 30,
    )
    ensure_directories(settings.output.reports_dir)
    composer = composer or create_composer(settings)
    with log_context(scenario=scenario_name):
        return composer.write_single(
            result, config, report_path(settings.output.reports_dir, scenario_name)
        )
