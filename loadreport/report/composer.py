"""PDF report composition for single scenarios and comparisons."""

import json
import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from reportlab.lib.pagesizes import A4

from ..charts import renderer as chart_renderer
from ..charts.specs import (
    latency_chart,
    latency_comparison_chart,
    requests_chart,
    status_code_chart,
    throughput_comparison_chart,
)
from ..config import LoadTestConfig
from ..errors import RenderError
from ..layout import (
    BODY,
    BODY_UNDERLINED,
    CAPTION,
    CODE,
    DEFAULT_MARGIN,
    FULL_CHART_SPACE,
    HALF_CHART_SPACE,
    HEADING,
    SECTION,
    SUBTITLE,
    TITLE,
    DocumentLayoutEngine,
)
from ..models import MeasurementResult
from ..ranking import ScenarioOutcome
from ..storage import write_document
from ..timeline import reconstruct_timeline
from .comparison import ComparisonSummary, build_comparison, format_number

logger = logging.getLogger(__name__)

PAYLOAD_PREVIEW_LIMIT = 500
COMPARISON_CHART_SPACE = 320.0
REQUESTS_SECTION_SPACE = 200.0
ERRORS_SECTION_SPACE = 150.0

FULL_CHART_FIT = (450.0, 225.0)
HALF_CHART_FIT = (350.0, 175.0)
COMPARISON_CHART_FIT = (450.0, 250.0)


def payload_preview(payload: Any, limit: int = PAYLOAD_PREVIEW_LIMIT) -> str:
    """Pretty-printed payload, cut to ``limit - 3`` characters plus '...'."""
    text = json.dumps(payload, indent=2, default=str)
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


@contextmanager
def _rendering(label: str) -> Iterator[None]:
    """Relabel any rendering failure with the report it belongs to."""
    try:
        yield
    except RenderError as e:
        raise RenderError(label, str(e)) from e
    except Exception as e:
        raise RenderError(label, f"{type(e).__name__}: {e}") from e


class ReportComposer:
    """Builds PDF reports from measurement results.

    Charts are rendered through ``renderer`` and laid out with a fresh
    ``DocumentLayoutEngine`` per document.
    """

    def __init__(
        self,
        renderer: chart_renderer.Renderer,
        page_size: tuple[float, float] = A4,
        margin: float = DEFAULT_MARGIN,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.renderer = renderer
        self.page_size = page_size
        self.margin = margin
        self.clock = clock

    def _new_engine(self, title: str) -> DocumentLayoutEngine:
        return DocumentLayoutEngine(page_size=self.page_size, margin=self.margin, title=title)

    # ─────────────────────────────────────────────────────────
    #  Single-scenario report
    # ─────────────────────────────────────────────────────────

    def compose_single(self, result: MeasurementResult, config: LoadTestConfig) -> bytes:
        """Render one scenario's report to PDF bytes.

        Raises:
            RenderError: Naming the scenario, if any chart or page fails.
        """
        with _rendering(config.name):
            timeline = reconstruct_timeline(result, config.duration)
            latency_image = self.renderer.render(latency_chart(result))
            requests_image = self.renderer.render(requests_chart(timeline))
            status_spec = status_code_chart(result)
            status_image = self.renderer.render(status_spec) if status_spec else None

            engine = self._new_engine(f"Load Test Report - {config.name}")
            self._single_header(engine, config)
            self._single_summary(engine, latency_image, requests_image, status_image)
            engine.new_page()
            self._single_details(engine, result)
            data = engine.finish()

        logger.info("Composed report for %s: %d page(s)", config.name, engine.page_count)
        return data

    def _single_header(self, engine: DocumentLayoutEngine, config: LoadTestConfig) -> None:
        engine.place_text("Load Test Report", TITLE)
        engine.move_down()
        engine.place_text(f"Test run on {self.clock():%Y-%m-%d %H:%M:%S}", SUBTITLE)
        engine.move_down(2)

        engine.place_text("Test Configuration", SECTION)
        engine.place_text(f"Scenario: {config.name}", BODY)
        engine.place_text(f"URL: {config.url}", BODY)
        engine.place_text(f"Method: {config.method}", BODY)
        engine.place_text(f"Connections: {config.connections}", BODY)
        engine.place_text(f"Duration: {config.duration} seconds", BODY)

        if config.payload is not None:
            engine.move_down()
            engine.place_text("Payload:", BODY_UNDERLINED)
            engine.place_text(payload_preview(config.payload), CODE)
        engine.move_down(2)

    def _single_summary(
        self,
        engine: DocumentLayoutEngine,
        latency_image: chart_renderer.ChartImage,
        requests_image: chart_renderer.ChartImage,
        status_image: chart_renderer.ChartImage | None,
    ) -> None:
        charts = [(latency_image, FULL_CHART_SPACE, FULL_CHART_FIT)]
        charts.append((requests_image, FULL_CHART_SPACE, FULL_CHART_FIT))
        if status_image is not None:
            charts.append((status_image, HALF_CHART_SPACE, HALF_CHART_FIT))

        # The heading shares a page with the first chart
        engine.ensure_space(FULL_CHART_SPACE)
        engine.place_text("Test Results Summary", SECTION)
        engine.move_down()

        for index, (image, space, (max_width, max_height)) in enumerate(charts):
            if index > 0 and engine.ensure_space(space):
                engine.place_text("Test Results Summary (continued)", SECTION)
                engine.move_down()
            engine.place_image(image, max_width, max_height)
            engine.move_down()

    def _single_details(self, engine: DocumentLayoutEngine, result: MeasurementResult) -> None:
        latency = result.latency
        engine.place_text("Detailed Test Results", SECTION)

        engine.place_text("Latency:", HEADING)
        engine.place_text(f"Min: {format_number(latency.min)} ms", BODY)
        engine.place_text(f"Max: {format_number(latency.max)} ms", BODY)
        engine.place_text(f"Average: {latency.average:.2f} ms", BODY)
        engine.place_text(f"Std Dev: {latency.stddev:.2f} ms", BODY)
        if latency.has_percentiles:
            engine.move_down(0.5)
            engine.place_text("Percentiles:", BODY)
            for key in ("p1", "p50", "p75", "p90", "p99"):
                engine.place_text(f"{key}: {format_number(getattr(latency, key))} ms", BODY)
        engine.move_down()

        engine.ensure_space(REQUESTS_SECTION_SPACE)
        engine.place_text("Requests:", HEADING)
        engine.place_text(f"Total: {result.requests.total}", BODY)
        engine.place_text(f"Average: {result.requests.average:.2f} req/sec", BODY)
        engine.move_down()

        engine.place_text("Throughput:", HEADING)
        engine.place_text(f"Total: {result.throughput.total / 1024 / 1024:.2f} MB", BODY)
        engine.place_text(f"Average: {result.throughput.average / 1024:.2f} KB/sec", BODY)
        engine.move_down()

        engine.ensure_space(ERRORS_SECTION_SPACE)
        engine.place_text("Errors and Status Codes:", HEADING)
        engine.place_text(f"Errors: {result.errors}", BODY)
        if result.status_code_stats:
            engine.move_down(0.5)
            engine.place_text("Status Codes:", BODY)
            for code, count in result.status_code_stats.items():
                engine.place_text(f"  {code}: {count}", BODY)

    def write_single(
        self, result: MeasurementResult, config: LoadTestConfig, path: Path
    ) -> Path:
        """Compose and write a single-scenario report; returns after the file is closed."""
        return write_document(self.compose_single(result, config), path)

    # ─────────────────────────────────────────────────────────
    #  Comparison report
    # ─────────────────────────────────────────────────────────

    def summarize(self, outcomes: Sequence[ScenarioOutcome]) -> ComparisonSummary:
        """Rankings and table batches sized for this composer's page."""
        usable_width = self.page_size[0] - 2 * self.margin
        return build_comparison(outcomes, usable_width)

    def compose_comparison(self, outcomes: Sequence[ScenarioOutcome]) -> bytes:
        """Render the ranked comparison of two or more scenarios.

        Raises:
            ValueError: With fewer than two scenarios.
            RenderError: If any chart or page fails.
        """
        summary = self.summarize(outcomes)

        with _rendering("comparison"):
            latency_image = self.renderer.render(
                latency_comparison_chart(summary.latency_ranking)
            )
            throughput_image = self.renderer.render(
                throughput_comparison_chart(summary.throughput_ranking)
            )

            engine = self._new_engine("Test Comparison Report")
            engine.place_text("Test Comparison Report", TITLE)
            engine.move_down()
            engine.place_text(f"Generated on {self.clock():%Y-%m-%d %H:%M:%S}", SUBTITLE)
            engine.move_down()
            engine.place_text(f"{summary.scenario_count} scenarios compared", CAPTION)
            engine.move_down(2)

            engine.place_text("Performance Summary", SECTION)
            engine.move_down()
            engine.place_text(summary.best_latency_callout, BODY)
            engine.place_text(summary.best_throughput_callout, BODY)
            engine.move_down(2)

            for heading, image in (
                ("Latency Comparison", latency_image),
                ("Throughput Comparison", throughput_image),
            ):
                engine.ensure_space(COMPARISON_CHART_SPACE)
                engine.place_text(heading, SECTION)
                engine.move_down()
                engine.place_image(image, *COMPARISON_CHART_FIT)
                engine.move_down()

            engine.new_page()
            for batch in summary.batches:
                if batch.index > 0:
                    engine.new_page()
                engine.place_text(batch.title, SECTION)
                engine.move_down()
                engine.place_table(batch.header, batch.rows, batch.column_widths)

            data = engine.finish()

        logger.info(
            "Composed comparison of %d scenarios: %d table batch(es), %d page(s)",
            summary.scenario_count,
            len(summary.batches),
            engine.page_count,
        )
        return data

    def write_comparison(self, outcomes: Sequence[ScenarioOutcome], path: Path) -> Path:
        """Compose and write the comparison report; returns after the file is closed."""
        return write_document(self.compose_comparison(outcomes), path)
