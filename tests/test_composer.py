"""Tests for single-scenario and comparison PDF composition."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from conftest import FailingRenderer, FakeRenderer
from loadreport.charts.specs import ChartKind
from loadreport.config import LoadTestConfig
from loadreport.errors import RenderError, ReportIOError
from loadreport.layout import DocumentLayoutEngine
from loadreport.models import MeasurementResult
from loadreport.ranking import ScenarioOutcome
from loadreport.report.composer import PAYLOAD_PREVIEW_LIMIT, ReportComposer, payload_preview


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _composer(renderer: object) -> ReportComposer:
    return ReportComposer(renderer, clock=lambda: datetime(2024, 1, 2, 3, 4, 5))  # type: ignore[arg-type]


def _config(**overrides: object) -> LoadTestConfig:
    return LoadTestConfig.model_validate(
        {"name": "checkout", "url": "http://localhost:8080/api", "duration": 7, **overrides}
    )


def _record_layout(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, int]]:
    """Log every placed text and image with the page it ended up on."""
    events: list[tuple[str, int]] = []
    place_text = DocumentLayoutEngine.place_text
    place_image = DocumentLayoutEngine.place_image

    def recording_text(self: DocumentLayoutEngine, text: str, *args: object) -> float:
        height = place_text(self, text, *args)
        events.append((text, self.page_count))
        return height

    def recording_image(self: DocumentLayoutEngine, *args: object) -> tuple[float, float]:
        size = place_image(self, *args)
        events.append(("<image>", self.page_count))
        return size

    monkeypatch.setattr(DocumentLayoutEngine, "place_text", recording_text)
    monkeypatch.setattr(DocumentLayoutEngine, "place_image", recording_image)
    return events


# ------------------------------------------------------------------
# Payload preview
# ------------------------------------------------------------------


class TestPayloadPreview:
    """Payloads are pretty-printed and capped."""

    def test_short_payload_unchanged(self) -> None:
        payload = {"user": "alice", "items": [1, 2]}

        assert payload_preview(payload) == json.dumps(payload, indent=2)

    def test_long_payload_truncated(self) -> None:
        payload = {"data": "x" * 1000}
        full = json.dumps(payload, indent=2)

        preview = payload_preview(payload)

        assert len(preview) == PAYLOAD_PREVIEW_LIMIT
        assert preview.endswith("...")
        assert preview[:-3] == full[: PAYLOAD_PREVIEW_LIMIT - 3]


# ------------------------------------------------------------------
# Single-scenario report
# ------------------------------------------------------------------


class TestComposeSingle:
    """One scenario, three charts, two pages or more."""

    def test_renders_pdf_with_all_charts(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        data = _composer(fake_renderer).compose_single(make_result(), _config())

        assert data.startswith(b"%PDF")
        assert [s.kind for s in fake_renderer.specs] == [
            ChartKind.BAR,
            ChartKind.LINE,
            ChartKind.PIE,
        ]

    def test_status_chart_omitted_without_counts(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
    ) -> None:
        events = _record_layout(monkeypatch)

        _composer(fake_renderer).compose_single(make_result(status_codes={}), _config())

        assert [s.kind for s in fake_renderer.specs] == [ChartKind.BAR, ChartKind.LINE]
        texts = [text for text, _ in events]
        assert "Status Codes:" not in texts
        assert texts.count("<image>") == 2

    def test_status_section_lists_counts(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
    ) -> None:
        events = _record_layout(monkeypatch)

        _composer(fake_renderer).compose_single(make_result(), _config())

        texts = [text for text, _ in events]
        assert "Status Codes:" in texts
        assert "  200: 3990" in texts
        assert "  500: 10" in texts

    @pytest.mark.parametrize("page_height", range(480, 850, 30))
    def test_summary_heading_stays_with_first_chart(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
        page_height: int,
    ) -> None:
        """However the header falls, the heading is never left behind."""
        events = _record_layout(monkeypatch)
        composer = ReportComposer(
            fake_renderer,  # type: ignore[arg-type]
            page_size=(595.0, float(page_height)),
            clock=lambda: datetime(2024, 1, 2, 3, 4, 5),
        )

        composer.compose_single(make_result(), _config(payload={"blob": "y" * 400}))

        texts = [text for text, _ in events]
        heading = texts.index("Test Results Summary")
        assert texts[heading + 1] == "<image>"
        assert events[heading][1] == events[heading + 1][1]

    def test_fallback_timeline_uses_configured_duration(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        _composer(fake_renderer).compose_single(make_result(req_per_sec=40), _config())

        requests_spec = fake_renderer.specs[1]
        assert len(requests_spec.categories) == 7
        assert set(requests_spec.series[0].values) == {40}

    def test_recorded_timeline_used(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        result = make_result(timeline={"0": 10, "2": 30, "1": 20})

        _composer(fake_renderer).compose_single(result, _config())

        assert fake_renderer.specs[1].series[0].values == (10, 20, 30)

    def test_long_payload_and_many_codes(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        codes = {str(code): 1 for code in range(200, 260)}
        config = _config(method="post", payload={"blob": "y" * 5000})

        data = _composer(fake_renderer).compose_single(make_result(status_codes=codes), config)

        assert data.startswith(b"%PDF")

    def test_render_failure_names_scenario(
        self, make_result: Callable[..., MeasurementResult]
    ) -> None:
        with pytest.raises(RenderError) as excinfo:
            _composer(FailingRenderer()).compose_single(make_result(), _config())

        assert excinfo.value.label == "checkout"
        assert "canvas exploded" in str(excinfo.value)

    def test_write_single(
        self,
        tmp_path: Path,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
    ) -> None:
        target = tmp_path / "checkout.pdf"

        written = _composer(fake_renderer).write_single(make_result(), _config(), target)

        assert written == target
        assert target.read_bytes().startswith(b"%PDF")

    def test_write_single_to_missing_directory(
        self,
        tmp_path: Path,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
    ) -> None:
        target = tmp_path / "missing" / "checkout.pdf"

        with pytest.raises(ReportIOError) as excinfo:
            _composer(fake_renderer).write_single(make_result(), _config(), target)

        assert excinfo.value.path == target


# ------------------------------------------------------------------
# Comparison report
# ------------------------------------------------------------------


class TestComposeComparison:
    """Ranked charts and batched detail tables."""

    def test_charts_follow_each_ranking(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        outcomes = [
            ScenarioOutcome("A", make_result(avg_latency=10, req_per_sec=300)),
            ScenarioOutcome("B", make_result(avg_latency=20, req_per_sec=500)),
        ]

        data = _composer(fake_renderer).compose_comparison(outcomes)

        assert data.startswith(b"%PDF")
        latency_spec, throughput_spec = fake_renderer.specs
        assert latency_spec.title == "Latency Comparison"
        assert latency_spec.categories == ("A", "B")
        assert throughput_spec.title == "Throughput Comparison"
        assert throughput_spec.categories == ("B", "A")

    def test_many_scenarios(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        outcomes = [
            ScenarioOutcome(f"scenario number {i}", make_result(avg_latency=5 + i))
            for i in range(10)
        ]

        data = _composer(fake_renderer).compose_comparison(outcomes)

        assert data.startswith(b"%PDF")
        assert len(fake_renderer.specs[0].categories) == 10

    def test_summary_uses_page_width(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        outcomes = [ScenarioOutcome(str(i), make_result(avg_latency=i + 1)) for i in range(10)]

        summary = _composer(fake_renderer).summarize(outcomes)

        assert [len(b.scenarios) for b in summary.batches] == [4, 4, 2]

    def test_single_scenario_rejected(
        self, fake_renderer: FakeRenderer, make_result: Callable[..., MeasurementResult]
    ) -> None:
        with pytest.raises(ValueError):
            _composer(fake_renderer).compose_comparison([ScenarioOutcome("A", make_result())])

    def test_render_failure(self, make_result: Callable[..., MeasurementResult]) -> None:
        outcomes = [
            ScenarioOutcome("A", make_result(avg_latency=1)),
            ScenarioOutcome("B", make_result(avg_latency=2)),
        ]

        with pytest.raises(RenderError) as excinfo:
            _composer(FailingRenderer()).compose_comparison(outcomes)

        assert excinfo.value.label == "comparison"

    def test_write_comparison(
        self,
        tmp_path: Path,
        fake_renderer: FakeRenderer,
        make_result: Callable[..., MeasurementResult],
    ) -> None:
        outcomes = [
            ScenarioOutcome("A", make_result(avg_latency=1)),
            ScenarioOutcome("B", make_result(avg_latency=2)),
        ]
        target = tmp_path / "comparison.pdf"

        _composer(fake_renderer).write_comparison(outcomes, target)

        assert target.read_bytes().startswith(b"%PDF")
