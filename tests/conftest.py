"""Shared fixtures: measurement results and a renderer that needs no browser."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import pytest
from PIL import Image

from loadreport.charts.renderer import ChartImage
from loadreport.charts.specs import ChartSpec
from loadreport.models import (
    LatencyStats,
    MeasurementResult,
    RequestStats,
    ThroughputStats,
)


def _png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


class FakeRenderer:
    """Records every spec it is asked to render and returns a blank PNG."""

    def __init__(self, width: int = 600, height: int = 300) -> None:
        self.image = ChartImage(data=_png_bytes(width, height), width=width, height=height)
        self.specs: list[ChartSpec] = []

    def render(self, spec: ChartSpec) -> ChartImage:
        self.specs.append(spec)
        return self.image


class FailingRenderer:
    def render(self, spec: ChartSpec) -> ChartImage:
        raise RuntimeError("canvas exploded")


@pytest.fixture
def chart_image() -> ChartImage:
    return ChartImage(data=_png_bytes(600, 300), width=600, height=300)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def make_result() -> Callable[..., MeasurementResult]:
    """Factory for results with sensible defaults."""

    def _make(
        avg_latency: float = 12.5,
        req_per_sec: float = 400.0,
        status_codes: dict[str, int] | None = None,
        timeline: dict[str, Any] | None = None,
        errors: int = 0,
        **kwargs: Any,
    ) -> MeasurementResult:
        return MeasurementResult(
            latency=LatencyStats(
                min=1,
                max=avg_latency * 4,
                average=avg_latency,
                stddev=avg_latency / 3,
                p1=1,
                p50=avg_latency,
                p75=avg_latency * 1.5,
                p90=avg_latency * 2,
                p99=avg_latency * 3,
            ),
            requests=RequestStats(total=int(req_per_sec * 10), average=req_per_sec),
            throughput=ThroughputStats(total=4_194_304, average=419_430.4),
            errors=errors,
            status_code_stats={"200": 3990, "500": 10} if status_codes is None else status_codes,
            requests_timeline=timeline,
            **kwargs,
        )

    return _make
