"""Tests for rank-position gradient colors and scenario ordering."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from loadreport.models import MeasurementResult
from loadreport.ranking import (
    FILL_ALPHA,
    RGBA,
    ScenarioOutcome,
    gradient_color,
    gradient_colors,
    rank_by_latency,
    rank_by_throughput,
)


# ------------------------------------------------------------------
# Gradient
# ------------------------------------------------------------------


class TestGradientColor:
    """Rank 0 is teal-green, the middle yellow, the last red."""

    def test_single_entry_is_best_color(self) -> None:
        assert gradient_colors(1) == [RGBA(75, 75, 192, FILL_ALPHA)]

    def test_five_entries(self) -> None:
        rgb = [(c.red, c.green, c.blue) for c in gradient_colors(5)]

        assert rgb == [
            (75, 75, 192),
            (75, 165, 192),
            (255, 255, 128),
            (255, 128, 64),
            (255, 0, 0),
        ]

    def test_three_entries_hit_both_ends_and_middle(self) -> None:
        rgb = [(c.red, c.green, c.blue) for c in gradient_colors(3)]

        assert rgb == [(75, 75, 192), (255, 255, 128), (255, 0, 0)]

    @pytest.mark.parametrize("count", range(2, 12))
    def test_best_rank_is_greener_than_worst(self, count: int) -> None:
        colors = gradient_colors(count)

        assert colors[0].red < colors[-1].red
        assert colors[0].blue > colors[-1].blue

    def test_alpha_applied(self) -> None:
        assert gradient_color(0, 3, alpha=1.0).alpha == 1.0

    @pytest.mark.parametrize(("position", "count"), [(0, 0), (-1, 3), (3, 3)])
    def test_invalid_positions_rejected(self, position: int, count: int) -> None:
        with pytest.raises(ValueError):
            gradient_color(position, count)


class TestRGBA:
    """CSS and hex rendering."""

    def test_css(self) -> None:
        color = RGBA(75, 75, 192, 0.6)

        assert color.css == "rgba(75, 75, 192, 0.6)"
        assert color.with_alpha(1.0).css == "rgba(75, 75, 192, 1)"

    def test_hex(self) -> None:
        assert RGBA(255, 128, 0).hex == "#ff8000"


# ------------------------------------------------------------------
# Ranking
# ------------------------------------------------------------------


class TestRanking:
    """Latency and throughput orderings are independent."""

    @pytest.fixture
    def outcomes(self, make_result: Callable[..., MeasurementResult]) -> list[ScenarioOutcome]:
        return [
            ScenarioOutcome("slow-but-busy", make_result(avg_latency=30, req_per_sec=900)),
            ScenarioOutcome("fast", make_result(avg_latency=5, req_per_sec=300)),
            ScenarioOutcome("middle", make_result(avg_latency=12, req_per_sec=600)),
        ]

    def test_latency_ascending(self, outcomes: list[ScenarioOutcome]) -> None:
        ranking = rank_by_latency(outcomes)

        assert [r.name for r in ranking] == ["fast", "middle", "slow-but-busy"]
        assert [r.rank for r in ranking] == [0, 1, 2]

    def test_throughput_descending(self, outcomes: list[ScenarioOutcome]) -> None:
        ranking = rank_by_throughput(outcomes)

        assert [r.name for r in ranking] == ["slow-but-busy", "middle", "fast"]

    def test_each_ordering_gets_its_own_gradient(self, outcomes: list[ScenarioOutcome]) -> None:
        latency = rank_by_latency(outcomes)
        throughput = rank_by_throughput(outcomes)

        assert latency[0].color == gradient_color(0, 3)
        assert throughput[0].color == gradient_color(0, 3)
        assert throughput[-1].color == gradient_color(2, 3)

    def test_border_is_opaque(self, outcomes: list[ScenarioOutcome]) -> None:
        ranked = rank_by_latency(outcomes)[0]

        assert ranked.border_color.alpha == 1.0
        assert ranked.border_color.green == ranked.color.green

    def test_ties_keep_input_order(self, make_result: Callable[..., MeasurementResult]) -> None:
        outcomes = [
            ScenarioOutcome("first", make_result(avg_latency=10)),
            ScenarioOutcome("second", make_result(avg_latency=10)),
        ]

        assert [r.name for r in rank_by_latency(outcomes)] == ["first", "second"]

    def test_empty_input(self) -> None:
        assert rank_by_latency([]) == []
