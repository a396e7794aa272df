"""Scenario ranking and rank-position gradient colors.

Best performers are drawn teal-green, the middle of the field yellow and
the worst red. Each ordering (latency, throughput) gets its own gradient.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .models import MeasurementResult

FILL_ALPHA = 0.6


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RGBA:
    """An RGB color with opacity, rendered as a CSS ``rgba()`` string."""

    red: int
    green: int
    blue: int
    alpha: float = 1.0

    def with_alpha(self, alpha: float) -> "RGBA":
        return replace(self, alpha=alpha)

    @property
    def css(self) -> str:
        return f"rgba({self.red}, {self.green}, {self.blue}, {self.alpha:g})"

    @property
    def hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


def gradient_color(position: int, count: int, alpha: float = FILL_ALPHA) -> RGBA:
    """Color for a rank position within an ordering of ``count`` entries."""
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    if not 0 <= position < count:
        raise ValueError(f"position {position} out of range for {count} entries")

    ratio = position / max(count - 1, 1)
    if ratio < 0.5:
        # teal -> yellow
        green = 75 + (255 - 75) * (ratio * 2)
        return RGBA(75, _round_half_up(green), 192, alpha)
    # yellow -> red
    green = 255 - 255 * ((ratio - 0.5) * 2)
    return RGBA(255, _round_half_up(green), _round_half_up(green * 0.5), alpha)


def gradient_colors(count: int, alpha: float = FILL_ALPHA) -> list[RGBA]:
    """Colors for positions ``0..count-1``."""
    return [gradient_color(i, count, alpha) for i in range(count)]


@dataclass(frozen=True)
class ScenarioOutcome:
    """A completed scenario: its name and measurement."""

    name: str
    result: MeasurementResult


@dataclass(frozen=True)
class RankedScenario:
    """A scenario placed within one ordering."""

    name: str
    result: MeasurementResult
    rank: int
    color: RGBA

    @property
    def border_color(self) -> RGBA:
        return self.color.with_alpha(1.0)


def _rank(ordered: Sequence[ScenarioOutcome]) -> list[RankedScenario]:
    colors = gradient_colors(len(ordered)) if ordered else []
    return [
        RankedScenario(name=o.name, result=o.result, rank=i, color=colors[i])
        for i, o in enumerate(ordered)
    ]


def rank_by_latency(outcomes: Sequence[ScenarioOutcome]) -> list[RankedScenario]:
    """Order by ascending average latency (lowest is best)."""
    return _rank(sorted(outcomes, key=lambda o: o.result.latency.average))


def rank_by_throughput(outcomes: Sequence[ScenarioOutcome]) -> list[RankedScenario]:
    """Order by descending average requests/sec (highest is best)."""
    return _rank(sorted(outcomes, key=lambda o: o.result.requests.average, reverse=True))
