"""Per-second request timeline: live counting and reconstruction.

``RequestTimeline`` is the counter a scenario run feeds from its response
callback. ``reconstruct_timeline`` turns whatever a finished result carries
into an ordered ``TimelineSeries`` for the requests chart.
"""

import logging
import time
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .models import MeasurementResult

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 30


@dataclass(frozen=True)
class TimelinePoint:
    """Requests completed during one elapsed second."""

    elapsed_second: int
    count: float

    def __post_init__(self) -> None:
        if self.elapsed_second < 0:
            raise ValueError(f"elapsed_second must be >= 0, got {self.elapsed_second}")
        if self.count < 0:
            raise ValueError(f"count must be >= 0, got {self.count}")


@dataclass(frozen=True)
class TimelineSeries:
    """Ordered per-second request counts, strictly increasing by second."""

    points: tuple[TimelinePoint, ...]
    is_fallback: bool = False

    def __post_init__(self) -> None:
        seconds = [p.elapsed_second for p in self.points]
        if any(a >= b for a, b in zip(seconds, seconds[1:])):
            raise ValueError("timeline seconds must be strictly increasing")

    def __len__(self) -> int:
        return len(self.points)

    @property
    def labels(self) -> list[str]:
        return [f"{p.elapsed_second}s" for p in self.points]

    @property
    def counts(self) -> list[float]:
        return [p.count for p in self.points]


class RequestTimeline:
    """Counts responses per whole elapsed second of a single scenario run.

    One instance belongs to one scenario run and is handed explicitly to
    the response callback. Responses arrive serialized on the event loop,
    so ``record`` is a plain increment.
    """

    def __init__(self, clock: Any = time.monotonic) -> None:
        self._clock = clock
        self._started: float | None = None
        self._counts: Counter[int] = Counter()

    def start(self) -> None:
        self._started = self._clock()
        self._counts.clear()

    def record(self, now: float | None = None) -> int:
        """Count one response and return the elapsed second it landed in."""
        if self._started is None:
            self.start()
        assert self._started is not None
        current = self._clock() if now is None else now
        elapsed = max(int(current - self._started), 0)
        self._counts[elapsed] += 1
        return elapsed

    def as_mapping(self) -> dict[str, int]:
        """Counts keyed by elapsed second as strings (the JSON shape)."""
        return {str(second): count for second, count in sorted(self._counts.items())}

    def __len__(self) -> int:
        return len(self._counts)


def _sorted_points(mapping: Mapping[Any, Any] | None) -> list[TimelinePoint] | None:
    """Sort a second->count mapping numerically.

    Returns None for an empty or malformed mapping so the caller can fall
    through to its next strategy.
    """
    if not mapping:
        return None

    parsed: dict[int, float] = {}
    try:
        for key, value in mapping.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            parsed[int(key)] = value
        return [TimelinePoint(second, parsed[second]) for second in sorted(parsed)]
    except (TypeError, ValueError):
        return None


def reconstruct_timeline(
    result: MeasurementResult, duration: int | None = None
) -> TimelineSeries:
    """Build the requests-per-second series for a result.

    Strategies, in order:
    1. the per-second counts recorded during the run;
    2. numeric-string keys found on the raw ``requests`` object;
    3. a flat series of ``requests.average`` for every second of the run.

    Args:
        result: Finished measurement.
        duration: Configured test duration in seconds, used by the fallback
            when the result does not carry its own.

    Returns:
        TimelineSeries; ``is_fallback`` is set for strategy 3.
    """
    for source in (result.requests_timeline, result.legacy_timeline):
        points = _sorted_points(source)
        if points:
            return TimelineSeries(points=tuple(points))

    seconds = result.duration or duration or DEFAULT_DURATION_SECONDS
    logger.debug("No per-second samples; using flat average over %ds", seconds)
    average = result.requests.average
    return TimelineSeries(
        points=tuple(TimelinePoint(i, average) for i in range(1, seconds + 1)),
        is_fallback=True,
    )
