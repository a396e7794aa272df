"""Multi-scenario comparison: rankings, callouts, and table batching."""

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..charts.specs import shorten_name
from ..models import MeasurementResult
from ..ranking import RankedScenario, ScenarioOutcome, rank_by_latency, rank_by_throughput

METRIC_COLUMN_MAX_WIDTH = 150.0
METRIC_COLUMN_SHARE = 0.3
MIN_SCENARIO_COLUMN_WIDTH = 70.0
CALLOUT_NAME_MAX_LENGTH = 25


def format_number(value: float | int | None) -> str:
    """Integral values without decimals, everything else to two places."""
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


@dataclass(frozen=True)
class MetricRow:
    label: str
    value: Callable[[MeasurementResult], str]


METRIC_ROWS: tuple[MetricRow, ...] = (
    MetricRow("Min Latency (ms)", lambda r: format_number(r.latency.min)),
    MetricRow("Avg Latency (ms)", lambda r: f"{r.latency.average:.2f}"),
    MetricRow("Max Latency (ms)", lambda r: format_number(r.latency.max)),
    MetricRow("P90 Latency (ms)", lambda r: format_number(r.latency.p90)),
    MetricRow("P99 Latency (ms)", lambda r: format_number(r.latency.p99)),
    MetricRow("Req/sec", lambda r: f"{r.requests.average:.2f}"),
    MetricRow("Total Requests", lambda r: str(r.requests.total)),
    MetricRow("Errors", lambda r: str(r.errors)),
    MetricRow("Throughput (KB/s)", lambda r: f"{r.throughput.average / 1024:.2f}"),
)


@dataclass(frozen=True)
class ComparisonBatch:
    """The scenario columns that fit on one page width, in ranked order."""

    scenarios: tuple[RankedScenario, ...]
    index: int
    total: int
    metric_column_width: float
    scenario_column_width: float

    @property
    def title(self) -> str:
        if self.index == 0:
            return "Detailed Comparison"
        return f"Detailed Comparison (continued - {self.index + 1}/{self.total})"

    @property
    def column_widths(self) -> list[float]:
        return [self.metric_column_width] + [self.scenario_column_width] * len(self.scenarios)

    @property
    def header(self) -> list[str]:
        return ["Metric"] + [shorten_name(s.name) for s in self.scenarios]

    @property
    def rows(self) -> list[list[str]]:
        return [
            [metric.label] + [metric.value(s.result) for s in self.scenarios]
            for metric in METRIC_ROWS
        ]


def batch_scenarios(
    ranking: Sequence[RankedScenario], usable_width: float
) -> list[ComparisonBatch]:
    """Split ranked scenarios into table batches that fit the page width.

    The metric column takes ``min(150, 30%)`` of the usable width; the rest
    is shared by as many scenario columns as fit at 70 units each. Batches
    are disjoint and keep the ranking order.
    """
    if not ranking:
        return []

    metric_width = min(METRIC_COLUMN_MAX_WIDTH, usable_width * METRIC_COLUMN_SHARE)
    remaining_width = usable_width - metric_width
    per_batch = max(1, min(len(ranking), math.floor(remaining_width / MIN_SCENARIO_COLUMN_WIDTH)))
    column_width = remaining_width / per_batch

    chunks = [ranking[i : i + per_batch] for i in range(0, len(ranking), per_batch)]
    return [
        ComparisonBatch(
            scenarios=tuple(chunk),
            index=index,
            total=len(chunks),
            metric_column_width=metric_width,
            scenario_column_width=column_width,
        )
        for index, chunk in enumerate(chunks)
    ]


@dataclass(frozen=True)
class ComparisonSummary:
    """Everything the comparison document shows, before layout."""

    latency_ranking: list[RankedScenario]
    throughput_ranking: list[RankedScenario]
    batches: list[ComparisonBatch]

    @property
    def scenario_count(self) -> int:
        return len(self.latency_ranking)

    @property
    def best_latency(self) -> RankedScenario:
        return self.latency_ranking[0]

    @property
    def best_throughput(self) -> RankedScenario:
        return self.throughput_ranking[0]

    @property
    def best_latency_callout(self) -> str:
        best = self.best_latency
        name = shorten_name(best.name, CALLOUT_NAME_MAX_LENGTH)
        return f"Best Latency: {name} ({best.result.latency.average:.2f} ms)"

    @property
    def best_throughput_callout(self) -> str:
        best = self.best_throughput
        name = shorten_name(best.name, CALLOUT_NAME_MAX_LENGTH)
        return f"Best Throughput: {name} ({best.result.requests.average:.2f} req/sec)"


def build_comparison(
    outcomes: Sequence[ScenarioOutcome], usable_width: float
) -> ComparisonSummary:
    """Rank scenarios both ways and batch the detail table.

    The detail table follows the latency ordering.

    Raises:
        ValueError: With fewer than two scenarios.
    """
    if len(outcomes) < 2:
        raise ValueError(f"comparison needs at least 2 scenarios, got {len(outcomes)}")

    latency_ranking = rank_by_latency(outcomes)
    return ComparisonSummary(
        latency_ranking=latency_ranking,
        throughput_ranking=rank_by_throughput(outcomes),
        batches=batch_scenarios(latency_ranking, usable_width),
    )
