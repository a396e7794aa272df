"""Declarative chart descriptions built from measurement results.

A chart is one of a closed set of kinds. Each kind carries only the fields
it needs and is validated on construction; rendering lives in
``renderer.py``.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..models import MeasurementResult
from ..ranking import RankedScenario
from ..timeline import TimelineSeries

LATENCY_COLORS: tuple[tuple[str, str], ...] = (
    ("rgba(75, 192, 192, 0.6)", "rgba(75, 192, 192, 1)"),
    ("rgba(54, 162, 235, 0.6)", "rgba(54, 162, 235, 1)"),
    ("rgba(255, 99, 132, 0.6)", "rgba(255, 99, 132, 1)"),
    ("rgba(255, 206, 86, 0.6)", "rgba(255, 206, 86, 1)"),
)
TIMELINE_COLOR = "rgb(75, 192, 192)"
STATUS_CODE_COLORS: tuple[str, ...] = (
    "rgba(75, 192, 192, 0.6)",
    "rgba(54, 162, 235, 0.6)",
    "rgba(255, 99, 132, 0.6)",
    "rgba(255, 206, 86, 0.6)",
    "rgba(153, 102, 255, 0.6)",
)
AXIS_LABEL_MAX_LENGTH = 15


class ChartKind(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"


def shorten_name(name: str, max_length: int = AXIS_LABEL_MAX_LENGTH) -> str:
    """Truncate long names to ``max_length - 3`` characters plus '...'."""
    if len(name) > max_length:
        return name[: max_length - 3] + "..."
    return name


@dataclass(frozen=True)
class ChartSeries:
    """One data series. ``colors`` holds one entry per point, or one for all."""

    label: str
    values: tuple[float, ...]
    colors: tuple[str, ...] = ()
    border_colors: tuple[str, ...] = ()

    def color_for(self, index: int) -> str | None:
        if not self.colors:
            return None
        return self.colors[index % len(self.colors)]


def _check_series(categories: Sequence[str], series: Sequence[ChartSeries]) -> None:
    if not series:
        raise ValueError("chart needs at least one series")
    for s in series:
        if len(s.values) != len(categories):
            raise ValueError(
                f"series '{s.label}' has {len(s.values)} values for {len(categories)} categories"
            )


@dataclass(frozen=True)
class BarChartSpec:
    title: str
    categories: tuple[str, ...]
    series: tuple[ChartSeries, ...]
    value_axis_title: str = ""
    horizontal: bool = False
    # Display text per category; defaults to the categories themselves
    category_labels: tuple[str, ...] = ()
    show_legend: bool = True

    kind = ChartKind.BAR

    def __post_init__(self) -> None:
        _check_series(self.categories, self.series)
        if self.category_labels and len(self.category_labels) != len(self.categories):
            raise ValueError("category_labels must match categories")


@dataclass(frozen=True)
class LineChartSpec:
    title: str
    categories: tuple[str, ...]
    series: tuple[ChartSeries, ...]
    value_axis_title: str = ""
    category_axis_title: str = ""

    kind = ChartKind.LINE

    def __post_init__(self) -> None:
        _check_series(self.categories, self.series)


@dataclass(frozen=True)
class PieChartSpec:
    title: str
    categories: tuple[str, ...]
    series: tuple[ChartSeries, ...]

    kind = ChartKind.PIE

    def __post_init__(self) -> None:
        _check_series(self.categories, self.series)
        if len(self.series) != 1:
            raise ValueError("pie chart takes exactly one series")


ChartSpec = BarChartSpec | LineChartSpec | PieChartSpec


# ─────────────────────────────────────────────────────────
#  Single-scenario charts
# ─────────────────────────────────────────────────────────


def latency_chart(result: MeasurementResult) -> BarChartSpec:
    latency = result.latency
    return BarChartSpec(
        title="Latency Metrics",
        categories=("Min", "Average", "Max", "Std Dev"),
        series=(
            ChartSeries(
                label="Latency (ms)",
                values=(latency.min, latency.average, latency.max, latency.stddev),
                colors=tuple(fill for fill, _ in LATENCY_COLORS),
                border_colors=tuple(border for _, border in LATENCY_COLORS),
            ),
        ),
        value_axis_title="Milliseconds",
    )


def requests_chart(timeline: TimelineSeries) -> LineChartSpec:
    return LineChartSpec(
        title="Requests Timeline",
        categories=tuple(timeline.labels),
        series=(
            ChartSeries(
                label="Requests per Second",
                values=tuple(timeline.counts),
                colors=(TIMELINE_COLOR,),
            ),
        ),
        value_axis_title="Requests/Sec",
        category_axis_title="Time (seconds)",
    )


def status_code_chart(result: MeasurementResult) -> PieChartSpec | None:
    """Status code distribution, or None when no status counts exist."""
    stats = result.status_code_stats
    if not stats:
        return None
    return PieChartSpec(
        title="Status Code Distribution",
        categories=tuple(stats.keys()),
        series=(
            ChartSeries(
                label="Responses",
                values=tuple(float(v) for v in stats.values()),
                colors=STATUS_CODE_COLORS,
            ),
        ),
    )


# ─────────────────────────────────────────────────────────
#  Comparison charts
# ─────────────────────────────────────────────────────────


def _comparison_chart(
    ranking: Sequence[RankedScenario],
    title: str,
    series_label: str,
    axis_title: str,
    values: Sequence[float],
) -> BarChartSpec:
    names = tuple(r.name for r in ranking)
    return BarChartSpec(
        title=title,
        categories=names,
        series=(
            ChartSeries(
                label=series_label,
                values=tuple(values),
                colors=tuple(r.color.css for r in ranking),
                border_colors=tuple(r.border_color.css for r in ranking),
            ),
        ),
        value_axis_title=axis_title,
        horizontal=True,
        category_labels=tuple(shorten_name(n) for n in names),
        show_legend=False,
    )


def latency_comparison_chart(ranking: Sequence[RankedScenario]) -> BarChartSpec:
    """Average latency per scenario, best (lowest) first."""
    return _comparison_chart(
        ranking,
        title="Latency Comparison",
        series_label="Average Latency (ms)",
        axis_title="Milliseconds (lower is better)",
        values=[r.result.latency.average for r in ranking],
    )


def throughput_comparison_chart(ranking: Sequence[RankedScenario]) -> BarChartSpec:
    """Average requests/sec per scenario, best (highest) first."""
    return _comparison_chart(
        ranking,
        title="Throughput Comparison",
        series_label="Requests per Second",
        axis_title="Requests/Second (higher is better)",
        values=[r.result.requests.average for r in ranking],
    )
