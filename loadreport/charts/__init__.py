"""Chart descriptions and their rendering to PNG."""

from .renderer import ChartImage, ChartRenderer, Renderer
from .specs import (
    BarChartSpec,
    ChartKind,
    ChartSeries,
    ChartSpec,
    LineChartSpec,
    PieChartSpec,
    latency_chart,
    latency_comparison_chart,
    requests_chart,
    shorten_name,
    status_code_chart,
    throughput_comparison_chart,
)

__all__ = [
    "BarChartSpec",
    "ChartImage",
    "ChartKind",
    "ChartRenderer",
    "ChartSeries",
    "ChartSpec",
    "LineChartSpec",
    "PieChartSpec",
    "Renderer",
    "latency_chart",
    "latency_comparison_chart",
    "requests_chart",
    "shorten_name",
    "status_code_chart",
    "throughput_comparison_chart",
]
