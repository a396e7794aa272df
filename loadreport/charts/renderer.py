"""Chart rasterization.

Uses Plotly to build figures and kaleido for static PNG export.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import plotly.graph_objects as go

from ..errors import RenderError
from .specs import BarChartSpec, ChartSpec, LineChartSpec, PieChartSpec

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 300


@dataclass(frozen=True)
class ChartImage:
    """Rendered chart: PNG bytes and intrinsic pixel size."""

    data: bytes
    width: int
    height: int


class Renderer(Protocol):
    def render(self, spec: ChartSpec) -> ChartImage: ...


def _bar_figure(spec: BarChartSpec) -> go.Figure:
    fig = go.Figure()
    labels = spec.category_labels or spec.categories
    positions = list(range(len(spec.categories)))
    for series in spec.series:
        marker = {
            "color": list(series.colors) or None,
            "line": {"color": list(series.border_colors) or None, "width": 1},
        }
        if spec.horizontal:
            fig.add_trace(
                go.Bar(x=list(series.values), y=positions, orientation="h",
                       name=series.label, marker=marker)
            )
        else:
            fig.add_trace(
                go.Bar(x=list(spec.categories), y=list(series.values),
                       name=series.label, marker=marker)
            )

    if spec.horizontal:
        # Bars sit on their positions so repeated names stay separate;
        # first category on top, ticks show the shortened labels
        fig.update_yaxes(
            autorange="reversed",
            tickmode="array",
            tickvals=positions,
            ticktext=list(labels),
        )
        fig.update_xaxes(title_text=spec.value_axis_title, rangemode="tozero")
    else:
        fig.update_yaxes(title_text=spec.value_axis_title, rangemode="tozero")
    fig.update_layout(showlegend=spec.show_legend)
    return fig


def _line_figure(spec: LineChartSpec) -> go.Figure:
    fig = go.Figure()
    for series in spec.series:
        color = series.color_for(0)
        fig.add_trace(
            go.Scatter(
                x=list(spec.categories),
                y=list(series.values),
                mode="lines+markers",
                name=series.label,
                line={"color": color, "shape": "spline", "smoothing": 0.1},
                marker={"size": 6, "color": color},
            )
        )
    fig.update_xaxes(title_text=spec.category_axis_title)
    fig.update_yaxes(title_text=spec.value_axis_title, rangemode="tozero")
    return fig


def _pie_figure(spec: PieChartSpec) -> go.Figure:
    series = spec.series[0]
    return go.Figure(
        go.Pie(
            labels=list(spec.categories),
            values=list(series.values),
            marker={
                "colors": [series.color_for(i) for i in range(len(spec.categories))],
                "line": {"color": "white", "width": 1},
            },
            sort=False,
        )
    )


def build_figure(spec: ChartSpec) -> go.Figure:
    """Translate a chart spec into a Plotly figure."""
    if isinstance(spec, BarChartSpec):
        fig = _bar_figure(spec)
    elif isinstance(spec, LineChartSpec):
        fig = _line_figure(spec)
    elif isinstance(spec, PieChartSpec):
        fig = _pie_figure(spec)
    else:
        raise TypeError(f"Unsupported chart spec: {type(spec).__name__}")

    fig.update_layout(
        title={"text": spec.title, "x": 0.5},
        template="plotly_white",
        paper_bgcolor="white",
        margin={"l": 60, "r": 20, "t": 50, "b": 50},
    )
    return fig


class ChartRenderer:
    """Renders chart specs to PNG at a fixed pixel size."""

    def __init__(
        self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT, scale: float = 2
    ) -> None:
        self.width = width
        self.height = height
        self.scale = scale

    def render(self, spec: ChartSpec) -> ChartImage:
        fig = build_figure(spec)
        try:
            data = fig.to_image(
                format="png", width=self.width, height=self.height, scale=self.scale
            )
        except Exception as e:
            raise RenderError(spec.title, f"chart export failed: {e}") from e
        logger.debug("Rendered %s chart '%s' (%d bytes)", spec.kind.value, spec.title, len(data))
        return ChartImage(
            data=data,
            width=int(self.width * self.scale),
            height=int(self.height * self.scale),
        )
