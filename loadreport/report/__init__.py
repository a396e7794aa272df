"""Report composition: single-scenario and comparison PDFs."""

from .comparison import (
    METRIC_ROWS,
    ComparisonBatch,
    ComparisonSummary,
    batch_scenarios,
    build_comparison,
    format_number,
)
from .composer import ReportComposer, payload_preview

__all__ = [
    "batch_scenarios",
    "build_comparison",
    "ComparisonBatch",
    "ComparisonSummary",
    "format_number",
    "METRIC_ROWS",
    "payload_preview",
    "ReportComposer",
]
