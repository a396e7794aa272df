"""Collectors that produce measurement results."""

from .load_generator import LoadGenerator, ResponseEvent, RunContext, summarize

__all__ = [
    "LoadGenerator",
    "ResponseEvent",
    "RunContext",
    "summarize",
]
