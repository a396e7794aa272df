"""Measurement result data model.

The JSON shape follows the load generator's output (camelCase keys such as
``statusCodeStats`` and ``requestsTimeline``) so that results saved by one
run can be re-rendered by a later one.
"""

from dataclasses import dataclass, field
from typing import Any

PERCENTILE_KEYS: tuple[str, ...] = ("p1", "p50", "p75", "p90", "p99")


def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON value to float, falling back to default."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_status_codes(raw: Any) -> dict[str, int]:
    """Parse status code counts.

    Accepts ``{"200": 10}`` as well as ``{"200": {"count": 10}}``. Anything
    malformed yields an empty mapping, which suppresses the status code
    chart and section downstream.
    """
    if not isinstance(raw, dict):
        return {}

    counts: dict[str, int] = {}
    for code, value in raw.items():
        if isinstance(value, dict):
            value = value.get("count")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return {}
        counts[str(code)] = int(value)
    return counts


@dataclass(frozen=True)
class LatencyStats:
    """Latency distribution in milliseconds."""

    min: float = 0.0
    max: float = 0.0
    average: float = 0.0
    stddev: float = 0.0
    p1: float | None = None
    p50: float | None = None
    p75: float | None = None
    p90: float | None = None
    p99: float | None = None

    @property
    def has_percentiles(self) -> bool:
        return self.p1 is not None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "LatencyStats":
        return cls(
            min=_as_float(raw.get("min")),
            max=_as_float(raw.get("max")),
            average=_as_float(raw.get("average")),
            stddev=_as_float(raw.get("stddev")),
            **{key: _as_optional_float(raw.get(key)) for key in PERCENTILE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "min": self.min,
            "max": self.max,
            "average": self.average,
            "stddev": self.stddev,
        }
        for key in PERCENTILE_KEYS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class RequestStats:
    """Request counters: total and average requests per second."""

    total: int = 0
    average: float = 0.0


@dataclass(frozen=True)
class ThroughputStats:
    """Bytes transferred: cumulative total and average bytes per second."""

    total: float = 0.0
    average: float = 0.0


@dataclass(frozen=True)
class MeasurementResult:
    """Outcome of one load test run. Immutable once produced."""

    latency: LatencyStats = field(default_factory=LatencyStats)
    requests: RequestStats = field(default_factory=RequestStats)
    throughput: ThroughputStats = field(default_factory=ThroughputStats)
    errors: int = 0
    status_code_stats: dict[str, int] = field(default_factory=dict)
    # Per-second request counts keyed by elapsed second, attached after the run
    requests_timeline: dict[str, Any] | None = None
    # Numeric-string keyed entries of the raw "requests" object (alternate shape)
    legacy_timeline: dict[str, Any] = field(default_factory=dict)
    duration: int | None = None
    url: str | None = None
    started_at: str | None = None
    finished_at: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "MeasurementResult":
        """Build a result from the load generator's JSON shape."""
        latency = raw.get("latency")
        requests = raw.get("requests")
        throughput = raw.get("throughput")
        latency = latency if isinstance(latency, dict) else {}
        requests = requests if isinstance(requests, dict) else {}
        throughput = throughput if isinstance(throughput, dict) else {}

        timeline = raw.get("requestsTimeline")
        duration = _as_int(raw.get("duration")) or None

        return cls(
            latency=LatencyStats.from_dict(latency),
            requests=RequestStats(
                total=_as_int(requests.get("total")),
                average=_as_float(requests.get("average")),
            ),
            throughput=ThroughputStats(
                total=_as_float(throughput.get("total")),
                average=_as_float(throughput.get("average")),
            ),
            errors=_as_int(raw.get("errors")),
            status_code_stats=_parse_status_codes(raw.get("statusCodeStats")),
            requests_timeline=dict(timeline) if isinstance(timeline, dict) else None,
            legacy_timeline={
                str(key): value for key, value in requests.items() if str(key).isdigit()
            },
            duration=duration,
            url=raw.get("url"),
            started_at=raw.get("start"),
            finished_at=raw.get("finish"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape accepted by from_dict."""
        requests: dict[str, Any] = {
            "total": self.requests.total,
            "average": self.requests.average,
        }
        requests.update(self.legacy_timeline)

        data: dict[str, Any] = {
            "url": self.url,
            "start": self.started_at,
            "finish": self.finished_at,
            "duration": self.duration,
            "latency": self.latency.to_dict(),
            "requests": requests,
            "throughput": {
                "total": self.throughput.total,
                "average": self.throughput.average,
            },
            "errors": self.errors,
            "statusCodeStats": dict(self.status_code_stats),
        }
        if self.requests_timeline:
            data["requestsTimeline"] = dict(self.requests_timeline)
        return data
