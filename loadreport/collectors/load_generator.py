"""HTTP load generation on top of httpx.

Runs ``connections`` concurrent workers against one URL for ``duration``
seconds and summarizes what came back as a ``MeasurementResult``.
"""

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx
import numpy as np

from ..config import LoadTestConfig
from ..models import LatencyStats, MeasurementResult, RequestStats, ThroughputStats
from ..timeline import RequestTimeline

logger = logging.getLogger(__name__)

PERCENTILES = (1, 50, 75, 90, 99)


@dataclass(frozen=True)
class ResponseEvent:
    """One completed request, successful or not."""

    latency_ms: float
    status_code: int | None = None
    bytes_received: int = 0
    error: str | None = None


@dataclass
class RunContext:
    """Mutable state owned by exactly one scenario run.

    Events are delivered serially from the event loop, so handlers mutate
    it without locking.
    """

    timeline: RequestTimeline = field(default_factory=RequestTimeline)
    latencies_ms: list[float] = field(default_factory=list)
    status_counts: Counter[str] = field(default_factory=Counter)
    bytes_received: int = 0
    errors: int = 0

    def on_response(self, event: ResponseEvent) -> None:
        if event.error is not None:
            self.errors += 1
            return
        self.timeline.record()
        self.latencies_ms.append(event.latency_ms)
        self.bytes_received += event.bytes_received
        if event.status_code is not None:
            self.status_counts[str(event.status_code)] += 1


def summarize(
    context: RunContext,
    elapsed_seconds: float,
    config: LoadTestConfig,
    started_at: datetime,
    finished_at: datetime,
) -> MeasurementResult:
    """Reduce a run's raw observations to a MeasurementResult."""
    elapsed = max(elapsed_seconds, 1e-9)
    total = len(context.latencies_ms)

    if context.latencies_ms:
        samples = np.asarray(context.latencies_ms, dtype=float)
        p1, p50, p75, p90, p99 = (float(v) for v in np.percentile(samples, PERCENTILES))
        latency = LatencyStats(
            min=float(samples.min()),
            max=float(samples.max()),
            average=float(samples.mean()),
            stddev=float(samples.std()),
            p1=p1,
            p50=p50,
            p75=p75,
            p90=p90,
            p99=p99,
        )
    else:
        latency = LatencyStats()

    timeline = context.timeline.as_mapping()
    return MeasurementResult(
        latency=latency,
        requests=RequestStats(total=total, average=total / elapsed),
        throughput=ThroughputStats(
            total=float(context.bytes_received),
            average=context.bytes_received / elapsed,
        ),
        errors=context.errors,
        status_code_stats=dict(context.status_counts),
        requests_timeline=timeline or None,
        duration=config.duration,
        url=config.url,
        started_at=started_at.isoformat(),
        finished_at=finished_at.isoformat(),
    )


class LoadGenerator:
    """Drives concurrent requests for one scenario."""

    def __init__(
        self,
        config: LoadTestConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._transport = transport
        self._clock = clock

    def _headers(self) -> dict[str, str]:
        headers = dict(self.config.headers)
        if self.config.body is not None and not any(
            k.lower() == "content-type" for k in headers
        ):
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(self, client: httpx.AsyncClient) -> ResponseEvent:
        start = self._clock()
        try:
            response = await client.request(
                self.config.method,
                self.config.url,
                headers=self._headers(),
                content=self.config.body,
            )
        except httpx.HTTPError as e:
            return ResponseEvent(
                latency_ms=(self._clock() - start) * 1000, error=type(e).__name__
            )
        return ResponseEvent(
            latency_ms=(self._clock() - start) * 1000,
            status_code=response.status_code,
            bytes_received=len(response.content),
        )

    async def _worker(
        self, client: httpx.AsyncClient, context: RunContext, deadline: float
    ) -> None:
        while self._clock() < deadline:
            context.on_response(await self._request(client))

    async def run_async(self) -> MeasurementResult:
        config = self.config
        context = RunContext(timeline=RequestTimeline(clock=self._clock))
        limits = httpx.Limits(
            max_connections=config.connections, max_keepalive_connections=config.connections
        )

        logger.info(
            "Running %s %s with %d connections for %ds",
            config.method,
            config.url,
            config.connections,
            config.duration,
        )
        started_at = datetime.now(UTC)
        async with httpx.AsyncClient(
            timeout=config.timeout, limits=limits, transport=self._transport
        ) as client:
            context.timeline.start()
            start = self._clock()
            deadline = start + config.duration
            await asyncio.gather(
                *(self._worker(client, context, deadline) for _ in range(config.connections))
            )
            elapsed = self._clock() - start
        finished_at = datetime.now(UTC)

        result = summarize(context, elapsed, config, started_at, finished_at)
        logger.info(
            "Completed %d requests (%.2f req/sec, %d errors, avg latency %.2f ms)",
            result.requests.total,
            result.requests.average,
            result.errors,
            result.latency.average,
        )
        return result

    def run(self) -> MeasurementResult:
        """Run the scenario to completion (blocking)."""
        return asyncio.run(self.run_async())
