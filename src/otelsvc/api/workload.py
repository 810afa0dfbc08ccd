"""Client workload: periodic traced requests against a target URL."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

from opentelemetry.trace import Status, StatusCode

from otelsvc.api.client import InstrumentedHTTPClient
from otelsvc.errors import HTTPClientError
from otelsvc.logging import get_logger
from otelsvc.telemetry import TelemetryHandles, WorkloadMetrics

logger = get_logger(__name__)


@dataclass
class WorkloadStats:
    """Outcome counts of a workload run."""

    sent: int = 0
    succeeded: int = 0
    failed: int = 0


async def run_workload(
    client: InstrumentedHTTPClient,
    telemetry: TelemetryHandles,
    target_url: str,
    *,
    interval: float = 1.0,
    max_requests: int | None = None,
    stop_event: asyncio.Event | None = None,
) -> WorkloadStats:
    """Send requests until stopped or ``max_requests`` is reached.

    Each request runs inside a ``client-request-cycle`` span. Anything other
    than a 200 response counts as a failure; failures are logged and the
    loop carries on.

    Args:
        client: Client used to send requests
        telemetry: Providers for the workload's own spans and metrics
        target_url: URL to request
        interval: Seconds between requests
        max_requests: Stop after this many requests (None runs until stopped)
        stop_event: Event that ends the loop when set

    Returns:
        Counts of sent, succeeded and failed requests
    """
    tracer = telemetry.tracer("otel-client")
    workload_metrics = WorkloadMetrics(telemetry.meter("otel-client"))
    stop_event = stop_event or asyncio.Event()
    stats = WorkloadStats()

    logger.info("Starting client workload", target=target_url, interval=interval)

    request_number = 0
    while not stop_event.is_set():
        if max_requests is not None and request_number >= max_requests:
            break
        request_number += 1

        with tracer.start_as_current_span(
            "client-request-cycle",
            attributes={"request.number": request_number, "request.target": target_url},
        ) as cycle_span:
            workload_metrics.record_attempt(target_url)
            stats.sent += 1

            start_time = time.perf_counter()
            status: int | None = None
            with tracer.start_as_current_span(f"request-{request_number}") as span:
                try:
                    response = await client.get(target_url)
                    status = response["status"]
                except HTTPClientError as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    logger.error("Request failed", request_number=request_number, error=str(e))

            latency = time.perf_counter() - start_time

            if status == 200:
                workload_metrics.record_success(target_url, latency)
                stats.succeeded += 1
                logger.info(
                    "Request succeeded",
                    request_number=request_number,
                    latency_ms=round(latency * 1000, 1),
                )
            else:
                workload_metrics.record_failure(target_url)
                stats.failed += 1
                cycle_span.set_status(Status(StatusCode.ERROR))
                if status is not None:
                    logger.warning(
                        "Unexpected response status",
                        request_number=request_number,
                        status=status,
                    )

        if max_requests is not None and request_number >= max_requests:
            break
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except TimeoutError:
            pass

    logger.info(
        "Client workload finished",
        sent=stats.sent,
        succeeded=stats.succeeded,
        failed=stats.failed,
    )
    return stats
