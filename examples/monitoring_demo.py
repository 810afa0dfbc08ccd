"""Monitoring and observability demonstration.

This example shows how to:
1. Set up tracing and metrics with a TelemetryProvider
2. Trace functions with @traced
3. Record request metrics with the instrument bundles
4. Shut telemetry down and flush everything

Spans and metrics are printed to the console, so no collector is needed.
For a real collector, set OTELSVC_EXPORTER_TYPE=otlp and OTLP_ENDPOINT.
"""

import asyncio
import random
import time

from otelsvc.errors import ShutdownAggregateError
from otelsvc.logging import get_logger, setup_logging
from otelsvc.telemetry import (
    ServerMetrics,
    TelemetryConfig,
    TelemetryHandles,
    TelemetryProvider,
    traced,
)

logger = get_logger(__name__)


@traced(name="demo.fast_operation")
async def fast_operation() -> dict:
    """Fast operation."""
    await asyncio.sleep(0.01)
    return {"status": "success", "latency_ms": 10}


@traced(name="demo.slow_operation", attributes={"component": "demo"})
async def slow_operation() -> dict:
    """Slow operation."""
    await asyncio.sleep(0.5)
    return {"status": "success", "latency_ms": 500}


@traced(name="demo.failing_operation")
async def failing_operation() -> dict:
    """Operation that fails."""
    raise ValueError("Simulated error for monitoring demo")


async def simulate_requests(handles: TelemetryHandles, count: int = 5) -> None:
    """Record request metrics for a few simulated requests."""
    server_metrics = ServerMetrics(handles.meter("demo"))
    tracer = handles.tracer("demo")

    for i in range(count):
        with tracer.start_as_current_span("demo.request", attributes={"request.number": i}):
            start_time = time.perf_counter()
            await asyncio.sleep(random.uniform(0.01, 0.05))
            status = 500 if i == count - 1 else 200
            server_metrics.record_request("GET", "/hello", status, time.perf_counter() - start_time)


async def run(handles: TelemetryHandles) -> None:
    print("\n[1/4] Executing fast operation...")
    print(f"      Result: {await fast_operation()}")

    print("\n[2/4] Executing slow operation...")
    print(f"      Result: {await slow_operation()}")

    print("\n[3/4] Executing failing operation...")
    try:
        await failing_operation()
    except ValueError as e:
        print(f"      Expected error: {e.__class__.__name__}")
        print("      Span status set to ERROR with the exception recorded")

    print("\n[4/4] Recording request metrics...")
    await simulate_requests(handles)
    print("      Metrics recorded:")
    print("        - http.server.request_count (counter)")
    print("        - http.server.duration (histogram)")
    print("        - http.server.error_count (counter)")


def main() -> None:
    """Run monitoring demonstration."""
    print("=" * 70)
    print("otelsvc - Monitoring & Observability Demo")
    print("=" * 70)

    setup_logging(log_level="INFO")

    provider = TelemetryProvider(
        TelemetryConfig(
            service_name="monitoring-demo",
            exporter="console",
            metric_export_interval=60,
        )
    )
    handles = provider.setup()

    try:
        asyncio.run(run(handles))
    finally:
        print("\nShutting down telemetry (spans and metrics are flushed below)...")
        try:
            provider.shutdown(timeout=5.0)
        except ShutdownAggregateError as e:
            logger.error("Telemetry shutdown failed", errors=[str(err) for err in e.errors])


if __name__ == "__main__":
    main()
