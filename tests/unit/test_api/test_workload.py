"""Tests for the client workload loop."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from opentelemetry.trace import StatusCode

from otelsvc.api.workload import WorkloadStats, run_workload
from otelsvc.errors import HTTPClientError
from tests.fixtures import InMemoryTelemetry

TARGET = "http://localhost:8080/hello"


@pytest.fixture
def telemetry():
    telemetry = InMemoryTelemetry()
    yield telemetry
    telemetry.shutdown()


def make_client(*responses) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(side_effect=list(responses))
    return client


class TestRunWorkload:
    """Test run_workload."""

    @pytest.mark.asyncio
    async def test_counts_outcomes(self, telemetry):
        """Test successes and failures are counted and the loop continues."""
        client = make_client(
            {"status": 200},
            {"status": 503},
            HTTPClientError("connection refused"),
            {"status": 200},
        )

        stats = await run_workload(
            client, telemetry.handles, TARGET, interval=0.01, max_requests=4
        )

        assert stats == WorkloadStats(sent=4, succeeded=2, failed=2)
        assert client.get.await_count == 4
        client.get.assert_awaited_with(TARGET)

    @pytest.mark.asyncio
    async def test_spans(self, telemetry):
        """Test each request has a cycle span with a numbered child."""
        client = make_client({"status": 200}, {"status": 200})

        await run_workload(client, telemetry.handles, TARGET, interval=0.01, max_requests=2)

        cycles = [s for s in telemetry.spans() if s.name == "client-request-cycle"]
        assert [s.attributes["request.number"] for s in cycles] == [1, 2]
        assert all(s.attributes["request.target"] == TARGET for s in cycles)

        first = telemetry.span("request-1")
        assert first.parent.span_id == cycles[0].context.span_id

    @pytest.mark.asyncio
    async def test_failed_request_marks_spans(self, telemetry):
        """Test a transport failure is recorded on both spans."""
        client = make_client(HTTPClientError("connection refused"))

        await run_workload(client, telemetry.handles, TARGET, max_requests=1)

        request_span = telemetry.span("request-1")
        assert request_span.status.status_code == StatusCode.ERROR
        assert [event.name for event in request_span.events] == ["exception"]
        assert telemetry.span("client-request-cycle").status.status_code == StatusCode.ERROR

    @pytest.mark.asyncio
    async def test_metrics(self, telemetry):
        """Test workload metrics are recorded."""
        client = make_client({"status": 200}, {"status": 500})

        await run_workload(client, telemetry.handles, TARGET, interval=0.01, max_requests=2)

        assert sum(p.value for p in telemetry.data_points("app.client.requests")) == 2
        assert sum(p.value for p in telemetry.data_points("app.client.successes")) == 1
        assert sum(p.value for p in telemetry.data_points("app.client.errors")) == 1
        [latency] = telemetry.data_points("app.client.latency")
        assert latency.count == 1
        [requests] = telemetry.data_points("app.client.requests")
        assert "request.number" not in requests.attributes

    @pytest.mark.asyncio
    async def test_stop_event_set_before_start(self, telemetry):
        """Test nothing is sent once stopped."""
        client = make_client()
        stop_event = asyncio.Event()
        stop_event.set()

        stats = await run_workload(client, telemetry.handles, TARGET, stop_event=stop_event)

        assert stats == WorkloadStats()
        client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stop_event_interrupts_wait(self, telemetry):
        """Test setting the stop event ends the loop without waiting out the interval."""
        stop_event = asyncio.Event()

        async def respond(url):
            stop_event.set()
            return {"status": 200}

        client = MagicMock()
        client.get = AsyncMock(side_effect=respond)

        stats = await asyncio.wait_for(
            run_workload(
                client, telemetry.handles, TARGET, interval=30, stop_event=stop_event
            ),
            timeout=5,
        )

        assert stats.sent == 1
