"""Demo API routes."""

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from otelsvc.logging import get_logger
from otelsvc.telemetry import TelemetryHandles

logger = get_logger(__name__)

router = APIRouter()


class DemoError(Exception):
    """Error recorded by the /error endpoint."""


@router.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/hello")
async def hello(request: Request) -> dict[str, str]:
    """Greet the caller after some traced processing."""
    span = trace.get_current_span()
    span.set_attributes(
        {
            "endpoint": "/hello",
            "user_agent": request.headers.get("user-agent", ""),
        }
    )

    telemetry: TelemetryHandles = request.app.state.telemetry
    await process_request(telemetry.tracer("request-processor"))

    return {"message": "Hello, OpenTelemetry!"}


@router.get("/error")
async def error() -> JSONResponse:
    """Simulate a failure and record it on the current span."""
    span = trace.get_current_span()
    span.set_attribute("error.type", "demo_error")
    span.record_exception(DemoError("this is a demo error"))

    logger.warning("Demo error endpoint called")
    return JSONResponse(status_code=500, content={"error": "Something went wrong!"})


async def process_request(tracer: trace.Tracer, delay: float = 0.05) -> None:
    """Simulate request processing as a small tree of spans.

    Args:
        tracer: Tracer to create spans with
        delay: Base simulated work time in seconds
    """
    with tracer.start_as_current_span("process-request"):
        await asyncio.sleep(delay)

        with tracer.start_as_current_span("database-query") as db_span:
            db_span.set_attribute("db.statement", "SELECT * FROM users")
            await asyncio.sleep(delay * 0.6)
            db_span.set_attribute("db.rows_affected", 10)

        with tracer.start_as_current_span("business-logic"):
            await asyncio.sleep(delay * 0.4)
