"""OpenTelemetry instrumentation for the FastAPI server."""

import time

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from otelsvc.logging import get_logger
from otelsvc.telemetry import ServerMetrics, TelemetryHandles

logger = get_logger(__name__)

UNKNOWN_ROUTE = "unknown"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record request count, duration and errors for every request."""

    def __init__(self, app: ASGIApp, metrics: ServerMetrics) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self._metrics.record_request(
                request.method,
                route_template(request),
                status_code,
                time.perf_counter() - start_time,
            )


def route_template(request: Request) -> str:
    """Return the matched route template (``/items/{id}``), or ``unknown``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNKNOWN_ROUTE


def instrument_app(app: FastAPI, telemetry: TelemetryHandles) -> None:
    """Add tracing and metrics middleware to a FastAPI application.

    Must be called before the application starts serving requests.

    Args:
        app: FastAPI application
        telemetry: Providers to instrument with
    """
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=telemetry.tracer_provider,
        meter_provider=telemetry.meter_provider,
    )
    app.add_middleware(MetricsMiddleware, metrics=ServerMetrics(telemetry.meter("http.server")))

    logger.info("FastAPI instrumentation enabled")
