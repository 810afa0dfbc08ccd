"""Instrumented async HTTP client.

Every request runs inside a CLIENT span, carries trace-context and baggage
headers, and is counted in the ``http.client.*`` metrics.
"""

from __future__ import annotations

import contextlib
from typing import Any
from urllib.parse import urlsplit

import aiohttp
from aiohttp import ClientTimeout
from opentelemetry.propagate import inject
from opentelemetry.trace import SpanKind, Status, StatusCode

from otelsvc.errors import ErrorCode, HTTPClientError
from otelsvc.logging import get_logger
from otelsvc.telemetry import ClientMetrics, TelemetryHandles

logger = get_logger(__name__)


class InstrumentedHTTPClient:
    """Async HTTP client with tracing, context propagation and metrics.

    Example:
        ```python
        async with InstrumentedHTTPClient(handles) as client:
            response = await client.get("http://localhost:8080/hello")
            data = response["json"]
        ```
    """

    def __init__(
        self,
        telemetry: TelemetryHandles,
        timeout: float = 30,
        headers: dict[str, str] | None = None,
    ):
        """Initialize HTTP client.

        Args:
            telemetry: Providers to trace and measure requests with
            timeout: Request timeout in seconds
            headers: Default headers, applied unless a request sets them
        """
        self.timeout = timeout
        self.default_headers = headers or {}
        self.session: aiohttp.ClientSession | None = None
        self._tracer = telemetry.tracer("http.client")
        self._metrics = ClientMetrics(telemetry.meter("http.client"))

    async def __aenter__(self) -> InstrumentedHTTPClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self.session:
            self.session = aiohttp.ClientSession(timeout=ClientTimeout(total=self.timeout))

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Make an HTTP request.

        Error statuses are returned like any other response; only transport
        failures raise.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            headers: Request headers
            params: Query parameters
            json: JSON body

        Returns:
            Response dictionary with status, headers, text, json and ok

        Raises:
            HTTPClientError: If no response was received
        """
        if not self.session:
            await self.initialize()

        method = method.upper()
        merged_headers = {**self.default_headers, **(headers or {})}
        path = urlsplit(url).path or "/"

        self._metrics.record_request(method, url)

        with self._tracer.start_as_current_span(
            f"{method} {path}",
            kind=SpanKind.CLIENT,
            attributes={"http.method": method, "http.url": url},
        ) as span:
            inject(merged_headers)

            try:
                async with self.session.request(
                    method,
                    url,
                    headers=merged_headers,
                    params=params,
                    json=json,
                ) as response:
                    text = await response.text()
                    result: dict[str, Any] = {
                        "status": response.status,
                        "headers": dict(response.headers),
                        "text": text,
                        "json": None,
                        "ok": response.ok,
                    }
                    with contextlib.suppress(aiohttp.ContentTypeError, ValueError):
                        result["json"] = await response.json()

            except aiohttp.ClientError as e:
                self._record_failure(span, method, url, e)
                raise HTTPClientError(f"Request failed: {e}", details={"url": url}) from e
            except TimeoutError as e:
                self._record_failure(span, method, url, e)
                raise HTTPClientError(
                    "Request timed out",
                    code=ErrorCode.HTTP_TIMEOUT,
                    details={"url": url, "timeout": self.timeout},
                ) from e

            span.set_attribute("http.status_code", result["status"])
            if result["status"] >= 400:
                span.set_status(Status(StatusCode.ERROR))
                self._metrics.record_error(method, url, result["status"])

        return result

    def _record_failure(self, span, method: str, url: str, error: BaseException) -> None:
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))
        self._metrics.record_error(method, url)
        logger.debug("HTTP request failed", method=method, url=url, error=str(error))

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request."""
        return await self.request("GET", url, headers=headers, params=params)

    async def post(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Make a POST request."""
        return await self.request("POST", url, headers=headers, json=json)
