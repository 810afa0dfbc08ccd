"""Metric instruments for the HTTP server, HTTP client and client workload.

Each bundle creates its instruments once from a ``Meter`` and exposes
``record_*`` methods, so callers only deal with plain values and labels.
"""

from opentelemetry import metrics


class ServerMetrics:
    """Incoming HTTP request metrics."""

    def __init__(self, meter: metrics.Meter) -> None:
        self._request_count = meter.create_counter(
            "http.server.request_count",
            description="Number of HTTP requests",
            unit="1",
        )
        self._request_duration = meter.create_histogram(
            "http.server.duration",
            description="Duration of HTTP requests",
            unit="s",
        )
        self._error_count = meter.create_counter(
            "http.server.error_count",
            description="Number of HTTP errors",
            unit="1",
        )

    def record_request(
        self,
        method: str,
        route: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record a handled request.

        Args:
            method: HTTP method
            route: Matched route template
            status_code: Response status code
            duration: Handling time in seconds
        """
        labels = {
            "http.method": method,
            "http.route": route,
            "http.status_code": status_code,
        }

        self._request_count.add(1, labels)
        self._request_duration.record(duration, labels)

        if status_code >= 400:
            self._error_count.add(1, labels)


class ClientMetrics:
    """Outgoing HTTP request metrics."""

    def __init__(self, meter: metrics.Meter) -> None:
        self._request_count = meter.create_counter(
            "http.client.request_count",
            description="Number of outgoing HTTP requests",
            unit="1",
        )
        self._error_count = meter.create_counter(
            "http.client.error_count",
            description="Number of outgoing HTTP errors",
            unit="1",
        )

    def record_request(self, method: str, url: str) -> None:
        self._request_count.add(1, {"http.method": method, "http.url": url})

    def record_error(
        self,
        method: str,
        url: str,
        status_code: int | None = None,
    ) -> None:
        """Record a failed request.

        Args:
            method: HTTP method
            url: Request URL
            status_code: Response status, or None if no response was received
        """
        labels: dict[str, str | int] = {"http.method": method, "http.url": url}
        if status_code is not None:
            labels["http.status_code"] = status_code
        self._error_count.add(1, labels)


class WorkloadMetrics:
    """Metrics of the client workload loop.

    Labelled by target URL only; the request number stays on the spans.
    """

    def __init__(self, meter: metrics.Meter) -> None:
        self._requests = meter.create_counter(
            "app.client.requests",
            description="Total number of requests sent",
            unit="1",
        )
        self._successes = meter.create_counter(
            "app.client.successes",
            description="Number of successful requests",
            unit="1",
        )
        self._errors = meter.create_counter(
            "app.client.errors",
            description="Number of failed requests",
            unit="1",
        )
        self._latency = meter.create_histogram(
            "app.client.latency",
            description="Request latency in seconds",
            unit="s",
        )

    def record_attempt(self, target: str) -> None:
        self._requests.add(1, {"request.target": target})

    def record_success(self, target: str, latency: float) -> None:
        labels = {"request.target": target}
        self._latency.record(latency, labels)
        self._successes.add(1, labels)

    def record_failure(self, target: str) -> None:
        self._errors.add(1, {"request.target": target})
