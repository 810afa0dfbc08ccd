"""Tests for the server instrumentation middleware."""

import pytest
from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from otelsvc.api.middleware import UNKNOWN_ROUTE, MetricsMiddleware, instrument_app, route_template
from otelsvc.telemetry import ServerMetrics
from tests.fixtures import InMemoryTelemetry


@pytest.fixture
def telemetry():
    telemetry = InMemoryTelemetry()
    yield telemetry
    telemetry.shutdown()


def make_app(telemetry: InMemoryTelemetry) -> FastAPI:
    app = FastAPI()

    @app.get("/items/{item_id}")
    async def get_item(item_id: int):
        return {"id": item_id}

    @app.get("/fail")
    async def fail():
        raise RuntimeError("handler crashed")

    instrument_app(app, telemetry.handles)
    return app


class TestMetricsMiddleware:
    """Test MetricsMiddleware."""

    def test_records_route_template(self, telemetry):
        """Test requests are labelled with the route template, not the path."""
        with TestClient(make_app(telemetry)) as client:
            client.get("/items/1")
            client.get("/items/2")

        [point] = telemetry.data_points("http.server.request_count")
        assert point.value == 2
        assert point.attributes["http.route"] == "/items/{item_id}"
        assert point.attributes["http.method"] == "GET"
        assert point.attributes["http.status_code"] == 200

    def test_records_duration(self, telemetry):
        """Test request durations are recorded."""
        with TestClient(make_app(telemetry)) as client:
            client.get("/items/1")

        [point] = telemetry.data_points("http.server.duration", scope="http.server")
        assert point.count == 1
        assert point.sum >= 0

    def test_unmatched_route(self, telemetry):
        """Test unmatched paths share the unknown label."""
        with TestClient(make_app(telemetry)) as client:
            client.get("/nowhere")

        [point] = telemetry.data_points("http.server.request_count")
        assert point.attributes["http.route"] == UNKNOWN_ROUTE
        [error] = telemetry.data_points("http.server.error_count")
        assert error.attributes["http.status_code"] == 404

    def test_handler_exception_counted_as_500(self, telemetry):
        """Test an unhandled exception is recorded as a server error."""
        with TestClient(make_app(telemetry), raise_server_exceptions=False) as client:
            response = client.get("/fail")

        assert response.status_code == 500
        [error] = telemetry.data_points("http.server.error_count")
        assert error.attributes["http.status_code"] == 500

    def test_server_span_created(self, telemetry):
        """Test the FastAPI instrumentation creates server spans."""
        with TestClient(make_app(telemetry)) as client:
            client.get("/items/7")

        assert "GET /items/{item_id}" in telemetry.span_names()

    def test_middleware_uses_given_metrics(self):
        """Test the middleware records into the metrics it was given."""
        metrics = MagicMock(spec=ServerMetrics)
        app = FastAPI()

        @app.get("/ping")
        async def ping():
            return "pong"

        app.add_middleware(MetricsMiddleware, metrics=metrics)

        with TestClient(app) as client:
            client.get("/ping")

        method, route, status, duration = metrics.record_request.call_args.args
        assert (method, route, status) == ("GET", "/ping", 200)
        assert duration >= 0


class TestRouteTemplate:
    """Test route_template."""

    def test_with_route(self):
        request = MagicMock()
        request.scope = {"route": MagicMock(path="/users/{id}")}

        assert route_template(request) == "/users/{id}"

    def test_without_route(self):
        request = MagicMock()
        request.scope = {}

        assert route_template(request) == UNKNOWN_ROUTE
