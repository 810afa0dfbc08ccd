"""Test fixtures and factories."""

from tests.fixtures.collector import UNREACHABLE_ENDPOINT, FakeCollector
from tests.fixtures.exporters import InMemoryTelemetry, RecordingMetricExporter
from tests.fixtures.mocks import create_mock_http_response, mock_request_context

__all__ = [
    # Collector
    "FakeCollector",
    "UNREACHABLE_ENDPOINT",
    # Exporters
    "InMemoryTelemetry",
    "RecordingMetricExporter",
    # Mocks
    "create_mock_http_response",
    "mock_request_context",
]
