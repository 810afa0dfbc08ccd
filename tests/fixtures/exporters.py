"""In-memory telemetry backends for tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    InMemoryMetricReader,
    MetricExporter,
    MetricExportResult,
    MetricsData,
)
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from otelsvc.telemetry import TelemetryHandles


class RecordingMetricExporter(MetricExporter):
    """Metric exporter keeping every export batch in memory."""

    def __init__(self, fail_shutdown: bool = False) -> None:
        super().__init__()
        self.exported: list[MetricsData] = []
        self.shutdown_calls = 0
        self.fail_shutdown = fail_shutdown

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        self.exported.append(metrics_data)
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        self.shutdown_calls += 1
        if self.fail_shutdown:
            raise RuntimeError("metric exporter shutdown failed")

    def metric_names(self) -> set[str]:
        """Names of every metric exported so far."""
        return {
            metric.name
            for data in self.exported
            for resource_metrics in data.resource_metrics
            for scope_metrics in resource_metrics.scope_metrics
            for metric in scope_metrics.metrics
        }


class InMemoryTelemetry:
    """Synchronous tracing and metrics backends inspectable from tests.

    Example:
        ```python
        telemetry = InMemoryTelemetry()
        run_code_under_test(telemetry.handles)
        assert telemetry.span_names() == ["work"]
        ```
    """

    def __init__(self) -> None:
        self.span_exporter = InMemorySpanExporter()
        self.tracer_provider = TracerProvider()
        self.tracer_provider.add_span_processor(SimpleSpanProcessor(self.span_exporter))

        self.metric_reader = InMemoryMetricReader()
        self.meter_provider = MeterProvider(metric_readers=[self.metric_reader])

        self.handles = TelemetryHandles(
            tracer_provider=self.tracer_provider,
            meter_provider=self.meter_provider,
        )

    def spans(self) -> Sequence[ReadableSpan]:
        return self.span_exporter.get_finished_spans()

    def span_names(self) -> list[str]:
        return [span.name for span in self.spans()]

    def span(self, name: str) -> ReadableSpan:
        """Return the single finished span called ``name``."""
        matches = [span for span in self.spans() if span.name == name]
        assert len(matches) == 1, f"expected one span named {name!r}, got {self.span_names()}"
        return matches[0]

    def data_points(self, metric_name: str, scope: str | None = None) -> list[Any]:
        """Collect and return every data point of ``metric_name``.

        ``scope`` limits the search to one meter, for names that
        instrumentation libraries also use.
        """
        data = self.metric_reader.get_metrics_data()
        if data is None:
            return []
        return [
            point
            for resource_metrics in data.resource_metrics
            for scope_metrics in resource_metrics.scope_metrics
            if scope is None or scope_metrics.scope.name == scope
            for metric in scope_metrics.metrics
            if metric.name == metric_name
            for point in metric.data.data_points
        ]

    def shutdown(self) -> None:
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()
