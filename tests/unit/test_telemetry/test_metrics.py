"""Tests for metrics backend construction."""

import threading
import time

import pytest
from unittest.mock import MagicMock, patch

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.resources import Resource

from otelsvc.errors import ConnectionTimeoutError, ErrorCode, TelemetryError
from otelsvc.telemetry import TelemetryConfig
from otelsvc.telemetry.models import DEFAULT_EXPORT_TIMEOUT
from otelsvc.telemetry.metrics import (
    build_meter_provider,
    create_metric_exporter,
    shutdown_meter_provider,
)
from tests.fixtures import RecordingMetricExporter


class TestCreateMetricExporter:
    """Test create_metric_exporter."""

    def test_console_exporter(self):
        """Test the console exporter needs no collector."""
        config = TelemetryConfig(service_name="svc", exporter="console")

        with patch("otelsvc.telemetry.metrics.wait_for_collector") as wait:
            exporter = create_metric_exporter(config)

        assert isinstance(exporter, ConsoleMetricExporter)
        wait.assert_not_called()

    def test_otlp_exporter_waits_for_collector(self):
        """Test the OTLP exporter is created after the collector answers."""
        config = TelemetryConfig(
            service_name="svc", otlp_endpoint="collector:4317", insecure=False
        )

        with patch("otelsvc.telemetry.metrics.wait_for_collector") as wait, patch(
            "otelsvc.telemetry.metrics.OTLPMetricExporter"
        ) as exporter_cls:
            create_metric_exporter(config, connect_timeout=3.0)

        wait.assert_called_once_with("collector:4317", 3.0, insecure=False)
        exporter_cls.assert_called_once_with(
            endpoint="collector:4317", insecure=False, timeout=DEFAULT_EXPORT_TIMEOUT
        )

    def test_timeout_propagates(self):
        """Test a collector timeout is raised unchanged."""
        config = TelemetryConfig(service_name="svc")

        with patch(
            "otelsvc.telemetry.metrics.wait_for_collector",
            side_effect=ConnectionTimeoutError("timeout"),
        ):
            with pytest.raises(ConnectionTimeoutError):
                create_metric_exporter(config)


class TestBuildMeterProvider:
    """Test build_meter_provider."""

    def test_injected_exporter(self):
        """Test recorded metrics reach the exporter on shutdown."""
        exporter = RecordingMetricExporter()
        provider = build_meter_provider(
            TelemetryConfig(service_name="svc"),
            Resource.create({"service.name": "svc"}),
            exporter=exporter,
        )

        provider.get_meter("test").create_counter("jobs").add(2)
        provider.shutdown()

        assert "jobs" in exporter.metric_names()
        resource = exporter.exported[-1].resource_metrics[0].resource
        assert resource.attributes["service.name"] == "svc"

    def test_export_interval(self):
        """Test the reader exports on the configured interval."""
        with patch(
            "otelsvc.telemetry.metrics.PeriodicExportingMetricReader"
        ) as reader_cls, patch("otelsvc.telemetry.metrics.MeterProvider"):
            exporter = RecordingMetricExporter()
            build_meter_provider(
                TelemetryConfig(service_name="svc", metric_export_interval=2.5),
                Resource.create({}),
                exporter=exporter,
            )

        reader_cls.assert_called_once_with(exporter, export_interval_millis=2500)


class TestShutdownMeterProvider:
    """Test shutdown_meter_provider."""

    def test_timeout_passed_in_milliseconds(self):
        """Test the timeout is converted for shutdown."""
        provider = MagicMock(spec=MeterProvider)

        shutdown_meter_provider(provider, timeout=2.0)

        provider.shutdown.assert_called_once_with(timeout_millis=2000)

    def test_exporter_failure_raises(self):
        """Test a failing exporter makes shutdown raise."""
        provider = build_meter_provider(
            TelemetryConfig(service_name="svc"),
            Resource.create({}),
            exporter=RecordingMetricExporter(fail_shutdown=True),
        )

        with pytest.raises(Exception):
            shutdown_meter_provider(provider, timeout=5.0)

    def test_stalled_shutdown_bounded_by_timeout(self):
        """Test a reader that never finishes cannot hold up the caller."""
        release = threading.Event()
        provider = MagicMock(spec=MeterProvider)
        provider.shutdown.side_effect = lambda timeout_millis: release.wait()

        start = time.monotonic()
        with pytest.raises(TelemetryError) as exc_info:
            shutdown_meter_provider(provider, timeout=0.2)
        elapsed = time.monotonic() - start
        release.set()

        assert exc_info.value.code == ErrorCode.TELEMETRY_FLUSH_TIMEOUT
        assert elapsed < 1.0
