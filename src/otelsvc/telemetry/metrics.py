"""Metrics backend construction."""

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource

from otelsvc.logging import get_logger
from otelsvc.telemetry.connection import wait_for_collector
from otelsvc.telemetry.deadline import call_with_deadline
from otelsvc.telemetry.models import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_EXPORT_TIMEOUT,
    TelemetryConfig,
)

logger = get_logger(__name__)


def create_metric_exporter(
    config: TelemetryConfig,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> MetricExporter:
    """Create the metric exporter selected by the config."""
    if config.exporter == "console":
        return ConsoleMetricExporter()

    wait_for_collector(config.otlp_endpoint, connect_timeout, insecure=config.insecure)
    return OTLPMetricExporter(
        endpoint=config.otlp_endpoint,
        insecure=config.insecure,
        timeout=DEFAULT_EXPORT_TIMEOUT,
    )


def build_meter_provider(
    config: TelemetryConfig,
    resource: Resource,
    exporter: MetricExporter | None = None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> MeterProvider:
    """Build a meter provider exporting on a fixed interval.

    Args:
        config: Telemetry configuration
        resource: Resource attached to every metric
        exporter: Exporter to use instead of the one selected by ``config``
        connect_timeout: Seconds to wait for the collector

    Returns:
        A fully constructed, not yet published meter provider
    """
    if exporter is None:
        exporter = create_metric_exporter(config, connect_timeout)

    reader = PeriodicExportingMetricReader(
        exporter,
        export_interval_millis=config.metric_export_interval * 1000,
    )
    provider = MeterProvider(resource=resource, metric_readers=[reader])

    logger.debug(
        "Meter provider built",
        exporter=type(exporter).__name__,
        interval=config.metric_export_interval,
    )
    return provider


def shutdown_meter_provider(provider: MeterProvider, timeout: float) -> None:
    """Collect, export and shut down every reader of the provider within ``timeout``."""
    call_with_deadline(
        lambda: provider.shutdown(timeout_millis=timeout * 1000),
        timeout,
        "metrics-shutdown",
    )
