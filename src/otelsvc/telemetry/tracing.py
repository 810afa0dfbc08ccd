"""Tracing backend construction."""

from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from otelsvc.errors import ErrorCode, TelemetryError
from otelsvc.logging import get_logger
from otelsvc.telemetry.connection import wait_for_collector
from otelsvc.telemetry.deadline import call_with_deadline
from otelsvc.telemetry.models import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_EXPORT_TIMEOUT,
    TelemetryConfig,
)

logger = get_logger(__name__)


def create_span_exporter(
    config: TelemetryConfig,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> SpanExporter:
    """Create the span exporter selected by the config.

    The OTLP exporter is only created once the collector is reachable.
    """
    if config.exporter == "console":
        return ConsoleSpanExporter()

    wait_for_collector(config.otlp_endpoint, connect_timeout, insecure=config.insecure)
    return OTLPSpanExporter(
        endpoint=config.otlp_endpoint,
        insecure=config.insecure,
        timeout=DEFAULT_EXPORT_TIMEOUT,
    )


def build_tracer_provider(
    config: TelemetryConfig,
    resource: Resource,
    exporter: SpanExporter | None = None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> TracerProvider:
    """Build a tracer provider that samples every span and exports in batches.

    Args:
        config: Telemetry configuration
        resource: Resource attached to every span
        exporter: Exporter to use instead of the one selected by ``config``
        connect_timeout: Seconds to wait for the collector

    Returns:
        A fully constructed, not yet published tracer provider
    """
    if exporter is None:
        exporter = create_span_exporter(config, connect_timeout)

    provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
    provider.add_span_processor(BatchSpanProcessor(exporter))

    logger.debug("Tracer provider built", exporter=type(exporter).__name__)
    return provider


def shutdown_tracer_provider(provider: TracerProvider, timeout: float) -> None:
    """Flush pending spans and shut the provider down within ``timeout``.

    The provider is shut down even when the flush reports a timeout. A call
    that overruns ``timeout`` is left to finish in the background.

    Raises:
        TelemetryError: If buffered spans were not flushed within ``timeout``
    """

    def _flush_and_shutdown() -> bool:
        flushed = provider.force_flush(timeout_millis=int(timeout * 1000))
        provider.shutdown()
        return flushed

    flushed = call_with_deadline(_flush_and_shutdown, timeout, "tracing-shutdown")
    if not flushed:
        raise TelemetryError(
            "timed out flushing spans",
            code=ErrorCode.TELEMETRY_FLUSH_TIMEOUT,
            details={"timeout": timeout},
        )
