"""Value types shared by the telemetry lifecycle."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from opentelemetry import metrics, trace
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_METRIC_EXPORT_INTERVAL = 15.0
# Seconds a single OTLP export call may take.
DEFAULT_EXPORT_TIMEOUT = 10


class TelemetryConfig(BaseModel):
    """Immutable telemetry settings handed to a TelemetryProvider.

    An empty ``service_name`` is accepted here and rejected when the
    resource is built during setup.
    """

    model_config = ConfigDict(frozen=True)

    service_name: str
    service_version: str = "0.1.0"
    otlp_endpoint: str = "localhost:4317"
    traces_enabled: bool = True
    metrics_enabled: bool = True

    exporter: Literal["otlp", "console"] = "otlp"
    insecure: bool = True
    connect_timeout: float = Field(DEFAULT_CONNECT_TIMEOUT, gt=0)
    metric_export_interval: float = Field(DEFAULT_METRIC_EXPORT_INTERVAL, gt=0)
    deployment_environment: str | None = None
    resource_attributes: dict[str, str] = Field(default_factory=dict)


class LifecycleState(str, Enum):
    """Lifecycle states of a TelemetryProvider."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TelemetryHandles:
    """Providers that application code threads through explicitly.

    Disabled signals are represented by the API's no-op providers, so callers
    never need to branch on whether a signal is enabled.
    """

    tracer_provider: trace.TracerProvider = field(
        default_factory=trace.NoOpTracerProvider
    )
    meter_provider: metrics.MeterProvider = field(
        default_factory=metrics.NoOpMeterProvider
    )

    def tracer(self, name: str, version: str | None = None) -> trace.Tracer:
        """Get a named tracer from the tracer provider."""
        return self.tracer_provider.get_tracer(name, version)

    def meter(self, name: str, version: str | None = None) -> metrics.Meter:
        """Get a named meter from the meter provider."""
        return self.meter_provider.get_meter(name, version)
