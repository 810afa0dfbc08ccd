"""otelsvc - OpenTelemetry lifecycle management for an instrumented HTTP service."""

from otelsvc.config import Settings, get_settings
from otelsvc.errors import OtelsvcError, SetupError, ShutdownAggregateError
from otelsvc.telemetry import (
    LifecycleState,
    TelemetryConfig,
    TelemetryHandles,
    TelemetryProvider,
    get_meter,
    get_tracer,
    traced,
)

__version__ = "0.1.0"

__all__ = [
    "LifecycleState",
    "OtelsvcError",
    "Settings",
    "SetupError",
    "ShutdownAggregateError",
    "TelemetryConfig",
    "TelemetryHandles",
    "TelemetryProvider",
    "get_meter",
    "get_settings",
    "get_tracer",
    "traced",
]
