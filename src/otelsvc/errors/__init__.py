"""otelsvc error handling system."""

from otelsvc.errors.base import (
    ConfigurationError,
    ConnectionTimeoutError,
    HTTPClientError,
    LifecycleError,
    MetricsSetupError,
    OtelsvcError,
    ResourceBuildError,
    SetupError,
    ShutdownAggregateError,
    TelemetryError,
    TracingSetupError,
)
from otelsvc.errors.codes import ErrorCode
from otelsvc.errors.handlers import format_error

__all__ = [
    "ConfigurationError",
    "ConnectionTimeoutError",
    "ErrorCode",
    "HTTPClientError",
    "LifecycleError",
    "MetricsSetupError",
    "OtelsvcError",
    "ResourceBuildError",
    "SetupError",
    "ShutdownAggregateError",
    "TelemetryError",
    "TracingSetupError",
    "format_error",
]
