"""Base exception classes for otelsvc."""

from collections.abc import Sequence
from typing import Any

from otelsvc.errors.codes import ErrorCode


class OtelsvcError(Exception):
    """Base exception for all otelsvc errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize error.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error string."""
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": str(self.code),
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(OtelsvcError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class HTTPClientError(OtelsvcError):
    """Outgoing HTTP request failed before a response was received."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: ErrorCode = ErrorCode.HTTP_REQUEST_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
        self.status_code = status_code


class TelemetryError(OtelsvcError):
    """Telemetry-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class SetupError(TelemetryError):
    """Telemetry setup failed; no backend is active."""


class ResourceBuildError(SetupError):
    """The resource descriptor could not be built."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RESOURCE_BUILD_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class TracingSetupError(SetupError):
    """The tracing backend could not be initialized."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRACING_INIT_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class MetricsSetupError(SetupError):
    """The metrics backend could not be initialized."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.METRICS_INIT_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ConnectionTimeoutError(TelemetryError):
    """The collector did not become reachable before the deadline."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.COLLECTOR_CONNECT_TIMEOUT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LifecycleError(TelemetryError):
    """An operation was called in the wrong lifecycle state."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TELEMETRY_STATE_INVALID,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ShutdownAggregateError(TelemetryError):
    """One or more telemetry backends failed to shut down.

    ``errors`` keeps the underlying exceptions in registration order.
    """

    def __init__(
        self,
        errors: Sequence[BaseException],
        code: ErrorCode = ErrorCode.TELEMETRY_SHUTDOWN_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.errors = list(errors)
        message = "errors shutting down telemetry provider: " + "; ".join(
            str(error) for error in self.errors
        )
        super().__init__(message, code, details)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary, listing each underlying failure."""
        result = super().to_dict()
        result["errors"] = [
            {"error": error.__class__.__name__, "message": str(error)}
            for error in self.errors
        ]
        return result
