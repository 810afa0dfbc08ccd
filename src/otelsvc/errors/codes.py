"""Error codes for otelsvc."""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Configuration errors (1xxx)
    CONFIG_MISSING = "OTELSVC-1001"
    CONFIG_INVALID = "OTELSVC-1002"

    # HTTP errors (3xxx)
    HTTP_REQUEST_FAILED = "OTELSVC-3001"
    HTTP_TIMEOUT = "OTELSVC-3002"
    HTTP_STATUS_ERROR = "OTELSVC-3003"

    # Telemetry errors (5xxx)
    RESOURCE_BUILD_FAILED = "OTELSVC-5001"
    COLLECTOR_CONNECT_TIMEOUT = "OTELSVC-5002"
    TRACING_INIT_FAILED = "OTELSVC-5003"
    METRICS_INIT_FAILED = "OTELSVC-5004"
    TELEMETRY_FLUSH_TIMEOUT = "OTELSVC-5005"
    TELEMETRY_SHUTDOWN_FAILED = "OTELSVC-5006"
    TELEMETRY_STATE_INVALID = "OTELSVC-5007"

    # Unknown error
    UNKNOWN = "OTELSVC-9999"

    def __str__(self) -> str:
        """Return the error code value."""
        return self.value
