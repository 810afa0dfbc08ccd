"""Configuration settings using Pydantic."""

from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from otelsvc.telemetry.models import TelemetryConfig


def _find_and_load_env_file() -> str | None:
    """Load a .env file from the current directory, if there is one.

    Variables already present in the environment take precedence.
    """
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
        return str(env_path)
    return None


# Load .env file immediately on module import
_env_file_path = _find_and_load_env_file()


class Settings(BaseSettings):
    """Main configuration for otelsvc.

    Service identity, collector and server settings are read from the
    unprefixed variables ``SERVICE_NAME``, ``SERVICE_VERSION``,
    ``OTLP_ENDPOINT``, ``TRACES_ENABLED``, ``METRICS_ENABLED`` and
    ``SERVER_PORT``; everything else uses the ``OTELSVC_`` prefix.
    """

    model_config = SettingsConfigDict(
        env_file=None,  # Already loaded via dotenv
        env_prefix="OTELSVC_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Service info
    service_name: str = Field("otel-service", validation_alias="SERVICE_NAME")
    service_version: str = Field("0.1.0", validation_alias="SERVICE_VERSION")
    env: Literal["development", "staging", "production"] = "development"

    # OpenTelemetry settings
    otlp_endpoint: str = Field("localhost:4317", validation_alias="OTLP_ENDPOINT")
    traces_enabled: bool = Field(True, validation_alias="TRACES_ENABLED")
    metrics_enabled: bool = Field(True, validation_alias="METRICS_ENABLED")
    exporter_type: Literal["otlp", "console"] = "otlp"
    otlp_insecure: bool = True
    collector_connect_timeout: float = 5.0
    metric_export_interval: float = 15.0
    shutdown_timeout: float = 5.0

    # Server settings
    server_host: str = "0.0.0.0"
    server_port: int = Field(8080, validation_alias="SERVER_PORT")

    # Default headers for outgoing HTTP requests
    default_headers: dict[str, str] = Field(default_factory=dict)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Ensure the server port is a valid TCP port."""
        if not 0 < v < 65536:
            raise ValueError(f"server port must be between 1 and 65535, got {v}")
        return v

    @field_validator(
        "collector_connect_timeout", "metric_export_interval", "shutdown_timeout"
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure durations are positive."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    def telemetry_config(self) -> TelemetryConfig:
        """Build the telemetry configuration from these settings."""
        return TelemetryConfig(
            service_name=self.service_name,
            service_version=self.service_version,
            otlp_endpoint=self.otlp_endpoint,
            traces_enabled=self.traces_enabled,
            metrics_enabled=self.metrics_enabled,
            exporter=self.exporter_type,
            insecure=self.otlp_insecure,
            connect_timeout=self.collector_connect_timeout,
            metric_export_interval=self.metric_export_interval,
            deployment_environment=self.env,
        )

    def describe(self) -> str:
        """Return a human-readable summary of the configuration."""
        return (
            "Configuration:\n"
            "  Service:\n"
            f"    Name: {self.service_name}\n"
            f"    Version: {self.service_version}\n"
            f"    Environment: {self.env}\n"
            "  OpenTelemetry:\n"
            f"    OTLP Endpoint: {self.otlp_endpoint}\n"
            f"    Exporter: {self.exporter_type}\n"
            f"    Traces Enabled: {self.traces_enabled}\n"
            f"    Metrics Enabled: {self.metrics_enabled}\n"
            "  Server:\n"
            f"    Host: {self.server_host}\n"
            f"    Port: {self.server_port}\n"
        )

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"


_settings_instance: Settings | None = None


def get_settings(reload: bool = False) -> Settings:
    """Get settings instance with optional reload.

    Args:
        reload: If True, reload settings from environment/file

    Returns:
        Settings instance (singleton by default)
    """
    global _settings_instance

    if reload or _settings_instance is None:
        _settings_instance = Settings()

    return _settings_instance


def reload_settings() -> Settings:
    """Force reload settings from environment/file.

    Returns:
        Newly loaded Settings instance
    """
    return get_settings(reload=True)
