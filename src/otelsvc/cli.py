#!/usr/bin/env python
"""otelsvc CLI - Command line interface for the instrumented service.

Commands:
    otelsvc serve               Start the instrumented HTTP server
    otelsvc client              Send periodic traced requests to a server
    otelsvc config              Show the resolved configuration
"""

import asyncio
import signal

import click

from otelsvc.config import Settings, get_settings
from otelsvc.errors import SetupError, ShutdownAggregateError
from otelsvc.logging import get_logger, setup_logging
from otelsvc.telemetry import TelemetryProvider

logger = get_logger(__name__)


def _start_telemetry(settings: Settings) -> TelemetryProvider:
    """Configure logging and bring up telemetry, exiting on failure."""
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)
    logger.info(
        "Configuration loaded",
        service_name=settings.service_name,
        service_version=settings.service_version,
        env=settings.env,
        otlp_endpoint=settings.otlp_endpoint,
        exporter=settings.exporter_type,
    )

    provider = TelemetryProvider(settings.telemetry_config())
    try:
        provider.setup()
    except SetupError as e:
        logger.error("Failed to initialize telemetry", error=str(e), code=str(e.code))
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        raise SystemExit(1) from None
    return provider


def _shutdown_telemetry(provider: TelemetryProvider, timeout: float) -> None:
    """Shut down telemetry, logging every backend that failed to stop."""
    try:
        provider.shutdown(timeout=timeout)
    except ShutdownAggregateError as e:
        logger.error(
            "Error shutting down telemetry",
            errors=[str(err) for err in e.errors],
        )


@click.group()
@click.version_option(version="0.1.0", prog_name="otelsvc")
def cli() -> None:
    """otelsvc - OpenTelemetry instrumented HTTP service."""
    pass


@cli.command()
@click.option("--host", default=None, help="Host to bind (default: OTELSVC_SERVER_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: SERVER_PORT)")
def serve(host: str | None, port: int | None) -> None:
    """Start the instrumented HTTP server.

    Serves /health, /hello and /error until interrupted, then drains
    in-flight requests and flushes telemetry.

    Examples:

        otelsvc serve

        otelsvc serve --port 9000
    """
    from otelsvc.api import APIServer

    settings = get_settings()
    provider = _start_telemetry(settings)

    try:
        server = APIServer(settings, provider.handles)
        server.run(host=host, port=port)
    finally:
        _shutdown_telemetry(provider, settings.shutdown_timeout)


@cli.command()
@click.option("--url", default="http://localhost:8080/hello", help="URL to request")
@click.option("--count", default=None, type=int, help="Number of requests (default: run until stopped)")
@click.option("--interval", default=1.0, type=float, help="Seconds between requests")
@click.option("--service-name", default="otel-client", help="Service name reported by the client")
def client(url: str, count: int | None, interval: float, service_name: str) -> None:
    """Send periodic traced requests to a server.

    Examples:

        otelsvc client

        otelsvc client --url http://localhost:9000/hello --count 10
    """
    from otelsvc.api import InstrumentedHTTPClient, run_workload

    settings = get_settings().model_copy(update={"service_name": service_name})
    provider = _start_telemetry(settings)

    async def _run() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        handles = provider.handles
        async with InstrumentedHTTPClient(handles, headers=settings.default_headers) as http:
            stats = await run_workload(
                http,
                handles,
                url,
                interval=interval,
                max_requests=count,
                stop_event=stop_event,
            )

        click.echo(
            f"Sent {stats.sent} request(s): "
            f"{click.style(str(stats.succeeded), fg='green')} succeeded, "
            f"{click.style(str(stats.failed), fg='red')} failed"
        )

    try:
        asyncio.run(_run())
    finally:
        _shutdown_telemetry(provider, settings.shutdown_timeout)


@cli.command()
def config() -> None:
    """Show the resolved configuration."""
    click.echo(get_settings().describe())


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
