"""HTTP server for otelsvc."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from otelsvc.api.middleware import instrument_app
from otelsvc.api.routes import router
from otelsvc.config import Settings
from otelsvc.errors import OtelsvcError, format_error
from otelsvc.logging import get_logger
from otelsvc.telemetry import TelemetryHandles

logger = get_logger(__name__)

GRACEFUL_SHUTDOWN_TIMEOUT = 15


def create_app(settings: Settings, telemetry: TelemetryHandles) -> FastAPI:
    """Create the instrumented FastAPI application.

    Args:
        settings: Application settings
        telemetry: Providers from a completed telemetry setup

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title=settings.service_name,
        version=settings.service_version,
    )
    app.state.telemetry = telemetry

    instrument_app(app, telemetry)
    app.include_router(router)

    @app.exception_handler(OtelsvcError)
    async def handle_otelsvc_error(request: Request, exc: OtelsvcError) -> JSONResponse:
        logger.error("Request failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content=format_error(exc))

    return app


class APIServer:
    """Instrumented HTTP server.

    Example:
        ```python
        provider = TelemetryProvider(settings.telemetry_config())
        handles = provider.setup()

        server = APIServer(settings, handles)
        server.run()
        ```
    """

    def __init__(self, settings: Settings, telemetry: TelemetryHandles) -> None:
        """Initialize server.

        Args:
            settings: Application settings
            telemetry: Providers from a completed telemetry setup
        """
        self.settings = settings
        self.app = create_app(settings, telemetry)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve until interrupted, then drain in-flight requests.

        Args:
            host: Host to bind (defaults to settings.server_host)
            port: Port to bind (defaults to settings.server_port)
        """
        import uvicorn

        host = host or self.settings.server_host
        port = port or self.settings.server_port

        logger.info("Starting server", host=host, port=port)

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_config=None,
            timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_TIMEOUT,
        )
        uvicorn.Server(config).run()

        logger.info("Server stopped")
