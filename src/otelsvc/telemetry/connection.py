"""Collector connectivity checks."""

from urllib.parse import urlsplit

import grpc

from otelsvc.errors import ConnectionTimeoutError
from otelsvc.logging import get_logger

logger = get_logger(__name__)


def grpc_target(endpoint: str) -> str:
    """Convert a collector endpoint into a gRPC ``host:port`` target.

    ``localhost:4317`` is returned as is; ``http://localhost:4317/`` is
    reduced to its network location.
    """
    if "://" in endpoint:
        return urlsplit(endpoint).netloc
    return endpoint.rstrip("/")


def wait_for_collector(endpoint: str, timeout: float, insecure: bool = True) -> None:
    """Block until the collector accepts a gRPC connection.

    The probe channel is always closed; exporters open their own.

    Args:
        endpoint: Collector endpoint (host:port, optionally with a scheme)
        timeout: Seconds to wait before giving up
        insecure: Use a plaintext channel instead of TLS

    Raises:
        ConnectionTimeoutError: If the channel is not ready within ``timeout``
    """
    target = grpc_target(endpoint)
    logger.debug("Connecting to collector", target=target, timeout=timeout)

    if insecure:
        channel = grpc.insecure_channel(target)
    else:
        channel = grpc.secure_channel(target, grpc.ssl_channel_credentials())

    ready = grpc.channel_ready_future(channel)
    try:
        ready.result(timeout=timeout)
    except grpc.FutureTimeoutError as e:
        raise ConnectionTimeoutError(
            f"failed to create gRPC connection to collector at {target}",
            details={"endpoint": target, "timeout": timeout},
        ) from e
    finally:
        ready.cancel()
        channel.close()

    logger.debug("Collector reachable", target=target)
