"""Bounding blocking SDK calls by a timeout."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

from otelsvc.errors import ErrorCode, TelemetryError

T = TypeVar("T")


def call_with_deadline(func: Callable[[], T], timeout: float, operation: str) -> T:
    """Run ``func`` in a worker thread and wait at most ``timeout`` seconds.

    OTLP exporters retry failed exports on their own schedule and do not
    honour the timeouts passed to ``force_flush`` or ``shutdown``. Running
    the call in a daemon thread keeps the caller on time; an overrunning
    call is left to finish in the background.

    Args:
        func: Blocking call to run
        timeout: Seconds to wait for it
        operation: Name used in the thread name and the error message

    Returns:
        Whatever ``func`` returned

    Raises:
        TelemetryError: If ``func`` did not finish within ``timeout``
            (code ``TELEMETRY_FLUSH_TIMEOUT``)
        Exception: Whatever ``func`` raised
    """
    outcome: dict[str, Any] = {}

    def _run() -> None:
        try:
            outcome["result"] = func()
        except Exception as e:
            # Re-raised in the calling thread.
            outcome["error"] = e

    worker = threading.Thread(target=_run, name=f"otelsvc-{operation}", daemon=True)
    worker.start()
    worker.join(max(timeout, 0.0))

    if worker.is_alive():
        raise TelemetryError(
            f"timed out waiting for {operation}",
            code=ErrorCode.TELEMETRY_FLUSH_TIMEOUT,
            details={"timeout": timeout},
        )
    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]
