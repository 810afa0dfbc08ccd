"""Instrumented HTTP server and client."""

from otelsvc.api.client import InstrumentedHTTPClient
from otelsvc.api.middleware import MetricsMiddleware, instrument_app
from otelsvc.api.server import APIServer, create_app
from otelsvc.api.workload import WorkloadStats, run_workload

__all__ = [
    "APIServer",
    "InstrumentedHTTPClient",
    "MetricsMiddleware",
    "WorkloadStats",
    "create_app",
    "instrument_app",
    "run_workload",
]
