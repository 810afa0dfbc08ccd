"""OpenTelemetry tracing and metrics lifecycle for otelsvc."""

from otelsvc.telemetry.connection import grpc_target, wait_for_collector
from otelsvc.telemetry.decorators import traced
from otelsvc.telemetry.instruments import ClientMetrics, ServerMetrics, WorkloadMetrics
from otelsvc.telemetry.models import LifecycleState, TelemetryConfig, TelemetryHandles
from otelsvc.telemetry.provider import (
    ShutdownHook,
    TelemetryProvider,
    get_meter,
    get_tracer,
    install_propagator,
)
from otelsvc.telemetry.resource import build_resource

__all__ = [
    "ClientMetrics",
    "LifecycleState",
    "ServerMetrics",
    "ShutdownHook",
    "TelemetryConfig",
    "TelemetryHandles",
    "TelemetryProvider",
    "WorkloadMetrics",
    "build_resource",
    "get_meter",
    "get_tracer",
    "grpc_target",
    "install_propagator",
    "traced",
    "wait_for_collector",
]
