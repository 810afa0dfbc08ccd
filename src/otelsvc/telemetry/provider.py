"""Telemetry provider lifecycle.

A ``TelemetryProvider`` turns a ``TelemetryConfig`` into running tracing and
metrics backends and tears them down again:

- ``setup()`` is all-or-nothing. Backends are built in a fixed order
  (tracing, then metrics) and nothing is published or registered, not even
  the propagator, until every requested backend has been built. A failure rolls back what was already
  built and leaves the provider in ``NOT_STARTED``.
- ``shutdown()`` is best-effort. Every registered hook runs, in registration
  order, even if an earlier one failed; failures are raised together as a
  ``ShutdownAggregateError``. Each hook gets an equal share of the time left
  until the shared deadline, so a stalled backend cannot starve the next one.

Example:
    ```python
    provider = TelemetryProvider(settings.telemetry_config())
    handles = provider.setup()
    tracer = handles.tracer(__name__)
    ...
    provider.shutdown(timeout=5.0)
    ```
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from opentelemetry import metrics, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from otelsvc.errors import (
    LifecycleError,
    MetricsSetupError,
    ShutdownAggregateError,
    TracingSetupError,
)
from otelsvc.logging import get_logger
from otelsvc.telemetry.metrics import build_meter_provider, shutdown_meter_provider
from otelsvc.telemetry.models import LifecycleState, TelemetryConfig, TelemetryHandles
from otelsvc.telemetry.resource import build_resource
from otelsvc.telemetry.tracing import build_tracer_provider, shutdown_tracer_provider

logger = get_logger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 5.0


@dataclass(frozen=True)
class ShutdownHook:
    """A named shutdown operation taking a timeout in seconds."""

    name: str
    func: Callable[[float], None]

    def __call__(self, timeout: float) -> None:
        self.func(timeout)


def install_propagator() -> None:
    """Install W3C trace-context and baggage propagation process-wide."""
    set_global_textmap(
        CompositePropagator(
            [TraceContextTextMapPropagator(), W3CBaggagePropagator()]
        )
    )


class TelemetryProvider:
    """Owns the setup and shutdown sequence of the tracing and metrics backends."""

    def __init__(
        self,
        config: TelemetryConfig,
        *,
        span_exporter: SpanExporter | None = None,
        metric_exporter: MetricExporter | None = None,
        set_global: bool = True,
    ) -> None:
        """Initialize provider.

        Args:
            config: Telemetry configuration
            span_exporter: Exporter replacing the configured span exporter;
                no collector connection is made for tracing when given
            metric_exporter: Exporter replacing the configured metric
                exporter; no collector connection is made for metrics when given
            set_global: Publish providers to the process-wide OpenTelemetry slots
        """
        self._config = config
        self._span_exporter = span_exporter
        self._metric_exporter = metric_exporter
        self._set_global = set_global

        self._state = LifecycleState.NOT_STARTED
        self._resource: Resource | None = None
        self._tracer_provider: TracerProvider | None = None
        self._meter_provider: MeterProvider | None = None
        self._shutdown_hooks: list[ShutdownHook] = []

    @property
    def config(self) -> TelemetryConfig:
        return self._config

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def resource(self) -> Resource | None:
        return self._resource

    @property
    def shutdown_hooks(self) -> tuple[ShutdownHook, ...]:
        return tuple(self._shutdown_hooks)

    @property
    def handles(self) -> TelemetryHandles:
        """Handles to the active providers; no-op providers for inactive signals."""
        if self._state is not LifecycleState.RUNNING:
            return TelemetryHandles()
        return self._make_handles()

    def tracer(self, name: str, version: str | None = None) -> trace.Tracer:
        return self.handles.tracer(name, version)

    def meter(self, name: str, version: str | None = None) -> metrics.Meter:
        return self.handles.meter(name, version)

    def setup(self, connect_timeout: float | None = None) -> TelemetryHandles:
        """Initialize the enabled backends and publish them.

        Args:
            connect_timeout: Seconds each backend may wait for the collector
                (defaults to ``config.connect_timeout``)

        Returns:
            Handles to the active providers

        Raises:
            LifecycleError: If setup was already completed
            ResourceBuildError: If the service name is empty
            TracingSetupError: If the tracing backend could not be built
            MetricsSetupError: If the metrics backend could not be built
        """
        if self._state is not LifecycleState.NOT_STARTED:
            raise LifecycleError(
                "telemetry setup can only run once",
                details={"state": str(self._state)},
            )

        config = self._config
        timeout = config.connect_timeout if connect_timeout is None else connect_timeout

        logger.info(
            "Setting up telemetry",
            service_name=config.service_name,
            endpoint=config.otlp_endpoint,
            traces=config.traces_enabled,
            metrics=config.metrics_enabled,
        )

        resource = build_resource(config)

        tracer_provider: TracerProvider | None = None
        if config.traces_enabled:
            try:
                tracer_provider = build_tracer_provider(
                    config, resource, exporter=self._span_exporter, connect_timeout=timeout
                )
            except Exception as e:
                raise TracingSetupError(
                    f"failed to set up tracing: {e}",
                    details={"endpoint": config.otlp_endpoint},
                ) from e

        meter_provider: MeterProvider | None = None
        if config.metrics_enabled:
            try:
                meter_provider = build_meter_provider(
                    config, resource, exporter=self._metric_exporter, connect_timeout=timeout
                )
            except Exception as e:
                if tracer_provider is not None:
                    self._discard(tracer_provider)
                raise MetricsSetupError(
                    f"failed to set up metrics: {e}",
                    details={"endpoint": config.otlp_endpoint},
                ) from e

        self._resource = resource
        install_propagator()
        self._publish(tracer_provider, meter_provider)
        self._state = LifecycleState.RUNNING

        logger.info("Telemetry setup complete", backends=[h.name for h in self._shutdown_hooks])
        return self._make_handles()

    def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Shut down every registered backend.

        All hooks run even if earlier ones fail. The provider ends up in
        ``STOPPED`` whatever the outcome.

        Args:
            timeout: Seconds shared by all hooks; each hook may use an
                equal share of what is left when it starts

        Raises:
            ShutdownAggregateError: If one or more hooks failed
        """
        if self._state is not LifecycleState.RUNNING:
            logger.debug("Telemetry shutdown skipped", state=str(self._state))
            return

        logger.info("Shutting down telemetry", backends=[h.name for h in self._shutdown_hooks])

        deadline = time.monotonic() + timeout
        errors: list[Exception] = []
        for index, hook in enumerate(self._shutdown_hooks):
            remaining = max(deadline - time.monotonic(), 0.0)
            # Later hooks always keep their share of the deadline.
            budget = remaining / (len(self._shutdown_hooks) - index)
            try:
                hook(budget)
            except Exception as e:
                logger.warning("Telemetry backend shutdown failed", backend=hook.name, error=str(e))
                errors.append(e)

        self._shutdown_hooks.clear()
        self._state = LifecycleState.STOPPED

        if errors:
            raise ShutdownAggregateError(errors)

        logger.info("Telemetry shutdown complete")

    def _publish(
        self,
        tracer_provider: TracerProvider | None,
        meter_provider: MeterProvider | None,
    ) -> None:
        if tracer_provider is not None:
            if self._set_global:
                trace.set_tracer_provider(tracer_provider)
                if trace.get_tracer_provider() is not tracer_provider:
                    logger.warning("Global tracer provider was already set; keeping the existing one")
            self._tracer_provider = tracer_provider
            self._shutdown_hooks.append(
                ShutdownHook("tracing", lambda t: shutdown_tracer_provider(tracer_provider, t))
            )

        if meter_provider is not None:
            if self._set_global:
                metrics.set_meter_provider(meter_provider)
                if metrics.get_meter_provider() is not meter_provider:
                    logger.warning("Global meter provider was already set; keeping the existing one")
            self._meter_provider = meter_provider
            self._shutdown_hooks.append(
                ShutdownHook("metrics", lambda t: shutdown_meter_provider(meter_provider, t))
            )

    def _discard(self, tracer_provider: TracerProvider) -> None:
        try:
            tracer_provider.shutdown()
        except Exception:
            logger.warning("Failed to roll back tracer provider", exc_info=True)

    def _make_handles(self) -> TelemetryHandles:
        return TelemetryHandles(
            tracer_provider=self._tracer_provider or trace.NoOpTracerProvider(),
            meter_provider=self._meter_provider or metrics.NoOpMeterProvider(),
        )


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer from the process-wide tracer provider.

    Args:
        name: Tracer name (usually __name__)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)


def get_meter(name: str) -> metrics.Meter:
    """Get a meter from the process-wide meter provider.

    Args:
        name: Meter name (usually __name__)

    Returns:
        Meter instance
    """
    return metrics.get_meter(name)
