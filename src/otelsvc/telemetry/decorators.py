"""Decorators for automatic tracing."""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

F = TypeVar("F", bound=Callable[..., Any])


def traced(
    name: str | None = None,
    attributes: dict[str, Any] | None = None,
    tracer_provider: trace.TracerProvider | None = None,
) -> Callable[[F], F]:
    """Decorator to automatically trace a function.

    Args:
        name: Span name (defaults to module.function)
        attributes: Additional span attributes
        tracer_provider: Provider to trace with (defaults to the global one,
            resolved at call time)

    Example:
        ```python
        @traced(name="business-logic", attributes={"component": "demo"})
        async def run_business_logic():
            pass
        ```
    """

    def decorator(func: F) -> F:
        span_name = name or f"{func.__module__}.{func.__name__}"

        def get_tracer() -> trace.Tracer:
            return trace.get_tracer(func.__module__, tracer_provider=tracer_provider)

        def annotate(span: trace.Span, kwargs: dict[str, Any]) -> None:
            if attributes:
                span.set_attributes(attributes)
            for key, value in kwargs.items():
                if isinstance(value, (str, int, float, bool)):
                    span.set_attribute(f"arg.{key}", value)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with get_tracer().start_as_current_span(
                    span_name, record_exception=False, set_status_on_exception=False
                ) as span:
                    annotate(span, kwargs)
                    try:
                        result = await func(*args, **kwargs)
                        span.set_status(Status(StatusCode.OK))
                        return result
                    except Exception as e:
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        raise

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer().start_as_current_span(
                span_name, record_exception=False, set_status_on_exception=False
            ) as span:
                annotate(span, kwargs)
                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        return sync_wrapper  # type: ignore

    return decorator
