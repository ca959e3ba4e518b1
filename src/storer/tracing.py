"""OpenTelemetry spans and timing logs around storer operations.

Every adapter call runs inside :func:`operation_span`, which

- opens a ``storer.<operation>`` span (ended on success *and* on error),
- logs ``storer.<operation>.start`` / ``.end`` at DEBUG with ``duration_ms``,
- logs ``storer.<operation>.error`` at WARNING with the error payload and
  records the exception on the span before re-raising it.

Without an OpenTelemetry SDK installed and configured, the API hands out a
no-op tracer, so spans cost next to nothing and change no behaviour.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from storer.errors import StorerError
from storer.logging import get_logger

TRACER_NAME = "storer"

log = get_logger(__name__)


def get_tracer(tracer_provider: trace.TracerProvider | None = None) -> trace.Tracer:
    """Tracer from ``tracer_provider``, or from the global provider."""
    return trace.get_tracer(TRACER_NAME, tracer_provider=tracer_provider)


def _error_fields(error: BaseException) -> dict[str, Any]:
    if isinstance(error, StorerError):
        return error.to_dict()
    return {"error_type": type(error).__name__, "message": str(error)}


@contextmanager
def operation_span(
    backend: str,
    operation: str,
    table: str | None = None,
    *,
    tracer_provider: trace.TracerProvider | None = None,
    **attributes: Any,
) -> Iterator[Span]:
    """Bracket one storer operation with a span and timing logs.

    Usage:
        with operation_span("pooled", "find", "users") as span:
            span.set_attribute("storer.skip", 20)
            ...
    """
    event = f"storer.{operation}"
    span_attributes: dict[str, Any] = {
        "db.system": "mongodb",
        "db.operation.name": operation,
        "storer.backend": backend,
    }
    if table is not None:
        span_attributes["db.collection.name"] = table
    span_attributes.update(attributes)

    fields = {"backend": backend, "table": table}
    tracer = get_tracer(tracer_provider)
    started = time.perf_counter()

    with tracer.start_as_current_span(
        event,
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        log.debug(f"{event}.start", **fields)
        try:
            yield span
        except Exception as e:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            if isinstance(e, StorerError):
                span.set_attribute("storer.error.kind", e.kind.value)
            log.warning(f"{event}.error", duration_ms=duration_ms, **fields, **_error_fields(e))
            raise

        log.debug(
            f"{event}.end",
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            **fields,
        )


__all__ = [
    "TRACER_NAME",
    "get_tracer",
    "operation_span",
]
