"""Thread-local logging context for adding trip fields to log records."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class LogContext:
    """Fields attached to every record logged from the current thread."""

    _local = threading.local()

    @classmethod
    def get(cls) -> dict[str, Any]:
        return dict(getattr(cls._local, "context", {}))

    @classmethod
    def replace(cls, context: dict[str, Any]) -> None:
        cls._local.context = dict(context)


class ContextFilter(logging.Filter):
    """Injects LogContext fields into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Layer fields over the current context, restoring it on exit.

    Fields given as None are left out. Records pick the fields up through
    ContextFilter, which setup_logging attaches to the handler.
    """
    previous = LogContext.get()
    LogContext.replace(
        {**previous, **{key: value for key, value in fields.items() if value is not None}}
    )
    try:
        yield
    finally:
        LogContext.replace(previous)


@contextmanager
def log_trip_context(trip_id: str, **fields: Any) -> Iterator[None]:
    """Context for one trip; the trip id doubles as the correlation id."""
    fields.setdefault("correlation_id", trip_id)
    with log_context(trip_id=trip_id, **fields):
        yield
