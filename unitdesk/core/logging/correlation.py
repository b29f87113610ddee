"""
Correlation ids for logging.
Every collection fetch runs under its own id so its log lines can be joined.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variable for correlation ID
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a short unique id for a fetch or mutation."""
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> str:
    """Get the current correlation ID or generate a new one."""
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = generate_correlation_id()
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id.set(corr_id)


@contextmanager
def correlation_scope(corr_id: str | None = None) -> Iterator[str]:
    """Run a block under a fresh (or given) correlation id."""
    corr_id = corr_id or generate_correlation_id()
    token = _correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds the correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to the log record."""
        record.correlation_id = get_correlation_id()
        return True
