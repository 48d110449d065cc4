"""Correlation ID tracing so every log line of an import run can be grouped."""

import uuid
import logging
from contextvars import ContextVar
from typing import Optional

# Context variable for storing the current import run's correlation ID
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records.

    This filter adds a 'correlation_id' attribute to each log record,
    which can be used in log formatters to include the correlation ID
    in log messages.
    """

    def filter(self, record):
        cid = correlation_id.get() or "?"
        record.correlation_id = cid[:8]  # Use first 8 chars for brevity
        return True


def get_correlation_id() -> str:
    """Get current correlation ID, creating one if it doesn't exist.

    Returns:
        Current correlation ID as a UUID string
    """
    cid = correlation_id.get()
    if cid is None:
        cid = str(uuid.uuid4())
        correlation_id.set(cid)
    return cid


def new_correlation_id() -> str:
    """Start a fresh correlation ID for the current context and return it."""
    cid = str(uuid.uuid4())
    correlation_id.set(cid)
    return cid


def set_correlation_id(cid: Optional[str]):
    """Set correlation ID for current context.

    Args:
        cid: Correlation ID string to set, or None to clear it
    """
    correlation_id.set(cid)
