"""Observability utilities for the interception harness.

This package provides:
- Prometheus metrics for lifecycle events and waiter outcomes
- Structured logging with contextual information
"""

from interception_harness.observability.logging import configure_logging, get_logger
from interception_harness.observability.metrics import (
    decrement_active_waiters,
    increment_active_waiters,
    record_event,
    record_outcome,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_event",
    "record_outcome",
    "increment_active_waiters",
    "decrement_active_waiters",
]
