"""Prometheus metrics for the interception harness.

Metrics include:

- Lifecycle events emitted, by event kind
- Waiter outcomes, by outcome (resolved, unhandled, decode_error, ...)
- Waiters currently holding listeners on an emitter

The active waiters gauge returning to zero after a test run is how listener
leaks show up.

Examples:
    >>> record_event("request:start")
    >>> record_outcome("resolved")
"""

from prometheus_client import Counter, Gauge

# Labels: event (request:start, request:match, request:unhandled, request:end)
events_total = Counter(
    "interception_events_total",
    "Total number of lifecycle events emitted",
    ["event"],
)

# Labels: outcome (resolved, unhandled, decode_error, body_consumed, timeout, cancelled)
waiter_outcomes_total = Counter(
    "request_waiter_outcomes_total",
    "Total number of settled wait_for_request invocations",
    ["outcome"],
)

active_waiters = Gauge(
    "request_waiter_active",
    "Number of wait_for_request invocations still subscribed to an emitter",
)


def record_event(event: str) -> None:
    """Record an emitted lifecycle event.

    Args:
        event: The event kind value, e.g. "request:start"
    """
    events_total.labels(event=event).inc()


def record_outcome(outcome: str) -> None:
    """Record how a wait_for_request invocation settled.

    Args:
        outcome: resolved, unhandled, decode_error, body_consumed, timeout or cancelled
    """
    waiter_outcomes_total.labels(outcome=outcome).inc()


def increment_active_waiters() -> None:
    """Called when a waiter subscribes its listeners."""
    active_waiters.inc()


def decrement_active_waiters() -> None:
    """Called when a waiter removes its listeners."""
    active_waiters.dec()
