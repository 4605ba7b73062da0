"""Core request correlation logic.

- Waiter: correlates lifecycle events by request identifier and settles one
  awaitable per wait (IDLE -> TRACKING -> RESOLVED/REJECTED)

The core only depends on the lifecycle emitter, so it can observe any
interception source that emits the same events.
"""

from interception_harness.core.waiter import PendingRequest, RequestWaiter

__all__ = ["PendingRequest", "RequestWaiter"]
