"""
Request interception and correlation harness for ASGI applications.

This package emits lifecycle events for requests handled by an ASGI app and
lets tests wait for a specific request and inspect its decoded body,
independently of how the endpoint consumed that body.
"""

__version__ = "0.1.0"

from interception_harness.adapters.asgi import InterceptionMiddleware, get_intercepted_request
from interception_harness.config import InterceptionConfig
from interception_harness.core.waiter import PendingRequest, RequestWaiter
from interception_harness.events import LifecycleEmitter
from interception_harness.exceptions import (
    BodyConsumedError,
    BodyDecodeError,
    InterceptionError,
    UnhandledRequestError,
    WaitTimeoutError,
)
from interception_harness.models import EventKind, InterceptedRequest, LifecycleEvent, WaiterState

__all__ = [
    "__version__",
    "BodyConsumedError",
    "BodyDecodeError",
    "EventKind",
    "InterceptedRequest",
    "InterceptionConfig",
    "InterceptionError",
    "InterceptionMiddleware",
    "LifecycleEmitter",
    "LifecycleEvent",
    "PendingRequest",
    "RequestWaiter",
    "UnhandledRequestError",
    "WaitTimeoutError",
    "WaiterState",
    "get_intercepted_request",
]
