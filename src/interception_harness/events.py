"""Lifecycle event emitter shared by the interceptor and its observers.

The emitter is an explicit handle: the interception middleware emits on it
and request waiters subscribe to it. Nothing here is process-global, so each
test can build its own emitter and run in isolation.

Listeners may be plain callables or coroutine functions. Delivery happens on
the emitting task, in registration order; coroutine listeners are awaited
before the next listener runs.

Examples:
    Observing every start event::

        emitter = LifecycleEmitter()

        def on_start(event: LifecycleEvent) -> None:
            print(event.request.method, event.request.url)

        emitter.on(EventKind.START, on_start)
        ...
        emitter.off(EventKind.START, on_start)
"""

import inspect
from collections.abc import Awaitable, Callable

from interception_harness.models import EventKind, LifecycleEvent
from interception_harness.observability.logging import get_logger
from interception_harness.observability.metrics import record_event

Listener = Callable[[LifecycleEvent], Awaitable[None] | None]

logger = get_logger(__name__)


class LifecycleEmitter:
    """Dispatches lifecycle events to per-kind listener lists."""

    def __init__(self) -> None:
        self._listeners: dict[EventKind, list[Listener]] = {kind: [] for kind in EventKind}

    def on(self, kind: EventKind, listener: Listener) -> None:
        """Register ``listener`` for events of ``kind``."""
        self._listeners[EventKind(kind)].append(listener)

    def off(self, kind: EventKind, listener: Listener) -> bool:
        """Remove one registration of ``listener`` for ``kind``.

        Returns:
            True if the listener was registered, False otherwise.
        """
        listeners = self._listeners[EventKind(kind)]
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def listener_count(self, kind: EventKind | None = None) -> int:
        """Number of listeners for ``kind``, or for all kinds when None."""
        if kind is None:
            return sum(len(listeners) for listeners in self._listeners.values())
        return len(self._listeners[EventKind(kind)])

    def remove_all_listeners(self, kind: EventKind | None = None) -> None:
        if kind is None:
            for listeners in self._listeners.values():
                listeners.clear()
        else:
            self._listeners[EventKind(kind)].clear()

    async def emit(self, event: LifecycleEvent) -> None:
        """Deliver ``event`` to every listener registered for its kind.

        A failing listener is logged and skipped; the remaining listeners
        still receive the event.
        """
        record_event(event.kind.value)

        # Snapshot: listeners may deregister themselves during delivery
        for listener in list(self._listeners[event.kind]):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "emitter.listener_failed",
                    event_kind=event.kind.value,
                    request_id=event.request_id,
                )
