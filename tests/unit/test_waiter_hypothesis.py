"""Property-based tests for RequestWaiter using Hypothesis.

Covers body fidelity, case-insensitive method matching, and the rule that
only the first terminal event for the tracked request decides the outcome.
"""

import json
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from interception_harness.core.waiter import RequestWaiter
from interception_harness.events import LifecycleEmitter
from interception_harness.exceptions import UnhandledRequestError
from interception_harness.models import EventKind, InterceptedRequest, LifecycleEvent

URL = "http://localhost/json"

json_strategy = st.recursive(
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**53), max_value=2**53)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=20),
    lambda children: st.lists(children, max_size=5)
    | st.dictionaries(st.text(max_size=10), children, max_size=5),
    max_leaves=20,
)

method_strategy = st.sampled_from(["GET", "POST", "PUT", "PATCH", "DELETE"])

mixed_case_strategy = method_strategy.flatmap(
    lambda method: st.tuples(*[st.sampled_from([c.lower(), c.upper()]) for c in method]).map(
        "".join
    )
)

request_id_strategy = st.text(alphabet="0123456789abcdef", min_size=1, max_size=8)


DEFAULT_BODY = {"firstName": "John"}


def event(
    kind: EventKind, request_id: str, method: str = "POST", body: Any = DEFAULT_BODY
) -> LifecycleEvent:
    raw = json.dumps(body).encode()
    return LifecycleEvent(
        kind=kind,
        request=InterceptedRequest(method, URL, body=raw),
        request_id=request_id,
    )


class TestWaiterProperties:
    """Property-based tests for PendingRequest correlation."""

    @pytest.mark.asyncio
    @given(body=json_strategy)
    async def test_resolves_with_exact_body(self, body: Any) -> None:
        emitter = LifecycleEmitter()
        pending = RequestWaiter(emitter).wait_for_request("POST", URL)

        await emitter.emit(event(EventKind.START, "req", body=body))
        await emitter.emit(event(EventKind.MATCH, "req", body=body))

        assert await pending == body
        assert emitter.listener_count() == 0

    @pytest.mark.asyncio
    @given(expected=mixed_case_strategy, actual=mixed_case_strategy)
    async def test_method_matching_ignores_case(self, expected: str, actual: str) -> None:
        emitter = LifecycleEmitter()
        pending = RequestWaiter(emitter).wait_for_request(expected, URL)

        await emitter.emit(event(EventKind.START, "req", method=actual))

        tracked = pending.request_id == "req"
        assert tracked == (expected.upper() == actual.upper())
        pending.cancel()

    @pytest.mark.asyncio
    @settings(max_examples=50)
    @given(
        tracked_id=request_id_strategy,
        noise=st.lists(
            st.tuples(st.sampled_from([EventKind.MATCH, EventKind.UNHANDLED]), request_id_strategy),
            max_size=6,
        ),
        terminal_events=st.lists(
            st.sampled_from([EventKind.MATCH, EventKind.UNHANDLED]), min_size=1, max_size=4
        ),
    )
    async def test_first_terminal_event_decides(
        self,
        tracked_id: str,
        noise: list[tuple[EventKind, str]],
        terminal_events: list[EventKind],
    ) -> None:
        emitter = LifecycleEmitter()
        pending = RequestWaiter(emitter).wait_for_request("POST", URL)

        await emitter.emit(event(EventKind.START, tracked_id))
        for kind, other_id in noise:
            if other_id != tracked_id:
                await emitter.emit(event(kind, other_id, body={"noise": True}))
        assert not pending.done()

        for kind in terminal_events:
            await emitter.emit(event(kind, tracked_id))

        if terminal_events[0] is EventKind.MATCH:
            assert await pending == {"firstName": "John"}
        else:
            with pytest.raises(UnhandledRequestError):
                await pending
