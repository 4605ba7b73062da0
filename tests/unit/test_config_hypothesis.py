"""Property-based tests for InterceptionConfig using Hypothesis."""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from interception_harness.config import (
    MAX_WAIT_TIMEOUT_SECONDS,
    VALID_HTTP_METHODS,
    InterceptionConfig,
)

http_methods_list_strategy = st.lists(
    st.sampled_from(sorted(VALID_HTTP_METHODS)),
    min_size=1,
    max_size=len(VALID_HTTP_METHODS),
    unique=True,
)

# Random casing of valid methods
mixed_case_method_strategy = st.sampled_from(sorted(VALID_HTTP_METHODS)).flatmap(
    lambda method: st.tuples(*[st.sampled_from([c.lower(), c.upper()]) for c in method]).map(
        "".join
    )
)

valid_timeout_strategy = st.floats(
    min_value=0.001, max_value=MAX_WAIT_TIMEOUT_SECONDS, allow_nan=False
)

invalid_timeout_strategy = st.one_of(
    st.floats(max_value=0, allow_nan=False, allow_infinity=False),
    st.floats(min_value=MAX_WAIT_TIMEOUT_SECONDS + 0.001, max_value=1e9, allow_nan=False),
)


@given(methods=http_methods_list_strategy)
def test_valid_method_lists_accepted(methods: list[str]) -> None:
    config = InterceptionConfig(intercepted_methods=methods)
    assert config.intercepted_methods == methods


@given(methods=st.lists(mixed_case_method_strategy, min_size=1, max_size=5))
def test_methods_normalized_to_uppercase(methods: list[str]) -> None:
    config = InterceptionConfig(intercepted_methods=methods)
    assert config.intercepted_methods == [method.upper() for method in methods]


@given(methods=http_methods_list_strategy)
def test_comma_string_equivalent_to_list(methods: list[str]) -> None:
    from_string = InterceptionConfig(intercepted_methods=",".join(methods))
    from_list = InterceptionConfig(intercepted_methods=methods)
    assert from_string.intercepted_methods == from_list.intercepted_methods


@given(
    bogus=st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ", min_size=1, max_size=12).filter(
        lambda s: s not in VALID_HTTP_METHODS
    )
)
def test_unknown_methods_rejected(bogus: str) -> None:
    with pytest.raises(ValidationError):
        InterceptionConfig(intercepted_methods=["POST", bogus])


@given(timeout=valid_timeout_strategy)
def test_valid_timeouts_accepted(timeout: float) -> None:
    assert InterceptionConfig(default_wait_timeout_seconds=timeout).default_wait_timeout_seconds == timeout


@given(timeout=invalid_timeout_strategy)
def test_invalid_timeouts_rejected(timeout: float) -> None:
    with pytest.raises(ValidationError):
        InterceptionConfig(default_wait_timeout_seconds=timeout)
