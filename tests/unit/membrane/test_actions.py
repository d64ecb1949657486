"""
crossrealm — unit tests for access actions and parameter layouts

File: tests/unit/membrane/test_actions.py
Last updated: 2026-02-12

Purpose
- Validate the numeric action kinds and the named-parameter layout of each kind.

What this test file should cover
- Stable numeric values 0-11.
- Layout lookups and unknown-parameter failures.
- Rejection of bools and out-of-range values.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic and fast.
"""

from __future__ import annotations

import pytest

from crossrealm.actions import (
    ACTION_COUNT,
    PARAMETER_LAYOUT,
    AccessAction,
    coerce_action,
    coerce_actions,
    is_access_action,
    is_known_parameter,
    parameter_index,
    parameter_names,
)
from crossrealm.errors import InvalidActionError, PolicyError, UnknownParameterError

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:
    _HYPOTHESIS_AVAILABLE = False
else:
    _HYPOTHESIS_AVAILABLE = True


def test_action_values_are_stable() -> None:
    assert ACTION_COUNT == 12
    assert [action.name for action in AccessAction] == [
        "CALL",
        "CONSTRUCT",
        "READ",
        "WRITE",
        "DESCRIBE",
        "DEFINE",
        "TRACE",
        "META",
        "SEAL",
        "EXISTS",
        "LIST",
        "DELETE",
    ]
    assert [int(action) for action in AccessAction] == list(range(12))


def test_every_action_has_a_layout_starting_with_target() -> None:
    assert set(PARAMETER_LAYOUT) == set(AccessAction)
    for names in PARAMETER_LAYOUT.values():
        assert names[0] == "target"


def test_layouts_keep_positional_order() -> None:
    assert parameter_names(AccessAction.CALL) == ("target", "thisArg", "arguments", "keywords")
    assert parameter_names(AccessAction.CONSTRUCT) == (
        "target",
        "arguments",
        "newTarget",
        "keywords",
    )
    assert parameter_names(AccessAction.WRITE) == ("target", "property", "value", "receiver")
    assert parameter_names(AccessAction.META) == ("target", "prototype")
    assert parameter_names(AccessAction.LIST) == ("target",)
    assert parameter_index(AccessAction.WRITE, "value") == 2
    assert parameter_index(3, "receiver") == 3


def test_unknown_parameter_for_action_raises() -> None:
    with pytest.raises(UnknownParameterError, match="READ has no parameter 'value'"):
        parameter_index(AccessAction.READ, "value")


def test_unknown_parameter_error_is_a_policy_error() -> None:
    assert issubclass(UnknownParameterError, PolicyError)
    assert issubclass(UnknownParameterError, ValueError)


@pytest.mark.parametrize("value", [True, False, -1, 12, 2.0, "READ", None])
def test_invalid_action_values_are_rejected(value: object) -> None:
    assert not is_access_action(value)
    with pytest.raises(InvalidActionError):
        coerce_action(value)


def test_coerce_actions_accepts_ints_and_members() -> None:
    assert coerce_actions([0, AccessAction.READ, 11]) == (
        AccessAction.CALL,
        AccessAction.READ,
        AccessAction.DELETE,
    )


def test_known_parameter_names_cover_every_layout() -> None:
    for names in PARAMETER_LAYOUT.values():
        for name in names:
            assert is_known_parameter(name)
    assert not is_known_parameter("self")


if _HYPOTHESIS_AVAILABLE:

    @given(value=st.integers(min_value=-1000, max_value=1000))
    @settings(max_examples=50, derandomize=True, deadline=None)
    def test_property_only_zero_to_eleven_are_actions(value: int) -> None:
        assert is_access_action(value) == (0 <= value < 12)
