"""
crossrealm — end-to-end membrane scenarios

File: tests/unit/membrane/test_scenarios.py
Last updated: 2026-02-12

Purpose
- Drive the membrane the way a host does: code compiled into two subordinate domains
  exchanging objects, with policy attached by the owning side.

What this test file should cover
- Write denial visible to the receiving domain while reads still succeed.
- Monitor-enforced clamping of negative writes between two domains.
- Errors raised in one domain caught as native errors in another.
- Denied calls never reaching the underlying function.
- Cache identity across repeated marshaling.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic.
"""

from __future__ import annotations

import functools
from typing import Any

import pytest

from crossrealm import (
    AccessAction,
    AccessDeniedError,
    Domain,
    IsolatedRealmFactory,
    Marshal,
    Monitor,
    MonitorAccess,
    MonitorControl,
    Rule,
    compile_in_domain,
)

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:
    _HYPOTHESIS_AVAILABLE = False
else:
    _HYPOTHESIS_AVAILABLE = True

_BOX_SOURCE = """
class Box(Object):
    def __init__(self):
        self.n = 1

box = Box()

def is_box(candidate):
    return candidate is box
"""

_GUARDED_BOX_SOURCE = (
    _BOX_SOURCE + "Marshal.set_rule(box, Rule().grant(AccessAction.READ))\n"
)

_POLICY_SCOPE: dict[str, Any] = {"Marshal": Marshal, "Rule": Rule, "AccessAction": AccessAction}


@functools.cache
def _shared_sandbox() -> Domain:
    return Domain.create(IsolatedRealmFactory(), name="identity")


def _run(code: str, domain: Domain, **scope: Any) -> Any:
    return compile_in_domain(code, domain, scope=scope)()


def test_write_denied_by_the_owner_rule(sandbox: Domain, other_sandbox: Domain) -> None:
    owner_namespace = _run(_GUARDED_BOX_SOURCE, sandbox, **_POLICY_SCOPE)
    box = owner_namespace["box"]

    receiver_namespace = _run(
        "denied = False\n"
        "try:\n"
        "    wrapper.n = 2\n"
        "except AccessDeniedError:\n"
        "    denied = True\n"
        "value = wrapper.n\n",
        other_sandbox,
        wrapper=box,
        AccessDeniedError=AccessDeniedError,
    )

    assert receiver_namespace["denied"] is True
    assert receiver_namespace["value"] == 1
    assert box.n == 1


def test_monitor_clamps_negative_writes(sandbox: Domain, other_sandbox: Domain) -> None:
    box = _run(_BOX_SOURCE, sandbox)["box"]

    def clamp(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        control.override_parameter("value", 0)

    def install() -> None:
        (
            Monitor()
            .action(AccessAction.WRITE)
            .allow(other_sandbox)
            .require("property", "n")
            .filter(lambda access, nameds: nameds["value"] < 0)
            .then(clamp)
            .start()
        )

    Marshal.trap_domain(sandbox, install)

    _run("wrapper.n = -5\n", other_sandbox, wrapper=box)
    assert box.n == 0
    _run("wrapper.n = 3\n", other_sandbox, wrapper=box)
    assert box.n == 3


def test_monitor_return_value_replaces_every_matching_read(sandbox: Domain) -> None:
    class Point:
        x = 1

    point = Point()
    proxy = Marshal.marshal(point, sandbox)

    def answer(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        control.prevent_default()
        control.set_return_value(42)

    Monitor().action(AccessAction.READ).require("property", "x").then(answer).start()

    reads = _run("values = [point.x for _ in range(3)]\n", sandbox, point=proxy)["values"]

    assert list(reads) == [42, 42, 42]
    assert point.x == 1


def test_errors_are_native_in_the_catching_domain(sandbox: Domain, other_sandbox: Domain) -> None:
    explode = _run("def explode():\n    raise ValueError('from owner')\n", sandbox)["explode"]

    namespace = _run(
        "try:\n"
        "    explode()\n"
        "except Exception as exc:\n"
        "    caught = exc\n"
        "is_error = isinstance(caught, BaseException)\n"
        "kind = type(caught).__name__\n"
        "message = str(caught)\n",
        other_sandbox,
        explode=explode,
    )

    assert namespace["is_error"] is True
    assert namespace["kind"] == "ValueError"
    assert namespace["message"] == "from owner"
    assert other_sandbox.is_error(namespace["caught"])


def test_denied_calls_never_run(sandbox: Domain) -> None:
    calls: list[int] = []

    def record() -> None:
        calls.append(1)

    Marshal.set_rule(record, Rule().grant(AccessAction.READ))
    proxy = Marshal.marshal(record, sandbox)

    for _ in range(3):
        with pytest.raises(AccessDeniedError):
            _run("target()\n", sandbox, target=proxy)

    assert calls == []


def test_objects_relayed_between_domains_keep_one_proxy(
    sandbox: Domain, other_sandbox: Domain
) -> None:
    owner_namespace = _run(_BOX_SOURCE, sandbox)
    box = owner_namespace["box"]

    namespace = _run("first = wrapper\nsecond = wrapper\n", other_sandbox, wrapper=box)

    assert namespace["first"] is box
    assert namespace["second"] is box
    assert owner_namespace["is_box"](namespace["first"]) is True


if _HYPOTHESIS_AVAILABLE:

    @given(values=st.lists(st.integers(), max_size=5))
    @settings(max_examples=30, derandomize=True, deadline=None)
    def test_property_marshal_is_idempotent(values: list[int]) -> None:
        target = _shared_sandbox()

        assert Marshal.marshal(values, target) is Marshal.marshal(values, target)
