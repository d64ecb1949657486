"""
crossrealm — unit tests for monitors and their dispatch index

File: tests/unit/membrane/test_monitor.py
Last updated: 2026-02-12

Purpose
- Validate monitor registration, domain filtering, and the handler control surface.

What this test file should cover
- Builder validation and started/stopped state transitions.
- Named-parameter views, constraints, and filters.
- ``prevent_default``/``set_return_value``, ``override_parameter``, ``stop_propagation``.
- Allow/deny lists and retroactive indexing of new domains.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic; started monitors are stopped by the shared fixture.
"""

from __future__ import annotations

from typing import Any

import pytest

from crossrealm import (
    AccessAction,
    Domain,
    IsolatedRealmFactory,
    Marshal,
    Monitor,
    MonitorAccess,
    MonitorControl,
    MonitorStateError,
    PolicyError,
    UnknownParameterError,
)


class _Counter:
    def __init__(self) -> None:
        self.n = 1


def _read_n(domain: Domain, proxy: Any) -> Any:
    return Marshal.trap_domain(domain, lambda: proxy.n)


def _recording_monitor(
    calls: list[tuple[Any, ...]], *actions: AccessAction, label: str = "m"
) -> Monitor:
    def handler(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        calls.append((label, access.domain, access.action, dict(nameds)))

    return Monitor().action(*(actions or (AccessAction.READ,))).then(handler)


def test_monitor_owns_the_building_domain(sandbox: Domain) -> None:
    owned = Marshal.trap_domain(sandbox, Monitor)

    assert Monitor().domain is Domain.top
    assert owned.domain is sandbox


def test_builder_validates_arguments(sandbox: Domain) -> None:
    monitor = Monitor()

    with pytest.raises(PolicyError):
        monitor.action()
    with pytest.raises(PolicyError, match="own domain"):
        monitor.allow(Domain.top)
    with pytest.raises(PolicyError):
        monitor.disallow()
    with pytest.raises(TypeError):
        monitor.allow("sandbox")  # type: ignore[arg-type]
    with pytest.raises(UnknownParameterError):
        monitor.require("self")
    with pytest.raises(TypeError):
        monitor.require(1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        monitor.filter("yes")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        monitor.then(None)  # type: ignore[arg-type]
    assert monitor.action(AccessAction.READ, 3).allow(sandbox) is monitor


def test_start_and_stop_transitions() -> None:
    monitor = Monitor().action(AccessAction.READ)

    with pytest.raises(MonitorStateError, match="handler"):
        monitor.start()
    monitor.then(lambda *_: None)
    monitor.start()

    assert monitor.is_started
    with pytest.raises(MonitorStateError):
        monitor.start()
    with pytest.raises(MonitorStateError):
        monitor.action(AccessAction.WRITE)

    monitor.stop()

    assert not monitor.is_started
    with pytest.raises(MonitorStateError):
        monitor.stop()


def test_handler_sees_named_parameters(sandbox: Domain) -> None:
    counter = _Counter()
    proxy = Marshal.marshal(counter, sandbox)
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).start()

    assert _read_n(sandbox, proxy) == 1
    assert calls == [
        (
            "m",
            sandbox,
            AccessAction.READ,
            {"target": counter, "property": "n", "receiver": counter},
        )
    ]


def test_monitors_owned_by_another_domain_are_not_consulted(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)
    calls: list[tuple[Any, ...]] = []
    Marshal.trap_domain(sandbox, lambda: _recording_monitor(calls).start())

    _read_n(sandbox, proxy)

    assert calls == []


def test_prevent_default_returns_the_supplied_value(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)

    def override(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        control.prevent_default()
        control.set_return_value(42)

    Monitor().action(AccessAction.READ).require("property", "n").then(override).start()

    assert _read_n(sandbox, proxy) == 42


def test_override_parameter_rewrites_the_operation(sandbox: Domain) -> None:
    counter = _Counter()
    proxy = Marshal.marshal(counter, sandbox)
    seen: list[Any] = []

    def clamp(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        control.override_parameter("value", 0)

    def observe(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        seen.append(nameds["value"])

    (
        Monitor()
        .action(AccessAction.WRITE)
        .filter(lambda access, nameds: nameds["value"] < 0)
        .then(clamp)
        .start()
    )
    Monitor().action(AccessAction.WRITE).then(observe).start()

    def write(value: int) -> None:
        proxy.n = value

    Marshal.trap_domain(sandbox, lambda: write(-5))
    assert counter.n == 0
    Marshal.trap_domain(sandbox, lambda: write(7))
    assert counter.n == 7
    assert seen == [0, 7]


def test_stop_propagation_skips_later_monitors(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)
    calls: list[tuple[Any, ...]] = []

    def stopper(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        calls.append(("stopper",))
        control.stop_propagation()

    Monitor().action(AccessAction.READ).then(stopper).start()
    _recording_monitor(calls, label="later").start()

    assert _read_n(sandbox, proxy) == 1
    assert calls == [("stopper",)]


def test_monitors_run_in_registration_order(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls, label="first").start()
    _recording_monitor(calls, label="second").start()

    _read_n(sandbox, proxy)

    assert [call[0] for call in calls] == ["first", "second"]


def test_require_matches_by_identity_for_objects(sandbox: Domain) -> None:
    watched = _Counter()
    ignored = _Counter()
    watched_proxy = Marshal.marshal(watched, sandbox)
    ignored_proxy = Marshal.marshal(ignored, sandbox)
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).require("target", watched).start()

    _read_n(sandbox, ignored_proxy)
    _read_n(sandbox, watched_proxy)

    assert [call[3]["target"] for call in calls] == [watched]


def test_allow_list_limits_observed_domains(sandbox: Domain, other_sandbox: Domain) -> None:
    counter = _Counter()
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).allow(sandbox).start()

    _read_n(sandbox, Marshal.marshal(counter, sandbox))
    _read_n(other_sandbox, Marshal.marshal(counter, other_sandbox))

    assert [call[1] for call in calls] == [sandbox]


def test_disallow_list_excludes_domains(sandbox: Domain, other_sandbox: Domain) -> None:
    counter = _Counter()
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).disallow(sandbox).start()

    _read_n(sandbox, Marshal.marshal(counter, sandbox))
    _read_n(other_sandbox, Marshal.marshal(counter, other_sandbox))

    assert [call[1] for call in calls] == [other_sandbox]


def test_allow_after_disallow_removes_from_the_deny_list(
    sandbox: Domain, other_sandbox: Domain
) -> None:
    counter = _Counter()
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).disallow(sandbox, other_sandbox).allow(sandbox).start()

    _read_n(sandbox, Marshal.marshal(counter, sandbox))
    _read_n(other_sandbox, Marshal.marshal(counter, other_sandbox))

    assert [call[1] for call in calls] == [sandbox]


def test_new_domains_are_indexed_retroactively() -> None:
    counter = _Counter()
    calls: list[tuple[Any, ...]] = []
    _recording_monitor(calls).start()

    late = Domain.create(IsolatedRealmFactory())
    _read_n(late, Marshal.marshal(counter, late))

    assert [call[1] for call in calls] == [late]


def test_stopped_monitors_are_not_dispatched(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)
    calls: list[tuple[Any, ...]] = []
    monitor = _recording_monitor(calls)
    monitor.start()
    monitor.stop()

    _read_n(sandbox, proxy)

    assert calls == []


def test_handler_errors_propagate(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)

    def explode(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        raise LookupError("handler failed")

    Monitor().action(AccessAction.READ).then(explode).start()

    with pytest.raises(LookupError, match="handler failed"):
        _read_n(sandbox, proxy)


def test_override_parameter_rejects_unknown_names(sandbox: Domain) -> None:
    proxy = Marshal.marshal(_Counter(), sandbox)

    def bad(access: MonitorAccess, nameds: Any, control: MonitorControl) -> None:
        control.override_parameter("value", 1)

    Monitor().action(AccessAction.READ).then(bad).start()

    with pytest.raises(UnknownParameterError):
        _read_n(sandbox, proxy)
