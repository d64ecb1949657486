"""
crossrealm — observation and override of forwarded operations.

File: src/crossrealm/monitor.py
Last updated: 2026-02-12

Purpose
- Let policy code observe, veto, or rewrite individual operations that cross the
  membrane between two domains.

What should be included in this file
- ``Monitor``: a builder-style registration (actions, domain lists, parameter
  constraints, filter, handler) that is immutable while started.
- ``DomainMonitors``: the per-owner-domain index keyed by accessor domain and action.
- The control object handed to handlers.

Functional requirements
- A monitor owns the domain that was current when it was built; it watches objects
  of that domain accessed from other domains (all others unless allow/deny lists say
  otherwise).
- Dispatch runs candidates in registration order; ``stop_propagation`` ends the loop,
  ``prevent_default`` replaces the default operation with the supplied return value.
- ``override_parameter`` rewrites the live operands seen by later monitors and by
  the default operation.
- Domains created after a monitor started are indexed retroactively.

Non-functional requirements
- The index never keeps a domain alive.
- Dispatch is synchronous and never swallows handler errors.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

import structlog

from crossrealm.actions import (
    AccessAction,
    coerce_actions,
    is_known_parameter,
    parameter_index,
    parameter_names,
)
from crossrealm.domain import Domain
from crossrealm.errors import MonitorStateError, PolicyError, UnknownParameterError
from crossrealm.sealing import SealedMeta

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

_logger = structlog.get_logger(__name__)

_VALUE_TYPES: Final[tuple[type, ...]] = (str, bytes, int, float, complex, bool)

# Started monitors in start order; the dict doubles as an ordered set.
_STARTED: dict[Monitor, None] = {}


@dataclass(frozen=True, slots=True)
class MonitorAccess:
    """Describes which accessor domain triggered the dispatch and for which action."""

    domain: Domain
    action: AccessAction


@dataclass(slots=True)
class DispatchOutcome:
    """Result of one dispatch round, consumed by the forwarding proxy."""

    prevent_default: bool = False
    stop_propagation: bool = False
    return_value: Any = None


class MonitorControl:
    """Handle passed to monitor handlers for steering the intercepted operation."""

    __slots__ = ("_action", "_operands", "_outcome")

    def __init__(
        self, action: AccessAction, operands: list[Any], outcome: DispatchOutcome
    ) -> None:
        self._action = action
        self._operands = operands
        self._outcome = outcome

    def prevent_default(self) -> None:
        self._outcome.prevent_default = True

    def stop_propagation(self) -> None:
        self._outcome.stop_propagation = True

    def override_parameter(self, name: str, value: Any) -> None:
        self._operands[parameter_index(self._action, name)] = value

    def set_return_value(self, value: Any) -> None:
        self._outcome.return_value = value


class Monitor(metaclass=SealedMeta):
    """Builder for one observation/override registration.

    Example::

        monitor = Monitor()
        monitor.allow(sandbox)
        monitor.action(AccessAction.WRITE)
        monitor.require("target", counter)
        monitor.require("property", "n")
        monitor.filter(lambda access, nameds: nameds["value"] < 0)
        monitor.then(lambda access, nameds, control: control.override_parameter("value", 0))
        monitor.start()
    """

    __slots__ = (
        "__weakref__",
        "_actions",
        "_allow_domains",
        "_checks",
        "_disallow_domains",
        "_domain",
        "_filter",
        "_handler",
    )

    def __init__(self) -> None:
        self._domain = Domain.current
        self._actions: dict[AccessAction, None] = {}
        self._allow_domains: weakref.WeakSet[Domain] | None = None
        self._disallow_domains: weakref.WeakSet[Domain] | None = None
        self._checks: dict[str, list[Any]] = {}
        self._filter: Callable[[MonitorAccess, Mapping[str, Any]], bool] | None = None
        self._handler: Callable[..., None] | None = None

    @property
    def domain(self) -> Domain:
        return self._domain

    @property
    def is_started(self) -> bool:
        return self in _STARTED

    def action(self, *actions: AccessAction | int) -> Monitor:
        self._assert_stopped()
        if not actions:
            raise PolicyError("at least one action is required")
        for action in coerce_actions(actions):
            self._actions[action] = None
        return self

    def allow(self, *domains: Domain) -> Monitor:
        self._assert_stopped()
        _check_domains(domains)
        if any(domain is self._domain for domain in domains):
            raise PolicyError("a monitor cannot watch its own domain")

        if self._allow_domains is not None:
            self._allow_domains.update(domains)
        elif self._disallow_domains is not None:
            for domain in domains:
                self._disallow_domains.discard(domain)
        else:
            self._allow_domains = weakref.WeakSet(domains)
        return self

    def disallow(self, *domains: Domain) -> Monitor:
        self._assert_stopped()
        _check_domains(domains)

        if self._disallow_domains is not None:
            self._disallow_domains.update(domains)
        elif self._allow_domains is not None:
            for domain in domains:
                self._allow_domains.discard(domain)
        else:
            self._disallow_domains = weakref.WeakSet(domains)
        return self

    def require(self, name: str, *values: Any) -> Monitor:
        """Only handle operations whose parameter ``name`` equals one of ``values``."""

        self._assert_stopped()
        if not isinstance(name, str):
            raise TypeError("parameter name must be a string")
        if not is_known_parameter(name):
            raise UnknownParameterError(f"unknown monitor parameter {name!r}")
        if not values:
            return self
        expected = self._checks.setdefault(name, [])
        for value in values:
            if not any(_same_value(value, item) for item in expected):
                expected.append(value)
        return self

    def filter(self, predicate: Callable[[MonitorAccess, Mapping[str, Any]], bool]) -> Monitor:
        self._assert_stopped()
        if not callable(predicate):
            raise TypeError("filter must be callable")
        self._filter = predicate
        return self

    def then(
        self, handler: Callable[[MonitorAccess, Mapping[str, Any], MonitorControl], None]
    ) -> Monitor:
        self._assert_stopped()
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handler = handler
        return self

    def start(self) -> None:
        if self.is_started:
            raise MonitorStateError("monitor is already started")
        if self._handler is None:
            raise MonitorStateError("monitor has no handler; call then() before start()")
        _STARTED[self] = None
        DomainMonitors.install(self)
        _logger.debug(
            "monitor_started",
            domain=self._domain.name,
            actions=[action.name for action in self._actions],
        )

    def stop(self) -> None:
        if not self.is_started:
            raise MonitorStateError("monitor is not started")
        DomainMonitors.uninstall(self)
        del _STARTED[self]
        _logger.debug("monitor_stopped", domain=self._domain.name)

    def _watches(self, domain: Domain) -> bool:
        if domain is self._domain:
            return False
        if self._allow_domains is not None:
            return domain in self._allow_domains
        if self._disallow_domains is not None:
            return domain not in self._disallow_domains
        return True

    def _matches(self, nameds: Mapping[str, Any]) -> bool:
        for name, expected in self._checks.items():
            if name not in nameds:
                continue
            actual = nameds[name]
            if not any(_same_value(item, actual) for item in expected):
                return False
        return True

    def _handle(
        self, access: MonitorAccess, nameds: Mapping[str, Any], control: MonitorControl
    ) -> None:
        if not self._matches(nameds):
            return
        if self._filter is not None and not self._filter(access, nameds):
            return
        assert self._handler is not None
        self._handler(access, nameds, control)

    def _assert_stopped(self) -> None:
        if self.is_started:
            raise MonitorStateError("a started monitor cannot be modified")


class DomainMonitors(metaclass=SealedMeta):
    """Index of started monitors owned by one domain, keyed by accessor domain and action."""

    __slots__ = ("__weakref__", "_monitors_map")

    _instances: weakref.WeakKeyDictionary[Domain, DomainMonitors] = weakref.WeakKeyDictionary()

    def __init__(self) -> None:
        self._monitors_map: weakref.WeakKeyDictionary[
            Domain, dict[AccessAction, dict[Monitor, None]]
        ] = weakref.WeakKeyDictionary()

    @classmethod
    def install(cls, monitor: Monitor) -> None:
        owner = monitor.domain
        instance = cls._instances.get(owner)
        if instance is None:
            instance = cls()
            cls._instances[owner] = instance
        for domain in Domain.list_domains():
            if monitor._watches(domain):
                instance._add(domain, monitor)

    @classmethod
    def uninstall(cls, monitor: Monitor) -> None:
        instance = cls._instances.get(monitor.domain)
        if instance is None:
            return
        for action_map in list(instance._monitors_map.values()):
            for monitors in action_map.values():
                monitors.pop(monitor, None)

    @classmethod
    def handle_new_domain(cls, new_domain: Domain) -> None:
        """Index ``new_domain`` into every started monitor whose lists admit it."""

        for monitor in tuple(_STARTED):
            if not monitor._watches(new_domain):
                continue
            instance = cls._instances.get(monitor.domain)
            if instance is not None:
                instance._add(new_domain, monitor)

    @classmethod
    def dispatch(
        cls,
        source: Domain,
        target: Domain,
        action: AccessAction,
        operands: list[Any],
    ) -> DispatchOutcome:
        """Run the monitors registered for ``(source, target, action)`` over ``operands``."""

        outcome = DispatchOutcome()
        monitors = cls._monitors_for(source, target, action)
        if not monitors:
            return outcome

        access = MonitorAccess(domain=target, action=action)
        control = MonitorControl(action, operands, outcome)
        names = parameter_names(action)
        for monitor in monitors:
            nameds = MappingProxyType(dict(zip(names, operands, strict=True)))
            monitor._handle(access, nameds, control)
            if outcome.stop_propagation:
                break

        if outcome.prevent_default:
            _logger.debug(
                "monitor_prevented_default",
                source=source.name,
                target=target.name,
                action=action.name,
            )
        return outcome

    @classmethod
    def _monitors_for(
        cls, source: Domain, target: Domain, action: AccessAction
    ) -> tuple[Monitor, ...]:
        instance = cls._instances.get(source)
        if instance is None:
            return ()
        action_map = instance._monitors_map.get(target)
        if action_map is None:
            return ()
        return tuple(action_map.get(action, ()))

    def _add(self, domain: Domain, monitor: Monitor) -> None:
        action_map = self._monitors_map.get(domain)
        if action_map is None:
            action_map = {}
            self._monitors_map[domain] = action_map
        for action in monitor._actions:
            action_map.setdefault(action, {})[monitor] = None


def started_monitors() -> tuple[Monitor, ...]:
    return tuple(_STARTED)


def _check_domains(domains: Iterable[object]) -> None:
    materialized = tuple(domains)
    if not materialized:
        raise PolicyError("at least one domain is required")
    for domain in materialized:
        if not isinstance(domain, Domain):
            raise TypeError(f"expected Domain, got {type(domain).__name__}")


def _same_value(expected: Any, actual: Any) -> bool:
    if expected is actual:
        return True
    if type(expected) in _VALUE_TYPES and type(expected) is type(actual):
        return bool(expected == actual)
    return False


__all__ = [
    "DispatchOutcome",
    "DomainMonitors",
    "Monitor",
    "MonitorAccess",
    "MonitorControl",
    "started_monitors",
]
