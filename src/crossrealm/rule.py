"""
crossrealm — per-object capability policy.

File: src/crossrealm/rule.py
Last updated: 2026-02-12

Purpose
- Describe what the membrane may do with one governed object: whether it may be
  marshaled (and to which domains), which of the twelve actions are granted, and an
  optional dynamic predicate consulted on every forwarded operation.

Functional requirements
- Allow and deny lists of target domains are mutually exclusive.
- The dynamic predicate may be set exactly once.
- Permission defaults follow ``membrane.default_permission`` (deny unless configured).
- Rules stay mutable after attachment so capabilities can be revoked later; only the
  binding of a rule to its object is permanent.

Non-functional requirements
- Domain lists hold weak references and never keep a domain alive.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from crossrealm.actions import ACTION_COUNT, AccessAction, coerce_action
from crossrealm.config import active_config
from crossrealm.errors import RuleConflictError
from crossrealm.sealing import SealedMeta

if TYPE_CHECKING:
    from collections.abc import Callable

    from crossrealm.domain import Domain


class Rule(metaclass=SealedMeta):
    """Capability policy attached to exactly one governed object via ``Marshal.set_rule``."""

    __slots__ = (
        "_access_control",
        "_allow_marshal_to",
        "_can_marshal",
        "_disallow_marshal_to",
        "_permissions",
    )

    def __init__(self, rule: Rule | None = None, *, default_granted: bool | None = None) -> None:
        if rule is not None and not isinstance(rule, Rule):
            raise TypeError(f"expected Rule to copy, got {type(rule).__name__}")

        if rule is not None:
            self._can_marshal = rule._can_marshal
            self._allow_marshal_to = _copy_domains(rule._allow_marshal_to)
            self._disallow_marshal_to = _copy_domains(rule._disallow_marshal_to)
            self._permissions = list(rule._permissions)
            self._access_control = rule._access_control
            return

        if default_granted is None:
            default_granted = active_config()["membrane"]["default_permission"] == "allow"
        self._can_marshal = True
        self._allow_marshal_to: weakref.WeakSet[Domain] | None = None
        self._disallow_marshal_to: weakref.WeakSet[Domain] | None = None
        self._permissions = [bool(default_granted)] * ACTION_COUNT
        self._access_control: Callable[..., bool] | None = None

    @property
    def can_marshal(self) -> bool:
        return self._can_marshal

    @can_marshal.setter
    def can_marshal(self, value: bool) -> None:
        self._can_marshal = bool(value)

    def can_marshal_to(self, domain: Domain) -> bool:
        if not self._can_marshal:
            return False
        if self._allow_marshal_to is not None:
            return domain in self._allow_marshal_to
        if self._disallow_marshal_to is not None:
            return domain not in self._disallow_marshal_to
        return True

    def allow_marshal_to(self, domain: Domain) -> Rule:
        if self._allow_marshal_to is None:
            if self._disallow_marshal_to is not None:
                raise RuleConflictError("a rule cannot hold both an allow list and a deny list")
            self._allow_marshal_to = weakref.WeakSet()
        self._allow_marshal_to.add(domain)
        return self

    def disallow_marshal_to(self, domain: Domain) -> Rule:
        if self._disallow_marshal_to is None:
            if self._allow_marshal_to is not None:
                raise RuleConflictError("a rule cannot hold both an allow list and a deny list")
            self._disallow_marshal_to = weakref.WeakSet()
        self._disallow_marshal_to.add(domain)
        return self

    def is_granted(self, action: AccessAction | int) -> bool:
        return self._permissions[coerce_action(action)]

    def set_granted(self, action: AccessAction | int, granted: bool) -> Rule:
        self._permissions[coerce_action(action)] = bool(granted)
        return self

    def grant(self, *actions: AccessAction | int) -> Rule:
        for action in actions:
            self.set_granted(action, True)
        return self

    def revoke(self, *actions: AccessAction | int) -> Rule:
        for action in actions:
            self.set_granted(action, False)
        return self

    def can_access(self, action: AccessAction | int, *args: object) -> bool:
        """Return whether ``action`` is granted and the dynamic predicate (if any) agrees."""

        resolved = coerce_action(action)
        if not self._permissions[resolved]:
            return False
        if self._access_control is None:
            return True
        return bool(self._access_control(resolved, *args))

    def set_access_control(self, predicate: Callable[..., bool]) -> Rule:
        if not callable(predicate):
            raise TypeError("access control predicate must be callable")
        if self._access_control is not None:
            raise RuleConflictError("access control predicate is already set")
        self._access_control = predicate
        return self

    def __repr__(self) -> str:
        granted = [action.name for action in AccessAction if self._permissions[action]]
        return f"Rule(can_marshal={self._can_marshal}, granted={granted})"


def _copy_domains(
    domains: weakref.WeakSet[Domain] | None,
) -> weakref.WeakSet[Domain] | None:
    if domains is None:
        return None
    return weakref.WeakSet(domains)


__all__ = ["Rule"]
