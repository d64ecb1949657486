"""
crossrealm — access action kinds and their named-parameter layouts.

File: src/crossrealm/actions.py
Last updated: 2026-02-12

Purpose
- Enumerate the twelve operations a forwarding proxy intercepts.
- Fix the positional layout of operands for each operation so monitors can
  address them by name.

Functional requirements
- Numeric values are stable (0-11) and double as indices into rule permission vectors.
- Invalid action values fail fast with ``InvalidActionError``.

Non-functional requirements
- Layouts are immutable module constants.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from crossrealm.errors import InvalidActionError, UnknownParameterError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class AccessAction(IntEnum):
    """Operation kinds intercepted by the membrane."""

    CALL = 0
    CONSTRUCT = 1
    READ = 2
    WRITE = 3
    DESCRIBE = 4
    DEFINE = 5
    TRACE = 6
    META = 7
    SEAL = 8
    EXISTS = 9
    LIST = 10
    DELETE = 11


ACTION_COUNT: Final[int] = len(AccessAction)

_PROPERTY_LAYOUT: Final[tuple[str, ...]] = ("target", "property")
_TARGET_LAYOUT: Final[tuple[str, ...]] = ("target",)

PARAMETER_LAYOUT: Final[Mapping[AccessAction, tuple[str, ...]]] = MappingProxyType(
    {
        AccessAction.CALL: ("target", "thisArg", "arguments", "keywords"),
        AccessAction.CONSTRUCT: ("target", "arguments", "newTarget", "keywords"),
        AccessAction.READ: ("target", "property", "receiver"),
        AccessAction.WRITE: ("target", "property", "value", "receiver"),
        AccessAction.DESCRIBE: _PROPERTY_LAYOUT,
        AccessAction.DEFINE: ("target", "property", "descriptor"),
        AccessAction.TRACE: _TARGET_LAYOUT,
        AccessAction.META: ("target", "prototype"),
        AccessAction.SEAL: _TARGET_LAYOUT,
        AccessAction.EXISTS: _PROPERTY_LAYOUT,
        AccessAction.LIST: _TARGET_LAYOUT,
        AccessAction.DELETE: _PROPERTY_LAYOUT,
    }
)


def is_access_action(value: object) -> bool:
    """Return whether ``value`` names one of the twelve actions (bools excluded)."""

    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value < ACTION_COUNT


def coerce_action(value: object) -> AccessAction:
    """Return ``value`` as an ``AccessAction`` or raise ``InvalidActionError``."""

    if not is_access_action(value):
        raise InvalidActionError(f"not an access action: {value!r}")
    return AccessAction(value)


def coerce_actions(values: Iterable[object]) -> tuple[AccessAction, ...]:
    return tuple(coerce_action(value) for value in values)


def parameter_names(action: AccessAction | int) -> tuple[str, ...]:
    return PARAMETER_LAYOUT[coerce_action(action)]


def parameter_index(action: AccessAction | int, name: str) -> int:
    """Return the operand position of ``name`` for ``action``."""

    names = parameter_names(action)
    try:
        return names.index(name)
    except ValueError:
        raise UnknownParameterError(
            f"{AccessAction(action).name} has no parameter {name!r}; "
            f"expected one of: {', '.join(names)}"
        ) from None


def is_known_parameter(name: str) -> bool:
    return any(name in names for names in PARAMETER_LAYOUT.values())


__all__ = [
    "ACTION_COUNT",
    "AccessAction",
    "PARAMETER_LAYOUT",
    "coerce_action",
    "coerce_actions",
    "is_access_action",
    "is_known_parameter",
    "parameter_index",
    "parameter_names",
]
