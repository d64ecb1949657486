"""
crossrealm — realm handles and the realm-creation capability.

File: src/crossrealm/realm.py
Last updated: 2026-02-12

Purpose
- Describe the root object space of one isolated execution context.
- Provide the host-privileged factories that create those spaces.

What should be included in this file
- ``Realm``: the opaque handle a domain is built on.
- ``RealmFactory``: the capability protocol injected into ``Domain.create``.
- A host factory for the top realm and an isolated factory that strips
  dangerous builtins.

Functional requirements
- Every realm carries its own builtins namespace; mutating one never leaks into another.
- Every realm reports the host objects that must never cross a boundary.

Non-functional requirements
- Factories have no global side effects.
"""

from __future__ import annotations

import asyncio
import builtins
import concurrent.futures
import sys
import types
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Final, Protocol, runtime_checkable

# Builtins that reach the filesystem, the interpreter, or caller frames.
UNSAFE_BUILTIN_NAMES: Final[frozenset[str]] = frozenset(
    {
        "__import__",
        "breakpoint",
        "compile",
        "copyright",
        "credits",
        "eval",
        "exec",
        "exit",
        "globals",
        "help",
        "input",
        "license",
        "locals",
        "open",
        "quit",
        "vars",
    }
)

UNSAFE_MODULE_NAMES: Final[tuple[str, ...]] = (
    "builtins",
    "ctypes",
    "gc",
    "importlib",
    "inspect",
    "os",
    "subprocess",
    "sys",
)

UNSAFE_TYPES: Final[tuple[type, ...]] = (
    types.FrameType,
    types.TracebackType,
)

FUTURE_TYPES: Final[tuple[type, ...]] = (
    asyncio.Future,
    concurrent.futures.Future,
    Awaitable,
)


@dataclass(frozen=True, slots=True, eq=False)
class Realm:
    """Root object space of one execution context."""

    name: str
    namespace: dict[str, Any]
    object_type: type = object
    error_type: type[BaseException] = BaseException
    future_types: tuple[type, ...] = FUTURE_TYPES
    unsafe_objects: tuple[object, ...] = field(default_factory=tuple)
    unsafe_types: tuple[type, ...] = UNSAFE_TYPES

    def lookup(self, name: str) -> Any:
        return self.namespace[name]


@runtime_checkable
class RealmFactory(Protocol):
    """Capability that creates a fresh realm; only the host should hold one."""

    def create_realm(self, name: str) -> Realm: ...


class HostRealmFactory:
    """Create the top realm over a private copy of the host builtins."""

    def create_realm(self, name: str) -> Realm:
        namespace = dict(vars(builtins))
        return Realm(
            name=name,
            namespace=namespace,
            unsafe_objects=_unsafe_objects(namespace),
        )


class IsolatedRealmFactory:
    """Create subordinate realms without interpreter-escape builtins.

    Each realm receives its own ``Object`` base type so that instances created from
    it can be told apart from host objects.
    """

    def __init__(self, *, extra_builtins: dict[str, Any] | None = None) -> None:
        self._extra_builtins = dict(extra_builtins or {})

    def create_realm(self, name: str) -> Realm:
        namespace = {
            key: value for key, value in vars(builtins).items() if key not in UNSAFE_BUILTIN_NAMES
        }
        object_type = type("Object", (), {"__module__": f"crossrealm.realm.{name}"})
        namespace["Object"] = object_type
        namespace.update(self._extra_builtins)
        return Realm(
            name=name,
            namespace=namespace,
            object_type=object_type,
            unsafe_objects=_unsafe_objects(namespace),
        )


def _unsafe_objects(namespace: dict[str, Any]) -> tuple[object, ...]:
    found: list[object] = [namespace]
    for builtin_name in sorted(UNSAFE_BUILTIN_NAMES):
        value = getattr(builtins, builtin_name, None)
        if value is not None:
            found.append(value)
    for module_name in UNSAFE_MODULE_NAMES:
        module = sys.modules.get(module_name)
        if module is not None:
            found.append(module)
            found.append(vars(module))
    return tuple(found)


__all__ = [
    "FUTURE_TYPES",
    "HostRealmFactory",
    "IsolatedRealmFactory",
    "Realm",
    "RealmFactory",
    "UNSAFE_BUILTIN_NAMES",
    "UNSAFE_MODULE_NAMES",
    "UNSAFE_TYPES",
]
