"""
crossrealm — global identity table for shared built-ins.

File: src/crossrealm/globals_table.py
Last updated: 2026-02-12

Purpose
- Map well-known built-ins of one domain to the same-named built-ins of another so
  they cross the membrane by identity rather than as forwarding proxies.

What should be included in this file
- The fixed list of symbolic paths resolved against each realm namespace.
- Interpreter types shared by every realm, registered under fixed keys.
- Lazy per-domain tables (object -> key and key -> object).
- Path parsing helpers shared with host-export installation.

Functional requirements
- Tables are built on first use and live exactly as long as their domain.
- Paths that do not resolve in a realm are skipped silently.
- Extra paths may be configured through ``membrane.extra_global_paths``.

Non-functional requirements
- Deterministic: the first path that resolves to an object owns its key.
"""

from __future__ import annotations

import types
import weakref
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

import structlog

from crossrealm._identity import IdentityMap
from crossrealm.config import active_config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from crossrealm.domain import Domain

GLOBAL_PATHS: Final[tuple[str, ...]] = (
    "/object",
    "/type",
    "/Object",
    "/bool",
    "/int",
    "/float",
    "/complex",
    "/str",
    "/bytes",
    "/bytearray",
    "/memoryview",
    "/list",
    "/tuple",
    "/dict",
    "/set",
    "/frozenset",
    "/range",
    "/slice",
    "/property",
    "/classmethod",
    "/staticmethod",
    "/super",
    "/enumerate",
    "/zip",
    "/map",
    "/filter",
    "/reversed",
    "/iter",
    "/next",
    "/len",
    "/abs",
    "/min",
    "/max",
    "/sum",
    "/sorted",
    "/any",
    "/all",
    "/repr",
    "/hash",
    "/callable",
    "/format",
    "/divmod",
    "/round",
    "/ord",
    "/chr",
    "/isinstance",
    "/issubclass",
    "/getattr",
    "/setattr",
    "/hasattr",
    "/delattr",
    "/BaseException",
    "/KeyboardInterrupt",
    "/SystemExit",
    "/Exception",
    "/ArithmeticError",
    "/AssertionError",
    "/AttributeError",
    "/GeneratorExit",
    "/ImportError",
    "/IndexError",
    "/KeyError",
    "/LookupError",
    "/NameError",
    "/NotImplementedError",
    "/OSError",
    "/OverflowError",
    "/PermissionError",
    "/RecursionError",
    "/RuntimeError",
    "/StopAsyncIteration",
    "/StopIteration",
    "/SyntaxError",
    "/TypeError",
    "/UnicodeError",
    "/ValueError",
    "/ZeroDivisionError",
    "/object/__init__",
    "/object/__repr__",
    "/list/append",
    "/dict/get",
    "/str/join",
)

# Interpreter types no realm namespace names; every realm shares them.
SHARED_TYPES: Final[Mapping[str, type]] = types.MappingProxyType(
    {
        "/function": types.FunctionType,
        "/builtin_function": types.BuiltinFunctionType,
        "/generator": types.GeneratorType,
        "/mappingproxy": types.MappingProxyType,
        "/NoneType": types.NoneType,
    }
)

_logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class _DomainGlobals:
    keys: IdentityMap[str] = field(default_factory=IdentityMap)
    objects: dict[str, Any] = field(default_factory=dict)


class GlobalIdentityTable:
    """Per-domain symbolic-path tables; all state is class-level and weakly keyed."""

    _tables: weakref.WeakKeyDictionary[Domain, _DomainGlobals] = weakref.WeakKeyDictionary()

    def __init__(self) -> None:
        raise TypeError("GlobalIdentityTable cannot be instantiated")

    @staticmethod
    def parse_from(path: str, namespace: Mapping[str, Any]) -> tuple[str, Any]:
        """Resolve ``path`` against ``namespace`` and return ``(key, object_or_None)``."""

        segments = [segment for segment in path.split("/") if segment]
        if not segments:
            return path, None
        current: Any = namespace.get(segments[0])
        for segment in segments[1:]:
            if current is None:
                break
            current = _static_member(current, segment)
        return path, current

    @staticmethod
    def parse_index(path: str, namespace: dict[str, Any]) -> tuple[Any, str]:
        """Return ``(container, last_segment)`` so a value can be installed at ``path``."""

        segments = [segment for segment in path.split("/") if segment]
        if not segments:
            raise ValueError(f"invalid global path: {path!r}")
        last = segments.pop()
        container: Any = namespace
        for index, segment in enumerate(segments):
            if index == 0:
                container = namespace.get(segment)
            else:
                container = _static_member(container, segment)
            if container is None:
                break
        return container, last

    @classmethod
    def ensure_domain_globals(cls, domain: Domain) -> None:
        if domain in cls._tables:
            return

        table = _DomainGlobals()
        namespace = domain.realm.namespace
        for path in _configured_paths():
            key, obj = cls.parse_from(path, namespace)
            if obj is None or key in table.objects:
                continue
            if table.keys.get(obj) is None:
                table.keys.set(obj, key)
            table.objects[key] = obj
        for key, shared in SHARED_TYPES.items():
            if key not in table.objects and table.keys.get(shared) is None:
                table.keys.set(shared, key)
                table.objects[key] = shared

        cls._tables[domain] = table
        _logger.debug("globals_table_built", domain=domain.name, entries=len(table.objects))

    @classmethod
    def find_global_key(cls, domain: Domain, obj: object) -> str | None:
        cls.ensure_domain_globals(domain)
        return cls._tables[domain].keys.get(obj)

    @classmethod
    def find_global_object(cls, domain: Domain, key: str) -> Any:
        cls.ensure_domain_globals(domain)
        return cls._tables[domain].objects.get(key)

    @classmethod
    def map_to(cls, key: str, domain: Domain) -> Any:
        """Return the object registered under ``key`` in ``domain``, or ``None``."""

        return cls.find_global_object(domain, key)

    @classmethod
    def keys(cls, domain: Domain) -> tuple[str, ...]:
        cls.ensure_domain_globals(domain)
        return tuple(cls._tables[domain].objects)


def host_export_paths() -> tuple[str, ...]:
    return tuple(active_config()["membrane"]["host_exports"])


def _configured_paths() -> Iterable[str]:
    yield from GLOBAL_PATHS
    yield from active_config()["membrane"]["extra_global_paths"]


def _static_member(container: object, name: str) -> Any:
    # Class and module dicts give stable identities; plain getattr would
    # create a fresh bound object per access for classmethods.
    try:
        members = vars(container)
    except TypeError:
        return getattr(container, name, None)
    if name in members:
        return members[name]
    return getattr(container, name, None)


__all__ = [
    "GLOBAL_PATHS",
    "GlobalIdentityTable",
    "SHARED_TYPES",
    "host_export_paths",
]
