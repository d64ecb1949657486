"""
crossrealm — isolated execution domains and the context stack.

File: src/crossrealm/domain.py
Last updated: 2026-02-12

Purpose
- Represent one isolated execution context (a realm plus its membrane state).
- Track the current domain and the reentrancy stack of context switches.

What should be included in this file
- ``Domain`` with lazy creation of the permanent top domain.
- Context-switch primitives ``_enter_domain``/``_exit_domain`` (package-private).
- Classification helpers that unwrap forwarding proxies before answering.
- Trust check ``Domain.is_believable`` for policy code.

Functional requirements
- Subordinate domains require a host-supplied ``RealmFactory``.
- New domains receive membrane-aware type predicates, their global identity
  table, the configured host exports, and retroactive monitor subscriptions.
- Exiting an empty stack raises ``StackUnderflowError``.

Non-functional requirements
- Dead domains are unlinked lazily; nothing here keeps a domain alive.
- Classification helpers never raise.
"""

from __future__ import annotations

import builtins
import inspect
import secrets
import string
import types
import weakref
from typing import TYPE_CHECKING, Any, Final

import structlog

from crossrealm._identity import IdentityMap
from crossrealm.constants import DOMAIN_NAME_LENGTH, TOP_DOMAIN_NAME
from crossrealm.errors import MembraneViolationError, StackUnderflowError, UnsafeRealmError
from crossrealm.globals_table import GlobalIdentityTable, host_export_paths
from crossrealm.realm import HostRealmFactory, Realm, RealmFactory
from crossrealm.sealing import SealedMeta

if TYPE_CHECKING:
    from collections.abc import Callable

_BASE36_ALPHABET: Final[str] = string.digits + string.ascii_lowercase
_CREATE_TOKEN: Final[object] = object()

_logger = structlog.get_logger(__name__)


class _DomainState:
    """Mutable process-wide domain bookkeeping; the ``Domain`` class itself is sealed."""

    __slots__ = ("current", "factory", "links", "origins", "stack", "top")

    def __init__(self) -> None:
        self.top: Domain | None = None
        self.current: Domain | None = None
        self.stack: list[Domain] = []
        self.links: list[weakref.ref[Domain]] = []
        self.factory: RealmFactory | None = None
        self.origins: IdentityMap[weakref.ref[Domain]] = IdentityMap()


_STATE = _DomainState()


class DomainMeta(SealedMeta):
    """Expose the context registers as read-only class properties."""

    @property
    def top(cls) -> Domain:
        return _ensure_top()

    @property
    def current(cls) -> Domain:
        _ensure_top()
        current = _STATE.current
        assert current is not None
        return current

    @property
    def caller(cls) -> Domain | None:
        """Nearest domain on the stack that differs from the current one."""

        _ensure_top()
        for domain in reversed(_STATE.stack):
            if domain is not _STATE.current:
                return domain
        return None


class Domain(metaclass=DomainMeta):
    """One isolated execution context.

    Domains are created with ``Domain.create(factory)``; the first access to
    ``Domain.top`` or ``Domain.current`` creates the permanent top domain over the host
    builtins.
    """

    __slots__ = ("__weakref__", "_name", "_proxies", "_realm", "_unsafe_ids")

    def __init__(self, realm: Realm, *, _token: object = None) -> None:
        if _token is not _CREATE_TOKEN:
            raise TypeError("use Domain.create() to build a domain")
        self._name = realm.name
        self._realm = realm
        self._proxies: IdentityMap[weakref.ref[Any]] = IdentityMap()
        self._unsafe_ids = frozenset(id(obj) for obj in realm.unsafe_objects)

    @classmethod
    def create(
        cls, realm_factory: RealmFactory | None = None, *, name: str | None = None
    ) -> Domain:
        """Create a subordinate domain using ``realm_factory`` or the installed one."""

        top = _ensure_top()
        factory = realm_factory if realm_factory is not None else _STATE.factory
        if factory is None:
            raise UnsafeRealmError("no realm factory available to create a subordinate domain")

        resolved_name = name if name is not None else _random_name()
        realm = factory.create_realm(resolved_name)
        if not isinstance(realm, Realm):
            raise TypeError(f"realm factory returned {type(realm).__name__}, expected Realm")

        domain = cls(realm, _token=_CREATE_TOKEN)
        domain._initialize(top)
        _logger.info("domain_created", domain=domain.name, caller=Domain.current.name)
        return domain

    @staticmethod
    def is_believable(domain: Domain) -> bool:
        """Return whether the whole switch history consists of ``top`` and ``domain`` only."""

        top = _ensure_top()
        if domain is top:
            return not _STATE.stack
        chain = [*_STATE.stack, _STATE.current]
        return all(entry is top or entry is domain for entry in chain)

    @staticmethod
    def list_domains() -> list[Domain]:
        _ensure_top()
        return _list_domains()

    @property
    def name(self) -> str:
        return self._name

    @property
    def realm(self) -> Realm:
        return self._realm

    @property
    def namespace(self) -> dict[str, Any]:
        return self._realm.namespace

    def is_from(self, obj: object) -> bool:
        try:
            return _owner_of(obj) is self
        except Exception:
            return False

    def is_error(self, obj: object) -> bool:
        try:
            return isinstance(_unwrap(obj), self._realm.error_type)
        except Exception:
            return False

    def is_promise(self, obj: object) -> bool:
        try:
            real = _unwrap(obj)
            return isinstance(real, self._realm.future_types) or inspect.isawaitable(real)
        except Exception:
            return False

    def is_array(self, obj: object) -> bool:
        try:
            return isinstance(_unwrap(obj), (list, tuple))
        except Exception:
            return False

    def is_unsafe(self, obj: object) -> bool:
        try:
            real = _unwrap(obj)
            return id(real) in self._unsafe_ids or isinstance(real, self._realm.unsafe_types)
        except Exception:
            return False

    def assert_safe(self, obj: object, attribute: str | None = None) -> None:
        """Raise ``MembraneViolationError`` if ``obj`` (or ``obj.attribute``) is unsafe."""

        if self.is_unsafe(obj):
            raise MembraneViolationError(f"unsafe object {type(obj).__name__} in {self!r}")
        if attribute is None:
            return
        value = inspect.getattr_static(_unwrap(obj), attribute, None)
        if self.is_unsafe(value):
            raise MembraneViolationError(f"unsafe attribute {attribute!r} in {self!r}")

    def __repr__(self) -> str:
        return f"<Domain {self._name}>"

    def __setattr__(self, name: str, value: object) -> None:
        if name in Domain.__slots__ and not _has_slot(self, name):
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"{type(self).__name__} attributes are read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} attributes are read-only")

    def __reduce__(self) -> Any:
        raise TypeError("domains cannot be pickled")

    def _initialize(self, top: Domain | None) -> None:
        predicates = _make_type_predicates()
        self._realm.namespace.update(predicates)
        GlobalIdentityTable.ensure_domain_globals(self)

        if top is not None:
            _install_host_exports(top, self)

        from crossrealm.monitor import DomainMonitors

        DomainMonitors.handle_new_domain(self)
        _STATE.links.append(weakref.ref(self))


def install_realm_factory(factory: RealmFactory | None) -> None:
    """Install (or clear) the host realm-creation capability used by ``Domain.create``."""

    _STATE.factory = factory


def _enter_domain(domain: Domain) -> None:
    current = Domain.current
    _STATE.stack.append(current)
    _STATE.current = domain


def _exit_domain() -> None:
    if not _STATE.stack:
        raise StackUnderflowError("domain stack is empty")
    _STATE.current = _STATE.stack.pop()


def _stack_depth() -> int:
    return len(_STATE.stack)


def _list_domains() -> list[Domain]:
    alive: list[Domain] = []
    links = _STATE.links
    for index in range(len(links) - 1, -1, -1):
        domain = links[index]()
        if domain is None:
            del links[index]
            continue
        alive.append(domain)
    alive.reverse()
    return alive


def _record_origin(obj: object, domain: Domain) -> None:
    # Only weakly held objects; a strong entry would pin the object forever.
    try:
        weakref.ref(obj)
    except TypeError:
        return
    if obj not in _STATE.origins:
        _STATE.origins.set(obj, weakref.ref(domain))


def _ensure_top() -> Domain:
    top = _STATE.top
    if top is not None:
        return top
    realm = HostRealmFactory().create_realm(TOP_DOMAIN_NAME)
    top = Domain(realm, _token=_CREATE_TOKEN)
    _STATE.top = top
    _STATE.current = top
    top._initialize(None)
    _logger.debug("domain_top_created", domain=top.name)
    return top


def _random_name() -> str:
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(DOMAIN_NAME_LENGTH))


def _has_slot(instance: object, name: str) -> bool:
    try:
        object.__getattribute__(instance, name)
    except AttributeError:
        return False
    return True


def _unwrap(obj: object) -> object:
    from crossrealm.marshal import unwrap_proxy

    return unwrap_proxy(obj)[1]


def _owner_of(obj: object) -> Domain:
    from crossrealm.marshal import unwrap_proxy

    source, real = unwrap_proxy(obj)
    if source is not None:
        return source

    origin = _STATE.origins.get(real)
    if origin is not None:
        recorded = origin()
        if recorded is not None:
            return recorded

    top = _ensure_top()
    for domain in _list_domains():
        if domain is not top and _belongs_to_realm(real, domain.realm):
            return domain
    return top


def _belongs_to_realm(obj: object, realm: Realm) -> bool:
    if realm.object_type is not object:
        if isinstance(obj, realm.object_type):
            return True
        if isinstance(obj, type) and issubclass(obj, realm.object_type):
            return True
    if isinstance(obj, types.MethodType):
        obj = obj.__func__
    if isinstance(obj, types.FunctionType):
        return obj.__globals__.get("__builtins__") is realm.namespace
    cls = obj if isinstance(obj, type) else type(obj)
    for member in vars(cls).values():
        if isinstance(member, (staticmethod, classmethod)):
            member = member.__func__
        if isinstance(member, types.FunctionType):
            return member.__globals__.get("__builtins__") is realm.namespace
    return False


def _install_host_exports(top: Domain, domain: Domain) -> None:
    from crossrealm.marshal import trap_marshal

    for path in host_export_paths():
        _, obj = GlobalIdentityTable.parse_from(path, top.namespace)
        if obj is None:
            continue
        container, last = GlobalIdentityTable.parse_index(path, domain.namespace)
        if container is None:
            continue
        exported = trap_marshal(top, domain, obj)
        if isinstance(container, dict):
            container[last] = exported
        else:
            setattr(container, last, exported)


def _make_type_predicates() -> dict[str, Callable[..., bool]]:
    # Fresh function objects per realm, so each realm's predicates map to each
    # other through the global identity table.
    def isinstance(obj: object, classinfo: Any, /) -> bool:
        return builtins.isinstance(_unwrap(obj), _unwrap_classinfo(classinfo))

    def issubclass(cls: Any, classinfo: Any, /) -> bool:
        return builtins.issubclass(_unwrap(cls), _unwrap_classinfo(classinfo))

    return {"isinstance": isinstance, "issubclass": issubclass}


def _unwrap_classinfo(classinfo: Any) -> Any:
    if builtins.isinstance(classinfo, tuple):
        return tuple(_unwrap_classinfo(item) for item in classinfo)
    return _unwrap(classinfo)


__all__ = [
    "Domain",
    "DomainMeta",
    "install_realm_factory",
]
