"""
crossrealm — the marshaling membrane and its forwarding proxy.

File: src/crossrealm/marshal.py
Last updated: 2026-02-12

Purpose
- Move objects between domains: primitives and shared built-ins by value or
  identity, errors by re-hosting, everything else behind a forwarding proxy.
- Run every operation on a proxy through policy (rules), observation (monitors),
  and the domain stack before touching the real object.

What should be included in this file
- ``Marshal``: the static membrane API (marshal, trap_domain, rule binding, inspection).
- ``MarshalledProxy``: the forwarding proxy covering the twelve access actions.
- ``forward``: the single entrypoint that executes one action on one proxy.
- Package-private helpers ``trap_marshal`` and ``unwrap_proxy``.

Functional requirements
- At most one proxy per (real object, target domain) while the proxy is alive.
- A proxy is never wrapped again: marshaling it back into its source domain
  yields the real object.
- The domain stack returns to its pre-call depth on every exit path; errors are
  re-marshaled into the domain being returned to before they propagate.
- Control objects of the membrane are never proxied; unsafe objects never cross.

Non-functional requirements
- Proxy state lives in module side tables keyed by identity, never on the proxy.
- Logging carries domain and type names only, never object contents.
"""

from __future__ import annotations

import builtins
import inspect
import types
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import structlog

from crossrealm._identity import IdentityMap
from crossrealm.actions import AccessAction, parameter_names
from crossrealm.config import active_config
from crossrealm.domain import Domain, _enter_domain, _exit_domain, _record_origin
from crossrealm.errors import (
    AccessDeniedError,
    MembraneError,
    MembraneViolationError,
    RuleConflictError,
)
from crossrealm.globals_table import GlobalIdentityTable
from crossrealm.monitor import (
    DispatchOutcome,
    DomainMonitors,
    Monitor,
    MonitorAccess,
    MonitorControl,
)
from crossrealm.realm import Realm
from crossrealm.reflect import NATIVE_OPERATIONS
from crossrealm.rule import Rule
from crossrealm.sealing import SealedMeta

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

_PRIMITIVE_TYPES: Final[tuple[type, ...]] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    type(Ellipsis),
    type(NotImplemented),
)

_INLINE_ACTIONS: Final[frozenset[AccessAction]] = frozenset(
    {
        AccessAction.EXISTS,
        AccessAction.DESCRIBE,
        AccessAction.DELETE,
        AccessAction.DEFINE,
    }
)

_BOOLEAN_ACTIONS: Final[frozenset[AccessAction]] = frozenset(
    {
        AccessAction.WRITE,
        AccessAction.DEFINE,
        AccessAction.META,
        AccessAction.SEAL,
        AccessAction.EXISTS,
        AccessAction.DELETE,
    }
)

# Attribute-protocol methods: calling one performs this action on its receiver.
_REFLECTIVE_METHODS: Final[Mapping[str, tuple[AccessAction, int]]] = types.MappingProxyType(
    {
        "__getattribute__": (AccessAction.READ, 1),
        "__getattr__": (AccessAction.READ, 1),
        "__setattr__": (AccessAction.WRITE, 2),
        "__delattr__": (AccessAction.DELETE, 1),
        "__dir__": (AccessAction.LIST, 0),
    }
)

# Slot descriptor hooks; the attribute name comes from the descriptor.
_DESCRIPTOR_METHODS: Final[Mapping[str, tuple[AccessAction, tuple[int, ...]]]] = (
    types.MappingProxyType(
        {
            "__get__": (AccessAction.READ, (1, 2)),
            "__set__": (AccessAction.WRITE, (2,)),
            "__delete__": (AccessAction.DELETE, (1,)),
        }
    )
)

_BOUND_METHOD_TYPES: Final[tuple[type, ...]] = (
    types.MethodType,
    types.BuiltinMethodType,
    types.MethodWrapperType,
)
_UNBOUND_METHOD_TYPES: Final[tuple[type, ...]] = (
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
    types.FunctionType,
)
_SLOT_DESCRIPTOR_TYPES: Final[tuple[type, ...]] = (
    types.GetSetDescriptorType,
    types.MemberDescriptorType,
)

_logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class _ProxyRecord:
    real: Any
    source: Domain
    destination: Domain


_PROXY_RECORDS: IdentityMap[_ProxyRecord] = IdentityMap()
_RULES: IdentityMap[Rule] = IdentityMap()

# Instances of these types must never leave the domain that created them.
_FORBIDDEN_TYPES: Final[tuple[type, ...]] = (
    Rule,
    Monitor,
    Realm,
    MonitorControl,
    DomainMonitors,
    DispatchOutcome,
    IdentityMap,
    _ProxyRecord,
)

# Instances of these types cross unchanged.
_UNGOVERNED_TYPES: Final[tuple[type, ...]] = (
    Domain,
    AccessAction,
    MonitorAccess,
    MembraneError,
)


class Marshal(metaclass=SealedMeta):
    """Static API of the membrane; never instantiated."""

    __slots__ = ()

    def __new__(cls, *args: object, **kwargs: object) -> Marshal:
        raise TypeError("Marshal cannot be instantiated")

    @staticmethod
    def marshal(obj: Any, target: Domain) -> Any:
        """Return the representation of ``obj`` (owned by the current domain) in ``target``."""

        _check_domain(target)
        return _marshal(obj, Domain.current, target)

    @staticmethod
    def marshal_sequence(items: Iterable[Any], target: Domain) -> list[Any]:
        _check_domain(target)
        return _marshal_sequence(items, Domain.current, target)

    @staticmethod
    def marshal_mapping(mapping: Mapping[Any, Any], target: Domain) -> dict[Any, Any]:
        _check_domain(target)
        return _marshal_mapping(mapping, Domain.current, target)

    @staticmethod
    def trap_domain(domain: Domain, action: Callable[[], Any]) -> Any:
        """Run ``action`` with ``domain`` entered, re-marshaling failures on the way out."""

        previous = Domain.current
        if domain is previous:
            _log_inline_trap(domain)
            return action()

        failure: BaseException | None = None
        _enter_domain(domain)
        try:
            return action()
        except BaseException as exc:
            failure = _cross_boundary_failure(exc, previous)
        finally:
            _exit_domain()
        assert failure is not None
        raise failure

    @staticmethod
    def set_rule(obj: Any, rule: Rule) -> None:
        """Bind ``rule`` to ``obj`` permanently."""

        if not isinstance(rule, Rule):
            raise TypeError(f"expected Rule, got {type(rule).__name__}")
        if _is_primitive(obj) or obj in _PROXY_RECORDS:
            raise MembraneViolationError("rules can only be attached to real, non-primitive objects")
        if obj in _RULES:
            raise RuleConflictError("object already has a rule")
        _RULES.set(obj, rule)

    @staticmethod
    def has_rule(obj: Any) -> bool:
        return obj in _RULES

    @staticmethod
    def is_marshalled(obj: Any) -> bool:
        return obj in _PROXY_RECORDS

    @staticmethod
    def get_marshalled_domain(obj: Any) -> Domain | None:
        """Return the domain that owns the object behind proxy ``obj``."""

        record = _PROXY_RECORDS.get(obj)
        return record.source if record is not None else None


def trap_marshal(source: Domain, target: Domain, obj: Any) -> Any:
    """Marshal ``obj`` into ``target`` as if ``source`` were the current domain."""

    return _marshal(obj, source, target)


def unwrap_proxy(obj: Any) -> tuple[Domain | None, Any]:
    record = _PROXY_RECORDS.get(obj)
    if record is None:
        return None, obj
    return record.source, record.real


def forward(proxy: Any, action: AccessAction, *operands: Any) -> Any:
    """Execute ``action`` on ``proxy``; ``operands`` exclude the target."""

    record = _record_of(proxy)
    action = AccessAction(action)
    current = Domain.current
    if action is AccessAction.CALL and current is not record.destination:
        # No live caller set up the holder's context (e.g. a deferred callback).
        result = Marshal.trap_domain(
            record.destination, lambda: _forward_from(record, action, operands)
        )
        return _marshal(result, record.destination, current)
    return _forward_from(record, action, operands)


def _forward_from(record: _ProxyRecord, action: AccessAction, operands: tuple[Any, ...]) -> Any:
    caller = Domain.current
    source = record.source
    names = parameter_names(action)
    if len(operands) != len(names) - 1:
        raise TypeError(f"{action.name} takes {len(names) - 1} operands, got {len(operands)}")

    live = [record.real]
    for name, value in zip(names[1:], operands, strict=True):
        live.append(_marshal_operand(name, value, caller, source))

    if action in _INLINE_ACTIONS and caller is source:
        raw = _operate(record, action, live)
    else:
        raw = Marshal.trap_domain(source, lambda: _operate(record, action, live))
    return _marshal_result(action, raw, source, caller)


def _operate(record: _ProxyRecord, action: AccessAction, operands: list[Any]) -> Any:
    if action is AccessAction.META and operands[1] in _PROXY_RECORDS:
        return False

    for governed in _governed_objects(action, operands[0]):
        rule = _RULES.get(governed)
        if rule is not None and not rule.can_access(action, *operands):
            _logger.info(
                "membrane_access_denied",
                action=action.name,
                source=record.source.name,
                target=record.destination.name,
                object_type=type(governed).__name__,
            )
            raise AccessDeniedError(f"{action.name} denied on {type(governed).__name__}")

    if action is AccessAction.CALL:
        reflective = _reflective_access(operands[0], operands[2], operands[3])
        if reflective is not None:
            return _operate_reflective(record, *reflective)

    outcome = DomainMonitors.dispatch(record.source, record.destination, action, operands)
    if outcome.prevent_default:
        return outcome.return_value
    result = NATIVE_OPERATIONS[action](*operands)
    return _shield_state(result, action, operands)


def _reflective_access(
    target: Any, arguments: list[Any], keywords: Mapping[str, Any]
) -> tuple[AccessAction, list[Any]] | None:
    """Translate a call of an attribute-protocol method into the action it performs.

    ``w.__setattr__("n", 2)``, ``type(w).__setattr__(w, "n", 2)`` and the ``__set__`` hook
    of a slot descriptor are all the write ``w.n = 2`` and are governed as such.
    Returns ``None`` for every other call.
    """

    if isinstance(target, _BOUND_METHOD_TYPES):
        receiver, rest = target.__self__, list(arguments)
    elif isinstance(target, _UNBOUND_METHOD_TYPES) and arguments:
        # Plain functions count only when defined in a class body.
        if isinstance(target, types.FunctionType) and "." not in target.__qualname__:
            return None
        receiver, rest = arguments[0], list(arguments[1:])
    else:
        return None

    name = target.__name__
    if name in _DESCRIPTOR_METHODS:
        return _descriptor_access(name, receiver, rest, keywords)
    if name not in _REFLECTIVE_METHODS:
        return None

    action, arity = _REFLECTIVE_METHODS[name]
    if keywords or len(rest) != arity:
        raise TypeError(f"{name}() takes exactly {arity} positional arguments")
    if action is AccessAction.LIST:
        return action, [receiver]
    if action is AccessAction.READ:
        return action, [receiver, rest[0], receiver]
    if action is AccessAction.DELETE:
        return action, [receiver, rest[0]]
    if type(rest[0]) is str and rest[0] == "__class__":
        return AccessAction.META, [receiver, rest[1]]
    return action, [receiver, rest[0], rest[1], receiver]


def _descriptor_access(
    name: str, descriptor: Any, rest: list[Any], keywords: Mapping[str, Any]
) -> tuple[AccessAction, list[Any]] | None:
    if not isinstance(descriptor, _SLOT_DESCRIPTOR_TYPES) or not rest or rest[0] is None:
        return None
    action, arities = _DESCRIPTOR_METHODS[name]
    if keywords or len(rest) not in arities:
        raise TypeError(f"{name}() takes {' or '.join(map(str, arities))} positional arguments")
    instance, attribute = rest[0], descriptor.__name__
    if action is AccessAction.READ:
        return action, [instance, attribute, instance]
    if action is AccessAction.WRITE:
        return action, [instance, attribute, rest[1], instance]
    return action, [instance, attribute]


def _operate_reflective(record: _ProxyRecord, action: AccessAction, operands: list[Any]) -> Any:
    result = _operate(record, action, operands)
    if action is AccessAction.META:
        if not result:
            raise TypeError("__class__ assignment refused")
        return None
    if action in (AccessAction.WRITE, AccessAction.DELETE):
        if not result:
            raise AttributeError(f"cannot {action.name.lower()} attribute {operands[1]!r}")
        return None
    return result


def _shield_state(result: Any, action: AccessAction, operands: list[Any]) -> Any:
    """Hand out the instance dictionary of a ruled object as a read-only view."""

    if type(result) is not dict:
        return result
    if action is AccessAction.READ:
        owners = [operands[0]]
    elif action is AccessAction.CALL:
        bound = operands[0].__self__ if isinstance(operands[0], _BOUND_METHOD_TYPES) else None
        owners = [bound, operands[1], *operands[2], *operands[3].values()]
    else:
        return result
    for owner in owners:
        if owner in _RULES and result is _instance_dict(owner):
            return types.MappingProxyType(result)
    return result


def _instance_dict(obj: Any) -> Any:
    try:
        return object.__getattribute__(obj, "__dict__")
    except (AttributeError, TypeError):
        return None


def _governed_objects(action: AccessAction, target: Any) -> tuple[Any, ...]:
    # Calling ``obj.__call__`` is a call of ``obj``.
    if action is AccessAction.CALL and getattr(target, "__name__", None) == "__call__":
        owner = getattr(target, "__self__", None)
        if owner is not None:
            return (target, owner)
    return (target,)


def _marshal_operand(name: str, value: Any, source: Domain, target: Domain) -> Any:
    if name == "arguments":
        return _marshal_sequence(value, source, target)
    if name in ("keywords", "descriptor"):
        return _marshal_mapping(value, source, target)
    if name == "property":
        return value
    return _marshal(value, source, target)


def _marshal_result(action: AccessAction, raw: Any, source: Domain, target: Domain) -> Any:
    if action in _BOOLEAN_ACTIONS:
        return bool(raw)
    if action is AccessAction.DESCRIBE:
        return None if raw is None else _marshal_mapping(raw, source, target)
    if action is AccessAction.LIST:
        return _marshal_sequence(raw, source, target)
    if action is AccessAction.TRACE and raw in _PROXY_RECORDS:
        return None
    return _marshal(raw, source, target)


def _marshal(obj: Any, source: Domain, target: Domain) -> Any:
    if _is_primitive(obj):
        return obj

    record = _PROXY_RECORDS.get(obj)
    if record is not None:
        source, real = record.source, record.real
    else:
        real = obj
    if source is target:
        return real

    if isinstance(real, _FORBIDDEN_TYPES):
        raise MembraneViolationError(f"{type(real).__name__} objects cannot be marshaled")
    if source.is_unsafe(real):
        raise MembraneViolationError(f"unsafe {type(real).__name__} cannot leave {source!r}")
    if _is_ungoverned(real):
        return real

    key = GlobalIdentityTable.find_global_key(source, real)
    if key is not None:
        mapped = GlobalIdentityTable.map_to(key, target)
        if mapped is not None:
            return mapped

    if source.is_error(real):
        return _rehost_error(real, source, target)

    rule = _RULES.get(real)
    if rule is not None and not rule.can_marshal_to(target):
        raise AccessDeniedError(f"{type(real).__name__} may not be marshaled to {target!r}")

    cached = target._proxies.get(real)
    if cached is not None:
        proxy = cached()
        if proxy is not None:
            return proxy
    return _create_proxy(real, source, target)


def _marshal_sequence(items: Iterable[Any], source: Domain, target: Domain) -> list[Any]:
    return [_marshal(item, source, target) for item in items]


def _marshal_mapping(
    mapping: Mapping[Any, Any], source: Domain, target: Domain
) -> dict[Any, Any]:
    marshaled: dict[Any, Any] = {}
    for key, value in mapping.items():
        resolved_key = key if type(key) is str else _marshal(key, source, target)
        marshaled[resolved_key] = _marshal(value, source, target)
    return marshaled


def _create_proxy(real: Any, source: Domain, target: Domain) -> MarshalledProxy:
    proxy = object.__new__(MarshalledProxy)
    _PROXY_RECORDS.set(proxy, _ProxyRecord(real=real, source=source, destination=target))

    key_id = id(real)
    domain_ref = weakref.ref(target)

    def _evict(ref: weakref.ref[Any]) -> None:
        domain = domain_ref()
        if domain is not None:
            domain._proxies.discard_entry(key_id, ref)

    target._proxies.set(real, weakref.ref(proxy, _evict))
    _record_origin(real, source)
    _logger.debug(
        "membrane_proxy_created",
        source=source.name,
        target=target.name,
        object_type=type(real).__name__,
    )
    return proxy


def _rehost_error(error: BaseException, source: Domain, target: Domain) -> BaseException:
    ctor: Any = None
    for cls in type(error).__mro__:
        key = GlobalIdentityTable.find_global_key(source, cls)
        if key is None:
            continue
        ctor = GlobalIdentityTable.map_to(key, target)
        if isinstance(ctor, type) and issubclass(ctor, BaseException):
            break
        ctor = None
    if ctor is None:
        ctor = Exception

    args = tuple(_marshal_detail(value, source, target) for value in error.args)
    try:
        rehosted = ctor(*args)
    except TypeError:
        rehosted = ctor.__new__(ctor)
        rehosted.args = args

    for name, value in vars(error).items():
        if name == "__notes__":
            rehosted.__notes__ = [str(note) for note in value]
            continue
        try:
            setattr(rehosted, name, _marshal(value, source, target))
        except MembraneError as exc:
            _logger.debug(
                "membrane_error_attribute_dropped",
                attribute=name,
                error_type=type(error).__name__,
                reason=type(exc).__name__,
            )
    return rehosted


def _marshal_detail(value: Any, source: Domain, target: Domain) -> Any:
    if type(value) is tuple:
        return tuple(_marshal_detail(item, source, target) for item in value)
    try:
        return _marshal(value, source, target)
    except MembraneError:
        return f"<{type(value).__name__}>"


def _cross_boundary_failure(exc: BaseException, previous: Domain) -> BaseException:
    failure = _marshal(exc, Domain.current, previous)
    if not isinstance(failure, BaseException):
        return MembraneViolationError(f"{type(exc).__name__} could not be re-hosted")
    # Frames of the other domain stay behind.
    failure.__traceback__ = None
    failure.__cause__ = None
    failure.__context__ = None
    return failure


def _log_inline_trap(domain: Domain) -> None:
    if active_config()["membrane"]["warn_inline_traps"]:
        _logger.warning("membrane_trap_inline", domain=domain.name)
    else:
        _logger.debug("membrane_trap_inline", domain=domain.name)


def _record_of(proxy: Any) -> _ProxyRecord:
    record = _PROXY_RECORDS.get(proxy)
    if record is None:
        raise MembraneViolationError("object is not a membrane proxy")
    return record


def _is_primitive(obj: object) -> bool:
    return type(obj) in _PRIMITIVE_TYPES


def _is_ungoverned(obj: object) -> bool:
    if isinstance(obj, _UNGOVERNED_TYPES):
        return True
    if isinstance(obj, type):
        return obj in _CONTROL_CLASSES or issubclass(obj, MembraneError)
    return False


def _check_domain(domain: object) -> None:
    if type(domain) is not Domain:
        raise TypeError(f"expected Domain, got {type(domain).__name__}")


def _read_special(proxy: Any, name: str) -> Any:
    return forward(proxy, AccessAction.READ, name, proxy)


def _invoke_special(proxy: Any, name: str, *args: Any) -> Any:
    return _read_special(proxy, name)(*args)


class MarshalledProxy(metaclass=SealedMeta):
    """Forwarding proxy standing in for an object that lives in another domain."""

    __slots__ = ("__weakref__",)

    def __new__(cls, *args: object, **kwargs: object) -> MarshalledProxy:
        raise TypeError("proxies are created by the membrane only")

    def __getattribute__(self, name: str) -> Any:
        if name == "__class__":
            return forward(self, AccessAction.TRACE)
        if name in ("__reduce__", "__reduce_ex__"):
            return object.__getattribute__(self, name)
        return forward(self, AccessAction.READ, name, self)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "__class__":
            if not forward(self, AccessAction.META, value):
                raise TypeError("__class__ assignment refused")
            return
        if not forward(self, AccessAction.WRITE, name, value, self):
            raise AttributeError(f"cannot set attribute {name!r}")

    def __delattr__(self, name: str) -> None:
        if not forward(self, AccessAction.DELETE, name):
            raise AttributeError(f"cannot delete attribute {name!r}")

    def __dir__(self) -> Iterable[str]:
        return forward(self, AccessAction.LIST)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        record = _record_of(self)
        if isinstance(record.real, type):
            return forward(self, AccessAction.CONSTRUCT, list(args), self, kwargs)
        this_arg = None
        if inspect.ismethod(record.real):
            this_arg = trap_marshal(record.source, record.destination, record.real.__self__)
        return forward(self, AccessAction.CALL, this_arg, list(args), kwargs)

    def __instancecheck__(self, instance: Any) -> bool:
        return builtins.isinstance(unwrap_proxy(instance)[1], _record_of(self).real)

    def __subclasscheck__(self, subclass: Any) -> bool:
        return builtins.issubclass(unwrap_proxy(subclass)[1], _record_of(self).real)

    def __reduce__(self) -> Any:
        raise TypeError("proxies cannot be pickled")

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise TypeError("proxies cannot be pickled")

    def __repr__(self) -> str:
        try:
            return _invoke_special(self, "__repr__")
        except AccessDeniedError:
            return f"<MarshalledProxy at {id(self):#x}>"

    def __str__(self) -> str:
        return _invoke_special(self, "__str__")

    def __format__(self, format_spec: str) -> str:
        return _invoke_special(self, "__format__", format_spec)

    def __hash__(self) -> int:
        method = _read_special(self, "__hash__")
        if method is None:
            raise TypeError("unhashable proxied object")
        return method()

    def __bool__(self) -> bool:
        try:
            method = _read_special(self, "__bool__")
        except AttributeError:
            try:
                return len(self) != 0
            except TypeError:
                return True
        return method()

    def __iter__(self) -> Iterator[Any]:
        try:
            method = _read_special(self, "__iter__")
        except AttributeError:
            try:
                getter = _read_special(self, "__getitem__")
            except AttributeError:
                raise TypeError("proxied object is not iterable") from None
            return _indexed_items(getter)
        return method()

    def __reversed__(self) -> Iterator[Any]:
        try:
            method = _read_special(self, "__reversed__")
        except AttributeError:
            return (self[index] for index in range(len(self) - 1, -1, -1))
        return method()

    def __contains__(self, item: Any) -> bool:
        try:
            method = _read_special(self, "__contains__")
        except AttributeError:
            return any(element is item or element == item for element in self)
        return bool(method(item))

    def __exit__(self, exc_type: Any, exc: Any, traceback: Any) -> Any:
        return _invoke_special(self, "__exit__", exc_type, exc, None)

    async def __aexit__(self, exc_type: Any, exc: Any, traceback: Any) -> Any:
        return await _invoke_special(self, "__aexit__", exc_type, exc, None)


def _indexed_items(getter: Callable[[int], Any]) -> Iterator[Any]:
    index = 0
    while True:
        try:
            item = getter(index)
        except (IndexError, StopIteration):
            return
        yield item
        index += 1


def _protocol_method(name: str) -> Callable[..., Any]:
    def method(self: Any, *args: Any) -> Any:
        try:
            bound = _read_special(self, name)
        except AttributeError:
            raise TypeError(f"proxied object does not support {name}") from None
        return bound(*args)

    method.__name__ = name
    method.__qualname__ = f"MarshalledProxy.{name}"
    return method


def _operator_method(name: str) -> Callable[..., Any]:
    def method(self: Any, *args: Any) -> Any:
        try:
            bound = _read_special(self, name)
        except AttributeError:
            return NotImplemented
        return bound(*args)

    method.__name__ = name
    method.__qualname__ = f"MarshalledProxy.{name}"
    return method


_PROTOCOL_METHODS: Final[tuple[str, ...]] = (
    "__len__",
    "__next__",
    "__getitem__",
    "__setitem__",
    "__delitem__",
    "__bytes__",
    "__neg__",
    "__pos__",
    "__abs__",
    "__invert__",
    "__index__",
    "__int__",
    "__float__",
    "__complex__",
    "__round__",
    "__enter__",
    "__await__",
    "__aiter__",
    "__anext__",
    "__aenter__",
)

_BINARY_OPERATORS: Final[tuple[str, ...]] = (
    "add",
    "sub",
    "mul",
    "matmul",
    "truediv",
    "floordiv",
    "mod",
    "divmod",
    "pow",
    "lshift",
    "rshift",
    "and",
    "xor",
    "or",
)

_OPERATOR_METHODS: Final[tuple[str, ...]] = (
    "__eq__",
    "__ne__",
    "__lt__",
    "__le__",
    "__gt__",
    "__ge__",
    *(f"__{op}__" for op in _BINARY_OPERATORS),
    *(f"__r{op}__" for op in _BINARY_OPERATORS),
    *(f"__i{op}__" for op in _BINARY_OPERATORS if op != "divmod"),
)

for _name in _PROTOCOL_METHODS:
    setattr(MarshalledProxy, _name, _protocol_method(_name))
for _name in _OPERATOR_METHODS:
    setattr(MarshalledProxy, _name, _operator_method(_name))
del _name

_CONTROL_CLASSES: Final[frozenset[type]] = frozenset(
    {
        AccessAction,
        Domain,
        DomainMonitors,
        Marshal,
        MarshalledProxy,
        Monitor,
        MonitorAccess,
        MonitorControl,
        Rule,
    }
)


__all__ = [
    "Marshal",
    "MarshalledProxy",
    "forward",
    "trap_marshal",
    "unwrap_proxy",
]
