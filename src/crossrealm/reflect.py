"""
crossrealm — default operations and the reflect API.

File: src/crossrealm/reflect.py
Last updated: 2026-02-12

Purpose
- Implement the twelve operations on real (unwrapped) objects; forwarding proxies
  fall back to these once policy and monitors have run.
- Offer one function per operation that works on real objects and proxies alike,
  for operations Python syntax cannot express (describe, define, seal, ...).

What should be included in this file
- ``NATIVE_OPERATIONS``: action -> default operation over the full operand list.
- Public reflect functions returning booleans where the operation can be refused.
- The membrane-level seal table.

Functional requirements
- Sealed objects refuse new attributes and class changes through the membrane.
- ``set``/``delete``/``define``/``set_class`` report refusal with ``False``;
  membrane errors still propagate.

Non-functional requirements
- No policy here: rules and monitors are applied by the proxy before these run.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Mapping
from typing import Any, Final

from crossrealm._identity import IdentityMap
from crossrealm.actions import AccessAction
from crossrealm.errors import MembraneError

_MISSING: Final[object] = object()
_SEALED: IdentityMap[bool] = IdentityMap()


def native_call(
    target: Callable[..., Any],
    this_arg: Any,
    arguments: list[Any],
    keywords: Mapping[str, Any],
) -> Any:
    # A bound method re-targeted at another receiver calls its underlying function.
    if this_arg is not None and inspect.ismethod(target) and this_arg is not target.__self__:
        return target.__func__(this_arg, *arguments, **dict(keywords))
    return target(*arguments, **dict(keywords))


def native_construct(
    target: type,
    arguments: list[Any],
    new_target: type,
    keywords: Mapping[str, Any],
) -> Any:
    if new_target is target:
        return target(*arguments, **dict(keywords))
    if not isinstance(new_target, type) or not issubclass(new_target, target):
        raise TypeError(f"{new_target!r} is not a subclass of {target.__qualname__}")
    if target.__new__ is object.__new__:
        instance = object.__new__(new_target)
    else:
        instance = target.__new__(new_target, *arguments, **dict(keywords))
    if isinstance(instance, new_target):
        target.__init__(instance, *arguments, **dict(keywords))
    return instance


def native_get(target: Any, name: str, receiver: Any) -> Any:
    if receiver is target or receiver is None:
        return getattr(target, name)
    try:
        static = inspect.getattr_static(target, name)
    except AttributeError:
        return getattr(target, name)
    binder = getattr(type(static), "__get__", None)
    if binder is None or name in _own_namespace(target):
        return static
    return binder(static, receiver, type(receiver))


def native_set(target: Any, name: str, value: Any, receiver: Any) -> bool:
    if is_sealed(target) and inspect.getattr_static(target, name, _MISSING) is _MISSING:
        return False
    if receiver is target or receiver is None:
        setattr(target, name, value)
        return True
    static = inspect.getattr_static(target, name, _MISSING)
    setter = getattr(type(static), "__set__", None)
    if setter is not None:
        setter(static, receiver, value)
    else:
        setattr(receiver, name, value)
    return True


def native_describe(target: Any, name: str) -> dict[str, Any] | None:
    """Describe an own attribute of ``target`` or return ``None``."""

    namespace = _own_namespace(target)
    if name in namespace:
        value = namespace[name]
        if isinstance(value, property):
            return {"get": value.fget, "set": value.fset, "delete": value.fdel}
        return {"value": value, "writable": True}

    for cls in type(target).__mro__:
        slot = vars(cls).get(name)
        if isinstance(slot, types.MemberDescriptorType):
            try:
                return {"value": slot.__get__(target, type(target)), "writable": True}
            except AttributeError:
                return None
    return None


def native_define(target: Any, name: str, descriptor: Mapping[str, Any]) -> bool:
    if is_sealed(target) and name not in _own_namespace(target):
        return False
    try:
        if "get" in descriptor or "set" in descriptor:
            if not isinstance(target, type):
                return False
            value: Any = property(
                descriptor.get("get"), descriptor.get("set"), descriptor.get("delete")
            )
            setattr(target, name, value)
            return True
        value = descriptor.get("value")
        if isinstance(target, type):
            setattr(target, name, value)
        elif hasattr(target, "__dict__"):
            vars(target)[name] = value
        else:
            object.__setattr__(target, name, value)
    except (AttributeError, TypeError):
        return False
    return True


def native_get_class(target: Any) -> type:
    return type(target)


def native_set_class(target: Any, cls: Any) -> bool:
    if is_sealed(target) and cls is not type(target):
        return False
    try:
        target.__class__ = cls
    except TypeError:
        return False
    return True


def native_seal(target: Any) -> bool:
    _SEALED.set(target, True)
    return True


def native_has(target: Any, name: str) -> bool:
    return hasattr(target, name)


def native_own_keys(target: Any) -> list[str]:
    return dir(target)


def native_delete(target: Any, name: str) -> bool:
    delattr(target, name)
    return True


NATIVE_OPERATIONS: Final[Mapping[AccessAction, Callable[..., Any]]] = types.MappingProxyType(
    {
        AccessAction.CALL: native_call,
        AccessAction.CONSTRUCT: native_construct,
        AccessAction.READ: native_get,
        AccessAction.WRITE: native_set,
        AccessAction.DESCRIBE: native_describe,
        AccessAction.DEFINE: native_define,
        AccessAction.TRACE: native_get_class,
        AccessAction.META: native_set_class,
        AccessAction.SEAL: native_seal,
        AccessAction.EXISTS: native_has,
        AccessAction.LIST: native_own_keys,
        AccessAction.DELETE: native_delete,
    }
)


def call(
    target: Any,
    this_arg: Any = None,
    arguments: tuple[Any, ...] | list[Any] = (),
    keywords: Mapping[str, Any] | None = None,
) -> Any:
    if _is_proxy(target):
        return _forward(target, AccessAction.CALL, this_arg, list(arguments), dict(keywords or {}))
    return native_call(target, this_arg, list(arguments), dict(keywords or {}))


def construct(
    target: Any,
    arguments: tuple[Any, ...] | list[Any] = (),
    new_target: Any = None,
    keywords: Mapping[str, Any] | None = None,
) -> Any:
    resolved_new_target = target if new_target is None else new_target
    if _is_proxy(target):
        return _forward(
            target,
            AccessAction.CONSTRUCT,
            list(arguments),
            resolved_new_target,
            dict(keywords or {}),
        )
    return native_construct(target, list(arguments), resolved_new_target, dict(keywords or {}))


def get(target: Any, name: str, receiver: Any = None) -> Any:
    _check_name(name)
    resolved_receiver = target if receiver is None else receiver
    if _is_proxy(target):
        return _forward(target, AccessAction.READ, name, resolved_receiver)
    return native_get(target, name, resolved_receiver)


def set(target: Any, name: str, value: Any, receiver: Any = None) -> bool:  # noqa: A001
    _check_name(name)
    resolved_receiver = target if receiver is None else receiver
    return _refusable(
        lambda: _forward(target, AccessAction.WRITE, name, value, resolved_receiver)
        if _is_proxy(target)
        else native_set(target, name, value, resolved_receiver)
    )


def describe(target: Any, name: str) -> dict[str, Any] | None:
    _check_name(name)
    if _is_proxy(target):
        return _forward(target, AccessAction.DESCRIBE, name)
    return native_describe(target, name)


def define(target: Any, name: str, descriptor: Mapping[str, Any]) -> bool:
    _check_name(name)
    if _is_proxy(target):
        return _forward(target, AccessAction.DEFINE, name, dict(descriptor))
    return native_define(target, name, descriptor)


def get_class(target: Any) -> Any:
    if _is_proxy(target):
        return _forward(target, AccessAction.TRACE)
    return native_get_class(target)


def set_class(target: Any, cls: Any) -> bool:
    if _is_proxy(target):
        return _forward(target, AccessAction.META, cls)
    return native_set_class(target, cls)


def seal(target: Any) -> bool:
    if _is_proxy(target):
        return _forward(target, AccessAction.SEAL)
    return native_seal(target)


def is_sealed(target: Any) -> bool:
    from crossrealm.marshal import unwrap_proxy

    return bool(_SEALED.get(unwrap_proxy(target)[1], False))


def has(target: Any, name: str) -> bool:
    _check_name(name)
    if _is_proxy(target):
        return _forward(target, AccessAction.EXISTS, name)
    return native_has(target, name)


def own_keys(target: Any) -> list[str]:
    if _is_proxy(target):
        return _forward(target, AccessAction.LIST)
    return native_own_keys(target)


def delete(target: Any, name: str) -> bool:
    _check_name(name)
    return _refusable(
        lambda: _forward(target, AccessAction.DELETE, name)
        if _is_proxy(target)
        else native_delete(target, name)
    )


def _refusable(operation: Callable[[], bool]) -> bool:
    try:
        return bool(operation())
    except MembraneError:
        raise
    except (AttributeError, TypeError):
        return False


def _own_namespace(target: Any) -> Mapping[str, Any]:
    try:
        return vars(target)
    except TypeError:
        return {}


def _check_name(name: object) -> None:
    if not isinstance(name, str):
        raise TypeError(f"attribute name must be a string, not {type(name).__name__}")


def _is_proxy(obj: object) -> bool:
    from crossrealm.marshal import Marshal

    return Marshal.is_marshalled(obj)


def _forward(proxy: Any, action: AccessAction, *operands: Any) -> Any:
    from crossrealm.marshal import forward

    return forward(proxy, action, *operands)


__all__ = [
    "NATIVE_OPERATIONS",
    "call",
    "construct",
    "define",
    "delete",
    "describe",
    "get",
    "get_class",
    "has",
    "is_sealed",
    "native_call",
    "native_construct",
    "native_define",
    "native_delete",
    "native_describe",
    "native_get",
    "native_get_class",
    "native_has",
    "native_own_keys",
    "native_seal",
    "native_set",
    "native_set_class",
    "own_keys",
    "seal",
    "set",
]
