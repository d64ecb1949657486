"""Identity-keyed side tables holding weak references where the key allows them."""

from __future__ import annotations

import weakref
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

_V = TypeVar("_V")


class IdentityMap(Generic[_V]):
    """Map objects to values by identity, never by ``__eq__``/``__hash__``.

    Weak-referenceable keys are held weakly and their entries vanish when the key is
    collected. Other keys (tuples, builtin instances without ``__weakref__``) are kept
    alive by the table so their ``id`` cannot be reused while the entry exists.
    """

    __slots__ = ("_entries", "__weakref__")

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Callable[[], Any], _V]] = {}

    def get(self, key: object, default: _V | None = None) -> _V | None:
        entry = self._entries.get(id(key))
        if entry is None:
            return default
        ref, value = entry
        if ref() is not key:
            return default
        return value

    def set(self, key: object, value: _V) -> None:
        self._entries[id(key)] = (self._reference(key), value)

    def discard(self, key: object) -> None:
        entry = self._entries.get(id(key))
        if entry is not None and entry[0]() is key:
            del self._entries[id(key)]

    def discard_entry(self, key_id: int, value: object) -> None:
        """Drop the entry stored under ``key_id`` only while it still holds ``value``."""

        entry = self._entries.get(key_id)
        if entry is not None and entry[1] is value:
            del self._entries[key_id]

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(id(key))
        return entry is not None and entry[0]() is key

    def __len__(self) -> int:
        return len(self._entries)

    def values(self) -> Iterator[_V]:
        for ref, value in list(self._entries.values()):
            if ref() is not None:
                yield value

    def _reference(self, key: object) -> Callable[[], Any]:
        key_id = id(key)
        table = weakref.ref(self)

        def _prune(_: weakref.ref[Any]) -> None:
            owner = table()
            if owner is None:
                return
            entry = owner._entries.get(key_id)
            if entry is not None and entry[0]() is None:
                del owner._entries[key_id]

        try:
            return weakref.ref(key, _prune)
        except TypeError:
            return _StrongRef(key)


class _StrongRef:
    __slots__ = ("_obj",)

    def __init__(self, obj: object) -> None:
        self._obj = obj

    def __call__(self) -> object:
        return self._obj


__all__ = ["IdentityMap"]
