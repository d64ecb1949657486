"""Seal control-type method tables once the membrane has finished initializing."""

from __future__ import annotations

from typing import Any, Final

_SEALED_FLAG: Final[str] = "__crossrealm_sealed__"


class SealedMeta(type):
    """Metaclass whose classes refuse attribute writes and deletes after ``seal_class``."""

    def __setattr__(cls, name: str, value: Any) -> None:
        if is_sealed_class(cls):
            raise TypeError(f"cannot set {name!r} on sealed class {cls.__qualname__}")
        super().__setattr__(name, value)

    def __delattr__(cls, name: str) -> None:
        if is_sealed_class(cls):
            raise TypeError(f"cannot delete {name!r} from sealed class {cls.__qualname__}")
        super().__delattr__(name)


def seal_class(*classes: type) -> None:
    for cls in classes:
        if not isinstance(cls, SealedMeta):
            raise TypeError(f"{cls.__qualname__} does not use SealedMeta")
        type.__setattr__(cls, _SEALED_FLAG, True)


def is_sealed_class(cls: type) -> bool:
    # Only the class's own namespace counts, so subclasses start unsealed.
    return bool(type.__getattribute__(cls, "__dict__").get(_SEALED_FLAG, False))


__all__ = ["SealedMeta", "is_sealed_class", "seal_class"]
