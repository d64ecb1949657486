"""
crossrealm — compile source code into a domain.

File: src/crossrealm/scripting.py
Last updated: 2026-02-12

Purpose
- Turn Python source into a callable that runs inside a chosen domain, with that
  domain's builtins namespace as ``__builtins__``.

Functional requirements
- The returned callable belongs to the domain: invoking it from another domain goes
  through the membrane and enters the domain first.
- ``scope`` values are marshaled into the domain before the code sees them.
- ``mode="eval"`` returns the expression value; ``mode="exec"`` returns the module
  namespace. Both are marshaled back to the caller.

Non-functional requirements
- Syntax errors surface at compile time in the calling domain.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Mapping
from typing import Any, Final

import structlog

from crossrealm.constants import SANDBOX_FILENAME
from crossrealm.domain import Domain
from crossrealm.marshal import trap_marshal

_MODES: Final[tuple[str, ...]] = ("exec", "eval")

_logger = structlog.get_logger(__name__)


def compile_in_domain(
    code: str,
    domain: Domain,
    *,
    scope: Mapping[str, Any] | None = None,
    mode: str = "exec",
    filename: str = SANDBOX_FILENAME,
) -> Callable[[], Any]:
    """Compile ``code`` for ``domain`` and return a callable that executes it there."""

    if mode not in _MODES:
        raise ValueError(f"mode must be one of {_MODES}, got {mode!r}")
    if type(domain) is not Domain:
        raise TypeError(f"expected Domain, got {type(domain).__name__}")

    caller = Domain.current
    compiled = builtins.compile(code, filename, mode)

    namespace: dict[str, Any] = {
        "__builtins__": domain.namespace,
        "__name__": f"crossrealm.sandbox.{domain.name}",
    }
    for name, value in (scope or {}).items():
        namespace[name] = trap_marshal(caller, domain, value)

    def run() -> Any:
        if mode == "eval":
            return builtins.eval(compiled, namespace)
        builtins.exec(compiled, namespace)
        return namespace

    _logger.debug("script_compiled", domain=domain.name, mode=mode, filename=filename)
    return trap_marshal(domain, caller, run)


__all__ = ["compile_in_domain"]
