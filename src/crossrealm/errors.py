"""
crossrealm — membrane error taxonomy.

File: src/crossrealm/errors.py
Last updated: 2026-02-12

Purpose
- Define the exceptions raised by the membrane, the policy engine, and domain bookkeeping.

What should be included in this file
- One base class shared by every membrane failure.
- Subclasses that also inherit the builtin whose contract they share, so hosts may catch
  ``PermissionError``/``TypeError``/``ValueError``/``RuntimeError`` generically.

Functional requirements
- Membrane errors are control objects: they keep their identity when crossing domains.

Non-functional requirements
- No behavior beyond construction; errors must stay cheap to raise.
"""

from __future__ import annotations


class MembraneError(Exception):
    """Base class for every failure raised by the membrane."""


class AccessDeniedError(MembraneError, PermissionError):
    """Raised when a rule or its dynamic predicate denies an operation."""


class MembraneViolationError(MembraneError, TypeError):
    """Raised when a forbidden internal or unsafe object would cross a domain boundary."""


class PolicyError(MembraneError, ValueError):
    """Raised when policy code misuses the rule or monitor API."""


class InvalidActionError(PolicyError):
    """Raised for values that are not one of the twelve access actions."""


class UnknownParameterError(PolicyError):
    """Raised when a monitor names a parameter that the action does not carry."""


class RuleConflictError(PolicyError):
    """Raised when a rule would hold contradictory or repeated settings."""


class MonitorStateError(PolicyError):
    """Raised when a monitor is reconfigured while started, or started without a handler."""


class StackUnderflowError(MembraneError, RuntimeError):
    """Raised when the domain stack is popped while empty; bookkeeping is already corrupted."""


class UnsafeRealmError(MembraneError, RuntimeError):
    """Raised when a subordinate domain is requested without a realm-creation capability."""


__all__ = [
    "AccessDeniedError",
    "InvalidActionError",
    "MembraneError",
    "MembraneViolationError",
    "MonitorStateError",
    "PolicyError",
    "RuleConflictError",
    "StackUnderflowError",
    "UnknownParameterError",
    "UnsafeRealmError",
]
