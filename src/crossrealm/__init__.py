"""
crossrealm — cross-context marshaling membrane.

File: src/crossrealm/__init__.py
Last updated: 2026-02-12

Purpose
- Package root. Exposes the host-facing membrane API: domains, rules, monitors,
  the marshal entrypoints, and the scripting collaborator.

What should be included in this file
- Version export and the public API surface.
- The one-time seal of the control types, applied once every module is loaded.

Functional requirements
- Must not load config files or configure logging at import time.

Non-functional requirements
- Control types are immutable for the lifetime of the process after import.
"""

from crossrealm.actions import ACTION_COUNT, PARAMETER_LAYOUT, AccessAction
from crossrealm.domain import Domain, install_realm_factory
from crossrealm.errors import (
    AccessDeniedError,
    InvalidActionError,
    MembraneError,
    MembraneViolationError,
    MonitorStateError,
    PolicyError,
    RuleConflictError,
    StackUnderflowError,
    UnknownParameterError,
    UnsafeRealmError,
)
from crossrealm.globals_table import GlobalIdentityTable
from crossrealm.marshal import Marshal, MarshalledProxy
from crossrealm.monitor import DomainMonitors, Monitor, MonitorAccess, MonitorControl
from crossrealm.realm import HostRealmFactory, IsolatedRealmFactory, Realm, RealmFactory
from crossrealm.rule import Rule
from crossrealm.scripting import compile_in_domain
from crossrealm.sealing import seal_class

__version__ = "0.1.0"

seal_class(Domain, DomainMonitors, Marshal, MarshalledProxy, Monitor, Rule)

__all__ = [
    "ACTION_COUNT",
    "AccessAction",
    "AccessDeniedError",
    "Domain",
    "DomainMonitors",
    "GlobalIdentityTable",
    "HostRealmFactory",
    "InvalidActionError",
    "IsolatedRealmFactory",
    "Marshal",
    "MarshalledProxy",
    "MembraneError",
    "MembraneViolationError",
    "Monitor",
    "MonitorAccess",
    "MonitorControl",
    "MonitorStateError",
    "PARAMETER_LAYOUT",
    "PolicyError",
    "Realm",
    "RealmFactory",
    "Rule",
    "RuleConflictError",
    "StackUnderflowError",
    "UnknownParameterError",
    "UnsafeRealmError",
    "__version__",
    "compile_in_domain",
    "install_realm_factory",
]
