"""
crossrealm config package public API.

File: src/crossrealm/config/__init__.py
Last updated: 2026-02-12

Purpose
- Export config loading/validation entrypoints, the active-config accessors, and
  public error types.

What should be included in this file
- Public schema constants and validation/report types.
- Loader APIs for effective runtime config.
- No membrane imports; the membrane depends on this package, never the reverse.

Functional requirements
- Support loading from ``crossrealm.toml`` + ``CROSSREALM_`` env overrides.
- Fail fast with clear structured validation/load errors.

Non-functional requirements
- Keep import-time surface small and deterministic.
"""

from crossrealm.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
)
from crossrealm.config.runtime import active_config, configure, reset_config
from crossrealm.config.schema import (
    DEFAULT_CONFIG,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    CrossrealmConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "CrossrealmConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "active_config",
    "assert_valid_config",
    "configure",
    "default_config",
    "dump_effective_config",
    "load_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
    "reset_config",
]
