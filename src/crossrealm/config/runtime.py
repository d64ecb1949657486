"""Process-wide active configuration used by the membrane at runtime."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from crossrealm.config.schema import assert_valid_config, default_config

_ACTIVE_CONFIG_LOCK = threading.Lock()
_ACTIVE_CONFIG: dict[str, Any] | None = None


def configure(config: Mapping[str, object]) -> dict[str, Any]:
    """Validate ``config`` and make it the active configuration."""

    validated = assert_valid_config(config)
    global _ACTIVE_CONFIG
    with _ACTIVE_CONFIG_LOCK:
        _ACTIVE_CONFIG = validated
    return validated


def active_config() -> dict[str, Any]:
    """Return the active configuration, falling back to built-in defaults."""

    global _ACTIVE_CONFIG
    with _ACTIVE_CONFIG_LOCK:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = dict(default_config())
        return _ACTIVE_CONFIG


def reset_config() -> None:
    global _ACTIVE_CONFIG
    with _ACTIVE_CONFIG_LOCK:
        _ACTIVE_CONFIG = None


__all__ = ["active_config", "configure", "reset_config"]
