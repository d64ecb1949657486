"""Stable constants shared across the membrane."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Config file discovery.
DEFAULT_CONFIG_FILE: Final[str] = "crossrealm.toml"
ENV_PREFIX: Final[str] = "CROSSREALM_"

# Domain naming.
TOP_DOMAIN_NAME: Final[str] = "top"
DOMAIN_NAME_LENGTH: Final[int] = 8
SANDBOX_FILENAME: Final[str] = "<sandbox>"

# Permission defaults.
PERMISSION_MODES: Final[tuple[str, ...]] = ("deny", "allow")
DEFAULT_PERMISSION: Final[str] = "deny"

# Host objects exported into every new domain.
DEFAULT_HOST_EXPORTS: Final[tuple[str, ...]] = ("/print",)

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_HOST_EXPORTS",
    "DEFAULT_PERMISSION",
    "DOMAIN_NAME_LENGTH",
    "ENV_PREFIX",
    "PERMISSION_MODES",
    "SANDBOX_FILENAME",
    "TOP_DOMAIN_NAME",
]
