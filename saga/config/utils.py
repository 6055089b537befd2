"""Helpers for secrets referenced from the configuration file."""

from __future__ import annotations

import os

from .base import ConfigError

ENV_PREFIX = "env:"


def resolve_env_reference(value: str) -> str:
    """Expand ``"env:VAR_NAME"`` into the value of ``VAR_NAME``.

    Plain strings are returned unchanged so credentials may also be written
    inline. A reference to an unset or empty variable is a configuration
    error.
    """

    if not value.startswith(ENV_PREFIX):
        return value

    var_name = value[len(ENV_PREFIX):].strip()
    if not var_name:
        raise ConfigError(f"Empty environment reference '{value}'")
    resolved = os.getenv(var_name)
    if not resolved:
        raise ConfigError(f"Environment variable '{var_name}' is not set or empty")
    return resolved


__all__ = ["resolve_env_reference"]
