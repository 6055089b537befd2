"""Base configuration model and TOML loader."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

ConfigT = TypeVar("ConfigT", bound="BaseConfig")


class ConfigError(ValueError):
    """Raised when a configuration file is missing or invalid."""

    def __init__(self, message: str, *, path: Path | None = None, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.details = details or []


class BaseConfig(BaseModel):
    """Strict base model shared by every configuration section."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _format_error_location(loc: tuple[Any, ...]) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        elif parts:
            parts.append(f".{item}")
        else:
            parts.append(str(item))
    return "".join(parts) or "<root>"


def load_config(config_cls: type[ConfigT], path: Path) -> ConfigT:
    """Load ``path`` as TOML and validate it against ``config_cls``.

    Every failure mode is reported as :class:`ConfigError` so callers can
    treat configuration problems uniformly at startup.
    """

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}", path=path) from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}", path=path) from exc

    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}", path=path) from exc

    try:
        return config_cls.model_validate(data)
    except ValidationError as exc:
        details = [
            {
                "loc": _format_error_location(err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        lines = [f"Configuration validation failed for {path}:"]
        lines.extend(f"  - {detail['loc']}: {detail['message']} ({detail['type']})" for detail in details)
        raise ConfigError("\n".join(lines), path=path, details=details) from exc


__all__ = ["BaseConfig", "ConfigError", "load_config"]
