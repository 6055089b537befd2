"""Configuration namespace for saga."""

from __future__ import annotations

from .app import AppConfig
from .base import BaseConfig, ConfigError, load_config
from .email import EmailConfig
from .feeds import FeedConfig, FetchConfig
from .scheduler import SchedulerConfig
from .utils import resolve_env_reference

__all__ = [
    "AppConfig",
    "BaseConfig",
    "ConfigError",
    "EmailConfig",
    "FeedConfig",
    "FetchConfig",
    "SchedulerConfig",
    "load_config",
    "resolve_env_reference",
]
