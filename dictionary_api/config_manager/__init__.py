"""High-level configuration management for the dictionary service."""
from __future__ import annotations

from .constants import (
    CONF_DIR,
    CONFIG_FILE_ENV,
    DEFAULT_CACHE_CHECK_PERIOD_SECONDS,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_LOCAL_CONFIG_PATH,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
)
from .loader import get_settings, load_configuration, reset_settings
from .settings import (
    DictionaryApiSettings,
    EnvironmentOverrides,
    apply_settings_updates,
    load_environment_overrides,
)

__all__ = [
    "CONF_DIR",
    "CONFIG_FILE_ENV",
    "DEFAULT_CACHE_CHECK_PERIOD_SECONDS",
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_LOCAL_CONFIG_PATH",
    "DEFAULT_RATE_LIMIT_MAX_REQUESTS",
    "DEFAULT_RATE_LIMIT_WINDOW_SECONDS",
    "DictionaryApiSettings",
    "EnvironmentOverrides",
    "apply_settings_updates",
    "get_settings",
    "load_configuration",
    "load_environment_overrides",
    "reset_settings",
]
