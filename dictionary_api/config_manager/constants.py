"""Shared constants for the configuration manager package."""
from __future__ import annotations

from pathlib import Path

MODULE_DIR = Path(__file__).resolve().parent
SCRIPT_DIR = MODULE_DIR.parents[1].resolve()
CONF_DIR = SCRIPT_DIR / "conf"
DEFAULT_CONFIG_PATH = CONF_DIR / "config.json"
DEFAULT_LOCAL_CONFIG_PATH = CONF_DIR / "config.local.json"
CONFIG_FILE_ENV = "DICTIONARY_API_CONFIG_FILE"

DEFAULT_CACHE_TTL_SECONDS = 60 * 60
DEFAULT_CACHE_CHECK_PERIOD_SECONDS = 10 * 60
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 450
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 5 * 60
DEFAULT_GZIP_MINIMUM_SIZE = 1024
DEFAULT_GZIP_COMPRESS_LEVEL = 6

__all__ = [
    "CONF_DIR",
    "CONFIG_FILE_ENV",
    "DEFAULT_CACHE_CHECK_PERIOD_SECONDS",
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_GZIP_COMPRESS_LEVEL",
    "DEFAULT_GZIP_MINIMUM_SIZE",
    "DEFAULT_LOCAL_CONFIG_PATH",
    "DEFAULT_RATE_LIMIT_MAX_REQUESTS",
    "DEFAULT_RATE_LIMIT_WINDOW_SECONDS",
    "MODULE_DIR",
    "SCRIPT_DIR",
]
