"""Configuration loading utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from dictionary_api import logging_manager

from .constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_PATH, DEFAULT_LOCAL_CONFIG_PATH
from .settings import (
    DictionaryApiSettings,
    apply_settings_updates,
    load_environment_overrides,
)

logger = logging_manager.get_logger()

_ACTIVE_SETTINGS: Optional[DictionaryApiSettings] = None


def _read_config_json(path: Optional[Path], label: str = "configuration") -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("No %s found at %s.", label, path, extra={"event": "config.file.missing"})
        return {}
    except (OSError, ValueError) as exc:
        logger.warning(
            "Error loading %s from %s: %s. Proceeding without it.",
            label,
            path,
            exc,
            extra={"event": "config.file.invalid"},
        )
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s at %s: expected a JSON object.",
            label,
            path,
            extra={"event": "config.file.invalid"},
        )
        return {}
    logger.debug("Loaded %s from %s", label, path, extra={"event": "config.file.loaded"})
    return data


def _deep_merge_dict(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_override_path(config_file: Optional[str]) -> Path:
    candidate = config_file or os.environ.get(CONFIG_FILE_ENV)
    if not candidate:
        return DEFAULT_LOCAL_CONFIG_PATH
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_configuration(
    config_file: Optional[str] = None,
    *,
    default_config_path: Optional[Path] = None,
) -> DictionaryApiSettings:
    """Load the layered configuration and make it the active settings.

    Layers, lowest precedence first: ``conf/config.json``, the local override
    file (``config_file``, ``$DICTIONARY_API_CONFIG_FILE`` or
    ``conf/config.local.json``), then environment variables.
    """

    global _ACTIVE_SETTINGS

    base_payload = _read_config_json(
        default_config_path or DEFAULT_CONFIG_PATH, label="default configuration"
    )
    override_config = _read_config_json(
        _resolve_override_path(config_file), label="local configuration"
    )
    base_payload = _deep_merge_dict(base_payload, override_config)

    try:
        settings = DictionaryApiSettings.model_validate(base_payload)
        settings = apply_settings_updates(settings, load_environment_overrides())
    except ValidationError as exc:
        raise RuntimeError("Invalid configuration detected") from exc

    _ACTIVE_SETTINGS = settings
    return settings


def get_settings() -> DictionaryApiSettings:
    """Return the currently loaded :class:`DictionaryApiSettings` instance."""

    if _ACTIVE_SETTINGS is None:
        return load_configuration()
    return _ACTIVE_SETTINGS


def reset_settings() -> None:
    """Forget the active settings so the next :func:`get_settings` reloads them."""

    global _ACTIVE_SETTINGS
    _ACTIVE_SETTINGS = None


__all__ = ["get_settings", "load_configuration", "reset_settings"]
