"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dictionary_api import logging_manager
from dictionary_api.dictionary.admission import TRUST_ALL_PROXIES
from dictionary_api.dictionary.source_client import (
    DEFAULT_KEEPALIVE_EXPIRY_SECONDS,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
    DEFAULT_SOURCE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)

from .constants import (
    DEFAULT_CACHE_CHECK_PERIOD_SECONDS,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_GZIP_COMPRESS_LEVEL,
    DEFAULT_GZIP_MINIMUM_SIZE,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
)

logger = logging_manager.get_logger()


def split_csv(value: Any) -> List[str]:
    """Return the non-empty items of a comma-separated string or a list."""

    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


class DictionaryApiSettings(BaseModel):
    """Typed representation of the service configuration."""

    model_config = ConfigDict(extra="ignore")

    source_url: str = DEFAULT_SOURCE_URL
    source_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    source_max_connections: int = Field(default=DEFAULT_MAX_CONNECTIONS, ge=1)
    source_max_keepalive_connections: int = Field(default=DEFAULT_MAX_KEEPALIVE_CONNECTIONS, ge=0)
    source_keepalive_expiry_seconds: float = Field(default=DEFAULT_KEEPALIVE_EXPIRY_SECONDS, ge=0)
    source_user_agent: str = DEFAULT_USER_AGENT
    cache_ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    cache_check_period_seconds: float = Field(default=DEFAULT_CACHE_CHECK_PERIOD_SECONDS, gt=0)
    rate_limit_enabled: bool = True
    rate_limit_max_requests: int = Field(default=DEFAULT_RATE_LIMIT_MAX_REQUESTS, ge=1)
    rate_limit_window_seconds: float = Field(default=DEFAULT_RATE_LIMIT_WINDOW_SECONDS, gt=0)
    trusted_proxies: List[str] = Field(default_factory=lambda: [TRUST_ALL_PROXIES])
    single_flight: bool = False
    gzip_minimum_size: int = Field(default=DEFAULT_GZIP_MINIMUM_SIZE, ge=0)
    gzip_compress_level: int = Field(default=DEFAULT_GZIP_COMPRESS_LEVEL, ge=1, le=9)
    log_level: str = "INFO"

    @field_validator("trusted_proxies", mode="before")
    @classmethod
    def _coerce_trusted_proxies(cls, value: Any) -> List[str]:
        return split_csv(value)


class EnvironmentOverrides(BaseSettings):
    """Configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    source_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_SOURCE_URL")
    )
    source_timeout_seconds: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_SOURCE_TIMEOUT_SECONDS")
    )
    source_max_connections: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_SOURCE_MAX_CONNECTIONS")
    )
    source_user_agent: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_SOURCE_USER_AGENT")
    )
    cache_ttl_seconds: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("DICTIONARY_API_CACHE_TTL_SECONDS", "CACHE_EXPIRATION"),
    )
    cache_check_period_seconds: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_CACHE_CHECK_PERIOD_SECONDS")
    )
    rate_limit_enabled: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_RATE_LIMIT_ENABLED")
    )
    rate_limit_max_requests: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_RATE_LIMIT_MAX_REQUESTS")
    )
    rate_limit_window_seconds: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_RATE_LIMIT_WINDOW_SECONDS")
    )
    # Kept as a plain string so comma-separated values are not JSON-decoded.
    trusted_proxies: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_TRUSTED_PROXIES")
    )
    single_flight: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_SINGLE_FLIGHT")
    )
    log_level: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DICTIONARY_API_LOG_LEVEL", "LOG_LEVEL")
    )


def load_environment_overrides() -> Dict[str, Any]:
    """Return configuration overrides sourced from environment variables."""

    try:
        overrides = EnvironmentOverrides()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={
                "event": "config.env.validation_error",
                "error": str(exc),
            },
        )
        return {}
    payload = overrides.model_dump(exclude_none=True)
    if "trusted_proxies" in payload:
        payload["trusted_proxies"] = split_csv(payload["trusted_proxies"])
    return payload


def apply_settings_updates(
    settings: DictionaryApiSettings, updates: Dict[str, Any]
) -> DictionaryApiSettings:
    """Return a copy of ``settings`` updated with ``updates`` if any values exist.

    Updates are validated, so an out-of-range override raises
    :class:`pydantic.ValidationError` instead of slipping through.
    """

    if not updates:
        return settings
    merged = settings.model_dump()
    merged.update(updates)
    return DictionaryApiSettings.model_validate(merged)


__all__ = [
    "DictionaryApiSettings",
    "EnvironmentOverrides",
    "apply_settings_updates",
    "load_environment_overrides",
    "split_csv",
]
