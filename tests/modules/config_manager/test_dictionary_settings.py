from __future__ import annotations

import json

import pytest

from dictionary_api.config_manager import loader as cfg_loader
from dictionary_api.config_manager import CONFIG_FILE_ENV, DictionaryApiSettings

_ENV_NAMES = (
    CONFIG_FILE_ENV,
    "DICTIONARY_API_RATE_LIMIT_MAX_REQUESTS",
    "DICTIONARY_API_TRUSTED_PROXIES",
    "DICTIONARY_API_SINGLE_FLIGHT",
    "DICTIONARY_API_CACHE_TTL_SECONDS",
    "DICTIONARY_API_LOG_LEVEL",
    "CACHE_EXPIRATION",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    monkeypatch.setattr(cfg_loader, "_ACTIVE_SETTINGS", None)
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield
    cfg_loader.reset_settings()


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_match_service_limits(tmp_path):
    settings = cfg_loader.load_configuration(
        str(tmp_path / "missing.json"), default_config_path=tmp_path / "absent.json"
    )

    assert settings.cache_ttl_seconds == 3600
    assert settings.cache_check_period_seconds == 600
    assert settings.rate_limit_max_requests == 450
    assert settings.rate_limit_window_seconds == 300
    assert settings.trusted_proxies == ["*"]
    assert settings.single_flight is False
    assert settings.gzip_minimum_size == 1024


def test_local_file_overrides_defaults(tmp_path):
    defaults = _write(tmp_path / "config.json", {"cache_ttl_seconds": 120, "single_flight": False})
    local = _write(tmp_path / "config.local.json", {"single_flight": True})

    settings = cfg_loader.load_configuration(str(local), default_config_path=defaults)

    assert settings.cache_ttl_seconds == 120
    assert settings.single_flight is True
    assert cfg_loader.get_settings() is settings


def test_environment_overrides_files(tmp_path, monkeypatch):
    defaults = _write(tmp_path / "config.json", {"rate_limit_max_requests": 10})
    monkeypatch.setenv("DICTIONARY_API_RATE_LIMIT_MAX_REQUESTS", "25")
    monkeypatch.setenv("DICTIONARY_API_TRUSTED_PROXIES", "10.0.0.0/8, 127.0.0.1")
    monkeypatch.setenv("CACHE_EXPIRATION", "90")

    settings = cfg_loader.load_configuration(
        str(tmp_path / "missing.json"), default_config_path=defaults
    )

    assert settings.rate_limit_max_requests == 25
    assert settings.trusted_proxies == ["10.0.0.0/8", "127.0.0.1"]
    assert settings.cache_ttl_seconds == 90


def test_override_path_can_come_from_environment(tmp_path, monkeypatch):
    local = _write(tmp_path / "custom.json", {"log_level": "DEBUG"})
    monkeypatch.setenv(CONFIG_FILE_ENV, str(local))

    settings = cfg_loader.load_configuration(default_config_path=tmp_path / "absent.json")

    assert settings.log_level == "DEBUG"


def test_invalid_values_raise_runtime_error(tmp_path):
    defaults = _write(tmp_path / "config.json", {"cache_ttl_seconds": -1})

    with pytest.raises(RuntimeError):
        cfg_loader.load_configuration(str(tmp_path / "missing.json"), default_config_path=defaults)


def test_unreadable_file_is_ignored(tmp_path):
    broken = tmp_path / "config.json"
    broken.write_text("{not json", encoding="utf-8")

    settings = cfg_loader.load_configuration(
        str(tmp_path / "missing.json"), default_config_path=broken
    )

    assert settings == DictionaryApiSettings()


def test_trusted_proxies_accept_csv_strings():
    settings = DictionaryApiSettings(trusted_proxies="10.0.0.1, ,192.168.0.0/16")

    assert settings.trusted_proxies == ["10.0.0.1", "192.168.0.0/16"]
