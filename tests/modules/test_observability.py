"""Tests for structured logging, metrics helpers and the dotenv loader."""

from __future__ import annotations

import json
import logging
import os

from prometheus_client import REGISTRY

import dictionary_api
from dictionary_api import observability
from dictionary_api import logging_manager as log_mgr


def _record(**extra):
    record = logging.LogRecord("dictionary_api.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_known_fields_and_extras():
    payload = json.loads(
        log_mgr.JSONLogFormatter().format(
            _record(event="dictionary.test", status=404, attributes={"word": "hello"})
        )
    )

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["event"] == "dictionary.test"
    assert payload["status"] == 404
    assert payload["extra"] == {"attributes": {"word": "hello"}}


def test_log_context_is_scoped_and_injected():
    context_filter = log_mgr.LogContextFilter()

    with log_mgr.log_context(correlation_id="abc123", client_id=None):
        record = _record()
        context_filter.filter(record)
        assert log_mgr.get_log_context() == {"correlation_id": "abc123"}

    assert record.correlation_id == "abc123"
    assert log_mgr.get_log_context() == {}


def test_log_context_does_not_override_explicit_extras():
    context_filter = log_mgr.LogContextFilter()

    with log_mgr.log_context(stage="fetch"):
        record = _record(stage="transform")
        context_filter.filter(record)

    assert record.stage == "transform"


def test_configure_logging_level_accepts_names():
    logger = log_mgr.get_logger()
    original = logger.level
    try:
        assert log_mgr.configure_logging_level(log_level="debug") == logging.DEBUG
        assert log_mgr.configure_logging_level(log_level="nonsense") == log_mgr.DEFAULT_LOG_LEVEL
        assert log_mgr.configure_logging_level(debug_enabled=True) == logging.DEBUG
    finally:
        log_mgr.configure_logging_level(log_level=original)


def test_resolve_log_dir_honours_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(log_mgr.LOG_DIR_ENV, "")
    assert log_mgr.resolve_log_dir() is None

    monkeypatch.setenv(log_mgr.LOG_DIR_ENV, str(tmp_path))
    assert log_mgr.resolve_log_dir() == tmp_path.resolve()


def test_pipeline_stage_observes_duration():
    labels = {"stage": "unit-test"}
    before = REGISTRY.get_sample_value(
        "dictionary_api_pipeline_stage_duration_seconds_count", labels
    ) or 0.0

    with observability.pipeline_stage("unit-test", {"word": "hello"}):
        pass

    after = REGISTRY.get_sample_value("dictionary_api_pipeline_stage_duration_seconds_count", labels)
    assert after == before + 1


def test_record_cache_result_uses_lower_case_labels():
    before = REGISTRY.get_sample_value("dictionary_api_cache_lookups_total", {"result": "hit"}) or 0.0

    observability.record_cache_result("HIT")

    assert REGISTRY.get_sample_value("dictionary_api_cache_lookups_total", {"result": "hit"}) == before + 1


def test_load_environment_reads_explicit_dotenv(monkeypatch, tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "DICTIONARY_API_TEST_FLAG=enabled\nDICTIONARY_API_TEST_KEPT=from-file\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(dictionary_api.ENV_FILE_ENV, str(env_file))
    monkeypatch.delenv("DICTIONARY_API_TEST_FLAG", raising=False)
    monkeypatch.setenv("DICTIONARY_API_TEST_KEPT", "from-process")

    loaded = dictionary_api.load_environment(force=True)

    assert loaded == (env_file.resolve(),)
    assert os.environ["DICTIONARY_API_TEST_FLAG"] == "enabled"
    assert os.environ["DICTIONARY_API_TEST_KEPT"] == "from-process"
    monkeypatch.delenv("DICTIONARY_API_TEST_FLAG")
