"""Configuration loading and structured logging tests."""

import json
import logging
from pathlib import Path

import pytest

from stylist_app.config import DEFAULT_GEMINI_MODELS, StylistConfig
from stylist_app.logging_config import (
    CORRELATION_ID,
    JsonFormatter,
    correlation_context,
    log_event,
    redact_for_log,
)
from tools.observability import instrument_call

_ENV_KEYS = [
    "APP_ENV",
    "APP_CONFIG_PATH",
    "STYLIST_CONFIG_DIR",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODELS",
    "COOLDOWN_SECONDS",
    "MAX_OUTPUT_TOKENS",
    "SAVED_OUTFITS_DB_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment() -> None:
    config = StylistConfig.from_env()
    assert config.gemini_api_key is None
    assert config.gemini_models == DEFAULT_GEMINI_MODELS
    assert config.cooldown_seconds == 30.0
    assert config.max_output_tokens == 4096


def test_environment_variables_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    monkeypatch.setenv("GEMINI_MODELS", " gemini-2.5-pro, ,gemini-2.0-flash ")
    monkeypatch.setenv("COOLDOWN_SECONDS", "5")

    config = StylistConfig.from_env()

    assert config.gemini_api_key == "google-key"
    assert config.gemini_models == ["gemini-2.5-pro", "gemini-2.0-flash"]
    assert config.cooldown_seconds == 5.0


def test_environment_file_is_layered_under_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_dir = tmp_path / "environments"
    env_dir.mkdir()
    (env_dir / "staging.yaml").write_text(
        "# staging\n"
        "gemini_api_key: \"file-key\"\n"
        "gemini_models: gemini-2.0-flash-lite\n"
        "saved_outfits_db_path: /tmp/staging.db\n"
    )
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("STYLIST_CONFIG_DIR", str(env_dir))
    monkeypatch.setenv("SAVED_OUTFITS_DB_PATH", "/data/override.db")

    config = StylistConfig.from_env()

    assert config.environment == "staging"
    assert config.gemini_api_key == "file-key"
    assert config.gemini_models == ["gemini-2.0-flash-lite"]
    assert config.saved_outfits_db_path == "/data/override.db"


def test_redact_for_log_masks_owner_and_urls() -> None:
    scrubbed = redact_for_log(
        {
            "owner_id": "owner-1",
            "items": [{"image_url": "https://cdn/x.jpg", "id": "shirt#1"}],
            "note": "contact me@example.com",
            "link": "https://cdn/y.jpg",
            "count": 2,
        }
    )
    assert scrubbed["owner_id"] == "[redacted]"
    assert scrubbed["items"] == [{"image_url": "[redacted]", "id": "shirt#1"}]
    assert scrubbed["note"] == "contact [redacted-email]"
    assert scrubbed["link"] == "[redacted-url]"
    assert scrubbed["count"] == 2


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_log_event_emits_json_with_correlation_id() -> None:
    logger = logging.getLogger("tests.stylist.events")
    handler = _ListHandler()
    logger.addHandler(handler)
    logger.propagate = False
    try:
        with correlation_context("corr-123"):
            log_event(logger, logging.INFO, "outfit_saved", owner_id="owner-1", record_id="abc")
    finally:
        logger.removeHandler(handler)

    record = handler.records[0]
    payload = json.loads(JsonFormatter().format(record))
    assert payload["event"] == "outfit_saved"
    assert payload["correlation_id"] == "corr-123"
    assert payload["owner_id"] == "[redacted]"
    assert payload["record_id"] == "abc"
    assert CORRELATION_ID.get() != "corr-123"


def test_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValueError):
        StylistConfig(gemini_models=[])
    with pytest.raises(ValueError):
        StylistConfig(cooldown_seconds=-1)

    monkeypatch.setenv("MAX_OUTPUT_TOKENS", "lots")
    with pytest.raises(ValueError, match="max_output_tokens"):
        StylistConfig.from_env()


def test_log_dict_hides_api_key() -> None:
    assert StylistConfig(gemini_api_key="secret").to_log_dict()["gemini_api_key"] == "set"
    assert StylistConfig().to_log_dict()["gemini_api_key"] is None


def test_long_text_is_truncated() -> None:
    scrubbed = redact_for_log("x" * 400)
    assert scrubbed.startswith("x" * 300)
    assert scrubbed.endswith("[100 more chars]")


def test_instrumented_call_logs_failure_and_reraises() -> None:
    logger = logging.getLogger("tools.observability")
    handler = _ListHandler()
    logger.addHandler(handler)
    try:
        @instrument_call("fetch_image")
        def broken() -> None:
            raise TimeoutError("slow cdn")

        with pytest.raises(TimeoutError):
            broken()
    finally:
        logger.removeHandler(handler)

    failed = [record for record in handler.records if record.event == "call_failed"]
    assert failed[0].call == "fetch_image"
    assert failed[0].error_type == "TimeoutError"
