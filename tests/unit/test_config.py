from __future__ import annotations

import pytest

from fieldguard import config
from fieldguard.errors import ConfigurationError

EXPECTED_DEFAULT_CONCURRENCY = 10
EXPECTED_BATCH_SIZE = 25


def test_settings_defaults_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "dishes")
    monkeypatch.setenv("PARSER_NAME", "DishParser")

    settings = config.load_settings()

    assert settings.table_name == "dishes"
    assert settings.record_type == "DishParser"
    assert settings.dry_run is False
    assert settings.max_concurrency == EXPECTED_DEFAULT_CONCURRENCY
    assert settings.shadow_suffix == "_version"
    assert settings.retry_max_attempts == 5
    assert settings.log_level == "INFO"


def test_legacy_environment_names_are_honoured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "items")
    monkeypatch.setenv("RECORD_TYPE", "item_catalog")
    monkeypatch.setenv("MAX_BATCH_SIZE", str(EXPECTED_BATCH_SIZE))
    monkeypatch.setenv("DRY_RUN", "true")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config.load_settings()

    assert settings.max_concurrency == EXPECTED_BATCH_SIZE
    assert settings.dry_run is True
    assert settings.log_level == "DEBUG"


def test_overrides_take_precedence_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "items")
    monkeypatch.setenv("RECORD_TYPE", "item_catalog")

    settings = config.load_settings(table_name="other", max_concurrency=3)

    assert settings.table_name == "other"
    assert settings.max_concurrency == 3


def test_missing_table_name_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECORD_TYPE", "item_catalog")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        config.load_settings()


@pytest.mark.parametrize("value", ["", "   "])
def test_blank_table_name_is_rejected(value: str) -> None:
    with pytest.raises(ConfigurationError):
        config.load_settings(table_name=value, record_type="item_catalog")


@pytest.mark.parametrize("value", ["0", "-4", "many"])
def test_invalid_concurrency_is_rejected(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "items")
    monkeypatch.setenv("RECORD_TYPE", "item_catalog")
    monkeypatch.setenv("MAX_BATCH_SIZE", value)

    with pytest.raises(ConfigurationError):
        config.load_settings()


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "items")
    monkeypatch.setenv("RECORD_TYPE", "item_catalog")
    config.get_settings.cache_clear()
    try:
        assert config.get_settings() is config.get_settings()
    finally:
        config.get_settings.cache_clear()
