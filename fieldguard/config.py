"""
Configuration settings for fieldguard.

Uses Pydantic Settings to load environment variables for the DynamoDB target,
the record type to decode, concurrency and retry tuning, and logging. Settings
are validated before any record is processed; an invalid environment raises
ConfigurationError and aborts the invocation.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldguard.errors import ConfigurationError

# Worker slots for concurrent UpdateItem calls when MAX_BATCH_SIZE is unset.
DEFAULT_MAX_CONCURRENCY = 10


class Settings(BaseSettings):
    # Store target
    table_name: str = Field(..., validation_alias=AliasChoices("DYNAMODB_TABLE_NAME", "table_name"))
    aws_region: Optional[str] = Field(None, validation_alias=AliasChoices("AWS_REGION", "aws_region"))
    endpoint_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("DYNAMODB_ENDPOINT_URL", "endpoint_url")
    )
    connect_timeout_seconds: float = Field(
        2.0, gt=0, validation_alias=AliasChoices("DYNAMODB_CONNECT_TIMEOUT", "connect_timeout_seconds")
    )
    read_timeout_seconds: float = Field(
        5.0, gt=0, validation_alias=AliasChoices("DYNAMODB_READ_TIMEOUT", "read_timeout_seconds")
    )

    # Records
    record_type: str = Field(
        ..., validation_alias=AliasChoices("RECORD_TYPE", "PARSER_NAME", "record_type")
    )
    shadow_suffix: str = Field(
        "_version", min_length=1, validation_alias=AliasChoices("SHADOW_SUFFIX", "shadow_suffix")
    )

    # Execution
    dry_run: bool = Field(False, validation_alias=AliasChoices("DRY_RUN", "dry_run"))
    max_concurrency: int = Field(
        DEFAULT_MAX_CONCURRENCY,
        gt=0,
        validation_alias=AliasChoices("MAX_BATCH_SIZE", "MAX_CONCURRENCY", "max_concurrency"),
    )
    retry_max_attempts: int = Field(
        5, ge=1, validation_alias=AliasChoices("RETRY_MAX_ATTEMPTS", "retry_max_attempts")
    )
    retry_base_delay_seconds: float = Field(
        0.1, ge=0, validation_alias=AliasChoices("RETRY_BASE_DELAY", "retry_base_delay_seconds")
    )
    retry_max_delay_seconds: float = Field(
        2.0, ge=0, validation_alias=AliasChoices("RETRY_MAX_DELAY", "retry_max_delay_seconds")
    )
    deadline_margin_seconds: float = Field(
        1.0, ge=0, validation_alias=AliasChoices("DEADLINE_MARGIN", "deadline_margin_seconds")
    )

    # Application
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    json_logs: bool = Field(False, validation_alias=AliasChoices("JSON_LOGS", "json_logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("table_name", "record_type")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must be a non-empty string")
        return stripped

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper()


def load_settings(**overrides: Any) -> Settings:
    """
    Build Settings from the environment, translating validation failures.

    Parameters
    ----------
    **overrides : Any
        Field values that take precedence over the environment (CLI flags, tests).

    Raises
    ------
    ConfigurationError
        If any setting is missing or invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return load_settings()


__all__ = ["DEFAULT_MAX_CONCURRENCY", "Settings", "get_settings", "load_settings"]
