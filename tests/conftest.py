from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Optional

import pytest

from fieldguard.config import Settings, load_settings
from fieldguard.domain.schema import ResolvedSchema, resolve_schema
from fieldguard.execution.retry import RetryPolicy
from fieldguard.execution.scheduler import ExecutionScheduler
from fieldguard.ingest.decoders import RecordType, default_registry
from fieldguard.ingest.events import KafkaMessage
from fieldguard.orchestrator import WriterPipeline
from tests.fakes import FakeDynamoDBClient

TABLE_NAME = "item-catalog-test"

# Keep unit tests independent of whatever the developer has exported.
_ENV_VARS = (
    "DYNAMODB_TABLE_NAME",
    "RECORD_TYPE",
    "PARSER_NAME",
    "DRY_RUN",
    "MAX_BATCH_SIZE",
    "MAX_CONCURRENCY",
    "SHADOW_SUFFIX",
    "DYNAMODB_ENDPOINT_URL",
    "RETRY_MAX_ATTEMPTS",
    "LOG_LEVEL",
    "JSON_LOGS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def no_sleep(_seconds: float) -> None:
    return None


def encode_document(document: Any) -> str:
    return base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")


def kafka_message(document: Any, offset: int = 0, topic: str = "item-catalog", partition: int = 0) -> KafkaMessage:
    return KafkaMessage(topic=topic, partition=partition, offset=offset, value=encode_document(document))


def kafka_event(documents: List[Any], topic: str = "item-catalog", partition: int = 0) -> Dict[str, Any]:
    return {
        "eventSource": "aws:kafka",
        "records": {
            f"{topic}-{partition}": [
                {"topic": topic, "partition": partition, "offset": offset, "value": encode_document(doc)}
                for offset, doc in enumerate(documents)
            ]
        },
    }


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "table_name": TABLE_NAME,
        "record_type": "item_catalog",
        "retry_base_delay_seconds": 0.0,
        "retry_max_delay_seconds": 0.0,
    }
    values.update(overrides)
    return load_settings(**values)


def make_pipeline(
    client: Optional[FakeDynamoDBClient] = None,
    retry_policy: Optional[RetryPolicy] = None,
    **overrides: Any,
) -> WriterPipeline:
    settings = make_settings(**overrides)
    record_type = default_registry().get(settings.record_type)
    scheduler = None
    if not settings.dry_run:
        scheduler = ExecutionScheduler(
            client=client if client is not None else FakeDynamoDBClient(),
            table_name=settings.table_name,
            retry_policy=retry_policy or RetryPolicy(max_attempts=settings.retry_max_attempts),
            sleep=no_sleep,
        )
    return WriterPipeline(settings=settings, record_type=record_type, scheduler=scheduler)


@pytest.fixture
def item_catalog() -> RecordType:
    return default_registry().get("item_catalog")


@pytest.fixture
def resolved_item_catalog(item_catalog: RecordType) -> ResolvedSchema:
    return resolve_schema(item_catalog.schema)
