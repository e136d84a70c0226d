from __future__ import annotations

import base64

import pytest

from fieldguard.domain.record_types import ItemCatalog
from fieldguard.domain.schema import RecordSchema
from fieldguard.errors import ConfigurationError, DecodeError, SchemaError
from fieldguard.ingest.decoders import DecoderRegistry, RecordType, decode_base64_json, default_registry
from fieldguard.ingest.events import KafkaMessage, flatten_event
from tests.conftest import kafka_event, kafka_message

EXPECTED_KEY = 77593296


def test_registry_resolves_names_and_legacy_aliases() -> None:
    registry = default_registry()

    assert registry.names() == ["dish", "item_catalog", "model"]
    assert registry.get("DishParser") is registry.get("dish")
    assert registry.get("CustomJsonBase64Parser").name == "model"
    assert "ItemCatalogParser" in registry


def test_unknown_record_type_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Unknown record type 'Nope'. Available: dish"):
        default_registry().get("Nope")


def test_duplicate_registration_is_rejected(item_catalog) -> None:
    registry = DecoderRegistry()
    registry.register(item_catalog)

    with pytest.raises(ValueError):
        registry.register(item_catalog)


def test_schema_must_match_model() -> None:
    schema = RecordSchema.of("broken", key="productId", version="version", payload=["price"])

    with pytest.raises(SchemaError, match="missing="):
        RecordType("broken", ItemCatalog, schema, decode_base64_json)


def test_decode_base64_json_document(item_catalog) -> None:
    message = kafka_message(
        {"productId": EXPECTED_KEY, "version": 2, "price": 1000, "status": "ON_SALE", "unknown": 1},
        offset=15,
    )

    record = item_catalog.decode(message)

    assert record.record_type == "item_catalog"
    assert record["productId"] == EXPECTED_KEY
    assert record["price"] == 1000
    assert record["name"] is None
    assert "unknown" not in record
    assert list(record)[:2] == ["productId", "version"]
    assert record.source == "item-catalog/0@15"


def test_numeric_strings_are_coerced_by_the_model(item_catalog) -> None:
    record = item_catalog.decode(kafka_message({"productId": str(EXPECTED_KEY), "version": "3"}))

    assert record["productId"] == EXPECTED_KEY
    assert record["version"] == 3


@pytest.mark.parametrize(
    "document",
    [
        {"productId": 1, "version": True, "price": 3},
        {"productId": 1, "version": False, "price": 3},
        {"productId": True, "version": 1, "price": 3},
    ],
)
def test_boolean_key_or_version_is_rejected(item_catalog, document) -> None:
    with pytest.raises(DecodeError, match="booleans are not accepted"):
        item_catalog.decode(kafka_message(document))


def test_nested_models_are_stored_with_wire_names() -> None:
    dish = default_registry().get("dish")
    record = dish.decode(
        kafka_message({"id": 1, "version": 1, "openHours": [{"dayOfWeek": "MON", "fromHour": 9}]})
    )

    assert record["openHours"] == [{"dayOfWeek": "MON", "fromHour": 9}]


@pytest.mark.parametrize(
    "value, message",
    [
        (None, "Empty record value"),
        ("", "Empty record value"),
        (12345, "is int, expected a base64 string"),
        ({"productId": 1}, "is dict, expected a base64 string"),
        ("@@not-base64@@", "Invalid base64"),
        (base64.b64encode(b"\xff\xfe").decode(), "Invalid JSON"),
        (base64.b64encode(b"{broken").decode(), "Invalid JSON"),
        (base64.b64encode(b"[1, 2]").decode(), "Expected a JSON object"),
        (base64.b64encode(b'{"productId": "abc", "version": 1}').decode(), "validation failed"),
    ],
)
def test_undecodable_values_raise_decode_error(item_catalog, value, message) -> None:
    with pytest.raises(DecodeError, match=message):
        item_catalog.decode(KafkaMessage(topic="t", partition=0, offset=1, value=value))


def test_flatten_event_preserves_group_and_record_order() -> None:
    event = kafka_event([{"productId": 1, "version": 1}, {"productId": 2, "version": 1}])
    event["records"]["other-3"] = [{"partition": 3, "offset": 8, "value": "eA=="}]

    messages = flatten_event(event)

    assert [m.describe() for m in messages] == ["item-catalog/0@0", "item-catalog/0@1", "other/3@8"]


@pytest.mark.parametrize("event", [None, {}, {"records": {}}, {"records": None}, {"records": {"t-0": []}}])
def test_flatten_event_without_records_is_empty(event) -> None:
    assert flatten_event(event) == []
