from __future__ import annotations

import re
from decimal import Decimal

import pytest

from fieldguard.domain.models import INCOMING_VERSION_PLACEHOLDER, TypedRecord
from fieldguard.domain.schema import ResolvedSchema, resolve_schema
from fieldguard.errors import SchemaError
from fieldguard.ingest.decoders import RecordType, default_registry
from fieldguard.planning.plan_builder import build_plan, condition_clause, encode_value

EXPECTED_KEY = 77593296

# DynamoDB reserved words that appear as item_catalog attribute names.
RESERVED_FIELDS = ("name", "status", "sequence")


def _plan(item_catalog: RecordType, resolved: ResolvedSchema, **document: object):
    return build_plan(item_catalog.from_document(document, source="t/0@1"), resolved)


def test_plan_writes_every_non_null_field_with_its_shadow(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(
        item_catalog,
        resolved_item_catalog,
        productId=EXPECTED_KEY,
        version=2,
        name={"en": "Apple"},
        price=1000,
        status="ON_SALE",
    )

    assert plan.fields == ("name", "price", "status")
    assert [a.shadow for a in plan.assignments] == ["name_version", "price_version", "status_version"]
    assert plan.key == {"productId": {"N": str(EXPECTED_KEY)}}
    assert plan.version == 2
    assert plan.source == "t/0@1"
    assert plan.update_expression == (
        "SET #f0 = :v0, #s0 = :incoming_version, "
        "#f1 = :v1, #s1 = :incoming_version, "
        "#f2 = :v2, #s2 = :incoming_version"
    )
    assert plan.attribute_values[INCOMING_VERSION_PLACEHOLDER] == {"N": "2"}
    assert plan.attribute_values[":v1"] == {"N": "1000"}
    assert plan.attribute_values[":v0"] == {"M": {"en": {"S": "Apple"}}}


def test_one_condition_clause_per_written_field(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(
        item_catalog,
        resolved_item_catalog,
        productId=1,
        version=7,
        divisionType="FOOD",
        valid=False,
        sequence=3,
        mainImage="a.png",
    )

    assert len(plan.condition_clauses) == len(plan.assignments) == 4
    for index, clause in enumerate(plan.condition_clauses):
        assert clause == condition_clause(f"#s{index}")
        assert clause == f"(attribute_not_exists(#s{index}) OR #s{index} < :incoming_version)"


def test_null_fields_are_neither_written_nor_conditioned(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(
        item_catalog,
        resolved_item_catalog,
        productId=EXPECTED_KEY,
        version=3,
        price=None,
        status="SOLD_OUT",
    )

    assert plan.fields == ("status",)
    assert "price" not in plan.attribute_names.values()
    assert "price_version" not in plan.attribute_names.values()
    assert len(plan.condition_clauses) == 1


def test_false_and_zero_are_written(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(item_catalog, resolved_item_catalog, productId=1, version=1, valid=False, sequence=0)

    assert plan.fields == ("valid", "sequence")
    assert plan.attribute_values[":v0"] == {"BOOL": False}
    assert plan.attribute_values[":v1"] == {"N": "0"}


def test_attribute_names_only_appear_through_aliases(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(
        item_catalog,
        resolved_item_catalog,
        productId=1,
        version=1,
        name={"en": "x"},
        status="HIDDEN",
        sequence=9,
    )

    expressions = f"{plan.update_expression} {plan.condition_expression}"
    for reserved in RESERVED_FIELDS:
        assert reserved in plan.attribute_names.values()
        assert re.search(rf"\b{reserved}\b", expressions) is None
    for alias in re.findall(r"#\w+", expressions):
        assert alias in plan.attribute_names
    for placeholder in re.findall(r":\w+", expressions):
        assert placeholder in plan.attribute_values


def test_record_with_only_null_payload_is_an_empty_plan(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(item_catalog, resolved_item_catalog, productId=5, version=9)

    assert plan.is_empty
    assert plan.key_value == 5
    assert plan.version == 9
    assert plan.update_expression == ""
    assert plan.condition_clauses == ()
    assert INCOMING_VERSION_PLACEHOLDER not in plan.attribute_values


def test_null_key_is_a_schema_error(item_catalog, resolved_item_catalog) -> None:
    with pytest.raises(SchemaError):
        _plan(item_catalog, resolved_item_catalog, productId=None, version=1, price=10)


def test_floats_are_encoded_as_numbers() -> None:
    registry = default_registry()
    model = registry.get("model")
    record = model.from_document({"id": "m-1", "version": 4, "amount": 12.5, "description": "d"})

    plan = build_plan(record, resolve_schema(model.schema))

    assert plan.key == {"id": {"S": "m-1"}}
    assert plan.attribute_values[":v1"] == {"N": "12.5"}


def test_custom_shadow_suffix(item_catalog) -> None:
    resolved = resolve_schema(item_catalog.schema, "_ver")
    plan = _plan(item_catalog, resolved, productId=1, version=1, price=5)

    assert plan.attribute_names["#s0"] == "price_ver"


def test_unencodable_value_is_a_schema_error() -> None:
    resolved = resolve_schema(default_registry().get("model").schema)
    record = TypedRecord(record_type="model", data={"id": "x", "version": 1, "description": object()})

    with pytest.raises(SchemaError, match="Cannot encode"):
        build_plan(record, resolved)


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_numbers_cannot_be_encoded(value: float) -> None:
    with pytest.raises(SchemaError):
        encode_value(value)


def test_encode_value_handles_nested_structures() -> None:
    assert encode_value({"a": [1.5, "x"]}) == {"M": {"a": {"L": [{"N": "1.5"}, {"S": "x"}]}}}
    assert encode_value(Decimal("3")) == {"N": "3"}


def test_to_request_targets_the_table(item_catalog, resolved_item_catalog) -> None:
    plan = _plan(item_catalog, resolved_item_catalog, productId=1, version=1, price=5)

    request = plan.to_request("items")

    assert request["TableName"] == "items"
    assert request["Key"] == {"productId": {"N": "1"}}
    assert request["ConditionExpression"] == plan.condition_expression
    assert request["ExpressionAttributeNames"] == {"#f0": "price", "#s0": "price_version"}
