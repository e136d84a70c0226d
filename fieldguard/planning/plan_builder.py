"""
Update-plan construction.

Turns one TypedRecord into one conditional DynamoDB update. For every
non-null payload field F the plan writes F and its shadow F_version, and adds
the clause `attribute_not_exists(F_version) OR F_version < :incoming_version`.
The clauses are ANDed, so a single field that already holds equal or newer
data rejects the whole item write.

Attribute names are always referenced through positional aliases (#f0, #s0,
...) and values through placeholders (:v0, ...), which keeps DynamoDB reserved
words ("name", "status", "sequence", ...) and arbitrary characters out of the
expression text.

Everything here is pure: no I/O, no shared state.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping

from boto3.dynamodb.types import TypeSerializer

from fieldguard.domain.models import (
    INCOMING_VERSION_PLACEHOLDER,
    FieldAssignment,
    TypedRecord,
    UpdatePlan,
)
from fieldguard.domain.schema import ResolvedSchema, check_identity
from fieldguard.errors import SchemaError

_serializer = TypeSerializer()


def _to_dynamo_native(value: Any) -> Any:
    """Convert floats (recursively) to Decimal, the only float form DynamoDB accepts."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _to_dynamo_native(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo_native(v) for v in value]
    return value


def encode_value(value: Any) -> Dict[str, Any]:
    """
    Encode a Python value as a DynamoDB AttributeValue.

    Raises
    ------
    SchemaError
        If the value has no DynamoDB representation (NaN, infinities,
        arbitrary objects).
    """
    try:
        return _serializer.serialize(_to_dynamo_native(value))
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise SchemaError(f"Cannot encode {type(value).__name__} value {value!r}: {exc}") from exc


def condition_clause(shadow_alias: str) -> str:
    return (
        f"(attribute_not_exists({shadow_alias}) OR "
        f"{shadow_alias} < {INCOMING_VERSION_PLACEHOLDER})"
    )


def build_plan(record: TypedRecord, resolved: ResolvedSchema) -> UpdatePlan:
    """
    Build the conditional update for one record.

    Parameters
    ----------
    record : TypedRecord
        Decoded record of the resolved type.
    resolved : ResolvedSchema
        Key, version and payload fields of the record type.

    Returns
    -------
    UpdatePlan
        Empty (a no-op) when every payload field is null or absent.

    Raises
    ------
    SchemaError
        If the key or version is null or malformed, or a value cannot be encoded.
    """
    key_value, version = check_identity(record, resolved)

    assignments: List[FieldAssignment] = []
    set_parts: List[str] = []
    clauses: List[str] = []
    names: Dict[str, str] = {}
    values: Dict[str, Dict[str, Any]] = {}

    for field_name in resolved.payload_fields:
        value = record.get(field_name)
        # Nulls never clobber stored data and never bump the shadow version.
        if value is None:
            continue

        index = len(assignments)
        field_alias, shadow_alias, value_placeholder = f"#f{index}", f"#s{index}", f":v{index}"
        shadow = resolved.shadow_of(field_name)

        names[field_alias] = field_name
        names[shadow_alias] = shadow
        values[value_placeholder] = encode_value(value)

        set_parts.append(f"{field_alias} = {value_placeholder}")
        set_parts.append(f"{shadow_alias} = {INCOMING_VERSION_PLACEHOLDER}")
        clauses.append(condition_clause(shadow_alias))
        assignments.append(FieldAssignment(field=field_name, value=value, shadow=shadow))

    key = {resolved.key_field: encode_value(key_value)}

    if not assignments:
        return UpdatePlan(
            record_type=resolved.record_type,
            key_field=resolved.key_field,
            key_value=key_value,
            version=version,
            assignments=(),
            key=key,
            source=record.source,
        )

    values[INCOMING_VERSION_PLACEHOLDER] = encode_value(version)

    return UpdatePlan(
        record_type=resolved.record_type,
        key_field=resolved.key_field,
        key_value=key_value,
        version=version,
        assignments=tuple(assignments),
        key=key,
        update_expression="SET " + ", ".join(set_parts),
        condition_expression=" AND ".join(clauses),
        attribute_names=names,
        attribute_values=values,
        source=record.source,
    )


__all__ = ["build_plan", "condition_clause", "encode_value"]
