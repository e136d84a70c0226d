"""
Schema descriptors and key/version resolution.

A record type declares its attributes explicitly, in stored order, each with a
role: the partition key, the record version, or an ordinary payload field.
Resolution happens once per record type; per-record checks only look at the
two identity values.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any, Iterable, Tuple

from fieldguard.domain.models import TypedRecord
from fieldguard.errors import SchemaError


class FieldRole(str, enum.Enum):
    KEY = "key"
    VERSION = "version"
    PAYLOAD = "payload"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    role: FieldRole = FieldRole.PAYLOAD


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field declarations for one record type."""

    name: str
    fields: Tuple[FieldSpec, ...]

    @classmethod
    def of(cls, name: str, key: str, version: str, payload: Iterable[str]) -> "RecordSchema":
        """Shorthand for the common layout: key first, version second, then payload."""
        specs = [FieldSpec(key, FieldRole.KEY), FieldSpec(version, FieldRole.VERSION)]
        specs.extend(FieldSpec(p) for p in payload)
        return cls(name=name, fields=tuple(specs))

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)


@dataclass(frozen=True)
class ResolvedSchema:
    record_type: str
    key_field: str
    version_field: str
    payload_fields: Tuple[str, ...]
    shadow_suffix: str = "_version"

    def shadow_of(self, field_name: str) -> str:
        return f"{field_name}{self.shadow_suffix}"


def _single(schema: RecordSchema, role: FieldRole) -> str:
    matches = [spec.name for spec in schema.fields if spec.role is role]
    if not matches:
        raise SchemaError(f"Record type '{schema.name}' declares no {role.value} field")
    if len(matches) > 1:
        raise SchemaError(
            f"Record type '{schema.name}' declares {len(matches)} {role.value} fields: "
            f"{', '.join(matches)}"
        )
    return matches[0]


@lru_cache(maxsize=None)
def resolve_schema(schema: RecordSchema, shadow_suffix: str = "_version") -> ResolvedSchema:
    """
    Identify the key, version and payload fields of a record type.

    Parameters
    ----------
    schema : RecordSchema
        Explicit field declarations for the record type.
    shadow_suffix : str
        Suffix of the per-field version attribute stored beside each payload field.

    Returns
    -------
    ResolvedSchema
        Cached per (schema, suffix) pair.

    Raises
    ------
    SchemaError
        If the key or version role is missing or repeated, a name is declared
        twice, or a payload field would collide with another field's shadow.
    """
    if not shadow_suffix:
        raise SchemaError("Shadow suffix must not be empty")

    names = schema.field_names
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise SchemaError(f"Record type '{schema.name}' repeats fields: {', '.join(duplicates)}")

    key_field = _single(schema, FieldRole.KEY)
    version_field = _single(schema, FieldRole.VERSION)
    payload = tuple(spec.name for spec in schema.fields if spec.role is FieldRole.PAYLOAD)

    shadows = {f"{name}{shadow_suffix}" for name in payload}
    clashes = sorted(shadows.intersection(names))
    if clashes:
        raise SchemaError(
            f"Record type '{schema.name}' has fields that collide with shadow "
            f"version attributes: {', '.join(clashes)}"
        )

    return ResolvedSchema(
        record_type=schema.name,
        key_field=key_field,
        version_field=version_field,
        payload_fields=payload,
        shadow_suffix=shadow_suffix,
    )


def check_identity(record: TypedRecord, resolved: ResolvedSchema) -> Tuple[Any, int]:
    """
    Return the record's (key, version), rejecting records that cannot be planned.

    Raises
    ------
    SchemaError
        If the key or version is null, the key is not a string, number or
        bytes value, or the version is not an integer.
    """
    key = record.get(resolved.key_field)
    version = record.get(resolved.version_field)

    if key is None or version is None:
        raise SchemaError(
            f"Record of type '{resolved.record_type}' has null "
            f"{resolved.key_field if key is None else resolved.version_field}"
        )
    if isinstance(key, bool) or not isinstance(key, (str, int, Decimal, bytes)):
        raise SchemaError(
            f"Key '{resolved.key_field}' must be a string, number or bytes, got {type(key).__name__}"
        )
    if isinstance(key, str) and not key:
        raise SchemaError(f"Key '{resolved.key_field}' must not be an empty string")
    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaError(
            f"Version '{resolved.version_field}' must be an integer, got {type(version).__name__}"
        )
    return key, version


__all__ = [
    "FieldRole",
    "FieldSpec",
    "RecordSchema",
    "ResolvedSchema",
    "resolve_schema",
    "check_identity",
]
