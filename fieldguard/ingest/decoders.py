"""
Decoder registry: configured record-type identifier -> decoding function.

The registry is built once at process start. Each entry pairs a pydantic
model with its explicit RecordSchema; registration checks that the two agree,
so a schema typo fails at startup instead of silently dropping a field.
"""
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from fieldguard.domain.models import TypedRecord
from fieldguard.domain.record_types import (
    DISH_SCHEMA,
    ITEM_CATALOG_SCHEMA,
    SAMPLE_MODEL_SCHEMA,
    Dish,
    ItemCatalog,
    SampleModel,
)
from fieldguard.domain.schema import RecordSchema
from fieldguard.errors import ConfigurationError, DecodeError, SchemaError
from fieldguard.ingest.events import KafkaMessage


def _stored_names(model: Type[BaseModel]) -> List[str]:
    return [info.alias or name for name, info in model.model_fields.items()]


@dataclass(frozen=True)
class RecordType:
    name: str
    model: Type[BaseModel]
    schema: RecordSchema
    decoder: Callable[[KafkaMessage, "RecordType"], TypedRecord]

    def __post_init__(self) -> None:
        model_names = set(_stored_names(self.model))
        schema_names = set(self.schema.field_names)
        if model_names != schema_names:
            missing = sorted(model_names - schema_names)
            unknown = sorted(schema_names - model_names)
            raise SchemaError(
                f"Schema for '{self.name}' does not match {self.model.__name__}: "
                f"missing={missing} unknown={unknown}"
            )

    def decode(self, message: KafkaMessage) -> TypedRecord:
        return self.decoder(message, self)

    def from_document(self, document: object, source: Optional[str] = None) -> TypedRecord:
        """Validate an already-parsed JSON document into a TypedRecord."""
        if not isinstance(document, dict):
            raise DecodeError(f"Expected a JSON object, got {type(document).__name__}")
        try:
            model = self.model.model_validate(document)
        except ValidationError as exc:
            raise DecodeError(f"{self.model.__name__} validation failed: {exc}") from exc
        data = model.model_dump(by_alias=True, exclude_none=True)
        ordered = {name: data.get(name) for name in self.schema.field_names}
        return TypedRecord(record_type=self.name, data=ordered, source=source)


def decode_base64_json(message: KafkaMessage, record_type: RecordType) -> TypedRecord:
    """
    Decode a base64-encoded UTF-8 JSON object into a TypedRecord.

    Raises
    ------
    DecodeError
        For empty or non-string values, invalid base64, invalid UTF-8/JSON, non-object JSON,
        and documents that fail model validation.
    """
    if not message.value:
        raise DecodeError(f"Empty record value at {message.describe()}")
    if not isinstance(message.value, str):
        raise DecodeError(
            f"Record value at {message.describe()} is {type(message.value).__name__}, expected a base64 string"
        )
    try:
        raw = base64.b64decode(message.value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 at {message.describe()}: {exc}") from exc
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"Invalid JSON at {message.describe()}: {exc}") from exc
    return record_type.from_document(document, source=message.describe())


class DecoderRegistry:
    """Explicit mapping of record-type identifiers (and legacy aliases) to RecordTypes."""

    def __init__(self) -> None:
        self._types: Dict[str, RecordType] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, record_type: RecordType, aliases: Iterable[str] = ()) -> None:
        if record_type.name in self._types or record_type.name in self._aliases:
            raise ValueError(f"Record type '{record_type.name}' is already registered")
        self._types[record_type.name] = record_type
        for alias in aliases:
            self._aliases[alias] = record_type.name

    def get(self, name: str) -> RecordType:
        canonical = self._aliases.get(name, name)
        try:
            return self._types[canonical]
        except KeyError:
            raise ConfigurationError(
                f"Unknown record type '{name}'. Available: {', '.join(self.names())}"
            ) from None

    def names(self) -> List[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types or name in self._aliases


def default_registry() -> DecoderRegistry:
    """Registry of the shipped record types."""
    registry = DecoderRegistry()
    registry.register(
        RecordType("dish", Dish, DISH_SCHEMA, decode_base64_json), aliases=("DishParser",)
    )
    registry.register(
        RecordType("item_catalog", ItemCatalog, ITEM_CATALOG_SCHEMA, decode_base64_json),
        aliases=("ItemCatalogParser",),
    )
    registry.register(
        RecordType("model", SampleModel, SAMPLE_MODEL_SCHEMA, decode_base64_json),
        aliases=("ModelParser", "CustomJsonBase64Parser"),
    )
    return registry


__all__ = ["DecoderRegistry", "RecordType", "decode_base64_json", "default_registry"]
