"""
Record models for the shipped record types.

Each model validates the JSON document carried by a Kafka message. Attributes
are snake_case in Python and camelCase on the wire and in the table, which is
how the upstream producers name them. Every schema lists the stored attribute
names explicitly, in the order they are planned.

Key and version are optional on the models on purpose: a record with a null
key or version decodes fine and is then rejected by the schema check, so it
is counted as a schema skip rather than a decode failure. A boolean key or
version is a decode failure.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from fieldguard.domain.schema import RecordSchema


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("booleans are not accepted as integers")
    return value


# JSON true/false would otherwise be coerced to 1/0.
IdentityInt = Annotated[int, BeforeValidator(_reject_bool)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class DishOpenHour(_CamelModel):
    id: Optional[int] = None
    dish_id: Optional[int] = None
    day_of_week: Optional[str] = None
    from_hour: Optional[int] = None
    from_minute: Optional[int] = None
    to_hour: Optional[int] = None
    to_minute: Optional[int] = None


class Dish(_CamelModel):
    """A menu dish published by the store catalogue service."""

    id: Optional[IdentityInt] = None
    version: Optional[IdentityInt] = None
    store_id: Optional[int] = None
    names: Optional[Dict[str, str]] = None
    descriptions: Optional[Dict[str, str]] = None
    tax_base_type: Optional[str] = None
    display_status: Optional[str] = None
    target_available_time: Optional[str] = None
    sale_price: Optional[float] = None
    currency_type: Optional[str] = None
    image_paths: Optional[List[str]] = None
    sale_from_at: Optional[str] = None
    sale_to_at: Optional[str] = None
    dish_options: Optional[List[Dict[str, Any]]] = None
    open_hours: Optional[List[DishOpenHour]] = None
    disposable: Optional[bool] = None
    disposable_price: Optional[float] = None
    deleted: Optional[bool] = None
    display_price: Optional[float] = None


DISH_SCHEMA = RecordSchema.of(
    "dish",
    key="id",
    version="version",
    payload=[
        "storeId",
        "names",
        "descriptions",
        "taxBaseType",
        "displayStatus",
        "targetAvailableTime",
        "salePrice",
        "currencyType",
        "imagePaths",
        "saleFromAt",
        "saleToAt",
        "dishOptions",
        "openHours",
        "disposable",
        "disposablePrice",
        "deleted",
        "displayPrice",
    ],
)


class ItemCatalog(_CamelModel):
    """A product entry of the item catalogue."""

    product_id: Optional[IdentityInt] = None
    version: Optional[IdentityInt] = None
    division_type: Optional[str] = None
    name: Optional[Dict[str, str]] = None
    reconciled_attributes: Optional[Dict[str, Dict[str, Dict[str, str]]]] = None
    valid: Optional[bool] = None
    create_at: Optional[int] = None
    sequence: Optional[int] = None
    main_image: Optional[str] = None
    price: Optional[int] = None
    status: Optional[str] = None


ITEM_CATALOG_SCHEMA = RecordSchema.of(
    "item_catalog",
    key="productId",
    version="version",
    payload=[
        "divisionType",
        "name",
        "reconciledAttributes",
        "valid",
        "createAt",
        "sequence",
        "mainImage",
        "price",
        "status",
    ],
)


class SampleModel(_CamelModel):
    """Minimal record used by smoke tests and local replays."""

    id: Optional[str] = None
    version: Optional[IdentityInt] = None
    data_field: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None


SAMPLE_MODEL_SCHEMA = RecordSchema.of(
    "model",
    key="id",
    version="version",
    payload=["dataField", "description", "amount"],
)


__all__ = [
    "Dish",
    "DishOpenHour",
    "DISH_SCHEMA",
    "ItemCatalog",
    "ITEM_CATALOG_SCHEMA",
    "SampleModel",
    "SAMPLE_MODEL_SCHEMA",
]
