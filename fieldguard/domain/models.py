"""
Domain models for fieldguard.

Defines the values that flow through one invocation: the decoded record, the
update plan derived from it, the batch job handed to execution, and the
per-plan dispatch result. None of these outlive an invocation.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

INCOMING_VERSION_PLACEHOLDER = ":incoming_version"


class Outcome(str, enum.Enum):
    """Classification of a single plan's write."""

    APPLIED = "applied"
    CONFLICT = "conflict"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True, eq=False)
class TypedRecord(Mapping[str, Any]):
    """
    A decoded record: an ordered, read-only mapping of attribute name to value.

    The key and version fields are ordinary entries here; which entries play
    those roles is decided by the record type's schema, not by the record.
    """

    record_type: str
    data: Mapping[str, Any]
    source: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def __getitem__(self, name: str) -> Any:
        return self.data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class FieldAssignment:
    """One `field = value` write paired with its shadow version attribute."""

    field: str
    value: Any
    shadow: str


@dataclass(frozen=True)
class UpdatePlan:
    """
    Conditional update derived from exactly one TypedRecord.

    The rendered expression strings reference attributes only through the
    aliases in `attribute_names` and values only through the placeholders in
    `attribute_values`, which are already DynamoDB AttributeValues.
    """

    record_type: str
    key_field: str
    key_value: Any
    version: int
    assignments: Tuple[FieldAssignment, ...]
    key: Mapping[str, Dict[str, Any]]
    update_expression: str = ""
    condition_expression: str = ""
    attribute_names: Mapping[str, str] = field(default_factory=dict)
    attribute_values: Mapping[str, Dict[str, Any]] = field(default_factory=dict)
    source: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.assignments

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(a.field for a in self.assignments)

    @property
    def condition_clauses(self) -> Tuple[str, ...]:
        if not self.condition_expression:
            return ()
        return tuple(self.condition_expression.split(" AND "))

    def to_request(self, table_name: str) -> Dict[str, Any]:
        """Keyword arguments for a single DynamoDB UpdateItem call."""
        return {
            "TableName": table_name,
            "Key": dict(self.key),
            "UpdateExpression": self.update_expression,
            "ConditionExpression": self.condition_expression,
            "ExpressionAttributeNames": dict(self.attribute_names),
            "ExpressionAttributeValues": dict(self.attribute_values),
        }

    def describe(self) -> str:
        return f"{self.record_type}[{self.key_field}={self.key_value!r}, version={self.version}]"


@dataclass(frozen=True)
class BatchJob:
    """All plans of one invocation plus how they are to be executed."""

    plans: Tuple[UpdatePlan, ...]
    max_concurrency: int
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer")

    def __len__(self) -> int:
        return len(self.plans)


@dataclass(frozen=True)
class DispatchResult:
    """Settled outcome of one plan."""

    plan: UpdatePlan
    outcome: Outcome
    attempts: int = 0
    error: Optional[str] = None


__all__ = [
    "INCOMING_VERSION_PLACEHOLDER",
    "Outcome",
    "TypedRecord",
    "FieldAssignment",
    "UpdatePlan",
    "BatchJob",
    "DispatchResult",
]
