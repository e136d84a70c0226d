"""
Domain package for fieldguard.

Exports the records, plans and schema descriptors used across planning,
execution and the orchestrator. Keep this package free of I/O.
"""

from fieldguard.domain.models import (
    BatchJob,
    DispatchResult,
    FieldAssignment,
    Outcome,
    TypedRecord,
    UpdatePlan,
)
from fieldguard.domain.schema import (
    FieldRole,
    FieldSpec,
    RecordSchema,
    ResolvedSchema,
    check_identity,
    resolve_schema,
)

__all__ = [
    "BatchJob",
    "DispatchResult",
    "FieldAssignment",
    "Outcome",
    "TypedRecord",
    "UpdatePlan",
    "FieldRole",
    "FieldSpec",
    "RecordSchema",
    "ResolvedSchema",
    "check_identity",
    "resolve_schema",
]
