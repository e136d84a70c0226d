"""
fieldguard - per-field versioned writes from Kafka records into DynamoDB.

Every payload field F of an item carries a shadow attribute F_version holding
the version of the record that last wrote it. An incoming record is written
only if every field it touches is older than the record, so a late or
replayed record never overwrites newer data, field by field.

The package is organised as:

- Schema/key resolution and domain models (`fieldguard.domain`)
- Update-plan construction (`fieldguard.planning`)
- Bounded-concurrency execution, retries, dry-run and aggregation (`fieldguard.execution`)
- Kafka event flattening and record decoding (`fieldguard.ingest`)
- DynamoDB client and error translation (`fieldguard.infrastructure`)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from fieldguard.config import Settings, get_settings, load_settings
from fieldguard.domain.models import BatchJob, Outcome, TypedRecord, UpdatePlan
from fieldguard.domain.schema import RecordSchema, resolve_schema
from fieldguard.errors import (
    ConfigurationError,
    DecodeError,
    FieldGuardError,
    SchemaError,
)
from fieldguard.execution.aggregator import BatchSummary, OutcomeAggregator
from fieldguard.execution.retry import RetryPolicy
from fieldguard.execution.scheduler import ExecutionScheduler
from fieldguard.orchestrator import WriterPipeline, build_pipeline
from fieldguard.planning.plan_builder import build_plan
from fieldguard.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    "load_settings",
    # Domain
    "BatchJob",
    "Outcome",
    "RecordSchema",
    "TypedRecord",
    "UpdatePlan",
    "resolve_schema",
    # Errors
    "ConfigurationError",
    "DecodeError",
    "FieldGuardError",
    "SchemaError",
    # Pipeline
    "BatchSummary",
    "ExecutionScheduler",
    "OutcomeAggregator",
    "RetryPolicy",
    "WriterPipeline",
    "build_pipeline",
    "build_plan",
    # Logging
    "configure_logging",
    "get_logger",
]
