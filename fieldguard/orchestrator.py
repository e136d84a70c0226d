"""
Pipeline orchestration for one invocation.

Usage (example from the Lambda handler):
    from fieldguard.orchestrator import build_pipeline
    from fieldguard.ingest.events import flatten_event

    pipeline = build_pipeline()
    summary = pipeline.run(flatten_event(event), deadline=deadline)
    print(summary.message())

Stages: decode each message, resolve identity and build one plan per record,
then hand the whole batch to the execution scheduler (or the dry-run gate).
Record-scoped failures are counted and skipped; only configuration problems
raise. The summary is returned even when every record failed.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from fieldguard.config import Settings, get_settings
from fieldguard.domain.models import BatchJob, DispatchResult, TypedRecord, UpdatePlan
from fieldguard.domain.schema import ResolvedSchema, resolve_schema
from fieldguard.errors import ConfigurationError, DecodeError, SchemaError
from fieldguard.execution.aggregator import BatchSummary, OutcomeAggregator
from fieldguard.execution.dry_run import DryRunGate
from fieldguard.execution.retry import RetryPolicy
from fieldguard.execution.scheduler import ExecutionScheduler
from fieldguard.infrastructure.dynamodb import create_dynamodb_client
from fieldguard.ingest.decoders import DecoderRegistry, RecordType, default_registry
from fieldguard.ingest.events import KafkaMessage
from fieldguard.planning.plan_builder import build_plan
from fieldguard.utils.logging import get_logger
from fieldguard.utils.profiler import profile_block

log = get_logger(__name__)


class WriterPipeline:
    """
    Decode → plan → execute → summarize, for one record type and one table.

    Parameters
    ----------
    settings : Settings
        Validated configuration.
    record_type : RecordType
        Decoder and schema of the configured record type.
    scheduler : ExecutionScheduler, optional
        Required unless settings.dry_run is set.
    """

    def __init__(
        self,
        settings: Settings,
        record_type: RecordType,
        scheduler: Optional[ExecutionScheduler] = None,
    ) -> None:
        if scheduler is None and not settings.dry_run:
            raise ConfigurationError("A live run needs an execution scheduler")
        try:
            self.resolved: ResolvedSchema = resolve_schema(record_type.schema, settings.shadow_suffix)
        except SchemaError as exc:
            raise ConfigurationError(f"Record type '{record_type.name}' is unusable: {exc}") from exc
        self.settings = settings
        self.record_type = record_type
        self.scheduler = scheduler
        self.dry_run_gate = DryRunGate()

    @property
    def dry_run(self) -> bool:
        return self.settings.dry_run

    def decode(self, messages: Iterable[KafkaMessage], aggregator: OutcomeAggregator) -> List[TypedRecord]:
        records: List[TypedRecord] = []
        for message in messages:
            try:
                records.append(self.record_type.decode(message))
            except DecodeError as exc:
                aggregator.record_skipped("decode")
                log.warning(f"[DECODE SKIPPED] {exc}", extra={"source": message.describe()})
        return records

    def plan(self, records: Iterable[TypedRecord], aggregator: OutcomeAggregator) -> List[UpdatePlan]:
        plans: List[UpdatePlan] = []
        for record in records:
            try:
                plan = build_plan(record, self.resolved)
            except SchemaError as exc:
                aggregator.record_skipped("schema")
                log.warning(f"[SCHEMA SKIPPED] {exc}", extra={"source": record.source})
                continue
            if plan.is_empty:
                aggregator.record_noop()
                log.info(f"[NO-OP] {plan.describe()} has no non-null payload fields")
                continue
            plans.append(plan)
        return plans

    def execute(
        self,
        plans: List[UpdatePlan],
        aggregator: OutcomeAggregator,
        deadline: Optional[float] = None,
    ) -> List[DispatchResult]:
        job = BatchJob(
            plans=tuple(plans),
            max_concurrency=self.settings.max_concurrency,
            dry_run=self.dry_run,
        )
        if job.dry_run:
            return self.dry_run_gate.execute(job, aggregator)
        if self.scheduler is None:
            raise ConfigurationError("A live run needs an execution scheduler")
        return self.scheduler.execute(job, aggregator, deadline=deadline)

    def _new_aggregator(self) -> OutcomeAggregator:
        return OutcomeAggregator(record_type=self.record_type.name, dry_run=self.dry_run)

    def process_records(
        self, records: Iterable[TypedRecord], deadline: Optional[float] = None
    ) -> BatchSummary:
        """Plan and execute already-decoded records."""
        aggregator = self._new_aggregator()
        with profile_block("invocation") as stats:
            self.execute(self.plan(records, aggregator), aggregator, deadline=deadline)
        return self._finish(aggregator, stats.duration_seconds, stats.peak_rss_bytes)

    def run(self, messages: Iterable[KafkaMessage], deadline: Optional[float] = None) -> BatchSummary:
        """Decode, plan and execute one invocation's messages."""
        aggregator = self._new_aggregator()
        with profile_block("invocation") as stats:
            records = self.decode(messages, aggregator)
            self.execute(self.plan(records, aggregator), aggregator, deadline=deadline)
        return self._finish(aggregator, stats.duration_seconds, stats.peak_rss_bytes)

    def _finish(
        self, aggregator: OutcomeAggregator, elapsed: float, peak_rss_bytes: Optional[int]
    ) -> BatchSummary:
        summary = aggregator.summarize(elapsed, peak_rss_bytes)
        level_log = log.error if summary.has_fatal else log.info
        level_log(f"[SUMMARY] {summary.message()}", extra={"summary": summary.to_dict()})
        return summary


def build_pipeline(
    settings: Optional[Settings] = None,
    registry: Optional[DecoderRegistry] = None,
    client: Any = None,
) -> WriterPipeline:
    """
    Compose a pipeline from settings.

    A DynamoDB client is created only for live runs, and only when one is not
    supplied; dry runs never construct or call a client.

    Raises
    ------
    ConfigurationError
        For invalid settings or an unknown/unusable record type.
    """
    settings = settings or get_settings()
    registry = registry or default_registry()
    record_type = registry.get(settings.record_type)

    scheduler: Optional[ExecutionScheduler] = None
    if not settings.dry_run:
        client = client if client is not None else create_dynamodb_client(settings)
        scheduler = ExecutionScheduler(
            client=client,
            table_name=settings.table_name,
            retry_policy=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                base_delay_seconds=settings.retry_base_delay_seconds,
                max_delay_seconds=settings.retry_max_delay_seconds,
            ),
        )

    log.info(
        f"[PIPELINE] record_type={record_type.name} table={settings.table_name} "
        f"concurrency={settings.max_concurrency} dry_run={settings.dry_run}",
        extra={"record_type": record_type.name, "table": settings.table_name},
    )
    return WriterPipeline(settings=settings, record_type=record_type, scheduler=scheduler)


__all__ = ["WriterPipeline", "build_pipeline"]
