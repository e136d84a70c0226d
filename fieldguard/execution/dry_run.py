"""
Dry-run gate: report plans instead of writing them.

Plans reaching the gate have already been built in full, so decode and schema
errors are counted exactly as in a live run. The gate never touches a store
client; every plan is logged as "would write" and counted as a simulated
APPLIED outcome in an aggregator flagged dry_run.
"""
from __future__ import annotations

from typing import List

from fieldguard.domain.models import BatchJob, DispatchResult, Outcome
from fieldguard.execution.aggregator import OutcomeAggregator
from fieldguard.utils.logging import get_logger

log = get_logger(__name__)


class DryRunGate:
    def execute(self, job: BatchJob, aggregator: OutcomeAggregator) -> List[DispatchResult]:
        if not aggregator.dry_run:
            raise ValueError("DryRunGate requires an aggregator created with dry_run=True")

        results: List[DispatchResult] = []
        for plan in job.plans:
            log.info(
                f"[DRY RUN] would write {plan.describe()} fields={', '.join(plan.fields)}",
                extra={
                    "key": str(plan.key_value),
                    "version": plan.version,
                    "update_expression": plan.update_expression,
                    "condition_expression": plan.condition_expression,
                    "attribute_names": dict(plan.attribute_names),
                },
            )
            aggregator.record(Outcome.APPLIED)
            results.append(DispatchResult(plan, Outcome.APPLIED, attempts=0))
        return results


__all__ = ["DryRunGate"]
