"""
Bounded-concurrency execution of update plans.

Each plan becomes exactly one conditional UpdateItem call, issued from a
fixed-size thread pool whose size is the job's concurrency bound. Plans are
built before they reach the scheduler; only the store calls occupy worker
slots. DynamoDB's BatchWriteItem is never used: it cannot carry conditions,
so it would silently overwrite newer fields.

Known limitation: two plans for the same key in one job race each other with
no in-process ordering. The store's condition check decides which one lands,
and which plan gets the APPLIED label depends on timing, not on submission
order. Only the final stored state is deterministic.
"""

from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

from tenacity import RetryCallState

from fieldguard.domain.models import BatchJob, DispatchResult, Outcome, UpdatePlan
from fieldguard.errors import FatalStoreError, TransientStoreError, WriteConflict
from fieldguard.execution.aggregator import OutcomeAggregator
from fieldguard.execution.retry import RetryPolicy
from fieldguard.infrastructure.dynamodb import update_item
from fieldguard.utils.logging import get_logger

log = get_logger(__name__)


class ExecutionScheduler:
    """
    Dispatch plans to DynamoDB with bounded concurrency and classify results.

    Parameters
    ----------
    client : Any
        Shared boto3 DynamoDB client; only ever invoked, never reconfigured.
    table_name : str
        Target table.
    retry_policy : RetryPolicy, optional
        Retry behaviour for transient faults.
    sleep : callable
        Backoff sleep; tests replace it with a no-op.
    clock : callable
        Monotonic clock the deadline is measured against.
    """

    def __init__(
        self,
        client: Any,
        table_name: str,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.table_name = table_name
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    def _dispatch(self, plan: UpdatePlan, aggregator: OutcomeAggregator) -> DispatchResult:
        request = plan.to_request(self.table_name)
        attempts = 0

        def _on_retry(state: RetryCallState) -> None:
            aggregator.record_retry()
            log.warning(
                f"[RETRY] {plan.describe()} attempt {state.attempt_number} failed",
                extra={
                    "key": str(plan.key_value),
                    "version": plan.version,
                    "attempt": state.attempt_number,
                    "error": str(state.outcome.exception()) if state.outcome else None,
                },
            )

        try:
            for attempt in self.retry_policy.retrying(on_retry=_on_retry, sleep=self._sleep):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    update_item(self.client, request)
        except WriteConflict as exc:
            return DispatchResult(plan, Outcome.CONFLICT, attempts, str(exc))
        except TransientStoreError as exc:
            return DispatchResult(
                plan,
                Outcome.FATAL_FAILURE,
                attempts,
                f"retries exhausted after {attempts} attempt(s): {exc}",
            )
        except FatalStoreError as exc:
            return DispatchResult(plan, Outcome.FATAL_FAILURE, attempts, str(exc))
        return DispatchResult(plan, Outcome.APPLIED, attempts)

    def _settle(self, future: Future, plan: UpdatePlan) -> DispatchResult:
        try:
            return future.result()
        except Exception as exc:  # noqa: BLE001
            log.exception(f"[DISPATCH FAILED] {plan.describe()}", extra={"key": str(plan.key_value)})
            return DispatchResult(plan, Outcome.FATAL_FAILURE, 0, f"{type(exc).__name__}: {exc}")

    def execute(
        self,
        job: BatchJob,
        aggregator: OutcomeAggregator,
        deadline: Optional[float] = None,
    ) -> List[DispatchResult]:
        """
        Run every plan of the job and record each outcome exactly once.

        Parameters
        ----------
        job : BatchJob
            Plans plus the concurrency bound.
        aggregator : OutcomeAggregator
            Receives one outcome per plan.
        deadline : float, optional
            Absolute time on `clock` by which the job must settle. Plans still
            pending or in flight at the deadline are abandoned and recorded as
            TRANSIENT_FAILURE; their real outcome is unknown.

        Returns
        -------
        List[DispatchResult]
            One result per plan, in completion order.
        """
        if not job.plans:
            return []

        workers = min(job.max_concurrency, len(job.plans))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fieldguard-write")
        futures: Dict[Future, UpdatePlan] = {
            executor.submit(self._dispatch, plan, aggregator): plan for plan in job.plans
        }
        log.info(
            f"[DISPATCH] {len(futures)} plan(s) with concurrency={workers}",
            extra={"plans": len(futures), "concurrency": workers, "table": self.table_name},
        )

        results: List[DispatchResult] = []
        pending = set(futures)
        timed_out = False
        try:
            while pending:
                timeout = None if deadline is None else deadline - self._clock()
                if timeout is not None and timeout <= 0:
                    timed_out = True
                    break
                done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
                for future in done:
                    result = self._settle(future, futures[future])
                    self._record(result, aggregator)
                    results.append(result)
        finally:
            # Abandon whatever is left; never block past the deadline.
            executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

        for future in pending:
            plan = futures[future]
            if future.done() and not future.cancelled():
                result = self._settle(future, plan)
                self._record(result, aggregator)
                results.append(result)
                continue
            started = not future.cancel()
            result = DispatchResult(
                plan,
                Outcome.TRANSIENT_FAILURE,
                0,
                "abandoned in flight at deadline" if started else "not started before deadline",
            )
            self._record(result, aggregator)
            results.append(result)

        if timed_out:
            log.error(
                f"[DEADLINE] {len(pending)} plan(s) unsettled at deadline",
                extra={"abandoned": len(pending)},
            )
        return results

    @staticmethod
    def _record(result: DispatchResult, aggregator: OutcomeAggregator) -> None:
        aggregator.record(result.outcome)
        plan = result.plan
        extra = {
            "key": str(plan.key_value),
            "version": plan.version,
            "outcome": result.outcome.value,
            "attempts": result.attempts,
            "source": plan.source,
        }
        if result.outcome is Outcome.APPLIED:
            log.info(f"[APPLIED] {plan.describe()}", extra=extra)
        elif result.outcome is Outcome.CONFLICT:
            log.info(f"[CONFLICT] {plan.describe()} holds newer data for a field", extra=extra)
        elif result.outcome is Outcome.TRANSIENT_FAILURE:
            log.warning(f"[TRANSIENT] {plan.describe()}: {result.error}", extra=extra)
        else:
            log.error(f"[FATAL] {plan.describe()}: {result.error}", extra=extra)


__all__ = ["ExecutionScheduler"]
