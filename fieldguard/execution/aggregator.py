"""
Outcome aggregation for one invocation.

Counters are shared by the dispatching thread and the worker threads (retry
counts arrive from workers), so every mutation goes through one lock. The
summary built at the end is the only result an invocation returns.
"""
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from fieldguard.domain.models import Outcome

SKIP_STAGES = ("decode", "schema")


@dataclass(frozen=True)
class BatchSummary:
    """
    Final counters of one invocation.

    `applied` counts simulated writes when `dry_run` is True.
    """

    record_type: str
    dry_run: bool
    applied: int
    conflicted: int
    transient_failed: int
    fatal_failed: int
    decode_skipped: int
    schema_skipped: int
    noop: int
    retries: int
    elapsed_seconds: float
    peak_rss_bytes: Optional[int] = None

    @property
    def total(self) -> int:
        return (
            self.applied
            + self.conflicted
            + self.transient_failed
            + self.fatal_failed
            + self.decode_skipped
            + self.schema_skipped
            + self.noop
        )

    @property
    def has_fatal(self) -> bool:
        return self.fatal_failed > 0

    def message(self) -> str:
        applied_label = "WouldWrite" if self.dry_run else "Success"
        text = (
            f"Processed {self.total} record(s) in {self.elapsed_seconds * 1000:.0f} ms. "
            f"{applied_label}={self.applied}, CondCheckFailed={self.conflicted}, "
            f"Transient={self.transient_failed}, Fatal={self.fatal_failed}, "
            f"DecodeSkipped={self.decode_skipped}, SchemaSkipped={self.schema_skipped}, "
            f"NoOp={self.noop}, Retries={self.retries}"
        )
        return f"(DRY_RUN) {text}" if self.dry_run else text

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["elapsed_seconds"] = round(self.elapsed_seconds, 3)
        payload["total"] = self.total
        payload["message"] = self.message()
        return payload


class OutcomeAggregator:
    """Thread-safe counters for plan outcomes, skipped records and retries."""

    def __init__(self, record_type: str, dry_run: bool = False) -> None:
        self.record_type = record_type
        self.dry_run = dry_run
        self._lock = threading.Lock()
        self._outcomes: Dict[Outcome, int] = {outcome: 0 for outcome in Outcome}
        self._skipped: Dict[str, int] = {stage: 0 for stage in SKIP_STAGES}
        self._noop = 0
        self._retries = 0

    def record(self, outcome: Outcome) -> None:
        with self._lock:
            self._outcomes[outcome] += 1

    def record_skipped(self, stage: str) -> None:
        if stage not in self._skipped:
            raise ValueError(f"Unknown skip stage '{stage}'. Expected one of: {', '.join(SKIP_STAGES)}")
        with self._lock:
            self._skipped[stage] += 1

    def record_noop(self) -> None:
        with self._lock:
            self._noop += 1

    def record_retry(self) -> None:
        with self._lock:
            self._retries += 1

    def count(self, outcome: Outcome) -> int:
        with self._lock:
            return self._outcomes[outcome]

    @property
    def settled(self) -> int:
        with self._lock:
            return sum(self._outcomes.values())

    def summarize(self, elapsed_seconds: float, peak_rss_bytes: Optional[int] = None) -> BatchSummary:
        with self._lock:
            return BatchSummary(
                record_type=self.record_type,
                dry_run=self.dry_run,
                applied=self._outcomes[Outcome.APPLIED],
                conflicted=self._outcomes[Outcome.CONFLICT],
                transient_failed=self._outcomes[Outcome.TRANSIENT_FAILURE],
                fatal_failed=self._outcomes[Outcome.FATAL_FAILURE],
                decode_skipped=self._skipped["decode"],
                schema_skipped=self._skipped["schema"],
                noop=self._noop,
                retries=self._retries,
                elapsed_seconds=elapsed_seconds,
                peak_rss_bytes=peak_rss_bytes,
            )


__all__ = ["BatchSummary", "OutcomeAggregator", "SKIP_STAGES"]
