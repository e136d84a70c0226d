"""
Execution package for fieldguard.

Re-exports the scheduler, the dry-run gate, the retry policy and the outcome
aggregator so callers can import from `fieldguard.execution` directly.
"""

from fieldguard.execution.aggregator import BatchSummary, OutcomeAggregator
from fieldguard.execution.dry_run import DryRunGate
from fieldguard.execution.retry import RetryPolicy
from fieldguard.execution.scheduler import ExecutionScheduler

__all__ = [
    "BatchSummary",
    "DryRunGate",
    "ExecutionScheduler",
    "OutcomeAggregator",
    "RetryPolicy",
]
