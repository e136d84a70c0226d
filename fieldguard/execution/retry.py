"""
Retry policy for transient store faults.

The policy is a plain value; `retrying()` turns it into a tenacity `Retrying`
controller with full-jitter exponential backoff. Only TransientStoreError is
retried. Conflicts and fatal store errors pass straight through.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from fieldguard.errors import TransientStoreError


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with jittered exponential backoff.

    Attributes
    ----------
    max_attempts : int
        Total attempts including the first call.
    base_delay_seconds : float
        Multiplier of the exponential window (attempt n waits up to base * 2**(n-1)).
    max_delay_seconds : float
        Cap on any single wait.
    """

    max_attempts: int = 5
    base_delay_seconds: float = 0.1
    max_delay_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("retry delays must not be negative")

    def backoff_ceiling(self, attempt: int) -> float:
        """Upper bound of the random wait after the given (1-based) failed attempt."""
        return min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))

    def retrying(
        self,
        on_retry: Optional[Callable[[RetryCallState], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Retrying:
        """
        Build a tenacity controller for this policy.

        Parameters
        ----------
        on_retry : callable, optional
            Invoked before each backoff sleep (used for counting and logging).
        sleep : callable
            Sleep function; tests pass a no-op.
        """
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random_exponential(
                multiplier=self.base_delay_seconds, max=self.max_delay_seconds
            ),
            retry=retry_if_exception_type(TransientStoreError),
            before_sleep=on_retry,
            sleep=sleep,
            reraise=True,
        )


__all__ = ["RetryPolicy"]
