"""Bounded retries with quadratic backoff.

This is the only place the harness waits on purpose. Every transient step
(mesh readiness, workload availability, each probe) goes through
:func:`retry_execution`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def quadratic_delay(attempt: int) -> int:
    """Seconds to wait after the 0-indexed ``attempt`` failed: 1, 2, 5, 10, 17, ..."""
    return 1 + attempt * attempt


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and delay schedule."""

    max_attempts: int = 10
    delay: Callable[[int], float] = quadratic_delay
    # None means time.sleep, looked up at call time
    sleep: Optional[Callable[[float], None]] = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def wait(self, attempt: int) -> None:
        retry_time = self.delay(attempt)
        logger.info("Operation failed: retrying after %s seconds", retry_time)
        (self.sleep or time.sleep)(retry_time)


def retry_execution(policy: RetryPolicy, executable: Callable[[], T]) -> T:
    """Call ``executable`` until it returns without raising.

    Returns the first successful result. If every attempt raises, the last
    exception is re-raised after ``max_attempts`` calls and
    ``max_attempts - 1`` delays.
    """
    last_error: Optional[Exception] = None

    for attempt in range(policy.max_attempts):
        try:
            return executable()
        except Exception as e:
            last_error = e
            logger.debug("Attempt %d/%d failed: %s", attempt + 1, policy.max_attempts, e)
            if attempt < policy.max_attempts - 1:
                policy.wait(attempt)

    raise last_error
