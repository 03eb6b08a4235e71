"""
Module: labor_kernel.utils.retry
Responsibility: Bounded exponential-backoff retry for transient I/O.

Only TransientIOError and SQLAlchemy OperationalError (lost connection,
lock timeout, deadlock) are retried.  Everything else -- validation errors
in particular -- propagates on the first attempt.
"""

import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError

from labor_kernel.exceptions import TransientIOError
from labor_kernel.logging_config import get_logger

logger = get_logger("utils.retry")

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (TransientIOError, OperationalError)


def call_with_retry(
    fn: Callable[[], T],
    *,
    operation: str,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``fn`` until it succeeds or ``max_attempts`` is exhausted.

    The wait before attempt ``n`` (0-based) is ``base_delay * 2 ** (n - 1)``.

    Raises:
        The last retryable error once attempts are exhausted, or any
        non-retryable error immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(max_attempts):
        try:
            return fn()
        except RETRYABLE_ERRORS as exc:
            if attempt == max_attempts - 1:
                logger.error(
                    "retry_exhausted",
                    extra={
                        "operation": operation,
                        "attempts": max_attempts,
                        "error": str(exc),
                    },
                )
                raise
            wait_time = base_delay * (2 ** attempt)
            logger.warning(
                "retry_scheduled",
                extra={
                    "operation": operation,
                    "attempt": attempt + 1,
                    "wait_seconds": wait_time,
                    "error": str(exc),
                },
            )
            sleep(wait_time)

    raise AssertionError("unreachable")
