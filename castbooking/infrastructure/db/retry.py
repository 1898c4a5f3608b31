"""
Retries for reservation writes that lose a lock race in the database.

Writers take the per-staff row lock; under contention MySQL may abort one of
them with a deadlock or lock wait timeout, and SQLite reports a busy database.
Those transactions are safe to replay from the start.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"
SQLITE_BUSY = "database is locked"


def is_retryable_lock_error(error: Exception) -> bool:
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return any(
            marker in error_str
            for marker in (MYSQL_DEADLOCK_ERROR, MYSQL_LOCK_WAIT_TIMEOUT, SQLITE_BUSY)
        )
    return False


async def retry_on_deadlock(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Run ``func`` and replay it on lock errors with exponential backoff.

    Delay before retry ``n`` is ``base_delay * 2 ** n``. Any other error, or a
    lock error on the last attempt, propagates unchanged.
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not is_retryable_lock_error(e) or attempt == max_attempts - 1:
                if is_retryable_lock_error(e):
                    logger.error(
                        "Database lock contention persists after max retries",
                        extra={"attempts": max_attempts, "error": str(e)},
                    )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Database lock contention detected, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)
    raise RuntimeError("retry_on_deadlock called with max_attempts < 1")
