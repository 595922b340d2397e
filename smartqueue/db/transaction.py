# smartqueue/db/transaction.py
"""
Retrying transaction scope for the contended queue documents.

Join, accept and call-next all read-modify-write shared rows (the time slot
counter, the highest queue number, a pending request). A unit of work wrapped
in `transactional` is committed as a whole, rolled back on any error, and
re-run from scratch when the database reports contention.
"""

import functools
import logging

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smartqueue.core.config import settings
from smartqueue.core.exceptions import TransientError

logger = logging.getLogger(__name__)

# Lock timeouts, deadlocks and serialization failures surface as
# OperationalError; a lost race on a unique index surfaces as IntegrityError.
RETRYABLE_ERRORS = (OperationalError, IntegrityError)


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        f"Transaction conflict on attempt {retry_state.attempt_number}, retrying: "
        f"{type(exc).__name__}"
    )


def run_in_transaction(db: Session, work, *args, max_attempts: int | None = None, **kwargs):
    """
    Run `work(db, *args, **kwargs)` and commit.

    Returns whatever `work` returns. Raises TransientError once the retry
    budget is spent; any other exception is rolled back and propagated as-is.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_retry,
    )
    try:
        for attempt in retrying:
            with attempt:
                try:
                    result = work(db, *args, **kwargs)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
                return result
    except RetryError as e:
        last = e.last_attempt.exception()
        logger.error(
            f"Transaction gave up after {attempts} attempts: {last}",
            exc_info=last,
        )
        raise TransientError(
            "The queue is busy right now. Please try again.",
            details={"attempts": attempts},
        ) from last


def transactional(func):
    """Decorator form of run_in_transaction for service methods taking `db` first."""

    @functools.wraps(func)
    def wrapper(self, db: Session, *args, **kwargs):
        return run_in_transaction(db, lambda session: func(self, session, *args, **kwargs))

    return wrapper
