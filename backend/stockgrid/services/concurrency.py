# Overview: Bounded transactions, row locking and retry for ledger mutations.

from __future__ import annotations

import time
from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import TransactionTimeoutError

T = TypeVar("T")


class Deadline:
    """
    Wall-clock budget for one transaction.

    Ledger operations loop over line items with one round trip each; they
    call check() between steps so a slow store aborts the whole unit instead
    of committing half of it.
    """

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    @property
    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def check(self, step: str | None = None) -> None:
        if self._clock() > self._expires_at:
            raise TransactionTimeoutError(
                f"Transaction exceeded {self.seconds:g}s",
                details={"step": step} if step else None,
            )


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _apply_statement_timeout(deadline: Deadline) -> None:
    # Postgres enforces the budget server-side as well; other dialects rely
    # on the Deadline checks between steps.
    if db.engine.dialect.name == "postgresql":
        millis = max(1, int(deadline.remaining * 1000))
        db.session.execute(text(f"SET LOCAL statement_timeout = {millis}"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(
    func: Callable[[Deadline], T],
    *,
    timeout: float | None = None,
    attempts: int | None = None,
    label: str = "ledger",
) -> T:
    """
    Run func(deadline) as one all-or-nothing unit and commit it.

    Any exception (including the deadline expiring) rolls back every
    statement issued inside func, so stock counters and grid rows are left
    exactly as they were.
    """
    config = current_app.config
    if timeout is None:
        timeout = config.get("LEDGER_TX_TIMEOUT_SECONDS", 20)
    if attempts is None:
        attempts = config.get("LEDGER_TX_RETRY_ATTEMPTS", 1)

    def _op():
        deadline = Deadline(timeout)
        try:
            _apply_statement_timeout(deadline)
            result = func(deadline)
            deadline.check("commit")
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            current_app.logger.warning("Rolled back %s transaction", label)
            raise

    return run_with_retry(_op, attempts=max(1, attempts))
