# Overview: Locking, retry and optimistic-version helpers for order aggregate writes.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db
from .results import FailureKind, MutationResult


class ConcurrencyConflict(Exception):
    """The order aggregate changed between read and write."""

    def __init__(self, order_id: int | None, message: str | None = None):
        self.order_id = order_id
        super().__init__(message or f"Order {order_id} was modified by another user")


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a read-validate-write operation with retry on transient failures.

    Retries on OperationalError only (deadlocks, lock timeouts). Optimistic
    version conflicts are NOT retried: they surface to the caller as a
    CONFLICT result so nobody's change is silently overwritten.
    """
    if attempts is None:
        attempts = current_app.config.get("PERSIST_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("PERSIST_RETRY_BACKOFF", 0.1)

    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Transient database error on attempt %d/%d, retrying", attempt + 1, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))


def check_expected_version(
    order,
    expected_version: int | None,
    *,
    role: str | None = None,
    requested: str | None = None,
) -> MutationResult | None:
    """
    Compare the caller's last-seen order version with the current one.

    Returns a CONFLICT result on mismatch, None when the write may proceed.
    """
    if expected_version is None or order.version_id == expected_version:
        return None
    return MutationResult.failure(
        FailureKind.CONFLICT,
        (
            f"Order {order.id} changed since it was read "
            f"(expected version {expected_version}, found {order.version_id})"
        ),
        record=order,
        role=role,
        requested=requested,
    )
