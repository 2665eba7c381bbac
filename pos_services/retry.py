"""
pos_services.retry -- Caller-side retry after a concurrency conflict.

Responsibility:
    Re-invokes a whole purchasing operation when it fails with
    ``ConcurrencyConflict``.  Every service method owns its transaction and
    rolls back before raising, so a retry always starts from fresh state.

Invariants enforced:
    - Opt-in only: the lifecycle and receiving services never retry on
      their own.
    - Only ``ConcurrencyConflict`` is retried; domain errors propagate on
      the first attempt.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

from pos_config import get_active_config
from pos_kernel.exceptions import ConcurrencyConflict
from pos_kernel.logging_config import get_logger

logger = get_logger("services.retry")

T = TypeVar("T")


def retry_on_conflict(
    fn: Callable[[], T],
    attempts: int | None = None,
    backoff_seconds: float = 0.0,
) -> T:
    """Call ``fn`` until it succeeds or ``attempts`` conflicts have occurred.

    ``attempts`` defaults to ``conflict_retry_attempts`` from the active
    config.  The last ``ConcurrencyConflict`` is re-raised when attempts
    run out.
    """
    if attempts is None:
        attempts = get_active_config().conflict_retry_attempts
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except ConcurrencyConflict as exc:
            if attempt == attempts:
                logger.error(
                    "conflict_retry_exhausted",
                    extra={
                        "attempts": attempts,
                        "entity_type": exc.entity_type,
                        "entity_id": exc.entity_id,
                    },
                )
                raise
            logger.warning(
                "conflict_retry",
                extra={
                    "attempt": attempt,
                    "attempts": attempts,
                    "entity_type": exc.entity_type,
                    "entity_id": exc.entity_id,
                    "reason": exc.reason,
                },
            )
            if backoff_seconds:
                time.sleep(backoff_seconds * attempt)
    raise AssertionError("unreachable")
