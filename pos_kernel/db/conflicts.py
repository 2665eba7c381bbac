"""
Module: pos_kernel.db.conflicts
Responsibility: Translate driver-level concurrency failures into the kernel's
    ConcurrencyConflict so callers can decide to retry.
Architecture position: Kernel > DB.  May import from exceptions and logging.

Translated conditions:
    - StaleDataError: an optimistic version check on a versioned row failed.
    - OperationalError/DBAPIError with SQLSTATE 40001 (serialization failure)
      or 40P01 (deadlock detected).

Everything else propagates unchanged.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from pos_kernel.exceptions import ConcurrencyConflict
from pos_kernel.logging_config import get_logger

logger = get_logger("db.conflicts")

SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"

_RETRYABLE_SQLSTATES = frozenset({SERIALIZATION_FAILURE, DEADLOCK_DETECTED})


def sqlstate_of(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE carried by the underlying driver error, if any."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        return sqlstate_of(exc) in _RETRYABLE_SQLSTATES
    return False


@contextmanager
def translate_conflicts(entity_type: str, entity_id: object) -> Generator[None, None, None]:
    """
    Re-raise serialization, deadlock and stale-version failures as
    ConcurrencyConflict for the given entity.

    Usage:
        with translate_conflicts("purchase_order", po_id):
            session.flush()
    """
    try:
        yield
    except StaleDataError as exc:
        logger.warning(
            "concurrency_conflict",
            extra={"entity_type": entity_type, "entity_id": str(entity_id), "reason": "stale_version"},
        )
        raise ConcurrencyConflict(entity_type, str(entity_id), "row version changed") from exc
    except DBAPIError as exc:
        state = sqlstate_of(exc)
        if state not in _RETRYABLE_SQLSTATES:
            raise
        reason = "deadlock detected" if state == DEADLOCK_DETECTED else "serialization failure"
        logger.warning(
            "concurrency_conflict",
            extra={"entity_type": entity_type, "entity_id": str(entity_id), "sqlstate": state},
        )
        raise ConcurrencyConflict(entity_type, str(entity_id), reason) from exc
