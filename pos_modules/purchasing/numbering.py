"""
Purchase order number allocation (``pos_modules.purchasing.numbering``).

Numbers look like ``PO-20240101-0001``: prefix, order date, and a per-day
sequence.  Each calendar day has its own counter row
(``po_number:YYYYMMDD``) in ``sequence_counters``, locked and incremented in
the creating transaction.  A rolled-back create returns its number.
"""

from datetime import date

from sqlalchemy.orm import Session

from pos_config.schema import PurchasingSettings
from pos_kernel.logging_config import get_logger
from pos_kernel.services.sequence_service import SequenceService

logger = get_logger("modules.purchasing.numbering")

SEQUENCE_PREFIX = "po_number"


def sequence_name_for(order_date: date) -> str:
    return f"{SEQUENCE_PREFIX}:{order_date:%Y%m%d}"


def format_po_number(prefix: str, order_date: date, sequence: int, width: int = 4) -> str:
    """``format_po_number("PO", date(2024, 1, 1), 7)`` -> ``"PO-20240101-0007"``."""
    return f"{prefix}-{order_date:%Y%m%d}-{sequence:0{width}d}"


class PONumberAllocator:
    """Allocates the next purchase order number for a given order date."""

    def __init__(self, session: Session, settings: PurchasingSettings | None = None):
        self._sequences = SequenceService(session)
        self._settings = settings or PurchasingSettings()

    def allocate(self, order_date: date) -> str:
        sequence = self._sequences.next_value(sequence_name_for(order_date))
        po_number = format_po_number(
            self._settings.po_number_prefix,
            order_date,
            sequence,
            self._settings.po_sequence_width,
        )
        logger.debug(
            "po_number_allocated",
            extra={"po_number": po_number, "sequence": sequence},
        )
        return po_number
