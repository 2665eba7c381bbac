"""
pos_engines.receipt_status -- Receiving status derivation.

Responsibility:
    Map the aggregate ordered/received quantities of a purchase order to
    its receiving status.  Status is a pure function of the two sums:

        total_received == 0                     -> approved
        0 < total_received < total_ordered      -> partially_received
        total_received == total_ordered         -> received

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Failure modes:
    - ValueError when total_ordered is not positive, total_received is
      negative, or total_received exceeds total_ordered.  Over-receipt is
      rejected upstream, so reaching the last case means the line store is
      already inconsistent.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from pos_engines.tracer import traced_engine


class ReceiptStatus(str, Enum):
    """Statuses reachable through receiving."""

    APPROVED = "approved"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"


@dataclass(frozen=True)
class ReceiptTotals:
    total_ordered: int
    total_received: int

    @property
    def total_pending(self) -> int:
        return self.total_ordered - self.total_received


def sum_quantities(quantities: Iterable[tuple[int, int]]) -> ReceiptTotals:
    """Sum (quantity_ordered, quantity_received) pairs."""
    ordered = 0
    received = 0
    for q_ordered, q_received in quantities:
        ordered += q_ordered
        received += q_received
    return ReceiptTotals(total_ordered=ordered, total_received=received)


@traced_engine(
    "receipt_status",
    "1.0",
    fingerprint_fields=("total_ordered", "total_received"),
)
def derive_receipt_status(*, total_ordered: int, total_received: int) -> ReceiptStatus:
    """Derive the receiving status from ordered and received totals."""
    if total_ordered <= 0:
        raise ValueError(f"total_ordered must be positive, got {total_ordered}")
    if total_received < 0:
        raise ValueError(f"total_received must not be negative, got {total_received}")
    if total_received > total_ordered:
        raise ValueError(
            f"total_received {total_received} exceeds total_ordered {total_ordered}"
        )

    if total_received == 0:
        return ReceiptStatus.APPROVED
    if total_received < total_ordered:
        return ReceiptStatus.PARTIALLY_RECEIVED
    return ReceiptStatus.RECEIVED
