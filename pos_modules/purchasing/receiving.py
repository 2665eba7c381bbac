"""
Receiving Processor (``pos_modules.purchasing.receiving``).

Responsibility
--------------
Applies incremental received quantities to the line items of an approved
purchase order, raises stock through the inventory collaborator, logs each
accepted line, and recomputes the PO's receiving status.

Invariants enforced
-------------------
* All-or-nothing: every line of a batch is validated before the first
  write.  Any failure, including one raised by the inventory collaborator,
  rolls back the whole batch.
* quantity_received only grows, and never past quantity_ordered.  Deltas
  are additive; repeated lines for the same item within one batch are
  summed for the over-receipt check.
* Item updates, inventory deltas and receipt rows commit in one transaction
  under the PO row lock, so concurrent receipts serialize instead of
  losing increments.
* Status is derived from (sum ordered, sum received) by
  ``pos_engines.receipt_status``; ``delivery_date`` is set exactly once, on
  the transition into ``received``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from pos_engines.receipt_status import derive_receipt_status, sum_quantities
from pos_kernel.db.conflicts import translate_conflicts
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.domain.collaborators import SYSTEM_ACTOR_ID, InventoryMutator
from pos_kernel.exceptions import (
    InvalidQuantityError,
    OverReceiptError,
    PurchaseOrderItemNotFoundError,
    ValidationError,
)
from pos_kernel.logging_config import LogContext, get_logger
from pos_modules.purchasing.locking import lock_purchase_order, require_action, touch
from pos_modules.purchasing.models import POStatus, ReceiveLine, ReceivingResult
from pos_modules.purchasing.orm import PurchaseOrderItemModel, PurchaseOrderReceiptModel

logger = get_logger("modules.purchasing.receiving")

INVENTORY_REASON = "purchase_order_receipt"


def _coerce_line(index: int, raw: ReceiveLine | Mapping[str, Any]) -> ReceiveLine:
    if isinstance(raw, Mapping):
        try:
            raw = ReceiveLine(**raw)
        except TypeError as exc:
            raise ValidationError(f"lines[{index}]: {exc}", field=f"lines[{index}]") from exc
    delta = raw.quantity_delta
    if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
        raise InvalidQuantityError(f"lines[{index}].quantity_delta", delta)
    if raw.notes is not None and not isinstance(raw.notes, str):
        raise ValidationError(f"lines[{index}].notes must be text", field=f"lines[{index}].notes")
    return raw


class ReceivingProcessor:
    """
    Receives goods against purchase orders.

    Contract
    --------
    * ``receive`` owns its transaction: commit on success, rollback and
      re-raise on any exception.
    * The inventory collaborator must write inside the same session
      transaction (flush only).
    """

    def __init__(
        self,
        session: Session,
        inventory: InventoryMutator,
        clock: Clock | None = None,
    ):
        self._session = session
        self._inventory = inventory
        self._clock = clock or SystemClock()

    def receive(
        self,
        po_id: UUID,
        lines: Sequence[ReceiveLine | Mapping[str, Any]],
        received_by: UUID | None = None,
    ) -> ReceivingResult:
        """
        Apply a batch of receive lines to a purchase order.

        Raises:
            ValidationError: empty batch, malformed line.
            InvalidQuantityError: a delta that is not a positive integer.
            PurchaseOrderNotFoundError: unknown PO.
            StateError: PO is not approved or partially_received.
            PurchaseOrderItemNotFoundError: an item id not on this PO.
            OverReceiptError: received + delta would exceed ordered.
            NegativeInventoryError: propagated from the inventory collaborator.
            ConcurrencyConflict: stale version, serialization failure, deadlock.
        """
        actor = received_by or SYSTEM_ACTOR_ID
        try:
            with LogContext.bind(po_id=po_id, actor_id=received_by):
                if not lines:
                    raise ValidationError("At least one receive line is required", field="lines")
                batch = [_coerce_line(index, raw) for index, raw in enumerate(lines)]

                po = lock_purchase_order(self._session, po_id)
                require_action(po, "receive")
                previous = POStatus(po.status)

                items_by_id: dict[UUID, PurchaseOrderItemModel] = {item.id: item for item in po.items}
                pending_delta: dict[UUID, int] = {}
                for line in batch:
                    item = items_by_id.get(line.item_id)
                    if item is None:
                        raise PurchaseOrderItemNotFoundError(str(line.item_id), str(po_id))
                    already = pending_delta.get(item.id, 0)
                    if item.quantity_received + already + line.quantity_delta > item.quantity_ordered:
                        logger.warning(
                            "po_over_receipt_rejected",
                            extra={
                                "item_id": str(item.id),
                                "sku": item.sku,
                                "quantity_ordered": item.quantity_ordered,
                                "quantity_received": item.quantity_received + already,
                                "quantity_delta": line.quantity_delta,
                            },
                        )
                        raise OverReceiptError(
                            str(item.id),
                            item.quantity_ordered,
                            item.quantity_received + already,
                            line.quantity_delta,
                        )
                    pending_delta[item.id] = already + line.quantity_delta

                received_at = self._clock.now()
                receipts: list[PurchaseOrderReceiptModel] = []
                for line in batch:
                    item = items_by_id[line.item_id]
                    item.quantity_received += line.quantity_delta
                    if line.notes is not None:
                        item.notes = line.notes
                    item.updated_by_id = actor
                    stock_after = self._inventory.apply_inventory_delta(
                        item.product_id,
                        line.quantity_delta,
                        reason=INVENTORY_REASON,
                        reference_id=po.id,
                        actor_id=actor,
                    )
                    receipt = PurchaseOrderReceiptModel(
                        id=uuid4(),
                        purchase_order_id=po.id,
                        item_id=item.id,
                        product_id=item.product_id,
                        quantity_delta=line.quantity_delta,
                        stock_after=stock_after,
                        notes=line.notes,
                        received_by=actor,
                        received_at=received_at,
                    )
                    self._session.add(receipt)
                    receipts.append(receipt)

                totals = sum_quantities(
                    (item.quantity_ordered, item.quantity_received) for item in po.items
                )
                status = POStatus(
                    derive_receipt_status(
                        total_ordered=totals.total_ordered,
                        total_received=totals.total_received,
                    ).value
                )
                po.status = status.value
                if status is POStatus.RECEIVED and previous is not POStatus.RECEIVED:
                    po.delivery_date = self._clock.today()
                touch(po, actor)

                with translate_conflicts("purchase_order", po.id):
                    self._session.flush()
                result = ReceivingResult(
                    order=po.to_dto(),
                    previous_status=previous,
                    receipts=tuple(receipt.to_dto() for receipt in receipts),
                )
                with translate_conflicts("purchase_order", po.id):
                    self._session.commit()

                logger.info(
                    "po_receiving_applied",
                    extra={
                        "po_id": str(po_id),
                        "po_number": result.order.po_number,
                        "line_count": len(batch),
                        "units_received": sum(line.quantity_delta for line in batch),
                        "total_ordered": totals.total_ordered,
                        "total_received": totals.total_received,
                        "from_status": previous.value,
                        "to_status": status.value,
                    },
                )
                return result
        except Exception:
            self._session.rollback()
            raise
