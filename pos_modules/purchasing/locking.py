"""
Row locking and guard helpers shared by the purchasing write services.

Every mutating operation starts with ``lock_purchase_order``: it takes
``SELECT ... FOR UPDATE`` on the PO row and then on its item rows, in that
order, so two transactions on the same PO always queue on the PO row first
and never deadlock on the items.  ``populate_existing`` refreshes any stale
copies already in the session's identity map.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from pos_kernel.exceptions import PurchaseOrderNotFoundError, StateError
from pos_kernel.logging_config import get_logger
from pos_modules.purchasing.orm import PurchaseOrderItemModel, PurchaseOrderModel
from pos_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

logger = get_logger("modules.purchasing.locking")


def lock_purchase_order(session: Session, po_id: UUID) -> PurchaseOrderModel:
    """Lock and return the PO and its items.

    Raises:
        PurchaseOrderNotFoundError: no PO with this id.
    """
    po = session.execute(
        select(PurchaseOrderModel)
        .where(PurchaseOrderModel.id == po_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if po is None:
        raise PurchaseOrderNotFoundError(str(po_id))

    session.execute(
        select(PurchaseOrderItemModel)
        .where(PurchaseOrderItemModel.purchase_order_id == po_id)
        .order_by(PurchaseOrderItemModel.line_number)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().all()
    return po


def require_action(po: PurchaseOrderModel, action: str) -> None:
    """Raise StateError unless ``action`` is allowed from the PO's status."""
    if PURCHASE_ORDER_WORKFLOW.find_transition(po.status, action) is not None:
        return
    allowed = PURCHASE_ORDER_WORKFLOW.states_allowing(action)
    logger.warning(
        "po_action_rejected",
        extra={
            "po_id": str(po.id),
            "po_number": po.po_number,
            "status": po.status,
            "action": action,
        },
    )
    raise StateError(str(po.id), po.status, action, allowed)


def touch(po: PurchaseOrderModel, actor_id: UUID) -> None:
    """Mark the PO row dirty so its version advances with this write."""
    po.updated_by_id = actor_id
    flag_modified(po, "status")
