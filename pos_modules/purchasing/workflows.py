"""
Purchasing Workflows.

State machine for the purchase order lifecycle.  Services consult
PURCHASE_ORDER_WORKFLOW inside the same transaction that holds the PO row
lock, so a guard check and the write it protects cannot interleave with a
concurrent transition.

    draft -> submitted -> approved -> partially_received -> received -> closed
    draft | submitted | approved -> cancelled

``update`` and ``delete`` are in-state actions on ``draft``.  ``receive``
moves between approved/partially_received/received according to the
derived receipt status.
"""

from pos_kernel.domain.workflow import Guard, Transition, Workflow
from pos_kernel.logging_config import get_logger
from pos_modules.purchasing.models import POStatus

logger = get_logger("modules.purchasing.workflows")

# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ITEMS = Guard(
    name="has_items",
    description="Purchase order carries at least one line item",
)

APPROVER_RECORDED = Guard(
    name="approver_recorded",
    description="Approver identity is supplied and recorded",
)

NO_GOODS_RECEIVED = Guard(
    name="no_goods_received",
    description="No line has any quantity received",
)

RECEIPT_WITHIN_ORDERED = Guard(
    name="receipt_within_ordered",
    description="Received quantity never exceeds ordered quantity",
)

ALL_LINES_RECEIVED = Guard(
    name="all_lines_received",
    description="All PO lines fully received",
)

logger.info(
    "purchasing_workflow_guards_defined",
    extra={
        "guards": [
            HAS_ITEMS.name,
            APPROVER_RECORDED.name,
            NO_GOODS_RECEIVED.name,
            RECEIPT_WITHIN_ORDERED.name,
            ALL_LINES_RECEIVED.name,
        ],
    },
)

# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

_DRAFT = POStatus.DRAFT.value
_SUBMITTED = POStatus.SUBMITTED.value
_APPROVED = POStatus.APPROVED.value
_PARTIAL = POStatus.PARTIALLY_RECEIVED.value
_RECEIVED = POStatus.RECEIVED.value
_CLOSED = POStatus.CLOSED.value
_CANCELLED = POStatus.CANCELLED.value

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order lifecycle from draft through receipt to close",
    initial_state=_DRAFT,
    states=tuple(status.value for status in POStatus),
    transitions=(
        Transition(_DRAFT, _DRAFT, action="update"),
        Transition(_DRAFT, _DRAFT, action="delete"),
        Transition(_DRAFT, _SUBMITTED, action="submit", guard=HAS_ITEMS),
        Transition(_SUBMITTED, _APPROVED, action="approve", guard=APPROVER_RECORDED),
        Transition(_DRAFT, _CANCELLED, action="cancel", guard=NO_GOODS_RECEIVED),
        Transition(_SUBMITTED, _CANCELLED, action="cancel", guard=NO_GOODS_RECEIVED),
        Transition(_APPROVED, _CANCELLED, action="cancel", guard=NO_GOODS_RECEIVED),
        Transition(_APPROVED, _PARTIAL, action="receive", guard=RECEIPT_WITHIN_ORDERED),
        Transition(_APPROVED, _RECEIVED, action="receive", guard=RECEIPT_WITHIN_ORDERED),
        Transition(_PARTIAL, _PARTIAL, action="receive", guard=RECEIPT_WITHIN_ORDERED),
        Transition(_PARTIAL, _RECEIVED, action="receive", guard=RECEIPT_WITHIN_ORDERED),
        Transition(_RECEIVED, _CLOSED, action="close", guard=ALL_LINES_RECEIVED),
    ),
    terminal_states=(_CLOSED, _CANCELLED),
)

logger.info(
    "purchasing_workflow_defined",
    extra={
        "workflow": PURCHASE_ORDER_WORKFLOW.name,
        "states": list(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
    },
)
