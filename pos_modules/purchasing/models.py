"""
Purchasing Domain Models.

The nouns of purchasing: purchase orders, their line items, receipts, and
the inputs callers hand to the lifecycle and receiving services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pos_engines.reorder import ReorderSuggestion, ReorderSuggestionsByVendor
from pos_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.models")


class POStatus(str, Enum):
    """Purchase order lifecycle states."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    STANDARD = "standard"
    URGENT = "urgent"
    DROP_SHIP = "drop_ship"


# -----------------------------------------------------------------------------
# Caller inputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class LineItemInput:
    """A line item as supplied on create or on a full item replacement."""
    product_id: UUID
    quantity_ordered: int
    unit_cost: Decimal
    tax_amount: Decimal = Decimal("0")
    notes: str | None = None


@dataclass(frozen=True)
class ReceiveLine:
    """An incremental receipt against one line item.

    ``quantity_delta`` is additive: sending the same line twice receives
    twice.
    """
    item_id: UUID
    quantity_delta: int
    notes: str | None = None


@dataclass(frozen=True)
class PurchaseOrderFilters:
    """Filters for listing purchase orders.  ``None`` means unfiltered."""
    vendor_id: UUID | None = None
    status: POStatus | None = None
    order_type: OrderType | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None
    page: int = 1
    limit: int | None = None


# -----------------------------------------------------------------------------
# Read models
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PurchaseOrderItem:
    """A line item with its derived quantities and amounts."""
    id: UUID
    purchase_order_id: UUID
    line_number: int
    product_id: UUID
    sku: str
    product_name: str
    quantity_ordered: int
    quantity_received: int
    unit_cost: Decimal
    tax_amount: Decimal = Decimal("0")
    notes: str | None = None

    def __post_init__(self):
        if not 0 <= self.quantity_received <= self.quantity_ordered:
            logger.warning(
                "po_item_quantity_out_of_range",
                extra={
                    "item_id": str(self.id),
                    "quantity_ordered": self.quantity_ordered,
                    "quantity_received": self.quantity_received,
                },
            )
            raise ValueError(
                f"quantity_received ({self.quantity_received}) must be between "
                f"0 and quantity_ordered ({self.quantity_ordered})"
            )

    @property
    def quantity_pending(self) -> int:
        return self.quantity_ordered - self.quantity_received

    @property
    def line_total(self) -> Decimal:
        return self.unit_cost * self.quantity_ordered + self.tax_amount


@dataclass(frozen=True)
class PurchaseOrder:
    """A purchase order with its items."""
    id: UUID
    po_number: str
    vendor_id: UUID
    order_type: OrderType
    status: POStatus
    order_date: date
    created_by: UUID
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    other_charges: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    expected_delivery_date: date | None = None
    delivery_date: date | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    notes: str | None = None
    shipping_address: str | None = None
    billing_address: str | None = None
    payment_terms: str | None = None
    version: int = 1
    items: tuple[PurchaseOrderItem, ...] = field(default_factory=tuple)

    @property
    def total_ordered(self) -> int:
        return sum(item.quantity_ordered for item in self.items)

    @property
    def total_received(self) -> int:
        return sum(item.quantity_received for item in self.items)

    @property
    def total_pending(self) -> int:
        return self.total_ordered - self.total_received


@dataclass(frozen=True)
class PurchaseOrderDetail:
    """A purchase order with the vendor display fields."""
    order: PurchaseOrder
    vendor_name: str
    vendor_contact: str | None = None


@dataclass(frozen=True)
class PurchaseOrderSummary:
    """One row of a purchase order listing."""
    id: UUID
    po_number: str
    vendor_id: UUID
    vendor_name: str
    order_type: OrderType
    status: POStatus
    order_date: date
    expected_delivery_date: date | None
    delivery_date: date | None
    total_amount: Decimal
    created_by: UUID


@dataclass(frozen=True)
class PurchaseOrderPage:
    items: tuple[PurchaseOrderSummary, ...]
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class ReceiptRecord:
    """One accepted receive line, as logged."""
    id: UUID
    purchase_order_id: UUID
    item_id: UUID
    product_id: UUID
    quantity_delta: int
    stock_after: int
    received_by: UUID
    received_at: datetime
    notes: str | None = None


@dataclass(frozen=True)
class ReceivingResult:
    """Outcome of a receiving batch."""
    order: PurchaseOrder
    previous_status: POStatus
    receipts: tuple[ReceiptRecord, ...]

    @property
    def status(self) -> POStatus:
        return self.order.status

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.order.status


__all__ = [
    "LineItemInput",
    "OrderType",
    "POStatus",
    "PurchaseOrder",
    "PurchaseOrderDetail",
    "PurchaseOrderFilters",
    "PurchaseOrderItem",
    "PurchaseOrderPage",
    "PurchaseOrderSummary",
    "ReceiptRecord",
    "ReceiveLine",
    "ReceivingResult",
    "ReorderSuggestion",
    "ReorderSuggestionsByVendor",
]
