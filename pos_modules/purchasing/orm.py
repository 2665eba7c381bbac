"""
SQLAlchemy ORM persistence models for the purchasing module.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by the purchasing services and
selectors.  Inherit from ``TrackedBase`` / ``Base`` (kernel db layer).

Invariants enforced
-------------------
* All monetary fields are ``Decimal`` (Numeric(12,2)) -- NEVER float.
* Enum fields stored as String(50).
* ``po_number`` is unique.
* Line items: quantity_ordered > 0, 0 <= quantity_received <= quantity_ordered,
  unit_cost >= 0 (CHECK constraints back the service-level validation).
* ``quantity_pending`` and ``line_total`` are computed on read, never stored.
* ``PurchaseOrderModel.version`` is the optimistic version counter; a flush
  against a stale version raises ``StaleDataError``.
* ``PurchaseOrderReceiptModel`` rows are append-only.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_kernel.db.base import Base, TrackedBase

# ---------------------------------------------------------------------------
# PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """
    A purchase order.

    Maps to the ``PurchaseOrder`` DTO in ``pos_modules.purchasing.models``.

    Guarantees:
        - ``status`` follows PURCHASE_ORDER_WORKFLOW.
        - ``vendor_id`` never changes after insert.
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("po_number", name="uq_po_number"),
        CheckConstraint("shipping_cost >= 0", name="ck_po_shipping_non_negative"),
        CheckConstraint("other_charges >= 0", name="ck_po_other_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_po_discount_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_po_total_non_negative"),
        Index("idx_po_vendor", "vendor_id"),
        Index("idx_po_status", "status"),
        Index("idx_po_order_date", "order_date"),
    )

    po_number: Mapped[str] = mapped_column(String(50), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(ForeignKey("vendors.id"), nullable=False)
    order_type: Mapped[str] = mapped_column(String(50), nullable=False, default="standard")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")

    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    shipping_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    other_charges: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    discount_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    approved_by: Mapped[UUID | None]
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    billing_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    items: Mapped[list["PurchaseOrderItemModel"]] = relationship(
        "PurchaseOrderItemModel",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItemModel.line_number",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def total_ordered(self) -> int:
        return sum(item.quantity_ordered for item in self.items)

    @property
    def total_received(self) -> int:
        return sum(item.quantity_received for item in self.items)

    def to_dto(self):
        from pos_modules.purchasing.models import OrderType, POStatus, PurchaseOrder

        return PurchaseOrder(
            id=self.id,
            po_number=self.po_number,
            vendor_id=self.vendor_id,
            order_type=OrderType(self.order_type),
            status=POStatus(self.status),
            order_date=self.order_date,
            created_by=self.created_by_id,
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            shipping_cost=self.shipping_cost,
            other_charges=self.other_charges,
            discount_amount=self.discount_amount,
            total_amount=self.total_amount,
            expected_delivery_date=self.expected_delivery_date,
            delivery_date=self.delivery_date,
            approved_by=self.approved_by,
            approved_at=self.approved_at,
            notes=self.notes,
            shipping_address=self.shipping_address,
            billing_address=self.billing_address,
            payment_terms=self.payment_terms,
            version=self.version,
            items=tuple(item.to_dto() for item in self.items),
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.po_number} [{self.status}]>"


# ---------------------------------------------------------------------------
# PurchaseOrderItemModel
# ---------------------------------------------------------------------------


class PurchaseOrderItemModel(TrackedBase):
    """
    A line item on a purchase order.

    ``sku`` and ``product_name`` are snapshots taken when the line is
    created; later catalog edits do not rewrite them.
    """

    __tablename__ = "purchase_order_items"

    __table_args__ = (
        UniqueConstraint("purchase_order_id", "line_number", name="uq_po_item_line_number"),
        CheckConstraint("quantity_ordered > 0", name="ck_po_item_qty_positive"),
        CheckConstraint("quantity_received >= 0", name="ck_po_item_received_non_negative"),
        CheckConstraint(
            "quantity_received <= quantity_ordered",
            name="ck_po_item_no_over_receipt",
        ),
        CheckConstraint("unit_cost >= 0", name="ck_po_item_cost_non_negative"),
        CheckConstraint("tax_amount >= 0", name="ck_po_item_tax_non_negative"),
        Index("idx_po_item_po", "purchase_order_id"),
        Index("idx_po_item_product", "product_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity_ordered: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    purchase_order: Mapped["PurchaseOrderModel"] = relationship(
        "PurchaseOrderModel",
        back_populates="items",
    )

    @property
    def quantity_pending(self) -> int:
        return self.quantity_ordered - self.quantity_received

    @property
    def line_total(self) -> Decimal:
        return self.unit_cost * self.quantity_ordered + self.tax_amount

    def to_dto(self):
        from pos_modules.purchasing.models import PurchaseOrderItem

        return PurchaseOrderItem(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            line_number=self.line_number,
            product_id=self.product_id,
            sku=self.sku,
            product_name=self.product_name,
            quantity_ordered=self.quantity_ordered,
            quantity_received=self.quantity_received,
            unit_cost=self.unit_cost,
            tax_amount=self.tax_amount,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<PurchaseOrderItemModel {self.sku} "
            f"{self.quantity_received}/{self.quantity_ordered}>"
        )


# ---------------------------------------------------------------------------
# PurchaseOrderReceiptModel
# ---------------------------------------------------------------------------


class PurchaseOrderReceiptModel(Base):
    """
    Append-only log of accepted receive lines.

    Written in the same transaction as the item update and the inventory
    delta, so ``sum(quantity_delta)`` per item always equals the item's
    ``quantity_received``.
    """

    __tablename__ = "purchase_order_receipts"

    __table_args__ = (
        CheckConstraint("quantity_delta > 0", name="ck_po_receipt_delta_positive"),
        Index("idx_po_receipt_po", "purchase_order_id"),
        Index("idx_po_receipt_item", "item_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False,
    )
    item_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_order_items.id", ondelete="CASCADE"), nullable=False,
    )
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_by: Mapped[UUID] = mapped_column(nullable=False)
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_dto(self):
        from pos_modules.purchasing.models import ReceiptRecord

        return ReceiptRecord(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            item_id=self.item_id,
            product_id=self.product_id,
            quantity_delta=self.quantity_delta,
            stock_after=self.stock_after,
            received_by=self.received_by,
            received_at=self.received_at,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderReceiptModel item={self.item_id} +{self.quantity_delta}>"
