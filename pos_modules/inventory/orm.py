"""
SQLAlchemy ORM persistence models for the inventory module.

``InventoryAdjustmentModel`` is the append-only log of every stock change
applied through the inventory mutator.  Rows are written in the same
transaction as the stock update, so the log and ``products.quantity_in_stock``
can never disagree.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pos_kernel.db.base import TrackedBase


class InventoryAdjustmentModel(TrackedBase):
    """
    One applied stock delta.

    Guarantees:
        - quantity_after == quantity_before + quantity_change.
        - quantity_after is never negative.
    """

    __tablename__ = "inventory_adjustments"

    __table_args__ = (
        CheckConstraint("quantity_after >= 0", name="ck_inv_adj_non_negative"),
        CheckConstraint(
            "quantity_after = quantity_before + quantity_change",
            name="ck_inv_adj_balanced",
        ),
        Index("idx_inv_adj_product", "product_id"),
        Index("idx_inv_adj_reference", "reference_id"),
    )

    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_before: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    reference_id: Mapped[UUID | None] = mapped_column(nullable=True)
    adjusted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryAdjustmentModel product={self.product_id} "
            f"{self.quantity_before}->{self.quantity_after} reason={self.reason}>"
        )
