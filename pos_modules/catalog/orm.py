"""
SQLAlchemy ORM persistence models for the catalog module.

Vendors and products are maintained elsewhere; purchasing only reads
them (and the inventory module writes ``quantity_in_stock``).  The models
carry just the fields those two modules need.

Invariants enforced
-------------------
* ``sku`` is unique per product.
* ``quantity_in_stock`` is never negative (CHECK constraint plus the
  inventory mutator's own guard).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pos_kernel.db.base import TrackedBase
from pos_kernel.domain.collaborators import ProductRecord, VendorRecord

# ---------------------------------------------------------------------------
# VendorModel
# ---------------------------------------------------------------------------


class VendorModel(TrackedBase):
    """A supplier purchase orders are placed with."""

    __tablename__ = "vendors"

    __table_args__ = (
        Index("idx_vendor_business_name", "business_name"),
    )

    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> VendorRecord:
        return VendorRecord(
            id=self.id,
            business_name=self.business_name,
            contact_person=self.contact_person,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<VendorModel {self.business_name} active={self.is_active}>"


# ---------------------------------------------------------------------------
# ProductModel
# ---------------------------------------------------------------------------


class ProductModel(TrackedBase):
    """A stocked product with its reorder thresholds and default vendor."""

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
        CheckConstraint("quantity_in_stock >= 0", name="ck_product_stock_non_negative"),
        Index("idx_product_vendor", "vendor_id"),
        Index("idx_product_active_stock", "is_active", "quantity_in_stock"),
    )

    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity_in_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reorder_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    vendor_id: Mapped[UUID | None] = mapped_column(ForeignKey("vendors.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            id=self.id,
            sku=self.sku,
            name=self.name,
            quantity_in_stock=self.quantity_in_stock,
            reorder_level=self.reorder_level,
            reorder_quantity=self.reorder_quantity,
            vendor_id=self.vendor_id,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<ProductModel {self.sku} stock={self.quantity_in_stock}>"
