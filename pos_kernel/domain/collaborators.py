"""
Collaborator interfaces consumed by the purchasing engine.

The engine reads vendors and products and writes stock through these
protocols only.  The catalog and inventory modules provide SQL-backed
implementations; tests may substitute in-memory fakes.

Identity is not a collaborator here: ``created_by``/``approved_by`` are
opaque UUIDs supplied by the caller and only recorded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

# Recorded as the actor when a caller supplies none.
SYSTEM_ACTOR_ID = UUID(int=0)


@dataclass(frozen=True)
class VendorRecord:
    """Vendor fields the purchasing engine reads."""
    id: UUID
    business_name: str
    contact_person: str | None
    is_active: bool


@dataclass(frozen=True)
class ProductRecord:
    """Product fields the purchasing engine reads."""
    id: UUID
    sku: str
    name: str
    quantity_in_stock: int
    reorder_level: int
    reorder_quantity: int
    vendor_id: UUID | None
    is_active: bool


class VendorDirectory(Protocol):
    """Vendor lookups."""

    def get_vendor(self, vendor_id: UUID) -> VendorRecord | None:
        """Return the vendor, or None if it does not exist."""
        ...


class ProductCatalog(Protocol):
    """Product lookups."""

    def get_product(self, product_id: UUID) -> ProductRecord | None:
        """Return the product, or None if it does not exist."""
        ...


class InventoryMutator(Protocol):
    """Stock counter writes.

    Implementations apply the delta inside the caller's transaction and
    raise NegativeInventoryError rather than let stock drop below zero.
    """

    def apply_inventory_delta(
        self,
        product_id: UUID,
        delta: int,
        *,
        reason: str = "",
        reference_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """Apply ``delta`` to the product's stock and return the new quantity."""
        ...
