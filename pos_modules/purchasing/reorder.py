"""
Reorder Suggestion Service (``pos_modules.purchasing.reorder``).

Gathers active products at or below their reorder level together with
their vendor and last known purchase cost, then hands them to the pure
grouping engine (``pos_engines.reorder``).  Read-only and lock-free; the
result is advisory and may trail concurrent receiving.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_config.schema import PurchasingSettings
from pos_engines.reorder import (
    ReorderCandidate,
    ReorderSuggestionsByVendor,
    group_reorder_suggestions,
)
from pos_kernel.logging_config import get_logger
from pos_kernel.selectors.base import BaseSelector
from pos_modules.catalog.orm import ProductModel, VendorModel
from pos_modules.purchasing.selectors import PurchaseOrderSelector

logger = get_logger("modules.purchasing.reorder")


class ReorderSuggestionService(BaseSelector[ProductModel]):
    """Produces vendor-grouped restock proposals."""

    def __init__(self, session: Session, settings: PurchasingSettings | None = None):
        super().__init__(session)
        self._settings = settings or PurchasingSettings()
        self._orders = PurchaseOrderSelector(session, self._settings)

    def get_reorder_suggestions(self) -> tuple[ReorderSuggestionsByVendor, ...]:
        """
        Vendors sorted by name, products by SKU.

        Products without a vendor are excluded; so are products of
        inactive vendors when ``reorder_require_active_vendor`` is set.
        """
        query = (
            select(
                ProductModel.id,
                ProductModel.sku,
                ProductModel.name,
                ProductModel.quantity_in_stock,
                ProductModel.reorder_level,
                ProductModel.reorder_quantity,
                ProductModel.vendor_id,
                VendorModel.business_name,
                VendorModel.contact_person,
            )
            .join(VendorModel, VendorModel.id == ProductModel.vendor_id)
            .where(
                ProductModel.is_active.is_(True),
                ProductModel.quantity_in_stock <= ProductModel.reorder_level,
            )
        )
        if self._settings.reorder_require_active_vendor:
            query = query.where(VendorModel.is_active.is_(True))

        rows = self.session.execute(query).all()
        costs = self._orders.last_unit_costs(row.id for row in rows)

        candidates = tuple(
            ReorderCandidate(
                product_id=row.id,
                sku=row.sku,
                product_name=row.name,
                quantity_in_stock=row.quantity_in_stock,
                reorder_level=row.reorder_level,
                reorder_quantity=row.reorder_quantity,
                vendor_id=row.vendor_id,
                vendor_name=row.business_name,
                vendor_contact=row.contact_person,
                unit_cost=costs.get(row.id),
            )
            for row in rows
        )
        groups = group_reorder_suggestions(candidates=candidates)

        logger.info(
            "reorder_suggestions_generated",
            extra={
                "vendor_count": len(groups),
                "product_count": sum(group.total_items for group in groups),
                "unknown_cost_vendors": sum(1 for group in groups if group.has_unknown_costs),
            },
        )
        return groups
