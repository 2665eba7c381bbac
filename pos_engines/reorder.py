"""
pos_engines.reorder -- Reorder suggestion grouping.

Responsibility:
    Turn a flat list of product rows (with their vendor and last known
    purchase cost already resolved) into vendor-grouped restock proposals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The purchasing module's
    ReorderSuggestionService gathers the candidates; this module decides
    which of them are suggested and how they are grouped.

Rules:
    - A product is suggested when quantity_in_stock <= reorder_level
      (the boundary is inclusive).
    - Products with no vendor are excluded.
    - Vendors are ordered by name, products within a vendor by SKU.
    - total_items counts suggestions; estimated_total sums
      reorder_quantity * unit_cost with an unknown cost counted as zero.
      Groups containing an unknown cost are flagged with
      ``has_unknown_costs`` so the estimate is not mistaken for complete.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from pos_engines.tracer import traced_engine
from pos_kernel.db.types import ZERO, round_money


@dataclass(frozen=True)
class ReorderCandidate:
    """One active product row with its vendor and last purchase cost."""

    product_id: UUID
    sku: str
    product_name: str
    quantity_in_stock: int
    reorder_level: int
    reorder_quantity: int
    vendor_id: UUID | None
    vendor_name: str | None = None
    vendor_contact: str | None = None
    unit_cost: Decimal | None = None

    @property
    def needs_reorder(self) -> bool:
        return self.quantity_in_stock <= self.reorder_level


@dataclass(frozen=True)
class ReorderSuggestion:
    product_id: UUID
    sku: str
    product_name: str
    quantity_in_stock: int
    reorder_level: int
    reorder_quantity: int
    vendor_id: UUID
    vendor_name: str
    unit_cost: Decimal | None

    @property
    def estimated_cost(self) -> Decimal:
        if self.unit_cost is None:
            return ZERO
        return self.unit_cost * self.reorder_quantity


@dataclass(frozen=True)
class ReorderSuggestionsByVendor:
    vendor_id: UUID
    vendor_name: str
    vendor_contact: str | None
    products: tuple[ReorderSuggestion, ...]
    total_items: int
    estimated_total: Decimal
    has_unknown_costs: bool


def _to_suggestion(candidate: ReorderCandidate) -> ReorderSuggestion:
    return ReorderSuggestion(
        product_id=candidate.product_id,
        sku=candidate.sku,
        product_name=candidate.product_name,
        quantity_in_stock=candidate.quantity_in_stock,
        reorder_level=candidate.reorder_level,
        reorder_quantity=candidate.reorder_quantity,
        vendor_id=candidate.vendor_id,
        vendor_name=candidate.vendor_name or "",
        unit_cost=candidate.unit_cost,
    )


@traced_engine("reorder_suggestions", "1.0", fingerprint_fields=("candidates",))
def group_reorder_suggestions(
    *,
    candidates: Sequence[ReorderCandidate],
) -> tuple[ReorderSuggestionsByVendor, ...]:
    """Filter understocked candidates and group them by vendor."""
    by_vendor: dict[UUID, list[ReorderCandidate]] = {}
    for candidate in candidates:
        if candidate.vendor_id is None or not candidate.needs_reorder:
            continue
        by_vendor.setdefault(candidate.vendor_id, []).append(candidate)

    groups: list[ReorderSuggestionsByVendor] = []
    for vendor_id, members in by_vendor.items():
        members.sort(key=lambda c: (c.sku, str(c.product_id)))
        suggestions = tuple(_to_suggestion(c) for c in members)
        estimated = sum((s.estimated_cost for s in suggestions), ZERO)
        groups.append(
            ReorderSuggestionsByVendor(
                vendor_id=vendor_id,
                vendor_name=members[0].vendor_name or "",
                vendor_contact=members[0].vendor_contact,
                products=suggestions,
                total_items=len(suggestions),
                estimated_total=round_money(estimated),
                has_unknown_costs=any(s.unit_cost is None for s in suggestions),
            )
        )

    groups.sort(key=lambda g: (g.vendor_name.lower(), str(g.vendor_id)))
    return tuple(groups)
