"""
Purchase order read path (``pos_modules.purchasing.selectors``).

Read-only queries returning frozen DTOs: a single PO with its items and
vendor display fields, a filtered and paged listing, and the last known
purchase cost per product.  No locks are taken.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_config.schema import PurchasingSettings
from pos_kernel.exceptions import PurchaseOrderNotFoundError, ValidationError
from pos_kernel.selectors.base import BaseSelector
from pos_modules.catalog.orm import VendorModel
from pos_modules.purchasing.models import (
    OrderType,
    POStatus,
    PurchaseOrderDetail,
    PurchaseOrderFilters,
    PurchaseOrderPage,
    PurchaseOrderSummary,
)
from pos_modules.purchasing.orm import PurchaseOrderItemModel, PurchaseOrderModel


def _filter_value(field: str, enum_cls, value) -> str:
    try:
        return enum_cls(value).value
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {allowed} (got {value!r})",
            field=field,
        ) from exc


class PurchaseOrderSelector(BaseSelector[PurchaseOrderModel]):
    """Queries over purchase orders and their items."""

    def __init__(self, session: Session, settings: PurchasingSettings | None = None):
        super().__init__(session)
        self._settings = settings or PurchasingSettings()

    def get(self, po_id: UUID) -> PurchaseOrderDetail:
        """
        Return the PO with items, vendor name and vendor contact.

        Raises:
            PurchaseOrderNotFoundError: no PO with this id.
        """
        row = self.session.execute(
            select(PurchaseOrderModel, VendorModel.business_name, VendorModel.contact_person)
            .join(VendorModel, VendorModel.id == PurchaseOrderModel.vendor_id)
            .where(PurchaseOrderModel.id == po_id)
            .execution_options(populate_existing=True)
        ).one_or_none()
        if row is None:
            raise PurchaseOrderNotFoundError(str(po_id))
        po, vendor_name, vendor_contact = row
        return PurchaseOrderDetail(
            order=po.to_dto(),
            vendor_name=vendor_name,
            vendor_contact=vendor_contact,
        )

    def _resolve_paging(self, filters: PurchaseOrderFilters) -> tuple[int, int]:
        page = filters.page
        limit = filters.limit if filters.limit is not None else self._settings.default_page_size
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError(f"page must be a positive integer, got {page!r}", field="page")
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= self._settings.max_page_size
        ):
            raise ValidationError(
                f"limit must be between 1 and {self._settings.max_page_size}, got {limit!r}",
                field="limit",
            )
        return page, limit

    def list(self, filters: PurchaseOrderFilters | None = None) -> PurchaseOrderPage:
        """
        List purchase orders, newest first.

        Ordered by order_date desc, then created_at desc, then po_number
        desc.  ``search`` is a case-insensitive substring match on the PO
        number.
        """
        filters = filters or PurchaseOrderFilters()
        page, limit = self._resolve_paging(filters)

        conditions = []
        if filters.vendor_id is not None:
            conditions.append(PurchaseOrderModel.vendor_id == filters.vendor_id)
        if filters.status is not None:
            conditions.append(
                PurchaseOrderModel.status == _filter_value("status", POStatus, filters.status)
            )
        if filters.order_type is not None:
            conditions.append(
                PurchaseOrderModel.order_type
                == _filter_value("order_type", OrderType, filters.order_type)
            )
        if filters.start_date is not None:
            conditions.append(PurchaseOrderModel.order_date >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(PurchaseOrderModel.order_date <= filters.end_date)
        if filters.search:
            conditions.append(
                PurchaseOrderModel.po_number.icontains(filters.search.strip(), autoescape=True)
            )

        total = self.session.execute(
            select(func.count(PurchaseOrderModel.id)).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(
                PurchaseOrderModel.id,
                PurchaseOrderModel.po_number,
                PurchaseOrderModel.vendor_id,
                VendorModel.business_name,
                PurchaseOrderModel.order_type,
                PurchaseOrderModel.status,
                PurchaseOrderModel.order_date,
                PurchaseOrderModel.expected_delivery_date,
                PurchaseOrderModel.delivery_date,
                PurchaseOrderModel.total_amount,
                PurchaseOrderModel.created_by_id,
            )
            .join(VendorModel, VendorModel.id == PurchaseOrderModel.vendor_id)
            .where(*conditions)
            .order_by(
                PurchaseOrderModel.order_date.desc(),
                PurchaseOrderModel.created_at.desc(),
                PurchaseOrderModel.po_number.desc(),
            )
            .limit(limit)
            .offset((page - 1) * limit)
        ).all()

        items = tuple(
            PurchaseOrderSummary(
                id=row.id,
                po_number=row.po_number,
                vendor_id=row.vendor_id,
                vendor_name=row.business_name,
                order_type=OrderType(row.order_type),
                status=POStatus(row.status),
                order_date=row.order_date,
                expected_delivery_date=row.expected_delivery_date,
                delivery_date=row.delivery_date,
                total_amount=row.total_amount,
                created_by=row.created_by_id,
            )
            for row in rows
        )
        return PurchaseOrderPage(
            items=items,
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def last_unit_costs(self, product_ids: Iterable[UUID]) -> dict[UUID, Decimal]:
        """
        Most recent purchase unit cost per product.

        "Most recent" is the line on the PO with the latest order_date,
        ties broken by po_number and then line_number (both increase with
        allocation order).  Products never purchased are absent from the
        result.
        """
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}

        ranked = (
            select(
                PurchaseOrderItemModel.product_id.label("product_id"),
                PurchaseOrderItemModel.unit_cost.label("unit_cost"),
                func.row_number()
                .over(
                    partition_by=PurchaseOrderItemModel.product_id,
                    order_by=(
                        PurchaseOrderModel.order_date.desc(),
                        PurchaseOrderModel.po_number.desc(),
                        PurchaseOrderItemModel.line_number.desc(),
                    ),
                )
                .label("rank"),
            )
            .join(PurchaseOrderModel, PurchaseOrderModel.id == PurchaseOrderItemModel.purchase_order_id)
            .where(PurchaseOrderItemModel.product_id.in_(ids))
            .subquery()
        )
        rows = self.session.execute(
            select(ranked.c.product_id, ranked.c.unit_cost).where(ranked.c.rank == 1)
        ).all()
        return {row.product_id: row.unit_cost for row in rows}

    def last_unit_cost(self, product_id: UUID) -> Decimal | None:
        return self.last_unit_costs([product_id]).get(product_id)
