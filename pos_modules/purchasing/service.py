"""
Purchase Order Lifecycle Service (``pos_modules.purchasing.service``).

Responsibility
--------------
Owns the purchase order status machine and every mutation of a PO outside
receiving: create, update, delete, submit, approve, cancel, close.  Totals
are derived by the pure Financial Calculator (``pos_engines.totals``)
after every item or override change.

Architecture position
---------------------
**Modules layer**.  Composes the kernel (sequence counters, conflict
translation, logging), the pure engines, and the vendor/product
collaborator protocols.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on any exception, which is then re-raised unchanged).
* Guards run after the PO row lock is taken, inside the same transaction
  as the write they protect.
* All input is validated before the first mutation.
* total_amount == subtotal + tax_amount + shipping_cost + other_charges
  - discount_amount after every write.
* vendor_id, and once submitted quantity_ordered/unit_cost, never change.

Failure modes
-------------
* ``ValidationError`` and subclasses -- malformed input, unknown or
  inactive vendor, negative amounts.
* ``NotFoundError`` subclasses -- unknown PO, vendor or product.
* ``StateError`` -- action not allowed in the current status.
* ``ConcurrencyConflict`` -- stale version, serialization failure or
  deadlock.

Usage::

    service = PurchaseOrderService(session, vendors, products, clock=clock)
    po = service.create(
        vendor_id=vendor_id,
        items=[LineItemInput(product_id=pid, quantity_ordered=20,
                             unit_cost=Decimal("5.00"), tax_amount=Decimal("4.00"))],
        created_by=actor_id,
    )
    service.submit(po.id, actor_id=actor_id)
    service.approve(po.id, approver_id=manager_id)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from pos_config.schema import PurchasingSettings
from pos_engines.totals import LineAmounts, OrderTotals, calculate_order_totals
from pos_kernel.db.conflicts import translate_conflicts
from pos_kernel.db.types import ZERO, has_excess_precision, to_decimal
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.domain.collaborators import (
    SYSTEM_ACTOR_ID,
    ProductCatalog,
    ProductRecord,
    VendorDirectory,
    VendorRecord,
)
from pos_kernel.exceptions import (
    EmptyItemListError,
    InactiveReferenceError,
    InvalidAmountError,
    InvalidQuantityError,
    ProductNotFoundError,
    StateError,
    ValidationError,
    VendorNotFoundError,
)
from pos_kernel.logging_config import LogContext, get_logger
from pos_modules.purchasing.locking import lock_purchase_order, require_action, touch
from pos_modules.purchasing.models import (
    LineItemInput,
    OrderType,
    POStatus,
    PurchaseOrder,
)
from pos_modules.purchasing.numbering import PONumberAllocator
from pos_modules.purchasing.orm import PurchaseOrderItemModel, PurchaseOrderModel

logger = get_logger("modules.purchasing.service")

OVERRIDE_FIELDS = ("shipping_cost", "other_charges", "discount_amount")

TEXT_FIELDS = ("notes", "shipping_address", "billing_address", "payment_terms")

UPDATABLE_FIELDS = frozenset(
    {"order_type", "expected_delivery_date", *OVERRIDE_FIELDS, *TEXT_FIELDS}
)


def _coerce_order_type(value: OrderType | str) -> OrderType:
    try:
        return OrderType(value)
    except ValueError as exc:
        allowed = ", ".join(t.value for t in OrderType)
        raise ValidationError(
            f"order_type must be one of: {allowed} (got {value!r})",
            field="order_type",
        ) from exc


def _check_quantity(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidQuantityError(field, value)
    return value


def _check_optional_date(field: str, value: Any) -> date | None:
    if value is not None and not isinstance(value, date):
        raise ValidationError(f"{field} must be a date, got {value!r}", field=field)
    return value


def _line_amounts(lines: Sequence[tuple[LineItemInput, ProductRecord]]) -> list[LineAmounts]:
    return [
        LineAmounts(line.quantity_ordered, line.unit_cost, line.tax_amount)
        for line, _ in lines
    ]


def _check_optional_text(field: str, value: Any) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be text, got {type(value).__name__}", field=field)
    return value


class PurchaseOrderService:
    """
    The PO Lifecycle Engine.

    Contract
    --------
    * Every method returns a frozen ``PurchaseOrder`` DTO reflecting the
      committed state (``delete`` returns None).
    * Clock and settings are injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT receive goods; see ``ReceivingProcessor``.
    * Does NOT authorize actors; actor ids are recorded only.
    * Does NOT retry on ``ConcurrencyConflict``; see
      ``pos_services.retry.retry_on_conflict``.
    """

    def __init__(
        self,
        session: Session,
        vendors: VendorDirectory,
        products: ProductCatalog,
        clock: Clock | None = None,
        settings: PurchasingSettings | None = None,
    ):
        self._session = session
        self._vendors = vendors
        self._products = products
        self._clock = clock or SystemClock()
        self._settings = settings or PurchasingSettings()
        self._numbers = PONumberAllocator(session, self._settings)

    # =========================================================================
    # Validation helpers
    # =========================================================================

    def _check_amount(self, field: str, value: Any) -> Decimal:
        try:
            amount = to_decimal(value)
        except (TypeError, ValueError) as exc:
            raise InvalidAmountError(field, value, "must be a decimal amount") from exc
        if amount < ZERO:
            raise InvalidAmountError(field, amount)
        places = self._settings.money_decimal_places
        if has_excess_precision(amount, places):
            raise InvalidAmountError(
                field, amount, f"must have at most {places} decimal places"
            )
        return amount

    def _resolve_vendor(self, vendor_id: UUID) -> VendorRecord:
        vendor = self._vendors.get_vendor(vendor_id)
        if vendor is None:
            raise VendorNotFoundError(str(vendor_id))
        if not vendor.is_active:
            raise InactiveReferenceError("vendor", str(vendor_id))
        return vendor

    def _validate_lines(
        self,
        items: Sequence[LineItemInput | Mapping[str, Any]] | None,
        po_id: UUID | None = None,
    ) -> list[tuple[LineItemInput, ProductRecord]]:
        """Validate every line and resolve its product, before any write."""
        if not items:
            raise EmptyItemListError(str(po_id) if po_id else None)

        resolved: list[tuple[LineItemInput, ProductRecord]] = []
        for index, raw in enumerate(items):
            if isinstance(raw, Mapping):
                try:
                    raw = LineItemInput(**raw)
                except TypeError as exc:
                    raise ValidationError(
                        f"items[{index}]: {exc}", field=f"items[{index}]"
                    ) from exc

            quantity = _check_quantity(f"items[{index}].quantity_ordered", raw.quantity_ordered)
            unit_cost = self._check_amount(f"items[{index}].unit_cost", raw.unit_cost)
            tax = self._check_amount(f"items[{index}].tax_amount", raw.tax_amount)
            notes = _check_optional_text(f"items[{index}].notes", raw.notes)

            product = self._products.get_product(raw.product_id)
            if product is None:
                raise ProductNotFoundError(str(raw.product_id))

            line = LineItemInput(
                product_id=raw.product_id,
                quantity_ordered=quantity,
                unit_cost=unit_cost,
                tax_amount=tax,
                notes=notes,
            )
            resolved.append((line, product))
        return resolved

    def _totals(
        self,
        lines: Sequence[LineAmounts],
        overrides: Mapping[str, Decimal],
    ) -> OrderTotals:
        totals = calculate_order_totals(lines=tuple(lines), **overrides)
        if totals.total_amount < ZERO:
            raise InvalidAmountError("total_amount", totals.total_amount)
        return totals

    @staticmethod
    def _apply_totals(po: PurchaseOrderModel, totals: OrderTotals) -> None:
        po.subtotal = totals.subtotal
        po.tax_amount = totals.tax_amount
        po.shipping_cost = totals.shipping_cost
        po.other_charges = totals.other_charges
        po.discount_amount = totals.discount_amount
        po.total_amount = totals.total_amount

    @staticmethod
    def _item_models(
        lines: Sequence[tuple[LineItemInput, ProductRecord]],
        actor_id: UUID,
    ) -> list[PurchaseOrderItemModel]:
        return [
            PurchaseOrderItemModel(
                id=uuid4(),
                line_number=number,
                product_id=product.id,
                sku=product.sku,
                product_name=product.name,
                quantity_ordered=line.quantity_ordered,
                quantity_received=0,
                unit_cost=line.unit_cost,
                tax_amount=line.tax_amount,
                notes=line.notes,
                created_by_id=actor_id,
            )
            for number, (line, product) in enumerate(lines, start=1)
        ]

    def _flush_and_commit(self, po_id: UUID) -> None:
        with translate_conflicts("purchase_order", po_id):
            self._session.flush()
            self._session.commit()

    # =========================================================================
    # Create / update / delete
    # =========================================================================

    def create(
        self,
        vendor_id: UUID,
        items: Sequence[LineItemInput | Mapping[str, Any]],
        created_by: UUID,
        order_type: OrderType | str = OrderType.STANDARD,
        shipping_cost: Decimal | int | str | None = None,
        other_charges: Decimal | int | str | None = None,
        discount_amount: Decimal | int | str | None = None,
        expected_delivery_date: date | None = None,
        notes: str | None = None,
        shipping_address: str | None = None,
        billing_address: str | None = None,
        payment_terms: str | None = None,
    ) -> PurchaseOrder:
        """
        Create a draft purchase order with at least one line item.

        The PO number is allocated from today's counter in this transaction.
        """
        try:
            with LogContext.bind(actor_id=created_by):
                if created_by is None:
                    raise ValidationError("created_by is required", field="created_by")
                vendor = self._resolve_vendor(vendor_id)
                kind = _coerce_order_type(order_type)
                overrides = {
                    "shipping_cost": self._check_amount("shipping_cost", shipping_cost),
                    "other_charges": self._check_amount("other_charges", other_charges),
                    "discount_amount": self._check_amount("discount_amount", discount_amount),
                }
                _check_optional_date("expected_delivery_date", expected_delivery_date)
                for field, value in (
                    ("notes", notes),
                    ("shipping_address", shipping_address),
                    ("billing_address", billing_address),
                    ("payment_terms", payment_terms),
                ):
                    _check_optional_text(field, value)
                lines = self._validate_lines(items)
                totals = self._totals(_line_amounts(lines), overrides)

                order_date = self._clock.today()
                po_number = self._numbers.allocate(order_date)

                po = PurchaseOrderModel(
                    id=uuid4(),
                    po_number=po_number,
                    vendor_id=vendor.id,
                    order_type=kind.value,
                    status=POStatus.DRAFT.value,
                    order_date=order_date,
                    expected_delivery_date=expected_delivery_date,
                    notes=notes,
                    shipping_address=shipping_address,
                    billing_address=billing_address,
                    payment_terms=payment_terms,
                    created_by_id=created_by,
                )
                po.items = self._item_models(lines, created_by)
                self._apply_totals(po, totals)
                self._session.add(po)

                with translate_conflicts("purchase_order", po.id):
                    self._session.flush()
                dto = po.to_dto()
                self._session.commit()

                logger.info(
                    "po_created",
                    extra={
                        "po_id": str(dto.id),
                        "po_number": dto.po_number,
                        "vendor_id": str(dto.vendor_id),
                        "order_type": dto.order_type.value,
                        "line_count": len(dto.items),
                        "subtotal": str(dto.subtotal),
                        "total_amount": str(dto.total_amount),
                    },
                )
                return dto
        except Exception:
            self._session.rollback()
            raise

    def update(
        self,
        po_id: UUID,
        fields: Mapping[str, Any] | None = None,
        items: Sequence[LineItemInput | Mapping[str, Any]] | None = None,
        actor_id: UUID | None = None,
    ) -> PurchaseOrder:
        """
        Edit a draft purchase order.

        ``fields`` may carry any of UPDATABLE_FIELDS.  ``items``, when given,
        replaces every line (new line numbers, new snapshots) and totals are
        recomputed from scratch.
        """
        changes = dict(fields or {})
        actor = actor_id or SYSTEM_ACTOR_ID
        try:
            with LogContext.bind(po_id=po_id, actor_id=actor_id):
                po = lock_purchase_order(self._session, po_id)
                require_action(po, "update")

                if "vendor_id" in changes:
                    requested = changes.pop("vendor_id")
                    if str(requested) != str(po.vendor_id):
                        raise ValidationError(
                            "vendor_id cannot be changed after creation",
                            field="vendor_id",
                        )
                unknown = sorted(set(changes) - UPDATABLE_FIELDS)
                if unknown:
                    raise ValidationError(
                        f"Unknown or read-only fields: {', '.join(unknown)}",
                        field=unknown[0],
                    )

                if "order_type" in changes:
                    changes["order_type"] = _coerce_order_type(changes["order_type"]).value
                if "expected_delivery_date" in changes:
                    _check_optional_date("expected_delivery_date", changes["expected_delivery_date"])
                for field in TEXT_FIELDS:
                    if field in changes:
                        _check_optional_text(field, changes[field])

                overrides = {
                    field: (
                        self._check_amount(field, changes[field])
                        if field in changes
                        else getattr(po, field)
                    )
                    for field in OVERRIDE_FIELDS
                }

                lines = self._validate_lines(items, po.id) if items is not None else None
                if lines is not None:
                    amounts = _line_amounts(lines)
                else:
                    amounts = [
                        LineAmounts(item.quantity_ordered, item.unit_cost, item.tax_amount)
                        for item in po.items
                    ]
                totals = self._totals(amounts, overrides)

                for field, value in changes.items():
                    if field not in OVERRIDE_FIELDS:
                        setattr(po, field, value)
                if lines is not None:
                    po.items.clear()
                    with translate_conflicts("purchase_order", po.id):
                        self._session.flush()
                    po.items.extend(self._item_models(lines, actor))
                self._apply_totals(po, totals)
                touch(po, actor)

                with translate_conflicts("purchase_order", po.id):
                    self._session.flush()
                dto = po.to_dto()
                self._session.commit()

                logger.info(
                    "po_updated",
                    extra={
                        "po_id": str(dto.id),
                        "po_number": dto.po_number,
                        "fields": sorted(changes),
                        "items_replaced": lines is not None,
                        "total_amount": str(dto.total_amount),
                    },
                )
                return dto
        except Exception:
            self._session.rollback()
            raise

    def delete(self, po_id: UUID, actor_id: UUID | None = None) -> None:
        """Delete a draft purchase order and its items."""
        try:
            with LogContext.bind(po_id=po_id, actor_id=actor_id):
                po = lock_purchase_order(self._session, po_id)
                require_action(po, "delete")
                po_number = po.po_number
                self._session.delete(po)
                self._flush_and_commit(po_id)
                logger.info(
                    "po_deleted",
                    extra={"po_id": str(po_id), "po_number": po_number},
                )
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Status transitions
    # =========================================================================

    def _transition(
        self,
        po_id: UUID,
        action: str,
        actor_id: UUID | None,
        apply: Callable[[PurchaseOrderModel], None],
        event: str,
    ) -> PurchaseOrder:
        try:
            with LogContext.bind(po_id=po_id, actor_id=actor_id):
                po = lock_purchase_order(self._session, po_id)
                require_action(po, action)
                previous = po.status
                apply(po)
                touch(po, actor_id or SYSTEM_ACTOR_ID)

                with translate_conflicts("purchase_order", po.id):
                    self._session.flush()
                dto = po.to_dto()
                self._session.commit()

                logger.info(
                    event,
                    extra={
                        "po_id": str(dto.id),
                        "po_number": dto.po_number,
                        "from_status": previous,
                        "to_status": dto.status.value,
                    },
                )
                return dto
        except Exception:
            self._session.rollback()
            raise

    def submit(self, po_id: UUID, actor_id: UUID | None = None) -> PurchaseOrder:
        """draft -> submitted.  Requires at least one item."""

        def apply(po: PurchaseOrderModel) -> None:
            if not po.items:
                raise EmptyItemListError(str(po.id))
            po.status = POStatus.SUBMITTED.value

        return self._transition(po_id, "submit", actor_id, apply, "po_submitted")

    def approve(self, po_id: UUID, approver_id: UUID) -> PurchaseOrder:
        """submitted -> approved.  Records approver and approval time."""
        if approver_id is None:
            raise ValidationError("approver_id is required", field="approver_id")

        def apply(po: PurchaseOrderModel) -> None:
            po.status = POStatus.APPROVED.value
            po.approved_by = approver_id
            po.approved_at = self._clock.now()

        return self._transition(po_id, "approve", approver_id, apply, "po_approved")

    def cancel(self, po_id: UUID, reason: str, actor_id: UUID | None = None) -> PurchaseOrder:
        """
        draft | submitted | approved -> cancelled.

        Appends ``CANCELLED: <reason>`` to the notes, separated from any
        existing notes by a blank line.
        """
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("A cancellation reason is required", field="reason")
        note = f"{self._settings.cancel_note_prefix}: {reason.strip()}"

        def apply(po: PurchaseOrderModel) -> None:
            if po.total_received > 0:
                raise StateError(str(po.id), po.status, "cancel")
            po.notes = f"{po.notes}\n\n{note}" if po.notes else note
            po.status = POStatus.CANCELLED.value

        return self._transition(po_id, "cancel", actor_id, apply, "po_cancelled")

    def close(self, po_id: UUID, actor_id: UUID | None = None) -> PurchaseOrder:
        """received -> closed."""

        def apply(po: PurchaseOrderModel) -> None:
            if po.total_received != po.total_ordered:
                raise StateError(str(po.id), po.status, "close")
            po.status = POStatus.CLOSED.value

        return self._transition(po_id, "close", actor_id, apply, "po_closed")
