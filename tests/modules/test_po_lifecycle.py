"""
Tests for the purchase order lifecycle service.

Covers:
- Create: totals, numbering, snapshots, reference and amount validation
- Update: draft-only edits, item replacement, immutable vendor
- Delete: draft-only
- Submit / approve / cancel / close transitions and their guards
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from pos_kernel.exceptions import (
    EmptyItemListError,
    InactiveReferenceError,
    InvalidAmountError,
    InvalidQuantityError,
    ProductNotFoundError,
    PurchaseOrderNotFoundError,
    StateError,
    ValidationError,
    VendorNotFoundError,
)
from pos_modules.purchasing.models import OrderType, POStatus, ReceiveLine
from tests.factories import line


class TestCreate:

    def test_worked_example_totals(self, lifecycle, vendor, widget, test_actor_id):
        po = lifecycle.create(
            vendor.id,
            [line(widget, 20, "5.00", tax="4.00")],
            created_by=test_actor_id,
        )

        assert po.status is POStatus.DRAFT
        assert po.subtotal == Decimal("100.00")
        assert po.tax_amount == Decimal("4.00")
        assert po.total_amount == Decimal("104.00")
        assert po.total_ordered == 20
        assert po.total_received == 0

    def test_po_number_and_dates_from_clock(self, lifecycle, vendor, widget, test_actor_id):
        po = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

        assert po.po_number == "PO-20240101-0001"
        assert po.order_date == date(2024, 1, 1)
        assert po.created_by == test_actor_id
        assert po.version == 1

    def test_po_numbers_increase_within_a_day(self, lifecycle, vendor, widget, test_actor_id):
        first = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)
        second = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

        assert first.po_number == "PO-20240101-0001"
        assert second.po_number == "PO-20240101-0002"

    def test_po_numbers_restart_each_day(
        self, lifecycle, vendor, widget, test_actor_id, deterministic_clock
    ):
        lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)
        deterministic_clock.advance_days(1)

        po = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

        assert po.po_number == "PO-20240102-0001"

    def test_items_snapshot_catalog_and_number_lines(
        self, lifecycle, vendor, widget, gadget, test_actor_id
    ):
        po = lifecycle.create(
            vendor.id,
            [line(widget, 10, "5.00", notes="rush"), line(gadget, 5, "2.00")],
            created_by=test_actor_id,
        )

        assert [item.line_number for item in po.items] == [1, 2]
        assert po.items[0].sku == "WID-001"
        assert po.items[0].product_name == "Widget"
        assert po.items[0].notes == "rush"
        assert po.items[1].sku == "GAD-001"
        assert all(item.quantity_received == 0 for item in po.items)

    def test_items_accepted_as_mappings(self, lifecycle, vendor, widget, test_actor_id):
        po = lifecycle.create(
            vendor.id,
            [{"product_id": widget.id, "quantity_ordered": 4, "unit_cost": "2.50"}],
            created_by=test_actor_id,
        )

        assert po.subtotal == Decimal("10.00")

    def test_overrides_and_extra_fields(self, lifecycle, vendor, widget, test_actor_id):
        po = lifecycle.create(
            vendor.id,
            [line(widget, 20, "5.00", tax="4.00")],
            created_by=test_actor_id,
            order_type=OrderType.URGENT,
            shipping_cost="10.00",
            other_charges="2.00",
            discount_amount="6.00",
            expected_delivery_date=date(2024, 1, 15),
            shipping_address="1 Dock Road",
            billing_address="2 Ledger Lane",
            payment_terms="Net 30",
        )

        assert po.total_amount == Decimal("110.00")
        assert po.order_type is OrderType.URGENT
        assert po.expected_delivery_date == date(2024, 1, 15)
        assert po.payment_terms == "Net 30"

    def test_created_event_logged(self, lifecycle, vendor, widget, test_actor_id, captured_logs):
        po = lifecycle.create(vendor.id, [line(widget, 20, "5.00", tax="4.00")], created_by=test_actor_id)

        created = [r for r in captured_logs() if r["message"] == "po_created"]
        assert len(created) == 1
        assert created[0]["po_number"] == po.po_number
        assert created[0]["total_amount"] == "104.00"
        assert created[0]["actor_id"] == str(test_actor_id)


class TestCreateValidation:

    def test_empty_items(self, lifecycle, vendor, test_actor_id):
        with pytest.raises(EmptyItemListError):
            lifecycle.create(vendor.id, [], created_by=test_actor_id)

    @pytest.mark.parametrize("quantity", [0, -3, True, "5"])
    def test_bad_quantity(self, lifecycle, vendor, widget, test_actor_id, quantity):
        with pytest.raises(InvalidQuantityError):
            lifecycle.create(
                vendor.id,
                [{"product_id": widget.id, "quantity_ordered": quantity, "unit_cost": "1.00"}],
                created_by=test_actor_id,
            )

    @pytest.mark.parametrize("unit_cost", ["-1.00", "1.005", 1.5, "abc"])
    def test_bad_unit_cost(self, lifecycle, vendor, widget, test_actor_id, unit_cost):
        with pytest.raises(InvalidAmountError):
            lifecycle.create(
                vendor.id,
                [{"product_id": widget.id, "quantity_ordered": 1, "unit_cost": unit_cost}],
                created_by=test_actor_id,
            )

    @pytest.mark.parametrize("field", ["shipping_cost", "other_charges", "discount_amount"])
    def test_negative_override(self, lifecycle, vendor, widget, test_actor_id, field):
        with pytest.raises(InvalidAmountError) as exc_info:
            lifecycle.create(
                vendor.id,
                [line(widget, 1, "1.00")],
                created_by=test_actor_id,
                **{field: "-0.01"},
            )

        assert exc_info.value.field == field

    def test_discount_larger_than_order(self, lifecycle, vendor, widget, test_actor_id):
        with pytest.raises(InvalidAmountError) as exc_info:
            lifecycle.create(
                vendor.id,
                [line(widget, 1, "1.00")],
                created_by=test_actor_id,
                discount_amount="5.00",
            )

        assert exc_info.value.field == "total_amount"

    def test_unknown_vendor(self, lifecycle, widget, test_actor_id):
        with pytest.raises(VendorNotFoundError):
            lifecycle.create(uuid4(), [line(widget, 1, "1.00")], created_by=test_actor_id)

    def test_inactive_vendor(self, lifecycle, create_vendor, widget, test_actor_id):
        dormant = create_vendor(name="Dormant Ltd", is_active=False)

        with pytest.raises(InactiveReferenceError):
            lifecycle.create(dormant.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

    def test_unknown_product(self, lifecycle, vendor, test_actor_id):
        with pytest.raises(ProductNotFoundError):
            lifecycle.create(
                vendor.id,
                [{"product_id": uuid4(), "quantity_ordered": 1, "unit_cost": "1.00"}],
                created_by=test_actor_id,
            )

    def test_unknown_order_type(self, lifecycle, vendor, widget, test_actor_id):
        with pytest.raises(ValidationError, match="order_type"):
            lifecycle.create(
                vendor.id,
                [line(widget, 1, "1.00")],
                created_by=test_actor_id,
                order_type="express",
            )

    def test_malformed_item_mapping(self, lifecycle, vendor, widget, test_actor_id):
        with pytest.raises(ValidationError, match=r"items\[0\]"):
            lifecycle.create(
                vendor.id,
                [{"product_id": widget.id, "qty": 1}],
                created_by=test_actor_id,
            )

    def test_failed_create_does_not_consume_a_number(self, lifecycle, vendor, widget, test_actor_id):
        with pytest.raises(InvalidAmountError):
            lifecycle.create(
                vendor.id,
                [line(widget, 1, "1.00")],
                created_by=test_actor_id,
                discount_amount="9.00",
            )

        po = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

        assert po.po_number == "PO-20240101-0001"


class TestUpdate:

    @pytest.fixture
    def draft(self, lifecycle, vendor, widget, test_actor_id):
        return lifecycle.create(vendor.id, [line(widget, 20, "5.00", tax="4.00")], created_by=test_actor_id)

    def test_update_overrides_recomputes_total(self, lifecycle, draft, test_actor_id):
        po = lifecycle.update(draft.id, {"shipping_cost": "6.00"}, actor_id=test_actor_id)

        assert po.shipping_cost == Decimal("6.00")
        assert po.total_amount == Decimal("110.00")
        assert po.version > draft.version

    def test_update_text_and_type_fields(self, lifecycle, draft):
        po = lifecycle.update(
            draft.id,
            {
                "notes": "call before delivery",
                "order_type": "drop_ship",
                "expected_delivery_date": date(2024, 2, 1),
            },
        )

        assert po.notes == "call before delivery"
        assert po.order_type is OrderType.DROP_SHIP
        assert po.expected_delivery_date == date(2024, 2, 1)
        assert po.total_amount == draft.total_amount

    def test_replace_items(self, lifecycle, draft, gadget, widget):
        po = lifecycle.update(
            draft.id,
            items=[line(gadget, 3, "2.00"), line(widget, 1, "10.00", tax="1.00")],
        )

        assert [item.sku for item in po.items] == ["GAD-001", "WID-001"]
        assert [item.line_number for item in po.items] == [1, 2]
        assert po.subtotal == Decimal("16.00")
        assert po.tax_amount == Decimal("1.00")
        assert po.total_amount == Decimal("17.00")

    def test_replace_with_empty_items_rejected(self, lifecycle, draft):
        with pytest.raises(EmptyItemListError):
            lifecycle.update(draft.id, items=[])

    def test_vendor_change_rejected(self, lifecycle, draft, create_vendor):
        other = create_vendor(name="Other Co")

        with pytest.raises(ValidationError, match="vendor_id"):
            lifecycle.update(draft.id, {"vendor_id": other.id})

    def test_same_vendor_is_a_no_op(self, lifecycle, draft):
        po = lifecycle.update(draft.id, {"vendor_id": draft.vendor_id, "notes": "same"})

        assert po.vendor_id == draft.vendor_id
        assert po.notes == "same"

    def test_read_only_field_rejected(self, lifecycle, draft):
        with pytest.raises(ValidationError, match="status"):
            lifecycle.update(draft.id, {"status": "approved"})

    def test_update_after_submit_rejected(self, lifecycle, draft):
        lifecycle.submit(draft.id)

        with pytest.raises(StateError) as exc_info:
            lifecycle.update(draft.id, {"notes": "too late"})

        assert exc_info.value.current_status == "submitted"
        assert exc_info.value.allowed == ("draft",)

    def test_failed_update_leaves_po_unchanged(self, lifecycle, orders, draft):
        with pytest.raises(InvalidAmountError):
            lifecycle.update(draft.id, {"notes": "x", "discount_amount": "500.00"})

        current = orders.get(draft.id).order
        assert current.notes is None
        assert current.total_amount == Decimal("104.00")

    def test_unknown_po(self, lifecycle):
        with pytest.raises(PurchaseOrderNotFoundError):
            lifecycle.update(uuid4(), {"notes": "x"})


class TestDelete:

    def test_delete_draft(self, lifecycle, orders, vendor, widget, test_actor_id, captured_logs):
        po = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)

        lifecycle.delete(po.id, actor_id=test_actor_id)

        with pytest.raises(PurchaseOrderNotFoundError):
            orders.get(po.id)
        assert any(r["message"] == "po_deleted" for r in captured_logs())

    def test_delete_submitted_rejected(self, lifecycle, vendor, widget, test_actor_id):
        po = lifecycle.create(vendor.id, [line(widget, 1, "1.00")], created_by=test_actor_id)
        lifecycle.submit(po.id)

        with pytest.raises(StateError):
            lifecycle.delete(po.id)

    def test_delete_missing(self, lifecycle):
        with pytest.raises(PurchaseOrderNotFoundError):
            lifecycle.delete(uuid4())


class TestTransitions:

    @pytest.fixture
    def draft(self, lifecycle, vendor, widget, test_actor_id):
        return lifecycle.create(vendor.id, [line(widget, 10, "5.00")], created_by=test_actor_id)

    def test_submit(self, lifecycle, draft, captured_logs):
        po = lifecycle.submit(draft.id)

        assert po.status is POStatus.SUBMITTED
        event = [r for r in captured_logs() if r["message"] == "po_submitted"][0]
        assert event["from_status"] == "draft"
        assert event["to_status"] == "submitted"

    def test_submit_twice_rejected(self, lifecycle, draft):
        lifecycle.submit(draft.id)

        with pytest.raises(StateError) as exc_info:
            lifecycle.submit(draft.id)

        assert exc_info.value.action == "submit"

    def test_approve_records_approver(self, lifecycle, draft, approver_id, deterministic_clock):
        lifecycle.submit(draft.id)

        po = lifecycle.approve(draft.id, approver_id=approver_id)

        assert po.status is POStatus.APPROVED
        assert po.approved_by == approver_id
        assert po.approved_at == deterministic_clock.now()

    def test_approve_draft_rejected(self, lifecycle, draft, approver_id):
        with pytest.raises(StateError) as exc_info:
            lifecycle.approve(draft.id, approver_id=approver_id)

        assert exc_info.value.allowed == ("submitted",)

    def test_approve_requires_approver(self, lifecycle, draft):
        lifecycle.submit(draft.id)

        with pytest.raises(ValidationError, match="approver_id"):
            lifecycle.approve(draft.id, approver_id=None)

    @pytest.mark.parametrize("steps", [0, 1, 2])
    def test_cancel_before_receiving(self, lifecycle, draft, approver_id, steps):
        if steps >= 1:
            lifecycle.submit(draft.id)
        if steps >= 2:
            lifecycle.approve(draft.id, approver_id=approver_id)

        po = lifecycle.cancel(draft.id, reason="vendor out of stock")

        assert po.status is POStatus.CANCELLED
        assert po.notes == "CANCELLED: vendor out of stock"

    def test_cancel_appends_to_existing_notes(self, lifecycle, draft):
        lifecycle.update(draft.id, {"notes": "first note"})

        po = lifecycle.cancel(draft.id, reason="duplicate")

        assert po.notes == "first note\n\nCANCELLED: duplicate"

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_cancel_requires_reason(self, lifecycle, draft, reason):
        with pytest.raises(ValidationError, match="reason"):
            lifecycle.cancel(draft.id, reason=reason)

    def test_cancel_is_terminal(self, lifecycle, draft):
        lifecycle.cancel(draft.id, reason="no longer needed")

        with pytest.raises(StateError):
            lifecycle.cancel(draft.id, reason="again")
        with pytest.raises(StateError):
            lifecycle.submit(draft.id)

    def test_cancel_after_receiving_rejected(self, lifecycle, receiving, approved_po, widget):
        po = approved_po(line(widget, 10, "5.00"))
        receiving.receive(po.id, [ReceiveLine(po.items[0].id, 4)])

        with pytest.raises(StateError) as exc_info:
            lifecycle.cancel(po.id, reason="too late")

        assert exc_info.value.current_status == "partially_received"

    def test_close_received(self, lifecycle, receiving, approved_po, widget):
        po = approved_po(line(widget, 10, "5.00"))
        receiving.receive(po.id, [ReceiveLine(po.items[0].id, 10)])

        closed = lifecycle.close(po.id)

        assert closed.status is POStatus.CLOSED
        with pytest.raises(StateError):
            receiving.receive(po.id, [ReceiveLine(po.items[0].id, 1)])

    @pytest.mark.parametrize("received", [0, 4])
    def test_close_before_fully_received_rejected(
        self, lifecycle, receiving, approved_po, widget, received
    ):
        po = approved_po(line(widget, 10, "5.00"))
        if received:
            receiving.receive(po.id, [ReceiveLine(po.items[0].id, received)])

        with pytest.raises(StateError) as exc_info:
            lifecycle.close(po.id)

        assert exc_info.value.allowed == ("received",)

    def test_version_advances_on_each_transition(self, lifecycle, draft, approver_id):
        submitted = lifecycle.submit(draft.id)
        approved = lifecycle.approve(draft.id, approver_id=approver_id)

        assert draft.version < submitted.version < approved.version

    def test_transition_on_missing_po(self, lifecycle):
        with pytest.raises(PurchaseOrderNotFoundError):
            lifecycle.submit(uuid4())
