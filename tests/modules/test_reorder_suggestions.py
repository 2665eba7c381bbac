"""
Tests for the reorder suggestion service.

Products at or below their reorder level are grouped by vendor with an
estimated cost from the last purchase price.
"""

from decimal import Decimal

from pos_config.schema import PurchasingSettings
from pos_modules.purchasing.reorder import ReorderSuggestionService
from tests.factories import line


class TestReorderSuggestions:

    def test_threshold_is_inclusive(self, reorder_service, create_product, vendor):
        create_product("AT-LEVEL", vendor=vendor, stock=5, reorder_level=5, reorder_quantity=10)
        create_product("BELOW", vendor=vendor, stock=1, reorder_level=5, reorder_quantity=10)
        create_product("ABOVE", vendor=vendor, stock=6, reorder_level=5, reorder_quantity=10)

        groups = reorder_service.get_reorder_suggestions()

        assert [p.sku for p in groups[0].products] == ["AT-LEVEL", "BELOW"]

    def test_estimated_cost_from_last_purchase(
        self, reorder_service, lifecycle, create_product, vendor, test_actor_id
    ):
        bolt = create_product("BOLT", vendor=vendor, stock=0, reorder_level=10, reorder_quantity=50)
        lifecycle.create(vendor.id, [line(bolt, 5, "2.00")], created_by=test_actor_id)

        groups = reorder_service.get_reorder_suggestions()

        suggestion = groups[0].products[0]
        assert suggestion.unit_cost == Decimal("2.00")
        assert suggestion.estimated_cost == Decimal("100.00")
        assert groups[0].estimated_total == Decimal("100.00")
        assert groups[0].has_unknown_costs is False

    def test_unknown_cost_flagged(self, reorder_service, create_product, vendor):
        create_product("NEW", vendor=vendor, stock=0, reorder_level=1, reorder_quantity=3)

        groups = reorder_service.get_reorder_suggestions()

        assert groups[0].products[0].unit_cost is None
        assert groups[0].estimated_total == Decimal("0")
        assert groups[0].has_unknown_costs is True

    def test_vendor_fields_and_ordering(self, reorder_service, create_product, create_vendor, vendor):
        zed = create_vendor(name="zed wholesale", contact="Zoe")
        create_product("Z-1", vendor=zed, stock=0, reorder_level=1)
        create_product("A-2", vendor=vendor, stock=0, reorder_level=1)
        create_product("A-1", vendor=vendor, stock=0, reorder_level=1)

        groups = reorder_service.get_reorder_suggestions()

        assert [g.vendor_name for g in groups] == ["Acme Supply", "zed wholesale"]
        assert groups[0].vendor_contact == "Jane Buyer"
        assert [p.sku for p in groups[0].products] == ["A-1", "A-2"]
        assert groups[0].total_items == 2
        assert groups[1].products[0].vendor_name == "zed wholesale"

    def test_exclusions(self, reorder_service, create_product, create_vendor, vendor):
        dormant = create_vendor(name="Dormant Ltd", is_active=False)
        create_product("NO-VENDOR", vendor=None, stock=0, reorder_level=5)
        create_product("RETIRED", vendor=vendor, stock=0, reorder_level=5, is_active=False)
        create_product("DORMANT", vendor=dormant, stock=0, reorder_level=5)

        assert reorder_service.get_reorder_suggestions() == ()

    def test_inactive_vendors_included_when_configured(self, session, create_product, create_vendor):
        dormant = create_vendor(name="Dormant Ltd", is_active=False)
        create_product("DORMANT", vendor=dormant, stock=0, reorder_level=5)
        service = ReorderSuggestionService(
            session, PurchasingSettings(reorder_require_active_vendor=False)
        )

        groups = service.get_reorder_suggestions()

        assert [g.vendor_name for g in groups] == ["Dormant Ltd"]

    def test_logged(self, reorder_service, create_product, vendor, captured_logs):
        create_product("LOW", vendor=vendor, stock=0, reorder_level=1)

        reorder_service.get_reorder_suggestions()

        event = [r for r in captured_logs() if r["message"] == "reorder_suggestions_generated"][0]
        assert event["vendor_count"] == 1
        assert event["product_count"] == 1
        assert event["unknown_cost_vendors"] == 1
