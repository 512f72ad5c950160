"""Tests for matching receipt lines against the merchant catalog."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from greenreceipt.receipts.ingestion import apply_catalog, reconcile_lines
from greenreceipt.receipts.models import NormalizedReceipt, ReceiptLine


@pytest.fixture
def catalog():
    return [
        {"_id": ObjectId(), "name": "Filter  Coffee", "price": 30, "sku": "FC-1", "isActive": True},
        {"_id": ObjectId(), "name": "Vada", "price": 25, "barcode": "890100", "isActive": True},
        {
            "_id": ObjectId(),
            "name": "Lassi",
            "price": 50,
            "isDiscounted": True,
            "discountPrice": 45,
            "hasVariants": True,
            "variants": [{"name": "Large", "price": 70, "isAvailable": True}],
            "isActive": True,
        },
        {"_id": ObjectId(), "name": "Old Special", "price": 99, "isActive": False},
    ]


class TestReconcileLines:
    def test_name_match_fills_price(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="filter coffee", quantity=2)], catalog)

        assert line.item_id == str(catalog[0]["_id"])
        assert line.unit_price == 30
        assert line.catalog_price == 30
        assert line.price_mismatch is False
        assert line.line_total == 60

    def test_sku_beats_name(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Vada", sku="fc-1", unit_price=30)], catalog)
        assert line.item_id == str(catalog[0]["_id"])

    def test_barcode_match(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Medu Vada", barcode="890100", unit_price=25)], catalog)

        assert line.item_id == str(catalog[1]["_id"])
        assert line.name == "Medu Vada"

    def test_price_mismatch_keeps_supplied_price(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Vada", unit_price=28)], catalog)

        assert line.unit_price == 28
        assert line.catalog_price == 25
        assert line.price_mismatch is True

    def test_tiny_difference_is_not_a_mismatch(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Vada", unit_price=25.004)], catalog)
        assert line.price_mismatch is False

    def test_discounted_price(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Lassi")], catalog)
        assert line.unit_price == 45

    def test_variant_price(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Lassi", variant="large")], catalog)
        assert line.unit_price == 70

    def test_inactive_items_are_ignored(self, catalog):
        [line] = reconcile_lines([ReceiptLine(name="Old Special", unit_price=99)], catalog)

        assert line.item_id is None
        assert line.catalog_price is None

    def test_unmatched_line_unchanged(self, catalog):
        original = ReceiptLine(name="Mystery", unit_price=12, quantity=3)
        [line] = reconcile_lines([original], catalog)
        assert line == original


class TestApplyCatalog:
    def _receipt(self, **overrides) -> NormalizedReceipt:
        fields = {
            "items": [ReceiptLine(name="Filter Coffee", quantity=2), ReceiptLine(name="Vada", unit_price=25)],
            "subtotal": 25,
            "discount": 5,
            "total": 20,
            "transaction_date": datetime(2025, 3, 15, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return NormalizedReceipt(**fields)

    def test_totals_recomputed(self, catalog):
        receipt = apply_catalog(self._receipt(), catalog)

        assert receipt.subtotal == 85
        assert receipt.total == 80

    def test_supplied_total_kept(self, catalog):
        receipt = apply_catalog(self._receipt(total=70, total_supplied=True), catalog)

        assert receipt.subtotal == 85
        assert receipt.total == 70

    def test_empty_catalog(self):
        receipt = self._receipt()
        assert apply_catalog(receipt, []).items == receipt.items
