"""
Editing flow of sale and purchase documents.
"""
import os
import sys
from decimal import Decimal

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from invoice_pricing.data.catalog import Catalog
from invoice_pricing.documents.invoice import DocumentKind, InvoiceDocument
from invoice_pricing.engine import CustomUnit, DocumentAdjustments, SimpleUnit
from invoice_pricing.engine.models import CASH


@pytest.fixture(scope="module")
def catalog():
    return Catalog.from_records([
        {
            "name": "Biscuits", "sale_price": "1200", "purchase_price": "80",
            "wholesale_price": "90", "minimum_wholesale_quantity": "24",
            "base_unit": "Box", "secondary_unit": "Carton", "conversion_factor": "12",
        },
        {
            "name": "Pen", "sale_price": "20", "purchase_price": "15",
            "base_unit": "Piece",
        },
    ])


@pytest.fixture
def sale(catalog):
    return InvoiceDocument(DocumentKind.SALE, catalog=catalog)


@pytest.fixture
def purchase(catalog):
    return InvoiceDocument(DocumentKind.PURCHASE, catalog=catalog)


def test_new_document_has_one_empty_row(sale):
    assert len(sale.lines) == 1
    assert sale.totals().grand_total == Decimal("0")


def test_select_item_sets_default_unit_and_price(sale):
    sale.select_item(0, "biscuits")
    line = sale.line(0)
    assert line.unit == SimpleUnit("Carton")
    assert line.unit_price == Decimal("1200.00")
    assert line.quantity == ""


def test_wholesale_reached_in_secondary_units(sale):
    sale.select_item(0, "Biscuits")
    totals = sale.set_quantity(0, "1")
    assert sale.line(0).unit_price == Decimal("1200.00")
    assert totals.grand_total == Decimal("1200.00")

    totals = sale.set_quantity(0, "2")
    line = sale.line(0)
    assert line.wholesale
    assert line.unit_price == Decimal("1080.00")
    assert totals.grand_total == Decimal("2160.00")


def test_unit_change_converts_quantity_and_reprices(sale):
    sale.select_item(0, "Biscuits")
    sale.set_quantity(0, "2")
    totals = sale.set_unit(0, "Box")
    line = sale.line(0)
    assert line.quantity == Decimal("24")
    assert line.unit_price == Decimal("90.00")
    assert totals.grand_total == Decimal("2160.00")

    sale.set_quantity(0, "10")
    assert not line.wholesale
    assert line.unit_price == Decimal("100.00")
    assert line.amount == Decimal("1000.00")


def test_manual_price_superseded_by_repricing(sale):
    sale.select_item(0, "Biscuits")
    sale.set_unit(0, "Box")
    sale.set_quantity(0, "10")
    sale.set_price(0, "95")
    assert sale.line(0).amount == Decimal("950.00")

    sale.set_quantity(0, "11")
    assert sale.line(0).unit_price == Decimal("100.00")


def test_unknown_item_keeps_typed_values(sale):
    sale.select_item(0, "Mystery Box")
    sale.set_price(0, "12")
    totals = sale.set_quantity(0, "3")
    assert sale.line(0).unit_price == "12"
    assert totals.grand_total == Decimal("36.00")


def test_custom_unit_keeps_quantity_and_uses_catalog_price(sale):
    sale.select_item(0, "Biscuits")
    sale.set_quantity(0, "2")
    sale.set_unit(0, "Custom", custom_label="Crate")
    line = sale.line(0)
    assert line.unit == CustomUnit("Crate")
    assert line.quantity == "2"
    # A custom unit cannot be converted, so the quantity counts as 2 base units
    assert not line.wholesale
    assert line.unit_price == Decimal("1200.00")

    sale.set_custom_unit_label(0, "Big crate")
    assert line.unit.label == "Big crate"


def test_percent_discount_follows_quantity_changes(sale):
    sale.select_item(0, "Pen")
    sale.set_quantity(0, "5")
    sale.set_discount_percent(0, "10")
    line = sale.line(0)
    assert line.discount_amount == Decimal("10.00")

    sale.set_quantity(0, "10")
    assert line.discount_amount == Decimal("20.00")
    assert line.amount == Decimal("180.00")


def test_amount_discount_derives_percent(sale):
    sale.select_item(0, "Pen")
    sale.set_quantity(0, "5")
    totals = sale.set_discount_amount(0, "25")
    assert sale.line(0).discount_percent == Decimal("25.00")
    assert totals.item_discount_total == Decimal("25.00")
    assert totals.grand_total == Decimal("75.00")


def test_amount_discount_kept_when_percent_rounds_to_zero(sale):
    sale.select_item(0, "Generator")
    sale.set_price(0, "100000")
    sale.set_quantity(0, "1")
    totals = sale.set_discount_amount(0, "4")
    line = sale.line(0)
    assert line.discount_percent == Decimal("0.00")
    assert line.amount == Decimal("99996.00")
    assert totals.item_discount_total == Decimal("4.00")

    # The flat discount keeps driving later edits
    totals = sale.set_quantity(0, "2")
    assert line.discount_amount == "4"
    assert line.amount == Decimal("199996.00")
    assert totals.grand_total == Decimal("199996.00")


def test_percent_edit_takes_over_from_amount(sale):
    sale.select_item(0, "Generator")
    sale.set_price(0, "100000")
    sale.set_quantity(0, "1")
    sale.set_discount_amount(0, "4")
    sale.set_discount_percent(0, "10")
    line = sale.line(0)
    assert line.discount_amount == Decimal("10000.00")
    assert line.amount == Decimal("90000.00")


def test_custom_unit_label_edits_do_not_pile_up_trace(sale):
    sale.set_unit(0, "Custom", custom_label="Crate")
    sale.set_custom_unit_label(0, "Big crate")
    sale.set_custom_unit_label(0, "Huge crate")
    line = sale.line(0)
    assert line.unit.label == "Huge crate"
    assert sum(1 for step in line.trace if step.step == "Extension") == 1


def test_totals_cover_every_row(sale):
    sale.select_item(0, "Pen")
    sale.set_quantity(0, "2")
    sale.add_row()
    sale.select_item(1, "Biscuits")
    totals = sale.set_quantity(1, "1")
    assert totals.sub_total == Decimal("1240.00")

    assert sale.delete_row(1)
    assert sale.totals().sub_total == Decimal("40.00")


def test_last_row_cannot_be_deleted(sale):
    assert not sale.delete_row(0)
    assert len(sale.lines) == 1


def test_purchase_uses_purchase_price_without_wholesale(purchase):
    purchase.select_item(0, "Biscuits")
    line = purchase.line(0)
    assert line.unit_price == Decimal("960.00")

    purchase.set_unit(0, "Box")
    assert line.unit_price == Decimal("80.00")

    totals = purchase.set_quantity(0, "50")
    assert not line.wholesale
    assert line.unit_price == Decimal("80.00")
    assert totals.grand_total == Decimal("4000.00")


def test_missing_conversion_rate_keeps_price_with_warning():
    catalog = Catalog.from_records([
        {"name": "Soap", "sale_price": "240", "base_unit": "Piece", "secondary_unit": "Pack"},
    ])
    sale = InvoiceDocument(DocumentKind.SALE, catalog=catalog)
    sale.select_item(0, "Soap")
    sale.set_unit(0, "Piece")
    line = sale.line(0)
    assert line.unit_price == Decimal("240.00")
    assert any("conversion rate" in warning for warning in line.warnings)


@pytest.fixture
def oil_catalog():
    return Catalog.from_records([
        {"name": "Oil", "purchase_price": "80", "base_unit": "Tin", "secondary_unit": "Case",
         "conversion_factor": ""},
        {"name": "Rice", "purchase_price": "40", "base_unit": "Kg"},
    ])


def test_select_item_without_conversion_rate_uses_catalog_price(oil_catalog):
    purchase = InvoiceDocument(DocumentKind.PURCHASE, catalog=oil_catalog)
    purchase.select_item(0, "Oil")
    assert purchase.line(0).unit == SimpleUnit("Case")
    assert purchase.line(0).unit_price == Decimal("80.00")


def test_select_item_ignores_price_of_previous_item(oil_catalog):
    purchase = InvoiceDocument(DocumentKind.PURCHASE, catalog=oil_catalog)
    purchase.select_item(0, "Rice")
    assert purchase.line(0).unit_price == Decimal("40.00")

    purchase.select_item(0, "Oil")
    assert purchase.line(0).unit_price == Decimal("80.00")


def test_sale_order_prices_wholesale(catalog):
    order = InvoiceDocument(DocumentKind.SALE_ORDER, catalog=catalog)
    order.select_item(0, "Biscuits")
    order.set_quantity(0, "3")
    assert order.line(0).wholesale


def test_cash_sale_is_settled_in_full(catalog):
    sale = InvoiceDocument(
        DocumentKind.SALE, catalog=catalog,
        adjustments=DocumentAdjustments(payment_type=CASH),
    )
    sale.select_item(0, "Pen")
    totals = sale.set_quantity(0, "4")
    assert totals.paid_or_received == Decimal("80.00")
    assert totals.credit_balance == Decimal("0")


def test_cash_purchase_uses_paid_amount(catalog):
    purchase = InvoiceDocument(
        DocumentKind.PURCHASE, catalog=catalog,
        adjustments=DocumentAdjustments(payment_type=CASH, paid_or_received="50"),
    )
    purchase.select_item(0, "Pen")
    totals = purchase.set_quantity(0, "10")
    assert totals.paid_or_received == Decimal("50.00")
    assert totals.credit_balance == Decimal("100.00")


def test_apply_edit_dispatches_by_field(sale):
    sale.apply_edit(0, "item_name", "Pen")
    sale.apply_edit(0, "quantity", "3")
    totals = sale.apply_edit(0, "unit_price", "25")
    assert totals.grand_total == Decimal("75.00")


def test_apply_edit_rejects_unknown_field(sale):
    with pytest.raises(ValueError):
        sale.apply_edit(0, "colour", "red")


def test_to_document_keeps_only_valid_rows(purchase):
    purchase.select_item(0, "Pen")
    purchase.set_quantity(0, "4")
    purchase.add_row()
    purchase.adjustments.paid_or_received = "10"

    document = purchase.to_document()
    assert len(document["items"]) == 1
    assert document["items"][0]["item"] == "Pen"
    assert document["items"][0]["unit"] == "Piece"
    assert document["grandTotal"] == Decimal("60.00")
    assert document["paid"] == Decimal("10.00")
    assert document["balance"] == Decimal("50.00")
    assert "received" not in document


def test_sale_document_reports_received(sale):
    document = sale.to_document()
    assert "received" in document
    assert document["items"] == []
