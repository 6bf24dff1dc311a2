"""
Invoice Document - Editable rows of a sale or purchase document.

Each edit method mutates one line, re-derives its amount and returns the
document totals recomputed from the full set of lines, so callers never
observe totals from a half-applied edit.
"""
from enum import Enum
from typing import Optional

from ..data.catalog import Catalog
from ..engine.models import (
    DISCOUNT_AMOUNT,
    DISCOUNT_PERCENT,
    CatalogItem,
    DocumentAdjustments,
    DocumentTotals,
    LineItem,
    PriceKind,
    ResolvedPrice,
)
from ..engine.money import ZERO, is_blank, to_decimal
from ..engine.pricing_engine import PricingEngine
from ..engine.units import ConvertibleUnit, CustomUnit, default_selection, parse_unit


class DocumentKind(str, Enum):
    """Document types that share the invoice arithmetic."""
    SALE = "sale"
    SALE_ORDER = "sale_order"
    QUOTATION = "quotation"
    PURCHASE = "purchase"
    PURCHASE_ORDER = "purchase_order"

    @property
    def purchase_side(self) -> bool:
        return self in (DocumentKind.PURCHASE, DocumentKind.PURCHASE_ORDER)

    @property
    def regular_price_kind(self) -> PriceKind:
        return PriceKind.PURCHASE if self.purchase_side else PriceKind.SALE

    @property
    def uses_wholesale(self) -> bool:
        return not self.purchase_side


class InvoiceDocument:
    """
    A sale/purchase document being edited.

    Catalog-bound lines are repriced automatically: on a sale-side
    document every quantity or unit change re-resolves the wholesale or
    sale price; on a purchase-side document a unit change re-resolves the
    purchase price. Lines whose item is not in the catalog keep whatever
    was typed.
    """

    def __init__(
        self,
        kind: DocumentKind = DocumentKind.SALE,
        catalog: Optional[Catalog] = None,
        engine: Optional[PricingEngine] = None,
        adjustments: Optional[DocumentAdjustments] = None,
        lines: Optional[list[LineItem]] = None,
    ):
        self.kind = DocumentKind(kind)
        self.catalog = catalog
        self.engine = engine or PricingEngine()
        self.adjustments = adjustments or DocumentAdjustments()
        self.lines: list[LineItem] = list(lines) if lines else [LineItem()]
        for line in self.lines:
            self.engine.recompute_line_amount(line)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add_row(self) -> LineItem:
        """Append an empty row."""
        line = LineItem()
        self.lines.append(line)
        return line

    def delete_row(self, index: int) -> bool:
        """Remove a row; the last remaining row is never removed."""
        if len(self.lines) <= 1:
            return False
        del self.lines[index]
        return True

    def line(self, index: int) -> LineItem:
        return self.lines[index]

    def catalog_item(self, line: LineItem) -> Optional[CatalogItem]:
        """Catalog record bound to a line, if any."""
        if self.catalog is None or is_blank(line.item_name):
            return None
        return self.catalog.lookup(line.item_name)

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def select_item(self, index: int, name: str) -> DocumentTotals:
        """Bind a row to an item; catalog items bring their unit and price."""
        line = self.lines[index]
        line.reset_trace()
        line.item_name = (name or "").strip()

        item = self.catalog_item(line)
        if item is None:
            line.add_trace("Item Lookup", "Not in catalog, keeping entered values", line.item_name)
        else:
            line.add_trace("Item Lookup", "Found item in catalog", item.name)
            line.unit = default_selection(item.unit)
            line.quantity = ""
            line.wholesale = False
            # No prior-price fallback; the row may have held another item
            line.unit_price = self.engine.resolve_unit_price(
                item, line.unit, self.kind.regular_price_kind
            )
            line.add_trace(
                "Price Resolution",
                f"{self.kind.regular_price_kind.value.title()} price per {line.unit_label}",
                f"{line.unit_price:.2f}",
            )
        return self._after_edit(line)

    def set_quantity(self, index: int, quantity) -> DocumentTotals:
        line = self.lines[index]
        line.reset_trace()
        line.quantity = quantity

        item = self.catalog_item(line)
        if item is not None and self.kind.uses_wholesale:
            self._reprice(line, item)
        return self._after_edit(line)

    def set_unit(self, index: int, unit, custom_label: Optional[str] = None) -> DocumentTotals:
        """Change the line unit, converting quantity and repricing catalog items."""
        line = self.lines[index]
        line.reset_trace()
        new_unit = parse_unit(unit, custom_label=custom_label)
        old_unit = line.unit

        item = self.catalog_item(line)
        if item is not None and not is_blank(line.quantity):
            converted = self.engine.convert_quantity(item, line.quantity, old_unit, new_unit)
            if converted is not line.quantity:
                line.add_trace("Quantity", f"{old_unit.label} → {new_unit.label}", str(converted))
                line.quantity = converted

        line.unit = new_unit
        if item is not None:
            self._reprice(line, item)
        return self._after_edit(line)

    def set_custom_unit_label(self, index: int, label: str) -> DocumentTotals:
        line = self.lines[index]
        line.reset_trace()
        if isinstance(line.unit, CustomUnit):
            line.unit = CustomUnit((label or "").strip())
        return self._after_edit(line)

    def set_price(self, index: int, price) -> DocumentTotals:
        line = self.lines[index]
        line.reset_trace()
        line.unit_price = price
        line.wholesale = False
        line.add_trace("Price Resolution", "Price entered manually", str(price))
        return self._after_edit(line)

    def set_discount_percent(self, index: int, percent) -> DocumentTotals:
        line = self.lines[index]
        line.reset_trace()
        line.discount_percent = percent
        line.discount_driver = DISCOUNT_PERCENT
        self.engine.derive_discount_amount(line)
        return self._after_edit(line, sync_discount=False)

    def set_discount_amount(self, index: int, amount) -> DocumentTotals:
        line = self.lines[index]
        line.reset_trace()
        line.discount_amount = amount
        line.discount_driver = DISCOUNT_AMOUNT
        self.engine.derive_discount_percent(line)
        return self._after_edit(line, sync_discount=False)

    EDITS = {
        'item_name': 'select_item',
        'quantity': 'set_quantity',
        'unit': 'set_unit',
        'unit_price': 'set_price',
        'discount_percent': 'set_discount_percent',
        'discount_amount': 'set_discount_amount',
    }

    def apply_edit(self, index: int, field: str, value, custom_label: Optional[str] = None) -> DocumentTotals:
        """Dispatch a single field edit by field name."""
        if field not in self.EDITS:
            raise ValueError(f"Unknown line field '{field}'")
        if field == 'unit':
            return self.set_unit(index, value, custom_label=custom_label)
        return getattr(self, self.EDITS[field])(index, value)

    def _reprice(self, line: LineItem, item: CatalogItem):
        """Automatic repricing; supersedes a manually typed price."""
        if isinstance(item.unit, ConvertibleUnit) and item.unit.degenerate:
            line.add_warning(f"No usable conversion rate for {item.name}; price not converted")
        if self.kind.uses_wholesale:
            base_quantity = self.engine.to_base_quantity(item, line.quantity, line.unit)
            resolved = self.engine.resolve_quantity_tier_price(
                item, base_quantity, line.unit,
                regular_kind=self.kind.regular_price_kind,
                fallback=line.unit_price,
            )
            line.add_trace("Tier", f"{base_quantity} base unit(s)", resolved.kind.value)
        else:
            resolved = ResolvedPrice(
                unit_price=self.engine.resolve_unit_price(
                    item, line.unit, self.kind.regular_price_kind, fallback=line.unit_price
                ),
                kind=self.kind.regular_price_kind,
            )

        line.unit_price = resolved.unit_price
        line.wholesale = resolved.wholesale
        line.add_trace("Price Resolution", f"{resolved.kind.value.title()} price per {line.unit_label}",
                       f"{line.unit_price:.2f}")

    def _after_edit(self, line: LineItem, sync_discount: bool = True) -> DocumentTotals:
        # Keep the discount field the user edited last; re-derive the other
        if sync_discount:
            if line.discount_driver == DISCOUNT_AMOUNT:
                self.engine.derive_discount_percent(line)
            elif not is_blank(line.discount_percent):
                self.engine.derive_discount_amount(line)
        self.engine.recompute_line_amount(line)
        return self.totals()

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def totals(self) -> DocumentTotals:
        """Totals of the full current row set, settled against payment terms."""
        adj = self.adjustments
        totals = self.engine.recompute_document_totals(
            self.lines, adj.discount, adj.discount_type, adj.tax, adj.tax_type
        )
        return self.engine.settle_payment(
            totals,
            payment_type=adj.payment_type,
            paid_or_received=adj.paid_or_received,
            settle_cash_in_full=self.kind == DocumentKind.SALE,
        )

    def valid_lines(self) -> list[LineItem]:
        """Rows complete enough to save: item name, quantity > 0, price > 0."""
        return [
            line for line in self.lines
            if not is_blank(line.item_name)
            and to_decimal(line.quantity) > ZERO
            and to_decimal(line.unit_price) > ZERO
        ]

    def to_document(self) -> dict:
        """Plain record for the storage API."""
        totals = self.totals()
        adj = self.adjustments
        paid_key = 'paid' if self.kind.purchase_side else 'received'
        return {
            "items": [line.to_document_dict() for line in self.valid_lines()],
            "discount": adj.discount,
            "discountType": adj.discount_type,
            "discountValue": totals.global_discount,
            "tax": adj.tax,
            "taxType": adj.tax_type,
            "taxValue": totals.tax_amount,
            "grandTotal": totals.grand_total,
            "paymentType": adj.payment_type,
            paid_key: totals.paid_or_received,
            "balance": totals.credit_balance,
        }
