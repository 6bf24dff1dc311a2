"""
Pricing Engine - Line and document totals for sale and purchase invoices.

One shared implementation of the arithmetic every invoice form needs:
- Unit price resolution across base and secondary units
- Wholesale vs. regular price from a base-unit quantity threshold
- Per-line discount (percent or amount, kept in sync)
- Document totals: subtotal, discounts, tax, grand total, credit balance

Every operation is a pure function of its arguments. Malformed input
degrades to a safe numeric default instead of raising, because lines are
recomputed while the user is still typing.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from ..policy.payment_terms import PaymentTermsPolicy
from .models import (
    CREDIT,
    DISCOUNT_AMOUNT,
    PERCENT,
    CatalogItem,
    DocumentTotals,
    LineItem,
    PriceKind,
    PriceUnit,
    ResolvedPrice,
)
from .money import HUNDRED, ZERO, is_blank, money, parse_decimal, round_quantity, to_decimal
from .units import ConvertibleUnit, Unit, parse_unit, unit_name

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Stateless pricing calculator.

    Conversion rules (1 secondary = conversion_factor base units):
    1. Price quoted per base, line in secondary: multiply by the factor
    2. Price quoted per secondary, line in base: divide by the factor
    3. Line unit matches the quoted unit, or is custom/NONE: unchanged
    4. Item unknown or factor zero/absent: keep the prior value
    """

    def __init__(self, places: int = 2):
        self.places = places
        self.payment_terms = PaymentTermsPolicy(places=places)

    # ------------------------------------------------------------------
    # Unit conversion
    # ------------------------------------------------------------------

    def _target_price_unit(self, unit: ConvertibleUnit, target_unit: Unit) -> Optional[PriceUnit]:
        name = unit_name(parse_unit(target_unit))
        if name is None:
            return None
        if name == unit.base:
            return PriceUnit.BASE
        if name == unit.secondary:
            return PriceUnit.SECONDARY
        return None

    def _convert(self, unit: Unit, price: Decimal, quoted_per: PriceUnit, target_unit: Unit) -> Optional[Decimal]:
        """Convert `price` to `target_unit`; None when a needed conversion is impossible."""
        if not isinstance(unit, ConvertibleUnit):
            return price
        wanted = self._target_price_unit(unit, target_unit)
        if wanted is None or wanted == quoted_per:
            return price
        if unit.degenerate:
            return None
        if wanted == PriceUnit.BASE:
            return price / unit.conversion_factor
        return price * unit.conversion_factor

    def resolve_unit_price(
        self,
        item: Optional[CatalogItem],
        target_unit: Unit,
        price_kind: PriceKind,
        fallback=None,
    ) -> Decimal:
        """
        Price of one `target_unit` for a catalog price kind.

        Args:
            item: Catalog record, or None when the item is not in the catalog
            target_unit: Unit the line currently displays
            price_kind: Which catalog price to start from
            fallback: The line's prior price, kept when conversion is skipped

        Returns:
            Price rounded to the engine's money places
        """
        if item is None:
            logger.debug("No catalog item; keeping prior price %r", fallback)
            return to_decimal(fallback)

        canonical = item.price_for(price_kind)
        converted = self._convert(item.unit, canonical, item.price_unit_for(price_kind), target_unit)
        if converted is None:
            logger.debug("Degenerate conversion factor for %s; conversion skipped", item.name)
            if fallback is not None:
                return to_decimal(fallback)
            return money(canonical, self.places)
        return money(converted, self.places)

    def convert_price(self, item: Optional[CatalogItem], price, from_unit: Unit, to_unit: Unit):
        """
        Convert a price already shown on a line from one unit to another.

        Returns the input unchanged when no conversion applies. Document
        edits re-resolve prices from the catalog instead; this is the
        standalone conversion, and base -> secondary -> base returns the
        starting price within one cent.
        """
        number = parse_decimal(price)
        if item is None or number is None or not isinstance(item.unit, ConvertibleUnit):
            return price
        source = self._target_price_unit(item.unit, from_unit)
        if source is None:
            return price
        converted = self._convert(item.unit, number, source, to_unit)
        if converted is None:
            logger.debug("Degenerate conversion factor for %s; price kept", item.name)
            return price
        if converted is number:
            return price
        return money(converted, self.places)

    def convert_quantity(self, item: Optional[CatalogItem], quantity, from_unit: Unit, to_unit: Unit):
        """
        Convert a line quantity between the base and secondary unit.

        Converted quantities are rounded to whole units. Anything that
        cannot be converted is returned unchanged.
        """
        number = parse_decimal(quantity)
        if item is None or number is None or not isinstance(item.unit, ConvertibleUnit):
            return quantity
        unit = item.unit
        source = unit_name(parse_unit(from_unit))
        target = unit_name(parse_unit(to_unit))
        if source is None or target is None or source == target:
            return quantity
        if unit.degenerate:
            logger.debug("Degenerate conversion factor for %s; quantity kept", item.name)
            return quantity
        if source == unit.secondary and target == unit.base:
            return round_quantity(number * unit.conversion_factor)
        if source == unit.base and target == unit.secondary:
            return round_quantity(number / unit.conversion_factor)
        return quantity

    def to_base_quantity(self, item: Optional[CatalogItem], quantity, unit: Unit) -> Decimal:
        """Express a line quantity in the item's base unit (unrounded)."""
        number = to_decimal(quantity)
        if item is None or not isinstance(item.unit, ConvertibleUnit):
            return number
        if self._target_price_unit(item.unit, unit) != PriceUnit.SECONDARY:
            return number
        if item.unit.degenerate:
            return number
        return number * item.unit.conversion_factor

    # ------------------------------------------------------------------
    # Tier pricing
    # ------------------------------------------------------------------

    def resolve_quantity_tier_price(
        self,
        item: Optional[CatalogItem],
        quantity_in_base_units,
        target_unit: Unit,
        regular_kind: PriceKind = PriceKind.SALE,
        fallback=None,
    ) -> ResolvedPrice:
        """
        Pick wholesale or regular price for a quantity measured in base units.

        Wholesale applies when the quantity reaches the item's minimum
        wholesale quantity and a wholesale price exists. The chosen price
        is converted to `target_unit`.
        """
        regular_kind = PriceKind(regular_kind)
        if item is None:
            return ResolvedPrice(unit_price=to_decimal(fallback), kind=regular_kind)

        quantity = to_decimal(quantity_in_base_units)
        if item.wholesale_price > ZERO and quantity >= item.minimum_wholesale_quantity:
            kind = PriceKind.WHOLESALE
        else:
            kind = regular_kind

        price = self.resolve_unit_price(item, target_unit, kind, fallback=fallback)
        return ResolvedPrice(unit_price=price, kind=kind, wholesale=kind == PriceKind.WHOLESALE)

    # ------------------------------------------------------------------
    # Line amounts
    # ------------------------------------------------------------------

    def original_amount(self, line: LineItem) -> Decimal:
        """Pre-discount line total (quantity × unit price)."""
        return to_decimal(line.quantity) * to_decimal(line.unit_price)

    def line_discount(self, line: LineItem) -> Decimal:
        """
        Discount of a line.

        The field the user edited last drives; with no driver recorded,
        percent wins over amount when both are set.
        """
        if line.discount_driver == DISCOUNT_AMOUNT and not is_blank(line.discount_amount):
            return money(line.discount_amount, self.places)
        if not is_blank(line.discount_percent):
            percent = to_decimal(line.discount_percent)
            return money(self.original_amount(line) * percent / HUNDRED, self.places)
        if not is_blank(line.discount_amount):
            return money(line.discount_amount, self.places)
        return ZERO

    def recompute_line_amount(self, line: LineItem) -> Decimal:
        """Set and return `line.amount` = max(0, quantity × price - discount)."""
        for label, value in (("quantity", line.quantity), ("price", line.unit_price)):
            if not is_blank(value) and parse_decimal(value) is None:
                line.add_warning(f"Non-numeric {label} {value!r} counted as 0")
        original = self.original_amount(line)
        discount = self.line_discount(line)
        line.amount = money(max(ZERO, original - discount), self.places)
        line.add_trace(
            "Extension",
            f"{to_decimal(line.quantity)} × {to_decimal(line.unit_price):.2f} - {discount:.2f}",
            f"{line.amount:.2f}",
        )
        return line.amount

    def derive_discount_amount(self, line: LineItem) -> LineItem:
        """Percent was edited: derive the amount from the pre-discount total."""
        if is_blank(line.discount_percent):
            line.discount_amount = ""
            return line
        percent = to_decimal(line.discount_percent)
        line.discount_amount = money(self.original_amount(line) * percent / HUNDRED, self.places)
        return line

    def derive_discount_percent(self, line: LineItem) -> LineItem:
        """Amount was edited: derive the percent; 0 when the line total is 0."""
        if is_blank(line.discount_amount):
            line.discount_percent = ""
            return line
        original = self.original_amount(line)
        if original > ZERO:
            amount = to_decimal(line.discount_amount)
            line.discount_percent = money(HUNDRED * amount / original, self.places)
        else:
            line.discount_percent = money(ZERO, self.places)
        return line

    # ------------------------------------------------------------------
    # Document totals
    # ------------------------------------------------------------------

    def _adjustment(self, base: Decimal, value, value_type: str) -> Decimal:
        number = parse_decimal(value)
        if number is None:
            return ZERO
        if value_type == PERCENT:
            return money(base * number / HUNDRED, self.places)
        return money(number, self.places)

    def recompute_document_totals(
        self,
        lines: Iterable[LineItem],
        global_discount=None,
        global_discount_type: str = PERCENT,
        tax=None,
        tax_type: str = PERCENT,
    ) -> DocumentTotals:
        """
        Aggregate totals from the full current set of lines.

        Order is fixed: subtotal and item discounts, global discount off the
        gross subtotal, tax off (subtotal - total discount), grand total
        floored at zero.
        """
        lines = list(lines)
        totals = DocumentTotals()

        sub_total = sum((self.original_amount(line) for line in lines), ZERO)
        item_discount_total = sum((self.line_discount(line) for line in lines), ZERO)
        totals.sub_total = money(sub_total, self.places)
        totals.item_discount_total = money(item_discount_total, self.places)
        totals.add_trace("Subtotal", f"{len(lines)} line(s) before discount", f"{totals.sub_total:.2f}")

        totals.global_discount = self._adjustment(totals.sub_total, global_discount, global_discount_type)
        if is_blank(global_discount) or parse_decimal(global_discount) is not None:
            totals.add_trace("Discount", f"Global discount ({global_discount_type})", f"{totals.global_discount:.2f}")
        else:
            totals.add_warning(f"Ignored non-numeric discount {global_discount!r}")

        totals.total_discount = totals.item_discount_total + totals.global_discount

        taxable = totals.sub_total - totals.total_discount
        totals.tax_amount = self._adjustment(taxable, tax, tax_type)
        if is_blank(tax) or parse_decimal(tax) is not None:
            totals.add_trace("Tax", f"Tax ({tax_type}) on {taxable:.2f}", f"{totals.tax_amount:.2f}")
        else:
            totals.add_warning(f"Ignored non-numeric tax {tax!r}")

        totals.grand_total = money(max(ZERO, taxable + totals.tax_amount), self.places)
        totals.add_trace("Grand Total", "Subtotal - discount + tax", f"{totals.grand_total:.2f}")
        return totals

    def settle_payment(
        self,
        totals: DocumentTotals,
        payment_type: str = CREDIT,
        paid_or_received=None,
        settle_cash_in_full: bool = False,
    ) -> DocumentTotals:
        """Clamp paid/received to [0, grand total] and derive the credit balance."""
        return self.payment_terms.settle(
            totals,
            payment_type=payment_type,
            paid_or_received=paid_or_received,
            settle_cash_in_full=settle_cash_in_full,
        )
