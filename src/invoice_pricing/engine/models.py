"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .money import ZERO
from .units import NoUnit, Unit, selection_value, CustomUnit

PERCENT = "%"
DEFAULT_CURRENCY = "PKR"
CASH = "Cash"
CREDIT = "Credit"
DISCOUNT_PERCENT = "percent"
DISCOUNT_AMOUNT = "amount"


class PriceKind(str, Enum):
    """Which catalog price a line is priced from."""
    PURCHASE = "purchase"
    SALE = "sale"
    WHOLESALE = "wholesale"


class PriceUnit(str, Enum):
    """The unit a catalog price is quoted per."""
    BASE = "base"
    SECONDARY = "secondary"


# Observed convention of the item catalog; overridable per item.
DEFAULT_PRICE_UNITS = {
    PriceKind.PURCHASE: PriceUnit.BASE,
    PriceKind.SALE: PriceUnit.SECONDARY,
    PriceKind.WHOLESALE: PriceUnit.BASE,
}


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class CatalogItem:
    """Read-only catalog record for one item."""
    name: str
    unit: Unit = field(default_factory=NoUnit)
    purchase_price: Decimal = ZERO
    sale_price: Decimal = ZERO
    wholesale_price: Decimal = ZERO
    minimum_wholesale_quantity: Decimal = ZERO
    item_code: Optional[str] = None
    price_units: dict[PriceKind, PriceUnit] = field(
        default_factory=lambda: dict(DEFAULT_PRICE_UNITS)
    )

    def price_for(self, kind: PriceKind) -> Decimal:
        """Canonical catalog price for a price kind."""
        return {
            PriceKind.PURCHASE: self.purchase_price,
            PriceKind.SALE: self.sale_price,
            PriceKind.WHOLESALE: self.wholesale_price,
        }[PriceKind(kind)]

    def price_unit_for(self, kind: PriceKind) -> PriceUnit:
        """Unit the canonical price for `kind` is quoted per."""
        kind = PriceKind(kind)
        return self.price_units.get(kind, DEFAULT_PRICE_UNITS[kind])


@dataclass
class ResolvedPrice:
    """Outcome of a tier price lookup."""
    unit_price: Decimal
    kind: PriceKind
    wholesale: bool = False


@dataclass
class LineItem:
    """
    One editable row of a sale or purchase document.

    Numeric fields hold whatever the user typed (text or numbers);
    the engine parses them. `amount` is derived and never an input.
    `discount_driver` names the discount field edited last ("percent" or
    "amount"); None means percent wins when both are set.
    """
    item_name: str = ""
    quantity: Any = ""
    unit: Unit = field(default_factory=NoUnit)
    unit_price: Any = ""
    discount_percent: Any = ""
    discount_amount: Any = ""
    discount_driver: Optional[str] = None
    amount: Decimal = ZERO
    wholesale: bool = False
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this line item."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def reset_trace(self):
        """Drop the trace and warnings of the previous edit."""
        self.trace = []
        self.warnings = []

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    @property
    def unit_label(self) -> str:
        return self.unit.label

    def to_document_dict(self) -> dict:
        """Row shape expected by the storage API."""
        return {
            "item": self.item_name,
            "qty": self.quantity,
            "unit": selection_value(self.unit),
            "customUnit": self.unit.text if isinstance(self.unit, CustomUnit) else "",
            "price": self.unit_price,
            "amount": self.amount,
            "discountPercentage": self.discount_percent,
            "discountAmount": self.discount_amount,
        }


@dataclass
class DocumentAdjustments:
    """Document-level discount, tax and payment fields."""
    discount: Any = ""
    discount_type: str = PERCENT
    tax: Any = ""
    tax_type: str = PERCENT
    payment_type: str = CREDIT
    paid_or_received: Any = ""


@dataclass
class DocumentTotals:
    """Totals derived from the current set of lines."""
    sub_total: Decimal = ZERO
    item_discount_total: Decimal = ZERO
    global_discount: Decimal = ZERO
    total_discount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    grand_total: Decimal = ZERO
    paid_or_received: Decimal = ZERO
    credit_balance: Decimal = ZERO
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the totals trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a document-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable totals trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
