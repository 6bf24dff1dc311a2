"""
Pricing API - FastAPI router for line, unit price and document totals.
"""
from decimal import Decimal
from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ..data.catalog import Catalog
from ..documents.invoice import DocumentKind, InvoiceDocument
from ..engine import LineItem, PriceKind, PricingEngine, parse_unit
from ..engine.models import CREDIT, PERCENT, DocumentAdjustments, DocumentTotals
from ..engine.units import CustomUnit, selection_value
from .state import get_catalog, get_engine

router = APIRouter(prefix="/api/pricing", tags=["pricing"])

# Raw field value as typed by the user; parsing never fails the request
FieldValue = Optional[Union[Decimal, str]]

EditableField = Literal[
    "item_name", "quantity", "unit", "unit_price", "discount_percent", "discount_amount"
]

DiscountField = Literal["percent", "amount"]


# Pydantic models for API
class LineIn(BaseModel):
    """One invoice row as edited on the form."""
    item_name: str = ""
    quantity: FieldValue = ""
    unit: Optional[str] = "NONE"
    custom_unit: Optional[str] = None
    unit_price: FieldValue = ""
    discount_percent: FieldValue = ""
    discount_amount: FieldValue = ""
    discount_driver: Optional[DiscountField] = None

    def to_line(self) -> LineItem:
        return LineItem(
            item_name=self.item_name,
            quantity=self.quantity,
            unit=parse_unit(self.unit, custom_label=self.custom_unit),
            unit_price=self.unit_price,
            discount_percent=self.discount_percent,
            discount_amount=self.discount_amount,
            discount_driver=self.discount_driver,
        )


class LineEdit(BaseModel):
    """A single field edit applied to a line."""
    field: EditableField
    value: FieldValue = ""
    custom_unit: Optional[str] = None


class LineRequest(BaseModel):
    """Request model for recomputing one line."""
    line: LineIn
    edit: Optional[LineEdit] = None
    kind: DocumentKind = DocumentKind.SALE


class UnitPriceRequest(BaseModel):
    """Request model for resolving a catalog price in a unit."""
    item_name: str
    unit: str
    price_kind: PriceKind = PriceKind.SALE
    quantity: FieldValue = None


class DocumentRequest(BaseModel):
    """Request model for recomputing document totals."""
    kind: DocumentKind = DocumentKind.SALE
    lines: list[LineIn]
    discount: FieldValue = ""
    discount_type: str = PERCENT
    tax: FieldValue = ""
    tax_type: str = PERCENT
    payment_type: str = CREDIT
    paid_or_received: FieldValue = ""


def line_to_dict(line: LineItem) -> dict:
    """Response shape for a line."""
    return {
        "item_name": line.item_name,
        "quantity": line.quantity,
        "unit": selection_value(line.unit),
        "custom_unit": line.unit.text if isinstance(line.unit, CustomUnit) else None,
        "unit_price": line.unit_price,
        "discount_percent": line.discount_percent,
        "discount_amount": line.discount_amount,
        "discount_driver": line.discount_driver,
        "amount": line.amount,
        "wholesale": line.wholesale,
        "warnings": line.warnings,
        "trace": line.trace,
    }


def totals_to_dict(totals: DocumentTotals) -> dict:
    return jsonable_encoder(totals)


# Endpoints

@router.post("/line")
async def recompute_line(
    request: LineRequest,
    catalog: Catalog = Depends(get_catalog),
    engine: PricingEngine = Depends(get_engine),
):
    """Apply an optional field edit to a line and return it with its amount."""
    document = InvoiceDocument(kind=request.kind, catalog=catalog, engine=engine,
                               lines=[request.line.to_line()])
    try:
        if request.edit is not None:
            document.apply_edit(0, request.edit.field, request.edit.value,
                                custom_label=request.edit.custom_unit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return jsonable_encoder(line_to_dict(document.line(0)))


@router.post("/unit-price")
async def resolve_unit_price(
    request: UnitPriceRequest,
    catalog: Catalog = Depends(get_catalog),
    engine: PricingEngine = Depends(get_engine),
):
    """Resolve a catalog item's price in the given unit, with tiering when a quantity is given."""
    item = catalog.lookup(request.item_name)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item '{request.item_name}' not found")

    unit = parse_unit(request.unit)
    if request.quantity is None:
        price = engine.resolve_unit_price(item, unit, request.price_kind)
        return jsonable_encoder({
            "item_name": item.name,
            "unit": selection_value(unit),
            "price_kind": request.price_kind,
            "unit_price": price,
            "wholesale": False,
        })

    base_quantity = engine.to_base_quantity(item, request.quantity, unit)
    resolved = engine.resolve_quantity_tier_price(item, base_quantity, unit, regular_kind=request.price_kind)
    return jsonable_encoder({
        "item_name": item.name,
        "unit": selection_value(unit),
        "price_kind": resolved.kind,
        "unit_price": resolved.unit_price,
        "wholesale": resolved.wholesale,
        "quantity_in_base_units": base_quantity,
    })


@router.post("/document")
async def recompute_document(
    request: DocumentRequest,
    catalog: Catalog = Depends(get_catalog),
    engine: PricingEngine = Depends(get_engine),
):
    """Recompute every line and the document totals."""
    try:
        document = InvoiceDocument(
            kind=request.kind,
            catalog=catalog,
            engine=engine,
            adjustments=DocumentAdjustments(
                discount=request.discount,
                discount_type=request.discount_type,
                tax=request.tax,
                tax_type=request.tax_type,
                payment_type=request.payment_type,
                paid_or_received=request.paid_or_received,
            ),
            lines=[line.to_line() for line in request.lines],
        )
        totals = document.totals()
        return jsonable_encoder({
            "lines": [line_to_dict(line) for line in document.lines],
            "totals": totals_to_dict(totals),
            "document": document.to_document(),
        })
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
