from fastapi import FastAPI, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional

from ..data.catalog import Catalog
from ..engine.units import default_selection, selection_value
from .pricing_api import router as pricing_router
from .state import get_catalog, reload_catalog, settings

app = FastAPI(
    title="Invoice Pricing API",
    description="Line and document totals for sale and purchase invoices",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include pricing API
app.include_router(pricing_router)


def item_to_dict(item) -> dict:
    return {
        "name": item.name,
        "item_code": item.item_code,
        "unit": item.unit.label,
        "default_unit": selection_value(default_selection(item.unit)),
        "conversion_factor": getattr(item.unit, "conversion_factor", None),
        "sale_price": item.sale_price,
        "purchase_price": item.purchase_price,
        "wholesale_price": item.wholesale_price,
        "minimum_wholesale_quantity": item.minimum_wholesale_quantity,
        "price_units": {kind.value: unit.value for kind, unit in item.price_units.items()},
    }


@app.get("/")
async def root():
    return {"status": "online", "message": "Invoice Pricing API Active"}


@app.get("/catalog")
async def get_catalog_items(search: Optional[str] = None, limit: int = 100,
                            catalog: Catalog = Depends(get_catalog)):
    items = catalog.search(search or "", limit=min(limit, 200))
    return jsonable_encoder([item_to_dict(item) for item in items])


@app.get("/catalog/{name}")
async def get_catalog_item(name: str, catalog: Catalog = Depends(get_catalog)):
    item = catalog.lookup(name)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item '{name}' not found")
    return jsonable_encoder(item_to_dict(item))


@app.post("/catalog/reload")
async def reload_items():
    catalog = reload_catalog()
    return {"success": True, "items": len(catalog)}


@app.get("/system/status")
async def get_status(catalog: Catalog = Depends(get_catalog)):
    has_report = settings.build_report.exists()
    return {
        "engine_active": True,
        "catalog_items": len(catalog),
        "catalog_path": str(settings.item_catalog),
        "currency": settings.currency,
        "catalog_last_build": settings.build_report.stat().st_mtime if has_report else None
    }
