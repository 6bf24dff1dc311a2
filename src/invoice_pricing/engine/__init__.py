"""Engine subpackage - core pricing logic and resolution."""
from .pricing_engine import PricingEngine
from .models import (
    CatalogItem,
    DocumentAdjustments,
    DocumentTotals,
    LineItem,
    PriceKind,
    PriceUnit,
    ResolvedPrice,
)
from .units import ConvertibleUnit, CustomUnit, NoUnit, SimpleUnit, parse_unit

__all__ = [
    'PricingEngine', 'CatalogItem', 'DocumentAdjustments', 'DocumentTotals',
    'LineItem', 'PriceKind', 'PriceUnit', 'ResolvedPrice',
    'ConvertibleUnit', 'CustomUnit', 'NoUnit', 'SimpleUnit', 'parse_unit',
]
