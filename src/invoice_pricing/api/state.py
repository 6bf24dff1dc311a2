"""
Shared engine and catalog instances for the API.
"""
import logging
from typing import Optional

from ..config.settings import get_settings
from ..data.catalog import Catalog
from ..engine import PricingEngine

logger = logging.getLogger(__name__)

settings = get_settings()
engine = PricingEngine(places=settings.money_places)

_catalog: Optional[Catalog] = None


def get_engine() -> PricingEngine:
    return engine


def get_catalog() -> Catalog:
    """Load the item catalog once; an empty catalog if it has not been built."""
    global _catalog
    if _catalog is None:
        try:
            _catalog = Catalog(settings.item_catalog)
        except FileNotFoundError as e:
            logger.warning("%s Serving with an empty catalog.", e)
            _catalog = Catalog.empty()
    return _catalog


def reload_catalog() -> Catalog:
    """Drop the cached catalog so the next request reloads it from disk."""
    global _catalog
    _catalog = None
    return get_catalog()
