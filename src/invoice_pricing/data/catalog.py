"""
Item Catalog - In-memory lookup of catalog items by name.

Loads the normalized catalog written by build_catalog.py. Unit and price
fields are resolved into CatalogItem records here, so the engine never
sees raw CSV values.
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.models import CatalogItem, PriceKind, PriceUnit, DEFAULT_PRICE_UNITS
from ..engine.money import to_decimal
from ..engine.units import parse_unit

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = [
    'name', 'item_code', 'sale_price', 'purchase_price', 'wholesale_price',
    'minimum_wholesale_quantity', 'base_unit', 'secondary_unit', 'conversion_factor',
    'purchase_price_unit', 'sale_price_unit', 'wholesale_price_unit',
]


def _lookup_key(name) -> str:
    return str(name or '').strip().casefold()


class Catalog:
    """
    Read-only item catalog.

    A name that is not in the catalog is not an error: `lookup` returns
    None and callers keep whatever the user entered.
    """

    def __init__(self, catalog_path: Optional[Path] = None, frame: Optional[pd.DataFrame] = None):
        """Load from a CSV path or an already-built DataFrame."""
        self.catalog_path = catalog_path

        if frame is None:
            if catalog_path is None or not catalog_path.exists():
                raise FileNotFoundError(
                    f"Item catalog not found at {catalog_path}. "
                    "Execute build_catalog.py first."
                )
            frame = pd.read_csv(catalog_path, dtype=str, keep_default_na=False)

        self.items = self._normalize(frame)

    @classmethod
    def from_records(cls, records: list[dict]) -> 'Catalog':
        """Build a catalog from dicts keyed by catalog column names."""
        return cls(frame=pd.DataFrame(records, columns=CATALOG_COLUMNS))

    @classmethod
    def empty(cls) -> 'Catalog':
        return cls.from_records([])

    def reload_data(self):
        """Reload the catalog CSV from disk."""
        self.__init__(self.catalog_path)

    def _normalize(self, frame: pd.DataFrame) -> pd.DataFrame:
        frame = frame.copy()
        for col in CATALOG_COLUMNS:
            if col not in frame.columns:
                frame[col] = ''
        frame = frame[CATALOG_COLUMNS].fillna('')
        for col in CATALOG_COLUMNS:
            frame[col] = frame[col].astype(str).str.strip()

        frame = frame[frame['name'] != ''].copy()
        frame['key'] = frame['name'].str.casefold()

        # Handle potential duplicates by taking first entry
        duplicates = int(frame['key'].duplicated().sum())
        if duplicates:
            logger.warning("Catalog has %d duplicate item names; keeping first", duplicates)
        return frame.drop_duplicates('key').set_index('key')

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, name) -> bool:
        return _lookup_key(name) in self.items.index

    def lookup(self, name) -> Optional[CatalogItem]:
        """Return the catalog record for `name`, or None if not found."""
        key = _lookup_key(name)
        if not key or key not in self.items.index:
            logger.debug("Item %r not in catalog", name)
            return None
        return self._to_item(self.items.loc[key])

    def search(self, text: str = '', limit: int = 20) -> list[CatalogItem]:
        """Items whose name contains `text` (case-insensitive)."""
        df = self.items
        if text:
            df = df[df['name'].str.contains(text, case=False, na=False, regex=False)]
        return [self._to_item(row) for _, row in df.head(limit).iterrows()]

    def _to_item(self, row: pd.Series) -> CatalogItem:
        unit = parse_unit({
            'base': row['base_unit'],
            'secondary': row['secondary_unit'],
            'conversionFactor': row['conversion_factor'],
        })

        price_units = dict(DEFAULT_PRICE_UNITS)
        for kind in PriceKind:
            override = row[f'{kind.value}_price_unit'].lower()
            if override in (PriceUnit.BASE.value, PriceUnit.SECONDARY.value):
                price_units[kind] = PriceUnit(override)

        return CatalogItem(
            name=row['name'],
            unit=unit,
            purchase_price=to_decimal(row['purchase_price']),
            sale_price=to_decimal(row['sale_price']),
            wholesale_price=to_decimal(row['wholesale_price']),
            minimum_wholesale_quantity=to_decimal(row['minimum_wholesale_quantity']),
            item_code=row['item_code'] or None,
            price_units=price_units,
        )
