"""
Catalog Builder - Normalizes a bulk "import items" export into the item catalog.

Reads the CSV/Excel layout used by the items import template, validates
rows the same way the importer does, and writes items_catalog.csv plus a
JSON build report.
"""
import pandas as pd
import json
import hashlib
from datetime import datetime
from typing import Optional
from pathlib import Path

from ..config.settings import get_settings, Settings
from ..engine.money import parse_decimal
from .catalog import CATALOG_COLUMNS

# Import template header -> catalog column
SOURCE_COLUMNS = {
    'Item name*': 'name',
    'Item code': 'item_code',
    'Sale price': 'sale_price',
    'Purchase price': 'purchase_price',
    'Online Store Price': 'wholesale_price',
    'Minimum Wholesale Quantity': 'minimum_wholesale_quantity',
    'Base Unit (x)': 'base_unit',
    'Secondary Unit (y)': 'secondary_unit',
    'Conversion Rate (n) (x = ny)': 'conversion_factor',
}

PRICE_COLUMNS = {
    'sale_price': 'Sale price',
    'purchase_price': 'Purchase price',
    'wholesale_price': 'Wholesale price',
}


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def read_items_export(path: Path) -> pd.DataFrame:
    """Read an items export (CSV or Excel) as strings."""
    if path.suffix.lower() in ('.xlsx', '.xls'):
        df = pd.read_excel(path, dtype=str)
    else:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    return df.fillna('')


def validate_row(row: pd.Series, row_number: int) -> list[str]:
    """Validation rules of the items importer."""
    errors = []

    if not row['name']:
        errors.append(f"Row {row_number}: Item name is required")

    for col, label in PRICE_COLUMNS.items():
        value = parse_decimal(row[col])
        if value is not None and value < 0:
            errors.append(f"Row {row_number}: {label} cannot be negative")

    # Only require a conversion rate when both units are given
    if row['base_unit'] and row['secondary_unit']:
        rate = parse_decimal(row['conversion_factor'])
        if rate is None or rate <= 0:
            errors.append(f"Row {row_number}: Conversion rate must be greater than 0")

    return errors


def build_item_catalog(
    settings: Optional[Settings] = None,
    source: Optional[Path] = None,
    verbose: bool = True,
) -> dict:
    """
    Build the item catalog from an items export.

    Args:
        settings: Optional settings override
        source: Optional export path (defaults to settings.items_export)
        verbose: Print progress messages

    Returns:
        Build report dictionary
    """
    settings = settings or get_settings()
    source = Path(source) if source else settings.items_export

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    if not source.exists():
        msg = f"CRITICAL ERROR: {source} not found."
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    report["input_files"]["items_export"] = {
        "path": str(source),
        "hash": get_file_hash(source)
    }

    try:
        raw = read_items_export(source)
    except Exception as e:
        msg = f"ERROR: Failed to read {source}. {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    catalog = raw.rename(columns=SOURCE_COLUMNS)
    for col in CATALOG_COLUMNS:
        if col not in catalog.columns:
            catalog[col] = ''
    catalog = catalog[CATALOG_COLUMNS].copy()
    for col in CATALOG_COLUMNS:
        catalog[col] = catalog[col].astype(str).str.strip()

    report["metrics"]["input_rows"] = len(catalog)

    # Skip blank rows and template instruction rows ("** ...")
    skip_mask = (catalog['name'] == '') | catalog['name'].str.startswith('**')
    report["metrics"]["skipped_rows"] = int(skip_mask.sum())

    # Row numbers as shown in a spreadsheet (header is row 1)
    for index, row in catalog[~skip_mask].iterrows():
        report["errors"].extend(validate_row(row, int(index) + 2))

    if report["errors"]:
        report["status"] = "failed"
        if verbose:
            print(f"VALIDATION FAILED: {len(report['errors'])} error(s). Fix the export and rebuild.")
            for error in report["errors"]:
                print(f"  {error}")
        return report

    catalog = catalog[~skip_mask].copy()

    # Prices default to 0, matching the importer
    for col in ('sale_price', 'purchase_price', 'wholesale_price', 'minimum_wholesale_quantity'):
        catalog[col] = catalog[col].map(lambda v: str(parse_decimal(v) or 0))

    # Remove duplicate names, keeping the first row
    keys = catalog['name'].str.casefold()
    duplicates = int(keys.duplicated().sum())
    catalog = catalog[~keys.duplicated()]
    report["metrics"]["duplicates_removed"] = duplicates
    if duplicates > 0:
        report["warnings"].append(f"{duplicates} duplicate item names removed (kept first)")
        if verbose:
            print(f"Removed {duplicates} duplicate item names (kept first occurrence)")

    convertible = (catalog['base_unit'] != '') & (catalog['secondary_unit'] != '')
    report["metrics"]["convertible_unit_items"] = int(convertible.sum())

    without_sale_price = int((catalog['sale_price'] == '0').sum())
    report["metrics"]["missing_sale_price"] = without_sale_price
    if without_sale_price > 0:
        report["warnings"].append(f"{without_sale_price} items have no sale price")

    report["metrics"]["final_item_count"] = len(catalog)

    # Save item catalog
    output_path = settings.item_catalog
    output_path.parent.mkdir(parents=True, exist_ok=True)
    catalog.to_csv(output_path, index=False)
    report["output_file"] = str(output_path)
    report["status"] = "success"

    if verbose:
        print(f"\nPROCESS COMPLETE: {output_path} generated with {len(catalog)} items.")

    # Save build report
    report_path = settings.build_report
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2)

    if verbose:
        print(f"Build report saved to: {report_path}")

    return report


if __name__ == "__main__":
    build_item_catalog()
