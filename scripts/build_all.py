#!/usr/bin/env python
"""
Build pipeline - builds the item catalog and runs the test suite.

Usage:
    python scripts/build_all.py [path/to/items_export.csv|.xlsx]
"""
import logging
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from invoice_pricing.data.build_catalog import build_item_catalog


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    source = Path(sys.argv[1]) if len(sys.argv) > 1 else None

    print("=" * 60)
    print("INVOICE PRICING BUILD PIPELINE")
    print("=" * 60)
    print()

    print("[1/2] Building item catalog...")
    report = build_item_catalog(source=source, verbose=True)

    if report["status"] != "success":
        print("\n❌ BUILD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("[2/2] Running tests...")

    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-q', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    metrics = report['metrics']
    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Items: {metrics['final_item_count']}")
    print(f"  Skipped rows: {metrics['skipped_rows']}")
    print(f"  Duplicates removed: {metrics['duplicates_removed']}")
    print(f"  Items with base/secondary units: {metrics['convertible_unit_items']}")
    print(f"  Missing sale price: {metrics['missing_sale_price']}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
