#!/usr/bin/env python3
"""
Stage 1: Load Supplier Price Lists

Reads supplier price lists (bulk-upload template or supplier files) and
upserts them into the price entries:
1. Accepts several header spellings per field
2. Final price = after-GST price, else before-GST * (1 + GST rate / 100)
3. Defaults: currency INR, GST 18%, effective_from today
4. Rows with a missing supplier/product or bad price are skipped and
   reported as "Row N: ..." warnings; the file itself still loads

Dependencies: 01_orders.py (suppliers file, if any)
Input: data/raw/price_lists/*.csv|xlsx
Output: data/intermediate/price_entries.csv, data/intermediate/suppliers.csv
"""

import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402
import pandera as pa  # noqa: E402

from payouts.config.settings import (  # noqa: E402
    EXPORT_PATTERNS,
    INTERMEDIATE_PRICE_ENTRIES,
    INTERMEDIATE_SUPPLIERS,
    RAW_PRICE_LISTS_DIR,
)
from payouts.contracts import PriceEntriesSchema, SuppliersSchema  # noqa: E402
from payouts.engine.frames import PRICE_ENTRY_COLUMNS, SUPPLIER_COLUMNS  # noqa: E402
from payouts.engine.ingest import MalformedExportError, load_price_list, read_export  # noqa: E402
from payouts.utils.io import atomic_write_csv, read_frame  # noqa: E402

# Show at most this many row errors per file
MAX_ERRORS_SHOWN = 20


def load_data():
    """Load suppliers and price entries already on file."""
    print("Loading existing data...")
    if INTERMEDIATE_SUPPLIERS.exists():
        suppliers = read_frame(INTERMEDIATE_SUPPLIERS)
    else:
        suppliers = pd.DataFrame(columns=SUPPLIER_COLUMNS)
    print(f"  Suppliers: {len(suppliers):,} rows")

    if INTERMEDIATE_PRICE_ENTRIES.exists():
        price_entries = read_frame(INTERMEDIATE_PRICE_ENTRIES)
    else:
        price_entries = pd.DataFrame(columns=PRICE_ENTRY_COLUMNS)
    print(f"  Price entries: {len(price_entries):,} rows")
    return suppliers, price_entries


def list_price_lists() -> list:
    files = []
    for pattern in EXPORT_PATTERNS:
        files.extend(RAW_PRICE_LISTS_DIR.glob(pattern))
    return sorted(files)


def report_errors(errors: list) -> None:
    for message in errors[:MAX_ERRORS_SHOWN]:
        print(f"    Warning: {message}")
    if len(errors) > MAX_ERRORS_SHOWN:
        print(f"    ... and {len(errors) - MAX_ERRORS_SHOWN:,} more")


def validate_output(price_entries: pd.DataFrame, suppliers: pd.DataFrame) -> bool:
    """Validate output using Pandera contracts."""
    try:
        PriceEntriesSchema.validate(price_entries, lazy=True)
        SuppliersSchema.validate(suppliers, lazy=True)
        print("  Pandera contract validation passed")
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        print("  ERROR: Pandera contract validation failed:")
        print(f"    {e}")
        return False
    return True


def main():
    print("=" * 60)
    print("Stage 1: Load Supplier Price Lists")
    print("=" * 60)

    print("\n[1/3] Loading data...")
    suppliers, price_entries = load_data()
    files = list_price_lists()
    print(f"  Price lists found: {len(files):,}")

    print("\n[2/3] Upserting price entries...")
    for filepath in files:
        try:
            raw_df = read_export(filepath)
        except MalformedExportError as e:
            print(f"  ERROR: {e}")
            return False

        result = load_price_list(raw_df, suppliers, price_entries)
        suppliers, price_entries = result.suppliers, result.price_entries
        print(f"  {filepath.name}: {result.processed:,} loaded, {result.skipped:,} skipped")
        if result.supplier_names:
            print(f"    Suppliers: {', '.join(result.supplier_names)}")
        report_errors(result.errors)

    print(f"  Total price entries: {len(price_entries):,}")

    print("\n[3/3] Validating and saving...")
    if not validate_output(price_entries, suppliers):
        return False
    atomic_write_csv(price_entries, INTERMEDIATE_PRICE_ENTRIES)
    atomic_write_csv(suppliers, INTERMEDIATE_SUPPLIERS)
    print(f"  Saved to: {INTERMEDIATE_PRICE_ENTRIES}")

    print("\n" + "=" * 60)
    print("Stage 1 Complete: Price lists loaded")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
