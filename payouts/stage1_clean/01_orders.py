#!/usr/bin/env python3
"""
Stage 1: Import Order Exports

Reads courier/fulfillment order exports and performs:
1. Maps export headers to logical fields (raw/column_mapping.json when
   present, otherwise header auto-detection per file)
2. Normalizes values: trimmed strings, ISO dates, qty >= 1, currency INR
3. Finds or creates suppliers by exact name
4. Appends the new orders to the order set (cancelled orders included)

Exports already imported (same file name) are skipped, so the stage can be
re-run after dropping a new export into raw/orders/.

Dependencies: None (independent stage 1 script)
Input: data/raw/orders/*.csv|xlsx, data/raw/suppliers.csv (optional)
Output: data/intermediate/orders.csv, data/intermediate/suppliers.csv
"""

import json
import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402
import pandera as pa  # noqa: E402

from payouts.config.column_mappings import REQUIRED_COLUMNS  # noqa: E402
from payouts.config.settings import (  # noqa: E402
    EXPORT_PATTERNS,
    INTERMEDIATE_ORDERS,
    INTERMEDIATE_SUPPLIERS,
    RAW_COLUMN_MAPPING_FILE,
    RAW_ORDERS_DIR,
    RAW_SUPPLIERS_FILE,
)
from payouts.contracts import OrdersSchema, SuppliersSchema  # noqa: E402
from payouts.engine.frames import ORDER_COLUMNS, SUPPLIER_COLUMNS, coerce_orders  # noqa: E402
from payouts.engine.ingest import (  # noqa: E402
    MalformedExportError,
    build_orders,
    read_export,
    validate_mapping,
)
from payouts.engine.normalizer import detect_column_mapping, normalize_rows  # noqa: E402
from payouts.utils.io import atomic_write_csv, read_frame  # noqa: E402


def list_exports(directory: Path) -> list:
    files = []
    for pattern in EXPORT_PATTERNS:
        files.extend(directory.glob(pattern))
    return sorted(files)


def load_suppliers() -> pd.DataFrame:
    """Existing suppliers, seeded from raw/suppliers.csv on first run."""
    if INTERMEDIATE_SUPPLIERS.exists():
        suppliers = read_frame(INTERMEDIATE_SUPPLIERS)
        print(f"  Suppliers on file: {len(suppliers):,}")
    elif RAW_SUPPLIERS_FILE.exists():
        suppliers = read_frame(RAW_SUPPLIERS_FILE)
        print(f"  Seeded {len(suppliers):,} suppliers from {RAW_SUPPLIERS_FILE.name}")
    else:
        suppliers = pd.DataFrame(columns=SUPPLIER_COLUMNS)
        print("  No suppliers on file yet")
    return suppliers


def load_existing_orders() -> pd.DataFrame:
    if not INTERMEDIATE_ORDERS.exists():
        return pd.DataFrame(columns=ORDER_COLUMNS + ["file_id"])
    orders = read_frame(INTERMEDIATE_ORDERS)
    print(f"  Orders on file: {len(orders):,}")
    return orders


def load_column_mapping():
    """Explicit column mapping, or None to auto-detect per export."""
    if not RAW_COLUMN_MAPPING_FILE.exists():
        return None
    with open(RAW_COLUMN_MAPPING_FILE) as f:
        mapping = json.load(f)
    print(f"  Using column mapping from {RAW_COLUMN_MAPPING_FILE.name}")
    return mapping


def import_export(filepath: Path, mapping, suppliers: pd.DataFrame):
    """Read, normalize and convert one export. Returns (orders, suppliers)."""
    raw_df = read_export(filepath)
    print(f"\n  {filepath.name}: {len(raw_df):,} rows, {len(raw_df.columns)} columns")

    file_mapping = mapping or detect_column_mapping(raw_df.columns)
    validate_mapping(file_mapping)

    normalized = normalize_rows(raw_df, file_mapping)
    orders, suppliers, summary = build_orders(normalized, suppliers, file_id=filepath.name)

    print(f"    Valid orders:     {summary.valid_orders:,}")
    print(f"    Cancelled orders: {summary.cancelled_orders:,}")
    print(f"    Delivered orders: {summary.delivered_orders:,}")
    print(f"    Suppliers:        {summary.unique_suppliers:,}")
    if summary.created_suppliers:
        print(f"    New suppliers:    {', '.join(summary.created_suppliers)}")
    return orders, suppliers


def validate_output(orders: pd.DataFrame, suppliers: pd.DataFrame) -> bool:
    """Validate output using Pandera contracts."""
    missing = [col for col in REQUIRED_COLUMNS["orders"] if col not in orders.columns]
    if missing:
        print(f"  ERROR: Missing required columns: {missing}")
        return False

    try:
        OrdersSchema.validate(coerce_orders(orders), lazy=True)
        SuppliersSchema.validate(suppliers, lazy=True)
        print("  Pandera contract validation passed")
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        print("  ERROR: Pandera contract validation failed:")
        print(f"    {e}")
        return False
    return True


def main():
    print("=" * 60)
    print("Stage 1: Import Order Exports")
    print("=" * 60)

    print("\n[1/4] Loading existing data...")
    suppliers = load_suppliers()
    existing = load_existing_orders()
    mapping = load_column_mapping()

    exports = list_exports(RAW_ORDERS_DIR)
    imported = set(existing["file_id"].dropna()) if "file_id" in existing.columns else set()
    pending = [f for f in exports if f.name not in imported]
    print(f"  Exports found: {len(exports):,} ({len(pending):,} new)")

    print("\n[2/4] Importing exports...")
    new_frames = []
    for filepath in pending:
        try:
            orders, suppliers = import_export(filepath, mapping, suppliers)
        except MalformedExportError as e:
            print(f"  ERROR: {e}")
            return False
        new_frames.append(orders)

    frames = [frame for frame in [existing] + new_frames if not frame.empty]
    all_orders = pd.concat(frames, ignore_index=True) if frames else existing
    print(f"\n  Total orders: {len(all_orders):,}")

    print("\n[3/4] Validating...")
    if not validate_output(all_orders, suppliers):
        return False

    print("\n[4/4] Saving...")
    atomic_write_csv(all_orders, INTERMEDIATE_ORDERS)
    atomic_write_csv(suppliers, INTERMEDIATE_SUPPLIERS)
    print(f"  Saved to: {INTERMEDIATE_ORDERS}")
    print(f"  Saved to: {INTERMEDIATE_SUPPLIERS}")

    print("\n" + "=" * 60)
    print("Stage 1 Complete: Orders imported")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
