#!/usr/bin/env python3
"""
Stage 2: Calculate Supplier Payouts

Runs the payout calculation over the full order set:
1. Keeps delivered/completed orders that have the pricing-basis date
2. Resolves the price entry in effect on that date
3. line_amount = final (post-GST) price * qty
4. Groups payable amounts by supplier and currency
5. Lists supplier/product/currency keys with no applicable price

The computed unit_price, line_amount and hsn are written back onto the
orders so reports (which read persisted amounts) see them.

Dependencies: 01_orders.py, 02_price_lists.py
Input: data/intermediate/orders.csv, price_entries.csv, suppliers.csv
Output: data/intermediate/payout_calculations.csv, supplier_summary.csv,
        missing_prices.csv, orders.csv (price snapshot)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402
import pandera as pa  # noqa: E402

from payouts.config.column_mappings import REQUIRED_COLUMNS  # noqa: E402
from payouts.config.settings import (  # noqa: E402
    INTERMEDIATE_CALCULATIONS,
    INTERMEDIATE_MISSING_PRICES,
    INTERMEDIATE_ORDERS,
    INTERMEDIATE_PRICE_ENTRIES,
    INTERMEDIATE_SUPPLIER_SUMMARY,
    INTERMEDIATE_SUPPLIERS,
)
from payouts.contracts import PayoutCalculationsSchema, SupplierSummarySchema  # noqa: E402
from payouts.engine.calculator import calculate_payouts  # noqa: E402
from payouts.engine.frames import PRICE_ENTRY_COLUMNS  # noqa: E402
from payouts.engine.ingest import apply_price_snapshot  # noqa: E402
from payouts.engine.status import PricingBasis  # noqa: E402
from payouts.utils.io import atomic_write_csv, read_frame  # noqa: E402


def load_data():
    """Load intermediate data files."""
    print("Loading intermediate data...")

    orders = read_frame(INTERMEDIATE_ORDERS)
    print(f"  Orders: {len(orders):,} rows")

    suppliers = read_frame(INTERMEDIATE_SUPPLIERS)
    print(f"  Suppliers: {len(suppliers):,} rows")

    if INTERMEDIATE_PRICE_ENTRIES.exists():
        price_entries = read_frame(INTERMEDIATE_PRICE_ENTRIES)
    else:
        print("  Warning: No price entries on file, every payable order will be missing a price")
        price_entries = pd.DataFrame(columns=PRICE_ENTRY_COLUMNS)
    print(f"  Price entries: {len(price_entries):,} rows")

    return orders, price_entries, suppliers


def validate_output(calculations: pd.DataFrame, summary: pd.DataFrame) -> bool:
    """Validate output using Pandera contracts."""
    missing = [col for col in REQUIRED_COLUMNS["payout_calculations"] if col not in calculations.columns]
    if missing:
        print(f"  ERROR: Missing required columns: {missing}")
        return False

    try:
        PayoutCalculationsSchema.validate(calculations, lazy=True)
        SupplierSummarySchema.validate(summary, lazy=True)
        print("  Pandera contract validation passed")
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        print("  ERROR: Pandera contract validation failed:")
        print(f"    {e}")
        return False
    return True


def print_summary(summary: pd.DataFrame, missing_prices: pd.DataFrame) -> None:
    for row in summary.itertuples(index=False):
        print(f"  {row.supplier_name} ({row.currency}): {row.order_count:,} orders, {row.total_amount:,.2f}")
    if len(missing_prices):
        print(f"  Warning: {len(missing_prices):,} supplier/product combinations have no price")
        for row in missing_prices.itertuples(index=False):
            print(f"    - {row.supplier_name} / {row.product_name} ({row.currency})")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Calculate supplier payouts")
    parser.add_argument(
        "--pricing-basis",
        choices=[basis.value for basis in PricingBasis],
        default=PricingBasis.DELIVERED_DATE.value,
        help="Order date used to look up the price (default: delivered_date)",
    )
    args = parser.parse_args(argv)

    print("=" * 60)
    print("Stage 2: Calculate Supplier Payouts")
    print("=" * 60)

    for dependency in [INTERMEDIATE_ORDERS, INTERMEDIATE_SUPPLIERS]:
        if not dependency.exists():
            print(f"ERROR: Dependency not found: {dependency}")
            return False

    print("\n[1/4] Loading data...")
    orders, price_entries, suppliers = load_data()

    print(f"\n[2/4] Calculating payouts (basis: {args.pricing_basis})...")
    result = calculate_payouts(orders, price_entries, suppliers, pricing_basis=args.pricing_basis)
    print(f"  Priced orders: {len(result.calculations):,}")
    print(f"  Total payable: {result.total_amount:,.2f}")
    print_summary(result.supplier_summary, result.missing_prices)

    print("\n[3/4] Validating...")
    summary = result.supplier_summary.drop(columns=["orders"])
    if not validate_output(result.calculations, summary):
        return False

    print("\n[4/4] Saving...")
    orders = apply_price_snapshot(orders, result.calculations)
    atomic_write_csv(result.calculations, INTERMEDIATE_CALCULATIONS)
    atomic_write_csv(summary, INTERMEDIATE_SUPPLIER_SUMMARY)
    atomic_write_csv(result.missing_prices, INTERMEDIATE_MISSING_PRICES)
    atomic_write_csv(orders, INTERMEDIATE_ORDERS)
    print(f"  Saved to: {INTERMEDIATE_CALCULATIONS}")
    print(f"  Saved to: {INTERMEDIATE_SUPPLIER_SUMMARY}")
    print(f"  Saved to: {INTERMEDIATE_MISSING_PRICES}")

    print("\n" + "=" * 60)
    print("Stage 2 Complete: Payouts calculated")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
