#!/usr/bin/env python3
"""
Stage 3: Generate GST Invoices

Builds one tax invoice per supplier from delivered/completed orders in the
period, priced with the entry valid on each order's invoice date.

Options: --period-from/--period-to, --invoice-date-basis
(channel_order_date | order_date | delivered_date), --supplier (by name).

Dependencies: All stage1 and stage2 scripts must run first
Input: data/intermediate/orders.csv, price_entries.csv, suppliers.csv
Output: data/reports/gst_invoices/<supplier>.xlsx (Invoice + Items sheets)
        data/reports/gst_invoices.csv (one row per invoice)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402
import pandera as pa  # noqa: E402

from payouts.config.column_mappings import (  # noqa: E402
    GST_INVOICE_HEADER_MAPPING,
    GST_INVOICE_ITEMS_MAPPING,
)
from payouts.config.settings import (  # noqa: E402
    GST_INVOICE_SUMMARY,
    GST_INVOICES_DIR,
    INTERMEDIATE_ORDERS,
    INTERMEDIATE_PRICE_ENTRIES,
    INTERMEDIATE_SUPPLIERS,
)
from payouts.contracts import GstInvoiceItemsSchema  # noqa: E402
from payouts.engine.frames import PRICE_ENTRY_COLUMNS  # noqa: E402
from payouts.engine.gst_invoice import generate_gst_invoices  # noqa: E402
from payouts.utils.io import (  # noqa: E402
    atomic_write_csv,
    file_slug,
    read_frame,
    to_report_headers,
    write_workbook,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate GST invoices")
    parser.add_argument("--period-from", help="Invoice dates on or after (YYYY-MM-DD)")
    parser.add_argument("--period-to", help="Invoice dates on or before (YYYY-MM-DD)")
    parser.add_argument(
        "--invoice-date-basis",
        default="delivered_date",
        help="channel_order_date, order_date or delivered_date (default)",
    )
    parser.add_argument("--supplier", help="Only this supplier (by name)")
    return parser.parse_args(argv)


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
        price_entries = pd.DataFrame(columns=PRICE_ENTRY_COLUMNS)
    print(f"  Price entries: {len(price_entries):,} rows")

    return orders, price_entries, suppliers


def validate_output(invoices) -> bool:
    """Validate every invoice's items against the contract."""
    print("\nValidating invoice items...")
    for invoice in invoices:
        try:
            GstInvoiceItemsSchema.validate(invoice.items, lazy=True)
        except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
            print(f"  ERROR: Pandera contract validation failed for {invoice.supplier_name}:")
            print(f"    {e}")
            return False
    print("  Pandera contract validation passed")
    return True


def invoice_sheet(invoice) -> pd.DataFrame:
    """Header fields as a two-column Field/Value sheet."""
    header = invoice.header()
    return pd.DataFrame({
        "Field": [GST_INVOICE_HEADER_MAPPING[key] for key in GST_INVOICE_HEADER_MAPPING],
        "Value": [header[key] for key in GST_INVOICE_HEADER_MAPPING],
    })


def save_data(invoices):
    """Write one workbook per invoice plus the summary CSV."""
    print("\nSaving invoices...")
    for invoice in invoices:
        filepath = GST_INVOICES_DIR / f"{file_slug(invoice.supplier_name)}.xlsx"
        write_workbook({
            "Invoice": invoice_sheet(invoice),
            "Items": to_report_headers(invoice.items, GST_INVOICE_ITEMS_MAPPING),
        }, filepath)
        print(f"  {filepath.name}: {invoice.total_amount_after_gst:,.2f} ({len(invoice.items)} items)")

    summary = pd.DataFrame(
        [invoice.header() for invoice in invoices],
        columns=list(GST_INVOICE_HEADER_MAPPING),
    )
    atomic_write_csv(summary, GST_INVOICE_SUMMARY)
    print(f"  Saved: {GST_INVOICE_SUMMARY}")


def main(argv=None):
    args = parse_args(argv)

    print("=" * 60)
    print("Stage 3: Generate GST Invoices")
    print("=" * 60)

    for dependency in [INTERMEDIATE_ORDERS, INTERMEDIATE_SUPPLIERS]:
        if not dependency.exists():
            print(f"ERROR: Dependency not found: {dependency}")
            return False

    print("\n[1/3] Loading data...")
    orders, price_entries, suppliers = load_data()

    print("\n[2/3] Building invoices...")
    try:
        invoices = generate_gst_invoices(
            orders,
            price_entries,
            suppliers,
            supplier_names=[args.supplier] if args.supplier else None,
            date_from=args.period_from,
            date_to=args.period_to,
            date_basis=args.invoice_date_basis,
        )
    except ValueError as e:
        print(f"  ERROR: Invalid option value: {e}")
        return False
    if not invoices:
        print("  Warning: No supplier has invoiceable orders in the period")
    print(f"  Invoices: {len(invoices):,}")

    if not validate_output(invoices):
        return False

    print("\n[3/3] Saving...")
    save_data(invoices)

    print("\n" + "=" * 60)
    print("Stage 3 Complete: GST invoices generated")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
