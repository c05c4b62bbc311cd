#!/usr/bin/env python3
"""
Stage 3: Generate Payout Reports

Builds the six report views and writes them with human-readable headers:
- supplier_payout_summary.csv   (filtered, grouped by supplier + currency)
- payout_export_sheet.csv       (filtered, delivered/completed orders)
- cancelled_orders.csv          (unfiltered)
- reconciliation_log.csv        (unfiltered)
- exceptions.csv                (filtered, data-quality problems)
- line_details.csv              (filtered, every order)
plus payout_reports.xlsx with one sheet per report and
missing_price_template.csv for supplier/product pairs with no price at all.

Filters: --period-from/--period-to (delivered date), --currency,
--min-amount (supplier summary only), --supplier (by name).

Dependencies: All stage1 and stage2 scripts must run first
Input: data/intermediate/orders.csv, price_entries.csv, suppliers.csv,
       reconciliation_log.csv
Output: data/reports/
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402

from payouts.config.column_mappings import PRICE_TEMPLATE_HEADERS, REPORT_EXPORTS  # noqa: E402
from payouts.config.settings import (  # noqa: E402
    DEFAULT_CURRENCY,
    DEFAULT_GST_RATE,
    INTERMEDIATE_ORDERS,
    INTERMEDIATE_PRICE_ENTRIES,
    INTERMEDIATE_RECONCILIATION_LOG,
    INTERMEDIATE_SUPPLIERS,
    MISSING_PRICE_TEMPLATE,
    REPORTS_DIR,
    REPORTS_WORKBOOK,
)
from payouts.engine.frames import PRICE_ENTRY_COLUMNS  # noqa: E402
from payouts.engine.reconciliation import LOG_COLUMNS  # noqa: E402
from payouts.engine.reports import (  # noqa: E402
    ReportFilters,
    dashboard_stats,
    find_unpriced_products,
    generate_reports,
)
from payouts.utils.io import atomic_write_csv, read_frame, to_report_headers, write_workbook  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate payout reports")
    parser.add_argument("--period-from", help="Delivered on or after (YYYY-MM-DD)")
    parser.add_argument("--period-to", help="Delivered on or before (YYYY-MM-DD)")
    parser.add_argument("--currency", help="Only orders in this currency")
    parser.add_argument("--min-amount", type=float, help="Drop supplier summary rows below this total")
    parser.add_argument("--supplier", help="Only orders of this supplier (by name)")
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

    if INTERMEDIATE_RECONCILIATION_LOG.exists():
        log = read_frame(INTERMEDIATE_RECONCILIATION_LOG)
    else:
        log = pd.DataFrame(columns=LOG_COLUMNS)
    print(f"  Reconciliation log: {len(log):,} entries")

    return orders, price_entries, suppliers, log


def build_price_template(unpriced: pd.DataFrame) -> pd.DataFrame:
    """Bulk-upload template rows: supplier and product filled, prices left blank."""
    template = pd.DataFrame(columns=PRICE_TEMPLATE_HEADERS, index=range(len(unpriced)))
    template["Supplier Name"] = unpriced["supplier_name"].values
    template["Product Name"] = unpriced["product_name"].values
    template["GST Rate (%)"] = DEFAULT_GST_RATE
    template["Currency"] = DEFAULT_CURRENCY
    return template


def save_reports(bundle) -> dict:
    """Write each report CSV and the combined workbook. Returns sheets by name."""
    sheets = {}
    for name, report in bundle.as_dict().items():
        file_stem, mapping = REPORT_EXPORTS[name]
        output = to_report_headers(report, mapping)
        atomic_write_csv(output, REPORTS_DIR / f"{file_stem}.csv")
        sheets[name] = output
        print(f"  {file_stem}.csv: {len(output):,} rows")
    write_workbook(sheets, REPORTS_WORKBOOK)
    print(f"  Saved workbook: {REPORTS_WORKBOOK}")
    return sheets


def main(argv=None):
    args = parse_args(argv)

    print("=" * 60)
    print("Stage 3: Generate Payout Reports")
    print("=" * 60)

    for dependency in [INTERMEDIATE_ORDERS, INTERMEDIATE_SUPPLIERS]:
        if not dependency.exists():
            print(f"ERROR: Dependency not found: {dependency}")
            return False

    print("\n[1/4] Loading data...")
    orders, price_entries, suppliers, log = load_data()

    filters = ReportFilters(
        period_from=args.period_from,
        period_to=args.period_to,
        currency=args.currency,
        min_amount=args.min_amount,
        supplier=args.supplier,
    )
    active = {key: value for key, value in vars(args).items() if value is not None}
    print(f"  Filters: {active or 'none'}")

    print("\n[2/4] Building reports...")
    try:
        bundle = generate_reports(orders, price_entries, suppliers, log, filters)
    except ValueError as e:
        print(f"  ERROR: Invalid filter value: {e}")
        return False

    print("\n[3/4] Saving reports...")
    save_reports(bundle)

    unpriced = find_unpriced_products(orders, price_entries, suppliers)
    atomic_write_csv(build_price_template(unpriced), MISSING_PRICE_TEMPLATE)
    print(f"  Missing price template: {len(unpriced):,} products")

    print("\n[4/4] Dashboard...")
    for key, value in dashboard_stats(orders, price_entries, suppliers).items():
        label = key.replace("_", " ").capitalize()
        print(f"  {label}: {value:,}")

    print("\n" + "=" * 60)
    print("Stage 3 Complete: Reports generated")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
