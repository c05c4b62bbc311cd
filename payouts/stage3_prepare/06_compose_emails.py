#!/usr/bin/env python3
"""
Stage 3: Compose Payout Emails

Writes one payout notification per supplier and currency from the last
payout run. Emails are written as text files for review; nothing is sent.

Dependencies: 04_calculate_payouts.py
Input: data/intermediate/payout_calculations.csv, supplier_summary.csv
Output: data/reports/emails/<supplier>_<currency>.txt
"""

import argparse
import random
import sys
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from payouts.config.settings import (  # noqa: E402
    EMAIL_SIGNATURE,
    EMAILS_DIR,
    INTERMEDIATE_CALCULATIONS,
    INTERMEDIATE_SUPPLIER_SUMMARY,
)
from payouts.engine.email_summary import compose_payout_email, summarize_for_email  # noqa: E402
from payouts.utils.io import file_slug, read_frame  # noqa: E402


def load_data():
    """Load payout run outputs."""
    print("Loading intermediate data...")
    calculations = read_frame(
        INTERMEDIATE_CALCULATIONS,
        dtype={"order_id": str, "awb_no": str, "supplier_name": str, "product_name": str, "hsn": str},
    )
    print(f"  Calculations: {len(calculations):,} rows")
    summary = read_frame(INTERMEDIATE_SUPPLIER_SUMMARY, dtype={"supplier_name": str, "currency": str})
    print(f"  Supplier groups: {len(summary):,}")
    return calculations, summary


def email_filename(supplier_name: str, currency: str) -> str:
    return f"{file_slug(supplier_name)}_{currency}.txt"


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compose payout emails")
    parser.add_argument("--signature", default=EMAIL_SIGNATURE, help="Name signed under each email")
    parser.add_argument("--seed", type=int, help="Seed for UTR references (reproducible output)")
    args = parser.parse_args(argv)

    print("=" * 60)
    print("Stage 3: Compose Payout Emails")
    print("=" * 60)

    for dependency in [INTERMEDIATE_CALCULATIONS, INTERMEDIATE_SUPPLIER_SUMMARY]:
        if not dependency.exists():
            print(f"ERROR: Dependency not found: {dependency}")
            return False

    print("\n[1/2] Loading data...")
    calculations, summary = load_data()
    rng = random.Random(args.seed)

    print("\n[2/2] Writing emails...")
    EMAILS_DIR.mkdir(parents=True, exist_ok=True)
    for row in summary.itertuples(index=False):
        details = summarize_for_email(calculations, row.supplier_name, row.currency)
        email = compose_payout_email(
            [row.supplier_name],
            details["total_amount"],
            details["date_from"],
            details["date_to"],
            details["order_count"],
            details["total_units"],
            details["unique_products"],
            rng=rng,
            signature=args.signature,
            currency=row.currency,
        )
        filepath = EMAILS_DIR / email_filename(row.supplier_name, row.currency)
        filepath.write_text(f"Subject: {email.subject}\n\n{email.body}\n", encoding="utf-8")
        print(f"  {filepath.name}: {details['total_amount']:,.2f} ({email.reference})")

    print("\n" + "=" * 60)
    print("Stage 3 Complete: Payout emails written")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
