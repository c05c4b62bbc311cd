#!/usr/bin/env python3
"""
Payout Pipeline Orchestrator

Runs all stage scripts in the correct order to produce payout reports from
raw order exports and supplier price lists.

Usage:
    python3 payouts/pipeline.py           # Run full pipeline
    python3 payouts/pipeline.py --stage1  # Run only stage 1
    python3 payouts/pipeline.py --stage2  # Run stages 1-2
    python3 payouts/pipeline.py --pricing-basis order_date --currency INR

Pipeline Stages:
    Stage 1 (Clean):     Raw exports -> Intermediate (orders, suppliers, price entries)
    Stage 2 (Transform): Intermediate -> Intermediate (status reconciliation, payouts)
    Stage 3 (Prepare):   Intermediate -> Reports (CSV, XLSX, emails, GST invoices)

Output:
    data/reports/*.csv                   -> one file per report
    data/reports/payout_reports.xlsx     -> all reports, one sheet each
    data/reports/emails/*.txt            -> payout notifications
    data/reports/gst_invoices/*.xlsx     -> one GST invoice per supplier
"""

import argparse
import subprocess
import sys
from datetime import datetime
from pathlib import Path

# Paths
PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from payouts.config.settings import REPORTS_DIR, ensure_directories  # noqa: E402

# Pipeline definition: (script_path, description, forwarded options)
STAGE1_SCRIPTS = [
    ("stage1_clean/01_orders.py", "Import Order Exports", []),
    ("stage1_clean/02_price_lists.py", "Load Supplier Price Lists", []),
]

STAGE2_SCRIPTS = [
    ("stage2_transform/03_reconcile_status.py", "Reconcile Order Status Updates", []),
    ("stage2_transform/04_calculate_payouts.py", "Calculate Supplier Payouts", ["pricing_basis"]),
]

STAGE3_SCRIPTS = [
    (
        "stage3_prepare/05_generate_reports.py",
        "Generate Payout Reports",
        ["period_from", "period_to", "currency", "min_amount", "supplier"],
    ),
    ("stage3_prepare/06_compose_emails.py", "Compose Payout Emails", ["signature", "seed"]),
    (
        "stage3_prepare/07_generate_gst_invoices.py",
        "Generate GST Invoices",
        ["period_from", "period_to", "invoice_date_basis", "supplier"],
    ),
]


def script_args(options: list, values: dict) -> list:
    """Turn forwarded option values into command-line arguments."""
    args = []
    for option in options:
        value = values.get(option)
        if value is not None:
            args.extend([f"--{option.replace('_', '-')}", str(value)])
    return args


def run_script(script_path: Path, description: str, args: list) -> bool:
    """Run a Python script and return success status."""
    print(f"\n{'=' * 60}")
    print(f"Running: {description}")
    print(f"Script:  {script_path}")
    print("=" * 60)

    try:
        subprocess.run(
            [sys.executable, str(script_path)] + args,
            cwd=PROJECT_ROOT,
            check=True,
        )
        return True
    except subprocess.CalledProcessError as e:
        print(f"\nERROR: Script failed with exit code {e.returncode}")
        return False


def run_stage(stage_name: str, scripts: list, values: dict) -> bool:
    """Run all scripts in a stage."""
    print(f"\n{'#' * 60}")
    print(f"# {stage_name}")
    print(f"{'#' * 60}")

    for script_rel_path, description, options in scripts:
        script_path = PACKAGE_DIR / script_rel_path
        if not script_path.exists():
            print(f"ERROR: Script not found: {script_path}")
            return False

        if not run_script(script_path, description, script_args(options, values)):
            return False

    return True


def run_pipeline(max_stage: int = 3, values: dict = None) -> bool:
    """Run the pipeline up to the specified stage."""
    values = values or {}
    start_time = datetime.now()
    ensure_directories()

    print("\n" + "=" * 60)
    print(" PAYOUT PIPELINE")
    print(" Started at:", start_time.strftime("%Y-%m-%d %H:%M:%S"))
    print("=" * 60)

    stages = [
        ("STAGE 1: CLEAN", STAGE1_SCRIPTS),
        ("STAGE 2: TRANSFORM", STAGE2_SCRIPTS),
        ("STAGE 3: PREPARE", STAGE3_SCRIPTS),
    ]

    for i, (stage_name, scripts) in enumerate(stages, 1):
        if i > max_stage:
            break

        if not run_stage(stage_name, scripts, values):
            print(f"\n{'!' * 60}")
            print(f"! PIPELINE FAILED at {stage_name}")
            print(f"{'!' * 60}")
            return False

    end_time = datetime.now()
    duration = end_time - start_time

    print("\n" + "=" * 60)
    print(" PIPELINE COMPLETE")
    print(" Finished at:", end_time.strftime("%Y-%m-%d %H:%M:%S"))
    print(f" Duration: {duration.total_seconds():.1f} seconds")
    print("=" * 60)

    print("\nOutput Files:")
    if REPORTS_DIR.exists():
        for f in sorted(REPORTS_DIR.glob("*.*")):
            size = f.stat().st_size / 1024
            print(f"  {f.name}: {size:.1f} KB")

    return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Run payout pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python3 payouts/pipeline.py           # Run full pipeline
    python3 payouts/pipeline.py --stage1  # Run only stage 1 (clean)
    python3 payouts/pipeline.py --stage2  # Run stages 1-2 (clean + transform)
    python3 payouts/pipeline.py --period-from 2024-11-21 --period-to 2024-11-30
        """,
    )

    parser.add_argument("--stage1", action="store_true", help="Run only stage 1 (clean)")
    parser.add_argument("--stage2", action="store_true", help="Run stages 1-2 (clean + transform)")
    parser.add_argument("--stage3", action="store_true", help="Run all stages (default)")

    parser.add_argument("--pricing-basis", help="delivered_date (default) or order_date")
    parser.add_argument("--period-from", help="Reports: delivered on or after (YYYY-MM-DD)")
    parser.add_argument("--period-to", help="Reports: delivered on or before (YYYY-MM-DD)")
    parser.add_argument("--currency", help="Reports: only this currency")
    parser.add_argument("--min-amount", type=float, help="Reports: minimum supplier total")
    parser.add_argument("--supplier", help="Reports: only this supplier (by name)")
    parser.add_argument("--signature", help="Emails: signature line")
    parser.add_argument("--seed", type=int, help="Emails: seed for UTR references")
    parser.add_argument("--invoice-date-basis", help="Invoices: channel_order_date, order_date or delivered_date")

    args = parser.parse_args(argv)

    if args.stage1:
        max_stage = 1
    elif args.stage2:
        max_stage = 2
    else:
        max_stage = 3

    success = run_pipeline(max_stage, vars(args))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
