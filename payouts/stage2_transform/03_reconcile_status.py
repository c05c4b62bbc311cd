#!/usr/bin/env python3
"""
Stage 2: Reconcile Order Status Updates

Applies later status exports (e.g. Delivered -> RTO) to orders already on
file and appends one reconciliation log entry per changed AWB:
- payable -> return: negative impact (clawback of line_amount)
- return -> payable: positive impact
- anything else: zero impact

Re-running with the same update file is a no-op: statuses already match.

Dependencies: 01_orders.py
Input: data/intermediate/orders.csv, data/raw/status_updates/*.csv|xlsx
Output: data/intermediate/orders.csv, data/intermediate/reconciliation_log.csv
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd  # noqa: E402
import pandera as pa  # noqa: E402

from payouts.config.settings import (  # noqa: E402
    EXPORT_PATTERNS,
    INTERMEDIATE_ORDERS,
    INTERMEDIATE_RECONCILIATION_LOG,
    RAW_STATUS_UPDATES_DIR,
)
from payouts.contracts import ReconciliationLogSchema  # noqa: E402
from payouts.engine.ingest import MalformedExportError, read_export  # noqa: E402
from payouts.engine.normalizer import detect_column_mapping, normalize_rows  # noqa: E402
from payouts.engine.reconciliation import LOG_COLUMNS, append_entries, detect_status_changes  # noqa: E402
from payouts.utils.io import atomic_write_csv, read_frame  # noqa: E402


def load_data():
    """Load orders and the reconciliation log."""
    print("Loading intermediate data...")
    orders = read_frame(INTERMEDIATE_ORDERS)
    print(f"  Orders: {len(orders):,} rows")

    if INTERMEDIATE_RECONCILIATION_LOG.exists():
        log = read_frame(INTERMEDIATE_RECONCILIATION_LOG)
    else:
        log = pd.DataFrame(columns=LOG_COLUMNS)
    print(f"  Reconciliation log: {len(log):,} entries")
    return orders, log


def load_status_updates() -> pd.DataFrame:
    """All status update files, normalized to awb_no + status."""
    files = []
    for pattern in EXPORT_PATTERNS:
        files.extend(RAW_STATUS_UPDATES_DIR.glob(pattern))

    frames = []
    for filepath in sorted(files):
        raw_df = read_export(filepath)
        mapping = detect_column_mapping(raw_df.columns)
        if "awb_no" not in mapping or "status" not in mapping:
            print(f"  Warning: {filepath.name} has no AWB/status columns, skipped")
            continue
        updates = normalize_rows(raw_df, {"awb_no": mapping["awb_no"], "status": mapping["status"]})
        print(f"  {filepath.name}: {len(updates):,} updates")
        frames.append(updates)

    if not frames:
        return pd.DataFrame(columns=["awb_no", "status"])
    return pd.concat(frames, ignore_index=True)


def summarize_entries(entries: list) -> None:
    clawback = sum(entry.impact for entry in entries if entry.impact < 0)
    restored = sum(entry.impact for entry in entries if entry.impact > 0)
    print(f"  Status changes: {len(entries):,}")
    print(f"  Clawback: {clawback:,.2f}")
    print(f"  Restored: {restored:,.2f}")


def validate_output(log: pd.DataFrame) -> bool:
    """Validate the log using its Pandera contract."""
    try:
        ReconciliationLogSchema.validate(log, lazy=True)
        print("  Pandera contract validation passed")
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        print("  ERROR: Pandera contract validation failed:")
        print(f"    {e}")
        return False
    return True


def main():
    print("=" * 60)
    print("Stage 2: Reconcile Order Status Updates")
    print("=" * 60)

    if not INTERMEDIATE_ORDERS.exists():
        print(f"ERROR: Dependency not found: {INTERMEDIATE_ORDERS}")
        return False

    print("\n[1/4] Loading data...")
    orders, log = load_data()

    print("\n[2/4] Loading status updates...")
    try:
        updates = load_status_updates()
    except MalformedExportError as e:
        print(f"  ERROR: {e}")
        return False
    print(f"  Total updates: {len(updates):,}")

    print("\n[3/4] Detecting status changes...")
    entries, orders = detect_status_changes(orders, updates, timestamp=datetime.now())
    summarize_entries(entries)
    log = append_entries(log, entries)

    print("\n[4/4] Validating and saving...")
    if not validate_output(log):
        return False
    atomic_write_csv(orders, INTERMEDIATE_ORDERS)
    atomic_write_csv(log, INTERMEDIATE_RECONCILIATION_LOG)
    print(f"  Saved to: {INTERMEDIATE_RECONCILIATION_LOG}")
    print(f"  Log entries: {len(log):,}")

    print("\n" + "=" * 60)
    print("Stage 2 Complete: Status changes reconciled")
    print("=" * 60)
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
