"""
Centralized configuration for the payout pipeline.

This module contains all paths and business defaults used across the
stage scripts and the engine.
"""

import os
from pathlib import Path

# =============================================================================
# BASE PATHS
# =============================================================================

# Project root (parent of payouts/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Data directories (PAYOUTS_DATA_DIR points the whole pipeline at another tree)
DATA_DIR = Path(os.environ.get("PAYOUTS_DATA_DIR", PROJECT_ROOT / "data"))
RAW_DIR = DATA_DIR / "raw"
INTERMEDIATE_DIR = DATA_DIR / "intermediate"
REPORTS_DIR = DATA_DIR / "reports"

# =============================================================================
# RAW INPUTS
# =============================================================================

RAW_ORDERS_DIR = RAW_DIR / "orders"
RAW_PRICE_LISTS_DIR = RAW_DIR / "price_lists"
RAW_STATUS_UPDATES_DIR = RAW_DIR / "status_updates"
RAW_COLUMN_MAPPING_FILE = RAW_DIR / "column_mapping.json"
RAW_SUPPLIERS_FILE = RAW_DIR / "suppliers.csv"

EXPORT_PATTERNS = ("*.csv", "*.xlsx", "*.xls")

# =============================================================================
# INTERMEDIATE FILES
# =============================================================================

INTERMEDIATE_ORDERS = INTERMEDIATE_DIR / "orders.csv"
INTERMEDIATE_SUPPLIERS = INTERMEDIATE_DIR / "suppliers.csv"
INTERMEDIATE_PRICE_ENTRIES = INTERMEDIATE_DIR / "price_entries.csv"
INTERMEDIATE_CALCULATIONS = INTERMEDIATE_DIR / "payout_calculations.csv"
INTERMEDIATE_SUPPLIER_SUMMARY = INTERMEDIATE_DIR / "supplier_summary.csv"
INTERMEDIATE_MISSING_PRICES = INTERMEDIATE_DIR / "missing_prices.csv"
INTERMEDIATE_RECONCILIATION_LOG = INTERMEDIATE_DIR / "reconciliation_log.csv"

# =============================================================================
# REPORT OUTPUTS
# =============================================================================

REPORTS_WORKBOOK = REPORTS_DIR / "payout_reports.xlsx"
MISSING_PRICE_TEMPLATE = REPORTS_DIR / "missing_price_template.csv"
EMAILS_DIR = REPORTS_DIR / "emails"
GST_INVOICES_DIR = REPORTS_DIR / "gst_invoices"
GST_INVOICE_SUMMARY = REPORTS_DIR / "gst_invoices.csv"

# =============================================================================
# BUSINESS DEFAULTS
# =============================================================================

DEFAULT_CURRENCY = "INR"
DEFAULT_GST_RATE = 18.0
DEFAULT_QTY = 1
UNKNOWN_SUPPLIER = "Unknown"

# Date format used for every date written out of the engine
ISO_DATE_FORMAT = "%Y-%m-%d"

# Payout email defaults
EMAIL_SIGNATURE = "Accounts Team"
EMAIL_PAYMENT_MODE = "NEFT"
UTR_PREFIX = "PC"
UTR_DIGITS = 15

# GST invoice defaults (placeholders when the supplier record is incomplete)
INVOICE_PLACEHOLDER = "N/A"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def ensure_directories():
    """Create all required directories if they don't exist."""
    for directory in [RAW_DIR, INTERMEDIATE_DIR, REPORTS_DIR, EMAILS_DIR, GST_INVOICES_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def print_config():
    """Print current configuration for debugging."""
    print("=" * 60)
    print("PAYOUT PIPELINE CONFIGURATION")
    print("=" * 60)
    print(f"Project Root:     {PROJECT_ROOT}")
    print(f"Data Dir:         {DATA_DIR}")
    print(f"Raw Data:         {RAW_DIR}")
    print(f"Intermediate:     {INTERMEDIATE_DIR}")
    print(f"Reports:          {REPORTS_DIR}")
    print(f"Default Currency: {DEFAULT_CURRENCY}")
    print("=" * 60)


if __name__ == '__main__':
    print_config()
