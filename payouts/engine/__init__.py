"""
Payout Engine

Pure DataFrame transformations behind the pipeline stages. Nothing in this
package reads files except ingest.read_export, and nothing prints.

Usage:
    from payouts.engine import calculate_payouts, generate_reports, ReportFilters

    result = calculate_payouts(orders, price_entries, suppliers)
    bundle = generate_reports(orders, price_entries, suppliers, log, ReportFilters(currency="INR"))
"""

from .calculator import PayoutResult, calculate_payouts
from .email_summary import PayoutEmail, compose_payout_email, summarize_for_email
from .frames import coerce_orders, coerce_price_entries, coerce_suppliers, enrich_orders
from .gst_invoice import GstInvoice, generate_gst_invoice, generate_gst_invoices, place_of_supply
from .ingest import (
    MalformedExportError,
    apply_price_snapshot,
    build_orders,
    load_price_list,
    read_export,
)
from .normalizer import detect_column_mapping, normalize_row, normalize_rows
from .price_resolver import resolve_price_entry, resolve_prices
from .reconciliation import ReconciliationEntry, append_entries, detect_status_changes
from .reports import (
    ReportFilters,
    ReportsBundle,
    dashboard_stats,
    find_unpriced_products,
    generate_reports,
)
from .status import OrderStatus, PricingBasis, parse_status

__all__ = [
    "GstInvoice",
    "MalformedExportError",
    "OrderStatus",
    "PayoutEmail",
    "PayoutResult",
    "PricingBasis",
    "ReconciliationEntry",
    "ReportFilters",
    "ReportsBundle",
    "append_entries",
    "apply_price_snapshot",
    "build_orders",
    "calculate_payouts",
    "coerce_orders",
    "coerce_price_entries",
    "coerce_suppliers",
    "compose_payout_email",
    "dashboard_stats",
    "detect_column_mapping",
    "detect_status_changes",
    "enrich_orders",
    "find_unpriced_products",
    "generate_gst_invoice",
    "generate_gst_invoices",
    "generate_reports",
    "load_price_list",
    "normalize_row",
    "normalize_rows",
    "parse_status",
    "place_of_supply",
    "read_export",
    "resolve_price_entry",
    "resolve_prices",
    "summarize_for_email",
]
