"""
Data Contracts Package

Contains Pandera schema definitions for validating pipeline inputs and
outputs. These are the single source of truth for intermediate file formats.

Usage:
    from payouts.contracts import OrdersSchema, PayoutCalculationsSchema

    # Validate a DataFrame
    OrdersSchema.validate(df, lazy=True)
"""

from .gst_invoice_schema import GstInvoiceItemsSchema
from .orders_schema import OrdersSchema
from .payout_schema import PayoutCalculationsSchema, SupplierSummarySchema
from .price_entries_schema import PriceEntriesSchema
from .reconciliation_log_schema import ReconciliationLogSchema
from .suppliers_schema import SuppliersSchema

__all__ = [
    "OrdersSchema",
    "PriceEntriesSchema",
    "SuppliersSchema",
    "PayoutCalculationsSchema",
    "SupplierSummarySchema",
    "ReconciliationLogSchema",
    "GstInvoiceItemsSchema",
]
