"""
Report Generator

Builds the six report views from orders, suppliers and the reconciliation
log under user-supplied filters:

    supplier_payout_summary   filtered, grouped by (supplier_id, currency)
    payout_export_sheet       filtered, delivered/completed orders only
    cancelled_orders          UNFILTERED, status cancelled
    reconciliation_log        passthrough of the supplied log
    exceptions                filtered, data-quality problems per order
    line_details              filtered, every order with supplier and basis date

Filters narrow the order set in this order: period_from, period_to
(delivered date, orders without one are dropped), currency, supplier name
(unknown supplier name leaves the set unchanged).

Amounts in these reports are the ones persisted on the orders (unit_price,
line_amount), not a fresh price lookup.
"""

from dataclasses import dataclass, fields
from datetime import date
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd

from payouts.config.settings import UNKNOWN_SUPPLIER
from payouts.engine.frames import (
    coerce_orders,
    coerce_price_entries,
    coerce_suppliers,
    display_supplier,
    enrich_orders,
    iso_dates,
)
from payouts.engine.reconciliation import LOG_COLUMNS
from payouts.engine.status import PAYABLE_STATUSES, RETURN_STATUSES, OrderStatus

DateLike = Union[str, date, pd.Timestamp, None]

SUPPLIER_SUMMARY_COLUMNS = [
    "supplier_id",
    "supplier_name",
    "currency",
    "total_orders",
    "delivered_orders",
    "rts_orders",
    "total_amount",
]
PAYOUT_SHEET_COLUMNS = [
    "awb_no",
    "supplier_name",
    "courier",
    "hsn",
    "product_name",
    "qty",
    "unit_price",
    "delivered_date",
    "status",
]
CANCELLED_COLUMNS = [
    "awb_no",
    "supplier_name",
    "product_name",
    "qty",
    "status",
    "channel_order_date",
    "order_date",
]
EXCEPTION_COLUMNS = ["row_index", "type", "description", "order_id"]

# (type, description) per exception rule
MISSING_AWB = ("Missing AWB No", "AWB Number is required")
MISSING_PRODUCT = ("Missing Product Name", "Product Name is required")
INVALID_QTY = ("Invalid Quantity", "Quantity must be greater than 0")

_PAYABLE_CODES = {status.value for status in PAYABLE_STATUSES}
_RETURN_CODES = {status.value for status in RETURN_STATUSES}


@dataclass(frozen=True)
class ReportFilters:
    period_from: DateLike = None
    period_to: DateLike = None
    currency: Optional[str] = None
    min_amount: Optional[float] = None
    supplier: Optional[str] = None


@dataclass
class ReportsBundle:
    supplier_payout_summary: pd.DataFrame
    payout_export_sheet: pd.DataFrame
    cancelled_orders: pd.DataFrame
    reconciliation_log: pd.DataFrame
    exceptions: pd.DataFrame
    line_details: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _day(value: DateLike) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    return pd.Timestamp(value).normalize()


def apply_filters(order_view: pd.DataFrame, suppliers: pd.DataFrame, filters: ReportFilters) -> pd.DataFrame:
    """Narrow the enriched order view with the report filters (AND, in order)."""
    filtered = order_view

    period_from = _day(filters.period_from)
    if period_from is not None:
        delivered = filtered["delivered_date"]
        filtered = filtered[delivered.notna() & (delivered >= period_from)]

    period_to = _day(filters.period_to)
    if period_to is not None:
        delivered = filtered["delivered_date"]
        filtered = filtered[delivered.notna() & (delivered <= period_to)]

    if filters.currency:
        filtered = filtered[filtered["currency"] == filters.currency]

    if filters.supplier:
        match = suppliers[suppliers["name"] == filters.supplier]
        if not match.empty:
            filtered = filtered[filtered["supplier_id"] == match["id"].iloc[0]]

    return filtered


def supplier_payout_summary(order_view: pd.DataFrame, min_amount: Optional[float] = None) -> pd.DataFrame:
    """Per (supplier, currency): order counts and persisted payable amount, largest first."""
    known = order_view[order_view["supplier_known"]]
    if known.empty:
        return pd.DataFrame(columns=SUPPLIER_SUMMARY_COLUMNS)

    work = known.assign(
        _delivered=known["status_code"].isin(_PAYABLE_CODES),
        _returned=known["status_code"].isin(_RETURN_CODES),
    )
    work["_amount"] = np.where(work["_delivered"], work["line_amount"].fillna(0.0), 0.0)

    rows = []
    for (supplier_id, currency), group in work.groupby(["supplier_id", "currency"], sort=False):
        rows.append({
            "supplier_id": supplier_id,
            "supplier_name": group["supplier_name"].iloc[0],
            "currency": currency,
            "total_orders": len(group),
            "delivered_orders": int(group["_delivered"].sum()),
            "rts_orders": int(group["_returned"].sum()),
            "total_amount": round(float(group["_amount"].sum()), 2),
        })

    summary = pd.DataFrame(rows, columns=SUPPLIER_SUMMARY_COLUMNS)
    if min_amount is not None:
        summary = summary[summary["total_amount"] >= min_amount]
    return summary.sort_values("total_amount", ascending=False, kind="stable").reset_index(drop=True)


def payout_export_sheet(order_view: pd.DataFrame) -> pd.DataFrame:
    """One row per delivered/completed order."""
    payable = order_view[order_view["status_code"].isin(_PAYABLE_CODES)]
    return pd.DataFrame({
        "awb_no": payable["awb_no"],
        "supplier_name": display_supplier(payable["supplier_name"]),
        "courier": payable["courier"].fillna(""),
        "hsn": payable["hsn"].fillna(""),
        "product_name": payable["product_name"],
        "qty": payable["qty"],
        "unit_price": payable["unit_price"].fillna(0.0),
        "delivered_date": iso_dates(payable["delivered_date"]),
        "status": payable["status"],
    }, columns=PAYOUT_SHEET_COLUMNS).reset_index(drop=True)


def cancelled_orders_report(orders: pd.DataFrame) -> pd.DataFrame:
    """
    Cancelled orders from the full, unfiltered order set.

    supplier_name is always the placeholder; this report does not join
    suppliers.
    """
    cancelled = orders[orders["status_code"] == OrderStatus.CANCELLED.value]
    return pd.DataFrame({
        "awb_no": cancelled["awb_no"],
        "supplier_name": UNKNOWN_SUPPLIER,
        "product_name": cancelled["product_name"],
        "qty": cancelled["qty"],
        "status": cancelled["status"],
        "channel_order_date": iso_dates(cancelled["channel_order_date"]),
        "order_date": iso_dates(cancelled["order_date"]),
    }, columns=CANCELLED_COLUMNS).reset_index(drop=True)


def exceptions_report(order_view: pd.DataFrame) -> pd.DataFrame:
    """Flag missing AWB, missing product name and non-positive qty, one record per violation."""
    exceptions = []
    for row_index, order in enumerate(order_view.to_dict("records"), start=1):
        violations = []
        if not order["awb_no"]:
            violations.append(MISSING_AWB)
        if not order["product_name"]:
            violations.append(MISSING_PRODUCT)
        if order["qty"] <= 0:
            violations.append(INVALID_QTY)
        for exception_type, description in violations:
            exceptions.append({
                "row_index": row_index,
                "type": exception_type,
                "description": description,
                "order_id": order["id"],
            })
    return pd.DataFrame(exceptions, columns=EXCEPTION_COLUMNS)


def line_details(order_view: pd.DataFrame) -> pd.DataFrame:
    """Every order with its supplier name and basis date (delivered, else ordered)."""
    details = order_view.drop(columns=["supplier_known", "status_code"]).copy()
    details["supplier_name"] = display_supplier(order_view["supplier_name"])
    basis = order_view["delivered_date"].fillna(order_view["order_date"])
    for column in ["channel_order_date", "order_date", "delivered_date", "rts_date"]:
        details[column] = iso_dates(order_view[column])
    details["basis_date"] = iso_dates(basis)
    return details.reset_index(drop=True)


def generate_reports(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    suppliers: pd.DataFrame,
    reconciliation_logs: Optional[pd.DataFrame] = None,
    filters: Optional[ReportFilters] = None,
) -> ReportsBundle:
    """
    Build all six reports. Inputs are not modified.

    price_entries is part of the call contract but no report reads it:
    amounts come from the unit_price/line_amount persisted on each order
    (see ingest.apply_price_snapshot).
    """
    filters = filters or ReportFilters()
    supplier_frame = coerce_suppliers(suppliers)
    order_view = enrich_orders(coerce_orders(orders), supplier_frame)
    filtered = apply_filters(order_view, supplier_frame, filters)

    if reconciliation_logs is None:
        log = pd.DataFrame(columns=LOG_COLUMNS)
    else:
        log = reconciliation_logs.copy()

    return ReportsBundle(
        supplier_payout_summary=supplier_payout_summary(filtered, filters.min_amount),
        payout_export_sheet=payout_export_sheet(filtered),
        cancelled_orders=cancelled_orders_report(order_view),
        reconciliation_log=log,
        exceptions=exceptions_report(filtered),
        line_details=line_details(filtered),
    )


def find_unpriced_products(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    suppliers: pd.DataFrame,
) -> pd.DataFrame:
    """
    Supplier/product combinations on orders that have no price entry at all.

    Used to build the bulk-upload price template. Product names are matched
    case-insensitively; windows are ignored (any entry counts as priced).
    """
    columns = ["supplier_id", "supplier_name", "product_name", "order_count", "latest_order_date"]
    order_view = enrich_orders(coerce_orders(orders), coerce_suppliers(suppliers))
    entries = coerce_price_entries(price_entries)

    priced = set(zip(entries["supplier_id"], entries["product_name"].fillna("").str.casefold()))
    order_view = order_view[order_view["product_name"].fillna("") != ""]
    if order_view.empty:
        return pd.DataFrame(columns=columns)

    keys = list(zip(order_view["supplier_id"], order_view["product_name"].str.casefold()))
    unpriced = order_view[[key not in priced for key in keys]]
    if unpriced.empty:
        return pd.DataFrame(columns=columns)

    rows = []
    for (supplier_id, product_name), group in unpriced.groupby(
        ["supplier_id", "product_name"], sort=False, dropna=False
    ):
        rows.append({
            "supplier_id": supplier_id,
            "supplier_name": display_supplier(group["supplier_name"]).iloc[0],
            "product_name": product_name,
            "order_count": len(group),
            "latest_order_date": iso_dates(pd.Series([group["order_date"].max()])).iloc[0],
        })
    return pd.DataFrame(rows, columns=columns)


def dashboard_stats(orders: pd.DataFrame, price_entries: pd.DataFrame, suppliers: pd.DataFrame) -> dict:
    """Headline counts for the dashboard."""
    order_frame = coerce_orders(orders)
    products = order_frame["product_name"].fillna("").str.strip()
    delivered = order_frame[order_frame["status_code"].isin(_PAYABLE_CODES)]
    amounts = delivered["line_amount"].dropna()
    return {
        "total_orders": len(order_frame),
        "total_suppliers": len(suppliers),
        "total_price_entries": len(price_entries),
        "unique_products": int(products[products != ""].nunique()),
        "delivered_orders": len(delivered),
        "cancelled_orders": int((order_frame["status_code"] == OrderStatus.CANCELLED.value).sum()),
        "rts_orders": int(order_frame["status_code"].isin(_RETURN_CODES).sum()),
        "average_order_value": round(float(amounts.mean()), 2) if len(amounts) else 0.0,
    }
