"""
Frame coercion and enrichment.

Every engine entry point runs its inputs through the coerce_* helpers so the
rest of the engine can rely on dtypes: dates are datetime64 at day
precision, quantities are integers, statuses carry a parsed status_code.
The helpers always return new frames; inputs are never modified.
"""

from typing import List

import pandas as pd

from payouts.config.settings import DEFAULT_CURRENCY, DEFAULT_QTY, ISO_DATE_FORMAT, UNKNOWN_SUPPLIER
from payouts.engine.status import parse_status

ORDER_COLUMNS = [
    "id",
    "awb_no",
    "supplier_id",
    "product_name",
    "courier",
    "qty",
    "currency",
    "status",
    "order_account",
    "channel_order_date",
    "order_date",
    "delivered_date",
    "rts_date",
    "unit_price",
    "line_amount",
    "hsn",
    "previous_status",
]
ORDER_DATE_COLUMNS = ["channel_order_date", "order_date", "delivered_date", "rts_date"]

PRICE_ENTRY_COLUMNS = [
    "id",
    "supplier_id",
    "product_name",
    "currency",
    "price",
    "price_before_gst",
    "gst_rate",
    "hsn",
    "effective_from",
    "effective_to",
]

SUPPLIER_COLUMNS = [
    "id",
    "name",
    "order_account",
    "gstin",
    "trade_name",
    "address",
    "ship_to_address",
    "place_of_supply",
]


# Relative keywords pandas would resolve against the clock
DATE_KEYWORDS = {"now", "today", "tomorrow", "yesterday"}


def parse_timestamp(value):
    """
    Parse one date value to a naive Timestamp, or NaT.

    Offsets are dropped, keeping the wall-clock date the export shows, so a
    column may mix zoned and plain values.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return pd.NaT
    if isinstance(value, str):
        value = value.strip()
        if not value or value.lower() in DATE_KEYWORDS:
            return pd.NaT
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return pd.NaT
    if pd.isna(parsed):
        return pd.NaT
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed


def to_day(series: pd.Series) -> pd.Series:
    """Parse a column to datetime64 truncated to the day; bad values become NaT."""
    parsed = pd.to_datetime(series.astype(object).map(parse_timestamp), errors="coerce")
    return parsed.dt.normalize()


def iso_dates(series: pd.Series) -> pd.Series:
    """Format a datetime column as YYYY-MM-DD strings, empty string for NaT."""
    return series.dt.strftime(ISO_DATE_FORMAT).fillna("")


def _with_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    out = df.copy()
    for column in columns:
        if column not in out.columns:
            out[column] = None
    return out


def _text_value(value):
    if value is None or pd.isna(value):
        return None
    return str(value).strip()


def _text(series: pd.Series) -> pd.Series:
    """Object column with None for missing values and trimmed strings otherwise."""
    return series.astype(object).map(_text_value)


def coerce_orders(orders: pd.DataFrame) -> pd.DataFrame:
    """Return a typed copy of the orders frame with a status_code column."""
    df = _with_columns(orders, ORDER_COLUMNS)
    for column in ["id", "awb_no", "supplier_id", "product_name", "status", "currency", "courier", "hsn"]:
        df[column] = _text(df[column])
    df["currency"] = df["currency"].map(lambda value: value or DEFAULT_CURRENCY)
    df["qty"] = pd.to_numeric(df["qty"], errors="coerce").fillna(DEFAULT_QTY).astype(int)
    for column in ORDER_DATE_COLUMNS:
        df[column] = to_day(df[column])
    for column in ["unit_price", "line_amount"]:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df["status_code"] = df["status"].map(lambda raw: parse_status(raw).value)
    return df.reset_index(drop=True)


def coerce_price_entries(price_entries: pd.DataFrame) -> pd.DataFrame:
    """Return a typed copy of the price entries frame."""
    df = _with_columns(price_entries, PRICE_ENTRY_COLUMNS)
    for column in ["id", "supplier_id", "product_name", "currency", "hsn"]:
        df[column] = _text(df[column])
    df["currency"] = df["currency"].map(lambda value: value or DEFAULT_CURRENCY)
    for column in ["price", "price_before_gst", "gst_rate"]:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df["effective_from"] = to_day(df["effective_from"])
    df["effective_to"] = to_day(df["effective_to"])
    return df.reset_index(drop=True)


def coerce_suppliers(suppliers: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the suppliers frame with string ids and names."""
    df = _with_columns(suppliers, SUPPLIER_COLUMNS)
    for column in SUPPLIER_COLUMNS:
        df[column] = _text(df[column])
    return df.reset_index(drop=True)


def supplier_names(suppliers: pd.DataFrame) -> dict:
    """supplier id -> supplier name."""
    return dict(zip(suppliers["id"], suppliers["name"]))


def enrich_orders(orders: pd.DataFrame, suppliers: pd.DataFrame) -> pd.DataFrame:
    """
    Join supplier names onto coerced orders once per request.

    Adds supplier_name (None for unknown supplier ids) and supplier_known.
    """
    names = supplier_names(suppliers)
    enriched = orders.copy()
    enriched["supplier_name"] = enriched["supplier_id"].map(lambda supplier_id: names.get(supplier_id))
    enriched["supplier_known"] = enriched["supplier_name"].notna()
    return enriched


def display_supplier(series: pd.Series) -> pd.Series:
    """Supplier names for display, falling back to the Unknown placeholder."""
    return series.fillna(UNKNOWN_SUPPLIER)
