"""
GST Invoice Builder

Builds one tax invoice per supplier for a date range from the supplier's
delivered and completed orders.

Pipeline for one supplier:
1. keep the supplier's orders whose invoice date falls in the range
   (channel order date, order date falling back to channel order date,
   or delivered date)
2. keep payable orders (status delivered or completed)
3. price each order with the entry valid on its invoice date
4. split the final price into base and tax: base = price / (1 + rate/100),
   gst = base * qty * rate/100
5. group lines by product name in discovery order

Orders with no applicable price, a zero price or a zero quantity add no
line. A supplier with no lines gets no invoice (None).
"""

import re
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from payouts.config.settings import DEFAULT_GST_RATE, INVOICE_PLACEHOLDER, ISO_DATE_FORMAT
from payouts.engine.calculator import select_payable
from payouts.engine.frames import coerce_orders, coerce_suppliers, parse_timestamp
from payouts.engine.price_resolver import resolve_prices

DateLike = Union[str, date, pd.Timestamp, None]

ITEM_COLUMNS = [
    "product_name",
    "hsn",
    "quantity",
    "unit_price",
    "gst_rate",
    "amount",
    "gst_amount",
    "total_amount",
]

INVOICE_DATE_BASES = ("channel_order_date", "order_date", "delivered_date")
_BASIS_ALIASES = {
    "channelOrderDate": "channel_order_date",
    "orderDate": "order_date",
    "deliveredDate": "delivered_date",
}

# First two GSTIN digits -> state
STATE_CODES = {
    "01": "Jammu and Kashmir", "02": "Himachal Pradesh", "03": "Punjab", "04": "Chandigarh",
    "05": "Uttarakhand", "06": "Haryana", "07": "Delhi", "08": "Rajasthan",
    "09": "Uttar Pradesh", "10": "Bihar", "11": "Sikkim", "12": "Arunachal Pradesh",
    "13": "Nagaland", "14": "Manipur", "15": "Mizoram", "16": "Tripura",
    "17": "Meghalaya", "18": "Assam", "19": "West Bengal", "20": "Jharkhand",
    "21": "Odisha", "22": "Chhattisgarh", "23": "Madhya Pradesh", "24": "Gujarat",
    "25": "Daman and Diu", "26": "Dadra and Nagar Haveli", "27": "Maharashtra",
    "28": "Andhra Pradesh", "29": "Karnataka", "30": "Goa", "31": "Lakshadweep",
    "32": "Kerala", "33": "Tamil Nadu", "34": "Puducherry", "35": "Andaman and Nicobar Islands",
    "36": "Telangana", "37": "Andhra Pradesh", "38": "Ladakh",
}


@dataclass
class GstInvoice:
    """One supplier's tax invoice for a period."""

    invoice_number: str
    invoice_date: str
    supplier_name: str
    supplier_trade_name: str
    supplier_gstin: str
    supplier_address: str
    supplier_ship_to_address: str
    place_of_supply: str
    date_from: str
    date_to: str
    total_amount_before_gst: float
    total_gst_amount: float
    total_amount_after_gst: float
    items: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=ITEM_COLUMNS))

    def header(self) -> Dict[str, object]:
        """Invoice fields and totals without the line items."""
        values = asdict(self)
        values.pop("items")
        return values


def place_of_supply(gstin: Optional[str]) -> str:
    """State named by the GSTIN's two-digit prefix, or empty when unknown."""
    text = (gstin or "").strip()
    if len(text) < 2:
        return ""
    return STATE_CODES.get(text[:2], "")


def invoice_number(supplier_name: str, issued: date) -> str:
    compact = re.sub(r"\s+", "", supplier_name.upper())
    return f"GST-{compact}-{issued.strftime('%Y%m%d')}"


def parse_invoice_basis(value: str) -> str:
    basis = _BASIS_ALIASES.get(value, value)
    if basis not in INVOICE_DATE_BASES:
        raise ValueError(f"Unknown invoice date basis: {value!r} (expected one of {INVOICE_DATE_BASES})")
    return basis


def _bound(value: DateLike) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    parsed = parse_timestamp(value)
    if pd.isna(parsed):
        raise ValueError(f"Invalid date: {value!r}")
    return parsed.normalize()


def _invoice_dates(orders: pd.DataFrame, basis: str) -> pd.Series:
    if basis == "order_date":
        return orders["order_date"].fillna(orders["channel_order_date"])
    return orders[basis]


def _text_or(value, fallback: str) -> str:
    if value is None or pd.isna(value) or not str(value).strip():
        return fallback
    return str(value).strip()


def invoice_lines(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    supplier_id: str,
    date_from: DateLike = None,
    date_to: DateLike = None,
    date_basis: str = "delivered_date",
) -> pd.DataFrame:
    """
    Per-order invoice lines for one supplier, unrounded.

    Columns: product_name, hsn, quantity, unit_price, gst_rate, amount,
    gst_amount, total_amount.
    """
    basis = parse_invoice_basis(date_basis)
    start, end = _bound(date_from), _bound(date_to)

    order_view = coerce_orders(orders)
    order_view = order_view[order_view["supplier_id"] == supplier_id]
    dates = _invoice_dates(order_view, basis)
    in_range = dates.notna()
    if start is not None:
        in_range &= dates >= start
    if end is not None:
        in_range &= dates <= end
    candidates = select_payable(order_view[in_range])
    if candidates.empty:
        return pd.DataFrame(columns=ITEM_COLUMNS)

    lookups = pd.DataFrame({
        "supplier_id": candidates["supplier_id"],
        "product_name": candidates["product_name"],
        "basis_date": dates.loc[candidates.index],
    }, index=candidates.index)
    resolved = resolve_prices(lookups, price_entries)

    priced = candidates.loc[candidates.index.isin(resolved.index)]
    prices = resolved.reindex(priced.index)
    price = prices["price"].astype(float)
    rate = prices["gst_rate"].astype(float).fillna(DEFAULT_GST_RATE)
    quantity = priced["qty"].astype(int)

    keep = (price > 0) & (quantity > 0)
    price, rate, quantity = price[keep], rate[keep], quantity[keep]
    unit_price = price / (1 + rate / 100)
    amount = unit_price * quantity
    gst_amount = amount * (rate / 100)

    return pd.DataFrame({
        "product_name": priced.loc[keep, "product_name"],
        "hsn": prices.loc[keep, "hsn"].fillna(""),
        "quantity": quantity,
        "unit_price": unit_price,
        "gst_rate": rate,
        "amount": amount,
        "gst_amount": gst_amount,
        "total_amount": amount + gst_amount,
    }, columns=ITEM_COLUMNS).reset_index(drop=True)


def group_by_product(lines: pd.DataFrame) -> pd.DataFrame:
    """One item per product; the first line supplies unit price, rate and HSN."""
    if lines.empty:
        return pd.DataFrame(columns=ITEM_COLUMNS)
    items = lines.groupby("product_name", sort=False).agg(
        hsn=("hsn", "first"),
        quantity=("quantity", "sum"),
        unit_price=("unit_price", "first"),
        gst_rate=("gst_rate", "first"),
        amount=("amount", "sum"),
        gst_amount=("gst_amount", "sum"),
        total_amount=("total_amount", "sum"),
    ).reset_index()
    for column in ["unit_price", "amount", "gst_amount", "total_amount"]:
        items[column] = items[column].round(2)
    items["quantity"] = items["quantity"].astype(int)
    return items[ITEM_COLUMNS]


def generate_gst_invoice(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    suppliers: pd.DataFrame,
    supplier_name: str,
    date_from: DateLike = None,
    date_to: DateLike = None,
    date_basis: str = "delivered_date",
    issued: Optional[date] = None,
) -> Optional[GstInvoice]:
    """Build the invoice for one supplier, or None when it has nothing to invoice."""
    supplier_frame = coerce_suppliers(suppliers)
    match = supplier_frame[supplier_frame["name"] == supplier_name]
    if match.empty:
        return None
    supplier = match.iloc[0]

    lines = invoice_lines(orders, price_entries, supplier["id"], date_from, date_to, date_basis)
    if lines.empty:
        return None

    issued = issued or date.today()
    gstin = _text_or(supplier["gstin"], INVOICE_PLACEHOLDER)
    address = _text_or(supplier["address"], INVOICE_PLACEHOLDER)
    before_gst = float(lines["amount"].sum())
    gst = float(lines["gst_amount"].sum())

    return GstInvoice(
        invoice_number=invoice_number(supplier_name, issued),
        invoice_date=issued.strftime(ISO_DATE_FORMAT),
        supplier_name=supplier_name,
        supplier_trade_name=_text_or(supplier["trade_name"], supplier_name),
        supplier_gstin=gstin,
        supplier_address=address,
        supplier_ship_to_address=_text_or(supplier["ship_to_address"], address),
        place_of_supply=_text_or(supplier["place_of_supply"], place_of_supply(supplier["gstin"])),
        date_from=str(date_from or ""),
        date_to=str(date_to or ""),
        total_amount_before_gst=round(before_gst, 2),
        total_gst_amount=round(gst, 2),
        total_amount_after_gst=round(before_gst + gst, 2),
        items=group_by_product(lines),
    )


def generate_gst_invoices(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    suppliers: pd.DataFrame,
    supplier_names: Optional[Iterable[str]] = None,
    date_from: DateLike = None,
    date_to: DateLike = None,
    date_basis: str = "delivered_date",
    issued: Optional[date] = None,
) -> List[GstInvoice]:
    """Invoices for the named suppliers (all suppliers on file by default), skipping empty ones."""
    if supplier_names is None:
        supplier_names = coerce_suppliers(suppliers)["name"].dropna().tolist()
    invoices = []
    for name in supplier_names:
        invoice = generate_gst_invoice(
            orders, price_entries, suppliers, name, date_from, date_to, date_basis, issued
        )
        if invoice is not None:
            invoices.append(invoice)
    return invoices
