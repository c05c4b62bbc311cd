"""
Payout Calculator

Computes payable line amounts for delivered/completed orders and rolls
them up per supplier and currency.

Pipeline for one run:
1. keep payable orders (status delivered or completed)
2. drop orders without the pricing-basis date (not ready yet, not an exception)
3. drop orders whose supplier id is unknown
4. resolve the applicable price entry per order
5. unresolved orders become missing-price keys (supplier, product, currency),
   one per unique key in discovery order
6. resolved orders become calculation records: line_amount = price * qty
7. calculations are grouped by (supplier_name, currency)

The function is pure: inputs are never modified and the same inputs always
give the same result.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Union

import pandas as pd

from payouts.engine.frames import (
    coerce_orders,
    coerce_suppliers,
    enrich_orders,
    iso_dates,
)
from payouts.engine.price_resolver import resolve_prices
from payouts.engine.status import PAYABLE_STATUSES, PricingBasis

CALCULATION_COLUMNS = [
    "order_id",
    "awb_no",
    "supplier_name",
    "product_name",
    "qty",
    "unit_price",
    "line_amount",
    "currency",
    "hsn",
    "basis_date",
]
SUMMARY_COLUMNS = ["supplier_name", "currency", "order_count", "total_amount", "orders"]
MISSING_PRICE_COLUMNS = ["supplier_name", "product_name", "currency"]


@dataclass
class PayoutResult:
    """Output of one payout run."""

    calculations: pd.DataFrame
    supplier_summary: pd.DataFrame
    missing_prices: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=MISSING_PRICE_COLUMNS))

    @property
    def total_amount(self) -> float:
        return round(float(self.calculations["line_amount"].sum()), 2) if len(self.calculations) else 0.0

    def to_dict(self) -> Dict[str, List[dict]]:
        return {
            "calculations": self.calculations.to_dict("records"),
            "supplier_summary": self.supplier_summary.to_dict("records"),
            "missing_prices": self.missing_prices.to_dict("records"),
        }


def select_payable(orders: pd.DataFrame) -> pd.DataFrame:
    """Orders whose parsed status is delivered or completed."""
    payable_codes = {status.value for status in PAYABLE_STATUSES}
    return orders[orders["status_code"].isin(payable_codes)]


def summarize_by_supplier(calculations: pd.DataFrame) -> pd.DataFrame:
    """Group calculation records by (supplier_name, currency) in discovery order."""
    if calculations.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    rows = []
    for (supplier_name, currency), group in calculations.groupby(
        ["supplier_name", "currency"], sort=False, dropna=False
    ):
        rows.append({
            "supplier_name": supplier_name,
            "currency": currency,
            "order_count": len(group),
            "total_amount": round(float(group["line_amount"].sum()), 2),
            "orders": group.to_dict("records"),
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def calculate_payouts(
    orders: pd.DataFrame,
    price_entries: pd.DataFrame,
    suppliers: pd.DataFrame,
    pricing_basis: Union[PricingBasis, str] = PricingBasis.DELIVERED_DATE,
) -> PayoutResult:
    """Compute calculations, supplier summary and missing prices for a batch of orders."""
    basis = PricingBasis.parse(pricing_basis)

    order_view = enrich_orders(coerce_orders(orders), coerce_suppliers(suppliers))
    payable = select_payable(order_view)
    payable = payable[payable[basis.value].notna()]
    payable = payable[payable["supplier_known"]]

    lookups = pd.DataFrame({
        "supplier_id": payable["supplier_id"],
        "product_name": payable["product_name"],
        "basis_date": payable[basis.value],
    }, index=payable.index)
    resolved = resolve_prices(lookups, price_entries)

    is_resolved = payable.index.isin(resolved.index)

    missing = payable.loc[~is_resolved, MISSING_PRICE_COLUMNS]
    missing = missing.drop_duplicates(keep="first").reset_index(drop=True)

    priced = payable.loc[is_resolved]
    prices = resolved.reindex(priced.index)
    unit_price = prices["price"].astype(float)
    calculations = pd.DataFrame({
        "order_id": priced["id"],
        "awb_no": priced["awb_no"],
        "supplier_name": priced["supplier_name"],
        "product_name": priced["product_name"],
        "qty": priced["qty"].astype(int),
        "unit_price": unit_price,
        "line_amount": (unit_price * priced["qty"]).round(2),
        "currency": priced["currency"],
        "hsn": prices["hsn"],
        "basis_date": iso_dates(priced[basis.value]),
    }, columns=CALCULATION_COLUMNS).reset_index(drop=True)

    return PayoutResult(
        calculations=calculations,
        supplier_summary=summarize_by_supplier(calculations),
        missing_prices=missing,
    )
