"""
Payout notification email.

Builds the subject and body sent to a supplier after a payout run. Nothing
is sent from here; the stage 3 script writes the text to reports/emails/.
"""

import random
from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from payouts.config.settings import EMAIL_PAYMENT_MODE, EMAIL_SIGNATURE, UTR_DIGITS, UTR_PREFIX

MONTHS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]
CURRENCY_SYMBOLS = {"INR": "₹"}


@dataclass(frozen=True)
class PayoutEmail:
    subject: str
    body: str
    reference: str


def ordinal_suffix(day: int) -> str:
    if 3 < day < 21:
        return "TH"
    return {1: "ST", 2: "ND", 3: "RD"}.get(day % 10, "TH")


def format_date_range(date_from, date_to) -> str:
    """'2024-11-21', '2024-11-30' -> '21ST NOV TO 30TH NOV'."""
    try:
        start = pd.Timestamp(date_from)
        end = pd.Timestamp(date_to)
    except (ValueError, TypeError):
        return f"{date_from} TO {date_to}"
    if pd.isna(start) or pd.isna(end):
        return f"{date_from} TO {date_to}"
    return (
        f"{start.day}{ordinal_suffix(start.day)} {MONTHS[start.month - 1]} TO "
        f"{end.day}{ordinal_suffix(end.day)} {MONTHS[end.month - 1]}"
    )


def generate_utr(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    digits = rng.randrange(10 ** UTR_DIGITS)
    return f"{UTR_PREFIX}{digits:0{UTR_DIGITS}d}"


def compose_payout_email(
    supplier_names: Sequence[str],
    total_amount: float,
    date_from,
    date_to,
    order_count: int,
    total_units: int,
    unique_products: int,
    reference: Optional[str] = None,
    rng: Optional[random.Random] = None,
    signature: str = EMAIL_SIGNATURE,
    currency: str = "INR",
) -> PayoutEmail:
    """Render the payout email for one or more suppliers."""
    reference = reference or generate_utr(rng)
    suppliers = ", ".join(supplier_names)
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    product_word = "product" if unique_products == 1 else "products"

    subject = f"Payout Summary - {suppliers} - {date_from} to {date_to}"
    body = (
        f"Dear {suppliers},\n"
        "\n"
        f"A payment of {symbol}{total_amount:.2f} has been processed via {EMAIL_PAYMENT_MODE} "
        f"for the delivery period from {format_date_range(date_from, date_to)}.\n"
        "\n"
        f"The UTR number for this transaction is {reference}\n"
        "\n"
        f"For this period, there were {order_count} orders, totaling {total_units} units "
        f"of {unique_products} unique {product_word}.\n"
        "\n"
        "Thanks,\n"
        f"{signature}"
    )
    return PayoutEmail(subject=subject, body=body, reference=reference)


def summarize_for_email(calculations: pd.DataFrame, supplier_name: str, currency: str) -> dict:
    """Amount, order/unit counts, product count and basis-date range for one supplier."""
    rows = calculations[
        (calculations["supplier_name"] == supplier_name) & (calculations["currency"] == currency)
    ]
    dates = rows["basis_date"].replace("", pd.NA).dropna() if len(rows) else pd.Series(dtype=object)
    return {
        "total_amount": round(float(rows["line_amount"].sum()), 2) if len(rows) else 0.0,
        "order_count": len(rows),
        "total_units": int(rows["qty"].sum()) if len(rows) else 0,
        "unique_products": int(rows["product_name"].dropna().astype(str).str.casefold().nunique()),
        "date_from": dates.min() if len(dates) else "",
        "date_to": dates.max() if len(dates) else "",
    }
