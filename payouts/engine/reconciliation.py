"""
Reconciliation Log

Append-only ledger of order status transitions. An entry is written when a
later export reports a different status for an AWB that is already on file
(e.g. Delivered -> RTO after the payout was counted).

Impact sign convention:
- payable -> return (rts/rto/returned): -line_amount (clawback)
- return -> payable:                    +line_amount
- anything else:                        0
"""

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from payouts.engine.frames import coerce_orders
from payouts.engine.status import OrderStatus, is_payable, is_return, parse_status

LOG_COLUMNS = ["id", "awb_no", "order_id", "previous_status", "new_status", "impact", "note", "timestamp"]


@dataclass(frozen=True)
class ReconciliationEntry:
    awb_no: str
    order_id: Optional[str]
    previous_status: Optional[str]
    new_status: str
    impact: float
    note: str
    timestamp: datetime
    id: str = ""

    def to_record(self) -> dict:
        record = asdict(self)
        return {column: record[column] for column in LOG_COLUMNS}


def status_change_impact(previous: OrderStatus, new: OrderStatus, line_amount) -> float:
    """Monetary impact of moving an order from previous to new status."""
    amount = 0.0 if line_amount is None or pd.isna(line_amount) else float(line_amount)
    if is_payable(previous) and is_return(new):
        return -amount
    if is_return(previous) and is_payable(new):
        return amount
    return 0.0


def detect_status_changes(
    existing_orders: pd.DataFrame,
    incoming_orders: pd.DataFrame,
    timestamp: datetime,
) -> Tuple[List[ReconciliationEntry], pd.DataFrame]:
    """
    Compare incoming statuses against orders already on file.

    incoming_orders needs awb_no and status. The first existing order with
    the same AWB is the one reconciled. Returns the new log entries and an
    updated copy of existing_orders (status replaced, previous_status set).
    """
    updated = existing_orders.copy()
    if "previous_status" not in updated.columns:
        updated["previous_status"] = None
    updated["previous_status"] = updated["previous_status"].astype(object)
    typed = coerce_orders(existing_orders)

    first_by_awb = {}
    for position, awb in enumerate(typed["awb_no"]):
        if awb and awb not in first_by_awb:
            first_by_awb[awb] = position

    entries: List[ReconciliationEntry] = []
    for incoming in incoming_orders.to_dict("records"):
        awb = str(incoming.get("awb_no") or "").strip()
        new_status = str(incoming.get("status") or "").strip()
        position = first_by_awb.get(awb)
        if position is None or not new_status:
            continue

        raw_status = updated["status"].iloc[position]
        current_status = "" if raw_status is None or pd.isna(raw_status) else str(raw_status).strip()
        if current_status == new_status:
            continue

        impact = status_change_impact(
            parse_status(current_status),
            parse_status(new_status),
            typed["line_amount"].iloc[position],
        )
        entries.append(ReconciliationEntry(
            id=str(uuid.uuid4()),
            awb_no=awb,
            order_id=typed["id"].iloc[position],
            previous_status=current_status,
            new_status=new_status,
            impact=round(impact, 2),
            note=f"Status changed from {current_status} to {new_status}",
            timestamp=timestamp,
        ))

        updated.iloc[position, updated.columns.get_loc("previous_status")] = current_status
        updated.iloc[position, updated.columns.get_loc("status")] = new_status

    return entries, updated


def entries_to_frame(entries: Iterable[ReconciliationEntry]) -> pd.DataFrame:
    return pd.DataFrame([entry.to_record() for entry in entries], columns=LOG_COLUMNS)


def append_entries(log: Optional[pd.DataFrame], entries: Iterable[ReconciliationEntry]) -> pd.DataFrame:
    """Return a new log frame: existing rows untouched, new entries after them."""
    new_rows = entries_to_frame(entries)
    if log is None or log.empty:
        return new_rows
    if new_rows.empty:
        return log.copy()
    return pd.concat([log, new_rows], ignore_index=True)
