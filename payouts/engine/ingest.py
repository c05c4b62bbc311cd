"""
Ingestion

Boundary between exported files and the engine:
- read_export: CSV/XLSX export -> DataFrame of raw strings
- build_orders: normalized export rows -> orders + suppliers (find-or-create)
- load_price_list: supplier price list -> price entries (+ row errors)
- apply_price_snapshot: persist a payout run's prices back onto orders

Malformed files are the only hard failure in the system and are raised here
as MalformedExportError. Bad individual price-list rows are collected as
"Row N: ..." messages instead.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from payouts.config.column_mappings import PRICE_LIST_HEADERS, REQUIRED_MAPPING_FIELDS
from payouts.config.settings import DEFAULT_CURRENCY, DEFAULT_GST_RATE, ISO_DATE_FORMAT
from payouts.engine.frames import ORDER_COLUMNS, SUPPLIER_COLUMNS, coerce_suppliers
from payouts.engine.normalizer import parse_date_value
from payouts.engine.status import OrderStatus, parse_status

CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}


class MalformedExportError(ValueError):
    """An export file that cannot be turned into rows (empty, headerless, unknown format)."""


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# FILE READING
# =============================================================================

def read_export(path: Path) -> pd.DataFrame:
    """
    Read an order export or price list as strings.

    Every cell is kept as text (AWB numbers must not turn into floats);
    blank cells become empty strings.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in CSV_EXTENSIONS | EXCEL_EXTENSIONS:
        raise MalformedExportError(f"Unsupported file type: {path.name}")
    if not path.exists() or path.stat().st_size == 0:
        raise MalformedExportError(f"Empty file: {path.name}")

    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
        else:
            df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise MalformedExportError(f"No data found in {path.name}") from e
    except pd.errors.ParserError as e:
        raise MalformedExportError(f"Could not parse {path.name}: {e}") from e

    if len(df.columns) == 0:
        raise MalformedExportError(f"No headers found in {path.name}")

    df.columns = [
        str(header).strip() or f"Column_{index + 1}"
        for index, header in enumerate(df.columns)
    ]
    df = df.apply(lambda column: column.str.strip())
    blank = (df == "").all(axis=1)
    return df[~blank].reset_index(drop=True)


def validate_mapping(mapping: Dict[str, Optional[str]]) -> None:
    """Raise when the column mapping lacks a field orders cannot be built without."""
    missing = [name for name in REQUIRED_MAPPING_FIELDS if not mapping.get(name)]
    if missing:
        raise MalformedExportError(f"Column mapping is missing required fields: {missing}")


# =============================================================================
# ORDERS
# =============================================================================

@dataclass
class ImportSummary:
    total_records: int = 0
    valid_orders: int = 0
    cancelled_orders: int = 0
    delivered_orders: int = 0
    unique_suppliers: int = 0
    created_suppliers: List[str] = field(default_factory=list)


def find_or_create_suppliers(suppliers: pd.DataFrame, names) -> Tuple[pd.DataFrame, List[str]]:
    """Return suppliers extended with any names not on file, plus the names created."""
    frame = coerce_suppliers(suppliers)
    known = set(frame["name"].dropna())
    created = []
    for name in names:
        if name and name not in known:
            known.add(name)
            created.append(name)
    if created:
        additions = pd.DataFrame({"id": [new_id() for _ in created], "name": created})
        frame = pd.concat([frame, additions.reindex(columns=SUPPLIER_COLUMNS)], ignore_index=True)
    return frame, created


def build_orders(
    normalized: pd.DataFrame,
    suppliers: pd.DataFrame,
    file_id: Optional[str] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame, ImportSummary]:
    """
    Turn normalized export rows into order records.

    Suppliers are matched by exact name and created when unseen. Prices are
    left empty; they are filled in by a payout run (apply_price_snapshot).
    """
    rows = normalized.copy()
    for column in ["supplier_name", "awb_no", "product_name", "status"]:
        if column not in rows.columns:
            rows[column] = ""
    rows["supplier_name"] = rows["supplier_name"].fillna("").astype(str)

    names = list(dict.fromkeys(rows["supplier_name"]))
    supplier_frame, created = find_or_create_suppliers(suppliers, names)
    ids_by_name = dict(zip(supplier_frame["name"], supplier_frame["id"]))

    orders = rows.reindex(columns=ORDER_COLUMNS)
    orders["id"] = [new_id() for _ in range(len(rows))]
    orders["supplier_id"] = rows["supplier_name"].map(ids_by_name).values
    for column in ["unit_price", "line_amount", "hsn", "previous_status"]:
        orders[column] = None
    if file_id is not None:
        orders["file_id"] = file_id

    statuses = rows["status"].map(parse_status)
    summary = ImportSummary(
        total_records=len(rows),
        valid_orders=int((statuses != OrderStatus.CANCELLED).sum()),
        cancelled_orders=int((statuses == OrderStatus.CANCELLED).sum()),
        delivered_orders=int((statuses == OrderStatus.DELIVERED).sum()),
        unique_suppliers=len([name for name in names if name]),
        created_suppliers=created,
    )
    return orders, supplier_frame, summary


def apply_price_snapshot(orders: pd.DataFrame, calculations: pd.DataFrame) -> pd.DataFrame:
    """Copy unit_price, line_amount and hsn from payout calculations onto matching orders."""
    updated = orders.copy()
    for column in ["unit_price", "line_amount", "hsn"]:
        if column not in updated.columns:
            updated[column] = None
        updated[column] = updated[column].astype(object)
    if calculations.empty:
        return updated

    snapshot = calculations.drop_duplicates(subset="order_id", keep="last").set_index("order_id")
    matched = updated["id"].isin(snapshot.index)
    order_ids = updated.loc[matched, "id"]
    for column in ["unit_price", "line_amount", "hsn"]:
        updated.loc[matched, column] = order_ids.map(snapshot[column]).values
    return updated


# =============================================================================
# PRICE LISTS
# =============================================================================

@dataclass
class PriceListResult:
    price_entries: pd.DataFrame
    suppliers: pd.DataFrame
    processed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    supplier_names: List[str] = field(default_factory=list)


def _pick(row: Dict[str, str], field_name: str) -> str:
    for header in PRICE_LIST_HEADERS[field_name]:
        value = row.get(header)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _is_iso(value: str) -> bool:
    return bool(re.match(r"^\d{4}-\d{2}-\d{2}$", value))


def _to_float(text: str) -> Optional[float]:
    if not text:
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def resolve_gst_prices(before_gst: Optional[float], after_gst: Optional[float], gst_rate: float) -> Optional[Tuple[float, float]]:
    """
    Final (after GST) and before-GST prices from whatever the row provides.

    The after-GST price wins when valid; otherwise it is derived from the
    before-GST price and rate. Zero is a valid price, negatives are not.
    """
    factor = 1 + gst_rate / 100
    if after_gst is not None and after_gst >= 0:
        final = after_gst
    elif before_gst is not None and before_gst >= 0:
        final = before_gst * factor
    else:
        return None
    base = before_gst if before_gst is not None and before_gst > 0 else final / factor
    return round(final, 2), round(base, 2)


def load_price_list(
    raw: pd.DataFrame,
    suppliers: pd.DataFrame,
    price_entries: Optional[pd.DataFrame] = None,
    default_supplier: Optional[str] = None,
    today: Optional[date] = None,
) -> PriceListResult:
    """
    Upsert a supplier price list into the price entries.

    Entries are keyed by (supplier, product, currency, effective_from): a row
    with the same key replaces the stored entry, anything else is appended as
    a new validity window. Row numbers in errors are spreadsheet rows (the
    header is row 1).
    """
    today = today or date.today()
    default_from = today.strftime(ISO_DATE_FORMAT)

    supplier_frame = coerce_suppliers(suppliers)
    entries = (price_entries.copy() if price_entries is not None else pd.DataFrame())
    entries = entries.reindex(columns=[
        "id", "supplier_id", "product_name", "currency", "price", "price_before_gst",
        "gst_rate", "hsn", "effective_from", "effective_to",
    ]).astype(object)

    records = entries.to_dict("records")
    positions = {
        (record["supplier_id"], record["product_name"], record["currency"], record["effective_from"]): position
        for position, record in enumerate(records)
    }
    errors: List[str] = []
    processed = 0
    seen_suppliers: List[str] = []

    for offset, row in enumerate(raw.to_dict("records")):
        row_number = offset + 2
        supplier_name = _pick(row, "supplier_name") or (default_supplier or "")
        product_name = _pick(row, "product_name")
        if supplier_name and supplier_name not in seen_suppliers:
            seen_suppliers.append(supplier_name)

        if not supplier_name:
            errors.append(f'Row {row_number}: Supplier name is required (check "Supplier Name" column)')
            continue
        if not product_name:
            errors.append(f"Row {row_number}: Product name is required")
            continue

        gst_rate = _to_float(_pick(row, "gst_rate"))
        gst_rate = DEFAULT_GST_RATE if gst_rate is None else gst_rate
        prices = resolve_gst_prices(
            _to_float(_pick(row, "price_before_gst")),
            _to_float(_pick(row, "price_after_gst")),
            gst_rate,
        )
        if prices is None:
            errors.append(f"Row {row_number}: Invalid price values (must be 0 or positive numbers)")
            continue
        final_price, before_gst = prices

        effective_from = parse_date_value(_pick(row, "effective_from")) or default_from
        effective_to = parse_date_value(_pick(row, "effective_to")) or None
        if not _is_iso(effective_from) or (effective_to and not _is_iso(effective_to)):
            errors.append(f"Row {row_number}: Invalid effective date (use YYYY-MM-DD)")
            continue

        supplier_frame, _ = find_or_create_suppliers(supplier_frame, [supplier_name])
        supplier_id = supplier_frame.loc[supplier_frame["name"] == supplier_name, "id"].iloc[0]
        currency = _pick(row, "currency") or DEFAULT_CURRENCY

        key = (supplier_id, product_name, currency, effective_from)
        record = {
            "id": new_id(),
            "supplier_id": supplier_id,
            "product_name": product_name,
            "currency": currency,
            "price": final_price,
            "price_before_gst": before_gst,
            "gst_rate": gst_rate,
            "hsn": _pick(row, "hsn"),
            "effective_from": effective_from,
            "effective_to": effective_to,
        }
        if key in positions:
            record["id"] = records[positions[key]]["id"]
            records[positions[key]] = record
        else:
            positions[key] = len(records)
            records.append(record)
        processed += 1

    return PriceListResult(
        price_entries=pd.DataFrame(records, columns=entries.columns),
        suppliers=supplier_frame,
        processed=processed,
        skipped=len(raw) - processed,
        errors=errors,
        supplier_names=seen_suppliers,
    )
