"""
Value Normalizer

Turns raw export rows into normalized order records using a column mapping
(logical field -> export header).

Rules:
- every string value is trimmed
- fields whose name contains "date" are parsed to YYYY-MM-DD; values that
  do not parse are kept as the raw (trimmed) string
- qty is an integer; absent, invalid or non-positive values become 1
- currency defaults to INR

Messy exports are the normal case, so nothing in here raises.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from payouts.config.column_mappings import HEADER_SYNONYMS
from payouts.config.settings import DEFAULT_CURRENCY, DEFAULT_QTY, ISO_DATE_FORMAT
from payouts.engine.frames import parse_timestamp


def _clean_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def parse_date_value(value: str) -> str:
    """Return value as YYYY-MM-DD when it parses as a date, else unchanged."""
    if not value:
        return value
    parsed = parse_timestamp(value)
    if pd.isna(parsed):
        return value
    return parsed.strftime(ISO_DATE_FORMAT)


def parse_qty(value: str) -> int:
    """Integer quantity, defaulting to 1 for blank, invalid or non-positive input."""
    match = re.match(r"^[+-]?\d+", value or "")
    if not match:
        return DEFAULT_QTY
    qty = int(match.group(0))
    return qty if qty > 0 else DEFAULT_QTY


def clean_value(value, field: str):
    """Clean a single raw value according to its logical field name."""
    text = _clean_text(value)
    if field == "qty":
        return parse_qty(text)
    if "date" in field.lower():
        return parse_date_value(text)
    return text


def normalize_row(row: Mapping[str, object], mapping: Mapping[str, Optional[str]]) -> Dict[str, object]:
    """
    Normalize one raw export row.

    Only fields whose mapped header exists in the row are carried over;
    qty and currency are always present in the result.
    """
    normalized: Dict[str, object] = {}
    for field, header in mapping.items():
        if header and header in row:
            normalized[field] = clean_value(row[header], field)

    if not normalized.get("qty"):
        normalized["qty"] = DEFAULT_QTY
    if not normalized.get("currency"):
        normalized["currency"] = DEFAULT_CURRENCY
    return normalized


def normalize_rows(raw_df: pd.DataFrame, mapping: Mapping[str, Optional[str]]) -> pd.DataFrame:
    """Normalize every row of a raw export DataFrame."""
    records = [normalize_row(row, mapping) for row in raw_df.to_dict("records")]
    fields = [field for field, header in mapping.items() if header]
    columns = list(dict.fromkeys(fields + ["qty", "currency"]))
    return pd.DataFrame.from_records(records, columns=columns)


def _normalize_header(header: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", str(header).lower())


def detect_column_mapping(headers: Iterable[str]) -> Dict[str, str]:
    """
    Guess the column mapping from export headers.

    An exact synonym match wins; otherwise the first header (in file order)
    containing one of the synonyms is picked. A header is used for one field
    only. Fields with no match are left out.
    """
    headers: List[str] = list(headers)
    normalized = {header: _normalize_header(header) for header in headers}
    mapping: Dict[str, str] = {}
    used = set()

    # Exact matches first so "Order Date" is not claimed by "Channel Order Date"
    for field, synonyms in HEADER_SYNONYMS.items():
        patterns = {_normalize_header(synonym) for synonym in synonyms}
        for header in headers:
            if header not in used and normalized[header] in patterns:
                mapping[field] = header
                used.add(header)
                break

    for field, synonyms in HEADER_SYNONYMS.items():
        if field in mapping:
            continue
        patterns = [_normalize_header(synonym) for synonym in synonyms]
        for header in headers:
            if header in used:
                continue
            if any(pattern in normalized[header] for pattern in patterns):
                mapping[field] = header
                used.add(header)
                break
    return mapping
