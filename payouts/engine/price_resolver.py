"""
Price Resolver

Finds the price entry in effect for a supplier + product on a reference date.

Matching:
1. supplier_id matches exactly, product_name matches case-insensitively
2. effective_from <= reference date and (effective_to missing or >= reference date)
3. when windows overlap, the entry with the latest effective_from wins

No match is a normal "missing price" outcome and returns None / no row;
the calculator reports it, nothing here raises.
"""

from typing import Optional

import pandas as pd

from payouts.engine.frames import coerce_price_entries


def _in_window(effective_from: pd.Series, effective_to: pd.Series, reference: pd.Series) -> pd.Series:
    started = effective_from.notna() & (effective_from <= reference)
    not_ended = effective_to.isna() | (effective_to >= reference)
    return started & not_ended


def resolve_price_entry(
    price_entries: pd.DataFrame,
    supplier_id: str,
    product_name: str,
    reference_date,
) -> Optional[pd.Series]:
    """Return the applicable price entry row, or None when no window contains the date."""
    entries = coerce_price_entries(price_entries)
    reference = pd.Timestamp(reference_date).normalize()
    if pd.isna(reference):
        return None

    product_key = str(product_name).strip().casefold()
    same_product = (entries["supplier_id"] == str(supplier_id)) & (
        entries["product_name"].fillna("").str.casefold() == product_key
    )
    candidates = entries[same_product]
    reference_series = pd.Series(reference, index=candidates.index)
    candidates = candidates[
        _in_window(candidates["effective_from"], candidates["effective_to"], reference_series)
    ]
    if candidates.empty:
        return None

    # Latest effective_from wins; file order breaks exact ties
    best = candidates.sort_values("effective_from", ascending=False, kind="stable").iloc[0]
    return best


def resolve_prices(lookups: pd.DataFrame, price_entries: pd.DataFrame) -> pd.DataFrame:
    """
    Vectorised resolution for many lookups at once.

    lookups needs supplier_id, product_name and basis_date columns; its index
    identifies each lookup. Returns one row per resolved lookup, indexed like
    lookups, with price_entry_id, price, gst_rate, hsn and effective_from of
    the winning entry. Unresolved lookups are absent from the result.
    """
    result_columns = ["price_entry_id", "price", "gst_rate", "hsn", "effective_from"]
    if lookups.empty:
        return pd.DataFrame(columns=result_columns)

    entries = coerce_price_entries(price_entries)
    entries = entries.assign(
        _product_key=entries["product_name"].fillna("").str.casefold(),
        _entry_pos=range(len(entries)),
    )

    keyed = pd.DataFrame({
        "_lookup": lookups.index,
        "supplier_id": lookups["supplier_id"].values,
        "_product_key": lookups["product_name"].fillna("").astype(str).str.strip().str.casefold().values,
        "_reference": pd.to_datetime(lookups["basis_date"]).dt.normalize().values,
    })

    merged = keyed.merge(
        entries[[
            "supplier_id", "_product_key", "_entry_pos", "id", "price", "gst_rate", "hsn",
            "effective_from", "effective_to",
        ]],
        on=["supplier_id", "_product_key"],
        how="inner",
    )
    merged = merged[_in_window(merged["effective_from"], merged["effective_to"], merged["_reference"])]
    if merged.empty:
        return pd.DataFrame(columns=result_columns)

    merged = merged.sort_values(
        ["_lookup", "effective_from", "_entry_pos"],
        ascending=[True, False, True],
        kind="stable",
    )
    winners = merged.drop_duplicates(subset="_lookup", keep="first").set_index("_lookup")
    winners.index.name = None
    winners = winners.rename(columns={"id": "price_entry_id"})
    return winners[result_columns]
