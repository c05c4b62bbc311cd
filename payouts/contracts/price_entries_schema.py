"""
Data Contract: Price Entries

Contract for data/intermediate/price_entries.csv.
"""

from typing import Optional

import pandera as pa
from pandera.typing import Series


class PriceEntriesSchema(pa.DataFrameModel):
    """One price validity window per (supplier, product, currency, effective_from)."""

    id: Series[str] = pa.Field(nullable=False, unique=True)
    supplier_id: Series[str] = pa.Field(nullable=False)
    product_name: Series[str] = pa.Field(nullable=False)
    currency: Series[str] = pa.Field(nullable=False)

    # Final (post-GST) price used for payouts
    price: Series[float] = pa.Field(nullable=False, ge=0)
    price_before_gst: Optional[Series[float]] = pa.Field(nullable=True, ge=0)
    gst_rate: Optional[Series[float]] = pa.Field(nullable=True, ge=0)
    hsn: Optional[Series[str]] = pa.Field(nullable=True)

    # Dates as YYYY-MM-DD strings; effective_to empty = open ended
    effective_from: Series[str] = pa.Field(nullable=False, str_matches=r"^\d{4}-\d{2}-\d{2}$")
    effective_to: Optional[Series[str]] = pa.Field(nullable=True)

    class Config:
        strict = False
        coerce = True

    @pa.dataframe_check(name="window_not_inverted")
    def validate_window(cls, df):
        """effective_to, when set, is not before effective_from (ISO strings sort as dates)."""
        if "effective_to" not in df.columns:
            return True
        return df["effective_to"].isna() | (df["effective_to"] >= df["effective_from"])
