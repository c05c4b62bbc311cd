"""
Data Contract: Orders

Contract for data/intermediate/orders.csv and for the order frame the
engine receives. Validated at runtime, not statically.
"""

from typing import Optional

import pandera as pa
from pandera.typing import Series

from payouts.engine.status import OrderStatus


class OrdersSchema(pa.DataFrameModel):
    """
    Contract for data/intermediate/orders.csv

    status is kept verbatim from the export; status_code, when present,
    must be one of the parsed OrderStatus values.
    """

    # =====================================================
    # Required columns
    # =====================================================

    id: Series[str] = pa.Field(nullable=False, unique=True)
    qty: Series[int] = pa.Field(nullable=False, gt=0)
    currency: Series[str] = pa.Field(nullable=False)

    # Empty when the export row had no supplier name
    supplier_id: Series[str] = pa.Field(nullable=True)

    # Free text from the export, empty allowed
    awb_no: Series[str] = pa.Field(nullable=True)
    product_name: Series[str] = pa.Field(nullable=True)
    status: Series[str] = pa.Field(nullable=True)

    # =====================================================
    # Optional columns
    # =====================================================

    courier: Optional[Series[str]] = pa.Field(nullable=True)
    order_account: Optional[Series[str]] = pa.Field(nullable=True)
    unit_price: Optional[Series[float]] = pa.Field(nullable=True, ge=0)
    line_amount: Optional[Series[float]] = pa.Field(nullable=True, ge=0)
    hsn: Optional[Series[str]] = pa.Field(nullable=True)
    previous_status: Optional[Series[str]] = pa.Field(nullable=True)

    class Config:
        strict = False  # Dates and derived columns pass through
        coerce = True

    @pa.dataframe_check(name="valid_status_code")
    def validate_status_code(cls, df):
        """status_code (added by coerce_orders) must be a known OrderStatus value."""
        if "status_code" not in df.columns:
            return True
        return df["status_code"].isin([status.value for status in OrderStatus])
