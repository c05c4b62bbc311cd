"""
Data Contract: Payout Outputs

Contracts for the payout run outputs:
- data/intermediate/payout_calculations.csv
- data/intermediate/supplier_summary.csv
"""

import pandera as pa
from pandera.typing import Series


class PayoutCalculationsSchema(pa.DataFrameModel):
    """One record per priced, payable order."""

    order_id: Series[str] = pa.Field(nullable=False, unique=True)
    awb_no: Series[str] = pa.Field(nullable=True)
    supplier_name: Series[str] = pa.Field(nullable=False)
    product_name: Series[str] = pa.Field(nullable=True)
    qty: Series[int] = pa.Field(nullable=False, gt=0)
    unit_price: Series[float] = pa.Field(nullable=False, ge=0)
    line_amount: Series[float] = pa.Field(nullable=False, ge=0)
    currency: Series[str] = pa.Field(nullable=False)
    hsn: Series[str] = pa.Field(nullable=True)
    basis_date: Series[str] = pa.Field(nullable=False)

    class Config:
        strict = False
        coerce = True

    @pa.dataframe_check(name="line_amount_is_price_times_qty")
    def validate_line_amount(cls, df):
        """line_amount = unit_price * qty (to the cent)."""
        return ((df["unit_price"] * df["qty"]).round(2) - df["line_amount"]).abs() < 0.01


class SupplierSummarySchema(pa.DataFrameModel):
    """One row per (supplier_name, currency) in a payout run."""

    supplier_name: Series[str] = pa.Field(nullable=False)
    currency: Series[str] = pa.Field(nullable=False)
    order_count: Series[int] = pa.Field(nullable=False, gt=0)
    total_amount: Series[float] = pa.Field(nullable=False, ge=0)

    class Config:
        strict = False  # orders list column is dropped before saving
        coerce = True

    @pa.dataframe_check(name="unique_supplier_currency")
    def validate_unique_groups(cls, df):
        return ~df.duplicated(subset=["supplier_name", "currency"])
