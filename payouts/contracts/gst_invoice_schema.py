"""
Data Contract: GST Invoice Items

Contract for the Items sheet of data/reports/gst_invoices/<supplier>.xlsx.
"""

import pandera as pa
from pandera.typing import Series


class GstInvoiceItemsSchema(pa.DataFrameModel):
    """One line per product on a supplier's invoice."""

    product_name: Series[str] = pa.Field(nullable=False, unique=True)
    hsn: Series[str] = pa.Field(nullable=True)
    quantity: Series[int] = pa.Field(nullable=False, gt=0)

    # Amounts before tax; total_amount includes GST
    unit_price: Series[float] = pa.Field(nullable=False, gt=0)
    gst_rate: Series[float] = pa.Field(nullable=False, ge=0)
    amount: Series[float] = pa.Field(nullable=False, gt=0)
    gst_amount: Series[float] = pa.Field(nullable=False, ge=0)
    total_amount: Series[float] = pa.Field(nullable=False, gt=0)

    class Config:
        strict = False
        coerce = True

    @pa.dataframe_check(name="total_is_amount_plus_gst")
    def validate_total(cls, df):
        """total_amount = amount + gst_amount (each rounded to the cent)."""
        return (df["amount"] + df["gst_amount"] - df["total_amount"]).abs() <= 0.011
