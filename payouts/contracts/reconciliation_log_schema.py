"""
Data Contract: Reconciliation Log

Contract for data/intermediate/reconciliation_log.csv (append-only).
"""

import pandera as pa
from pandera.typing import Series


class ReconciliationLogSchema(pa.DataFrameModel):
    id: Series[str] = pa.Field(nullable=False, unique=True)
    awb_no: Series[str] = pa.Field(nullable=False)
    order_id: Series[str] = pa.Field(nullable=True)
    previous_status: Series[str] = pa.Field(nullable=True)
    new_status: Series[str] = pa.Field(nullable=False)
    impact: Series[float] = pa.Field(nullable=False)
    note: Series[str] = pa.Field(nullable=False)
    timestamp: Series[pa.DateTime] = pa.Field(nullable=False)

    class Config:
        strict = False
        coerce = True

    @pa.check("note", name="status_change_note")
    def validate_note(cls, series):
        """Every entry describes the transition it records."""
        return series.str.startswith("Status changed from ")
