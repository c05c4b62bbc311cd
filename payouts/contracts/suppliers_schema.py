"""
Data Contract: Suppliers

Contract for data/intermediate/suppliers.csv.
"""

from typing import Optional

import pandera as pa
from pandera.typing import Series


class SuppliersSchema(pa.DataFrameModel):
    id: Series[str] = pa.Field(nullable=False, unique=True)
    name: Series[str] = pa.Field(nullable=False, unique=True)

    order_account: Optional[Series[str]] = pa.Field(nullable=True)
    gstin: Optional[Series[str]] = pa.Field(nullable=True)
    trade_name: Optional[Series[str]] = pa.Field(nullable=True)
    address: Optional[Series[str]] = pa.Field(nullable=True)
    ship_to_address: Optional[Series[str]] = pa.Field(nullable=True)
    place_of_supply: Optional[Series[str]] = pa.Field(nullable=True)

    class Config:
        strict = False
        coerce = True
