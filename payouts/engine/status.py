"""
Order status and pricing basis enums.

Raw statuses arrive as free text from courier exports ("Delivered",
"RTO", "cancelled", ...). They are parsed exactly once, at ingestion, into
OrderStatus. Everything downstream switches on the enum value.
"""

from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RTS = "rts"
    RTO = "rto"
    RETURNED = "returned"
    OTHER = "other"


# Statuses that qualify an order for payout
PAYABLE_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED})

# Reverse-logistics statuses (counted as RTS in the supplier summary)
RETURN_STATUSES = frozenset({OrderStatus.RTS, OrderStatus.RTO, OrderStatus.RETURNED})

_BY_VALUE = {status.value: status for status in OrderStatus if status is not OrderStatus.OTHER}


def parse_status(raw: Optional[str]) -> OrderStatus:
    """Map a raw export status to OrderStatus (exact match after case-folding)."""
    if raw is None or not isinstance(raw, str):
        return OrderStatus.OTHER
    return _BY_VALUE.get(raw.strip().casefold(), OrderStatus.OTHER)


def is_payable(status: OrderStatus) -> bool:
    return status in PAYABLE_STATUSES


def is_return(status: OrderStatus) -> bool:
    return status in RETURN_STATUSES


class PricingBasis(str, Enum):
    """Which order date anchors the price lookup."""

    DELIVERED_DATE = "delivered_date"
    ORDER_DATE = "order_date"

    @classmethod
    def parse(cls, value) -> "PricingBasis":
        """Accept enum members, snake_case values and the camelCase API spelling."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.DELIVERED_DATE
        key = str(value).strip()
        aliases = {"deliveredDate": cls.DELIVERED_DATE, "orderDate": cls.ORDER_DATE}
        if key in aliases:
            return aliases[key]
        return cls(key.lower())
