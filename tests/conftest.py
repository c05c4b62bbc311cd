"""Shared fixtures: small supplier, price and order frames."""

import pandas as pd
import pytest

from payouts.engine.frames import ORDER_COLUMNS


@pytest.fixture
def suppliers():
    return pd.DataFrame({
        "id": ["sup-acme", "sup-globex"],
        "name": ["Acme", "Globex"],
    })


@pytest.fixture
def price_entries():
    """Acme Widget at 100.00 INR from 2024-01-01, open ended."""
    return pd.DataFrame([
        {
            "id": "pe-1",
            "supplier_id": "sup-acme",
            "product_name": "Widget",
            "currency": "INR",
            "price": 100.0,
            "price_before_gst": 84.75,
            "gst_rate": 18.0,
            "hsn": "8471",
            "effective_from": "2024-01-01",
            "effective_to": None,
        },
    ])


@pytest.fixture
def make_order():
    """Factory for order rows with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        order = {column: None for column in ORDER_COLUMNS}
        order.update({
            "id": f"ord-{counter['n']}",
            "awb_no": f"A{counter['n']}",
            "supplier_id": "sup-acme",
            "product_name": "Widget",
            "courier": "Delhivery",
            "qty": 1,
            "currency": "INR",
            "status": "Delivered",
            "order_date": "2024-02-25",
            "delivered_date": "2024-03-01",
        })
        order.update(overrides)
        return order

    return _make


@pytest.fixture
def orders_frame():
    """Build an orders DataFrame from order dicts."""
    def _frame(*orders):
        return pd.DataFrame(list(orders), columns=ORDER_COLUMNS)

    return _frame
