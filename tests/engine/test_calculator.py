"""
Payout Calculator Business Rule Tests

These tests encode the payout rules that must ALWAYS be true:
only delivered/completed orders are paid, each priced order pays
price * qty, and every unpriced supplier/product/currency is reported once.

Run: pytest tests/engine/test_calculator.py -v
"""

import pandas as pd
import pytest

from payouts.engine.calculator import calculate_payouts
from payouts.engine.status import PricingBasis


class TestPayableOrders:

    def test_delivered_order_is_paid(self, make_order, orders_frame, price_entries, suppliers):
        """
        Business Rule: line_amount = final price * qty

        Acme Widget at 100.00 INR, qty 3, delivered 2024-03-01 pays 300.00.
        """
        orders = orders_frame(make_order(awb_no="A1", qty=3, status="Delivered", delivered_date="2024-03-01"))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert len(result.calculations) == 1
        calc = result.calculations.iloc[0]
        assert calc["awb_no"] == "A1"
        assert calc["unit_price"] == 100.0
        assert calc["line_amount"] == 300.0
        assert calc["basis_date"] == "2024-03-01"
        assert calc["hsn"] == "8471"

        summary = result.supplier_summary
        assert len(summary) == 1
        assert summary.iloc[0]["supplier_name"] == "Acme"
        assert summary.iloc[0]["currency"] == "INR"
        assert summary.iloc[0]["order_count"] == 1
        assert summary.iloc[0]["total_amount"] == 300.0
        assert result.missing_prices.empty

    def test_rto_order_is_excluded_entirely(self, make_order, orders_frame, price_entries, suppliers):
        """
        Business Rule: non-payable statuses are neither paid nor reported missing.
        """
        orders = orders_frame(make_order(qty=3, status="RTO"), make_order(product_name="Gadget", status="RTO"))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations.empty
        assert result.supplier_summary.empty
        assert result.missing_prices.empty

    @pytest.mark.parametrize("status", ["delivered", "DELIVERED", " Delivered ", "Completed"])
    def test_status_match_is_case_insensitive(self, status, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(status=status))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert len(result.calculations) == 1

    @pytest.mark.parametrize("status", ["Cancelled", "RTS", "Returned", "In Transit", "Delivered to hub", None])
    def test_other_statuses_are_not_paid(self, status, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(status=status))

        assert calculate_payouts(orders, price_entries, suppliers).calculations.empty

    def test_missing_basis_date_is_skipped_silently(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(delivered_date=None), make_order(product_name="Gadget", delivered_date=""))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations.empty
        assert result.missing_prices.empty

    def test_unknown_supplier_is_skipped_silently(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(supplier_id="sup-unknown"))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations.empty
        assert result.missing_prices.empty


class TestMissingPrices:

    def test_missing_price_reported_once(self, make_order, orders_frame, price_entries, suppliers):
        """
        Business Rule: one missing-price entry per (supplier, product, currency),
        however many orders share it.
        """
        orders = orders_frame(*[make_order(product_name="Gadget") for _ in range(5)])

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations.empty
        assert result.missing_prices.to_dict("records") == [
            {"supplier_name": "Acme", "product_name": "Gadget", "currency": "INR"},
        ]

    def test_missing_prices_keep_discovery_order(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(
            make_order(product_name="Gadget"),
            make_order(supplier_id="sup-globex", product_name="Widget"),
            make_order(product_name="Gadget"),
            make_order(product_name="Gizmo", currency="USD"),
        )

        result = calculate_payouts(orders, price_entries, suppliers)

        keys = [tuple(row) for row in result.missing_prices.itertuples(index=False)]
        assert keys == [("Acme", "Gadget", "INR"), ("Globex", "Widget", "INR"), ("Acme", "Gizmo", "USD")]

    def test_date_outside_window_is_missing(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(delivered_date="2023-12-31"))

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations.empty
        assert len(result.missing_prices) == 1


class TestSupplierSummary:

    def test_summary_total_equals_sum_of_calculations(self, make_order, orders_frame, price_entries, suppliers):
        """
        Business Rule: every summary total is the sum of its calculation records.
        """
        orders = orders_frame(
            make_order(qty=1),
            make_order(qty=2),
            make_order(qty=4, status="Completed"),
            make_order(qty=7, status="RTO"),
        )

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.supplier_summary.iloc[0]["order_count"] == 3
        assert result.supplier_summary["total_amount"].sum() == pytest.approx(result.calculations["line_amount"].sum())
        assert result.total_amount == 700.0
        assert len(result.supplier_summary.iloc[0]["orders"]) == 3

    def test_currencies_are_summarized_separately(self, make_order, orders_frame, price_entries, suppliers):
        entries = pd.concat([
            price_entries,
            pd.DataFrame([{"id": "pe-usd", "supplier_id": "sup-acme", "product_name": "Widget", "currency": "USD",
                           "price": 2.5, "effective_from": "2024-01-01"}]),
        ], ignore_index=True)
        # Lookup ignores currency: both orders resolve to the first of the tied entries
        orders = orders_frame(make_order(), make_order(currency="USD"))

        result = calculate_payouts(orders, entries, suppliers)

        groups = result.supplier_summary[["supplier_name", "currency"]].values.tolist()
        assert groups == [["Acme", "INR"], ["Acme", "USD"]]


class TestPricingBasis:

    def test_order_date_basis(self, make_order, orders_frame, suppliers):
        entries = pd.DataFrame([
            {"id": "old", "supplier_id": "sup-acme", "product_name": "Widget", "price": 80.0,
             "effective_from": "2024-01-01", "effective_to": "2024-02-29"},
            {"id": "new", "supplier_id": "sup-acme", "product_name": "Widget", "price": 100.0,
             "effective_from": "2024-03-01"},
        ])
        orders = orders_frame(make_order(order_date="2024-02-25", delivered_date="2024-03-01"))

        by_delivery = calculate_payouts(orders, entries, suppliers, PricingBasis.DELIVERED_DATE)
        by_order = calculate_payouts(orders, entries, suppliers, "orderDate")

        assert by_delivery.calculations.iloc[0]["unit_price"] == 100.0
        assert by_order.calculations.iloc[0]["unit_price"] == 80.0
        assert by_order.calculations.iloc[0]["basis_date"] == "2024-02-25"

    def test_mixed_zoned_and_plain_dates(self, make_order, orders_frame, price_entries, suppliers):
        """
        Business Rule: a delivered date carrying an offset is paid on the date it shows.
        """
        orders = orders_frame(
            make_order(delivered_date="2024-03-01"),
            make_order(delivered_date="2024-03-02T10:00:00+05:30"),
        )

        result = calculate_payouts(orders, price_entries, suppliers)

        assert result.calculations["basis_date"].tolist() == ["2024-03-01", "2024-03-02"]
        assert result.calculations["line_amount"].tolist() == [100.0, 100.0]

    def test_unknown_basis_raises(self, make_order, orders_frame, price_entries, suppliers):
        with pytest.raises(ValueError):
            calculate_payouts(orders_frame(make_order()), price_entries, suppliers, "shipped_date")


class TestPurity:

    def test_inputs_are_not_modified(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(qty=3), make_order(product_name="Gadget"))
        before = (orders.copy(), price_entries.copy(), suppliers.copy())

        calculate_payouts(orders, price_entries, suppliers)

        pd.testing.assert_frame_equal(orders, before[0])
        pd.testing.assert_frame_equal(price_entries, before[1])
        pd.testing.assert_frame_equal(suppliers, before[2])

    def test_repeated_runs_are_identical(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(qty=3), make_order(product_name="Gadget"), make_order(qty=2))

        first = calculate_payouts(orders, price_entries, suppliers)
        second = calculate_payouts(orders, price_entries, suppliers)

        assert first.to_dict() == second.to_dict()
