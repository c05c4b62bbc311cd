"""
Report Generator Tests

Run: pytest tests/engine/test_reports.py -v
"""

import pandas as pd
import pytest

from payouts.engine.reconciliation import LOG_COLUMNS
from payouts.engine.reports import (
    ReportFilters,
    dashboard_stats,
    find_unpriced_products,
    generate_reports,
)


@pytest.fixture
def priced_orders(make_order, orders_frame):
    """Mixed batch with persisted amounts (as written back after a payout run)."""
    return orders_frame(
        make_order(awb_no="A1", qty=3, unit_price=100.0, line_amount=300.0, hsn="8471",
                   delivered_date="2024-03-01"),
        make_order(awb_no="A2", qty=1, unit_price=100.0, line_amount=100.0,
                   delivered_date="2024-05-01"),
        make_order(awb_no="A3", status="RTO", delivered_date="2024-03-05"),
        make_order(awb_no="A4", supplier_id="sup-globex", product_name="Gadget", status="Delivered",
                   unit_price=50.0, line_amount=50.0, delivered_date="2024-03-02"),
        make_order(awb_no="C1", status="Cancelled", delivered_date=None, channel_order_date="2024-02-01",
                   order_date="2024-02-02"),
    )


class TestSupplierPayoutSummary:

    def test_grouped_by_supplier_and_currency_sorted_by_amount(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers)
        summary = bundle.supplier_payout_summary

        assert summary["supplier_name"].tolist() == ["Acme", "Globex"]
        acme = summary.iloc[0]
        assert acme["total_orders"] == 4
        assert acme["delivered_orders"] == 2
        assert acme["rts_orders"] == 1
        assert acme["total_amount"] == 400.0

    def test_min_amount_drops_small_suppliers(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers, filters=ReportFilters(min_amount=100))

        assert bundle.supplier_payout_summary["supplier_name"].tolist() == ["Acme"]
        # other reports are not affected
        assert len(bundle.line_details) == 5

    def test_unknown_supplier_orders_are_not_summarized(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(make_order(supplier_id="sup-unknown", line_amount=10.0))

        bundle = generate_reports(orders, price_entries, suppliers)

        assert bundle.supplier_payout_summary.empty
        assert bundle.line_details.iloc[0]["supplier_name"] == "Unknown"


class TestFilters:

    def test_period_from_excludes_earlier_deliveries_but_not_cancelled(
        self, make_order, orders_frame, price_entries, suppliers
    ):
        """
        Business Rule: filters never apply to the cancelled orders report.

        periodFrom=2024-06-01 drops an order delivered 2024-05-01 from every
        filtered report while the cancelled report still lists it.
        """
        orders = orders_frame(
            make_order(awb_no="X1", status="Cancelled", delivered_date="2024-05-01", product_name=""),
        )

        bundle = generate_reports(orders, price_entries, suppliers, filters=ReportFilters(period_from="2024-06-01"))

        assert bundle.supplier_payout_summary.empty
        assert bundle.payout_export_sheet.empty
        assert bundle.exceptions.empty
        assert bundle.line_details.empty
        assert bundle.cancelled_orders["awb_no"].tolist() == ["X1"]

    def test_period_filters_drop_orders_without_delivered_date(self, priced_orders, price_entries, suppliers):
        filters = ReportFilters(period_from="2024-03-01", period_to="2024-03-31")

        bundle = generate_reports(priced_orders, price_entries, suppliers, filters=filters)

        assert sorted(bundle.line_details["awb_no"]) == ["A1", "A3", "A4"]

    def test_currency_filter(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers, filters=ReportFilters(currency="USD"))

        assert bundle.line_details.empty
        assert len(bundle.cancelled_orders) == 1

    def test_supplier_filter(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers, filters=ReportFilters(supplier="Globex"))

        assert bundle.line_details["awb_no"].tolist() == ["A4"]

    def test_unknown_supplier_filter_is_ignored(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers, filters=ReportFilters(supplier="Initech"))

        assert len(bundle.line_details) == 5


class TestReportViews:

    def test_payout_export_sheet_lists_payable_orders(self, priced_orders, price_entries, suppliers):
        sheet = generate_reports(priced_orders, price_entries, suppliers).payout_export_sheet

        assert sheet["awb_no"].tolist() == ["A1", "A2", "A4"]
        first = sheet.iloc[0]
        assert first["supplier_name"] == "Acme"
        assert first["unit_price"] == 100.0
        assert first["hsn"] == "8471"
        assert first["delivered_date"] == "2024-03-01"

    def test_unpriced_payable_order_shows_zero_price(self, make_order, orders_frame, price_entries, suppliers):
        sheet = generate_reports(orders_frame(make_order()), price_entries, suppliers).payout_export_sheet

        assert sheet.iloc[0]["unit_price"] == 0.0

    def test_cancelled_report_uses_placeholder_supplier(self, priced_orders, price_entries, suppliers):
        cancelled = generate_reports(priced_orders, price_entries, suppliers).cancelled_orders

        assert cancelled.to_dict("records") == [{
            "awb_no": "C1",
            "supplier_name": "Unknown",
            "product_name": "Widget",
            "qty": 1,
            "status": "Cancelled",
            "channel_order_date": "2024-02-01",
            "order_date": "2024-02-02",
        }]

    def test_reconciliation_log_is_passed_through(self, priced_orders, price_entries, suppliers):
        log = pd.DataFrame([{
            "id": "log-1", "awb_no": "A3", "order_id": "ord-3", "previous_status": "Delivered",
            "new_status": "RTO", "impact": -100.0, "note": "Status changed from Delivered to RTO",
            "timestamp": "2024-03-06T10:00:00",
        }], columns=LOG_COLUMNS)

        bundle = generate_reports(priced_orders, price_entries, suppliers, log, ReportFilters(currency="USD"))

        pd.testing.assert_frame_equal(bundle.reconciliation_log, log)
        assert bundle.reconciliation_log is not log

    def test_missing_log_gives_empty_report(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers)

        assert bundle.reconciliation_log.empty
        assert list(bundle.reconciliation_log.columns) == LOG_COLUMNS

    def test_exceptions_one_record_per_violation(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(
            make_order(),
            make_order(awb_no="", product_name=None, qty=0),
        )

        exceptions = generate_reports(orders, price_entries, suppliers).exceptions

        assert exceptions["row_index"].tolist() == [2, 2, 2]
        assert exceptions["type"].tolist() == ["Missing AWB No", "Missing Product Name", "Invalid Quantity"]
        assert set(exceptions["order_id"]) == {"ord-2"}

    def test_line_details_basis_date_falls_back_to_order_date(self, make_order, orders_frame, price_entries, suppliers):
        orders = orders_frame(
            make_order(delivered_date="2024-03-01", order_date="2024-02-01"),
            make_order(delivered_date=None, order_date="2024-02-10"),
            make_order(delivered_date=None, order_date=None),
        )

        details = generate_reports(orders, price_entries, suppliers).line_details

        assert details["basis_date"].tolist() == ["2024-03-01", "2024-02-10", ""]
        assert details["supplier_name"].tolist() == ["Acme", "Acme", "Acme"]

    def test_six_reports(self, priced_orders, price_entries, suppliers):
        bundle = generate_reports(priced_orders, price_entries, suppliers)

        assert list(bundle.as_dict()) == [
            "supplier_payout_summary",
            "payout_export_sheet",
            "cancelled_orders",
            "reconciliation_log",
            "exceptions",
            "line_details",
        ]

    def test_inputs_are_not_modified(self, priced_orders, price_entries, suppliers):
        before = priced_orders.copy()

        generate_reports(priced_orders, price_entries, suppliers, filters=ReportFilters(period_from="2024-03-01"))

        pd.testing.assert_frame_equal(priced_orders, before)


class TestUnpricedProductsAndStats:

    def test_unpriced_products(self, priced_orders, price_entries, suppliers):
        unpriced = find_unpriced_products(priced_orders, price_entries, suppliers)

        assert unpriced[["supplier_name", "product_name", "order_count"]].values.tolist() == [
            ["Globex", "Gadget", 1],
        ]

    def test_dashboard_stats(self, priced_orders, price_entries, suppliers):
        stats = dashboard_stats(priced_orders, price_entries, suppliers)

        assert stats["total_orders"] == 5
        assert stats["total_suppliers"] == 2
        assert stats["total_price_entries"] == 1
        assert stats["unique_products"] == 2
        assert stats["delivered_orders"] == 3
        assert stats["cancelled_orders"] == 1
        assert stats["rts_orders"] == 1
        assert stats["average_order_value"] == pytest.approx(150.0)
