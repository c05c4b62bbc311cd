"""
Ingestion Tests

Run: pytest tests/engine/test_ingest.py -v
"""

from datetime import date

import pandas as pd
import pytest

from payouts.engine.ingest import (
    MalformedExportError,
    apply_price_snapshot,
    build_orders,
    load_price_list,
    read_export,
    resolve_gst_prices,
    validate_mapping,
)


class TestReadExport:

    def test_reads_csv_as_strings(self, tmp_path):
        path = tmp_path / "orders.csv"
        path.write_text("AWB No, Qty ,Status\n000123,2, Delivered\n,,\n")

        df = read_export(path)

        assert list(df.columns) == ["AWB No", "Qty", "Status"]
        assert df.to_dict("records") == [{"AWB No": "000123", "Qty": "2", "Status": "Delivered"}]

    def test_reads_first_excel_sheet(self, tmp_path):
        path = tmp_path / "orders.xlsx"
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"AWB No": ["A1"], "Qty": [2]}).to_excel(writer, sheet_name="Orders", index=False)
            pd.DataFrame({"Other": ["x"]}).to_excel(writer, sheet_name="Notes", index=False)

        df = read_export(path)

        assert df["AWB No"].tolist() == ["A1"]
        assert df["Qty"].tolist() == ["2"]

    def test_empty_file_is_malformed(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")

        with pytest.raises(MalformedExportError):
            read_export(path)

    def test_unsupported_extension_is_malformed(self, tmp_path):
        path = tmp_path / "orders.pdf"
        path.write_text("AWB\n1\n")

        with pytest.raises(MalformedExportError):
            read_export(path)

    def test_malformed_export_is_a_value_error(self):
        assert issubclass(MalformedExportError, ValueError)

    def test_mapping_without_required_fields_is_rejected(self):
        with pytest.raises(MalformedExportError, match="awb_no"):
            validate_mapping({"supplier_name": "Supplier", "product_name": "Product", "status": "Status"})


class TestBuildOrders:

    @pytest.fixture
    def normalized(self):
        return pd.DataFrame([
            {"supplier_name": "Acme", "awb_no": "A1", "product_name": "Widget", "status": "Delivered",
             "qty": 3, "currency": "INR", "delivered_date": "2024-03-01"},
            {"supplier_name": "Initech", "awb_no": "A2", "product_name": "Stapler", "status": "Cancelled",
             "qty": 1, "currency": "INR"},
            {"supplier_name": "Initech", "awb_no": "A3", "product_name": "Stapler", "status": "RTO",
             "qty": 1, "currency": "INR"},
        ])

    def test_known_suppliers_are_matched_and_new_ones_created(self, normalized, suppliers):
        orders, updated_suppliers, summary = build_orders(normalized, suppliers)

        assert orders.loc[0, "supplier_id"] == "sup-acme"
        assert updated_suppliers["name"].tolist() == ["Acme", "Globex", "Initech"]
        initech_id = updated_suppliers.loc[2, "id"]
        assert orders["supplier_id"].tolist()[1:] == [initech_id, initech_id]
        assert summary.created_suppliers == ["Initech"]
        assert len(suppliers) == 2

    def test_cancelled_orders_are_kept(self, normalized, suppliers):
        orders, _, summary = build_orders(normalized, suppliers)

        assert len(orders) == 3
        assert summary.total_records == 3
        assert summary.valid_orders == 2
        assert summary.cancelled_orders == 1
        assert summary.delivered_orders == 1
        assert summary.unique_suppliers == 2

    def test_orders_get_ids_and_empty_prices(self, normalized, suppliers):
        orders, _, _ = build_orders(normalized, suppliers, file_id="export-1.csv")

        assert orders["id"].is_unique
        assert orders["unit_price"].isna().all()
        assert orders["line_amount"].isna().all()
        assert set(orders["file_id"]) == {"export-1.csv"}
        assert orders.loc[0, "delivered_date"] == "2024-03-01"


class TestPriceSnapshot:

    def test_calculated_prices_are_persisted_on_orders(self, make_order, orders_frame):
        orders = orders_frame(make_order(), make_order())
        calculations = pd.DataFrame([
            {"order_id": "ord-2", "unit_price": 100.0, "line_amount": 300.0, "hsn": "8471"},
        ])

        updated = apply_price_snapshot(orders, calculations)

        assert pd.isna(updated.loc[0, "line_amount"])
        assert updated.loc[1, "unit_price"] == 100.0
        assert updated.loc[1, "line_amount"] == 300.0
        assert updated.loc[1, "hsn"] == "8471"
        assert orders["line_amount"].isna().all()


class TestGstPrices:

    def test_after_gst_price_wins(self):
        assert resolve_gst_prices(100.0, 120.0, 18.0) == (120.0, 100.0)

    def test_final_price_derived_from_before_gst(self):
        assert resolve_gst_prices(100.0, None, 18.0) == (118.0, 100.0)

    def test_before_gst_back_computed(self):
        assert resolve_gst_prices(None, 118.0, 18.0) == (118.0, 100.0)

    def test_zero_is_a_valid_price(self):
        assert resolve_gst_prices(None, 0.0, 18.0) == (0.0, 0.0)

    def test_negative_or_missing_prices_are_rejected(self):
        assert resolve_gst_prices(-1.0, None, 18.0) is None
        assert resolve_gst_prices(None, None, 18.0) is None


class TestLoadPriceList:

    def test_template_headers_are_loaded(self, suppliers):
        raw = pd.DataFrame([{
            "Supplier Name": "Acme",
            "Product Name": "Widget",
            "Price Before GST (INR)": "100",
            "GST Rate (%)": "18",
            "Price After GST (INR)": "",
            "HSN Code": "8471",
            "Effective From (YYYY-MM-DD)": "2024-01-01",
        }])

        result = load_price_list(raw, suppliers)

        assert result.errors == []
        entry = result.price_entries.iloc[0]
        assert entry["supplier_id"] == "sup-acme"
        assert entry["price"] == 118.0
        assert entry["price_before_gst"] == 100.0
        assert entry["currency"] == "INR"
        assert entry["effective_from"] == "2024-01-01"
        assert entry["effective_to"] is None

    def test_defaults_effective_from_to_today(self, suppliers):
        raw = pd.DataFrame([{"supplier_name": "Acme", "product_name": "Widget", "price_after_gst": "50"}])

        result = load_price_list(raw, suppliers, today=date(2024, 11, 21))

        assert result.price_entries.iloc[0]["effective_from"] == "2024-11-21"
        assert result.price_entries.iloc[0]["gst_rate"] == 18.0

    def test_bad_rows_are_reported_with_spreadsheet_row_numbers(self, suppliers):
        """
        Business Rule: bad rows are skipped and reported, the upload does not fail.
        """
        raw = pd.DataFrame([
            {"Supplier Name": "Acme", "Product Name": "Widget", "Price After GST (INR)": "10"},
            {"Supplier Name": "", "Product Name": "Widget", "Price After GST (INR)": "10"},
            {"Supplier Name": "Acme", "Product Name": "", "Price After GST (INR)": "10"},
            {"Supplier Name": "Acme", "Product Name": "Gadget", "Price After GST (INR)": "-5"},
            {"Supplier Name": "Acme", "Product Name": "Gizmo", "Price After GST (INR)": "abc"},
        ])

        result = load_price_list(raw, suppliers, today=date(2024, 1, 1))

        assert result.processed == 1
        assert result.skipped == 4
        assert [error.split(":")[0] for error in result.errors] == ["Row 3", "Row 4", "Row 5", "Row 6"]
        assert "Supplier name is required" in result.errors[0]

    def test_default_supplier_fills_blank_names(self, suppliers):
        raw = pd.DataFrame([{"Product Name": "Widget", "Price After GST (INR)": "10"}])

        result = load_price_list(raw, suppliers, default_supplier="Globex", today=date(2024, 1, 1))

        assert result.price_entries.iloc[0]["supplier_id"] == "sup-globex"

    def test_unknown_supplier_is_created(self, suppliers):
        raw = pd.DataFrame([{"Supplier Name": "Initech", "Product Name": "Stapler", "Price After GST (INR)": "10"}])

        result = load_price_list(raw, suppliers, today=date(2024, 1, 1))

        assert "Initech" in result.suppliers["name"].tolist()
        new_id = result.suppliers.loc[result.suppliers["name"] == "Initech", "id"].iloc[0]
        assert result.price_entries.iloc[0]["supplier_id"] == new_id

    def test_same_key_is_updated_new_window_is_appended(self, suppliers):
        first = load_price_list(
            pd.DataFrame([{"supplier_name": "Acme", "product_name": "Widget", "price_after_gst": "100",
                           "effective_from": "2024-01-01"}]),
            suppliers,
        )
        second = load_price_list(
            pd.DataFrame([
                {"supplier_name": "Acme", "product_name": "Widget", "price_after_gst": "110",
                 "effective_from": "2024-01-01"},
                {"supplier_name": "Acme", "product_name": "Widget", "price_after_gst": "130",
                 "effective_from": "2024-06-01"},
            ]),
            first.suppliers,
            first.price_entries,
        )

        entries = second.price_entries
        assert entries["price"].tolist() == [110.0, 130.0]
        assert entries.loc[0, "id"] == first.price_entries.loc[0, "id"]

    def test_invalid_effective_date_is_reported(self, suppliers):
        raw = pd.DataFrame([{"supplier_name": "Acme", "product_name": "Widget", "price_after_gst": "10",
                             "effective_from": "someday"}])

        result = load_price_list(raw, suppliers)

        assert result.processed == 0
        assert result.errors == ["Row 2: Invalid effective date (use YYYY-MM-DD)"]

    def test_rejected_date_row_does_not_create_supplier(self, suppliers):
        raw = pd.DataFrame([{"supplier_name": "Initech", "product_name": "Stapler", "price_after_gst": "10",
                             "effective_from": "someday"}])

        result = load_price_list(raw, suppliers)

        assert result.suppliers["name"].tolist() == ["Acme", "Globex"]

    @pytest.mark.parametrize("index", [[1, 0], [10, 20]])
    def test_upsert_ignores_existing_index_labels(self, suppliers, index):
        """
        Business Rule: an upsert replaces the entry with the same key, whatever
        index the stored entries carry.
        """
        existing = pd.DataFrame([
            {"id": "e1", "supplier_id": "sup-acme", "product_name": "Widget", "currency": "INR",
             "price": 1.0, "effective_from": "2024-01-01"},
            {"id": "e2", "supplier_id": "sup-acme", "product_name": "Gadget", "currency": "INR",
             "price": 2.0, "effective_from": "2024-01-01"},
        ], index=index)
        raw = pd.DataFrame([{"supplier_name": "Acme", "product_name": "Gadget", "price_after_gst": "5",
                             "effective_from": "2024-01-01"}])

        result = load_price_list(raw, suppliers, existing)

        entries = result.price_entries[["id", "product_name", "price"]].to_dict("records")
        assert entries == [
            {"id": "e1", "product_name": "Widget", "price": 1.0},
            {"id": "e2", "product_name": "Gadget", "price": 5.0},
        ]
