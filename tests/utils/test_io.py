"""
IO Helper Tests

Run: pytest tests/utils/test_io.py -v
"""

import pandas as pd

from payouts.utils.io import atomic_write_csv, read_frame


class TestReadFrame:

    def test_na_like_names_stay_text(self, tmp_path):
        """
        Business Rule: a supplier called "NA" or "None" is a name, not a missing value.
        """
        path = tmp_path / "supplier_summary.csv"
        atomic_write_csv(pd.DataFrame({
            "supplier_name": ["NA", "None", "Acme"],
            "currency": ["INR", "INR", None],
            "total_amount": [10.0, 20.0, 30.0],
        }), path)

        summary = read_frame(path, dtype={"supplier_name": str, "currency": str})

        assert summary["supplier_name"].tolist() == ["NA", "None", "Acme"]
        assert summary["total_amount"].tolist() == [10.0, 20.0, 30.0]
        assert pd.isna(summary.loc[2, "currency"])

    def test_everything_is_text_by_default(self, tmp_path):
        path = tmp_path / "orders.csv"
        path.write_text("awb_no,qty\n000123,2\n")

        assert read_frame(path).to_dict("records") == [{"awb_no": "000123", "qty": "2"}]
