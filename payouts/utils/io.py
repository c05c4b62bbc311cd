"""
File writers for pipeline outputs.

CSV and XLSX outputs are written to a temp file in the target directory
first and renamed into place, so an interrupted run never leaves a
half-written file behind for the next stage to read.
"""

import os
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

import pandas as pd


def _temp_path(filepath: Path) -> Path:
    return filepath.with_name(f"{filepath.stem}.tmp.{os.getpid()}{filepath.suffix}")


def atomic_write_csv(df: pd.DataFrame, filepath: Path, **csv_kwargs) -> None:
    """
    Write DataFrame to CSV atomically.

    Args:
        df: pandas DataFrame to write
        filepath: Final destination path
        **csv_kwargs: Arguments to pass to df.to_csv()
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    csv_kwargs.setdefault("index", False)

    temp_file = _temp_path(filepath)
    try:
        df.to_csv(temp_file, **csv_kwargs)
        temp_file.replace(filepath)
    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


def write_workbook(sheets: Mapping[str, pd.DataFrame], filepath: Path) -> None:
    """Write one sheet per DataFrame (sheet names truncated to Excel's 31 chars)."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    temp_file = _temp_path(filepath)
    try:
        with pd.ExcelWriter(temp_file, engine="openpyxl") as writer:
            for name, df in sheets.items():
                df.to_excel(writer, sheet_name=name[:31], index=False)
        temp_file.replace(filepath)
    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


def to_report_headers(df: pd.DataFrame, mapping: Dict[str, str], columns: Optional[list] = None) -> pd.DataFrame:
    """Select mapped columns in mapping order and rename them to report headers."""
    columns = columns or [column for column in mapping if column in df.columns]
    return df.reindex(columns=columns).rename(columns=mapping)


def read_frame(filepath: Path, dtype=str) -> pd.DataFrame:
    """
    Read an intermediate CSV keeping ids and free text as strings.

    Only empty cells are missing; names such as "NA" or "None" stay text.
    """
    return pd.read_csv(filepath, dtype=dtype, keep_default_na=False, na_values=[""])


def file_slug(name, fallback: str = "supplier") -> str:
    """File-system safe stem for a supplier name."""
    return re.sub(r"[^A-Za-z0-9]+", "_", str(name)).strip("_") or fallback
