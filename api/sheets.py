from __future__ import annotations

import io
import math
from datetime import date, datetime
from typing import Any, List

import numpy as np
import pandas as pd

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xls"}
CSV_EXTENSIONS = {"csv"}
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS | CSV_EXTENSIONS


class UnsupportedSheetError(ValueError):
    """File type is not a spreadsheet we can read."""


def file_extension(filename: str) -> str:
    return (filename.rsplit(".", 1)[1].lower() if "." in filename else "").strip()


def _to_cell(value: Any) -> Any:
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        out = float(value)
        return None if math.isnan(out) or math.isinf(out) else out
    if isinstance(value, str):
        return value
    return str(value)


def frame_to_rows(frame: pd.DataFrame) -> List[List[Any]]:
    """Headerless frame -> 2D list, NaN as None, trailing blank cells trimmed per row."""
    rows: List[List[Any]] = []
    for record in frame.astype(object).itertuples(index=False, name=None):
        row = [_to_cell(v) for v in record]
        while row and (row[-1] is None or row[-1] == ""):
            row.pop()
        rows.append(row)
    return rows


def read_sheet(content: bytes, filename: str) -> List[List[Any]]:
    """Parse the first sheet of an uploaded spreadsheet into rows of cell values."""
    ext = file_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedSheetError(f"Unsupported file type '.{ext}'" if ext else "File has no extension")
    if ext in CSV_EXTENSIONS:
        frame = pd.read_csv(io.BytesIO(content), header=None, skip_blank_lines=False)
    else:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None)
    return frame_to_rows(frame)
