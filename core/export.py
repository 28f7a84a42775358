from __future__ import annotations

import csv
from typing import Sequence

import pandas as pd

from core.data import Row, cell_text


def export_csv(headers: Sequence[str], rows: Sequence[Row]) -> str:
    """Headers plus rows as CSV, every field double-quoted, rows joined by newlines."""
    records = [[cell_text(h) for h in headers]] + [[cell_text(c) for c in row] for row in rows]
    frame = pd.DataFrame(records, dtype=object).fillna("")
    text = frame.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return text[:-1] if text.endswith("\n") else text


def export_filename(upload_id: str) -> str:
    return f"filtered-data-{upload_id}.csv"
