from __future__ import annotations

import logging
import math
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from core.config import AnalyticsConfig
from core.filters import NUMERIC, TEXTUAL, ColumnFilter, ColumnKind, RowsPerPage, ViewParams, total_pages

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, bool, None]
Row = Sequence[Cell]
RawTable = Sequence[Row]

HEADER_PICKER_ROWS = 10

# Leading numeric prefix, the way spreadsheet-exported text usually carries numbers ("12.5kg" -> 12.5).
_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


class HeaderRowError(ValueError):
    """Requested header row is outside the table."""


def parse_number(value: object) -> Optional[float]:
    """Parse a cell into a finite float, or None when it does not hold one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        match = _NUMBER_PREFIX.match(str(value))
        if not match:
            return None
        out = float(match.group(0))
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def is_blank(value: object) -> bool:
    return value is None or value == "" or (isinstance(value, float) and math.isnan(value))


def format_cell(value: object) -> str:
    """Display form used by the data table: numbers to 2 decimals, blanks as '-'."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and math.isnan(value):
            return "-"
        return f"{float(value):.2f}"
    text = cell_text(value)
    return text if text else "-"


def cell_at(row: Row, index: int) -> Cell:
    return row[index] if 0 <= index < len(row) else None


def column_index(headers: Sequence[str], label: str) -> int:
    """Position of ``label``; duplicate labels resolve to the first occurrence."""
    try:
        return list(headers).index(label)
    except ValueError:
        return -1


def rows_frame(rows: Sequence[Row], width: Optional[int] = None) -> pd.DataFrame:
    """Object-dtype frame over ragged rows, padded with None, columns numbered by position."""
    if width is None:
        width = max((len(r) for r in rows), default=0)
    padded = [list(r[:width]) + [None] * (width - len(r)) for r in rows]
    return pd.DataFrame(padded, columns=list(range(width)), dtype=object)


# ---------------- Header resolution ----------------
def resolve_header_row(table: RawTable, index: int) -> int:
    if index < 0:
        raise HeaderRowError("Please enter a number 1 or higher.")
    if index >= len(table):
        raise HeaderRowError(f"Row number must be between 1 and {len(table)}.")
    return index


def parse_header_row_input(text: object, table: RawTable) -> int:
    """Turn a user-entered 1-based row number into a validated 0-based index."""
    match = _INT_PREFIX.match(str(text))
    if not match:
        raise HeaderRowError("Please enter a number 1 or higher.")
    return resolve_header_row(table, int(match.group(0)) - 1)


def header_row_options(table: RawTable, current: int = 0) -> List[int]:
    options = list(range(min(len(table), HEADER_PICKER_ROWS)))
    if current >= HEADER_PICKER_ROWS and current < len(table):
        options.append(current)
    return options


def split_table(table: RawTable, header_row: int) -> Tuple[List[str], List[Row]]:
    if not table or header_row >= len(table):
        return [], []
    headers = [cell_text(h) for h in table[header_row]]
    return headers, list(table[header_row + 1 :])


# ---------------- Type inference ----------------
def infer_column_types(
    headers: Sequence[str], rows: Sequence[Row], threshold: float = 0.9
) -> Dict[str, ColumnKind]:
    frame = rows_frame(rows, width=len(headers))
    types: Dict[str, ColumnKind] = {}
    for i, label in enumerate(headers):
        if label in types:
            continue
        series = frame[i]
        valid = series[~series.map(is_blank).astype(bool)]
        if valid.empty:
            types[label] = TEXTUAL
            continue
        ratio = float(valid.map(parse_number).notna().mean())
        types[label] = NUMERIC if ratio >= threshold else TEXTUAL
    return types


# ---------------- Filtering & pagination ----------------
def _bound(text: str, default: float) -> Optional[float]:
    """Parsed bound, ``default`` when blank, None when the text is not a number."""
    if not text:
        return default
    return parse_number(text)


def apply_filters(
    rows: Sequence[Row],
    headers: Sequence[str],
    search: str,
    filters: Mapping[str, ColumnFilter],
    column_types: Mapping[str, ColumnKind],
) -> List[Row]:
    if not rows:
        return []
    frame = rows_frame(rows, width=max(len(headers), max(len(r) for r in rows)))
    mask = pd.Series(True, index=frame.index)

    query = (search or "").lower()
    if query:
        if frame.shape[1] == 0:
            return []
        hits = frame.apply(lambda col: col.map(cell_text).str.lower().str.contains(query, regex=False))
        mask &= hits.any(axis=1)

    for column, spec in filters.items():
        idx = column_index(headers, column)
        if idx == -1:
            continue
        kind = column_types.get(column, TEXTUAL)
        if not spec.is_active(kind):
            continue
        series = frame[idx]
        if kind == TEXTUAL:
            mask &= series.map(cell_text).str.lower().str.contains(spec.value.lower(), regex=False)
        else:
            low = _bound(spec.value, -math.inf)
            high = _bound(spec.max, math.inf)
            if low is None or high is None:
                mask &= False
                continue
            values = pd.to_numeric(series.map(parse_number), errors="coerce")
            mask &= values.between(low, high).fillna(False).astype(bool)

    return [rows[i] for i in frame.index[mask.to_numpy()]]


def paginate(rows: Sequence[Row], rows_per_page: RowsPerPage, page: int) -> Tuple[List[Row], int]:
    if rows_per_page == "all":
        return list(rows), 1
    start = (max(page, 1) - 1) * rows_per_page
    return list(rows[start : start + rows_per_page]), total_pages(len(rows), rows_per_page)


def table_frame(headers: Sequence[str], rows: Sequence[Row]) -> pd.DataFrame:
    """Display frame with unique column labels and formatted cells."""
    labels: List[str] = []
    seen: Dict[str, int] = {}
    for h in headers:
        seen[h] = seen.get(h, 0) + 1
        labels.append(h if seen[h] == 1 else f"{h} ({seen[h]})")
    frame = rows_frame(rows, width=len(headers))
    if frame.empty:
        return pd.DataFrame(columns=labels)
    frame.columns = labels
    return frame.apply(lambda col: col.map(format_cell))


# ---------------- Public API ----------------
def prepare_context(params: ViewParams, table: RawTable, config: Optional[AnalyticsConfig] = None) -> Dict[str, object]:
    """Run header resolution, type inference, filtering and pagination for one view."""
    config = config or AnalyticsConfig()
    headers, data_rows = split_table(table, params.header_row)
    column_types = infer_column_types(headers, data_rows, threshold=config.numeric_threshold)
    filtered_rows = apply_filters(data_rows, headers, params.search, params.filters, column_types)
    page_rows, pages = paginate(filtered_rows, params.rows_per_page, params.page)
    logger.debug(
        "prepared view: %d data rows, %d filtered, page %s/%d",
        len(data_rows),
        len(filtered_rows),
        params.page,
        pages,
    )
    return {
        "params": params,
        "headers": headers,
        "data_rows": data_rows,
        "column_types": column_types,
        "filtered_rows": filtered_rows,
        "page_rows": page_rows,
        "total_pages": pages,
        "scope_rows": filtered_rows if params.stats_scope == "entire" else page_rows,
    }
