from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

import numpy as np

from core.aggregation import axis_value
from core.data import Row, cell_at, column_index, parse_number
from core.filters import NUMERIC, ColumnKind

SCOPE_TEXT = {"entire": "entire dataset", "page": "current page"}


@dataclass(frozen=True)
class Stats:
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0


def numeric_values(rows: Sequence[Row], index: int) -> np.ndarray:
    parsed = (parse_number(cell_at(r, index)) for r in rows)
    return np.array([v for v in parsed if v is not None], dtype=float)


def compute_stats(
    rows: Sequence[Row],
    headers: Sequence[str],
    y_axis: str,
    column_types: Mapping[str, ColumnKind],
) -> Stats:
    """Descriptive statistics of the y column; all zeros when undefined."""
    if not y_axis or column_types.get(y_axis) != NUMERIC:
        return Stats()
    index = column_index(headers, y_axis)
    if index == -1:
        return Stats()
    values = numeric_values(rows, index)
    if values.size == 0:
        return Stats()
    return Stats(
        min=float(values.min()),
        max=float(values.max()),
        mean=float(values.mean()),
        median=float(np.median(values)),
        std_dev=float(values.std(ddof=0)),
    )


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def highlight_summary(
    rows: Sequence[Row],
    headers: Sequence[str],
    x_axis: str,
    y_axis: str,
    column_types: Mapping[str, ColumnKind],
    scope: str = "entire",
) -> str:
    """One-line takeaway over ``rows`` (the rows of the selected scope).

    Numeric y reports the category with the highest average; textual y the
    most frequent value. Recomputed here rather than read from the chart
    aggregate, since the scope rows can differ from the charted page.
    """
    if not x_axis or not y_axis:
        return ""
    x_index = column_index(headers, x_axis)
    y_index = column_index(headers, y_axis)
    if x_index == -1 or y_index == -1:
        return ""
    where = SCOPE_TEXT.get(scope, SCOPE_TEXT["entire"])

    if column_types.get(y_axis) != NUMERIC:
        counts: Dict[str, int] = {}
        for r in rows:
            y_val = axis_value(cell_at(r, y_index))
            counts[y_val] = counts.get(y_val, 0) + 1
        top_value, top_count = "", 0
        for value, count in counts.items():
            if count > top_count:
                top_value, top_count = value, count
        return f'Most frequent {y_axis} value is "{top_value}" with {top_count} occurrence{_plural(top_count)} in {where}.'

    totals: Dict[str, list] = {}
    for r in rows:
        y_val = parse_number(cell_at(r, y_index))
        if y_val is None:
            continue
        bucket = totals.setdefault(axis_value(cell_at(r, x_index)), [0.0, 0])
        bucket[0] += y_val
        bucket[1] += 1
    best_label, best_avg = "", None
    for label, (total, count) in totals.items():
        avg = total / count
        if best_avg is None or avg > best_avg:
            best_label, best_avg = label, avg
    if best_avg is None:
        return f"No numeric {y_axis} values in {where}."
    return f"Highest average {y_axis} is {best_avg:.2f} for {best_label} in {where}."
