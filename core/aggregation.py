from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Union

import pandas as pd

from core.data import Row, cell_at, cell_text, column_index, parse_number
from core.filters import NUMERIC, ColumnKind

UNKNOWN = "Unknown"

CountGroups = Dict[str, Dict[str, int]]
AverageGroups = Dict[str, Dict[str, float]]
AggregateResult = Union[CountGroups, AverageGroups]


def axis_value(cell: object) -> str:
    return cell_text(cell).strip() or UNKNOWN


def aggregate_rows(
    rows: Sequence[Row],
    headers: Sequence[str],
    x_axis: str,
    y_axis: str,
    column_types: Mapping[str, ColumnKind],
) -> Optional[AggregateResult]:
    """Group ``rows`` by the x column and reduce the y column.

    Textual y gives ``{x: {y: count}}``; numeric y gives ``{x: {"sum", "count"}}``
    with unparseable y cells skipped. Groups keep first-seen order. Returns
    None when an axis is unset or unknown, or there is nothing to aggregate.
    """
    if not x_axis or not y_axis or not rows or not headers:
        return None
    x_index = column_index(headers, x_axis)
    y_index = column_index(headers, y_axis)
    if x_index == -1 or y_index == -1:
        return None

    x_values = [axis_value(cell_at(r, x_index)) for r in rows]

    if column_types.get(y_axis) != NUMERIC:
        df = pd.DataFrame({"x": x_values, "y": [axis_value(cell_at(r, y_index)) for r in rows]})
        counts = df.groupby(["x", "y"], sort=False).size()
        groups: CountGroups = {}
        for (x_val, y_val), n in counts.items():
            groups.setdefault(str(x_val), {})[str(y_val)] = int(n)
        return groups

    df = pd.DataFrame(
        {
            "x": x_values,
            "y": pd.to_numeric(pd.Series([parse_number(cell_at(r, y_index)) for r in rows], dtype=object), errors="coerce"),
        }
    ).dropna(subset=["y"])
    totals = df.groupby("x", sort=False)["y"].agg(["sum", "count"])
    return {str(x_val): {"sum": float(r["sum"]), "count": int(r["count"])} for x_val, r in totals.iterrows()}


def group_average(group: Mapping[str, float]) -> float:
    count = group.get("count", 0)
    return float(group.get("sum", 0.0)) / count if count else 0.0
