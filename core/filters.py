from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Literal, Mapping, Optional, Tuple, Union

ColumnKind = Literal["numeric", "textual"]
NUMERIC: ColumnKind = "numeric"
TEXTUAL: ColumnKind = "textual"

CHART_TYPES: Tuple[str, ...] = ("bar", "line", "pie", "doughnut", "area")
ARC_CHART_TYPES: Tuple[str, ...] = ("pie", "doughnut")
COLOR_THEMES: Tuple[str, ...] = ("vibrant", "pastel", "gradient")
STATS_SCOPES: Tuple[str, ...] = ("entire", "page")
FILTER_FIELDS: Tuple[str, ...] = ("value", "max")

RowsPerPage = Union[int, Literal["all"]]
ROWS_PER_PAGE_OPTIONS: Tuple[RowsPerPage, ...] = (10, 20, 50, 100, 200, 500, 1000, "all")


@dataclass(frozen=True)
class ColumnFilter:
    """Raw filter inputs for one column.

    Textual columns use ``value`` as a case-insensitive substring. Numeric
    columns use ``value`` as the inclusive minimum and ``max`` as the
    inclusive maximum; either may be blank.
    """

    value: str = ""
    max: str = ""

    def is_active(self, kind: ColumnKind) -> bool:
        if kind == NUMERIC:
            return bool(self.value or self.max)
        return bool(self.value)


@dataclass(frozen=True)
class ViewParams:
    header_row: int = 0
    x_axis: str = ""
    y_axis: str = ""
    search: str = ""
    filters: Mapping[str, ColumnFilter] = field(default_factory=dict)
    rows_per_page: RowsPerPage = 10
    page: int = 1
    chart_type: str = "bar"
    color_theme: str = "vibrant"
    stats_scope: str = "entire"


def _as_rows_per_page(value: object, default: RowsPerPage = 10) -> RowsPerPage:
    if isinstance(value, str) and value.strip().lower() == "all":
        return "all"
    try:
        out = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return out if out > 0 else default


def _choice(value: object, options: Tuple[str, ...], default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in options else default


def normalize_params(raw: dict, *, default_rows_per_page: int = 10) -> ViewParams:
    """Coerce loosely-typed UI/query input into a ViewParams, dropping anything invalid."""
    header_row = raw.get("header_row", 0)
    try:
        header_row = max(0, int(header_row))
    except (TypeError, ValueError):
        header_row = 0

    page = raw.get("page", 1)
    try:
        page = max(1, int(page))
    except (TypeError, ValueError):
        page = 1

    filters: Dict[str, ColumnFilter] = {}
    for column, spec in (raw.get("filters") or {}).items():
        if not isinstance(spec, Mapping):
            continue
        f = ColumnFilter(value=str(spec.get("value") or ""), max=str(spec.get("max") or ""))
        if f.value or f.max:
            filters[str(column)] = f

    return ViewParams(
        header_row=header_row,
        x_axis=str(raw.get("x_axis") or ""),
        y_axis=str(raw.get("y_axis") or ""),
        search=str(raw.get("search") or ""),
        filters=filters,
        rows_per_page=_as_rows_per_page(raw.get("rows_per_page", default_rows_per_page), default_rows_per_page),
        page=page,
        chart_type=_choice(raw.get("chart_type"), CHART_TYPES, "bar"),
        color_theme=_choice(raw.get("color_theme"), COLOR_THEMES, "vibrant"),
        stats_scope=_choice(raw.get("stats_scope"), STATS_SCOPES, "entire"),
    )


# ---------------- Setters (each returns a new ViewParams) ----------------
def set_header_row(params: ViewParams, index: int) -> ViewParams:
    # Column labels may change with the header row, so axes no longer apply.
    return replace(params, header_row=index, x_axis="", y_axis="", page=1)


def set_axis(params: ViewParams, which: str, header: Optional[str]) -> ViewParams:
    header = header or ""
    if which == "x":
        return replace(params, x_axis=header)
    if which == "y":
        return replace(params, y_axis=header)
    raise ValueError(f"Unknown axis {which!r}; expected 'x' or 'y'.")


def set_chart_type(params: ViewParams, chart_type: str) -> ViewParams:
    if chart_type not in CHART_TYPES:
        raise ValueError(f"Unknown chart type {chart_type!r}; expected one of {', '.join(CHART_TYPES)}.")
    return replace(params, chart_type=chart_type)


def set_color_theme(params: ViewParams, theme: str) -> ViewParams:
    if theme not in COLOR_THEMES:
        raise ValueError(f"Unknown color theme {theme!r}; expected one of {', '.join(COLOR_THEMES)}.")
    return replace(params, color_theme=theme)


def set_stats_scope(params: ViewParams, scope: str) -> ViewParams:
    if scope not in STATS_SCOPES:
        raise ValueError(f"Unknown stats scope {scope!r}; expected 'entire' or 'page'.")
    return replace(params, stats_scope=scope)


def set_rows_per_page(params: ViewParams, rows_per_page: object) -> ViewParams:
    value = _as_rows_per_page(rows_per_page, default=0)  # type: ignore[arg-type]
    if value == 0:
        raise ValueError(f"Rows per page must be a positive integer or 'all', got {rows_per_page!r}.")
    return replace(params, rows_per_page=value, page=1)


def total_pages(row_count: int, rows_per_page: RowsPerPage) -> int:
    if rows_per_page == "all":
        return 1
    return math.ceil(row_count / rows_per_page)


def set_page(params: ViewParams, page: int, pages: int) -> ViewParams:
    """Move to ``page``, clamped to ``[1, pages]``."""
    page = min(int(page), max(pages, 1))
    return replace(params, page=max(1, page))


def set_search(params: ViewParams, text: str) -> ViewParams:
    return replace(params, search=text or "", page=1)


def set_filter(params: ViewParams, column: str, field_name: str, text: str, kind: ColumnKind) -> ViewParams:
    """Update one filter field; a column left with no active criteria is removed."""
    if field_name not in FILTER_FIELDS:
        raise ValueError(f"Unknown filter field {field_name!r}; expected 'value' or 'max'.")
    filters = dict(params.filters)
    current = filters.get(column, ColumnFilter())
    updated = replace(current, **{field_name: text or ""})
    if updated.is_active(kind):
        filters[column] = updated
    else:
        filters.pop(column, None)
    return replace(params, filters=filters, page=1)


def clear_filters(params: ViewParams) -> ViewParams:
    return replace(params, filters={}, page=1)


def active_filter_count(params: ViewParams, column_types: Mapping[str, ColumnKind]) -> int:
    return sum(1 for column, f in params.filters.items() if f.is_active(column_types.get(column, TEXTUAL)))
