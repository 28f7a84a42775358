from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.aggregation import aggregate_rows
from core.charts import chart_title, is_no_data, no_data_chart, project_chart, suggested_max
from core.filters import ViewParams, active_filter_count
from core.stats import compute_stats, highlight_summary


def compute_table_view(params: ViewParams, ctx: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "params": asdict(params),
        "headers": ctx.get("headers", []),
        "column_types": ctx.get("column_types", {}),
        "rows": ctx.get("page_rows", []),
        "filtered_count": len(ctx.get("filtered_rows", [])),
        "total_rows": len(ctx.get("data_rows", [])),
        "page": params.page,
        "total_pages": ctx.get("total_pages", 0),
        "active_filters": active_filter_count(params, ctx.get("column_types", {})),
    }


def compute_chart_view(params: ViewParams, ctx: Dict[str, Any]) -> Dict[str, Any]:
    headers = ctx.get("headers", [])
    column_types = ctx.get("column_types", {})
    page_rows = ctx.get("page_rows", [])
    aggregate = aggregate_rows(page_rows, headers, params.x_axis, params.y_axis, column_types)
    y_kind = column_types.get(params.y_axis)
    chart_data = project_chart(aggregate, params.chart_type, params.color_theme, y_kind, params.y_axis) if aggregate else no_data_chart()
    has_data = not is_no_data(chart_data)
    return {
        "params": asdict(params),
        "aggregate": aggregate,
        "chart": chart_data,
        "has_data": has_data,
        "title": chart_title(params.chart_type, params.x_axis, params.y_axis, y_kind, params.rows_per_page) if has_data else "",
        "y_max": suggested_max(chart_data),
    }


def compute_stats_view(params: ViewParams, ctx: Dict[str, Any]) -> Dict[str, Any]:
    headers = ctx.get("headers", [])
    column_types = ctx.get("column_types", {})
    scope_rows = ctx.get("scope_rows", [])
    stats = compute_stats(scope_rows, headers, params.y_axis, column_types)
    summary = ""
    if params.x_axis and params.y_axis and ctx.get("page_rows"):
        if aggregate_rows(ctx["page_rows"], headers, params.x_axis, params.y_axis, column_types) is not None:
            summary = highlight_summary(scope_rows, headers, params.x_axis, params.y_axis, column_types, params.stats_scope)
    return {
        "params": asdict(params),
        "y_axis": params.y_axis,
        "y_kind": column_types.get(params.y_axis),
        "scope": params.stats_scope,
        "stats": asdict(stats),
        "summary": summary,
    }
