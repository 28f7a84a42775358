from __future__ import annotations

import io
import re
from typing import Any, Dict, List, Mapping, Optional

import altair as alt
import pandas as pd

from core.aggregation import AggregateResult, group_average
from core.filters import ARC_CHART_TYPES, NUMERIC, ColumnKind, RowsPerPage

alt.data_transformers.disable_max_rows()

GOLDEN_ANGLE = 137.5
NO_DATA_LABEL = "No Data"
NO_DATA_COLOR = "rgba(200,200,200,0.2)"
POINT_BACKGROUND = "#fff"

COLOR_PALETTE: Dict[str, List[str]] = {
    "vibrant": [
        "#1E3A8A", "#B91C1C", "#15803D", "#B45309", "#6B21A8",
        "#BE185D", "#0F766E", "#C2410C", "#4B5563", "#0891B2",
        "#A21CAF", "#4D7C0F", "#BE123C", "#0284C7", "#65A30D",
        "#7C3AED", "#EA580C", "#047857", "#6D28D9", "#D97706",
    ],
    "pastel": [
        "#BFDBFE", "#FECACA", "#BBF7D0", "#FEE08B", "#D8B4FE",
        "#F9A8D4", "#99F6E4", "#FED7AA", "#E2E8F0", "#A5F3FC",
        "#F5D0FE", "#D9F99D", "#FDA4AF", "#BAE6FD", "#ECFCCB",
        "#DDD6FE", "#FFEDD5", "#A7F3D0", "#C7D2FE", "#FEF3C7",
    ],
}

_CSS_COLOR = re.compile(r"(hsla?\([^)]*\)|rgba?\([^)]*\)|#[0-9A-Fa-f]{3,8})")


def is_arc_chart(chart_type: str) -> bool:
    return chart_type in ARC_CHART_TYPES


def golden_hue(index: int) -> float:
    return (index * GOLDEN_ANGLE) % 360


def _fmt(number: float) -> str:
    return f"{number:g}"


def gradient_color(index: int) -> str:
    start, end = golden_hue(index), golden_hue(index + 1)
    return (
        f"linear-gradient(135deg, hsla({_fmt(start)}, 85%, 40%, 0.95) 0%, "
        f"hsla({_fmt(end)}, 75%, 60%, 0.85) 100%)"
    )


def fallback_color(index: int) -> str:
    saturation = 70 + (index % 4) * 10
    lightness = 40 + (index % 3) * 15
    return f"hsla({_fmt(golden_hue(index))}, {saturation}%, {lightness}%, 0.95)"


def generate_colors(count: int, chart_type: str, theme: str = "vibrant") -> List[str]:
    """Deterministic color per series index.

    Gradient theme on arc charts yields CSS gradients; otherwise the fixed
    palette is used until exhausted, then golden-angle HSL colors.
    """
    base = COLOR_PALETTE["vibrant"] if theme == "vibrant" else COLOR_PALETTE["pastel"]
    colors: List[str] = []
    for i in range(count):
        if theme == "gradient" and is_arc_chart(chart_type):
            colors.append(gradient_color(i))
        elif i < len(base):
            colors.append(base[i])
        else:
            colors.append(fallback_color(i))
    return colors


def border_color(color: str) -> str:
    return color.replace("0.95", "1")


def solid_color(color: str) -> str:
    """First plain CSS color inside ``color`` (gradients are reduced to their first stop)."""
    match = _CSS_COLOR.search(color)
    return match.group(1) if match else color


def _style(chart_type: str) -> Dict[str, Any]:
    arc = is_arc_chart(chart_type)
    return {
        "borderWidth": 2 if arc else 3 if chart_type == "line" else 1,
        "borderRadius": 8 if chart_type == "bar" else 0,
        "tension": 0.4 if chart_type in ("line", "area") else 0,
        "fill": chart_type == "area",
        "pointBackgroundColor": POINT_BACKGROUND,
        "pointBorderWidth": 2,
        "pointRadius": 5,
        "pointHoverRadius": 8,
    }


def no_data_chart() -> Dict[str, Any]:
    return {
        "labels": [NO_DATA_LABEL],
        "datasets": [{"label": NO_DATA_LABEL, "data": [1], "backgroundColor": NO_DATA_COLOR}],
    }


def is_no_data(chart_data: Mapping[str, Any]) -> bool:
    return list(chart_data.get("labels", [])) == [NO_DATA_LABEL] and len(chart_data.get("datasets", [])) == 1 and (
        chart_data["datasets"][0].get("label") == NO_DATA_LABEL
    )


def project_chart(
    aggregate: Optional[AggregateResult],
    chart_type: str,
    color_theme: str,
    y_kind: Optional[ColumnKind],
    y_label: str,
) -> Dict[str, Any]:
    """Shape grouped values into ``{"labels", "datasets"}`` for the chosen chart."""
    if not aggregate:
        return no_data_chart()

    labels = list(aggregate.keys())
    arc = is_arc_chart(chart_type)
    style = _style(chart_type)
    vibrant = COLOR_PALETTE["vibrant"]

    if y_kind != NUMERIC:
        series: List[str] = []
        for group in aggregate.values():
            for y_val in group:
                if y_val not in series:
                    series.append(y_val)
        colors = generate_colors(len(series), chart_type, color_theme)
        datasets = []
        for i, y_val in enumerate(series):
            datasets.append(
                {
                    "label": y_val,
                    "data": [int(aggregate[x].get(y_val, 0)) for x in labels],
                    "backgroundColor": colors[i],
                    "borderColor": border_color(colors[i]),
                    "pointBorderColor": vibrant[i % len(vibrant)],
                    **style,
                }
            )
        return {"labels": labels, "datasets": datasets}

    data = [group_average(aggregate[x]) for x in labels]
    colors = generate_colors(len(labels) if arc else 1, chart_type, color_theme)
    return {
        "labels": labels,
        "datasets": [
            {
                "label": f"{y_label} (Avg)",
                "data": data,
                "backgroundColor": colors if arc else colors[0],
                "borderColor": [border_color(c) for c in colors] if arc else border_color(colors[0]),
                "pointBorderColor": vibrant[0],
                **style,
            }
        ],
    }


def chart_title(chart_type: str, x_axis: str, y_axis: str, y_kind: Optional[ColumnKind], rows_per_page: RowsPerPage) -> str:
    scope = "All Rows" if rows_per_page == "all" else "Current Page"
    kind = chart_type[:1].upper() + chart_type[1:]
    if y_kind == NUMERIC:
        return f"{kind} Chart – {y_axis} (Avg) by {x_axis} ({scope})"
    return f"{kind} Chart – {y_axis} Distribution by {x_axis} ({scope})"


def suggested_max(chart_data: Mapping[str, Any]) -> float:
    values = [v for ds in chart_data.get("datasets", []) for v in ds.get("data", []) if isinstance(v, (int, float))]
    top = max(values) if values else 0
    return top * 1.1 if top > 0 else 10


def chart_frame(chart_data: Mapping[str, Any]) -> pd.DataFrame:
    """Long-form (label, series, value, color) rows for rendering."""
    records = []
    labels = list(chart_data.get("labels", []))
    for ds in chart_data.get("datasets", []):
        background = ds.get("backgroundColor")
        for i, (label, value) in enumerate(zip(labels, ds.get("data", []))):
            color = background[i] if isinstance(background, list) else background
            records.append({"label": label, "series": ds.get("label"), "value": value, "color": solid_color(str(color))})
    return pd.DataFrame(records, columns=["label", "series", "value", "color"])


def build_chart(chart_data: Mapping[str, Any], chart_type: str, title: Optional[str] = None) -> alt.TopLevelMixin:
    df = chart_frame(chart_data)
    labels = list(chart_data.get("labels", []))
    series = [ds.get("label") for ds in chart_data.get("datasets", [])]
    title = title or ""

    if is_arc_chart(chart_type):
        first = chart_data.get("datasets", [{}])[0].get("backgroundColor") if series else None
        palette = [solid_color(c) for c in first] if isinstance(first, list) else None
        if palette is None:
            palette = [solid_color(c) for c in generate_colors(len(labels), chart_type, "vibrant")]
        base = alt.Chart(df).mark_arc(innerRadius=60 if chart_type == "doughnut" else 0).encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("label:N", sort=labels, scale=alt.Scale(domain=labels, range=palette), title=None),
            tooltip=[alt.Tooltip("label:N", title="Label"), alt.Tooltip("series:N"), alt.Tooltip("value:Q", format=",.2f")],
        )
        if len(series) > 1:
            return base.facet(facet=alt.Facet("series:N", title=None), columns=3).properties(title=title)
        return base.properties(title=title)

    colors = []
    for ds in chart_data.get("datasets", []):
        background = ds.get("backgroundColor")
        colors.append(solid_color(str(background[0] if isinstance(background, list) else background)))
    color = alt.Color("series:N", sort=series, scale=alt.Scale(domain=series, range=colors), title=None)
    x = alt.X("label:N", sort=labels, title=None, axis=alt.Axis(grid=False, labelAngle=-30))
    y = alt.Y("value:Q", scale=alt.Scale(domain=[0, suggested_max(chart_data)]), axis=alt.Axis(gridDash=[5, 5]), title=None)
    tooltip = [alt.Tooltip("label:N", title="Label"), alt.Tooltip("series:N"), alt.Tooltip("value:Q", format=",.2f")]

    if chart_type == "line":
        mark = alt.Chart(df).mark_line(point={"filled": True, "size": 60}, interpolate="monotone", strokeWidth=3)
        return mark.encode(x=x, y=y, color=color, tooltip=tooltip).properties(title=title)
    if chart_type == "area":
        mark = alt.Chart(df).mark_area(line=True, point=True, interpolate="monotone", opacity=0.5)
        return mark.encode(x=x, y=y, color=color, tooltip=tooltip).properties(title=title)
    mark = alt.Chart(df).mark_bar(cornerRadiusTopLeft=8, cornerRadiusTopRight=8)
    return mark.encode(x=x, y=y, color=color, xOffset=alt.XOffset("series:N", sort=series), tooltip=tooltip).properties(title=title)


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def chart_png(chart: alt.TopLevelMixin, scale_factor: float = 2.0) -> bytes:
    """Render the chart to PNG bytes (needs the vl-convert backend)."""
    buf = io.BytesIO()
    chart.save(buf, format="png", scale_factor=scale_factor)
    return buf.getvalue()


def chart_filename(chart_type: str) -> str:
    return f"chart-{chart_type}.png"
