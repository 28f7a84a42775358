import logging
from contextlib import contextmanager
from typing import Optional

import altair as alt
import streamlit as st

from core.charts import is_no_data
from core.config import configure_logging, load_config
from core.data import table_frame
from core.filters import CHART_TYPES, COLOR_THEMES, NUMERIC, ROWS_PER_PAGE_OPTIONS
from core.session import AnalyticsSession, load_session

alt.data_transformers.disable_max_rows()
configure_logging()
logger = logging.getLogger(__name__)
config = load_config()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(session: AnalyticsSession) -> str:
    p = session.params
    chips = [
        f"Header: Row {p.header_row + 1}",
        f"Search: {p.search}" if p.search else "Search: none",
        f"Filters: {session.active_filter_count()}",
        f"Rows: {'All' if p.rows_per_page == 'all' else p.rows_per_page}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(session: AnalyticsSession):
    c1, c2 = st.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>Uploads / {session.upload_id}</div>"
            f"<div class='page-title'>Analytics Dashboard – {session.file_name or 'Untitled'}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        st.download_button(
            "Export CSV",
            data=session.export_csv().encode("utf-8"),
            file_name=session.export_filename(),
            mime="text/csv",
            disabled=not session.get_headers(),
        )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(session)}</div>", unsafe_allow_html=True)


# ---------- Controls ----------
def reset_filter_widgets():
    for key in [k for k in st.session_state if str(k).startswith("f_")]:
        del st.session_state[key]


def render_header_row_picker(session: AnalyticsSession):
    options = [str(i) for i in session.header_row_options()] + ["custom"]
    current = str(session.params.header_row)
    choice = st.selectbox(
        "Header row",
        options=options,
        index=options.index(current) if current in options else 0,
        format_func=lambda v: "Custom…" if v == "custom" else f"Row {int(v) + 1}",
    )
    if choice == "custom":
        row_number = st.text_input("Row number (1-based)", value="", key="custom_header_row")
        # Apply only a new entry; reapplying on every rerun would reset the axes.
        if row_number != st.session_state.get("_custom_header_applied", ""):
            st.session_state["_custom_header_applied"] = row_number
            if session.set_header_row("custom", row_number):
                reset_filter_widgets()
                session.auto_select_axes()
    elif choice != current and session.set_header_row(int(choice)):
        reset_filter_widgets()
        session.auto_select_axes()
    if session.header_row_error:
        st.error(session.header_row_error)


def render_axis_pickers(session: AnalyticsSession):
    headers = session.get_headers()
    options = [""] + list(dict.fromkeys(headers))
    c1, c2, c3, c4 = st.columns(4)
    x = c1.selectbox("X axis", options, index=options.index(session.params.x_axis) if session.params.x_axis in options else 0,
                     format_func=lambda v: v or "Select X Axis")
    y = c2.selectbox("Y axis", options, index=options.index(session.params.y_axis) if session.params.y_axis in options else 0,
                     format_func=lambda v: v or "Select Y Axis")
    session.set_axis("x", x)
    session.set_axis("y", y)
    chart_type = c3.selectbox("Chart type", CHART_TYPES, index=CHART_TYPES.index(session.params.chart_type),
                              format_func=str.capitalize)
    theme = c4.selectbox("Colors", COLOR_THEMES, index=COLOR_THEMES.index(session.params.color_theme),
                         format_func=lambda v: f"{v.capitalize()} Colors")
    session.set_chart_type(chart_type)
    session.set_color_theme(theme)


def render_filters(session: AnalyticsSession):
    column_types = session.get_column_types()
    count = session.active_filter_count()
    # Widget keys carry the header row so a new header row starts with empty inputs.
    row = session.params.header_row
    with st.expander(f"Filters ({count} active)" if count else "Filters", expanded=False):
        for i, header in enumerate(session.get_headers()):
            current = session.params.filters.get(header)
            if column_types.get(header) == NUMERIC:
                c1, c2 = st.columns(2)
                low = c1.text_input(f"{header} min", value=current.value if current else "", key=f"f_{row}_{i}_min")
                high = c2.text_input(f"{header} max", value=current.max if current else "", key=f"f_{row}_{i}_max")
                if low != (current.value if current else ""):
                    session.set_filter(header, "value", low)
                if high != (current.max if current else ""):
                    session.set_filter(header, "max", high)
            else:
                text = st.text_input(f"Filter {header}", value=current.value if current else "", key=f"f_{row}_{i}_text")
                if text != (current.value if current else ""):
                    session.set_filter(header, "value", text)
        if st.button("Clear filters"):
            session.clear_filters()
            reset_filter_widgets()
    # Streamlit only reruns after an edit is committed, so the quiet window has already passed.
    session.flush_pending()


def render_search_and_paging(session: AnalyticsSession):
    c1, c2 = st.columns([3, 1])
    search = c1.text_input("Search all columns", value=session.params.search)
    if search != session.params.search:
        session.set_global_search(search)
        session.flush_pending()
    rows_per_page = c2.selectbox(
        "Rows per page",
        ROWS_PER_PAGE_OPTIONS,
        index=ROWS_PER_PAGE_OPTIONS.index(session.params.rows_per_page) if session.params.rows_per_page in ROWS_PER_PAGE_OPTIONS else 0,
        format_func=lambda v: "All Rows" if v == "all" else f"{v} rows",
    )
    if rows_per_page != session.params.rows_per_page:
        session.set_rows_per_page(rows_per_page)


# ---------- Panels ----------
def render_table(session: AnalyticsSession):
    with card("Data"):
        st.dataframe(table_frame(session.get_headers(), session.get_page_rows()), hide_index=True, use_container_width=True)
        all_rows = session.params.rows_per_page == "all"
        pages = session.get_total_pages()
        c1, c2, c3 = st.columns([1, 2, 1])
        if c1.button("Previous", disabled=all_rows or session.params.page <= 1):
            session.prev_page()
            st.rerun()
        c2.markdown("Showing All Rows" if all_rows else f"Page {session.params.page} of {pages}")
        if c3.button("Next", disabled=all_rows or session.params.page >= pages):
            session.next_page()
            st.rerun()


def render_chart(session: AnalyticsSession):
    view = session.get_chart_view()
    with card(view["title"] or "Chart"):
        if is_no_data(view["chart"]):
            st.info("Select an X and Y axis with matching rows to see a chart.")
            return
        chart = session.build_chart()
        st.altair_chart(chart, use_container_width=True)
        try:
            filename, png = session.chart_png()
        except Exception:
            logger.exception("Chart PNG export failed")
            st.caption("PNG export is unavailable (install vl-convert-python).")
        else:
            st.download_button("Download Chart", data=png, file_name=filename, mime="image/png")


def render_stats(session: AnalyticsSession):
    y_axis = session.params.y_axis
    if not (session.params.x_axis and y_axis and session.get_page_rows()):
        return
    with card(f"Quick Stats – {y_axis}"):
        scope = st.selectbox(
            "Scope",
            ["entire", "page"],
            index=0 if session.params.stats_scope == "entire" else 1,
            format_func=lambda v: "Entire Dataset" if v == "entire" else "Current Page",
        )
        session.set_stats_scope(scope)
        if session.get_column_types().get(y_axis) == NUMERIC:
            stats = session.get_stats()
            cols = st.columns(5)
            for col, (label, value) in zip(
                cols,
                [("Min", stats.min), ("Max", stats.max), ("Mean", stats.mean), ("Median", stats.median), ("Std Dev", stats.std_dev)],
            ):
                col.metric(label, f"{value:,.2f}")
        summary = session.get_highlight_summary()
        if summary:
            st.markdown(f"**{summary}**")


# ---------- UI setup ----------
st.set_page_config(page_title="Spreadsheet Analytics", layout="wide")
inject_base_styles()

with st.sidebar:
    st.markdown("### Upload")
    upload_id = st.text_input("Upload ID", value=st.query_params.get("upload", ""))
    token = st.text_input("Access token", type="password")
    if st.button("Load") and upload_id:
        with st.spinner("Loading upload…"):
            session = load_session(upload_id, token, config=config)
        session.restore(st.query_params.to_dict())
        session.auto_select_axes()
        st.session_state["session"] = session

session: Optional[AnalyticsSession] = st.session_state.get("session")
if session is None:
    st.info("Enter an upload ID and token, then press Load.")
    st.stop()
if session.fetch_error or not session.has_data:
    st.error("Could not load this upload." if session.fetch_error else "This upload has no rows.")
    st.stop()

render_page_header(session)
render_header_row_picker(session)
render_axis_pickers(session)
render_search_and_paging(session)
render_filters(session)

if session.params.x_axis and session.params.y_axis and session.get_page_rows():
    left, right = st.columns([3, 2])
    with left:
        render_chart(session)
    with right:
        render_stats(session)
else:
    st.info("Pick an X and Y axis to chart the data. Adjust filters if no rows match.")
render_table(session)
