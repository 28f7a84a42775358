from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from core import filters as vf
from core.charts import build_chart, chart_filename, chart_png
from core.client import FetchError, fetch_upload
from core.config import AnalyticsConfig
from core.data import (
    HeaderRowError,
    RawTable,
    Row,
    cell_at,
    header_row_options,
    infer_column_types,
    is_blank,
    parse_header_row_input,
    parse_number,
    prepare_context,
    resolve_header_row,
    split_table,
)
from core.debounce import Debouncer
from core.export import export_csv, export_filename
from core.filters import TEXTUAL, ColumnKind, ViewParams
from core.metrics_view import compute_chart_view, compute_stats_view, compute_table_view
from core.stats import Stats

logger = logging.getLogger(__name__)


class AnalyticsSession:
    """One analytics view over a fetched upload.

    The raw table is copied on construction and never changed. All view
    choices live in an immutable ``ViewParams`` that every setter replaces;
    every accessor derives its answer from the table and the current params.
    Search and per-field filter edits are debounced: they take effect once
    the quiet window has passed (checked on the next read) or on
    ``flush_pending``.
    """

    def __init__(
        self,
        table: Optional[RawTable] = None,
        *,
        file_name: str = "",
        upload_id: str = "",
        config: Optional[AnalyticsConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or AnalyticsConfig()
        self.file_name = file_name
        self.upload_id = upload_id
        self.fetch_error = ""
        self.header_row_error = ""
        self._table: List[Row] = [list(r) for r in (table or [])]
        self.params = ViewParams(rows_per_page=self.config.default_rows_per_page)
        self._search_debounce = Debouncer(self.config.search_debounce_ms / 1000.0, clock)
        self._filter_debounce = Debouncer(self.config.filter_debounce_ms / 1000.0, clock)
        self._pending_filters: Dict[Tuple[str, str], str] = {}
        self._ctx_params: Optional[ViewParams] = None
        self._ctx: Dict[str, Any] = {}

    # ---------- table ----------
    @property
    def table(self) -> List[Row]:
        return self._table

    @property
    def has_data(self) -> bool:
        return bool(self._table)

    def header_row_options(self) -> List[int]:
        return header_row_options(self._table, self.params.header_row)

    # ---------- recomputation ----------
    def _drain(self) -> None:
        self._search_debounce.fire_if_due()
        self._filter_debounce.fire_if_due()

    def flush_pending(self) -> None:
        self._search_debounce.flush()
        self._filter_debounce.flush()

    @property
    def has_pending(self) -> bool:
        return self._search_debounce.pending or self._filter_debounce.pending

    def context(self) -> Dict[str, Any]:
        self._drain()
        if self._ctx_params is not self.params:
            self._ctx = prepare_context(self.params, self._table, self.config)
            self._ctx_params = self.params
        return self._ctx

    def _column_types(self) -> Dict[str, ColumnKind]:
        headers, rows = split_table(self._table, self.params.header_row)
        return infer_column_types(headers, rows, threshold=self.config.numeric_threshold)

    # ---------- setters ----------
    def set_header_row(self, index: object, row_number: object = None) -> bool:
        """Select the header row by 0-based index, or ``"custom"`` with a 1-based ``row_number``.

        An invalid choice records ``header_row_error`` and keeps the current row.
        """
        try:
            if index == "custom":
                if row_number is None or str(row_number).strip() == "":
                    self.header_row_error = ""
                    return False
                new_index = parse_header_row_input(row_number, self._table)
            elif index is None or index == "":
                new_index = 0
            else:
                try:
                    new_index = int(index)  # type: ignore[arg-type]
                except (TypeError, ValueError):
                    raise HeaderRowError("Please enter a number 1 or higher.") from None
                resolve_header_row(self._table, new_index)
        except HeaderRowError as exc:
            self.header_row_error = str(exc)
            logger.info("Rejected header row %r: %s", row_number if index == "custom" else index, exc)
            return False
        self.header_row_error = ""
        self.params = vf.set_header_row(self.params, new_index)
        return True

    def restore(self, raw: Dict[str, Any]) -> None:
        """Seed the view from loose input (e.g. URL query params); unusable values fall back to defaults."""
        params = vf.normalize_params(raw, default_rows_per_page=self.config.default_rows_per_page)
        if params.header_row >= len(self._table):
            params = vf.set_header_row(params, 0)
        headers, _ = split_table(self._table, params.header_row)
        if params.x_axis not in headers:
            params = vf.set_axis(params, "x", "")
        if params.y_axis not in headers:
            params = vf.set_axis(params, "y", "")
        self.params = params

    def set_axis(self, which: str, header: Optional[str]) -> None:
        if header and header not in self.get_headers():
            raise ValueError(f"Unknown column {header!r}.")
        self.params = vf.set_axis(self.params, which, header)

    def auto_select_axes(self) -> None:
        """Fill unset axes: x = first column holding a non-numeric value, y = first fully numeric column."""
        headers = self.get_headers()
        if not headers or (self.params.x_axis and self.params.y_axis):
            return
        _, rows = split_table(self._table, self.params.header_row)

        def has_text(i: int) -> bool:
            return any(not is_blank(cell_at(r, i)) and parse_number(cell_at(r, i)) is None for r in rows)

        def all_numeric(i: int) -> bool:
            return all(parse_number(cell_at(r, i)) is not None for r in rows)

        first_text = next((h for i, h in enumerate(headers) if has_text(i)), headers[0])
        first_num = next(
            (h for i, h in enumerate(headers) if all_numeric(i)),
            headers[1] if len(headers) > 1 else headers[0],
        )
        if not self.params.x_axis:
            self.params = vf.set_axis(self.params, "x", first_text)
        if not self.params.y_axis:
            self.params = vf.set_axis(self.params, "y", first_num)

    def set_chart_type(self, chart_type: str) -> None:
        self.params = vf.set_chart_type(self.params, chart_type)

    def set_color_theme(self, theme: str) -> None:
        self.params = vf.set_color_theme(self.params, theme)

    def set_stats_scope(self, scope: str) -> None:
        self.params = vf.set_stats_scope(self.params, scope)

    def set_rows_per_page(self, rows_per_page: object) -> None:
        self.params = vf.set_rows_per_page(self.params, rows_per_page)

    def set_page(self, page: int) -> None:
        self.params = vf.set_page(self.params, page, self.get_total_pages())

    def next_page(self) -> None:
        self.set_page(self.params.page + 1)

    def prev_page(self) -> None:
        self.set_page(self.params.page - 1)

    def set_global_search(self, text: str) -> None:
        self._search_debounce.schedule(self._apply_search, text or "")

    def _apply_search(self, text: str) -> None:
        self.params = vf.set_search(self.params, text)

    def set_filter(self, column: str, field_name: str, text: str) -> None:
        if field_name not in vf.FILTER_FIELDS:
            raise ValueError(f"Unknown filter field {field_name!r}; expected 'value' or 'max'.")
        self._pending_filters[(column, field_name)] = text or ""
        self._filter_debounce.schedule(self._apply_filter_edits)

    def _apply_filter_edits(self) -> None:
        edits, self._pending_filters = self._pending_filters, {}
        column_types = self._column_types()
        params = self.params
        for (column, field_name), text in edits.items():
            params = vf.set_filter(params, column, field_name, text, column_types.get(column, TEXTUAL))
        self.params = params

    def clear_filters(self) -> None:
        self._filter_debounce.cancel()
        self._pending_filters = {}
        self.params = vf.clear_filters(self.params)

    # ---------- accessors ----------
    def get_headers(self) -> List[str]:
        return list(self.context()["headers"])

    def get_column_types(self) -> Dict[str, ColumnKind]:
        return dict(self.context()["column_types"])

    def get_filtered_rows(self) -> List[Row]:
        return list(self.context()["filtered_rows"])

    def get_page_rows(self) -> List[Row]:
        return list(self.context()["page_rows"])

    def get_total_pages(self) -> int:
        return int(self.context()["total_pages"])

    def get_chart_view(self) -> Dict[str, Any]:
        return compute_chart_view(self.params, self.context())

    def get_chart_data(self) -> Dict[str, Any]:
        return self.get_chart_view()["chart"]

    def get_stats(self) -> Stats:
        return Stats(**compute_stats_view(self.params, self.context())["stats"])

    def get_highlight_summary(self) -> str:
        return compute_stats_view(self.params, self.context())["summary"]

    def active_filter_count(self) -> int:
        return vf.active_filter_count(self.params, self.context()["column_types"])

    def export_csv(self) -> str:
        ctx = self.context()
        return export_csv(ctx["headers"], ctx["filtered_rows"])

    def export_filename(self) -> str:
        return export_filename(self.upload_id or "upload")

    def build_chart(self):
        view = self.get_chart_view()
        return build_chart(view["chart"], self.params.chart_type, title=view["title"] or None)

    def chart_png(self) -> Tuple[str, bytes]:
        return chart_filename(self.params.chart_type), chart_png(self.build_chart())

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe payload of the whole view (table page, chart, stats)."""
        ctx = self.context()
        return {
            "upload_id": self.upload_id,
            "file_name": self.file_name,
            "header_row_error": self.header_row_error,
            "fetch_error": self.fetch_error,
            "table": compute_table_view(self.params, ctx),
            "chart": compute_chart_view(self.params, ctx),
            "stats": compute_stats_view(self.params, ctx),
        }


def load_session(
    upload_id: str,
    token: str,
    *,
    config: Optional[AnalyticsConfig] = None,
    client: Optional[httpx.Client] = None,
) -> AnalyticsSession:
    """Fetch an upload and open a session over it; a failed fetch yields an empty session."""
    config = config or AnalyticsConfig()
    try:
        upload = fetch_upload(upload_id, token, config=config, client=client)
    except FetchError as exc:
        logger.exception("Failed to fetch upload %s", upload_id)
        session = AnalyticsSession([], upload_id=upload_id, config=config)
        session.fetch_error = str(exc)
        return session
    return AnalyticsSession(upload.data, file_name=upload.file_name, upload_id=upload_id, config=config)
