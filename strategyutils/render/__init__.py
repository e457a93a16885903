"""Table and chart rendering."""

from strategyutils.render.chart import SERIES_DEF, build_figure, write_chart
from strategyutils.render.table import (
    COLUMN_KEYS,
    TableRow,
    build_table_rows,
    render_compare_summary,
    render_table,
    render_token_info,
)

__all__ = [
    "COLUMN_KEYS",
    "SERIES_DEF",
    "TableRow",
    "build_figure",
    "build_table_rows",
    "render_compare_summary",
    "render_table",
    "render_token_info",
    "write_chart",
]
