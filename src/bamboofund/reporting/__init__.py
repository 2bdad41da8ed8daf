"""Reporting: display formatting, tables, exports and charts."""

from .export import (
    cohorts_to_dataframe,
    export_csv,
    export_html_report,
    export_json,
    summary_to_dataframe,
    year_series_to_dataframe,
)
from .formatting import format_number, format_summary, format_year_series

__all__ = [
    "format_number",
    "format_summary",
    "format_year_series",
    "year_series_to_dataframe",
    "summary_to_dataframe",
    "cohorts_to_dataframe",
    "export_csv",
    "export_json",
    "export_html_report",
]
