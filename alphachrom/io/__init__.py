"""Tabular export of finished peaks."""

from .rt_table import (
    RT_TABLE_HEADER,
    format_peak_label,
    peaks_to_dataframe,
    peaks_to_rt_rows,
    read_rt_table,
    write_rt_table,
)

__all__ = [
    "RT_TABLE_HEADER",
    "format_peak_label",
    "peaks_to_dataframe",
    "peaks_to_rt_rows",
    "read_rt_table",
    "write_rt_table",
]
