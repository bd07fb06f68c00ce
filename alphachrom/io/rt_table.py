"""Retention time tables.

Finished peaks are usually handed on as ``(label, retention time)`` pairs in a
comma-separated table with the header ``Compound_Name,RT_Query`` (GNPS GC-MS
layout). This module writes such tables, reads and merges them back, and
offers a pandas view of a peak list.

Design principles:
1. csv module for reading and writing, no custom quoting
2. Tables from several runs can be merged; repeated labels are averaged
3. pandas is only imported for the DataFrame view
"""

import csv
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..peaks.connected_peak import ConnectedPeak

logger = logging.getLogger(__name__)

RT_TABLE_HEADER = ("Compound_Name", "RT_Query")


def format_peak_label(peak: ConnectedPeak) -> str:
    """Default label: characteristic m/z and apex RT.

    Examples
    --------
    >>> format_peak_label(peak)  # doctest: +SKIP
    '100.0000@2.00'
    """
    return f"{peak.mz:.4f}@{peak.apex_rt:.2f}"


def peaks_to_rt_rows(
    peaks: Iterable[ConnectedPeak],
    label_func: Optional[Callable[[ConnectedPeak], str]] = None,
) -> List[Tuple[str, float]]:
    """Convert peaks into (label, apex RT) rows."""
    if label_func is None:
        label_func = format_peak_label
    return [(label_func(peak), peak.apex_rt) for peak in peaks]


def write_rt_table(
    rows: Iterable[Tuple[str, float]],
    path: Union[str, Path],
    rt_decimals: int = 4,
) -> Path:
    """Write (label, RT) rows as a comma-separated table.

    Parameters
    ----------
    rows : iterable of (str, float)
        Labels and retention times
    path : str or Path
        Output file; a missing ``.csv`` suffix is added
    rt_decimals : int, default=4
        Decimals written for the retention time

    Returns
    -------
    Path
        The file written
    """
    path = Path(path)
    if path.suffix.lower() != ".csv":
        path = path.with_name(path.name + ".csv")

    n_rows = 0
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(RT_TABLE_HEADER)
        for label, rt in rows:
            writer.writerow([label, f"{rt:.{rt_decimals}f}"])
            n_rows += 1

    logger.info(f"Wrote {n_rows:,} retention times to {path.name}")
    return path


def read_rt_table(paths: Union[str, Path, Sequence[Union[str, Path]]]) -> Dict[str, float]:
    """Read and merge one or more RT tables.

    Rows whose second column is not a number (e.g. the header) are skipped.
    A label seen before is combined with a running average
    ``(new + old) / 2``, in file and row order.

    Parameters
    ----------
    paths : str, Path or sequence of them
        Table files

    Returns
    -------
    dict
        label -> retention time, in first-seen order

    Raises
    ------
    FileNotFoundError
        If a file does not exist
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]

    values: Dict[str, float] = {}
    for path in paths:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"RT table not found: {path}")

        n_read = 0
        with open(path, "r", newline="") as f:
            for row in csv.reader(f):
                if len(row) < 2:
                    continue
                try:
                    rt = float(row[1])
                except ValueError:
                    continue

                label = row[0]
                if label in values:
                    rt = (rt + values[label]) / 2.0
                values[label] = rt
                n_read += 1

        logger.info(f"Read {n_read:,} retention times from {path.name}")

    return values


def peaks_to_dataframe(peaks: Iterable[ConnectedPeak]):
    """Summary table of peaks, one row per peak.

    Returns
    -------
    pandas.DataFrame
        Columns: mz, apex_rt, rt_min, rt_max, height, area, n_points, status
    """
    import pandas as pd

    records = []
    for peak in peaks:
        rt_min, rt_max = peak.rt_range
        records.append({
            "mz": peak.mz,
            "apex_rt": peak.apex_rt,
            "rt_min": rt_min,
            "rt_max": rt_max,
            "height": peak.height,
            "area": peak.area,
            "n_points": peak.n_points,
            "status": peak.status.value,
        })

    columns = ["mz", "apex_rt", "rt_min", "rt_max", "height", "area", "n_points", "status"]
    return pd.DataFrame.from_records(records, columns=columns)
