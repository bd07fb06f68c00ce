"""Convenience drivers for building peaks from a whole run.

The peak builders consume one scan at a time. These wrappers take care of
the usual bookkeeping around them:
- converting flat centroid arrays into per-scan MzPeak lists
- checking that retention times increase from scan to scan
- flushing the builder after the last scan

For streaming input, drive a PeakBuilder directly.

Examples
--------
>>> import numpy as np
>>> from alphachrom.convenience import connect_peaks_from_arrays
>>> from alphachrom.peaks import SimpleConnectorParams
>>>
>>> rt_values = np.array([1.0, 2.0, 3.0])
>>> scan_idx = np.array([0, 1, 2])
>>> mz = np.array([100.0, 100.0, 100.0])
>>> intensity = np.array([10.0, 50.0, 10.0])
>>> peaks = connect_peaks_from_arrays(
...     rt_values, scan_idx, mz, intensity,
...     params=SimpleConnectorParams(mz_tolerance=0.01, intensity_tolerance=0.9),
... )
>>> len(peaks)
1
"""

import logging
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .peaks.connected_peak import ConnectedPeak
from .peaks.connector import SimpleConnectorParams, create_peak_builder
from .peaks.types import MzPeak, Scan

logger = logging.getLogger(__name__)


def mz_peaks_from_arrays(mz_array: np.ndarray, intensity_array: np.ndarray) -> List[MzPeak]:
    """Build MzPeak objects from parallel m/z and intensity arrays.

    Parameters
    ----------
    mz_array : np.ndarray
        m/z values of one scan
    intensity_array : np.ndarray
        Intensities, same length

    Returns
    -------
    list of MzPeak
    """
    if len(mz_array) != len(intensity_array):
        raise ValueError(
            f"mz_array and intensity_array differ in length: "
            f"{len(mz_array)} vs {len(intensity_array)}"
        )
    return [MzPeak(float(mz), float(intensity)) for mz, intensity in zip(mz_array, intensity_array)]


def iter_scans_from_arrays(
    rt_values: np.ndarray,
    scan_idx_array: np.ndarray,
    mz_array: np.ndarray,
    intensity_array: np.ndarray,
) -> Iterator[Tuple[Scan, List[MzPeak]]]:
    """Group flat centroid arrays into scans.

    Parameters
    ----------
    rt_values : np.ndarray
        Retention time of every scan; scan i has RT rt_values[i]
    scan_idx_array : np.ndarray
        Scan index of every centroid (int)
    mz_array : np.ndarray
        m/z of every centroid
    intensity_array : np.ndarray
        Intensity of every centroid

    Yields
    ------
    (Scan, list of MzPeak)
        One entry per scan in rt_values, including scans without centroids

    Notes
    -----
    - Centroids need not be sorted by scan
    - Within a scan, centroids keep their input order
    """
    n_centroids = len(scan_idx_array)
    if len(mz_array) != n_centroids or len(intensity_array) != n_centroids:
        raise ValueError("scan_idx_array, mz_array and intensity_array must have the same length")

    scan_idx_array = np.asarray(scan_idx_array, dtype=np.int64)
    n_scans = len(rt_values)
    if n_centroids > 0 and (scan_idx_array.min() < 0 or scan_idx_array.max() >= n_scans):
        raise ValueError(f"Scan indices must be in [0, {n_scans})")

    order = np.argsort(scan_idx_array, kind="stable")
    sorted_scans = scan_idx_array[order]
    sorted_mz = np.asarray(mz_array, dtype=np.float64)[order]
    sorted_intensity = np.asarray(intensity_array, dtype=np.float64)[order]

    # Boundaries of each scan's block in the sorted arrays
    bounds = np.searchsorted(sorted_scans, np.arange(n_scans + 1), side="left")

    for i in range(n_scans):
        start, end = bounds[i], bounds[i + 1]
        yield (
            Scan(i, float(rt_values[i])),
            mz_peaks_from_arrays(sorted_mz[start:end], sorted_intensity[start:end]),
        )


def build_chromatographic_peaks(
    scans: Iterable[Tuple[Scan, Sequence[MzPeak]]],
    params: Optional[SimpleConnectorParams] = None,
    data_file: Any = None,
    builder: str = "simple_connector",
) -> List[ConnectedPeak]:
    """Run a peak builder over a complete scan sequence.

    Parameters
    ----------
    scans : iterable of (Scan, sequence of MzPeak)
        Scans in acquisition order
    params : SimpleConnectorParams, optional
        Builder parameters (defaults if None)
    data_file : Any
        Raw-data-file reference stored on every peak
    builder : str, default="simple_connector"
        Name of a registered peak builder

    Returns
    -------
    list of ConnectedPeak
        Peaks finished during the run followed by the flushed ones

    Raises
    ------
    ValueError
        If retention times do not strictly increase
    """
    if params is None:
        params = SimpleConnectorParams()

    peak_builder = create_peak_builder(builder, params)

    peaks: List[ConnectedPeak] = []
    previous_rt = -np.inf
    n_scans = 0
    n_centroids = 0

    for scan, mz_peaks in scans:
        if not scan.rt > previous_rt:
            raise ValueError(
                f"Retention times must strictly increase: scan {scan.scan_number} "
                f"has RT {scan.rt} after {previous_rt}"
            )
        previous_rt = scan.rt

        peaks.extend(peak_builder.process_scan(scan, mz_peaks, data_file))
        n_scans += 1
        n_centroids += len(mz_peaks)

    peaks.extend(peak_builder.flush())

    logger.info(
        f"✓ Built {len(peaks):,} chromatographic peaks from "
        f"{n_centroids:,} centroids in {n_scans:,} scans"
    )
    return peaks


def connect_peaks_from_arrays(
    rt_values: np.ndarray,
    scan_idx_array: np.ndarray,
    mz_array: np.ndarray,
    intensity_array: np.ndarray,
    params: Optional[SimpleConnectorParams] = None,
    data_file: Any = None,
    builder: str = "simple_connector",
) -> List[ConnectedPeak]:
    """Build chromatographic peaks straight from flat centroid arrays.

    See iter_scans_from_arrays for the array layout and
    build_chromatographic_peaks for the remaining parameters.
    """
    scans = iter_scans_from_arrays(rt_values, scan_idx_array, mz_array, intensity_array)
    return build_chromatographic_peaks(scans, params=params, data_file=data_file, builder=builder)
