"""Chromatographic threshold splitting.

A finished peak may dip into noise between two real elution maxima. The
threshold split computes an intensity cutoff from the peak's own intensity
distribution (a quantile) and keeps every contiguous run of points at or
above it as a separate sub-peak.

The comparison is inclusive: a point whose intensity equals the threshold
stays in its run.

Examples
--------
>>> import numpy as np
>>> calculate_quantile(np.array([5.0, 50.0, 5.0, 50.0, 5.0]), 0.7)
27.5
>>> find_threshold_runs(np.array([5.0, 50.0, 5.0, 50.0, 5.0]), 27.5)
(array([1, 3]), array([2, 4]))
"""

from __future__ import annotations

from typing import List

import numpy as np
from numba import njit

from .connected_peak import ConnectedPeak
from .types import PeakStatus


@njit
def calculate_quantile(values: np.ndarray, q: float) -> float:
    """Quantile as the mean of the two order statistics around (n-1)*q.

    Parameters
    ----------
    values : np.ndarray
        Input values (any order, not modified)
    q : float
        Quantile in [0, 1]; clamped into that range

    Returns
    -------
    float
        Quantile value; 0.0 for empty input
    """
    n = len(values)
    if n == 0:
        return 0.0
    if n == 1:
        return values[0]

    if q > 1.0:
        q = 1.0
    if q < 0.0:
        q = 0.0

    sorted_values = np.sort(values)
    pos = (n - 1) * q
    lower = int(np.floor(pos))
    upper = int(np.ceil(pos))
    return (sorted_values[lower] + sorted_values[upper]) / 2.0


@njit
def find_threshold_runs(
    intensities: np.ndarray, threshold: float
) -> tuple[np.ndarray, np.ndarray]:
    """Contiguous runs of points with intensity >= threshold.

    Parameters
    ----------
    intensities : np.ndarray
        Point intensities in RT order
    threshold : float
        Inclusive intensity cutoff

    Returns
    -------
    starts : np.ndarray
        First index of each run
    ends : np.ndarray
        One past the last index of each run
    """
    n = len(intensities)
    starts = np.empty(n, dtype=np.int64)
    ends = np.empty(n, dtype=np.int64)
    n_runs = 0

    run_start = -1
    for i in range(n):
        if intensities[i] >= threshold:
            if run_start < 0:
                run_start = i
        elif run_start >= 0:
            starts[n_runs] = run_start
            ends[n_runs] = i
            n_runs += 1
            run_start = -1

    # Run still open at the end of the peak
    if run_start >= 0:
        starts[n_runs] = run_start
        ends[n_runs] = n
        n_runs += 1

    return starts[:n_runs], ends[:n_runs]


def chromatographic_threshold_split(
    peak: ConnectedPeak, threshold_level: float
) -> List[ConnectedPeak]:
    """Split a finished peak into the runs above its quantile threshold.

    Parameters
    ----------
    peak : ConnectedPeak
        Peak to split (its points are not modified)
    threshold_level : float
        Quantile of the peak's intensities used as cutoff, in [0, 1]

    Returns
    -------
    list of ConnectedPeak
        Finalized sub-peaks in RT order on the same data file. May be empty.
    """
    intensities = peak.intensities
    threshold = calculate_quantile(intensities, threshold_level)
    starts, ends = find_threshold_runs(intensities, threshold)

    points = peak.points
    return [
        ConnectedPeak.from_points(
            peak.data_file, points[start:end], peak.weighting, PeakStatus.DETECTED
        )
        for start, end in zip(starts, ends)
    ]
