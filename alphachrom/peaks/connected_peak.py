"""Chromatographic peak aggregate.

A ConnectedPeak collects one ConnectedMzPeak per scan while it is under
construction. Once finalized its points are frozen and the derived statistics
(RT range, height, apex, characteristic m/z, area) are cached as numpy
arrays.

Examples
--------
>>> from alphachrom.peaks import ConnectedMzPeak, ConnectedPeak, MzPeak, Scan
>>> peak = ConnectedPeak("run01.raw", ConnectedMzPeak(Scan(1, 1.0), MzPeak(100.0, 10.0)))
>>> peak.add_point(ConnectedMzPeak(Scan(2, 2.0), MzPeak(100.001, 50.0)))
>>> peak.finalize()
>>> peak.rt_range, peak.height
((1.0, 2.0), 50.0)
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import numpy as np
from numba import njit

from ..utils.weighting import Weighting
from .types import ConnectedMzPeak, PeakStatus


@njit
def trapezoid_area(rt_values: np.ndarray, intensities: np.ndarray) -> float:
    """Integrate intensity over retention time with the trapezoidal rule.

    Parameters
    ----------
    rt_values : np.ndarray
        Retention times (increasing)
    intensities : np.ndarray
        Intensities, same length as rt_values

    Returns
    -------
    float
        Peak area; 0.0 for fewer than 2 points
    """
    area = 0.0
    for i in range(1, len(rt_values)):
        area += (rt_values[i] - rt_values[i - 1]) * (intensities[i] + intensities[i - 1]) / 2.0
    return area


@njit
def weighted_mean(values: np.ndarray, weights: np.ndarray) -> float:
    """Weighted mean, plain mean if all weights are zero."""
    n = len(values)
    if n == 0:
        return 0.0

    weight_sum = 0.0
    total = 0.0
    for i in range(n):
        weight_sum += weights[i]
        total += values[i] * weights[i]

    if weight_sum == 0.0:
        plain = 0.0
        for i in range(n):
            plain += values[i]
        return plain / n

    return total / weight_sum


class ConnectedPeak:
    """One chromatographic peak built from consecutive scans.

    Parameters
    ----------
    data_file : Any
        Opaque raw-data-file reference, carried through unchanged
    first_point : ConnectedMzPeak
        Point that seeds the peak
    weighting : Weighting, default=Weighting.LINEAR
        Intensity weighting for the characteristic m/z
    """

    def __init__(
        self,
        data_file: Any,
        first_point: ConnectedMzPeak,
        weighting: Weighting = Weighting.LINEAR,
    ):
        self.data_file = data_file
        self.weighting = weighting
        self.status = PeakStatus.UNDER_CONSTRUCTION
        self._points = [first_point]
        self._height = float(first_point.intensity)

        # Filled on finalize
        self._rt_values: Optional[np.ndarray] = None
        self._mz_values: Optional[np.ndarray] = None
        self._intensities: Optional[np.ndarray] = None

    @classmethod
    def from_points(
        cls,
        data_file: Any,
        points: Sequence[ConnectedMzPeak],
        weighting: Weighting = Weighting.LINEAR,
        status: PeakStatus = PeakStatus.DETECTED,
    ) -> 'ConnectedPeak':
        """Build a finalized peak from an ordered run of points."""
        if len(points) == 0:
            raise ValueError("A peak needs at least one point")

        peak = cls(data_file, points[0], weighting)
        for point in points[1:]:
            peak.add_point(point)
        peak.finalize(status)
        return peak

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_point(self, point: ConnectedMzPeak) -> None:
        """Append the point of the next scan."""
        if self.is_finalized:
            raise RuntimeError("Cannot add points to a finalized peak")
        self._points.append(point)
        if point.intensity > self._height:
            self._height = float(point.intensity)

    def finalize(self, status: PeakStatus = PeakStatus.DETECTED) -> None:
        """Freeze the point sequence and cache the numpy views."""
        self._rt_values = np.array([p.rt for p in self._points], dtype=np.float64)
        self._mz_values = np.array([p.mz for p in self._points], dtype=np.float64)
        self._intensities = np.array([p.intensity for p in self._points], dtype=np.float64)
        self._points = tuple(self._points)
        self.status = status

    @property
    def is_finalized(self) -> bool:
        return self.status is not PeakStatus.UNDER_CONSTRUCTION

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    @property
    def points(self) -> Tuple[ConnectedMzPeak, ...]:
        return tuple(self._points)

    @property
    def n_points(self) -> int:
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def last_point(self) -> ConnectedMzPeak:
        return self._points[-1]

    @property
    def scan_numbers(self) -> np.ndarray:
        return np.array([p.scan_number for p in self._points], dtype=np.int64)

    def get_point(self, scan_number: int) -> Optional[ConnectedMzPeak]:
        """Point observed in ``scan_number``, or None."""
        for point in self._points:
            if point.scan_number == scan_number:
                return point
        return None

    @property
    def rt_values(self) -> np.ndarray:
        if self._rt_values is not None:
            return self._rt_values
        return np.array([p.rt for p in self._points], dtype=np.float64)

    @property
    def mz_values(self) -> np.ndarray:
        if self._mz_values is not None:
            return self._mz_values
        return np.array([p.mz for p in self._points], dtype=np.float64)

    @property
    def intensities(self) -> np.ndarray:
        if self._intensities is not None:
            return self._intensities
        return np.array([p.intensity for p in self._points], dtype=np.float64)

    # ------------------------------------------------------------------
    # Derived statistics
    # ------------------------------------------------------------------

    @property
    def rt_range(self) -> Tuple[float, float]:
        # Points are in scan order, so first/last bound the range
        return float(self._points[0].rt), float(self._points[-1].rt)

    @property
    def rt_span(self) -> float:
        """RT range size; 0.0 for a single-point peak."""
        rt_min, rt_max = self.rt_range
        return rt_max - rt_min

    @property
    def height(self) -> float:
        return self._height

    @property
    def apex_rt(self) -> float:
        return float(self.rt_values[np.argmax(self.intensities)])

    @property
    def mz_range(self) -> Tuple[float, float]:
        mz = self.mz_values
        return float(mz.min()), float(mz.max())

    @property
    def mz(self) -> float:
        """Characteristic m/z: weighted mean of the point m/z values."""
        weights = self.weighting.transform(self.intensities)
        return float(weighted_mean(self.mz_values, weights))

    @property
    def area(self) -> float:
        return float(trapezoid_area(self.rt_values, self.intensities))

    def __repr__(self) -> str:
        rt_min, rt_max = self.rt_range
        return (
            f"ConnectedPeak(mz={self.mz:.4f}, rt=[{rt_min:.2f}, {rt_max:.2f}], "
            f"height={self.height:.1f}, n_points={self.n_points}, "
            f"status={self.status.name})"
        )
