"""Online chromatographic peak construction.

Scans are fed one at a time in increasing retention time. For each scan the
connector matches the centroids against the peaks under construction,
finalizes the peaks that did not grow and starts a new peak for every
centroid left over.

Matching
--------
1. Score every (peak, centroid) pair within the m/z tolerance
   (see ``match_score``).
2. Rank the pairs by (score, peak creation order, centroid index).
3. Walk the ranking and take a pair when neither side was taken before.
   This greedy assignment gives each peak at most one new point per scan and
   each centroid at most one peak.

The per-round "growing" and "connected" flags live in parallel boolean
arrays, one entry per peak / centroid, created fresh for each scan.

Filtering
---------
A finalized peak (or each of its threshold sub-peaks when the chromatographic
threshold filter is on) is emitted iff::

    rt_max - rt_min >= minimum_peak_duration and height >= minimum_peak_height

Examples
--------
>>> from alphachrom.peaks import MzPeak, Scan, SimpleConnector, SimpleConnectorParams
>>> connector = SimpleConnector(SimpleConnectorParams(
...     mz_tolerance=0.01, intensity_tolerance=0.9,
...     minimum_peak_duration=1.5, minimum_peak_height=20.0,
... ))
>>> for i, intensity in enumerate([10.0, 50.0, 10.0]):
...     finished = connector.process_scan(Scan(i, float(i + 1)), [MzPeak(100.0, intensity)], "run01")
>>> [peak.rt_range for peak in connector.flush()]
[(1.0, 3.0)]
"""

from __future__ import annotations

import logging
import math
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Type

import numpy as np

from ..utils.weighting import Weighting
from .connected_peak import ConnectedPeak
from .match_score import ToleranceUnit, greedy_assign, rank_match_scores
from .threshold_split import chromatographic_threshold_split
from .types import ConnectedMzPeak, MzPeak, PeakStatus, Scan

logger = logging.getLogger(__name__)


class InvalidConfigurationError(ValueError):
    """Raised when peak builder parameters are outside their valid domain."""


def _check_finite(name: str, value: float) -> None:
    if not isinstance(value, numbers.Real) or isinstance(value, bool) or not math.isfinite(value):
        raise InvalidConfigurationError(f"{name} must be a finite number, got {value!r}")


@dataclass(frozen=True)
class SimpleConnectorParams:
    """Parameters for the simple connector.

    Tolerances are checked on construction; invalid values raise
    InvalidConfigurationError.
    """

    # Maximum m/z difference between consecutive points of a peak
    mz_tolerance: float = 0.05
    mz_tolerance_unit: ToleranceUnit = ToleranceUnit.DA

    # Fractional intensity tolerance, in (0, 1]
    intensity_tolerance: float = 0.5

    # Acceptance filter (RT units / intensity units)
    minimum_peak_duration: float = 0.0
    minimum_peak_height: float = 0.0

    # Quantile threshold splitting of finished peaks
    chromatographic_threshold_filter: bool = False
    chromatographic_threshold_level: float = 0.0

    # Weighting of the characteristic m/z of emitted peaks
    mz_weighting: Weighting = Weighting.LINEAR

    def __post_init__(self):
        _check_finite("mz_tolerance", self.mz_tolerance)
        if self.mz_tolerance <= 0:
            raise InvalidConfigurationError(
                f"mz_tolerance must be positive, got {self.mz_tolerance}"
            )
        if not isinstance(self.mz_tolerance_unit, ToleranceUnit):
            raise InvalidConfigurationError(
                f"mz_tolerance_unit must be a ToleranceUnit, got {self.mz_tolerance_unit!r}"
            )

        _check_finite("intensity_tolerance", self.intensity_tolerance)
        if not 0 < self.intensity_tolerance <= 1:
            raise InvalidConfigurationError(
                f"intensity_tolerance must be in (0, 1], got {self.intensity_tolerance}"
            )

        for name in ("minimum_peak_duration", "minimum_peak_height"):
            value = getattr(self, name)
            _check_finite(name, value)
            if value < 0:
                raise InvalidConfigurationError(f"{name} must be >= 0, got {value}")

        _check_finite("chromatographic_threshold_level", self.chromatographic_threshold_level)
        if not 0 <= self.chromatographic_threshold_level <= 1:
            raise InvalidConfigurationError(
                "chromatographic_threshold_level must be in [0, 1], "
                f"got {self.chromatographic_threshold_level}"
            )

        if not isinstance(self.mz_weighting, Weighting):
            raise InvalidConfigurationError(
                f"mz_weighting must be a Weighting, got {self.mz_weighting!r}"
            )


class PeakBuilder(ABC):
    """Strategy interface for building chromatographic peaks scan by scan."""

    @abstractmethod
    def process_scan(
        self, scan: Scan, mz_peaks: Sequence[MzPeak], data_file: Any = None
    ) -> List[ConnectedPeak]:
        """Add one scan; return the peaks that were finished by it."""

    @abstractmethod
    def flush(self) -> List[ConnectedPeak]:
        """Finish every remaining peak; call once after the last scan."""


class SimpleConnector(PeakBuilder):
    """Greedy scan-to-scan peak connector.

    One instance per raw data file. The pool of peaks under construction is
    private and not thread-safe.

    Parameters
    ----------
    params : SimpleConnectorParams
        Matching tolerances and acceptance filter
    """

    def __init__(self, params: SimpleConnectorParams):
        if not isinstance(params, SimpleConnectorParams):
            raise InvalidConfigurationError(
                f"Expected SimpleConnectorParams, got {type(params).__name__}"
            )
        self.params = params
        self._under_construction: List[ConnectedPeak] = []

    @property
    def under_construction(self) -> Tuple[ConnectedPeak, ...]:
        return tuple(self._under_construction)

    @property
    def n_under_construction(self) -> int:
        return len(self._under_construction)

    def process_scan(
        self, scan: Scan, mz_peaks: Sequence[MzPeak], data_file: Any = None
    ) -> List[ConnectedPeak]:
        """Connect the centroids of one scan to the peaks under construction.

        Parameters
        ----------
        scan : Scan
            Scan number and retention time; must come after the previous scan
        mz_peaks : sequence of MzPeak
            Centroids detected in this scan (may be empty)
        data_file : Any
            Raw-data-file reference stored on peaks started in this scan

        Returns
        -------
        list of ConnectedPeak
            Peaks finished by this scan that passed the filter
        """
        params = self.params
        candidates = [ConnectedMzPeak(scan, mz_peak) for mz_peak in mz_peaks]
        pool = self._under_construction

        # Flat views of the last point of each peak and of each candidate
        peak_mz = np.array([peak.last_point.mz for peak in pool], dtype=np.float64)
        peak_intensity = np.array([peak.last_point.intensity for peak in pool], dtype=np.float64)
        candidate_mz = np.array([c.mz for c in candidates], dtype=np.float64)
        candidate_intensity = np.array([c.intensity for c in candidates], dtype=np.float64)

        ranked = rank_match_scores(
            peak_mz, peak_intensity, candidate_mz, candidate_intensity,
            params.mz_tolerance, params.intensity_tolerance,
            params.mz_tolerance_unit.value,
        )

        assignment, connected = greedy_assign(
            np.ascontiguousarray(ranked['peak']),
            np.ascontiguousarray(ranked['candidate']),
            len(pool),
            len(candidates),
        )

        finished: List[ConnectedPeak] = []
        next_pool: List[ConnectedPeak] = []

        for i, peak in enumerate(pool):
            candidate = assignment[i]
            if candidate >= 0:
                peak.add_point(candidates[candidate])
                next_pool.append(peak)
            else:
                finished.extend(self._finish_peak(peak))

        # Unconnected centroids start new peaks
        for j, candidate in enumerate(candidates):
            if not connected[j]:
                next_pool.append(ConnectedPeak(data_file, candidate, params.mz_weighting))

        self._under_construction = next_pool

        logger.debug(
            f"Scan {scan.scan_number} (RT {scan.rt:.3f}): {len(candidates)} centroids, "
            f"{len(ranked)} candidate pairs, {int(connected.sum())} connected, "
            f"{len(finished)} peaks finished, {len(next_pool)} under construction"
        )

        return finished

    def flush(self) -> List[ConnectedPeak]:
        """Finalize and filter every peak still under construction.

        Returns
        -------
        list of ConnectedPeak
            Accepted peaks; the pool is empty afterwards
        """
        n_remaining = len(self._under_construction)
        finished: List[ConnectedPeak] = []
        for peak in self._under_construction:
            finished.extend(self._finish_peak(peak))
        self._under_construction = []

        logger.info(f"Flushed {n_remaining:,} peaks under construction, {len(finished):,} accepted")
        return finished

    def _finish_peak(self, peak: ConnectedPeak) -> List[ConnectedPeak]:
        peak.finalize(PeakStatus.DETECTED)

        if self.params.chromatographic_threshold_filter:
            candidates = chromatographic_threshold_split(
                peak, self.params.chromatographic_threshold_level
            )
        else:
            candidates = [peak]

        return [p for p in candidates if self.passes_filter(p)]

    def passes_filter(self, peak: ConnectedPeak) -> bool:
        """Duration and height acceptance test."""
        return (
            peak.rt_span >= self.params.minimum_peak_duration
            and peak.height >= self.params.minimum_peak_height
        )


PEAK_BUILDERS: Dict[str, Type[PeakBuilder]] = {
    "simple_connector": SimpleConnector,
}


def create_peak_builder(name: str, params: Any) -> PeakBuilder:
    """Instantiate a registered peak builder by name.

    Parameters
    ----------
    name : str
        Key in PEAK_BUILDERS, e.g. "simple_connector"
    params : Any
        Parameter object of that builder

    Returns
    -------
    PeakBuilder
    """
    try:
        builder_cls = PEAK_BUILDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown peak builder: {name}. Available: {', '.join(sorted(PEAK_BUILDERS))}"
        ) from None
    return builder_cls(params)
