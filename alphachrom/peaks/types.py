"""Value types shared by the peak-construction engine."""

from dataclasses import dataclass
from enum import Enum


class PeakStatus(Enum):
    """Lifecycle state of a chromatographic peak."""
    UNDER_CONSTRUCTION = "under_construction"
    DETECTED = "detected"


@dataclass(frozen=True)
class MzPeak:
    """Centroided peak detected in a single scan."""
    mz: float
    intensity: float


@dataclass(frozen=True)
class Scan:
    """Scan identifier and its retention time."""
    scan_number: int
    rt: float


@dataclass(frozen=True)
class ConnectedMzPeak:
    """An MzPeak tied to the scan it was observed in.

    This is one point of a chromatographic peak.
    """
    scan: Scan
    mz_peak: MzPeak

    @property
    def rt(self) -> float:
        return self.scan.rt

    @property
    def scan_number(self) -> int:
        return self.scan.scan_number

    @property
    def mz(self) -> float:
        return self.mz_peak.mz

    @property
    def intensity(self) -> float:
        return self.mz_peak.intensity
