"""AlphaChrom - chromatographic peak construction for LC-MS data.

Connects the centroids of consecutive scans into chromatographic peaks with
a greedy, tolerance-based matcher. Inner loops are Numba-compiled; the
public API works on plain numpy arrays and small dataclasses.
"""

__version__ = "0.1.0"

from alphachrom import peaks
from alphachrom import io
from alphachrom import utils
from alphachrom import convenience

__all__ = [
    "peaks",
    "io",
    "utils",
    "convenience",
]
