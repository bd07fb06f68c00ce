"""Intensity weighting transforms.

Used wherever a quantity is averaged over the points of a chromatographic
peak, e.g. the characteristic m/z of a peak is the intensity-weighted mean of
its point m/z values.

Examples
--------
>>> import numpy as np
>>> from alphachrom.utils import Weighting
>>> Weighting.LOG10.transform(np.array([0.0, 10.0, 100.0]))
array([0., 1., 2.])
"""

from enum import Enum

import numpy as np


class Weighting(Enum):
    """Transforms applied to intensities before they are used as weights."""
    NONE = "NONE"      # every point weighs 1
    LINEAR = "LINEAR"  # intensity as is
    LOG10 = "LOG10"    # zero stays zero
    LOG2 = "LOG2"      # zero stays zero
    SQRT = "SQRT"
    CBRT = "CBRT"

    @property
    def label(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        if self is Weighting.SQRT:
            return "square root"
        if self is Weighting.CBRT:
            return "cube root"
        return self.value

    def transform(self, values) -> np.ndarray:
        """Transform intensities into weights.

        Parameters
        ----------
        values : array-like or float
            Intensities

        Returns
        -------
        np.ndarray
            float64 weights, same shape as ``values``
        """
        v = np.asarray(values, dtype=np.float64)

        if self is Weighting.NONE:
            return np.ones_like(v)
        if self is Weighting.LINEAR:
            return v.copy()
        if self is Weighting.SQRT:
            return np.sqrt(v)
        if self is Weighting.CBRT:
            return np.cbrt(v)

        # Logarithms: keep zero weight for zero intensity
        safe = np.where(v == 0.0, 1.0, v)
        if self is Weighting.LOG10:
            logged = np.log10(safe)
        else:
            logged = np.log2(safe)
        return np.where(v == 0.0, 0.0, logged)
