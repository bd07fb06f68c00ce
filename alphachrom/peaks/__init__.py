"""Chromatographic peak construction from per-scan centroids.

This module provides:
- Value types for centroids, scans and connected points
- The ConnectedPeak aggregate with RT range, height, apex, m/z and area
- Numba-compiled match scoring and greedy one-to-one assignment
- Quantile threshold splitting of finished peaks
- The SimpleConnector peak builder and its parameter set

Examples
--------
>>> from alphachrom.peaks import MzPeak, Scan, SimpleConnector, SimpleConnectorParams
>>> connector = SimpleConnector(SimpleConnectorParams(mz_tolerance=0.01))
>>> finished = connector.process_scan(Scan(0, 1.0), [MzPeak(100.0, 10.0)], "run01")
>>> finished += connector.flush()
"""

from .types import (
    ConnectedMzPeak,
    MzPeak,
    PeakStatus,
    Scan,
)

from .connected_peak import (
    ConnectedPeak,
    trapezoid_area,
    weighted_mean,
)

from .match_score import (
    MATCH_SCORE_DTYPE,
    TOLERANCE_DA,
    TOLERANCE_PPM,
    ToleranceUnit,
    calculate_match_score,
    compute_match_scores,
    greedy_assign,
    rank_match_scores,
)

from .threshold_split import (
    calculate_quantile,
    chromatographic_threshold_split,
    find_threshold_runs,
)

from .connector import (
    PEAK_BUILDERS,
    InvalidConfigurationError,
    PeakBuilder,
    SimpleConnector,
    SimpleConnectorParams,
    create_peak_builder,
)

__all__ = [
    # Types
    'ConnectedMzPeak',
    'MzPeak',
    'PeakStatus',
    'Scan',

    # Peak aggregate
    'ConnectedPeak',
    'trapezoid_area',
    'weighted_mean',

    # Match scoring
    'MATCH_SCORE_DTYPE',
    'TOLERANCE_DA',
    'TOLERANCE_PPM',
    'ToleranceUnit',
    'calculate_match_score',
    'compute_match_scores',
    'greedy_assign',
    'rank_match_scores',

    # Threshold splitting
    'calculate_quantile',
    'chromatographic_threshold_split',
    'find_threshold_runs',

    # Builders
    'PEAK_BUILDERS',
    'InvalidConfigurationError',
    'PeakBuilder',
    'SimpleConnector',
    'SimpleConnectorParams',
    'create_peak_builder',
]
