"""Match scores between peaks under construction and new scan points.

Each under-construction peak is compared, through its most recent point,
with every centroid of the incoming scan. Pairs outside the m/z tolerance
are not candidates; all others get a cost where lower is better.

Score
-----
With ``tol`` the m/z tolerance in Da (``mz_tolerance`` itself, or
``last_mz * mz_tolerance * 1e-6`` for ppm)::

    dmz   = |last_mz - mz|                          (candidate iff dmz <= tol)
    dint  = |last_int - int| / max(last_int, int)   (0 if both are 0)
    score = dmz / tol + dint / intensity_tolerance

The score is strictly increasing in both dmz and dint.

Performance
-----------
- Pair scoring: O(n_peaks * n_candidates), Numba-compiled
- Ranking: sort of the finite pairs only

Examples
--------
>>> import numpy as np
>>> from alphachrom.peaks.match_score import rank_match_scores, TOLERANCE_DA
>>> ranked = rank_match_scores(
...     np.array([100.0, 200.0]), np.array([10.0, 10.0]),
...     np.array([200.001, 100.002]), np.array([12.0, 10.0]),
...     mz_tolerance=0.01, intensity_tolerance=0.5, tolerance_unit=TOLERANCE_DA,
... )
>>> ranked['peak'], ranked['candidate']
(array([0, 1]), array([1, 0]))
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from numba import njit


TOLERANCE_DA = 0
TOLERANCE_PPM = 1


class ToleranceUnit(Enum):
    """Unit of the m/z tolerance."""
    DA = TOLERANCE_DA
    PPM = TOLERANCE_PPM


# One record per candidate pair; sorted ascending on all three fields
MATCH_SCORE_DTYPE = np.dtype([
    ('score', np.float64),
    ('peak', np.int64),
    ('candidate', np.int64),
])


@njit
def calculate_match_score(
    last_mz: float,
    last_intensity: float,
    mz: float,
    intensity: float,
    mz_tolerance: float,
    intensity_tolerance: float,
    tolerance_unit: int,
) -> float:
    """Cost of appending a candidate point to a peak.

    Parameters
    ----------
    last_mz : float
        m/z of the peak's most recent point
    last_intensity : float
        Intensity of the peak's most recent point
    mz : float
        Candidate m/z
    intensity : float
        Candidate intensity
    mz_tolerance : float
        Maximum m/z difference (Da or ppm)
    intensity_tolerance : float
        Fractional intensity tolerance, scales the intensity term
    tolerance_unit : int
        TOLERANCE_DA or TOLERANCE_PPM

    Returns
    -------
    float
        Match cost, np.inf if the pair is outside the m/z tolerance

    Examples
    --------
    >>> calculate_match_score(100.0, 10.0, 100.0, 10.0, 0.01, 0.5, TOLERANCE_DA)
    0.0
    """
    if tolerance_unit == TOLERANCE_PPM:
        tol = last_mz * mz_tolerance * 1e-6
    else:
        tol = mz_tolerance

    dmz = abs(last_mz - mz)
    if dmz > tol:
        return np.inf

    max_intensity = max(last_intensity, intensity)
    if max_intensity > 0.0:
        dint = abs(last_intensity - intensity) / max_intensity
    else:
        dint = 0.0

    if tol > 0.0:
        mz_term = dmz / tol
    else:
        mz_term = 0.0

    return mz_term + dint / intensity_tolerance


@njit
def compute_match_scores(
    peak_mz: np.ndarray,
    peak_intensity: np.ndarray,
    candidate_mz: np.ndarray,
    candidate_intensity: np.ndarray,
    mz_tolerance: float,
    intensity_tolerance: float,
    tolerance_unit: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Score every peak x candidate pair, keeping finite scores only.

    Parameters
    ----------
    peak_mz, peak_intensity : np.ndarray
        Last point of each under-construction peak (length n_peaks)
    candidate_mz, candidate_intensity : np.ndarray
        Centroids of the current scan (length n_candidates)
    mz_tolerance, intensity_tolerance : float
        See calculate_match_score
    tolerance_unit : int
        TOLERANCE_DA or TOLERANCE_PPM

    Returns
    -------
    scores : np.ndarray
        Finite match costs (float64)
    peak_idx : np.ndarray
        Peak index of each score (int64)
    candidate_idx : np.ndarray
        Candidate index of each score (int64)
    """
    n_peaks = len(peak_mz)
    n_candidates = len(candidate_mz)
    n_pairs = n_peaks * n_candidates

    scores = np.empty(n_pairs, dtype=np.float64)
    peak_idx = np.empty(n_pairs, dtype=np.int64)
    candidate_idx = np.empty(n_pairs, dtype=np.int64)

    n_found = 0
    for i in range(n_peaks):
        for j in range(n_candidates):
            score = calculate_match_score(
                peak_mz[i], peak_intensity[i],
                candidate_mz[j], candidate_intensity[j],
                mz_tolerance, intensity_tolerance, tolerance_unit,
            )
            if score < np.inf:
                scores[n_found] = score
                peak_idx[n_found] = i
                candidate_idx[n_found] = j
                n_found += 1

    return scores[:n_found], peak_idx[:n_found], candidate_idx[:n_found]


def rank_match_scores(
    peak_mz: np.ndarray,
    peak_intensity: np.ndarray,
    candidate_mz: np.ndarray,
    candidate_intensity: np.ndarray,
    mz_tolerance: float,
    intensity_tolerance: float,
    tolerance_unit: int = TOLERANCE_DA,
) -> np.ndarray:
    """Finite match scores as a sorted MATCH_SCORE_DTYPE array.

    Ties on score are broken by peak index (creation order of the peaks),
    then by candidate index, so the ranking is reproducible.

    Returns
    -------
    np.ndarray
        Structured array with fields 'score', 'peak', 'candidate'
    """
    scores, peak_idx, candidate_idx = compute_match_scores(
        np.asarray(peak_mz, dtype=np.float64),
        np.asarray(peak_intensity, dtype=np.float64),
        np.asarray(candidate_mz, dtype=np.float64),
        np.asarray(candidate_intensity, dtype=np.float64),
        float(mz_tolerance),
        float(intensity_tolerance),
        int(tolerance_unit),
    )

    # lexsort: last key is the primary one
    order = np.lexsort((candidate_idx, peak_idx, scores))

    ranked = np.empty(len(order), dtype=MATCH_SCORE_DTYPE)
    ranked['score'] = scores[order]
    ranked['peak'] = peak_idx[order]
    ranked['candidate'] = candidate_idx[order]
    return ranked


@njit
def greedy_assign(
    peak_idx: np.ndarray,
    candidate_idx: np.ndarray,
    n_peaks: int,
    n_candidates: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Greedy one-to-one matching over ranked pairs.

    Walks the pairs in order and takes a pair only when neither its peak has
    grown nor its candidate has been connected in this round.

    Parameters
    ----------
    peak_idx, candidate_idx : np.ndarray
        Pairs in ranked order (best first)
    n_peaks : int
        Number of under-construction peaks
    n_candidates : int
        Number of centroids in the scan

    Returns
    -------
    assignment : np.ndarray
        Candidate index appended to each peak, -1 if the peak did not grow
    connected : np.ndarray
        Boolean flag per candidate
    """
    assignment = np.full(n_peaks, -1, dtype=np.int64)
    growing = np.zeros(n_peaks, dtype=np.bool_)
    connected = np.zeros(n_candidates, dtype=np.bool_)

    for k in range(len(peak_idx)):
        c = candidate_idx[k]
        if connected[c]:
            continue

        p = peak_idx[k]
        if growing[p]:
            continue

        assignment[p] = c
        growing[p] = True
        connected[c] = True

    return assignment, connected
