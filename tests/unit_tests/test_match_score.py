"""Tests for match scoring and greedy assignment.

Tests cover:
1. Single-pair scores (tolerance gate, symmetry, monotonicity)
2. ppm tolerances
3. Pair enumeration and ranking with deterministic ties
4. Greedy one-to-one assignment
"""

import numpy as np
import pytest

from alphachrom.peaks import (
    MATCH_SCORE_DTYPE,
    TOLERANCE_DA,
    TOLERANCE_PPM,
    ToleranceUnit,
    calculate_match_score,
    compute_match_scores,
    greedy_assign,
    rank_match_scores,
)


class TestCalculateMatchScore:
    """Test the cost of a single peak/candidate pair."""

    def test_identical_point_scores_zero(self):
        """Same m/z and intensity is a perfect match."""
        score = calculate_match_score(100.0, 10.0, 100.0, 10.0, 0.01, 0.5, TOLERANCE_DA)
        assert score == 0.0

    def test_outside_tolerance_is_infinite(self):
        """Pairs beyond the m/z tolerance are not candidates."""
        score = calculate_match_score(100.0, 10.0, 100.75, 10.0, 0.5, 0.5, TOLERANCE_DA)
        assert score == np.inf

    def test_tolerance_boundary_is_inclusive(self):
        """dmz equal to the tolerance is still a candidate."""
        # 0.5 and 100.5 are exact in binary floating point
        score = calculate_match_score(100.0, 10.0, 100.5, 10.0, 0.5, 0.5, TOLERANCE_DA)
        assert score == pytest.approx(1.0)

    def test_just_inside_tolerance(self):
        """A candidate slightly closer than the tolerance is kept."""
        mz = np.nextafter(100.5, 0.0)
        score = calculate_match_score(100.0, 10.0, mz, 10.0, 0.5, 0.5, TOLERANCE_DA)
        assert np.isfinite(score)

    def test_just_outside_tolerance(self):
        """A candidate slightly farther than the tolerance is dropped."""
        mz = np.nextafter(100.5, np.inf)
        score = calculate_match_score(100.0, 10.0, mz, 10.0, 0.5, 0.5, TOLERANCE_DA)
        assert score == np.inf

    def test_intensity_term_is_symmetric(self):
        """Rising and falling intensity by the same ratio cost the same."""
        up = calculate_match_score(100.0, 10.0, 100.0, 20.0, 0.01, 0.5, TOLERANCE_DA)
        down = calculate_match_score(100.0, 20.0, 100.0, 10.0, 0.01, 0.5, TOLERANCE_DA)
        assert up == pytest.approx(down)
        # |10 - 20| / 20 / 0.5
        assert up == pytest.approx(1.0)

    def test_monotonic_in_mz(self):
        """Larger m/z difference gives a larger score."""
        near = calculate_match_score(100.0, 10.0, 100.001, 10.0, 0.01, 0.5, TOLERANCE_DA)
        far = calculate_match_score(100.0, 10.0, 100.005, 10.0, 0.01, 0.5, TOLERANCE_DA)
        assert near < far

    def test_monotonic_in_intensity(self):
        """Larger intensity difference gives a larger score."""
        near = calculate_match_score(100.0, 100.0, 100.0, 90.0, 0.01, 0.5, TOLERANCE_DA)
        far = calculate_match_score(100.0, 100.0, 100.0, 40.0, 0.01, 0.5, TOLERANCE_DA)
        assert near < far

    def test_zero_intensities(self):
        """Two zero-intensity points have no intensity penalty."""
        score = calculate_match_score(100.0, 0.0, 100.0, 0.0, 0.01, 0.5, TOLERANCE_DA)
        assert score == 0.0

    def test_intensity_tolerance_scales_term(self):
        """A looser intensity tolerance lowers the intensity penalty."""
        strict = calculate_match_score(100.0, 100.0, 100.0, 50.0, 0.01, 0.25, TOLERANCE_DA)
        loose = calculate_match_score(100.0, 100.0, 100.0, 50.0, 0.01, 1.0, TOLERANCE_DA)
        assert strict == pytest.approx(2.0)
        assert loose == pytest.approx(0.5)


class TestPPMTolerance:
    """Test ppm-based m/z tolerance."""

    def test_within_ppm(self):
        """5 ppm at m/z 1000 is inside a 10 ppm window."""
        score = calculate_match_score(1000.0, 10.0, 1000.005, 10.0, 10.0, 0.5, TOLERANCE_PPM)
        assert np.isfinite(score)
        assert score == pytest.approx(0.5, rel=1e-6)

    def test_outside_ppm(self):
        """20 ppm at m/z 1000 is outside a 10 ppm window."""
        score = calculate_match_score(1000.0, 10.0, 1000.02, 10.0, 10.0, 0.5, TOLERANCE_PPM)
        assert score == np.inf

    def test_unit_enum_values(self):
        """ToleranceUnit values are the kernel flags."""
        assert ToleranceUnit.DA.value == TOLERANCE_DA
        assert ToleranceUnit.PPM.value == TOLERANCE_PPM


class TestComputeMatchScores:
    """Test enumeration of all finite pairs."""

    def test_only_finite_pairs(self):
        """Pairs outside tolerance are not returned."""
        peak_mz = np.array([100.0, 200.0])
        peak_int = np.array([10.0, 10.0])
        cand_mz = np.array([100.001, 150.0, 200.002])
        cand_int = np.array([10.0, 10.0, 10.0])

        scores, peak_idx, cand_idx = compute_match_scores(
            peak_mz, peak_int, cand_mz, cand_int, 0.01, 0.5, TOLERANCE_DA
        )

        assert len(scores) == 2
        assert list(peak_idx) == [0, 1]
        assert list(cand_idx) == [0, 2]
        assert np.all(np.isfinite(scores))

    def test_empty_peaks(self):
        """No peaks under construction gives no pairs."""
        scores, peak_idx, cand_idx = compute_match_scores(
            np.zeros(0), np.zeros(0), np.array([100.0]), np.array([10.0]),
            0.01, 0.5, TOLERANCE_DA,
        )
        assert len(scores) == 0
        assert len(peak_idx) == 0
        assert len(cand_idx) == 0

    def test_empty_scan(self):
        """An empty scan gives no pairs."""
        scores, _, _ = compute_match_scores(
            np.array([100.0]), np.array([10.0]), np.zeros(0), np.zeros(0),
            0.01, 0.5, TOLERANCE_DA,
        )
        assert len(scores) == 0


class TestRankMatchScores:
    """Test sorting of candidate pairs."""

    def test_sorted_ascending(self):
        """Best pairs come first."""
        ranked = rank_match_scores(
            np.array([100.0, 200.0]), np.array([10.0, 10.0]),
            np.array([200.001, 100.002]), np.array([12.0, 10.0]),
            mz_tolerance=0.01, intensity_tolerance=0.5,
        )

        assert ranked.dtype == MATCH_SCORE_DTYPE
        assert np.all(np.diff(ranked['score']) >= 0)
        # Peak 0 / candidate 1 only differs in m/z; peak 1 / candidate 0 also in intensity
        assert list(ranked['peak']) == [0, 1]
        assert list(ranked['candidate']) == [1, 0]

    def test_ties_broken_by_peak_then_candidate(self):
        """Equal scores are ordered by peak index, then candidate index."""
        ranked = rank_match_scores(
            np.array([100.0, 100.0]), np.array([10.0, 10.0]),
            np.array([100.0, 100.0]), np.array([10.0, 10.0]),
            mz_tolerance=0.01, intensity_tolerance=0.5,
        )

        assert np.all(ranked['score'] == 0.0)
        assert list(ranked['peak']) == [0, 0, 1, 1]
        assert list(ranked['candidate']) == [0, 1, 0, 1]

    def test_ranking_is_reproducible(self):
        """Ranking the same input twice gives identical output."""
        rng = np.random.default_rng(3)
        peak_mz = np.round(rng.uniform(100, 101, 50), 2)
        peak_int = np.round(rng.uniform(1, 5, 50))
        cand_mz = np.round(rng.uniform(100, 101, 50), 2)
        cand_int = np.round(rng.uniform(1, 5, 50))

        first = rank_match_scores(peak_mz, peak_int, cand_mz, cand_int, 0.05, 0.5)
        second = rank_match_scores(peak_mz, peak_int, cand_mz, cand_int, 0.05, 0.5)

        np.testing.assert_array_equal(first, second)

    def test_empty_ranking(self):
        """No finite pairs gives an empty structured array."""
        ranked = rank_match_scores(
            np.array([100.0]), np.array([10.0]),
            np.array([300.0]), np.array([10.0]),
            mz_tolerance=0.01, intensity_tolerance=0.5,
        )
        assert len(ranked) == 0
        assert ranked.dtype == MATCH_SCORE_DTYPE


class TestGreedyAssign:
    """Test greedy one-to-one assignment."""

    def test_best_pairs_first(self):
        """The first pair wins; conflicting pairs are skipped."""
        peak_idx = np.array([0, 1, 1, 0], dtype=np.int64)
        cand_idx = np.array([0, 0, 1, 1], dtype=np.int64)

        assignment, connected = greedy_assign(peak_idx, cand_idx, 2, 2)

        assert list(assignment) == [0, 1]
        assert list(connected) == [True, True]

    def test_peak_grows_at_most_once(self):
        """A peak never takes a second candidate in the same round."""
        peak_idx = np.array([0, 0, 0], dtype=np.int64)
        cand_idx = np.array([2, 0, 1], dtype=np.int64)

        assignment, connected = greedy_assign(peak_idx, cand_idx, 1, 3)

        assert list(assignment) == [2]
        assert list(connected) == [False, False, True]

    def test_candidate_used_at_most_once(self):
        """A candidate never joins two peaks."""
        peak_idx = np.array([0, 1, 2], dtype=np.int64)
        cand_idx = np.array([0, 0, 0], dtype=np.int64)

        assignment, connected = greedy_assign(peak_idx, cand_idx, 3, 1)

        assert list(assignment) == [0, -1, -1]
        assert connected.sum() == 1

    def test_unmatched_peaks_and_candidates(self):
        """Peaks and candidates without pairs stay unassigned."""
        assignment, connected = greedy_assign(
            np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.int64), 2, 3
        )
        assert list(assignment) == [-1, -1]
        assert not connected.any()
