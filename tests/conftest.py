"""Pytest configuration for AlphaChrom tests.

This module provides common fixtures and configuration for all tests.
Everything is synthetic in-memory data; no raw files are needed.
"""

import numpy as np
import pytest

from alphachrom.peaks import (
    ConnectedMzPeak,
    ConnectedPeak,
    MzPeak,
    Scan,
    SimpleConnectorParams,
)


def make_points(rt_values, intensities, mz=100.0, first_scan=0):
    """ConnectedMzPeaks at a fixed m/z, one per scan."""
    return [
        ConnectedMzPeak(Scan(first_scan + i, float(rt)), MzPeak(float(mz), float(intensity)))
        for i, (rt, intensity) in enumerate(zip(rt_values, intensities))
    ]


@pytest.fixture
def point_factory():
    """Factory for ConnectedMzPeak runs."""
    return make_points


@pytest.fixture
def triangle_peak():
    """Finalized three-point peak: RT 1-3, intensities 10/50/10 at m/z 100."""
    points = make_points([1.0, 2.0, 3.0], [10.0, 50.0, 10.0])
    return ConnectedPeak.from_points("run01.raw", points)


@pytest.fixture
def double_apex_peak():
    """Finalized peak with intensities 5/50/5/50/5 at RT 1-5."""
    points = make_points([1.0, 2.0, 3.0, 4.0, 5.0], [5.0, 50.0, 5.0, 50.0, 5.0])
    return ConnectedPeak.from_points("run01.raw", points)


@pytest.fixture
def scenario_params():
    """Parameters of the three-scan reference scenario."""
    return SimpleConnectorParams(
        mz_tolerance=0.01,
        intensity_tolerance=0.9,
        minimum_peak_duration=1.5,
        minimum_peak_height=20.0,
        chromatographic_threshold_filter=False,
    )


@pytest.fixture
def random_run():
    """Synthetic LC-MS run as flat centroid arrays.

    Ten compounds elute as Gaussian profiles over 60 scans; every scan also
    carries a few random noise centroids.
    """
    rng = np.random.default_rng(7)
    n_scans = 60
    rt_values = np.arange(n_scans, dtype=np.float64) * 0.5

    compound_mz = np.linspace(300.0, 900.0, 10)
    compound_apex = rng.uniform(5.0, 25.0, 10)

    scan_idx = []
    mz = []
    intensity = []
    for s in range(n_scans):
        for c in range(10):
            profile = 1e5 * np.exp(-0.5 * ((rt_values[s] - compound_apex[c]) / 1.5) ** 2)
            if profile > 100.0:
                scan_idx.append(s)
                mz.append(compound_mz[c] + rng.normal(0.0, 0.001))
                intensity.append(profile)
        for _ in range(3):
            scan_idx.append(s)
            mz.append(rng.uniform(100.0, 1000.0))
            intensity.append(rng.uniform(50.0, 500.0))

    return (
        rt_values,
        np.array(scan_idx, dtype=np.int64),
        np.array(mz, dtype=np.float64),
        np.array(intensity, dtype=np.float64),
    )


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
