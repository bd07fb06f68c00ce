#!/usr/bin/env python
"""Build chromatographic peaks from a table of centroids.

Input is a tab-separated file with one centroid per row and the columns
``scan``, ``rt``, ``mz`` and ``intensity``. Scans are numbered from 0; every
scan number up to the largest one must appear at least once so its RT is
known (a row with an empty ``mz`` marks a scan without centroids).

The finished peaks are written as a ``Compound_Name,RT_Query`` table.

Usage:
    python scripts/connect_peaks.py --input centroids.tsv --output peaks.csv \\
        --mz-tolerance 10 --ppm --min-duration 3.0 --min-height 1e4
"""

import argparse
import csv
import logging
from pathlib import Path

import numpy as np

from alphachrom.convenience import connect_peaks_from_arrays
from alphachrom.io import peaks_to_rt_rows, write_rt_table
from alphachrom.peaks import SimpleConnectorParams, ToleranceUnit


def load_centroids(input_path: Path):
    """Read the centroid table into flat arrays."""
    scan_rts = {}
    scan_idx = []
    mz = []
    intensity = []

    with open(input_path, 'r', newline='') as f:
        reader = csv.DictReader(f, delimiter='\t')
        for row in reader:
            scan = int(row['scan'])
            scan_rts[scan] = float(row['rt'])
            if row.get('mz', '') == '':
                continue
            scan_idx.append(scan)
            mz.append(float(row['mz']))
            intensity.append(float(row['intensity']))

    n_scans = max(scan_rts) + 1 if scan_rts else 0
    missing = [i for i in range(n_scans) if i not in scan_rts]
    if missing:
        raise ValueError(f"No RT for scans: {missing[:10]}")

    rt_values = np.array([scan_rts[i] for i in range(n_scans)], dtype=np.float64)
    return (
        rt_values,
        np.array(scan_idx, dtype=np.int64),
        np.array(mz, dtype=np.float64),
        np.array(intensity, dtype=np.float64),
    )


def main():
    parser = argparse.ArgumentParser(description='Connect per-scan centroids into chromatographic peaks')
    parser.add_argument('--input', type=str, required=True,
                        help='Tab-separated centroids (scan, rt, mz, intensity)')
    parser.add_argument('--output', type=str, required=True,
                        help='Output CSV (Compound_Name,RT_Query)')
    parser.add_argument('--mz-tolerance', type=float, default=0.05,
                        help='m/z tolerance between consecutive scans (Da, or ppm with --ppm)')
    parser.add_argument('--ppm', action='store_true',
                        help='Interpret --mz-tolerance in ppm')
    parser.add_argument('--intensity-tolerance', type=float, default=0.5,
                        help='Fractional intensity tolerance in (0, 1]')
    parser.add_argument('--min-duration', type=float, default=0.0,
                        help='Minimum peak duration (RT units)')
    parser.add_argument('--min-height', type=float, default=0.0,
                        help='Minimum peak height')
    parser.add_argument('--threshold-level', type=float, default=None,
                        help='Enable chromatographic threshold splitting at this quantile')
    parser.add_argument('--verbose', action='store_true', help='Log every scan')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    params = SimpleConnectorParams(
        mz_tolerance=args.mz_tolerance,
        mz_tolerance_unit=ToleranceUnit.PPM if args.ppm else ToleranceUnit.DA,
        intensity_tolerance=args.intensity_tolerance,
        minimum_peak_duration=args.min_duration,
        minimum_peak_height=args.min_height,
        chromatographic_threshold_filter=args.threshold_level is not None,
        chromatographic_threshold_level=args.threshold_level if args.threshold_level is not None else 0.0,
    )

    print("=" * 80)
    print("AlphaChrom Peak Construction")
    print("=" * 80)

    input_path = Path(args.input)
    rt_values, scan_idx, mz, intensity = load_centroids(input_path)
    print(f"Loaded {len(mz):,} centroids in {len(rt_values):,} scans from {input_path.name}")

    peaks = connect_peaks_from_arrays(
        rt_values, scan_idx, mz, intensity,
        params=params, data_file=input_path.name,
    )

    output_path = write_rt_table(peaks_to_rt_rows(peaks), args.output)
    print(f"\nWrote {len(peaks):,} peaks to {output_path}")


if __name__ == '__main__':
    main()
