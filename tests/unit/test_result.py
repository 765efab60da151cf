"""Tests for band statistics and result assembly."""

from __future__ import annotations

import numpy as np
import pytest

from pixdiff.options import ZERO_BOX, Box
from pixdiff.reconcile import DimensionDifference
from pixdiff.result import (
    ANTIALIASED,
    EXCLUDED,
    MATCH,
    MISMATCH,
    BandStats,
    band_stats,
    build_result,
    merge_stats,
    round_half_up,
    uncovered_stats,
)


class TestBandStats:
    def test_counts_and_bounds(self) -> None:
        codes = np.array(
            [
                [MATCH, MISMATCH, MATCH],
                [EXCLUDED, ANTIALIASED, MISMATCH],
            ],
            dtype=np.uint8,
        )
        stats = band_stats(codes, y0=10)
        assert stats.examined == 6
        assert stats.mismatched == 2
        assert stats.excluded == 1
        assert stats.antialiased == 1
        assert stats.bounds == Box(1, 10, 3, 12)

    def test_no_mismatch_has_no_bounds(self) -> None:
        stats = band_stats(np.zeros((2, 2), dtype=np.uint8), y0=0)
        assert stats.bounds is None

    def test_merge_is_associative(self) -> None:
        x = BandStats(4, 1, 0, 0, Box(0, 0, 1, 1))
        y = BandStats(4, 2, 1, 0, Box(3, 2, 4, 4))
        z = BandStats(4, 0, 0, 2, None)
        assert x.merge(y).merge(z) == x.merge(y.merge(z))
        assert x.merge(y) == y.merge(x)

    def test_merge_unions_bounds(self) -> None:
        merged = merge_stats([BandStats(bounds=Box(2, 0, 3, 1)), BandStats(bounds=Box(0, 5, 1, 6))])
        assert merged.bounds == Box(0, 0, 3, 6)

    def test_merge_empty(self) -> None:
        assert merge_stats([]) == BandStats()


class TestUncoveredStats:
    def test_nothing_uncovered(self) -> None:
        assert uncovered_stats(4, 4, 4, 4, 0) == BandStats()

    def test_wider_canvas(self) -> None:
        stats = uncovered_stats(6, 4, 4, 4, 8)
        assert stats.mismatched == stats.examined == 8
        assert stats.bounds == Box(4, 0, 6, 4)

    def test_taller_canvas(self) -> None:
        assert uncovered_stats(4, 6, 4, 4, 8).bounds == Box(0, 4, 4, 6)

    def test_both_dimensions(self) -> None:
        assert uncovered_stats(20, 20, 10, 10, 300).bounds == Box(0, 0, 20, 20)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1.005, 1.01), (2.675, 2.68), (100 / 3, 33.33), (0.0, 0.0), (12.5, 12.5)],
    )
    def test_values(self, value: float, expected: float) -> None:
        assert round_half_up(value) == expected


class TestBuildResult:
    def test_percentages(self) -> None:
        r = build_result(
            BandStats(examined=3, mismatched=1, bounds=Box(0, 0, 1, 1)),
            total_pixels=3,
            is_same_dimensions=True,
            dimension_difference=DimensionDifference(0, 0),
            diff_image=None,
            elapsed_s=0.0125,
        )
        assert r.raw_mismatch_percentage == pytest.approx(100 / 3)
        assert r.mismatch_percentage == 33.33
        assert r.analysis_time_ms == 12
        assert r.diff_bounds == Box(0, 0, 1, 1)

    def test_empty_comparison(self) -> None:
        r = build_result(
            BandStats(),
            total_pixels=0,
            is_same_dimensions=True,
            dimension_difference=DimensionDifference(0, 0),
            diff_image=None,
            elapsed_s=0.0,
        )
        assert r.mismatch_percentage == 0.0
        assert r.diff_bounds == ZERO_BOX
