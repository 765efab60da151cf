"""Per-band statistics, their associative merge, and the final result value."""

from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import numpy as np

from pixdiff.buffer import PixelBuffer
from pixdiff.options import ZERO_BOX, Box
from pixdiff.reconcile import DimensionDifference

# Classification codes stored in the per-pixel grid.
MATCH = 0
MISMATCH = 1
ANTIALIASED = 2
EXCLUDED = 3


def _union(a: Box | None, b: Box | None) -> Box | None:
    if a is None:
        return b
    if b is None:
        return a
    return Box(
        left=min(a.left, b.left),
        top=min(a.top, b.top),
        right=max(a.right, b.right),
        bottom=max(a.bottom, b.bottom),
    )


@dataclass(frozen=True)
class BandStats:
    """Counts for a set of examined pixels. ``merge`` is associative and commutative."""

    examined: int = 0
    mismatched: int = 0
    excluded: int = 0
    antialiased: int = 0
    bounds: Box | None = None

    def merge(self, other: BandStats) -> BandStats:
        return BandStats(
            examined=self.examined + other.examined,
            mismatched=self.mismatched + other.mismatched,
            excluded=self.excluded + other.excluded,
            antialiased=self.antialiased + other.antialiased,
            bounds=_union(self.bounds, other.bounds),
        )


def band_stats(codes: np.ndarray, y0: int) -> BandStats:
    """Summarize a band of classification codes whose first row is image row *y0*."""
    mism = codes == MISMATCH
    count = int(np.count_nonzero(mism))
    bounds = None
    if count:
        rows = np.flatnonzero(mism.any(axis=1))
        cols = np.flatnonzero(mism.any(axis=0))
        bounds = Box(
            left=int(cols[0]),
            top=y0 + int(rows[0]),
            right=int(cols[-1]) + 1,
            bottom=y0 + int(rows[-1]) + 1,
        )
    return BandStats(
        examined=int(codes.size),
        mismatched=count,
        excluded=int(np.count_nonzero(codes == EXCLUDED)),
        antialiased=int(np.count_nonzero(codes == ANTIALIASED)),
        bounds=bounds,
    )


def uncovered_stats(
    canvas_width: int, canvas_height: int, width: int, height: int, uncovered: int
) -> BandStats:
    """Stats for the area of the larger image that lies outside the overlap."""
    if uncovered == 0:
        return BandStats()
    if canvas_width > width and canvas_height > height:
        bounds = Box(0, 0, canvas_width, canvas_height)
    elif canvas_width > width:
        bounds = Box(width, 0, canvas_width, canvas_height)
    else:
        bounds = Box(0, height, canvas_width, canvas_height)
    return BandStats(examined=uncovered, mismatched=uncovered, bounds=bounds)


def merge_stats(parts: Iterable[BandStats]) -> BandStats:
    return functools.reduce(BandStats.merge, parts, BandStats())


def round_half_up(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals with halves rounded away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of one comparison.

    ``raw_mismatch_percentage`` is ``mismatched / total * 100``. When
    ``returned_early`` is set, scoring stopped at the early threshold and the
    percentage is the examined share extrapolated to the whole image, not an
    exact count.
    """

    is_same_dimensions: bool
    dimension_difference: DimensionDifference
    raw_mismatch_percentage: float
    mismatch_percentage: float
    diff_bounds: Box
    analysis_time_ms: int
    diff_image: PixelBuffer | None
    mismatched_pixels: int
    total_pixels: int
    excluded_pixels: int = 0
    antialiased_pixels: int = 0
    returned_early: bool = False


def build_result(
    stats: BandStats,
    *,
    total_pixels: int,
    is_same_dimensions: bool,
    dimension_difference: DimensionDifference,
    diff_image: PixelBuffer | None,
    elapsed_s: float,
    returned_early: bool = False,
) -> ComparisonResult:
    """Turn merged stats into a :class:`ComparisonResult`."""
    raw = stats.mismatched / stats.examined * 100.0 if stats.examined else 0.0
    return ComparisonResult(
        is_same_dimensions=is_same_dimensions,
        dimension_difference=dimension_difference,
        raw_mismatch_percentage=raw,
        mismatch_percentage=round_half_up(raw),
        diff_bounds=stats.bounds or ZERO_BOX,
        analysis_time_ms=int(elapsed_s * 1000),
        diff_image=diff_image,
        mismatched_pixels=stats.mismatched,
        total_pixels=total_pixels,
        excluded_pixels=stats.excluded,
        antialiased_pixels=stats.antialiased,
        returned_early=returned_early,
    )
