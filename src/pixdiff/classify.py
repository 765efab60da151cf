"""Per-pixel classification: matching, antialiased or mismatch.

Rules, applied to each pixel pair not excluded by the region mask:

1. Alpha delta above ``tolerance.alpha`` is a mismatch (unless alpha is ignored).
2. RGB channel deltas above their tolerances (or, when colors are ignored, a
   brightness delta above ``tolerance.min_brightness``) make a candidate.
3. With antialiasing ignored, a candidate whose pixel in either image looks
   like a one-pixel edge shift is downgraded to ``ANTIALIASED`` (see
   :func:`antialiased`).

All comparisons are inclusive: a delta equal to its tolerance matches.
Brightness is the luma ``0.3*r + 0.59*g + 0.11*b``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from pixdiff.bands import iter_bands, map_bands
from pixdiff.buffer import PixelBuffer
from pixdiff.options import IgnoreFlags, ResolvedOptions, Tolerance
from pixdiff.result import (
    ANTIALIASED,
    EXCLUDED,
    MATCH,
    MISMATCH,
    BandStats,
    band_stats,
    merge_stats,
)

log = logging.getLogger(__name__)

LUMA = np.array([0.3, 0.59, 0.11])

NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)


@dataclass(frozen=True)
class Planes:
    """Signed working copies of one image, computed once per comparison."""

    rgb: np.ndarray
    alpha: np.ndarray
    brightness: np.ndarray


def prepare(buf: PixelBuffer) -> Planes:
    data = buf.data.astype(np.int16)
    rgb = data[..., :3]
    return Planes(rgb=rgb, alpha=data[..., 3], brightness=rgb @ LUMA)


def halo(arr: np.ndarray, y0: int, y1: int, radius: int, fill: float) -> np.ndarray:
    """Rows ``[y0, y1)`` of *arr* with *radius* extra rows/cols on each side.

    Real neighbor rows are used where they exist; positions outside the image
    hold *fill*. Offset ``(dy, dx)`` of row ``y`` is then
    ``out[radius + dy + (y - y0), radius + dx + x]``.
    """
    height = arr.shape[0]
    top = max(y0 - radius, 0)
    bottom = min(y1 + radius, height)
    pad = [(radius - (y0 - top), radius - (bottom - y1)), (radius, radius)]
    pad += [(0, 0)] * (arr.ndim - 2)
    return np.pad(arr[top:bottom], pad, mode="constant", constant_values=fill)


def shifted(padded: np.ndarray, radius: int, dy: int, dx: int, rows: int, cols: int) -> np.ndarray:
    return padded[radius + dy : radius + dy + rows, radius + dx : radius + dx + cols]


def antialiased(x: Planes, y: Planes, tolerance: Tolerance, y0: int, y1: int) -> np.ndarray:
    """Pixels of image *x* in rows ``[y0, y1)`` that look like antialiased edges.

    A pixel qualifies when its brightness lies inside the tolerance band, its
    3x3 neighborhood in *x* has both a strictly darker and a strictly
    brighter neighbor, and image *y* holds the same RGB value at one of the
    eight neighboring positions (the edge moved by one pixel).

    This is a tuned variant of the usual brighter/darker-neighbor heuristic.
    The brightness band gates the pixel itself, not its neighbors, so flat
    regions next to a shifted edge are not swept up. The other image must
    *contain* this pixel's value one step away, rather than lack an exact
    match at the same offset: a new dot or a recolored area has no such
    neighbor and stays a mismatch, while a one-pixel edge shift always does.
    """
    rows, cols = y1 - y0, x.brightness.shape[1]
    own = x.brightness[y0:y1]
    own_rgb = x.rgb[y0:y1]
    in_band = (own >= tolerance.min_brightness) & (own <= tolerance.max_brightness)

    lum = halo(x.brightness, y0, y1, 1, np.nan)
    other = halo(y.rgb, y0, y1, 1, -1)
    darker = np.zeros((rows, cols), dtype=bool)
    brighter = np.zeros((rows, cols), dtype=bool)
    moved = np.zeros((rows, cols), dtype=bool)
    for dy, dx in NEIGHBOR_OFFSETS:
        nb = shifted(lum, 1, dy, dx, rows, cols)
        darker |= nb < own
        brighter |= nb > own
        moved |= np.all(shifted(other, 1, dy, dx, rows, cols) == own_rgb, axis=2)
    return in_band & darker & brighter & moved


def classify_band(
    a: Planes,
    b: Planes,
    excluded: np.ndarray,
    tolerance: Tolerance,
    flags: IgnoreFlags,
    y0: int,
    y1: int,
) -> np.ndarray:
    """Return the ``(y1 - y0, width)`` uint8 code grid for one band."""
    if flags.ignore_alpha:
        alpha_fail = np.zeros(a.alpha[y0:y1].shape, dtype=bool)
    else:
        alpha_fail = np.abs(a.alpha[y0:y1] - b.alpha[y0:y1]) > tolerance.alpha

    if flags.ignore_colors:
        delta = np.abs(a.brightness[y0:y1] - b.brightness[y0:y1])
        candidate = delta > tolerance.min_brightness
    else:
        limits = np.array([tolerance.red, tolerance.green, tolerance.blue], dtype=np.int16)
        candidate = np.any(np.abs(a.rgb[y0:y1] - b.rgb[y0:y1]) > limits, axis=2)
    candidate &= ~alpha_fail

    codes = np.full(candidate.shape, MATCH, dtype=np.uint8)
    codes[candidate] = MISMATCH
    if flags.ignore_antialiasing and candidate.any():
        smoothed = antialiased(a, b, tolerance, y0, y1) | antialiased(b, a, tolerance, y0, y1)
        codes[candidate & smoothed] = ANTIALIASED
    codes[alpha_fail] = MISMATCH
    codes[excluded[y0:y1]] = EXCLUDED
    return codes


@dataclass(frozen=True)
class Classification:
    codes: np.ndarray
    stats: BandStats
    returned_early: bool = False


def classify(
    a: PixelBuffer,
    b: PixelBuffer,
    excluded: np.ndarray,
    opts: ResolvedOptions,
    uncovered: BandStats | None = None,
) -> Classification:
    """Classify every pixel pair of two equally sized buffers.

    Without an early threshold all bands run on worker threads. With one, bands
    run in row order and scoring stops after the first band that pushes the
    running percentage (including *uncovered* pixels) above the threshold.
    """
    if a.size != b.size:
        raise ValueError(f"classify needs equal sizes: {a.size} vs {b.size}")
    pa, pb = prepare(a), prepare(b)
    bands = iter_bands(a.height, opts.band_rows)
    base = uncovered or BandStats()

    def _run(y0: int, y1: int) -> np.ndarray:
        return classify_band(pa, pb, excluded, opts.tolerance, opts.flags, y0, y1)

    if opts.return_early_threshold is None:
        log.debug("classifying %d bands on up to %s workers", len(bands), opts.max_workers)
        parts = map_bands(_run, bands, opts.max_workers)
        codes = np.concatenate(parts) if parts else np.zeros((0, a.width), dtype=np.uint8)
        stats = merge_stats([base, *(band_stats(p, y0) for p, (y0, _) in zip(parts, bands))])
        return Classification(codes=codes, stats=stats)

    return _classify_until_threshold(
        _run, bands, a.width, a.height, base, opts.return_early_threshold
    )


def _classify_until_threshold(
    run: Callable[[int, int], np.ndarray],
    bands: list[tuple[int, int]],
    width: int,
    height: int,
    base: BandStats,
    threshold: float,
) -> Classification:
    codes = np.full((height, width), MATCH, dtype=np.uint8)
    stats = base
    for y0, y1 in bands:
        band = run(y0, y1)
        codes[y0:y1] = band
        stats = stats.merge(band_stats(band, y0))
        if stats.examined and stats.mismatched / stats.examined * 100.0 > threshold:
            returned_early = y1 < height
            if returned_early:
                log.debug("early threshold %.2f%% exceeded after row %d", threshold, y1)
            return Classification(codes=codes, stats=stats, returned_early=returned_early)
    return Classification(codes=codes, stats=stats)
