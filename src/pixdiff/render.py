"""Diff image rendering for every error type."""

from __future__ import annotations

import logging

import numpy as np

from pixdiff.bands import iter_bands, map_bands
from pixdiff.buffer import PixelBuffer
from pixdiff.classify import LUMA, NEIGHBOR_OFFSETS, halo, shifted
from pixdiff.options import ErrorType, ResolvedOptions, Tolerance
from pixdiff.reconcile import Reconciled
from pixdiff.result import MISMATCH

log = logging.getLogger(__name__)

SEARCH_RADIUS = 2

# Nearest offsets first, so the closest matching position wins.
SEARCH_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    sorted(
        (
            (dy, dx)
            for dy in range(-SEARCH_RADIUS, SEARCH_RADIUS + 1)
            for dx in range(-SEARCH_RADIUS, SEARCH_RADIUS + 1)
            if (dy, dx) != (0, 0)
        ),
        key=lambda o: (o[0] * o[0] + o[1] * o[1], o[0], o[1]),
    )
)


def _to_u8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def is_large(width: int, height: int, threshold: int) -> bool:
    """True when movement search is skipped. A threshold of 0 disables the fallback."""
    return threshold > 0 and (width > threshold or height > threshold)


def movement_directions(
    a: np.ndarray,
    b: np.ndarray,
    mismatch: np.ndarray,
    tolerance: Tolerance,
    r0: int,
    r1: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Direction (sign dy, sign dx) towards where each mismatched pixel of *a* moved in *b*.

    The nearest position within :data:`SEARCH_RADIUS` whose pixel in *b*
    matches *a*'s pixel within tolerance wins. Pixels with no such position
    (and every non-mismatch) get ``(0, 0)``.
    """
    rows, cols = r1 - r0, a.shape[1]
    src = a[r0:r1].astype(np.int16)
    top = max(r0 - SEARCH_RADIUS, 0)
    bottom = min(r1 + SEARCH_RADIUS, b.shape[0])
    padded = halo(b[top:bottom].astype(np.int16), r0 - top, r1 - top, SEARCH_RADIUS, -1024)
    limits = np.array(
        [tolerance.red, tolerance.green, tolerance.blue, tolerance.alpha], dtype=np.int16
    )
    pending = mismatch[r0:r1].copy()
    sy = np.zeros((rows, cols), dtype=np.int8)
    sx = np.zeros((rows, cols), dtype=np.int8)
    for dy, dx in SEARCH_OFFSETS:
        if not pending.any():
            break
        cand = shifted(padded, SEARCH_RADIUS, dy, dx, rows, cols)
        hit = pending & np.all(np.abs(cand - src) <= limits, axis=2)
        sy[hit] = np.sign(dy)
        sx[hit] = np.sign(dx)
        pending &= ~hit
    return sy, sx


def _movement_markers(
    a: np.ndarray, b: np.ndarray, mismatch: np.ndarray, tolerance: Tolerance, y0: int, y1: int
) -> np.ndarray:
    """Non-mismatch pixels in ``[y0, y1)`` one step from a moved pixel, along its direction."""
    height, width = mismatch.shape
    rows = y1 - y0
    r0, r1 = max(y0 - 1, 0), min(y1 + 1, height)
    sy, sx = movement_directions(a, b, mismatch, tolerance, r0, r1)

    # Lay the direction rows out as rows y0-1 .. y1 and cols -1 .. width.
    dir_y = np.zeros((rows + 2, width + 2), dtype=np.int8)
    dir_x = np.zeros((rows + 2, width + 2), dtype=np.int8)
    top = r0 - (y0 - 1)
    dir_y[top : top + (r1 - r0), 1 : width + 1] = sy
    dir_x[top : top + (r1 - r0), 1 : width + 1] = sx

    marked = np.zeros((rows, width), dtype=bool)
    for dy, dx in NEIGHBOR_OFFSETS:
        # source pixel sits at -(dy, dx) from the marker and points at it
        src_y = shifted(dir_y, 1, -dy, -dx, rows, width)
        src_x = shifted(dir_x, 1, -dy, -dx, rows, width)
        marked |= (src_y == dy) & (src_x == dx)
    return marked & ~mismatch[y0:y1]


def render_band(
    recon: Reconciled,
    mismatch: np.ndarray,
    opts: ResolvedOptions,
    out: np.ndarray,
    y0: int,
    y1: int,
    *,
    large: bool,
) -> None:
    """Write rows ``[y0, y1)`` of the overlap into *out*."""
    output = opts.output
    err = np.asarray(output.error_color, dtype=np.float64)
    a = recon.a.data[y0:y1]
    b = recon.b.data[y0:y1]
    mism = mismatch[y0:y1]
    target = out[y0:y1, : recon.width]

    if output.error_type is ErrorType.DIFF_ONLY:
        target[...] = 0
        target[mism] = (*output.error_color, 255)
        return

    a_rgb = a[..., :3].astype(np.float64)
    b_rgb = b[..., :3].astype(np.float64)
    if output.error_type.is_movement:
        backdrop = a_rgb
        color = (b_rgb * (err / 255.0) + err) / 2.0
    else:
        grey = a_rgb @ LUMA
        backdrop = np.repeat(grey[..., None], 3, axis=2)
        color = np.broadcast_to(err, backdrop.shape)

    opacity = np.full(mism.shape, 1.0 - output.transparency)
    if output.error_type.is_intensity:
        rgb_delta = np.abs(a_rgb - b_rgb).mean(axis=2)
        alpha_delta = np.abs(a[..., 3].astype(np.float64) - b[..., 3])
        opacity *= np.maximum(rgb_delta, alpha_delta) / 255.0
    opacity = np.where(mism, opacity, 0.0)[..., None]

    target[..., :3] = _to_u8(backdrop * (1.0 - opacity) + color * opacity)
    target[..., 3] = 255

    if output.error_type.is_movement and not large:
        marked = _movement_markers(recon.a.data, recon.b.data, mismatch, opts.tolerance, y0, y1)
        target[marked] = (*(255 - c for c in output.error_color), 255)


def _paint_uncovered(recon: Reconciled, out: np.ndarray, color: tuple[int, int, int]) -> None:
    """Fill the area outside the overlap: error color where either original has pixels."""
    w, h = recon.width, recon.height
    covered = np.zeros(out.shape[:2], dtype=bool)
    for img in (recon.original_a, recon.original_b):
        covered[: img.height, : img.width] = True
    covered[:h, :w] = False
    out[covered] = (*color, 255)


def render(recon: Reconciled, codes: np.ndarray, opts: ResolvedOptions) -> PixelBuffer:
    """Render the diff image for a classified comparison.

    The canvas spans both originals. Row bands of the overlap are rendered
    independently on worker threads; each band writes only its own rows.
    """
    output = opts.output
    canvas = np.zeros((recon.canvas_height, recon.canvas_width, 4), dtype=np.uint8)
    large = is_large(recon.canvas_width, recon.canvas_height, output.large_image_threshold)
    if large and output.error_type.is_movement:
        log.debug(
            "%dx%d exceeds large image threshold %d, skipping movement search",
            recon.canvas_width,
            recon.canvas_height,
            output.large_image_threshold,
        )

    mismatch = codes == MISMATCH

    def _run(y0: int, y1: int) -> None:
        render_band(recon, mismatch, opts, canvas, y0, y1, large=large)

    map_bands(_run, iter_bands(recon.height, opts.band_rows), opts.max_workers)
    if recon.uncovered_pixels:
        _paint_uncovered(recon, canvas, output.error_color)
    return PixelBuffer(width=recon.canvas_width, height=recon.canvas_height, data=canvas)
