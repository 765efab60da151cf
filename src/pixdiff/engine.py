"""The ``compare`` entry point."""

from __future__ import annotations

import logging
import time

import numpy as np

from pixdiff.buffer import PixelBuffer
from pixdiff.classify import classify
from pixdiff.errors import DimensionMismatchUnrecoverable
from pixdiff.mask import build_mask
from pixdiff.options import (
    ComparisonOptions,
    ResolvedOptions,
    resolve_options,
    validate_boxes,
)
from pixdiff.reconcile import Reconciled, reconcile
from pixdiff.render import render
from pixdiff.result import ComparisonResult, build_result, uncovered_stats

log = logging.getLogger(__name__)


def common_size(a: PixelBuffer, b: PixelBuffer, scale_to_same_size: bool) -> tuple[int, int]:
    """Dimensions both images are compared at, without touching any pixel.

    Raises:
        DimensionMismatchUnrecoverable: Unscaled sizes differ and do not overlap,
            or scaling would stretch an empty image.
    """
    if a.size == b.size:
        return a.size
    if scale_to_same_size:
        if a.area == 0 or b.area == 0:
            raise DimensionMismatchUnrecoverable(
                f"cannot scale {b.width}x{b.height} to {a.width}x{a.height}"
            )
        return a.size
    w, h = min(a.width, b.width), min(a.height, b.height)
    if w == 0 or h == 0:
        raise DimensionMismatchUnrecoverable(
            f"no overlap between {a.width}x{a.height} and {b.width}x{b.height}"
        )
    return w, h


def _align(
    image_a: PixelBuffer, image_b: PixelBuffer, opts: ResolvedOptions
) -> tuple[Reconciled, np.ndarray]:
    width, height = common_size(image_a, image_b, opts.scale_to_same_size)
    validate_boxes(opts.output, width, height)
    recon = reconcile(image_a, image_b, opts.scale_to_same_size)
    output = opts.output
    excluded = build_mask(
        recon.width,
        recon.height,
        output.bounding_boxes,
        output.ignored_boxes,
        output.ignore_areas_colored_with,
        recon.a,
        recon.b,
    )
    return recon, excluded


def region_mask(
    image_a: PixelBuffer,
    image_b: PixelBuffer,
    options: ComparisonOptions | None = None,
) -> np.ndarray:
    """Exclusion grid (True = not scored) that :func:`compare` would use for these inputs."""
    return _align(image_a, image_b, resolve_options(options))[1]


def compare(
    image_a: PixelBuffer,
    image_b: PixelBuffer,
    options: ComparisonOptions | None = None,
) -> ComparisonResult:
    """Compare two decoded images.

    Args:
        image_a: Baseline image. When scaling, *image_b* is resized to its size.
        image_b: Image under test.
        options: Comparison configuration; ``None`` uses every default.

    Returns:
        ComparisonResult with percentages, bounds and (unless disabled via
        ``output.output_diff``) the rendered diff image.

    Raises:
        InvalidToleranceConfig: Tolerance outside [0, 255] or inverted band.
        InvalidBox: A bounding or ignored box does not fit the compared area.
        InvalidOutputSettings: Bad error color, transparency or mode.
        DimensionMismatchUnrecoverable: Sizes differ with no overlap.
    """
    start = time.perf_counter()
    opts = resolve_options(options)
    recon, excluded = _align(image_a, image_b, opts)
    output = opts.output
    outside = uncovered_stats(
        recon.canvas_width, recon.canvas_height, recon.width, recon.height, recon.uncovered_pixels
    )
    classified = classify(recon.a, recon.b, excluded, opts, outside)
    diff_image = render(recon, classified.codes, opts) if output.output_diff else None

    total = recon.width * recon.height + recon.uncovered_pixels
    result = build_result(
        classified.stats,
        total_pixels=total,
        is_same_dimensions=recon.is_same_dimensions,
        dimension_difference=recon.dimension_difference,
        diff_image=diff_image,
        elapsed_s=time.perf_counter() - start,
        returned_early=classified.returned_early,
    )
    log.debug(
        "compared %dx%d: %d/%d mismatched (%.2f%%) in %dms",
        recon.width,
        recon.height,
        result.mismatched_pixels,
        total,
        result.mismatch_percentage,
        result.analysis_time_ms,
    )
    return result
