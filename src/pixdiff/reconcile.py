"""Bring two buffers to a common comparison area."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from pixdiff.buffer import PixelBuffer
from pixdiff.errors import DimensionMismatchUnrecoverable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionDifference:
    width: int
    height: int


@dataclass(frozen=True)
class Reconciled:
    """Aligned views of both images over the common area.

    ``a`` and ``b`` always share dimensions. ``canvas_width``/``canvas_height``
    span both originals, and ``uncovered_pixels`` is the area the larger image
    has beyond the overlap (zero when the sizes match or after scaling).
    """

    a: PixelBuffer
    b: PixelBuffer
    is_same_dimensions: bool
    dimension_difference: DimensionDifference
    canvas_width: int
    canvas_height: int
    uncovered_pixels: int
    original_a: PixelBuffer
    original_b: PixelBuffer

    @property
    def width(self) -> int:
        return self.a.width

    @property
    def height(self) -> int:
        return self.a.height


def scale_bilinear(buf: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Return a bilinear-resampled copy of *buf* at ``width`` x ``height``."""
    if buf.area == 0 or width == 0 or height == 0:
        return PixelBuffer.blank(width, height)
    img = Image.fromarray(buf.data)
    try:
        resized = img.resize((width, height), Image.BILINEAR)
        return PixelBuffer.from_array(np.asarray(resized))
    finally:
        img.close()


def reconcile(a: PixelBuffer, b: PixelBuffer, scale_to_same_size: bool = False) -> Reconciled:
    """Align *a* and *b* to identical dimensions.

    Args:
        a: First (baseline) image; its size wins when scaling.
        b: Second image.
        scale_to_same_size: Resize *b* to *a*'s size instead of cropping to
            the overlap.

    Returns:
        Reconciled pair with the original dimension difference recorded.

    Raises:
        DimensionMismatchUnrecoverable: Sizes differ, scaling is off and the
            overlap has zero area. With scaling, either image is empty.
    """
    diff = DimensionDifference(width=abs(a.width - b.width), height=abs(a.height - b.height))
    canvas_w = max(a.width, b.width)
    canvas_h = max(a.height, b.height)

    if a.size == b.size:
        return Reconciled(a, b, True, diff, a.width, a.height, 0, a, b)

    if scale_to_same_size:
        if a.area == 0 or b.area == 0:
            raise DimensionMismatchUnrecoverable(
                f"cannot scale {b.width}x{b.height} to {a.width}x{a.height}"
            )
        log.debug("scaling %dx%d to %dx%d", b.width, b.height, a.width, a.height)
        scaled = scale_bilinear(b, a.width, a.height)
        return Reconciled(a, scaled, True, diff, a.width, a.height, 0, a, b)

    w = min(a.width, b.width)
    h = min(a.height, b.height)
    if w == 0 or h == 0:
        raise DimensionMismatchUnrecoverable(
            f"no overlap between {a.width}x{a.height} and {b.width}x{b.height}"
        )
    uncovered = max(a.area, b.area) - w * h
    log.debug("comparing %dx%d overlap, %d pixels uncovered", w, h, uncovered)
    return Reconciled(
        a=PixelBuffer.from_array(a.data[:h, :w]),
        b=PixelBuffer.from_array(b.data[:h, :w]),
        is_same_dimensions=False,
        dimension_difference=diff,
        canvas_width=canvas_w,
        canvas_height=canvas_h,
        uncovered_pixels=uncovered,
        original_a=a,
        original_b=b,
    )
