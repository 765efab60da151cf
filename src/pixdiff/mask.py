"""Per-pixel exclusion grid derived from boxes and ignore colors."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from pixdiff.buffer import PixelBuffer
from pixdiff.options import RGBA, Box


def build_mask(
    width: int,
    height: int,
    bounding_boxes: Sequence[Box] = (),
    ignored_boxes: Sequence[Box] = (),
    ignore_color: RGBA | None = None,
    image_a: PixelBuffer | None = None,
    image_b: PixelBuffer | None = None,
) -> np.ndarray:
    """Return a ``(height, width)`` bool array where True marks excluded pixels.

    With bounding boxes, only pixels inside at least one box are scored.
    Ignored boxes and pixels of exactly *ignore_color* in either image are
    then removed on top of that.
    """
    if bounding_boxes:
        excluded = np.ones((height, width), dtype=bool)
        for box in bounding_boxes:
            excluded[box.top : box.bottom, box.left : box.right] = False
    else:
        excluded = np.zeros((height, width), dtype=bool)

    for box in ignored_boxes:
        excluded[box.top : box.bottom, box.left : box.right] = True

    if ignore_color is not None:
        color = np.asarray(ignore_color, dtype=np.uint8)
        for img in (image_a, image_b):
            if img is not None:
                excluded |= np.all(img.data == color, axis=2)

    return excluded


def scored_mask(excluded: np.ndarray) -> np.ndarray:
    """Invert an exclusion grid into an 8-bit image mask (255 = scored)."""
    return np.where(excluded, 0, 255).astype(np.uint8)
