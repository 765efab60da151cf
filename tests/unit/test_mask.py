"""Tests for region mask construction."""

from __future__ import annotations

import numpy as np
from image_helpers import BLACK, solid, with_pixels

from pixdiff.mask import build_mask, scored_mask
from pixdiff.options import Box


class TestBoxes:
    def test_no_boxes_scores_everything(self) -> None:
        assert not build_mask(5, 4).any()

    def test_bounding_box_limits_scoring(self) -> None:
        m = build_mask(5, 4, bounding_boxes=[Box(1, 1, 3, 2)])
        assert int(np.count_nonzero(~m)) == 2
        assert not m[1, 1] and not m[1, 2]
        assert m[0, 0] and m[1, 3]

    def test_multiple_bounding_boxes_union(self) -> None:
        m = build_mask(4, 4, bounding_boxes=[Box(0, 0, 1, 1), Box(3, 3, 4, 4)])
        assert int(np.count_nonzero(~m)) == 2

    def test_ignored_box(self) -> None:
        m = build_mask(4, 4, ignored_boxes=[Box(0, 0, 2, 2)])
        assert int(np.count_nonzero(m)) == 4

    def test_ignored_inside_bounding(self) -> None:
        m = build_mask(6, 6, bounding_boxes=[Box(0, 0, 4, 4)], ignored_boxes=[Box(2, 2, 6, 6)])
        assert int(np.count_nonzero(~m)) == 16 - 4

    def test_empty_box_scores_nothing(self) -> None:
        assert build_mask(3, 3, bounding_boxes=[Box(1, 1, 1, 3)]).all()


class TestIgnoreColor:
    def test_color_in_either_image(self) -> None:
        marker = (1, 2, 3, 255)
        a = with_pixels(solid(3, 3, BLACK), {(0, 0): marker})
        b = with_pixels(solid(3, 3, BLACK), {(2, 2): marker})
        m = build_mask(3, 3, ignore_color=marker, image_a=a, image_b=b)
        assert m[0, 0] and m[2, 2]
        assert int(np.count_nonzero(m)) == 2

    def test_alpha_must_match_exactly(self) -> None:
        a = with_pixels(solid(2, 1, BLACK), {(0, 0): (1, 2, 3, 254)})
        m = build_mask(2, 1, ignore_color=(1, 2, 3, 255), image_a=a, image_b=a)
        assert not m.any()


def test_scored_mask_image_values() -> None:
    m = np.array([[True, False]])
    assert scored_mask(m).tolist() == [[0, 255]]
