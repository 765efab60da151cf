"""Error taxonomy for configuration and dimension validation."""

from __future__ import annotations


class PixdiffError(ValueError):
    """Base class for every validation failure raised before pixel work starts."""


class DimensionMismatchUnrecoverable(PixdiffError):
    """The two images share no overlapping area and cannot be reconciled."""


class InvalidToleranceConfig(PixdiffError):
    """A tolerance value is outside [0, 255] or the brightness band is inverted."""


class InvalidBox(PixdiffError):
    """A box lies outside the image or has left > right / top > bottom."""


class InvalidOutputSettings(PixdiffError):
    """Error color, transparency, error type or ignore mode is not usable."""
