"""pixdiff package."""

from importlib.metadata import PackageNotFoundError, version

from pixdiff.buffer import PixelBuffer
from pixdiff.engine import compare, region_mask
from pixdiff.options import (
    Box,
    ComparisonOptions,
    ErrorType,
    IgnoreMode,
    OutputSettings,
    Tolerance,
)
from pixdiff.result import ComparisonResult

__all__ = [
    "__version__",
    "Box",
    "ComparisonOptions",
    "ComparisonResult",
    "ErrorType",
    "IgnoreMode",
    "OutputSettings",
    "PixelBuffer",
    "Tolerance",
    "compare",
    "region_mask",
]

try:
    __version__ = version("pixdiff")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
