"""Decoded RGBA raster shared by every comparison stage."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

CHANNELS = 4


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """A width x height RGBA image backed by a ``(height, width, 4)`` uint8 array.

    The array is row-major, so ``data.tobytes()`` yields the flat layout where
    pixel (x, y) occupies bytes ``4*(y*width+x)`` to ``4*(y*width+x)+4``.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"negative dimensions: {self.width}x{self.height}")
        expected = (self.height, self.width, CHANNELS)
        if self.data.shape != expected or self.data.dtype != np.uint8:
            raise ValueError(
                f"pixel data must be uint8 {expected}, got {self.data.dtype} {self.data.shape}"
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Copy an ``(h, w, 4)`` array into a new buffer."""
        arr = np.array(array, dtype=np.uint8, copy=True)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise ValueError(f"expected (height, width, 4) array, got {arr.shape}")
        return cls(width=arr.shape[1], height=arr.shape[0], data=arr)

    @classmethod
    def from_bytes(
        cls, width: int, height: int, raw: bytes | bytearray | memoryview
    ) -> PixelBuffer:
        """Build a buffer from flat RGBA bytes.

        Raises:
            ValueError: If ``len(raw) != width * height * 4``.
        """
        expected = width * height * CHANNELS
        if len(raw) != expected:
            raise ValueError(f"data length {len(raw)} != {width}*{height}*{CHANNELS}")
        arr = np.frombuffer(bytes(raw), dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(width=width, height=height, data=arr.copy())

    @classmethod
    def blank(
        cls, width: int, height: int, color: tuple[int, int, int, int] = (0, 0, 0, 0)
    ) -> PixelBuffer:
        arr = np.empty((height, width, CHANNELS), dtype=np.uint8)
        arr[...] = color
        return cls(width=width, height=height, data=arr)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.data[y, x])
        return r, g, b, a

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def copy(self) -> PixelBuffer:
        return PixelBuffer(width=self.width, height=self.height, data=self.data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self.data, other.data))

    __hash__ = None  # type: ignore[assignment]
