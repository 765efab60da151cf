"""Pillow-backed decode/encode between image files and :class:`PixelBuffer`."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image

from pixdiff.buffer import PixelBuffer
from pixdiff.mask import scored_mask


def from_image(img: Image.Image) -> PixelBuffer:
    """Convert any Pillow image mode to an RGBA buffer."""
    if img.mode == "RGBA":
        return PixelBuffer.from_array(np.asarray(img))
    rgba = img.convert("RGBA")
    try:
        return PixelBuffer.from_array(np.asarray(rgba))
    finally:
        rgba.close()


def decode(source: bytes | Path | str | Image.Image) -> PixelBuffer:
    """Decode PNG/JPEG/WebP bytes, a file path, or an open image.

    Raises:
        FileNotFoundError: If a path does not exist.
        PIL.UnidentifiedImageError: If the data is not a recognizable image.
    """
    if isinstance(source, Image.Image):
        return from_image(source)
    fp = io.BytesIO(source) if isinstance(source, bytes) else source
    with Image.open(fp) as img:
        img.load()
        return from_image(img)


def to_image(buf: PixelBuffer) -> Image.Image:
    return Image.fromarray(buf.data)


def encode_png(buf: PixelBuffer) -> bytes:
    out = io.BytesIO()
    with to_image(buf) as img:
        img.save(out, format="PNG")
    return out.getvalue()


def save(buf: PixelBuffer, path: Path) -> Path:
    """Write *buf* to *path*; the format follows the file extension."""
    with to_image(buf) as img:
        img.save(path)
    return path


def save_mask(excluded: np.ndarray, path: Path) -> Path:
    """Write an exclusion grid as an 8-bit PNG, white where pixels are scored."""
    with Image.fromarray(scored_mask(excluded)) as img:
        img.save(path, format="PNG")
    return path
