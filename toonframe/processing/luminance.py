from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from PIL import Image

Kernel = Sequence[Sequence[int]]

BLUR_KERNEL: Tuple[Tuple[int, ...], ...] = (
    (1, 2, 1),
    (2, 4, 2),
    (1, 2, 1),
)
BLUR_DIVISOR = 16


@dataclass(frozen=True, eq=False)
class LuminanceField:
    """Single-channel brightness values as a ``(height, width)`` uint8 array."""

    values: np.ndarray

    def __post_init__(self) -> None:
        values = np.asarray(self.values)
        if values.ndim != 2:
            raise ValueError(f"Expected a 2-D field, got shape {values.shape}")
        object.__setattr__(self, "values", values.astype(np.uint8, copy=False))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LuminanceField):
            return NotImplemented
        return np.array_equal(self.values, other.values)

    @property
    def width(self) -> int:
        return self.values.shape[1]

    @property
    def height(self) -> int:
        return self.values.shape[0]

    def at(self, x: int, y: int) -> int:
        return int(self.values[y, x])

    def to_image(self) -> Image.Image:
        return Image.frombytes("L", (self.width, self.height), self.values.tobytes())

    @classmethod
    def from_image(cls, img: Image.Image) -> "LuminanceField":
        gray = img if img.mode == "L" else img.convert("L")
        width, height = gray.size
        return cls(np.frombuffer(gray.tobytes(), dtype=np.uint8).reshape(height, width))


def rgba_array(img: Image.Image) -> np.ndarray:
    """``(height, width, 4)`` uint8 view of the frame, whatever its mode."""
    width, height = img.size
    return np.frombuffer(img.convert("RGBA").tobytes(), dtype=np.uint8).reshape(height, width, 4)


def to_image(pixels: np.ndarray) -> Image.Image:
    """Wrap an ``(height, width, 4)`` uint8 array as an RGBA image."""
    height, width = pixels.shape[:2]
    return Image.frombytes("RGBA", (width, height), np.ascontiguousarray(pixels, dtype=np.uint8).tobytes())


def luma(rgb: np.ndarray) -> np.ndarray:
    """Truncated 0.299/0.587/0.114 brightness over the last axis (R, G, B, ...)."""
    channels = rgb.astype(np.int32)
    return (299 * channels[..., 0] + 587 * channels[..., 1] + 114 * channels[..., 2]) // 1000


def luminance(img: Image.Image) -> LuminanceField:
    """Weighted 0.299/0.587/0.114 brightness of every pixel, truncated."""
    return LuminanceField(luma(rgba_array(img)))


def convolve_signed(field: LuminanceField, kernel: Kernel) -> np.ndarray:
    """Raw 3x3 weighted sums for interior pixels; the 1-pixel border stays 0."""
    height, width = field.height, field.width
    out = np.zeros((height, width), dtype=np.int32)
    if height < 3 or width < 3:
        return out
    src = field.values.astype(np.int32)
    interior = out[1:-1, 1:-1]
    for j, row in enumerate(kernel):
        for i, weight in enumerate(row):
            if weight:
                interior += weight * src[j : j + height - 2, i : i + width - 2]
    return out


def convolve(field: LuminanceField, kernel: Kernel, divisor: int = 1) -> LuminanceField:
    """Apply a 3x3 kernel, clamping to [0, 255].

    Border pixels are copied unchanged from ``field`` so the result never grows
    an artificial dark frame.
    """

    if divisor == 0:
        raise ValueError("divisor must be non-zero")
    out = field.values.copy()
    if field.height >= 3 and field.width >= 3:
        sums = convolve_signed(field, kernel)[1:-1, 1:-1]
        out[1:-1, 1:-1] = np.clip(sums // divisor, 0, 255)
    return LuminanceField(out)


def gaussian_blur(field: LuminanceField) -> LuminanceField:
    return convolve(field, BLUR_KERNEL, BLUR_DIVISOR)
