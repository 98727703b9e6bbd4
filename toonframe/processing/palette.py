from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from ..config import RGB
from .luminance import rgba_array, to_image

Color = Tuple[float, float, float]


def nearest_indices(colors: np.ndarray, palette: Sequence[RGB]) -> np.ndarray:
    """Index of the closest palette entry for every row of an ``(N, 3)`` array.

    Squared Euclidean distance; of several equally close entries the first
    one wins.
    """

    if not palette:
        raise ValueError("palette must not be empty")

    colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    best_index = np.zeros(len(colors), dtype=np.intp)
    best_distance = np.full(len(colors), np.inf)
    for index, entry in enumerate(np.asarray(palette, dtype=np.float64)):
        distance = ((colors - entry) ** 2).sum(axis=1)
        closer = distance < best_distance
        best_distance[closer] = distance[closer]
        best_index[closer] = index
    return best_index


def nearest_palette_index(rgb: Color, palette: Sequence[RGB]) -> int:
    return int(nearest_indices(np.array([rgb]), palette)[0])


def nearest_color(rgb: Color, palette: Sequence[RGB]) -> RGB:
    return palette[nearest_palette_index(rgb, palette)]


def snap_to_palette(colors: np.ndarray, palette: Sequence[RGB]) -> np.ndarray:
    """Replace every ``(..., 3)`` colour with its nearest palette entry (uint8)."""
    table = np.asarray(palette, dtype=np.uint8).reshape(-1, 3)
    return table[nearest_indices(colors, palette)].reshape(colors.shape)


def quantize(img: Image.Image, palette: Sequence[RGB]) -> Image.Image:
    """Snap every pixel to its nearest palette colour. Alpha becomes opaque."""
    if not palette:
        raise ValueError("palette must not be empty")
    pixels = rgba_array(img)
    rgb = pixels[..., :3]
    # Distances are computed once per distinct colour.
    packed = (rgb[..., 0].astype(np.int32) << 16) | (rgb[..., 1].astype(np.int32) << 8) | rgb[..., 2]
    keys, inverse = np.unique(packed.ravel(), return_inverse=True)
    distinct = np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1)

    out = np.empty_like(pixels)
    out[..., :3] = snap_to_palette(distinct, palette)[inverse.ravel()].reshape(rgb.shape)
    out[..., 3] = 255
    return to_image(out)


def posterize_table(levels: int) -> List[int]:
    """Map each 0-255 channel value to the nearest of ``levels`` even steps."""
    if levels < 2:
        raise ValueError(f"levels must be at least 2, got {levels}")
    step = 255 / (levels - 1)
    return [
        min(255, int(round(math.floor(value / step + 0.5) * step)))
        for value in range(256)
    ]


def posterize(img: Image.Image, levels: int) -> Image.Image:
    """Reduce R, G and B to ``levels`` values each; alpha is left alone."""
    table = posterize_table(levels)
    return img.convert("RGBA").point(table * 3 + list(range(256)))
