from __future__ import annotations

import numpy as np
from PIL import Image

from .luminance import rgba_array
from .options import BackgroundConfig


def threshold_channel(channel: Image.Image, threshold: float) -> Image.Image:
    lut = [255 if value >= threshold else 0 for value in range(256)]
    return channel.point(lut)


def background_mask(img: Image.Image, config: BackgroundConfig) -> np.ndarray:
    """Flag pixels whose colour lies within ``config.threshold`` of the top-left pixel.

    Returns a ``(height, width)`` bool array. The comparison is strict, so a
    threshold of zero or below flags nothing.
    """

    pixels = rgba_array(img)
    height, width = pixels.shape[:2]
    if pixels.size == 0 or config.threshold <= 0:
        return np.zeros((height, width), dtype=bool)

    rgb = pixels[..., :3].astype(np.int32)
    distance = ((rgb - rgb[0, 0]) ** 2).sum(axis=2)
    return distance < config.threshold * config.threshold


def mask_image(mask: np.ndarray) -> Image.Image:
    """Render a ``(height, width)`` bool mask as an ``L`` image (255 where set)."""
    height, width = mask.shape
    return Image.frombytes("L", (width, height), np.where(mask, 255, 0).astype(np.uint8).tobytes())
