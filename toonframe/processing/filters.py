from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image

from ..config import (
    BLACK,
    EIGHT_BIT_PALETTE,
    POP_ART_PALETTE,
    RGB,
    UKIYOE_INK,
    UKIYOE_PALETTE,
    WHITE,
)
from .edges import sobel
from .luminance import gaussian_blur, luminance, rgba_array, to_image
from .masking import mask_image, threshold_channel
from .options import COLORFUL, ColorSlot, GengaConfig
from .palette import posterize, quantize, snap_to_palette

STRONG_EDGE_THRESHOLD = 150
SHADOW_LUMA_MAX = 85
HIGHLIGHT_LUMA_MIN = 170


def _is_empty(img: Image.Image) -> bool:
    width, height = img.size
    return width == 0 or height == 0


def _solid(size, color: RGB) -> Image.Image:
    return Image.new("RGBA", size, color + (255,))


def _opaque(rgb: np.ndarray) -> Image.Image:
    height, width = rgb.shape[:2]
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return to_image(pixels)


def monochrome(img: Image.Image) -> Image.Image:
    if _is_empty(img):
        return img.copy()
    return luminance(img).to_image().convert("RGBA")


def pencil_sketch(img: Image.Image, threshold: int = 15, ink: int = 20) -> Image.Image:
    """Dark strokes wherever brightness jumps against the pixel directly below."""
    if _is_empty(img):
        return img.copy()
    values = luminance(img).values.astype(np.int16)
    strokes = np.full(values.shape, 255, dtype=np.uint8)
    strokes[:-1][np.abs(values[:-1] - values[1:]) > threshold] = ink
    return Image.frombytes("L", img.size, strokes.tobytes()).convert("RGBA")


def cel_shading(img: Image.Image, levels: int = 4, edge_threshold: float = 30) -> Image.Image:
    if _is_empty(img):
        return img.copy()
    edges = sobel(luminance(img)).manhattan_edges(edge_threshold)

    flat = posterize(img, levels)
    flat.putalpha(255)
    return Image.composite(_solid(img.size, BLACK), flat, mask_image(edges))


def pop_art(
    img: Image.Image,
    palette: Sequence[RGB] = POP_ART_PALETTE,
    edge_threshold: float = 35,
) -> Image.Image:
    """Four brightness bands (white, palette[0..2]) with black outlines."""
    if _is_empty(img):
        return img.copy()
    if len(palette) < 3:
        raise ValueError("pop art needs a palette of at least three colours")
    field = luminance(img)
    edges = sobel(field).manhattan_edges(edge_threshold)

    bands = np.empty((256, 3), dtype=np.uint8)
    bands[:81] = palette[2]
    bands[81:151] = palette[1]
    bands[151:211] = palette[0]
    bands[211:] = WHITE

    rgb = bands[field.values]
    rgb[edges] = BLACK
    return _opaque(rgb)


def genga(
    img: Image.Image,
    config: GengaConfig = GengaConfig(),
    improve_quality: bool = True,
    line_threshold: float = 50,
    strong_edge_threshold: float = STRONG_EDGE_THRESHOLD,
) -> Image.Image:
    """Animation keyframe sketch on a white sheet.

    Strong Sobel edges take the outline colour. Weaker edges above
    ``line_threshold`` become shadow strokes in dark regions and highlight
    strokes in bright ones, judged on the unblurred luminance. Everything else
    stays white.
    """

    if _is_empty(img):
        return img.copy()
    pixels = rgba_array(img)
    original = luminance(img)
    field = gaussian_blur(original) if improve_quality else original
    gradient = sobel(field)
    strong = gradient.edges(strong_edge_threshold)
    lines = gradient.edges(line_threshold) & ~strong

    out = np.full(pixels.shape, 255, dtype=np.uint8)

    def draw(where: np.ndarray, slot: ColorSlot) -> None:
        if slot is None:
            return
        if slot is COLORFUL:
            out[where, :3] = pixels[where, :3]
        else:
            out[where, :3] = slot

    draw(strong, config.outline)
    draw(lines & (original.values < SHADOW_LUMA_MAX), config.shadow)
    draw(lines & (original.values > HIGHLIGHT_LUMA_MIN), config.highlight)
    return to_image(out)


def ukiyo_e(
    img: Image.Image,
    palette: Sequence[RGB] = UKIYOE_PALETTE,
    ink: RGB = UKIYOE_INK,
    edge_threshold: float = 80,
) -> Image.Image:
    """Woodblock-print look: flat palette colours under near-black key lines."""
    if _is_empty(img):
        return img.copy()
    edges = sobel(luminance(img)).edges(edge_threshold)
    flat = quantize(img, palette)
    return Image.composite(_solid(img.size, ink), flat, mask_image(edges))


def eight_bit(
    img: Image.Image,
    pixel_size: int = 8,
    palette: Sequence[RGB] = EIGHT_BIT_PALETTE,
) -> Image.Image:
    if pixel_size < 1:
        raise ValueError(f"pixel_size must be at least 1, got {pixel_size}")
    if not palette:
        raise ValueError("palette must not be empty")
    if _is_empty(img):
        return img.copy()
    width, height = img.size
    rgb = rgba_array(img)[..., :3].astype(np.int64)

    # Blocks start every pixel_size pixels; the last row/column may be partial.
    tops = np.arange(0, height, pixel_size)
    lefts = np.arange(0, width, pixel_size)
    block_heights = np.diff(np.append(tops, height))
    block_widths = np.diff(np.append(lefts, width))

    sums = np.add.reduceat(np.add.reduceat(rgb, tops, axis=0), lefts, axis=1)
    counts = np.outer(block_heights, block_widths)[..., None]
    blocks = snap_to_palette(sums / counts, palette)

    expanded = np.repeat(np.repeat(blocks, block_heights, axis=0), block_widths, axis=1)
    return _opaque(expanded)


def silhouette(img: Image.Image, threshold: float = 128) -> Image.Image:
    """Black below ``threshold`` luminance, white at or above it."""
    if _is_empty(img):
        return img.copy()
    return threshold_channel(luminance(img).to_image(), threshold).convert("RGBA")
