"""Render frames as character grids ("ASCII art").

Both entry points share one sampling geometry: the frame is cut into
``columns x rows`` blocks of ``width/columns`` by ``height/rows`` pixels
(real valued, so neighbouring blocks may overlap by a pixel once the span is
rounded up), and each block is summarised by its average. The number of rows
follows from the requested column count, the frame's aspect ratio and the
character cell aspect ratio, which differs between plain text and glyphs drawn
onto an image.

Block sums come from a summed-area table, so every block costs four lookups
whatever its size.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..config import CANVAS_ASPECT, GLYPH_RAMP, TEXT_ASPECT
from .edges import sobel
from .luminance import LuminanceField, luma, luminance, rgba_array
from .masking import background_mask
from .options import BackgroundConfig, OutlineConfig

logger = logging.getLogger(__name__)

_MONO_FONTS = (
    "DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/System/Library/Fonts/Menlo.ttc",
    "cour.ttf",
)


class CellGrid(NamedTuple):
    """Pixel bounds of every block: rows ``tops[r]:bottoms[r]``, columns ``lefts[c]:rights[c]``."""

    tops: np.ndarray
    bottoms: np.ndarray
    lefts: np.ndarray
    rights: np.ndarray

    @property
    def counts(self) -> np.ndarray:
        return np.outer(self.bottoms - self.tops, self.rights - self.lefts)

    def sums(self, values: np.ndarray) -> np.ndarray:
        """Per-block sums of a ``(height, width[, channels])`` array."""
        table = values.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
        pad = [(1, 0), (1, 0)] + [(0, 0)] * (values.ndim - 2)
        table = np.pad(table, pad)
        top, bottom = self.tops[:, None], self.bottoms[:, None]
        left, right = self.lefts[None, :], self.rights[None, :]
        return table[bottom, right] - table[top, right] - table[bottom, left] + table[top, left]


class ColoredAscii(NamedTuple):
    text: str
    image: Image.Image


def grid_size(width: int, height: int, ascii_width: int, aspect: float) -> Tuple[int, int]:
    """Return ``(columns, rows)``; either is 0 when no grid can be produced."""
    if ascii_width <= 0 or width <= 0 or height <= 0:
        return 0, 0
    return ascii_width, math.floor(ascii_width * (height / width) * aspect)


def cell_grid(width: int, height: int, columns: int, rows: int) -> CellGrid:
    block_width = width / columns
    block_height = height / rows
    tops = np.floor(np.arange(rows) * block_height).astype(np.intp)
    lefts = np.floor(np.arange(columns) * block_width).astype(np.intp)
    bottoms = np.minimum(tops + math.ceil(block_height), height)
    rights = np.minimum(lefts + math.ceil(block_width), width)
    return CellGrid(tops, bottoms, lefts, rights)


def charset(ramp: str = GLYPH_RAMP, invert: bool = False) -> str:
    if not ramp:
        raise ValueError("glyph ramp must not be empty")
    return ramp[::-1] if invert else ramp


def ramp_index(value, length: int):
    """Ramp position for a 0-255 brightness; works on scalars and arrays."""
    index = np.clip(np.floor((np.asarray(value, dtype=np.float64) / 255) * (length - 1)), 0, length - 1)
    return index.astype(np.intp) if index.ndim else int(index)


def line_art(img: Image.Image, outline: OutlineConfig, mask: Optional[np.ndarray] = None) -> LuminanceField:
    """Pure line art: 0 on edges stronger than the threshold, 255 elsewhere.

    Background pixels flagged in ``mask`` are left out of edge detection.
    """

    edges = sobel(luminance(img), skip=mask).edges(outline.threshold)
    return LuminanceField(np.where(edges, 0, 255))


def _blank_cells(grid: CellGrid, mask: Optional[np.ndarray]) -> np.ndarray:
    """Cells where background pixels are the strict majority."""
    if mask is None:
        return np.zeros(grid.counts.shape, dtype=bool)
    return grid.sums(mask) * 2 > grid.counts


def _join(chars: str, indices: np.ndarray, blank: np.ndarray) -> str:
    glyphs = np.array(list(chars))[indices]
    glyphs[blank] = " "
    return "\n".join("".join(row) for row in glyphs)


def image_to_ascii(
    img: Image.Image,
    ascii_width: int,
    outline: Optional[OutlineConfig] = None,
    background: Optional[BackgroundConfig] = None,
    invert: bool = False,
    ramp: str = GLYPH_RAMP,
    aspect: float = TEXT_ASPECT,
) -> str:
    """Return the frame as newline-joined rows of exactly ``ascii_width`` characters."""
    chars = charset(ramp, invert)
    width, height = img.size
    columns, rows = grid_size(width, height, ascii_width, aspect)
    if columns == 0 or rows == 0:
        return ""

    mask = background_mask(img, background) if background is not None else None
    field = line_art(img, outline, mask) if outline is not None else luminance(img)

    grid = cell_grid(width, height, columns, rows)
    averages = grid.sums(field.values) / grid.counts
    return _join(chars, ramp_index(averages, len(chars)), _blank_cells(grid, mask))


@lru_cache(maxsize=32)
def glyph_font(size: int, path: Optional[str] = None):
    candidates = ((path,) if path else ()) + _MONO_FONTS
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            if candidate == path:
                logger.warning("Glyph font %s could not be loaded, trying defaults", path)
            continue
    return ImageFont.load_default(size)


def render_colored_ascii(
    img: Image.Image,
    ascii_width: int,
    invert: bool = False,
    outline: Optional[OutlineConfig] = None,
    background: Optional[BackgroundConfig] = None,
    ramp: str = GLYPH_RAMP,
    aspect: float = CANVAS_ASPECT,
    font_path: Optional[str] = None,
) -> ColoredAscii:
    """Draw each block's glyph in the block's average colour.

    The glyph is looked up by the truncated luminance of that average colour.
    The canvas is black. With ``background`` set it starts transparent
    instead and only non-background cells get a black backing, so background
    cells come out fully transparent. Blocks touching an outline edge are
    looked up as luminance 0 but keep their true colour.
    """

    chars = charset(ramp, invert)
    width, height = img.size
    columns, rows = grid_size(width, height, ascii_width, aspect)
    backdrop = (0, 0, 0, 0) if background is not None else (0, 0, 0, 255)
    canvas = Image.new("RGBA", img.size, backdrop)
    if columns == 0 or rows == 0:
        return ColoredAscii("", canvas)

    mask = background_mask(img, background) if background is not None else None
    grid = cell_grid(width, height, columns, rows)
    counts = grid.counts

    colors = np.floor(grid.sums(rgba_array(img)[..., :3]) / counts[..., None] + 0.5).astype(np.int64)
    gray = luma(colors)
    if outline is not None:
        edges = sobel(luminance(img), skip=mask).edges(outline.threshold)
        gray[grid.sums(edges) > 0] = 0

    indices = ramp_index(gray, len(chars))
    blank = _blank_cells(grid, mask)
    text = _join(chars, indices, blank)

    draw = ImageDraw.Draw(canvas)
    visible = np.argwhere(~blank)
    if mask is not None:
        for row, column in visible:
            left, top = int(grid.lefts[column]), int(grid.tops[row])
            right, bottom = int(grid.rights[column]), int(grid.bottoms[row])
            draw.rectangle((left, top, right - 1, bottom - 1), fill=(0, 0, 0, 255))

    font = glyph_font(max(1, int(height / rows)), font_path)
    for row, column in visible:
        char = chars[indices[row, column]]
        if char != " ":
            fill = tuple(int(channel) for channel in colors[row, column]) + (255,)
            draw.text((int(grid.lefts[column]), int(grid.tops[row])), char, font=font, fill=fill)
    return ColoredAscii(text, canvas)
