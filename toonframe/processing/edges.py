from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .luminance import LuminanceField, convolve_signed

SOBEL_X: Tuple[Tuple[int, ...], ...] = (
    (-1, 0, 1),
    (-2, 0, 2),
    (-1, 0, 1),
)
SOBEL_Y: Tuple[Tuple[int, ...], ...] = (
    (-1, -2, -1),
    (0, 0, 0),
    (1, 2, 1),
)


@dataclass(frozen=True, eq=False)
class Gradient:
    """Sobel responses for one luminance field, as ``(height, width)`` arrays.

    ``active`` is False on the 1-pixel border and wherever a skip mask excluded
    the pixel. Inactive pixels carry zero gradient and never classify as
    edges, whatever the threshold. Compute this once and ask it for as many
    thresholds as needed.
    """

    gx: np.ndarray
    gy: np.ndarray
    magnitude: np.ndarray
    active: np.ndarray

    def edges(self, threshold: float) -> np.ndarray:
        return self.active & (self.magnitude > threshold)

    def manhattan_edges(self, threshold: float) -> np.ndarray:
        return self.active & ((np.abs(self.gx) + np.abs(self.gy)) > threshold)


def interior_mask(width: int, height: int) -> np.ndarray:
    mask = np.zeros((height, width), dtype=bool)
    mask[1:-1, 1:-1] = True
    return mask


def sobel(field: LuminanceField, skip: Optional[np.ndarray] = None) -> Gradient:
    gx = convolve_signed(field, SOBEL_X)
    gy = convolve_signed(field, SOBEL_Y)
    active = interior_mask(field.width, field.height)
    if skip is not None:
        skipped = np.asarray(skip, dtype=bool).reshape(field.height, field.width)
        active &= ~skipped
        gx[skipped] = 0
        gy[skipped] = 0
    return Gradient(gx, gy, np.hypot(gx, gy), active)
