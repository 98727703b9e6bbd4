"""Configuration records consumed by the effect engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from PIL import ImageColor

from ..config import RGB


class _Colorful:
    """Sentinel for a colour slot that takes the source pixel's own colour."""

    _instance: Optional["_Colorful"] = None

    def __new__(cls) -> "_Colorful":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "COLORFUL"


COLORFUL = _Colorful()

ColorSlot = Union[RGB, _Colorful, None]


def parse_color(value: Union[str, Sequence[int], _Colorful, None]) -> ColorSlot:
    """Turn ``"#rrggbb"``, a CSS name, an RGB triple or ``"colorful"`` into a slot.

    ``None`` and the empty string mean "draw nothing" for that slot.
    """

    if value is None or value is COLORFUL:
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lower() == "colorful":
            return COLORFUL
        rgb = ImageColor.getrgb(text)
        return (rgb[0], rgb[1], rgb[2])
    channels = tuple(int(channel) for channel in value)
    if len(channels) != 3 or not all(0 <= channel <= 255 for channel in channels):
        raise ValueError(f"Expected an RGB triple, got {value!r}")
    return channels  # type: ignore[return-value]


@dataclass(frozen=True)
class OutlineConfig:
    threshold: float


@dataclass(frozen=True)
class BackgroundConfig:
    threshold: float


@dataclass(frozen=True)
class GengaConfig:
    outline: ColorSlot = (0, 0, 0)
    shadow: ColorSlot = (59, 130, 246)
    highlight: ColorSlot = (244, 63, 94)

    @classmethod
    def parse(cls, outline, shadow, highlight) -> "GengaConfig":
        return cls(parse_color(outline), parse_color(shadow), parse_color(highlight))
