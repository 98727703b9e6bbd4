from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Union

from PIL import Image

from ..config import SETTINGS, EngineSettings
from .filters import cel_shading, eight_bit, genga, monochrome, pencil_sketch, pop_art, silhouette, ukiyo_e
from .glyphs import image_to_ascii, render_colored_ascii
from .options import BackgroundConfig, GengaConfig, OutlineConfig

logger = logging.getLogger(__name__)

Rendered = Union[Image.Image, str]
EffectFn = Callable[[Image.Image, EngineSettings], Rendered]


class UnknownEffectError(ValueError):
    pass


def outline_config(settings: EngineSettings) -> Optional[OutlineConfig]:
    return OutlineConfig(settings.ascii_line_threshold) if settings.ascii_outline else None


def background_config(settings: EngineSettings) -> Optional[BackgroundConfig]:
    return BackgroundConfig(settings.ascii_bg_threshold) if settings.ascii_transparent_bg else None


def genga_config(settings: EngineSettings) -> GengaConfig:
    return GengaConfig.parse(settings.genga_outline, settings.genga_shadow, settings.genga_highlight)


def _passthrough(img: Image.Image, settings: EngineSettings) -> Image.Image:
    return img.convert("RGBA")


def _ascii_text(img: Image.Image, settings: EngineSettings) -> str:
    return image_to_ascii(
        img,
        settings.ascii_width,
        outline=outline_config(settings),
        background=background_config(settings),
        invert=settings.ascii_invert,
    )


def _ascii_color(img: Image.Image, settings: EngineSettings) -> Image.Image:
    return render_colored_ascii(
        img,
        settings.ascii_width,
        invert=settings.ascii_invert,
        outline=outline_config(settings),
        background=background_config(settings),
        font_path=settings.glyph_font,
    ).image


EFFECTS: Dict[str, EffectFn] = {
    "none": _passthrough,
    "monochrome": lambda img, settings: monochrome(img),
    "pencil": lambda img, settings: pencil_sketch(img),
    "cel": lambda img, settings: cel_shading(img),
    "popart": lambda img, settings: pop_art(img),
    "genga": lambda img, settings: genga(
        img,
        genga_config(settings),
        improve_quality=settings.genga_improve_quality,
        line_threshold=settings.genga_line_threshold,
    ),
    "ukiyo-e": lambda img, settings: ukiyo_e(img),
    "8bit": lambda img, settings: eight_bit(img, settings.eight_bit_pixel_size),
    "silhouette": lambda img, settings: silhouette(img, settings.silhouette_threshold),
    "ascii": _ascii_text,
    "ascii-color": _ascii_color,
}


def available_effects() -> List[str]:
    return list(EFFECTS)


def render_effect(effect: str, img: Image.Image, settings: EngineSettings = SETTINGS) -> Rendered:
    """Apply one named effect to one frame.

    ``ascii`` yields the character grid; every other effect yields a new RGBA
    image the size of ``img``.
    """

    try:
        fn = EFFECTS[effect]
    except KeyError:
        raise UnknownEffectError(f"Unknown effect: {effect}") from None

    started = time.perf_counter()
    result = fn(img, settings)
    logger.debug(
        "Rendered %s on %dx%d frame in %.1f ms",
        effect,
        img.size[0],
        img.size[1],
        (time.perf_counter() - started) * 1000,
    )
    return result


def render_frames(
    frames: Iterable[Image.Image],
    effect: str,
    settings: EngineSettings = SETTINGS,
    max_workers: Optional[int] = None,
) -> List[Rendered]:
    """Render a frame sequence in order. Frames share no state, so they fan out."""
    if effect not in EFFECTS:
        raise UnknownEffectError(f"Unknown effect: {effect}")
    frames = list(frames)
    workers = max_workers if max_workers is not None else settings.render_workers
    logger.info("Rendering %d frames with %s", len(frames), effect)

    if workers == 1:
        return [render_effect(effect, frame, settings) for frame in frames]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda frame: render_effect(effect, frame, settings), frames))
