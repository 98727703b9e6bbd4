import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

RGB = Tuple[int, int, int]
Palette = Tuple[RGB, ...]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


@dataclass(frozen=True)
class EngineSettings:
    source_url: str
    port: int
    timeout: float
    retries: int
    cache_ttl: float
    log_level: str
    default_effect: str
    genga_outline: str
    genga_shadow: str
    genga_highlight: str
    genga_improve_quality: bool
    genga_line_threshold: float
    eight_bit_pixel_size: int
    silhouette_threshold: float
    ascii_width: int
    ascii_outline: bool
    ascii_line_threshold: float
    ascii_transparent_bg: bool
    ascii_bg_threshold: float
    ascii_invert: bool
    glyph_font: Optional[str]
    render_workers: Optional[int]

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            source_url=os.getenv("SOURCE_URL", "http://127.0.0.1:8080/frame.png"),
            port=int(os.getenv("PORT", "5500")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            cache_ttl=float(os.getenv("CACHE_TTL", "5")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            default_effect=os.getenv("DEFAULT_EFFECT", "genga").lower(),
            genga_outline=os.getenv("GENGA_OUTLINE", "#000000"),
            genga_shadow=os.getenv("GENGA_SHADOW", "#3b82f6"),
            genga_highlight=os.getenv("GENGA_HIGHLIGHT", "#f43f5e"),
            genga_improve_quality=_env_bool("GENGA_IMPROVE", "true"),
            genga_line_threshold=float(os.getenv("GENGA_LINE_THR", "50")),
            eight_bit_pixel_size=int(os.getenv("EIGHT_BIT_PIXEL_SIZE", "8")),
            silhouette_threshold=float(os.getenv("SILHOUETTE_THR", "128")),
            ascii_width=int(os.getenv("ASCII_WIDTH", "100")),
            ascii_outline=_env_bool("ASCII_OUTLINE", "false"),
            ascii_line_threshold=float(os.getenv("ASCII_LINE_THR", "50")),
            ascii_transparent_bg=_env_bool("ASCII_TRANSPARENT_BG", "false"),
            ascii_bg_threshold=float(os.getenv("ASCII_BG_THR", "20")),
            ascii_invert=_env_bool("ASCII_INVERT", "false"),
            glyph_font=os.getenv("GLYPH_FONT") or None,
            render_workers=_env_optional_int("RENDER_WORKERS"),
        )


SETTINGS = EngineSettings.from_env()


# Lightest-looking glyph first, densest last.
GLYPH_RAMP = " `.'\"^,:;Il!i~+_-?][}{1)(|/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"

# Character cell aspect ratios: plain text vs. glyphs drawn onto an image.
TEXT_ASPECT = 0.5
CANVAS_ASPECT = 0.6

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)

POP_ART_PALETTE: Palette = (
    (255, 237, 0),  # yellow
    (255, 0, 140),  # magenta
    (0, 237, 255),  # cyan
)

UKIYOE_PALETTE: Palette = (
    (243, 234, 212),  # cream
    (208, 160, 114),  # light brown
    (104, 134, 149),  # muted blue
    (177, 78, 78),  # muted red
    (60, 93, 85),  # dark teal
)
UKIYOE_INK: RGB = (22, 22, 22)

EIGHT_BIT_PALETTE: Palette = (
    (0, 0, 0),
    (255, 255, 255),
    (136, 0, 0),
    (170, 255, 238),
    (204, 68, 68),
    (0, 204, 85),
    (0, 0, 170),
    (238, 238, 119),
    (221, 136, 85),
    (102, 68, 0),
    (255, 119, 119),
    (51, 204, 204),
    (119, 119, 255),
    (255, 119, 255),
    (119, 255, 119),
    (170, 170, 170),
)


def configure_logging(settings: EngineSettings = SETTINGS) -> logging.Logger:
    logging.basicConfig(level=settings.log_level)
    return logging.getLogger("toonframe")
