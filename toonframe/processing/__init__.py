"""Frame effect engine: pure transforms over Pillow images."""

from .edges import Gradient, sobel
from .filters import cel_shading, eight_bit, genga, monochrome, pencil_sketch, pop_art, silhouette, ukiyo_e
from .glyphs import ColoredAscii, cell_grid, grid_size, image_to_ascii, line_art, render_colored_ascii
from .luminance import LuminanceField, convolve, gaussian_blur, luminance
from .masking import background_mask
from .options import COLORFUL, BackgroundConfig, GengaConfig, OutlineConfig, parse_color
from .palette import nearest_color, posterize, quantize, snap_to_palette
from .pipeline import EFFECTS, UnknownEffectError, available_effects, render_effect, render_frames

__all__ = [
    "Gradient",
    "sobel",
    "cel_shading",
    "eight_bit",
    "genga",
    "monochrome",
    "pencil_sketch",
    "pop_art",
    "silhouette",
    "ukiyo_e",
    "ColoredAscii",
    "cell_grid",
    "grid_size",
    "image_to_ascii",
    "line_art",
    "render_colored_ascii",
    "LuminanceField",
    "convolve",
    "gaussian_blur",
    "luminance",
    "background_mask",
    "COLORFUL",
    "BackgroundConfig",
    "GengaConfig",
    "OutlineConfig",
    "parse_color",
    "nearest_color",
    "posterize",
    "quantize",
    "snap_to_palette",
    "EFFECTS",
    "UnknownEffectError",
    "available_effects",
    "render_effect",
    "render_frames",
]
