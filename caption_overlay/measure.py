import os
from functools import lru_cache
from typing import List

from loguru import logger
from PIL import ImageFont

from caption_overlay.config import StyleConfig
from caption_overlay.errors import ResourceError

FALLBACK_FAMILY = "DejaVu Sans"

# family (lower case) -> weight class -> font files, most specific first.
# Bare file names are resolved by Pillow against the system font directories.
FONT_FILES = {
    "proxima nova": {
        "regular": ["ProximaNova-Regular.otf", "ProximaNova-Regular.ttf"],
        "semibold": ["ProximaNova-Semibold.otf", "ProximaNova-Semibold.ttf"],
        "bold": ["ProximaNova-Bold.otf", "ProximaNova-Bold.ttf"],
    },
    "playfair display": {
        "regular": ["PlayfairDisplay-Regular.ttf", "PlayfairDisplay-VariableFont_wght.ttf"],
        "semibold": ["PlayfairDisplay-SemiBold.ttf", "PlayfairDisplay-VariableFont_wght.ttf"],
        "bold": ["PlayfairDisplay-Bold.ttf", "PlayfairDisplay-VariableFont_wght.ttf"],
    },
    "arial": {
        "regular": ["arial.ttf", "Arial.ttf"],
        "semibold": ["arialbd.ttf", "Arial Bold.ttf"],
        "bold": ["arialbd.ttf", "Arial Bold.ttf"],
    },
    "dejavu sans": {
        "regular": ["DejaVuSans.ttf"],
        "semibold": ["DejaVuSans-Bold.ttf"],
        "bold": ["DejaVuSans-Bold.ttf"],
    },
}

WEIGHT_CLASSES = {
    "normal": "regular", "regular": "regular", "100": "regular", "200": "regular",
    "300": "regular", "400": "regular", "500": "semibold", "600": "semibold",
    "semibold": "semibold", "bold": "bold", "700": "bold", "800": "bold", "900": "bold",
}


def weight_class(weight: str) -> str:
    return WEIGHT_CLASSES.get(str(weight).strip().lower(), "regular")


def font_candidates(family: str, weight: str) -> List[str]:
    """Font files to try for family/weight, heavier-to-lighter within the family."""
    weights = FONT_FILES.get(family.strip().lower())
    if weights is None:
        # Unknown family: let Pillow look it up by name (e.g. "Inter" -> Inter.ttf)
        return [family, family.replace(" ", "") + ".ttf"]

    order = {"bold": ["bold", "semibold", "regular"],
             "semibold": ["semibold", "bold", "regular"],
             "regular": ["regular"]}[weight_class(weight)]
    files = []
    for cls in order:
        for name in weights.get(cls, []):
            if name not in files:
                files.append(name)
    return files


def _with_font_dir(names: List[str]) -> List[str]:
    font_dir = os.getenv("OVERLAY_FONT_DIR")
    if not font_dir:
        return names
    return [os.path.join(font_dir, n) for n in names] + names


def _try_truetype(names: List[str], size: int):
    for name in _with_font_dir(names):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return None


@lru_cache(maxsize=64)
def load_font(family: str, weight: str, size: int, strict: bool = False):
    """
    Load the font for family/weight at `size` px.

    Missing fonts fall back to DejaVu Sans and then Pillow's bundled font,
    with a warning. With strict=True a missing font raises ResourceError.
    """
    font = _try_truetype(font_candidates(family, weight), size)
    if font is not None:
        return font

    if strict:
        raise ResourceError(f"Font '{family}' (weight {weight}) is not available")

    logger.warning(f"Font '{family}' (weight {weight}) not found, falling back to {FALLBACK_FAMILY}")
    font = _try_truetype(font_candidates(FALLBACK_FAMILY, weight), size)
    if font is not None:
        return font

    logger.warning(f"{FALLBACK_FAMILY} not found either, using Pillow's default font")
    return ImageFont.load_default(size=size)


class FontMeasurer:
    """Callable measuring the advance width of a string in pixels."""

    def __init__(self, font):
        self.font = font

    def __call__(self, text: str) -> float:
        return float(self.font.getlength(text))

    @classmethod
    def for_config(cls, config: StyleConfig) -> "FontMeasurer":
        return cls(load_font(config.font_family, config.font_weight, config.font_size, config.strict_fonts))
