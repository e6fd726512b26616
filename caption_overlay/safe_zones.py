"""
TikTok UI safe zones.

The app draws its own chrome over the video: profile/follow row at the top,
action buttons down the right edge, caption and music ticker at the bottom.
Zones are stored as fractions of the canvas so they follow any resolution;
the fractions come from the 1024x1536 reference layout.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class SafeZone:
    name: str
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


# name -> (left, top, right, bottom) as fractions of canvas width / height
ZONE_FRACTIONS = {
    "top": (0.0, 0.0, 1.0, 120 / 1536),
    "bottom": (0.0, 1200 / 1536, 1.0, 1.0),
    "right": (870 / 1024, 0.0, 1.0, 1.0),
}


def safe_zones(width: int, height: int) -> Dict[str, SafeZone]:
    return {
        name: SafeZone(name, left * width, top * height, right * width, bottom * height)
        for name, (left, top, right, bottom) in ZONE_FRACTIONS.items()
    }


def max_bubble_width(width: int, height: int) -> float:
    """Widest bubble centred on the midline that stays clear of the right zone and x=0."""
    mid = width / 2
    right_limit = safe_zones(width, height)["right"].left
    half = max(0.0, min(right_limit - mid, mid))
    return 2 * half


def max_text_width(width: int, height: int, horizontal_padding: float) -> float:
    return max(0.0, max_bubble_width(width, height) - 2 * horizontal_padding)


def bottom_limit(width: int, height: int) -> float:
    """Lowest y a caption block may reach before running into the bottom UI."""
    return safe_zones(width, height)["bottom"].top
