"""
Bubble geometry for a list of caption lines.

Every line gets its own rounded "pill" centred on the canvas midline. Pills
are stacked top to bottom and overlap slightly so they read as one block.
Nothing here draws or decodes images; widths come from the measure callable.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from caption_overlay.config import Position, StyleConfig
from caption_overlay.safe_zones import bottom_limit

TOP_FRACTION = 0.15     # top position: block starts 15% down the canvas
BOTTOM_FRACTION = 0.85  # bottom position: block ends 15% above the bottom edge


@dataclass(frozen=True)
class BubbleRect:
    x: float
    y: float
    width: float
    height: float
    radius: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PlacedLine:
    index: int
    text: str
    text_width: float
    bubble: BubbleRect
    text_x: float  # anchor: horizontal centre of the text
    text_y: float  # anchor: vertical middle of the text


@dataclass
class LineLayout:
    lines: List[PlacedLine] = field(default_factory=list)

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    @property
    def top(self) -> float:
        return self.lines[0].bubble.y if self.lines else 0.0

    @property
    def bottom(self) -> float:
        return self.lines[-1].bubble.bottom if self.lines else 0.0

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def texts(self) -> List[str]:
        return [line.text for line in self.lines]


def clamp_radius(radius: float, width: float, height: float) -> float:
    """Corner radius no larger than half the shorter side, so the arcs never cross."""
    return max(0.0, min(radius, width / 2, height / 2))


def line_paddings(index: int, config: StyleConfig):
    """(vertical, horizontal) padding for the line at index."""
    extra = config.first_line_extra_padding if index == 0 else 0
    return config.bubble_padding + extra, config.horizontal_padding + extra


def bubble_heights(line_count: int, config: StyleConfig) -> List[float]:
    heights = []
    for i in range(line_count):
        pad_v, _ = line_paddings(i, config)
        heights.append(config.line_pixel_height + 2 * pad_v)
    return heights


def stack_height(line_count: int, config: StyleConfig) -> float:
    if line_count == 0:
        return 0.0
    return sum(bubble_heights(line_count, config)) - (line_count - 1) * config.bubble_overlap


def vertical_start(block_height: float, config: StyleConfig) -> float:
    """Top of the block for config.position, before vertical_offset."""
    if config.position == Position.TOP:
        return config.height * TOP_FRACTION
    if config.position == Position.BOTTOM:
        return config.height * BOTTOM_FRACTION - block_height
    return (config.height - block_height) / 2


def compute_layout(
    lines: Sequence[str],
    config: StyleConfig,
    measure: Optional[Callable[[str], float]] = None,
    clamp_to_safe_zone: bool = False,
) -> LineLayout:
    """
    Place one bubble per line.

    With clamp_to_safe_zone the block is pushed up until it clears the bottom
    UI zone. It is never pushed down, and a block taller than the free area
    keeps the bottom-clamped position even if that runs past the top.
    """
    if not lines:
        return LineLayout()

    if measure is None:
        from caption_overlay.measure import FontMeasurer

        measure = FontMeasurer.for_config(config)

    heights = bubble_heights(len(lines), config)
    block_height = stack_height(len(lines), config)
    y = vertical_start(block_height, config) + config.vertical_offset

    if clamp_to_safe_zone:
        overflow = y + block_height - bottom_limit(config.width, config.height)
        if overflow > 0:
            y -= overflow

    center_x = config.width / 2
    placed = []
    for i, text in enumerate(lines):
        pad_v, pad_h = line_paddings(i, config)
        text_width = measure(text)
        width = min(text_width + 2 * pad_h, config.width)
        height = heights[i]
        bubble = BubbleRect(
            x=(config.width - width) / 2,
            y=y,
            width=width,
            height=height,
            radius=clamp_radius(config.bubble_radius, width, height),
        )
        placed.append(PlacedLine(
            index=i,
            text=text,
            text_width=text_width,
            bubble=bubble,
            text_x=center_x,
            text_y=y + pad_v + config.line_pixel_height / 2,
        ))
        y += height - config.bubble_overlap

    return LineLayout(placed)
