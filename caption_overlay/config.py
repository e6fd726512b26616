import os
from enum import Enum
from typing import Any, Dict

from dotenv import load_dotenv
from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from caption_overlay.errors import ConfigError


class Position(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class LinePolicy(str, Enum):
    WRAP = "wrap"          # greedy word wrap bounded by the safe zones
    BALANCED = "balanced"  # balanced packer, then fitted to the same bound


class StyleConfig(BaseModel):
    """
    Caption style for one render.

    Frozen: an update builds a new StyleConfig (see merged), so a render that
    snapshotted the old value never sees a half-applied change. Invalid values
    raise ConfigError.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Canvas (9:16 vertical video frame)
    width: int = Field(1024, gt=0)
    height: int = Field(1536, gt=0)

    # Text
    font_family: str = Field("Proxima Nova", min_length=1)
    font_size: int = Field(65, gt=0)
    font_weight: str = Field("600", min_length=1)
    text_color: str = "#131313"

    # Bubbles
    bubble_color: str = "#FFFFFF"
    bubble_opacity: float = Field(1.0, ge=0.0, le=1.0)
    bubble_padding: float = Field(20, ge=0)
    horizontal_padding: float = Field(26, ge=0)
    bubble_radius: float = Field(25, ge=0)
    first_line_extra_padding: float = Field(0, ge=0)
    bubble_overlap: float = Field(10, ge=0)

    # Drop shadow, off by default
    shadow_enabled: bool = False
    shadow_color: str = "#0000004D"
    shadow_blur: float = Field(4, ge=0)
    shadow_offset_x: float = 2
    shadow_offset_y: float = 2

    # Layout
    max_width: int = Field(900, gt=0)
    line_height: float = Field(1.2, gt=0)
    position: Position = Position.CENTER
    vertical_offset: float = -50
    line_policy: LinePolicy = LinePolicy.WRAP

    strict_fonts: bool = False

    def __init__(self, **values: Any):
        try:
            super().__init__(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid style configuration: {_describe(e)}") from e

    @field_validator("text_color", "bubble_color", "shadow_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        try:
            ImageColor.getrgb(value)
        except ValueError:
            raise ValueError(f"unrecognised colour {value!r}")
        return value

    @model_validator(mode="after")
    def _check_overlap(self) -> "StyleConfig":
        # Overlapping by a whole bubble or more would stack lines out of order
        if self.bubble_overlap >= self.line_pixel_height + 2 * self.bubble_padding:
            raise ValueError("bubble_overlap must be smaller than the bubble height")
        return self

    @property
    def line_pixel_height(self) -> float:
        return self.font_size * self.line_height

    def merged(self, **changes: Any) -> "StyleConfig":
        """Return a new validated config with `changes` applied."""
        values = self.model_dump()
        values.update(changes)
        return make_config(**values)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors()
    )


def make_config(**values: Any) -> StyleConfig:
    """Build a StyleConfig; bad values raise ConfigError."""
    return StyleConfig(**values)


# Environment variable -> StyleConfig field
ENV_OVERRIDES = {
    "OVERLAY_WIDTH": "width",
    "OVERLAY_HEIGHT": "height",
    "OVERLAY_FONT_FAMILY": "font_family",
    "OVERLAY_FONT_SIZE": "font_size",
    "OVERLAY_FONT_WEIGHT": "font_weight",
    "OVERLAY_TEXT_COLOR": "text_color",
    "OVERLAY_BUBBLE_COLOR": "bubble_color",
    "OVERLAY_POSITION": "position",
    "OVERLAY_LINE_POLICY": "line_policy",
}


def config_from_env() -> StyleConfig:
    """Default StyleConfig with overrides from the environment / .env file."""
    load_dotenv()
    values: Dict[str, Any] = {}
    for env_name, field in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw:
            values[field] = raw
    return make_config(**values)
