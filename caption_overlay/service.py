import base64
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from loguru import logger

from caption_overlay.balancer import BalanceOptions
from caption_overlay.config import StyleConfig, config_from_env
from caption_overlay.errors import InputError
from caption_overlay.layout import LineLayout, compute_layout
from caption_overlay.measure import FontMeasurer
from caption_overlay.renderer import decode_image, encode_png, render
from caption_overlay.splitter import LinePreview, is_auto_wrapped, preview_lines, split_text


@dataclass
class OverlayResult:
    png: bytes
    lines: List[str]
    layout: LineLayout
    config: StyleConfig

    @property
    def image_base64(self) -> str:
        return base64.b64encode(self.png).decode("ascii")


class OverlayService:
    """
    Caption overlay with a replaceable default style.

    The default StyleConfig is swapped as a whole by configure(); each call
    reads it once up front, so a concurrent configure() only affects later
    calls.
    """

    def __init__(self, config: Optional[StyleConfig] = None):
        self._config = config if config is not None else config_from_env()

    @property
    def config(self) -> StyleConfig:
        return self._config

    def configure(self, **changes: Any) -> StyleConfig:
        """Validate changes against the current default and install the result."""
        new_config = self._config.merged(**changes)
        self._config = new_config
        logger.info(f"Overlay configuration updated: {sorted(changes)}")
        return new_config

    def replace_config(self, config: StyleConfig) -> None:
        self._config = config

    def layout_caption(
        self,
        caption: str,
        config: Optional[StyleConfig] = None,
        options: Optional[BalanceOptions] = None,
    ) -> Tuple[List[str], LineLayout]:
        config = config or self._config
        measure = FontMeasurer.for_config(config)
        lines = split_text(caption, config, measure, options)
        layout = compute_layout(lines, config, measure, clamp_to_safe_zone=is_auto_wrapped(caption))
        return lines, layout

    def render_overlay(
        self,
        image_bytes: bytes,
        caption: str,
        config: Optional[StyleConfig] = None,
        options: Optional[BalanceOptions] = None,
    ) -> OverlayResult:
        config = config or self._config
        if not caption or not caption.strip():
            raise InputError("No text provided")
        if not image_bytes:
            raise InputError("No image file provided")

        logger.info(f"Processing image ({len(image_bytes)} bytes), adding text: {caption!r}")
        background = decode_image(image_bytes)
        lines, layout = self.layout_caption(caption, config, options)
        png = encode_png(render(background, layout, config))
        logger.info(f"Text overlay rendered: {len(lines)} line(s), {len(png)} bytes")
        return OverlayResult(png=png, lines=lines, layout=layout, config=config)

    def render_overlay_base64(
        self,
        image_bytes: bytes,
        caption: str,
        config: Optional[StyleConfig] = None,
        options: Optional[BalanceOptions] = None,
    ) -> str:
        return self.render_overlay(image_bytes, caption, config, options).image_base64

    def preview(
        self,
        caption: str,
        options: Optional[BalanceOptions] = None,
        config: Optional[StyleConfig] = None,
    ) -> List[LinePreview]:
        """Lines render_overlay would draw for the same caption, config and options."""
        config = config or self._config
        return preview_lines(caption, config, FontMeasurer.for_config(config), options)
