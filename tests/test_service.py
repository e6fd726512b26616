import base64
import io

import pytest
from PIL import Image

from caption_overlay.balancer import BalanceOptions
from caption_overlay.config import LinePolicy, StyleConfig
from caption_overlay.errors import CodecError, ConfigError, InputError
from caption_overlay.service import OverlayService


@pytest.fixture
def service():
    return OverlayService(StyleConfig())


def test_render_overlay_returns_png(service, png_bytes):
    result = service.render_overlay(png_bytes, "Line one\nLine two\nLine three")
    assert result.lines == ["Line one", "Line two", "Line three"]
    assert len(result.layout) == 3
    img = Image.open(io.BytesIO(result.png))
    assert img.size == (1024, 1536)
    assert result.image_base64


def test_render_overlay_base64(service, png_bytes):
    encoded = service.render_overlay_base64(png_bytes, "Hello")
    img = Image.open(io.BytesIO(base64.b64decode(encoded)))
    assert img.size == (1024, 1536)


@pytest.mark.parametrize("caption", [
    "Line one\\nLine two",
    "Skincare products I'd NEVER recommend my clients from a esthetician of 7+ years",
])
def test_preview_matches_render(service, png_bytes, caption):
    result = service.render_overlay(png_bytes, caption)
    assert [p.text for p in service.preview(caption)] == result.lines


@pytest.mark.parametrize("policy", [LinePolicy.WRAP, LinePolicy.BALANCED])
def test_preview_with_options_matches_render(service, png_bytes, policy):
    config = service.config.merged(line_policy=policy)
    options = BalanceOptions(target_words_per_line=2, min_words_per_line=2, max_words_per_line=3)
    caption = "aa bb cc dd ee ff"
    result = service.render_overlay(png_bytes, caption, config, options)
    assert [p.text for p in service.preview(caption, options, config)] == result.lines


def test_balance_options_reach_render(service, png_bytes):
    config = service.config.merged(line_policy=LinePolicy.BALANCED)
    options = BalanceOptions(target_words_per_line=2, min_words_per_line=2, max_words_per_line=2)
    assert service.render_overlay(png_bytes, "aa bb cc dd ee ff", config, options).lines == ["aa bb", "cc dd", "ee ff"]


def test_single_explicit_line_is_clamped_like_wrapped_text(service):
    bottom = service.config.merged(position="bottom", font_size=200)
    _, layout = service.layout_caption("Hi\n", bottom)
    assert layout.bottom <= 1200 + 1e-6


def test_auto_wrapped_caption_clears_bottom_zone(service):
    bottom = service.config.merged(position="bottom")
    _, layout = service.layout_caption("A caption long enough to need a few lines of wrapping here", bottom)
    assert layout.bottom <= 1200 + 1e-6


def test_explicit_caption_not_clamped(service):
    bottom = service.config.merged(position="bottom")
    _, layout = service.layout_caption("one\ntwo\nthree", bottom)
    assert layout.bottom > 1200


@pytest.mark.parametrize("caption", ["", "   "])
def test_blank_caption(service, png_bytes, caption):
    with pytest.raises(InputError):
        service.render_overlay(png_bytes, caption)


def test_missing_image(service):
    with pytest.raises(InputError):
        service.render_overlay(b"", "Hello")


def test_corrupt_image(service):
    with pytest.raises(CodecError):
        service.render_overlay(b"\x89PNG\r\n\x1a\nbroken", "Hello")


def test_configure_replaces_config(service):
    before = service.config
    after = service.configure(font_size=48, position="top")
    assert service.config is after
    assert after is not before
    assert before.font_size == 65
    assert after.font_size == 48


def test_configure_rejects_invalid_and_keeps_old(service):
    before = service.config
    with pytest.raises(ConfigError):
        service.configure(bubble_opacity=2)
    assert service.config is before


def test_explicit_config_does_not_touch_default(service, png_bytes):
    result = service.render_overlay(png_bytes, "Hello", service.config.merged(font_size=30))
    assert result.config.font_size == 30
    assert service.config.font_size == 65
