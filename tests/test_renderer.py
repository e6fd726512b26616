import base64
import io

import pytest
from PIL import Image

from caption_overlay.errors import CodecError, InputError, ResourceError
from caption_overlay.layout import compute_layout
from caption_overlay.measure import FontMeasurer, font_candidates, load_font, weight_class
from caption_overlay.renderer import decode_image, encode_base64, encode_png, render


def solid(color, size=(32, 48)):
    return Image.new("RGB", size, color)


def test_weight_class():
    assert weight_class("600") == "semibold"
    assert weight_class("Bold") == "bold"
    assert weight_class("normal") == "regular"
    assert weight_class("unknown") == "regular"


def test_font_candidates_prefer_requested_weight():
    files = font_candidates("Proxima Nova", "600")
    assert files[0].startswith("ProximaNova-Semibold")
    assert files[-1].startswith("ProximaNova-Regular")


def test_missing_font_strict_raises():
    with pytest.raises(ResourceError):
        load_font("No Such Font Family", "normal", 40, strict=True)


def test_missing_font_falls_back():
    font = load_font("No Such Font Family", "normal", 40)
    assert font.getlength("Hello") > 0


def test_font_measurer(config):
    measure = FontMeasurer.for_config(config)
    assert measure("Hello world") > measure("Hello")
    assert isinstance(measure("Hi"), float)


def test_decode_image_rejects_garbage():
    with pytest.raises(CodecError):
        decode_image(b"definitely not an image")


def test_decode_image_requires_data():
    with pytest.raises(InputError):
        decode_image(b"")


def test_decode_image(png_bytes):
    assert decode_image(png_bytes).size == (64, 96)


def test_render_stretches_background_to_canvas(config):
    layout = compute_layout(["Hello world"], config, FontMeasurer.for_config(config))
    img = render(solid((0, 0, 0)), layout, config)
    assert img.size == (config.width, config.height)
    assert img.mode == "RGB"
    assert img.getpixel((5, 5)) == (0, 0, 0)


def test_render_draws_bubble(config):
    layout = compute_layout(["Hello world"], config, FontMeasurer.for_config(config))
    bubble = layout.lines[0].bubble
    img = render(solid((0, 0, 0)), layout, config)
    assert img.getpixel((round(bubble.x + 5), round(bubble.y + bubble.height / 2))) == (255, 255, 255)


def test_render_bubble_opacity(config):
    translucent = config.merged(bubble_opacity=0.5)
    layout = compute_layout(["Hello"], translucent, FontMeasurer.for_config(translucent))
    bubble = layout.lines[0].bubble
    img = render(solid((0, 0, 0)), layout, translucent)
    r, g, b = img.getpixel((round(bubble.x + 5), round(bubble.y + bubble.height / 2)))
    assert abs(r - 128) <= 2 and r == g == b


def test_render_drop_shadow(config):
    shadowed = config.merged(shadow_enabled=True, shadow_color="#000000", shadow_blur=0,
                             shadow_offset_x=0, shadow_offset_y=8)
    layout = compute_layout(["Hello"], shadowed, FontMeasurer.for_config(shadowed))
    bubble = layout.lines[0].bubble
    img = render(solid((255, 255, 255)), layout, shadowed)
    below = (round(bubble.x + bubble.width / 2), round(bubble.bottom + 4))
    assert img.getpixel(below) == (0, 0, 0)


def test_encode_png_and_base64():
    img = solid((10, 20, 30))
    png = encode_png(img)
    assert png.startswith(b"\x89PNG")
    decoded = Image.open(io.BytesIO(base64.b64decode(encode_base64(img))))
    assert decoded.size == img.size
