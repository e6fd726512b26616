import base64
import io

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont, UnidentifiedImageError

from caption_overlay.config import StyleConfig
from caption_overlay.errors import CodecError, InputError
from caption_overlay.layout import BubbleRect, LineLayout
from caption_overlay.measure import load_font


def decode_image(data: bytes) -> Image.Image:
    """Open uploaded image bytes, raising CodecError for anything Pillow can't read."""
    if not data:
        raise InputError("No image file provided")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise CodecError(f"Could not decode background image: {e}") from e
    return img


def _rgba(color: str, opacity: float = 1.0):
    r, g, b, *rest = ImageColor.getrgb(color)
    alpha = rest[0] if rest else 255
    return r, g, b, round(alpha * opacity)


def _box(bubble: BubbleRect, dx: float = 0, dy: float = 0):
    return [
        round(bubble.x + dx),
        round(bubble.y + dy),
        round(bubble.x + bubble.width + dx),
        round(bubble.y + bubble.height + dy),
    ]


def draw_shadow(img: Image.Image, bubble: BubbleRect, config: StyleConfig) -> Image.Image:
    layer = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    draw.rounded_rectangle(
        _box(bubble, config.shadow_offset_x, config.shadow_offset_y),
        radius=round(bubble.radius),
        fill=_rgba(config.shadow_color),
    )
    if config.shadow_blur > 0:
        layer = layer.filter(ImageFilter.GaussianBlur(config.shadow_blur))
    return Image.alpha_composite(img, layer)


def draw_bubble(img: Image.Image, bubble: BubbleRect, config: StyleConfig) -> Image.Image:
    layer = Image.new("RGBA", img.size, (255, 255, 255, 0))
    draw = ImageDraw.Draw(layer)
    draw.rounded_rectangle(
        _box(bubble),
        radius=round(bubble.radius),
        fill=_rgba(config.bubble_color, config.bubble_opacity),
    )
    return Image.alpha_composite(img, layer)


def draw_centered_text(draw: ImageDraw.ImageDraw, x: float, y: float, text: str, font, fill) -> None:
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((x, y), text, font=font, fill=fill, anchor="mm")
        return
    # bitmap fonts don't support anchors; centre the ink box instead
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((x - (left + right) / 2, y - (top + bottom) / 2), text, font=font, fill=fill)


def render(background: Image.Image, layout: LineLayout, config: StyleConfig) -> Image.Image:
    """
    Draw the caption bubbles over the background.

    The background is stretched to exactly width x height. Each line is drawn
    in order (shadow, bubble, text) so a lower bubble overlaps the one above.
    """
    img = background.convert("RGBA").resize((config.width, config.height), Image.Resampling.LANCZOS)
    font = load_font(config.font_family, config.font_weight, config.font_size, config.strict_fonts)
    text_fill = _rgba(config.text_color)

    for line in layout:
        if config.shadow_enabled:
            img = draw_shadow(img, line.bubble, config)
        img = draw_bubble(img, line.bubble, config)
        draw = ImageDraw.Draw(img)
        draw_centered_text(draw, line.text_x, line.text_y, line.text, font, text_fill)

    return img.convert("RGB")


def encode_png(img: Image.Image) -> bytes:
    output_buffer = io.BytesIO()
    img.save(output_buffer, format="PNG")
    return output_buffer.getvalue()


def encode_base64(img: Image.Image) -> str:
    return base64.b64encode(encode_png(img)).decode("ascii")
