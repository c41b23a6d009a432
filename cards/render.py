"""Pillow compositor for square social cards.

Layers, bottom to top: blurred full-bleed cover, dark overlay, the cover
contained in the frame, a bottom gradient, the brand badge in the top-right
corner, and the wrapped title anchored to the bottom edge. All geometry is
expressed for a 1080 px card and multiplied by ``size / 1080``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont, ImageOps, UnidentifiedImageError

from newsroom.errors import PermanentAssetError

logger = logging.getLogger(__name__)

BASE_SIZE = 1080

CHIP_RED = (225, 6, 0, 255)
WHITE = (255, 255, 255, 255)

BACKDROP_ZOOM = 1.08
BACKDROP_BLUR = 18
OVERLAY_ALPHA = 0.35
GRADIENT_HEIGHT = 560
GRADIENT_STOPS: Tuple[Tuple[float, float], ...] = ((0.0, 0.0), (0.35, 0.55), (1.0, 0.92))

BADGE_WIDTH = 200
BADGE_HEIGHT = 48
BADGE_INSET = 44
BADGE_STOPS: Tuple[Tuple[float, Tuple[int, int, int, int]], ...] = (
    (0.0, (0, 102, 255, 242)),
    (0.55, (0, 180, 255, 230)),
    (1.0, (0, 255, 210, 184)),
)
BADGE_LOGO_SIZE = 200
BADGE_LOGO_SHIFT = 5

SIDE_MARGIN = 36
BOTTOM_MARGIN = 15
ROW_GAP = 6
LINE_GAP = 3

CHIP_FONT_SIZE = 76
CHIP_PAD_Y = 16
CHIP_PAD_X = 24
THUMB_SIZE = 150
THUMB_BORDER = 8

LINE_FONT_SIZE = 58
LINE_HEIGHT = 1.18
LETTER_SPACING = 0.08
MAX_TRAILING_LINES = 3


@dataclass(frozen=True)
class CardFonts:
    regular: Optional[bytes] = None
    italic: Optional[bytes] = None


def _open_image(data: bytes, label: str) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise PermanentAssetError(f"{label} could not be decoded") from exc
    return image.convert("RGBA")


def _font(data: Optional[bytes], size: float) -> ImageFont.FreeTypeFont:
    px = max(1, round(size))
    if data:
        try:
            return ImageFont.truetype(io.BytesIO(data), px)
        except OSError:
            logger.warning("cards.font.invalid", extra={"size": px})
    return ImageFont.load_default(size=px)


def _interpolate(stops: Sequence[Tuple[float, float]], t: float) -> float:
    for (lo_t, lo_v), (hi_t, hi_v) in zip(stops, stops[1:]):
        if t <= hi_t:
            span = hi_t - lo_t or 1.0
            return lo_v + (hi_v - lo_v) * (t - lo_t) / span
    return stops[-1][1]


def _interpolate_rgba(stops, t: float) -> Tuple[int, int, int, int]:
    channels = []
    for index in range(4):
        channel_stops = [(pos, color[index]) for pos, color in stops]
        channels.append(round(_interpolate(channel_stops, t)))
    return tuple(channels)  # type: ignore[return-value]


def _backdrop(cover: Image.Image, size: int, scale: float) -> Image.Image:
    zoomed = round(size * BACKDROP_ZOOM)
    filled = ImageOps.fit(cover, (zoomed, zoomed), method=Image.Resampling.LANCZOS)
    offset = (zoomed - size) // 2
    filled = filled.crop((offset, offset, offset + size, offset + size))
    return filled.filter(ImageFilter.GaussianBlur(BACKDROP_BLUR * scale))


def _bottom_gradient(width: int, height: int) -> Image.Image:
    column = Image.new("L", (1, height))
    last = max(1, height - 1)
    column.putdata([round(255 * _interpolate(GRADIENT_STOPS, y / last)) for y in range(height)])
    layer = Image.new("RGBA", (width, height), (0, 0, 0, 255))
    layer.putalpha(column.resize((width, height)))
    return layer


def _badge(logo: Optional[Image.Image], scale: float) -> Image.Image:
    width = round(BADGE_WIDTH * scale)
    height = round(BADGE_HEIGHT * scale)
    fill = Image.new("RGBA", (width, height))
    pixels = []
    for y in range(height):
        for x in range(width):
            # 135deg: top-left to bottom-right
            t = (x / max(1, width - 1) + y / max(1, height - 1)) / 2
            pixels.append(_interpolate_rgba(BADGE_STOPS, t))
    fill.putdata(pixels)

    if logo is not None:
        side = round(BADGE_LOGO_SIZE * scale)
        fitted = ImageOps.fit(logo, (side, side), method=Image.Resampling.LANCZOS)
        top = (side - height) // 2 - round(BADGE_LOGO_SHIFT * scale)
        left = (side - width) // 2
        fill.alpha_composite(fitted.crop((left, top, left + width, top + height)))

    mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=height // 2, fill=255)
    badge = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    badge.paste(fill, (0, 0), mask)
    ImageDraw.Draw(badge).rounded_rectangle(
        (0, 0, width - 1, height - 1), radius=height // 2, outline=(255, 255, 255, 56), width=1
    )
    return badge


def _spaced_width(draw: ImageDraw.ImageDraw, text: str, font, spacing: float) -> float:
    if not text:
        return 0.0
    return sum(draw.textlength(ch, font=font) for ch in text) + spacing * (len(text) - 1)


def _draw_spaced(draw: ImageDraw.ImageDraw, xy: Tuple[float, float], text: str, font, spacing: float) -> None:
    x, y = xy
    for ch in text:
        draw.text((x, y), ch, font=font, fill=WHITE)
        x += draw.textlength(ch, font=font) + spacing


def _text_height(draw: ImageDraw.ImageDraw, text: str, font) -> int:
    left, top, right, bottom = draw.textbbox((0, 0), text or "X", font=font)
    return bottom - top


def render_card(
    cover_bytes: bytes,
    lines: List[str],
    *,
    size: int = BASE_SIZE,
    logo_bytes: Optional[bytes] = None,
    fonts: CardFonts = CardFonts(),
) -> bytes:
    """Composite a ``size`` x ``size`` PNG; raises ``PermanentAssetError`` for undecodable assets."""
    scale = size / BASE_SIZE
    cover = _open_image(cover_bytes, "Cover image")
    logo = _open_image(logo_bytes, "Brand logo") if logo_bytes else None

    canvas = _backdrop(cover, size, scale)
    canvas.alpha_composite(Image.new("RGBA", (size, size), (0, 0, 0, round(255 * OVERLAY_ALPHA))))

    contained = ImageOps.contain(cover, (size, size), method=Image.Resampling.LANCZOS)
    canvas.alpha_composite(contained, ((size - contained.width) // 2, (size - contained.height) // 2))

    gradient_height = min(size, round(GRADIENT_HEIGHT * scale))
    canvas.alpha_composite(_bottom_gradient(size, gradient_height), (0, size - gradient_height))

    badge = _badge(logo, scale)
    inset = round(BADGE_INSET * scale)
    canvas.alpha_composite(badge, (size - inset - badge.width, inset))

    _draw_title(canvas, cover, lines, scale, fonts)

    output = io.BytesIO()
    canvas.convert("RGB").save(output, format="PNG", optimize=True)
    return output.getvalue()


def _draw_title(canvas: Image.Image, cover: Image.Image, lines: List[str], scale: float, fonts: CardFonts) -> None:
    if not lines:
        return
    size = canvas.width
    draw = ImageDraw.Draw(canvas)
    first_line, rest = lines[0], lines[1:1 + MAX_TRAILING_LINES]

    chip_font = _font(fonts.italic, CHIP_FONT_SIZE * scale)
    line_font = _font(fonts.regular, LINE_FONT_SIZE * scale)
    spacing = LETTER_SPACING * LINE_FONT_SIZE * scale
    line_step = LINE_FONT_SIZE * LINE_HEIGHT * scale

    chip_text_h = _text_height(draw, first_line, chip_font)
    chip_h = chip_text_h + 2 * CHIP_PAD_Y * scale
    first_row_h = max(THUMB_SIZE * scale, chip_h)
    rest_h = len(rest) * line_step + max(0, len(rest) - 1) * LINE_GAP * scale
    total = first_row_h + (ROW_GAP * scale + rest_h if rest else 0)

    left = SIDE_MARGIN * scale
    right = size - SIDE_MARGIN * scale
    top = size - BOTTOM_MARGIN * scale - total

    thumb = round(THUMB_SIZE * scale)
    border = round(THUMB_BORDER * scale)
    frame = Image.new("RGBA", (thumb, thumb), WHITE)
    inner = max(1, thumb - 2 * border)
    frame.alpha_composite(ImageOps.fit(cover, (inner, inner), method=Image.Resampling.LANCZOS), (border, border))
    canvas.alpha_composite(frame, (round(left), round(top)))

    chip_w = draw.textlength(first_line, font=chip_font) + 2 * CHIP_PAD_X * scale
    chip_x = left + (right - left - chip_w) / 2
    chip_y = top + (first_row_h - chip_h) / 2
    draw.rectangle((chip_x, chip_y, chip_x + chip_w, chip_y + chip_h), fill=CHIP_RED)
    bbox_top = draw.textbbox((0, 0), first_line, font=chip_font)[1]
    draw.text(
        (chip_x + CHIP_PAD_X * scale, chip_y + CHIP_PAD_Y * scale - bbox_top),
        first_line,
        font=chip_font,
        fill=WHITE,
    )

    y = top + first_row_h + ROW_GAP * scale
    for line in rest:
        width = _spaced_width(draw, line, line_font, spacing)
        x = left + (right - left - width) / 2
        text_h = _text_height(draw, line, line_font)
        bbox_top = draw.textbbox((0, 0), line, font=line_font)[1]
        _draw_spaced(draw, (x, y + (line_step - text_h) / 2 - bbox_top), line, line_font, spacing)
        y += line_step + LINE_GAP * scale
