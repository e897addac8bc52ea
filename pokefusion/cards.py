"""PNG rendering for fusion cards and the missing-sprite placeholder."""

from __future__ import annotations

import io
import logging
import pathlib
from functools import lru_cache
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .models import FusionResult

logger = logging.getLogger(__name__)

CARD_SIZE = (800, 600)
SPRITE_SIZE = 96
STAT_LABELS = [
    ("HP", "HP"), ("ATK", "ATTACK"), ("DEF", "DEFENSE"),
    ("SPA", "SPECIAL_ATTACK"), ("SPD", "SPECIAL_DEFENSE"), ("SPE", "SPEED"),
]

# type colours used for the badges under the title
TYPE_COLORS = {
    "normal": (168, 168, 120), "fire": (240, 128, 48), "water": (104, 144, 240),
    "grass": (120, 200, 80), "electric": (248, 208, 48), "ice": (152, 216, 216),
    "fighting": (192, 48, 40), "poison": (160, 64, 160), "ground": (224, 192, 104),
    "flying": (168, 144, 240), "psychic": (248, 88, 136), "bug": (168, 184, 32),
    "rock": (184, 160, 56), "ghost": (112, 88, 152), "dragon": (112, 56, 248),
    "dark": (112, 88, 72), "steel": (184, 184, 208), "fairy": (238, 153, 172),
}


def _ensure_rgba(img: Image.Image) -> Image.Image:
    return img.convert("RGBA") if img.mode != "RGBA" else img


def to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _fonts():
    try:
        return (
            ImageFont.truetype("DejaVuSans-Bold.ttf", 42),
            ImageFont.truetype("DejaVuSans.ttf", 24),
            ImageFont.truetype("DejaVuSans.ttf", 18),
        )
    except OSError:
        f = ImageFont.load_default()
        return f, f, f


def _text_at(draw, xy, text, font, fill, align="left"):
    """Draw text left, centred ("mm") or right ("ra") of the anchor point."""
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x, y = xy
    if align == "mm":
        x, y = x - (right - left) // 2, y - (bottom - top) // 2
    elif align == "ra":
        x -= right - left
    draw.text((x, y), text, fill=fill, font=font)


def upscale_pxnn(img: Image.Image, scale: int) -> Image.Image:
    """Crisp integer nearest-neighbor (sprites are pixel art)."""
    img = _ensure_rgba(img)
    scale = max(1, int(scale))
    return img.resize((img.width * scale, img.height * scale), resample=Image.NEAREST)


def render_halo(size) -> Image.Image:
    w, h = size
    bg = Image.new("RGBA", (w, h), (24, 24, 32, 255))
    cx, cy = w / 2, h / 2
    Y, X = np.ogrid[:h, :w]
    d = np.sqrt((X - cx) ** 2 + (Y - cy) ** 2) / max(w, h)
    a = (255 * np.clip(1 - d * 1.6, 0, 1)).astype(np.uint8)
    glow = Image.new("RGBA", (w, h), (130, 180, 255, 0))
    glow.putalpha(Image.fromarray(a, "L").filter(ImageFilter.GaussianBlur(radius=12)))
    bg.alpha_composite(glow)
    return bg


def compose_on_halo(fg: Image.Image, pad: int = 12, scale: int = 3) -> Image.Image:
    """Center the sprite on a halo background with padding."""
    fg = _ensure_rgba(fg)
    w = (fg.width + pad * 2) * scale
    h = (fg.height + pad * 2) * scale
    bg = render_halo((w, h))
    up = upscale_pxnn(fg, scale)
    bg.alpha_composite(up, ((w - up.width) // 2, (h - up.height) // 2))
    return bg


@lru_cache(maxsize=1)
def missing_sprite() -> Image.Image:
    img = Image.new("RGBA", (SPRITE_SIZE, SPRITE_SIZE), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((8, 8, SPRITE_SIZE - 8, SPRITE_SIZE - 8), outline=(200, 200, 215, 255), width=4)
    _, font, _ = _fonts()
    _text_at(draw, (SPRITE_SIZE // 2, SPRITE_SIZE // 2), "?", font, (200, 200, 215, 255), "mm")
    return img


@lru_cache(maxsize=1)
def missing_sprite_png() -> bytes:
    return to_png_bytes(missing_sprite())


def load_sprite(path: Optional[pathlib.Path]) -> Image.Image:
    if path is None:
        return missing_sprite()
    try:
        with Image.open(path) as im:
            return im.convert("RGBA")
    except (OSError, ValueError) as e:
        logger.warning("Could not read sprite %s: %s", path, e)
        return missing_sprite()


def draw_card(fusion: FusionResult, sprite: Image.Image) -> Image.Image:
    W, H = CARD_SIZE
    card = Image.new("RGBA", (W, H), (18, 18, 20, 255))
    card.alpha_composite(Image.new("RGBA", (W, 90), (28, 28, 36, 255)), (0, 0))
    draw = ImageDraw.Draw(card)
    font_title, font_sub, font_small = _fonts()

    draw.text((24, 16), fusion.fusion_name, fill=(240, 240, 255, 255), font=font_title)
    draw.text((24, 62), f"{fusion.head_name} + {fusion.body_name}", fill=(190, 190, 205, 255), font=font_small)

    # type badges, right-aligned in the header
    x = W - 24
    for t in reversed(fusion.types):
        bw = 110
        x -= bw
        color = TYPE_COLORS.get(t.lower(), (120, 120, 130))
        draw.rounded_rectangle((x, 28, x + bw, 62), radius=10, fill=color + (255,))
        _text_at(draw, (x + bw // 2, 45), t.upper(), font_small, (255, 255, 255, 255), "mm")
        x -= 10

    img_area = Image.new("RGBA", (W - 80, H - 220), (0, 0, 0, 0))
    halo = compose_on_halo(sprite)
    if halo.width > img_area.width or halo.height > img_area.height:
        halo.thumbnail((img_area.width, img_area.height), Image.NEAREST)
    sx = (img_area.width - halo.width) // 2
    sy = (img_area.height - halo.height) // 2
    img_area.alpha_composite(halo, (sx, max(0, sy)))
    frame = Image.new("RGBA", (img_area.width + 8, img_area.height + 8), (255, 255, 255, 20))
    card.alpha_composite(frame, (36 - 4, 110 - 4))
    card.alpha_composite(img_area, (36, 110))

    draw.text((36, H - 108), fusion.category, fill=(200, 200, 215, 255), font=font_sub)
    _text_at(draw, (W - 36, H - 108), f"{fusion.height} / {fusion.weight}", font_small, (160, 160, 175, 255), "ra")

    foot_y = H - 64
    draw.rectangle((0, foot_y, W, H), fill=(28, 28, 36, 255))
    stats = fusion.stats.model_dump()
    x = 24
    for label, key in STAT_LABELS:
        draw.text((x, foot_y + 22), f"{label}: {stats[key]}", fill=(220, 220, 235, 255), font=font_small)
        x += 112
    _text_at(draw, (W - 24, foot_y + 22), f"BST {stats['TOTAL']}", font_small, (255, 220, 120, 255), "ra")
    return card


def render_card_png(fusion: FusionResult, sprite_path: Optional[pathlib.Path]) -> bytes:
    return to_png_bytes(draw_card(fusion, load_sprite(sprite_path)))
