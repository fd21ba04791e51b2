from __future__ import annotations

from functools import lru_cache
import math
from pathlib import Path
import re
from typing import Protocol

from PIL import ImageFont


DEFAULT_FONT_FAMILY = "Lucida Sans Unicode"
DEFAULT_FONT_SIZE_PX = 12.0
FONT_ASPECT_RATIO = 0.6
SANS_FONT_FALLBACK_PATTERNS = (
    "lucidasansunicode",
    "lucida sans",
    "verdana",
    "dejavusans",
    "dejavu sans",
    "liberationsans",
    "arial",
    "helvetica",
)

_ENTITY = re.compile(r"&#?\w+;")


class TextMeasure(Protocol):
    def text_size(
        self,
        text: str,
        *,
        font_size: float,
        font_family: str = DEFAULT_FONT_FAMILY,
        rotate_deg: float = 0.0,
    ) -> tuple[float, float]:
        ...


def glyph_count(text: str) -> int:
    # Markup entities such as &#x00B1; occupy a single glyph.
    return len(_ENTITY.sub("#", text))


def estimate_text_width(text: str, font_size: float, *, aspect_ratio: float = FONT_ASPECT_RATIO) -> float:
    return glyph_count(text) * font_size * aspect_ratio


def rotated_extent(width: float, height: float, rotate_deg: float) -> tuple[float, float]:
    if rotate_deg % 180 == 0:
        return (width, height)
    if rotate_deg % 90 == 0:
        return (height, width)
    rad = math.radians(rotate_deg)
    c = abs(math.cos(rad))
    s = abs(math.sin(rad))
    return (width * c + height * s, width * s + height * c)


class EstimatedTextMeasure:
    """Width from glyph count times font size times an average aspect ratio."""

    def __init__(self, aspect_ratio: float = FONT_ASPECT_RATIO) -> None:
        if aspect_ratio <= 0:
            raise ValueError("aspect_ratio must be > 0")
        self.aspect_ratio = aspect_ratio

    def text_size(
        self,
        text: str,
        *,
        font_size: float,
        font_family: str = DEFAULT_FONT_FAMILY,
        rotate_deg: float = 0.0,
    ) -> tuple[float, float]:
        width = estimate_text_width(text, font_size, aspect_ratio=self.aspect_ratio)
        return rotated_extent(width, float(font_size), rotate_deg)


class PillowTextMeasure:
    """Measures with an installed TrueType face, or Pillow's built-in font."""

    def text_size(
        self,
        text: str,
        *,
        font_size: float,
        font_family: str = DEFAULT_FONT_FAMILY,
        rotate_deg: float = 0.0,
    ) -> tuple[float, float]:
        font = _load_font(font_family=font_family, font_size_px=font_size)
        if not text:
            return rotated_extent(0.0, float(font_size), rotate_deg)
        left, top, right, bottom = font.getbbox(text)
        width = max(0.0, float(right - left))
        height = max(float(font_size), float(bottom - top))
        return rotated_extent(width, height, rotate_deg)


@lru_cache(maxsize=64)
def _load_font(font_family: str, font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family)
    if font_path is None:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default(size=size)


@lru_cache(maxsize=16)
def _resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower() if font_family.strip() else DEFAULT_FONT_FAMILY.lower()
    patterns = (wanted,) + SANS_FONT_FALLBACK_PATTERNS

    font_dirs = [
        Path.home() / "Library" / "Fonts",
        Path("/Library/Fonts"),
        Path("/System/Library/Fonts"),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("C:/Windows/Fonts"),
    ]

    candidates: list[Path] = []
    for base in font_dirs:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            if p in stem:
                return path
    return None
