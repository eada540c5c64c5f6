"""clipblend.common — shared utilities for rendering and configuration.

Contains: color parsing, path variable resolution, font loading, text
measuring/wrapping, and source clip loading.
"""

import re
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont
from moviepy import VideoFileClip


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred (matches the editor UI), DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple.

    Raises:
        ValueError: Not a six-digit hex color.
    """
    value = hex_str.lstrip("#")
    if len(value) != 6 or not all(c in "0123456789abcdefABCDEF" for c in value):
        raise ValueError(f"Invalid color: '{hex_str}'. Expected '#RRGGBB'.")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size.

    Inter.ttc is a font collection; index 0 is Regular.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default font.
    return ImageFont.load_default()


# ── Text layout ────────────────────────────────────────────────────

def text_size(text: str, font) -> tuple[int, int]:
    """Pixel (width, height) of a single line of text."""
    draw = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def wrap_text(text: str, font, max_width: int) -> list[str]:
    """Greedy word wrap so each line fits within max_width pixels.

    A single word wider than max_width gets a line of its own rather than
    being broken.
    """
    lines = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and text_size(candidate, font)[0] > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


# ── Clip loading ───────────────────────────────────────────────────

def load_clip(path: str | Path) -> VideoFileClip:
    """Open a source video without audio.

    Frames are fetched by source time (ClipSegment.source_time), so no fps
    resampling happens here.
    """
    return VideoFileClip(str(path), audio=False)
