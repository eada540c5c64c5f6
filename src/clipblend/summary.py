"""Summary slide renderer — the closing list of emoji + text items.

Layout (centered vertically, left-aligned inside the padding):
  ┌─────────────────────────────────────┐
  │                                      │
  │   ✅   First takeaway                │  ← item 0 fades in at frame 0
  │   🚀   Second takeaway               │  ← item 1 fades in at frame 10
  │   📌   Third takeaway                │
  │                                      │
  └─────────────────────────────────────┘

Each item fades from 0 to 1 and rises 20px into place over 15 frames,
staggered 10 frames apart (fades.summary_item_style).

All pixel constants are given at a 1080p reference and scale with the
output height, with a floor so small previews stay readable.
"""

import numpy as np
from PIL import Image, ImageDraw

from .common import load_font, parse_hex_color, text_size
from .fades import summary_item_style
from .overlays import blend_patch


SUMMARY_BACKGROUND = "#0a0a0a"
SUMMARY_TEXT_COLOR = "#ffffff"

# ── Scaling system ────────────────────────────────────────────────
# Each constant is (value_at_1080, floor).

_REF_H = 1080

_REF_PADDING = (80, 16)
_REF_ITEM_GAP = (40, 8)
_REF_EMOJI_SIZE = (64, 14)
_REF_TEXT_SIZE = (48, 11)
_REF_EMOJI_TEXT_GAP = (32, 6)


def _scale(ref_and_floor: tuple[int, int], h: int) -> int:
    ref_val, floor = ref_and_floor
    return max(floor, round(ref_val * h / _REF_H))


def _summary_layout(h: int) -> dict[str, int]:
    return {
        "padding": _scale(_REF_PADDING, h),
        "item_gap": _scale(_REF_ITEM_GAP, h),
        "emoji_size": _scale(_REF_EMOJI_SIZE, h),
        "text_size": _scale(_REF_TEXT_SIZE, h),
        "emoji_text_gap": _scale(_REF_EMOJI_TEXT_GAP, h),
    }


def _render_item_patch(item: dict, layout: dict) -> np.ndarray:
    """Render one emoji + text row as an RGBA patch."""
    emoji_font = load_font(layout["emoji_size"])
    text_font = load_font(layout["text_size"])
    emoji = item.get("emoji", "")
    text = item.get("text", "")

    emoji_w, emoji_h = text_size(emoji, emoji_font) if emoji else (0, 0)
    text_w, text_h = text_size(text, text_font) if text else (0, 0)
    gap = layout["emoji_text_gap"] if emoji and text else 0

    row_h = max(emoji_h, text_h, 1)
    row_w = max(emoji_w + gap + text_w, 1)
    img = Image.new("RGBA", (row_w, row_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    color = (*parse_hex_color(SUMMARY_TEXT_COLOR), 255)
    if emoji:
        draw.text((0, (row_h - emoji_h) // 2), emoji, fill=color, font=emoji_font)
    if text:
        draw.text((emoji_w + gap, (row_h - text_h) // 2), text, fill=color, font=text_font)
    return np.array(img)


def render_summary_frame(
    items: list[dict],
    frame: int,
    resolution: tuple[int, int],
) -> np.ndarray:
    """Render the summary slide at a slide-local frame.

    Args:
        items: Summary item dicts with emoji and text.
        frame: Frame index relative to the start of the slide.
        resolution: Output (width, height).

    Returns:
        RGB frame, shape (h, w, 3), dtype uint8.
    """
    w, h = resolution
    layout = _summary_layout(h)
    result = np.empty((h, w, 3), dtype=np.uint8)
    result[:, :] = parse_hex_color(SUMMARY_BACKGROUND)

    patches = [_render_item_patch(item, layout) for item in items]
    if not patches:
        return result

    stack_h = sum(p.shape[0] for p in patches) + layout["item_gap"] * (len(patches) - 1)
    y = max(layout["padding"], (h - stack_h) // 2)
    x = layout["padding"]
    rise_scale = h / _REF_H

    for index, patch in enumerate(patches):
        opacity, offset = summary_item_style(index, frame)
        if opacity > 0:
            result = blend_patch(result, patch, x, y + round(offset * rise_scale), opacity)
        y += patch.shape[0] + layout["item_gap"]

    return result
