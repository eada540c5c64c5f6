"""Overlay rasterising — the image overlay and caption text on a frame.

Works at the pixel level on numpy RGB frames:
  - Image overlay: placed in a percent-of-frame box, scaled to fit the box
    while keeping its aspect ratio (object-fit: contain), blended with the
    opacity from the composition.
  - Captions: bold text with a soft dark outline, wrapped to the middle
    80% of the frame and anchored top, center or bottom.

The timing side (which opacity, which caption text) is decided by
clipblend.composition; this module only draws.
"""

import numpy as np
from PIL import Image, ImageDraw

from .common import load_font, parse_hex_color, text_size, wrap_text
from .model import CaptionPosition


# ── Constants ────────────────────────────────────────────────────

CAPTION_EDGE_FRAC = 0.08         # top/bottom anchor offset as fraction of frame height
CAPTION_SIDE_FRAC = 0.10         # left/right inset as fraction of frame width
CAPTION_LINE_HEIGHT = 1.3        # line pitch as multiple of font size
CAPTION_SHADOW_OFFSET = 2        # outline offset in pixels
CAPTION_SHADOW_ALPHA = 204       # ~80% opacity (0.8 * 255)
CAPTION_PADDING = 4              # room around the text for the outline


# ── Image overlay ────────────────────────────────────────────────


def compute_overlay_box(
    x_pct: float,
    y_pct: float,
    w_pct: float,
    h_pct: float,
    frame_w: int,
    frame_h: int,
) -> tuple[int, int, int, int]:
    """Convert a percent-of-frame box to pixel (x, y, w, h)."""
    return (
        round(frame_w * x_pct / 100),
        round(frame_h * y_pct / 100),
        max(1, round(frame_w * w_pct / 100)),
        max(1, round(frame_h * h_pct / 100)),
    )


def fit_contain(
    img_w: int,
    img_h: int,
    box_w: int,
    box_h: int,
) -> tuple[int, int, int, int]:
    """Scale an image to fit inside a box, keeping aspect ratio.

    Returns:
        (w, h, offset_x, offset_y) of the scaled image, centered in the box.
    """
    scale = min(box_w / img_w, box_h / img_h)
    w = max(1, round(img_w * scale))
    h = max(1, round(img_h * scale))
    return w, h, (box_w - w) // 2, (box_h - h) // 2


def render_image_overlay(
    image: Image.Image,
    box: tuple[int, int, int, int],
) -> tuple[np.ndarray, int, int]:
    """Scale an overlay image into its box.

    Returns:
        (rgba_patch, x, y) ready for blend_patch.
    """
    bx, by, bw, bh = box
    w, h, ox, oy = fit_contain(image.width, image.height, bw, bh)
    scaled = image.convert("RGBA").resize((w, h), resample=Image.LANCZOS)
    return np.array(scaled), bx + ox, by + oy


# ── Captions ─────────────────────────────────────────────────────


def render_caption_patch(
    text: str,
    font_size: int,
    color: str,
    max_width: int,
) -> np.ndarray:
    """Render caption text with a dark outline on a transparent patch.

    Lines are wrapped to max_width and centered on each other.

    Returns:
        numpy array of shape (h, w, 4), dtype uint8 (RGBA).
    """
    font = load_font(font_size)
    rgb = parse_hex_color(color)
    lines = wrap_text(text, font, max_width) or [text]

    line_pitch = round(font_size * CAPTION_LINE_HEIGHT)
    widths = [text_size(line, font)[0] for line in lines]
    pad = CAPTION_PADDING + CAPTION_SHADOW_OFFSET
    patch_w = max(widths) + 2 * pad
    patch_h = line_pitch * len(lines) + 2 * pad

    img = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    offsets = [
        (-CAPTION_SHADOW_OFFSET, -CAPTION_SHADOW_OFFSET),
        (CAPTION_SHADOW_OFFSET, -CAPTION_SHADOW_OFFSET),
        (-CAPTION_SHADOW_OFFSET, CAPTION_SHADOW_OFFSET),
        (CAPTION_SHADOW_OFFSET, CAPTION_SHADOW_OFFSET),
    ]
    for i, (line, w) in enumerate(zip(lines, widths)):
        tx = (patch_w - w) // 2
        ty = pad + i * line_pitch
        for dx, dy in offsets:
            draw.text((tx + dx, ty + dy), line, fill=(0, 0, 0, CAPTION_SHADOW_ALPHA), font=font)
        draw.text((tx, ty), line, fill=(*rgb, 255), font=font)

    return np.array(img)


def compute_caption_position(
    position: CaptionPosition,
    patch_w: int,
    patch_h: int,
    frame_w: int,
    frame_h: int,
) -> tuple[int, int]:
    """Top-left corner for a caption patch: centered horizontally, anchored vertically."""
    x = (frame_w - patch_w) // 2
    edge = int(frame_h * CAPTION_EDGE_FRAC)
    if position == CaptionPosition.TOP:
        y = edge
    elif position == CaptionPosition.BOTTOM:
        y = frame_h - edge - patch_h
    else:  # center
        y = (frame_h - patch_h) // 2
    return x, y


# ── Blending ─────────────────────────────────────────────────────


def blend_patch(
    frame: np.ndarray,
    patch: np.ndarray,
    x: int,
    y: int,
    opacity: float = 1.0,
) -> np.ndarray:
    """Alpha-blend an RGBA patch onto an RGB frame at (x, y).

    The patch alpha is multiplied by opacity. Parts of the patch outside the
    frame are dropped.

    Returns:
        New frame, same shape and dtype; the input is not modified.
    """
    result = frame.copy()
    if opacity <= 0:
        return result

    frame_h, frame_w = frame.shape[:2]
    patch_h, patch_w = patch.shape[:2]

    # Visible intersection of the patch with the frame.
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(frame_w, x + patch_w), min(frame_h, y + patch_h)
    if x0 >= x1 or y0 >= y1:
        return result

    src = patch[y0 - y:y1 - y, x0 - x:x1 - x]
    alpha = src[:, :, 3:4].astype(np.float32) / 255.0 * opacity
    rgb = src[:, :, :3].astype(np.float32)
    dest = result[y0:y1, x0:x1].astype(np.float32)
    blended = dest * (1 - alpha) + rgb * alpha
    result[y0:y1, x0:x1] = np.round(blended).astype(np.uint8)
    return result


def blend_frames(base: np.ndarray, top: np.ndarray, opacity: float) -> np.ndarray:
    """Mix a full-size frame over another at uniform opacity."""
    if opacity >= 1:
        return top.copy()
    if opacity <= 0:
        return base.copy()
    mixed = base.astype(np.float32) * (1 - opacity) + top.astype(np.float32) * opacity
    return np.round(mixed).astype(np.uint8)
