"""Opacity curves — overlay fade-out, clip crossfades, summary entrances.

All curves are linear with clamped ends. Frames may be fractional on the
input side (the overlay window is computed from unrounded seconds * fps),
but the result is a pure function of its arguments.
"""

SUMMARY_ITEM_STAGGER = 10      # frames between consecutive summary items
SUMMARY_ITEM_FADE = 15         # frames each item takes to appear
SUMMARY_ITEM_RISE_PX = 20      # vertical offset an item slides up from


def interpolate(
    value: float,
    domain: tuple[float, float],
    output: tuple[float, float],
) -> float:
    """Map value linearly from domain onto output, clamped at both ends."""
    x0, x1 = domain
    y0, y1 = output
    if x1 == x0:
        return y1 if value >= x1 else y0
    t = (value - x0) / (x1 - x0)
    t = max(0.0, min(1.0, t))
    return y0 + (y1 - y0) * t


def overlay_window(overlay_duration: float, fade_duration: float, fps: float) -> tuple[float, float]:
    """Return (fade_start_frame, overlay_end_frame) for the image overlay."""
    end_frame = overlay_duration * fps
    return end_frame - fade_duration * fps, end_frame


def overlay_opacity(
    frame: float,
    overlay_duration: float,
    fade_duration: float,
    fps: float,
) -> float:
    """Opacity of the image overlay at a timeline frame.

    Fully visible until the fade starts, ramps 1 -> 0 over the last
    fade_duration seconds of overlay_duration, then 0. A fade at least as
    long as the overlay starts ramping at (or before) frame 0.
    """
    fade_start, end = overlay_window(overlay_duration, fade_duration, fps)
    if frame >= end:
        return 0.0
    if frame >= fade_start:
        return interpolate(frame, (fade_start, end), (1.0, 0.0))
    return 1.0


def clip_opacity(
    frame: int,
    duration_in_frames: int,
    crossfade_in_frames: int,
    crossfade_out_frames: int,
    is_first: bool,
    is_last: bool,
) -> float:
    """Opacity of a clip at a frame local to that clip.

    crossfade_in_frames comes from this clip's own crossfade setting,
    crossfade_out_frames from the next clip's. The first clip never fades
    in and the last never fades out. When both ramps apply (a short clip
    between two crossfades) the smaller value wins.
    """
    opacity = 1.0
    if not is_first and crossfade_in_frames > 0:
        opacity = interpolate(frame, (0, crossfade_in_frames), (0.0, 1.0))
    if not is_last and crossfade_out_frames > 0:
        fade_out = interpolate(
            frame,
            (duration_in_frames - crossfade_out_frames, duration_in_frames),
            (1.0, 0.0),
        )
        opacity = min(opacity, fade_out)
    return opacity


def summary_item_style(index: int, frame: int) -> tuple[float, float]:
    """Return (opacity, y_offset_px) for summary item `index` at a slide frame."""
    delay = index * SUMMARY_ITEM_STAGGER
    window = (delay, delay + SUMMARY_ITEM_FADE)
    opacity = interpolate(frame, window, (0.0, 1.0))
    offset = interpolate(frame, window, (float(SUMMARY_ITEM_RISE_PX), 0.0))
    return opacity, offset
