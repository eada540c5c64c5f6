"""Timeline timing — seconds/frames conversion, clip start frames, totals.

Every seconds-to-frames conversion goes through seconds_to_frames(), applied
per field (each duration, trim and crossfade on its own). Rounding is not
carried across clips, so a long timeline may drift from the rounded total of
total_duration() by up to one frame per clip boundary. That drift is known
and accepted; see DESIGN.md.
"""

import math
from collections.abc import Sequence

from .model import Clip


def seconds_to_frames(seconds: float, fps: float) -> int:
    """Round seconds * fps to the nearest frame, halves rounding up (2.5 -> 3).

    Not round(): that rounds halves to even.
    """
    return math.floor(seconds * fps + 0.5)


def frames_to_seconds(frames: int, fps: float) -> float:
    return frames / fps


# ── Clip start calculator ────────────────────────────────────────


def compute_clip_starts(clips: Sequence[dict]) -> list[int]:
    """Compute the start frame of each clip on the master timeline.

    Each entry needs "duration_in_frames" and "crossfade_in_frames". Clip 0
    always starts at frame 0 whatever its crossfade says. Every later clip
    starts where the previous one ends, pulled back by its own crossfade so
    the two overlap.

    Inconsistent input (a crossfade longer than the previous clip) yields a
    negative advance. That is passed through unchanged; state.clamp_crossfade
    is where it gets prevented.
    """
    starts = []
    cursor = 0
    for i, clip in enumerate(clips):
        if i > 0:
            cursor -= clip["crossfade_in_frames"]
        starts.append(cursor)
        cursor += clip["duration_in_frames"]
    return starts


def total_clip_frames(clips: Sequence[dict], starts: Sequence[int] | None = None) -> int:
    """Frame count of the clip section: last start + last duration, at least 1."""
    if not clips:
        return 1
    if starts is None:
        starts = compute_clip_starts(clips)
    return max(1, starts[-1] + clips[-1]["duration_in_frames"])


# ── Duration aggregator ──────────────────────────────────────────


def total_duration(clips: Sequence[Clip]) -> float:
    """Clip-section length in seconds.

    Sums effective durations and subtracts each crossfade except the first
    clip's. Clips still waiting on metadata count as zero, crossfade
    included. Never negative.
    """
    total = 0.0
    first = True
    for clip in clips:
        if not clip.is_loaded:
            continue
        total += clip.effective_duration
        if not first:
            total -= clip.crossfade_duration
        first = False
    return max(0.0, total)


def project_duration(
    clips: Sequence[Clip],
    summary_enabled: bool = False,
    summary_duration: float = 0.0,
) -> float:
    """Total project length in seconds, trailing summary slide included."""
    total = total_duration(clips)
    if summary_enabled and summary_duration > 0:
        total += summary_duration
    return total
