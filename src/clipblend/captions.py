"""Caption timing — splitting, trim re-basing, and active-chunk lookup.

Segments arrive from transcription with times on the clip's untrimmed
timeline. Before display they are:
  1. re-based onto the trimmed clip (adjust_captions_for_trim),
  2. split into chunks of at most max_words words (split_segment),
  3. looked up per frame for the one clip that owns that frame
     (active_chunk / active_caption).

Chunk time is split evenly across chunks, not by word count. Speech is not
evenly paced, so this is an approximation; changing it is a behavior change.
"""

import math
from collections.abc import Sequence

from .model import CaptionChunk, CaptionSegment
from .timing import seconds_to_frames


# ── Splitting ────────────────────────────────────────────────────


def split_segment(segment: CaptionSegment, max_words: int) -> list[CaptionChunk]:
    """Split a segment into chunks of at most max_words words.

    A segment that already fits is returned as a single chunk with its text
    untouched. Otherwise the words are grouped max_words at a time (the last
    group may be shorter) and the segment's span is cut into that many
    equal-length slices, assigned in order.
    """
    words = segment.text.split()
    if len(words) <= max_words:
        return [CaptionChunk(start=segment.start, end=segment.end, text=segment.text)]

    num_chunks = math.ceil(len(words) / max_words)
    chunk_duration = (segment.end - segment.start) / num_chunks

    chunks = []
    for i in range(num_chunks):
        chunk_words = words[i * max_words:(i + 1) * max_words]
        chunks.append(CaptionChunk(
            start=segment.start + i * chunk_duration,
            end=segment.start + (i + 1) * chunk_duration,
            text=" ".join(chunk_words),
        ))
    return chunks


def split_captions(segments: Sequence[CaptionSegment], max_words: int) -> list[CaptionChunk]:
    """Split every segment, keeping segment order."""
    chunks = []
    for segment in segments:
        chunks.extend(split_segment(segment, max_words))
    return chunks


# ── Trim re-basing ───────────────────────────────────────────────


def adjust_captions_for_trim(
    captions: Sequence[CaptionSegment],
    trim_start: float,
    trim_end: float,
    natural_duration: float,
) -> list[CaptionSegment]:
    """Keep captions overlapping the trimmed window and shift them onto it.

    A caption survives if any part of it lies inside
    (trim_start, natural_duration - trim_end). Survivors have both
    boundaries clipped to that window and are then offset so the window
    starts at 0.
    """
    trim_end_time = natural_duration - trim_end
    window = trim_end_time - trim_start

    adjusted = []
    for cap in captions:
        if not (cap.end > trim_start and cap.start < trim_end_time):
            continue
        adjusted.append(CaptionSegment(
            id=cap.id,
            start=max(0.0, cap.start - trim_start),
            end=min(window, cap.end - trim_start),
            text=cap.text,
        ))
    return adjusted


# ── Active chunk lookup ──────────────────────────────────────────


def active_chunk(
    current_frame: int,
    clip_start_frame: int,
    clip_duration_in_frames: int,
    chunks: Sequence[CaptionChunk],
    fps: float,
) -> str | None:
    """Text of the chunk visible at current_frame for one clip, or None.

    Frames outside the clip's own window never show its captions, even when
    the clip-local time would match a chunk.
    """
    if not clip_start_frame <= current_frame < clip_start_frame + clip_duration_in_frames:
        return None
    local_time = (current_frame - clip_start_frame) / fps
    for chunk in chunks:
        if chunk.start <= local_time < chunk.end:
            return chunk.text
    return None


def current_clip_index(current_frame: int, windows: Sequence[tuple[int, int]]) -> int | None:
    """Index of the clip that owns current_frame for captioning.

    windows holds (start_frame, duration_in_frames) per clip in timeline
    order. During a crossfade two windows overlap; the outgoing (earlier)
    clip keeps the frame until its window ends.
    """
    for i, (start, duration) in enumerate(windows):
        if start <= current_frame < start + duration:
            return i
    return None


def active_caption(
    current_frame: int,
    clips: Sequence[dict],
    fps: float,
) -> str | None:
    """Caption text across the whole timeline.

    clips holds dicts with start_frame, duration_in_frames and chunks. Only
    the chunk list of the clip owning the frame is consulted.
    """
    index = current_clip_index(
        current_frame,
        [(c["start_frame"], c["duration_in_frames"]) for c in clips],
    )
    if index is None:
        return None
    clip = clips[index]
    return active_chunk(
        current_frame, clip["start_frame"], clip["duration_in_frames"],
        clip["chunks"], fps,
    )


# ── Transcript helpers ───────────────────────────────────────────


def active_segment_index(
    captions: Sequence[CaptionSegment],
    clip_start_frame: int,
    current_frame: int,
    fps: float,
) -> int:
    """Index of the segment under the playhead, or -1."""
    relative_time = (current_frame - clip_start_frame) / fps
    for i, cap in enumerate(captions):
        if cap.start <= relative_time < cap.end:
            return i
    return -1


def seek_frame_for_segment(segment: CaptionSegment, clip_start_frame: int, fps: float) -> int:
    """Timeline frame at which a transcript segment begins."""
    return clip_start_frame + seconds_to_frames(segment.start, fps)


def find_matches(text: str, query: str) -> list[tuple[int, int]]:
    """Case-insensitive occurrences of query in text as (start, end) offsets.

    Overlapping matches are all reported ("aa" in "aaa" matches twice).
    """
    if not query.strip():
        return []
    haystack = text.lower()
    needle = query.lower()
    matches = []
    pos = haystack.find(needle)
    while pos != -1:
        matches.append((pos, pos + len(needle)))
        pos = haystack.find(needle, pos + 1)
    return matches
