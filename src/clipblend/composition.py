"""Composition model — the frame-accurate layout of a whole project.

build_composition() turns an export request (see clipblend.export) into a
Composition: clip segments with start frames and crossfade ramps, the image
overlay layer, the caption layer and an optional trailing summary slide.
resolve_frame() answers "what is on screen at frame N" from that structure.

Both the interactive preview and the batch export build their Composition
from the same request dict through this module. Nothing here depends on
playback mode; only how video frames get decoded differs between the two
(that lives in clipblend.render).

Layer order, back to front:
  clips (crossfade opacity) -> image overlay (fade-out) -> captions.
The summary slide follows the clip section on its own, never overlapped.
"""

from dataclasses import dataclass

from .captions import active_caption, adjust_captions_for_trim, split_captions
from .fades import clip_opacity, overlay_opacity
from .model import (
    DEFAULT_CAPTION_COLOR,
    DEFAULT_CAPTION_FONT_SIZE,
    DEFAULT_CAPTION_MAX_WORDS,
    CaptionChunk,
    CaptionPosition,
    CaptionSegment,
)
from .timing import compute_clip_starts, seconds_to_frames, total_clip_frames


# ── Layer types ──────────────────────────────────────────────────


@dataclass(frozen=True)
class ClipSegment:
    """One clip placed on the timeline."""

    clip_id: str
    src: str
    path: str
    start_frame: int
    duration_in_frames: int
    crossfade_in_frames: int
    crossfade_out_frames: int
    source_start_frame: int
    is_first: bool
    is_last: bool

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.duration_in_frames

    def contains(self, frame: int) -> bool:
        return self.start_frame <= frame < self.end_frame

    def opacity(self, frame: int) -> float:
        """Crossfade opacity at a timeline frame inside this segment."""
        return clip_opacity(
            frame - self.start_frame,
            self.duration_in_frames,
            self.crossfade_in_frames,
            self.crossfade_out_frames,
            self.is_first,
            self.is_last,
        )

    def source_time(self, frame: int, fps: float) -> float:
        """Time in the source media shown at a timeline frame."""
        return (self.source_start_frame + frame - self.start_frame) / fps


@dataclass(frozen=True)
class OverlayLayer:
    """Image overlay: percent-of-frame box plus timing in seconds."""

    src: str
    path: str
    x: float
    y: float
    width: float
    height: float
    duration: float
    fade_duration: float

    def opacity(self, frame: int, fps: float) -> float:
        if not self.src:
            return 0.0
        return overlay_opacity(frame, self.duration, self.fade_duration, fps)


@dataclass(frozen=True)
class CaptionTrack:
    clip_id: str
    start_frame: int
    duration_in_frames: int
    chunks: tuple[CaptionChunk, ...]


@dataclass(frozen=True)
class CaptionLayer:
    enabled: bool
    font_size: int
    color: str
    position: CaptionPosition
    max_words: int
    tracks: tuple[CaptionTrack, ...] = ()

    def text_at(self, frame: int, fps: float) -> str | None:
        if not self.enabled:
            return None
        return active_caption(
            frame,
            [
                {
                    "start_frame": t.start_frame,
                    "duration_in_frames": t.duration_in_frames,
                    "chunks": t.chunks,
                }
                for t in self.tracks
            ],
            fps,
        )


@dataclass(frozen=True)
class SummaryLayer:
    items: tuple[dict, ...]
    start_frame: int
    duration_in_frames: int


@dataclass(frozen=True)
class Composition:
    fps: float
    width: int
    height: int
    segments: tuple[ClipSegment, ...]
    overlay: OverlayLayer
    captions: CaptionLayer
    summary: SummaryLayer | None
    clip_frames: int
    total_frames: int


@dataclass(frozen=True)
class VisibleClip:
    segment_index: int
    local_frame: int
    opacity: float
    source_time: float


@dataclass(frozen=True)
class FrameState:
    """Everything visible at one timeline frame."""

    frame: int
    clips: tuple[VisibleClip, ...] = ()
    overlay_opacity: float = 0.0
    caption_text: str | None = None
    summary_frame: int | None = None


# ── Building ─────────────────────────────────────────────────────


def _clip_entries(request: dict, fps: float) -> list[dict]:
    """Frame values for each loaded clip in the request, in order.

    Clips whose duration is still 0 (metadata pending) are left out, so they
    add nothing to the timeline.
    """
    entries = []
    for clip in request["clips"]:
        duration = clip.get("duration", 0) or 0
        if duration <= 0:
            continue
        trim_start = clip.get("trim_start", 0) or 0
        trim_end = clip.get("trim_end", 0) or 0
        effective = duration - trim_start - trim_end
        entries.append({
            "clip": clip,
            "duration_in_frames": max(1, seconds_to_frames(effective, fps)),
            "crossfade_in_frames": (
                seconds_to_frames(clip.get("crossfade_duration", 0) or 0, fps)
                if entries else 0
            ),
            "source_start_frame": seconds_to_frames(trim_start, fps),
        })
    return entries


def _caption_tracks(
    request: dict,
    entries: list[dict],
    starts: list[int],
    max_words: int,
) -> tuple[CaptionTrack, ...]:
    captions_by_clip = {
        item["clip_id"]: item["captions"] for item in request.get("clip_captions", [])
    }
    tracks = []
    for entry, start in zip(entries, starts):
        clip = entry["clip"]
        raw = [
            seg if isinstance(seg, CaptionSegment) else CaptionSegment.from_dict(seg)
            for seg in captions_by_clip.get(clip["id"], [])
        ]
        adjusted = adjust_captions_for_trim(
            raw,
            clip.get("trim_start", 0) or 0,
            clip.get("trim_end", 0) or 0,
            clip["duration"],
        )
        tracks.append(CaptionTrack(
            clip_id=clip["id"],
            start_frame=start,
            duration_in_frames=entry["duration_in_frames"],
            chunks=tuple(split_captions(adjusted, max_words)),
        ))
    return tuple(tracks)


def build_composition(request: dict) -> Composition:
    """Resolve an export request into a frame-accurate Composition.

    Args:
        request: Export request dict (clipblend.export.export_request).

    Returns:
        Composition whose total_frames equals the clip section (last start +
        last duration, at least 1) plus the summary slide when enabled.
    """
    fps = request["fps"]
    entries = _clip_entries(request, fps)
    starts = compute_clip_starts(entries)
    clip_frames = total_clip_frames(entries, starts)

    segments = []
    last = len(entries) - 1
    for i, (entry, start) in enumerate(zip(entries, starts)):
        clip = entry["clip"]
        segments.append(ClipSegment(
            clip_id=clip["id"],
            src=clip.get("src", ""),
            path=clip.get("path", ""),
            start_frame=start,
            duration_in_frames=entry["duration_in_frames"],
            crossfade_in_frames=entry["crossfade_in_frames"],
            crossfade_out_frames=entries[i + 1]["crossfade_in_frames"] if i < last else 0,
            source_start_frame=entry["source_start_frame"],
            is_first=i == 0,
            is_last=i == last,
        ))

    ov = request.get("overlay", {})
    overlay = OverlayLayer(
        src=ov.get("src", ""),
        path=ov.get("path", ""),
        x=ov.get("x", 0.0),
        y=ov.get("y", 0.0),
        width=ov.get("width", 100.0),
        height=ov.get("height", 100.0),
        duration=ov.get("duration", 0.0),
        fade_duration=ov.get("fade_duration", 0.0),
    )

    cs = request.get("captions", {})
    max_words = cs.get("max_words", DEFAULT_CAPTION_MAX_WORDS)
    caption_layer = CaptionLayer(
        enabled=bool(cs.get("enabled", False)),
        font_size=cs.get("font_size", DEFAULT_CAPTION_FONT_SIZE),
        color=cs.get("color", DEFAULT_CAPTION_COLOR),
        position=CaptionPosition(cs.get("position", CaptionPosition.BOTTOM.value)),
        max_words=max_words,
        tracks=_caption_tracks(request, entries, starts, max_words),
    )

    summary = None
    sm = request.get("summary", {})
    summary_frames = seconds_to_frames(sm.get("duration", 0), fps)
    if sm.get("enabled") and summary_frames > 0:
        summary = SummaryLayer(
            items=tuple(sm.get("items", [])),
            start_frame=clip_frames,
            duration_in_frames=summary_frames,
        )

    return Composition(
        fps=fps,
        width=request["width"],
        height=request["height"],
        segments=tuple(segments),
        overlay=overlay,
        captions=caption_layer,
        summary=summary,
        clip_frames=clip_frames,
        total_frames=clip_frames + (summary.duration_in_frames if summary else 0),
    )


# ── Per-frame resolution ─────────────────────────────────────────


def resolve_frame(composition: Composition, frame: int) -> FrameState:
    """Work out what is visible at a timeline frame.

    Frames in the clip section list every segment covering the frame (two
    during a crossfade) with its opacity, plus the overlay opacity and the
    caption text. Frames in the summary section only carry the slide-local
    frame. Frames outside the composition resolve to an empty state.
    """
    fps = composition.fps
    if 0 <= frame < composition.clip_frames:
        visible = tuple(
            VisibleClip(
                segment_index=i,
                local_frame=frame - seg.start_frame,
                opacity=seg.opacity(frame),
                source_time=seg.source_time(frame, fps),
            )
            for i, seg in enumerate(composition.segments)
            if seg.contains(frame)
        )
        return FrameState(
            frame=frame,
            clips=visible,
            overlay_opacity=max(0.0, composition.overlay.opacity(frame, fps)),
            caption_text=composition.captions.text_at(frame, fps),
        )

    summary = composition.summary
    if summary is not None and summary.start_frame <= frame < summary.start_frame + summary.duration_in_frames:
        return FrameState(frame=frame, summary_frame=frame - summary.start_frame)

    return FrameState(frame=frame)
