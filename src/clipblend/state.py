"""Project state machine — events and the pure transition function.

Every change to a ProjectState is an event value passed to transition(),
which returns a new state and leaves the old one untouched:

    state = transition(state, AddClips(items=[("c1", "media://ab12", "/v/a.mp4")]))
    state = transition(state, ApplyMetadata("c1", MetadataResult(1920, 1080, 12.0, 30)))

User edits are clamped here (trim keeps MIN_CLIP_DURATION, crossfade never
exceeds either neighbour) because the pure timing functions do not
validate their input. Results from background jobs that name a clip no
longer in the project are ignored.

Trim edits are staged: BeginTrim opens a draft, UpdateTrimDraft changes
only the draft, CommitTrim writes both trims at once, DiscardTrim drops
it. Preview code reading state.clips never sees a half-applied trim.
"""

from dataclasses import dataclass, replace

from .common import parse_hex_color
from .model import (
    CAPTION_FONT_SIZE_RANGE,
    CAPTION_MAX_WORDS_RANGE,
    MAX_CROSSFADE,
    MAX_FADE_DURATION,
    MIN_CLIP_DURATION,
    MIN_OVERLAY_DURATION,
    SUMMARY_DURATION_RANGE,
    CaptionPosition,
    CaptionSegment,
    CaptionStatus,
    Clip,
    MetadataResult,
    ProjectState,
    SummaryItem,
    TrimDraft,
)
from .timing import total_duration


# ── Clamping ─────────────────────────────────────────────────────


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def clamp_trim(natural_duration: float, trim_start: float, trim_end: float) -> tuple[float, float]:
    """Clamp a trim pair so the effective duration stays >= MIN_CLIP_DURATION.

    trim_start is clamped first against the requested trim_end, then
    trim_end against the clamped trim_start. Before metadata is known
    (natural_duration == 0) only negativity is corrected.
    """
    trim_start = max(0.0, trim_start)
    trim_end = max(0.0, trim_end)
    if natural_duration <= 0:
        return trim_start, trim_end
    room = max(0.0, natural_duration - MIN_CLIP_DURATION)
    trim_start = min(trim_start, max(0.0, room - trim_end))
    trim_end = min(trim_end, room - trim_start)
    return trim_start, trim_end


def clamp_crossfade(seconds: float, previous: Clip | None, clip: Clip) -> float:
    """Clamp a clip's crossfade to [0, MAX_CROSSFADE] and both neighbours.

    The first clip has no predecessor, so its crossfade is always 0.
    Neighbours still waiting on metadata do not constrain the value.
    """
    if previous is None:
        return 0.0
    limit = MAX_CROSSFADE
    for neighbour in (previous, clip):
        if neighbour.is_loaded:
            limit = min(limit, neighbour.effective_duration)
    return _clamp(seconds, 0.0, max(0.0, limit))


def clamp_overlay_duration(seconds: float, timeline_duration: float) -> float:
    if timeline_duration > 0:
        seconds = min(seconds, timeline_duration)
    return max(MIN_OVERLAY_DURATION, seconds)


def clamp_fade_duration(seconds: float, overlay_duration: float) -> float:
    return _clamp(seconds, 0.0, min(overlay_duration, MAX_FADE_DURATION))


def _reclamp_crossfades(state: ProjectState) -> ProjectState:
    """Re-apply crossfade limits after durations or order changed.

    The first loaded clip keeps whatever crossfade it had. It is ignored
    there, not erased, so a reorder can bring it back into play.
    """
    clips = []
    previous = None
    for clip in state.clips:
        if previous is not None:
            crossfade = clamp_crossfade(clip.crossfade_duration, previous, clip)
            if crossfade != clip.crossfade_duration:
                clip = replace(clip, crossfade_duration=crossfade)
        clips.append(clip)
        if clip.is_loaded:
            previous = clip
    return replace(state, clips=tuple(clips))


# ── Events ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class AddClips:
    """Append clips; items are (clip_id, source_reference, file_path)."""

    items: tuple[tuple[str, str, str], ...]


@dataclass(frozen=True)
class RemoveClip:
    clip_id: str


@dataclass(frozen=True)
class MoveClip:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class ApplyMetadata:
    clip_id: str
    result: MetadataResult


@dataclass(frozen=True)
class SetCrossfade:
    clip_id: str
    seconds: float


@dataclass(frozen=True)
class BeginTrim:
    clip_id: str


@dataclass(frozen=True)
class UpdateTrimDraft:
    trim_start: float
    trim_end: float


@dataclass(frozen=True)
class CommitTrim:
    pass


@dataclass(frozen=True)
class DiscardTrim:
    pass


@dataclass(frozen=True)
class SetOverlay:
    source_reference: str
    file_path: str = ""


@dataclass(frozen=True)
class SetOverlayNaturalSize:
    image_width: int
    image_height: int


@dataclass(frozen=True)
class SetOverlayPosition:
    x: float
    y: float


@dataclass(frozen=True)
class SetOverlaySize:
    width: float
    height: float


@dataclass(frozen=True)
class SetOverlayDuration:
    seconds: float


@dataclass(frozen=True)
class SetFadeDuration:
    seconds: float


@dataclass(frozen=True)
class SetCaptionSettings:
    enabled: bool | None = None
    font_size: int | None = None
    color: str | None = None
    position: str | None = None
    max_words: int | None = None


@dataclass(frozen=True)
class SetCaptionStatus:
    clip_id: str
    status: CaptionStatus


@dataclass(frozen=True)
class SetClipCaptions:
    clip_id: str
    captions: tuple[CaptionSegment, ...]


@dataclass(frozen=True)
class UpdateCaptionText:
    clip_id: str
    caption_id: str
    text: str


@dataclass(frozen=True)
class SetSummaryEnabled:
    enabled: bool


@dataclass(frozen=True)
class AddSummaryItem:
    item_id: str
    emoji: str = ""
    text: str = ""


@dataclass(frozen=True)
class RemoveSummaryItem:
    item_id: str


@dataclass(frozen=True)
class UpdateSummaryItem:
    item_id: str
    emoji: str | None = None
    text: str | None = None


@dataclass(frozen=True)
class SetSummaryDuration:
    seconds: float


# ── Handlers ─────────────────────────────────────────────────────


def _add_clips(state: ProjectState, event: AddClips) -> ProjectState:
    existing = {c.id for c in state.clips}
    new = []
    for clip_id, source_reference, file_path in event.items:
        if clip_id in existing:
            raise ValueError(f"Clip id already in project: '{clip_id}'")
        existing.add(clip_id)
        new.append(Clip(id=clip_id, source_reference=source_reference, file_path=file_path))
    return replace(state, clips=state.clips + tuple(new))


def _remove_clip(state: ProjectState, event: RemoveClip) -> ProjectState:
    if state.clip_index(event.clip_id) is None:
        return state
    clips = tuple(c for c in state.clips if c.id != event.clip_id)
    draft = state.trim_draft
    if draft is not None and draft.clip_id == event.clip_id:
        draft = None
    new = replace(state, clips=clips, trim_draft=draft)
    if not clips:
        new = replace(new, metadata_locked=False)
    return _reclamp_crossfades(new)


def _move_clip(state: ProjectState, event: MoveClip) -> ProjectState:
    n = len(state.clips)
    if not (0 <= event.from_index < n and 0 <= event.to_index < n):
        raise ValueError(
            f"Cannot move clip {event.from_index} -> {event.to_index}: "
            f"project has {n} clips"
        )
    clips = list(state.clips)
    clips.insert(event.to_index, clips.pop(event.from_index))
    return _reclamp_crossfades(replace(state, clips=tuple(clips)))


def _apply_metadata(state: ProjectState, event: ApplyMetadata) -> ProjectState:
    clip = state.get_clip(event.clip_id)
    if clip is None:
        return state
    result = event.result
    trim_start, trim_end = clamp_trim(result.duration, clip.trim_start, clip.trim_end)
    new = state.replace_clip(
        event.clip_id,
        natural_duration=result.duration,
        trim_start=trim_start,
        trim_end=trim_end,
    )
    if not new.metadata_locked:
        new = replace(
            new, fps=result.fps, width=result.width, height=result.height,
            metadata_locked=True,
        )
    new = _reclamp_crossfades(new)
    timeline = total_duration(new.clips)
    if timeline > 0 and new.overlay.duration > timeline:
        duration = clamp_overlay_duration(new.overlay.duration, timeline)
        new = replace(new, overlay=replace(
            new.overlay,
            duration=duration,
            fade_duration=clamp_fade_duration(new.overlay.fade_duration, duration),
        ))
    return new


def _set_crossfade(state: ProjectState, event: SetCrossfade) -> ProjectState:
    index = state.clip_index(event.clip_id)
    if index is None:
        return state
    previous = None
    for clip in reversed(state.clips[:index]):
        if clip.is_loaded:
            previous = clip
            break
    if previous is None and index > 0:
        previous = state.clips[index - 1]
    seconds = clamp_crossfade(event.seconds, previous, state.clips[index])
    return state.replace_clip(event.clip_id, crossfade_duration=seconds)


def _begin_trim(state: ProjectState, event: BeginTrim) -> ProjectState:
    clip = state.get_clip(event.clip_id)
    if clip is None:
        raise ValueError(f"Unknown clip: '{event.clip_id}'")
    if not clip.is_loaded:
        raise ValueError(f"Clip '{event.clip_id}' has no duration yet; cannot trim")
    return replace(state, trim_draft=TrimDraft(clip.id, clip.trim_start, clip.trim_end))


def _update_trim_draft(state: ProjectState, event: UpdateTrimDraft) -> ProjectState:
    draft = state.trim_draft
    if draft is None:
        raise ValueError("No trim in progress")
    clip = state.get_clip(draft.clip_id)
    trim_start, trim_end = clamp_trim(clip.natural_duration, event.trim_start, event.trim_end)
    return replace(state, trim_draft=replace(draft, trim_start=trim_start, trim_end=trim_end))


def _commit_trim(state: ProjectState, event: CommitTrim) -> ProjectState:
    draft = state.trim_draft
    if draft is None:
        return state
    new = state.replace_clip(
        draft.clip_id, trim_start=draft.trim_start, trim_end=draft.trim_end,
    )
    return _reclamp_crossfades(replace(new, trim_draft=None))


def _discard_trim(state: ProjectState, event: DiscardTrim) -> ProjectState:
    return replace(state, trim_draft=None)


def _set_overlay(state: ProjectState, event: SetOverlay) -> ProjectState:
    return replace(state, overlay=replace(
        state.overlay,
        source_reference=event.source_reference,
        file_path=event.file_path,
    ))


def _set_overlay_natural_size(state: ProjectState, event: SetOverlayNaturalSize) -> ProjectState:
    """Fill the frame width, keep the image aspect ratio, pin to top-left."""
    if event.image_width <= 0 or event.image_height <= 0:
        raise ValueError(
            f"Overlay image size must be positive, got "
            f"{event.image_width}x{event.image_height}"
        )
    width_pct = 100.0
    height_pct = (
        width_pct * (event.image_height / event.image_width) * (state.width / state.height)
    )
    return replace(state, overlay=replace(
        state.overlay,
        x=0.0, y=0.0,
        width=width_pct, height=height_pct,
        aspect=height_pct / width_pct,
    ))


def _set_overlay_position(state: ProjectState, event: SetOverlayPosition) -> ProjectState:
    return replace(state, overlay=replace(state.overlay, x=event.x, y=event.y))


def _set_overlay_size(state: ProjectState, event: SetOverlaySize) -> ProjectState:
    if event.width <= 0:
        raise ValueError(f"Overlay width must be > 0, got {event.width}")
    return replace(state, overlay=replace(
        state.overlay,
        width=event.width, height=event.height,
        aspect=event.height / event.width,
    ))


def _set_overlay_duration(state: ProjectState, event: SetOverlayDuration) -> ProjectState:
    duration = clamp_overlay_duration(event.seconds, total_duration(state.clips))
    return replace(state, overlay=replace(
        state.overlay,
        duration=duration,
        fade_duration=clamp_fade_duration(state.overlay.fade_duration, duration),
    ))


def _set_fade_duration(state: ProjectState, event: SetFadeDuration) -> ProjectState:
    fade = clamp_fade_duration(event.seconds, state.overlay.duration)
    return replace(state, overlay=replace(state.overlay, fade_duration=fade))


def _set_caption_settings(state: ProjectState, event: SetCaptionSettings) -> ProjectState:
    settings = state.captions
    if event.enabled is not None:
        settings = replace(settings, enabled=event.enabled)
    if event.font_size is not None:
        settings = replace(settings, font_size=int(_clamp(event.font_size, *CAPTION_FONT_SIZE_RANGE)))
    if event.color is not None:
        parse_hex_color(event.color)
        settings = replace(settings, color=event.color)
    if event.position is not None:
        try:
            position = CaptionPosition(event.position)
        except ValueError:
            raise ValueError(
                f"Invalid caption position '{event.position}'. "
                f"Valid: {sorted(p.value for p in CaptionPosition)}"
            ) from None
        settings = replace(settings, position=position)
    if event.max_words is not None:
        settings = replace(settings, max_words=int(_clamp(event.max_words, *CAPTION_MAX_WORDS_RANGE)))
    return replace(state, captions=settings)


# Allowed caption status moves. DONE and ERROR are terminal: a finished
# request is never re-issued or overwritten.
_STATUS_MOVES = {
    CaptionStatus.IDLE: {CaptionStatus.TRANSCRIBING},
    CaptionStatus.TRANSCRIBING: {CaptionStatus.DONE, CaptionStatus.ERROR},
    CaptionStatus.DONE: set(),
    CaptionStatus.ERROR: set(),
}


def _set_caption_status(state: ProjectState, event: SetCaptionStatus) -> ProjectState:
    clip = state.get_clip(event.clip_id)
    if clip is None or event.status not in _STATUS_MOVES[clip.caption_status]:
        return state
    return state.replace_clip(event.clip_id, caption_status=event.status)


def _set_clip_captions(state: ProjectState, event: SetClipCaptions) -> ProjectState:
    clip = state.get_clip(event.clip_id)
    if clip is None or clip.caption_status in (CaptionStatus.DONE, CaptionStatus.ERROR):
        return state
    return state.replace_clip(
        event.clip_id,
        captions=tuple(event.captions),
        caption_status=CaptionStatus.DONE,
    )


def _update_caption_text(state: ProjectState, event: UpdateCaptionText) -> ProjectState:
    clip = state.get_clip(event.clip_id)
    if clip is None:
        return state
    captions = tuple(
        replace(cap, text=event.text) if cap.id == event.caption_id else cap
        for cap in clip.captions
    )
    return state.replace_clip(event.clip_id, captions=captions)


def _set_summary_enabled(state: ProjectState, event: SetSummaryEnabled) -> ProjectState:
    return replace(state, summary=replace(state.summary, enabled=event.enabled))


def _add_summary_item(state: ProjectState, event: AddSummaryItem) -> ProjectState:
    item = SummaryItem(id=event.item_id, emoji=event.emoji, text=event.text)
    return replace(state, summary=replace(state.summary, items=state.summary.items + (item,)))


def _remove_summary_item(state: ProjectState, event: RemoveSummaryItem) -> ProjectState:
    items = tuple(i for i in state.summary.items if i.id != event.item_id)
    return replace(state, summary=replace(state.summary, items=items))


def _update_summary_item(state: ProjectState, event: UpdateSummaryItem) -> ProjectState:
    items = []
    for item in state.summary.items:
        if item.id == event.item_id:
            if event.emoji is not None:
                item = replace(item, emoji=event.emoji)
            if event.text is not None:
                item = replace(item, text=event.text)
        items.append(item)
    return replace(state, summary=replace(state.summary, items=tuple(items)))


def _set_summary_duration(state: ProjectState, event: SetSummaryDuration) -> ProjectState:
    seconds = _clamp(event.seconds, *SUMMARY_DURATION_RANGE)
    return replace(state, summary=replace(state.summary, duration=seconds))


# ── Dispatch ─────────────────────────────────────────────────────
# Maps event type -> handler. All handlers share the signature
# (state, event) -> state.

HANDLERS = {
    AddClips: _add_clips,
    RemoveClip: _remove_clip,
    MoveClip: _move_clip,
    ApplyMetadata: _apply_metadata,
    SetCrossfade: _set_crossfade,
    BeginTrim: _begin_trim,
    UpdateTrimDraft: _update_trim_draft,
    CommitTrim: _commit_trim,
    DiscardTrim: _discard_trim,
    SetOverlay: _set_overlay,
    SetOverlayNaturalSize: _set_overlay_natural_size,
    SetOverlayPosition: _set_overlay_position,
    SetOverlaySize: _set_overlay_size,
    SetOverlayDuration: _set_overlay_duration,
    SetFadeDuration: _set_fade_duration,
    SetCaptionSettings: _set_caption_settings,
    SetCaptionStatus: _set_caption_status,
    SetClipCaptions: _set_clip_captions,
    UpdateCaptionText: _update_caption_text,
    SetSummaryEnabled: _set_summary_enabled,
    AddSummaryItem: _add_summary_item,
    RemoveSummaryItem: _remove_summary_item,
    UpdateSummaryItem: _update_summary_item,
    SetSummaryDuration: _set_summary_duration,
}


def transition(state: ProjectState, event) -> ProjectState:
    """Apply one event and return the resulting state.

    Raises:
        ValueError: Unknown event type, or an edit the current state
            cannot accept (bad move index, trim without a draft, ...).
    """
    handler = HANDLERS.get(type(event))
    if handler is None:
        raise ValueError(f"Unknown event: {type(event).__name__}")
    return handler(state, event)


def display_clips(state: ProjectState) -> tuple[Clip, ...]:
    """Clips as the preview should show them: the open trim draft applied.

    Committed state stays untouched; this only overlays the draft values on
    the clip being trimmed, both trims together.
    """
    draft = state.trim_draft
    if draft is None:
        return state.clips
    return tuple(
        replace(c, trim_start=draft.trim_start, trim_end=draft.trim_end)
        if c.id == draft.clip_id else c
        for c in state.clips
    )
