"""Project data model — clips, captions, overlay, summary, project state.

Every type here is a frozen value. State changes go through
clipblend.state.transition(), which returns a new ProjectState instead of
mutating the old one, so a preview tick never observes a half-applied edit.

Durations and times are seconds unless the field name says frames.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


# ── Constants ────────────────────────────────────────────────────

MIN_CLIP_DURATION = 1.0      # shortest effective duration a trim may leave
MAX_CROSSFADE = 2.0          # crossfade slider upper bound
DEFAULT_FPS = 30
DEFAULT_RESOLUTION = (1920, 1080)

DEFAULT_OVERLAY_DURATION = 5.0
DEFAULT_FADE_DURATION = 1.0
MIN_OVERLAY_DURATION = 0.5
MAX_FADE_DURATION = 5.0

DEFAULT_CAPTION_FONT_SIZE = 48
DEFAULT_CAPTION_COLOR = "#FFFFFF"
DEFAULT_CAPTION_MAX_WORDS = 10
CAPTION_FONT_SIZE_RANGE = (24, 72)
CAPTION_MAX_WORDS_RANGE = (3, 25)

DEFAULT_SUMMARY_DURATION = 5.0
SUMMARY_DURATION_RANGE = (2.0, 30.0)


class CaptionStatus(str, Enum):
    """Lifecycle of a clip's transcription request."""

    IDLE = "idle"
    TRANSCRIBING = "transcribing"
    DONE = "done"
    ERROR = "error"


class CaptionPosition(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


# ── Captions ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CaptionSegment:
    """A transcript span, relative to the clip's untrimmed timeline."""

    id: str
    start: float
    end: float
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "start": self.start, "end": self.end, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> "CaptionSegment":
        return cls(
            id=str(data["id"]),
            start=float(data["start"]),
            end=float(data["end"]),
            text=str(data["text"]),
        )


@dataclass(frozen=True)
class CaptionChunk:
    """A word-limited slice of a segment, as shown on screen."""

    start: float
    end: float
    text: str


# ── Clips ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Clip:
    """One source video in the timeline.

    natural_duration == 0 means the metadata probe has not answered yet;
    such a clip contributes nothing to the timeline until it does.
    """

    id: str
    source_reference: str
    file_path: str = ""
    natural_duration: float = 0.0
    trim_start: float = 0.0
    trim_end: float = 0.0
    crossfade_duration: float = 0.0
    captions: tuple[CaptionSegment, ...] = ()
    caption_status: CaptionStatus = CaptionStatus.IDLE

    @property
    def is_loaded(self) -> bool:
        return self.natural_duration > 0

    @property
    def effective_duration(self) -> float:
        if not self.is_loaded:
            return 0.0
        return self.natural_duration - self.trim_start - self.trim_end


@dataclass(frozen=True)
class TrimDraft:
    """Uncommitted trim edit for a single clip."""

    clip_id: str
    trim_start: float
    trim_end: float


@dataclass(frozen=True)
class MetadataResult:
    """Probe answer for one clip: frame size, length, frame rate."""

    width: int
    height: int
    duration: float
    fps: float


# ── Overlay / captions / summary settings ────────────────────────


@dataclass(frozen=True)
class OverlaySettings:
    """Image overlay placement (percent of frame) and timing (seconds)."""

    source_reference: str = ""
    file_path: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    aspect: float = 1.0
    duration: float = DEFAULT_OVERLAY_DURATION
    fade_duration: float = DEFAULT_FADE_DURATION


@dataclass(frozen=True)
class CaptionSettings:
    enabled: bool = False
    font_size: int = DEFAULT_CAPTION_FONT_SIZE
    color: str = DEFAULT_CAPTION_COLOR
    position: CaptionPosition = CaptionPosition.BOTTOM
    max_words: int = DEFAULT_CAPTION_MAX_WORDS

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "font_size": self.font_size,
            "color": self.color,
            "position": self.position.value,
            "max_words": self.max_words,
        }


@dataclass(frozen=True)
class SummaryItem:
    id: str
    emoji: str = ""
    text: str = ""


@dataclass(frozen=True)
class SummarySettings:
    enabled: bool = False
    items: tuple[SummaryItem, ...] = ()
    duration: float = DEFAULT_SUMMARY_DURATION


# ── Project ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProjectState:
    """The whole editing session, as one immutable value.

    fps/width/height start at the defaults and are fixed by the first clip
    whose metadata arrives (see state.ApplyMetadata).
    """

    clips: tuple[Clip, ...] = ()
    overlay: OverlaySettings = field(default_factory=OverlaySettings)
    captions: CaptionSettings = field(default_factory=CaptionSettings)
    summary: SummarySettings = field(default_factory=SummarySettings)
    fps: float = DEFAULT_FPS
    width: int = DEFAULT_RESOLUTION[0]
    height: int = DEFAULT_RESOLUTION[1]
    metadata_locked: bool = False
    trim_draft: TrimDraft | None = None

    def clip_index(self, clip_id: str) -> int | None:
        for i, clip in enumerate(self.clips):
            if clip.id == clip_id:
                return i
        return None

    def get_clip(self, clip_id: str) -> Clip | None:
        index = self.clip_index(clip_id)
        return None if index is None else self.clips[index]

    def replace_clip(self, clip_id: str, **changes) -> "ProjectState":
        """Return a copy with one clip's fields replaced (no-op for unknown ids)."""
        index = self.clip_index(clip_id)
        if index is None:
            return self
        clips = list(self.clips)
        clips[index] = replace(clips[index], **changes)
        return replace(self, clips=tuple(clips))
