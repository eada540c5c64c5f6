"""Project manifest loader — a YAML description of a clipblend project.

load_manifest() parses and validates the YAML; build_state() replays it as
state events, so a manifest goes through exactly the same clamping as
interactive edits (trim minimum, crossfade limits, overlay duration).

Manifest schema:
  video:                          # optional
    fps: 30                       # otherwise taken from the first clip
    resolution: [1920, 1080]      # otherwise taken from the first clip
    crossfade: 0.5                # default crossfade for clips 1..n
  paths:
    raw: "/path/to/footage"
  clips:
    - path: "${raw}/a.mp4"
      duration: 12.0              # optional; probed when absent
      trim_start: 0.5
      trim_end: 0
      crossfade: 1.0              # ignored on the first clip
      captions: "${raw}/a.captions.json"   # JSON file or inline list
  overlay:
    path: "${raw}/logo.png"
    x: 0                          # percent of frame
    y: 0
    width: 100                    # width + height optional; default fills
    height: 20                    #   the frame width at image aspect
    duration: 5
    fade: 1
  captions: {enabled: true, font_size: 48, color: "#FFFFFF", position: bottom, max_words: 10}
  summary:  {enabled: true, duration: 5, items: [{emoji: "✅", text: "Shipped"}]}

A captions or summary section is enabled unless it says enabled: false.
"""

import json
import uuid
from dataclasses import replace
from pathlib import Path

import yaml
from PIL import Image

from .common import parse_hex_color, resolve_path_vars
from .media import probe_metadata
from .model import (
    DEFAULT_FADE_DURATION,
    DEFAULT_OVERLAY_DURATION,
    DEFAULT_RESOLUTION,
    DEFAULT_SUMMARY_DURATION,
    CaptionPosition,
    CaptionSegment,
    MetadataResult,
    ProjectState,
)
from .state import (
    AddClips,
    AddSummaryItem,
    ApplyMetadata,
    BeginTrim,
    CommitTrim,
    SetCaptionSettings,
    SetClipCaptions,
    SetCrossfade,
    SetFadeDuration,
    SetOverlay,
    SetOverlayDuration,
    SetOverlayNaturalSize,
    SetOverlayPosition,
    SetOverlaySize,
    SetSummaryDuration,
    SetSummaryEnabled,
    UpdateTrimDraft,
    transition,
)


VALID_CAPTION_POSITIONS = {p.value for p in CaptionPosition}


def _number(value, label: str, minimum: float = 0.0, strict: bool = False) -> float:
    """Validate a numeric field (>= minimum, or > minimum if strict)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number, got {value!r}")
    if value < minimum or (strict and value == minimum):
        op = ">" if strict else ">="
        raise ValueError(f"{label} must be {op} {minimum:g}, got {value!r}")
    return float(value)


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a project manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Validate video settings (fps, resolution, default crossfade).
      3. Resolve ${path} variables in clip, caption and overlay paths.
      4. Apply defaults and validate per-clip fields.
      5. Validate overlay, captions and summary sections.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Normalized config dict (see build_state).

    Raises:
        ValueError: Missing/invalid fields.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    paths = raw.get("paths", {})
    config = {"video": _load_video(raw.get("video") or {})}

    clips = raw.get("clips") or []
    if not clips:
        raise ValueError("Manifest: at least one clip is required")
    config["clips"] = [
        _load_clip(clip, i, paths, config["video"]["crossfade"])
        for i, clip in enumerate(clips)
    ]

    config["overlay"] = _load_overlay(raw["overlay"], paths) if raw.get("overlay") else None
    config["captions"] = _load_captions(raw["captions"]) if raw.get("captions") else None
    config["summary"] = _load_summary(raw["summary"]) if raw.get("summary") else None
    return config


def _load_video(video: dict) -> dict:
    result = {"fps": None, "resolution": None, "crossfade": 0.0}
    if "fps" in video:
        result["fps"] = _number(video["fps"], "Manifest: video.fps", strict=True)
    if "resolution" in video:
        res = video["resolution"]
        if (
            not isinstance(res, (list, tuple)) or len(res) != 2
            or not all(isinstance(v, int) and v > 0 for v in res)
        ):
            raise ValueError(
                f"Manifest: video.resolution must be [width, height], got {res!r}"
            )
        result["resolution"] = tuple(res)
    if "crossfade" in video:
        result["crossfade"] = _number(video["crossfade"], "Manifest: video.crossfade")
    return result


def _load_clip(clip: dict, index: int, paths: dict, default_crossfade: float) -> dict:
    prefix = f"Clip {index}"
    if not isinstance(clip, dict) or "path" not in clip:
        raise ValueError(f"{prefix}: missing required field 'path'")

    result = {
        "path": resolve_path_vars(clip["path"], paths),
        "duration": None,
        "trim_start": _number(clip.get("trim_start", 0), f"{prefix}: trim_start"),
        "trim_end": _number(clip.get("trim_end", 0), f"{prefix}: trim_end"),
        "crossfade": _number(clip.get("crossfade", default_crossfade), f"{prefix}: crossfade"),
        "captions": None,
        "captions_file": None,
    }
    if clip.get("duration") is not None:
        result["duration"] = _number(clip["duration"], f"{prefix}: duration", strict=True)

    captions = clip.get("captions")
    if isinstance(captions, str):
        result["captions_file"] = resolve_path_vars(captions, paths)
    elif isinstance(captions, list):
        result["captions"] = [_caption_segment(seg, f"{prefix}: caption {j}") for j, seg in enumerate(captions)]
    elif captions is not None:
        raise ValueError(f"{prefix}: captions must be a file path or a list of segments")
    return result


def _caption_segment(seg, label: str) -> CaptionSegment:
    if not isinstance(seg, dict):
        raise ValueError(f"{label}: must be a mapping with start, end, text")
    for key in ("start", "end", "text"):
        if key not in seg:
            raise ValueError(f"{label}: missing required field '{key}'")
    start = _number(seg["start"], f"{label}: start")
    end = _number(seg["end"], f"{label}: end")
    if end < start:
        raise ValueError(f"{label}: end ({end}) is before start ({start})")
    return CaptionSegment(
        id=str(seg.get("id") or uuid.uuid4().hex),
        start=start,
        end=end,
        text=str(seg["text"]),
    )


def load_caption_file(path: str | Path) -> list[CaptionSegment]:
    """Read caption segments from a JSON list (as written by transcribe)."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Caption file {path}: expected a JSON list of segments")
    return [_caption_segment(seg, f"Caption file {path}: segment {i}") for i, seg in enumerate(data)]


def _load_overlay(overlay: dict, paths: dict) -> dict:
    if "path" not in overlay:
        raise ValueError("Manifest: overlay.path is required")
    result = {
        "path": resolve_path_vars(overlay["path"], paths),
        "x": _number(overlay.get("x", 0), "Manifest: overlay.x", minimum=-100),
        "y": _number(overlay.get("y", 0), "Manifest: overlay.y", minimum=-100),
        "width": None,
        "height": None,
        "duration": _number(overlay.get("duration", DEFAULT_OVERLAY_DURATION), "Manifest: overlay.duration"),
        "fade": _number(overlay.get("fade", DEFAULT_FADE_DURATION), "Manifest: overlay.fade"),
    }
    if ("width" in overlay) != ("height" in overlay):
        raise ValueError("Manifest: overlay.width and overlay.height must be given together")
    if "width" in overlay:
        result["width"] = _number(overlay["width"], "Manifest: overlay.width", strict=True)
        result["height"] = _number(overlay["height"], "Manifest: overlay.height", strict=True)
    return result


def _load_captions(captions: dict) -> dict:
    result = {"enabled": bool(captions.get("enabled", True))}
    if "font_size" in captions:
        result["font_size"] = int(_number(captions["font_size"], "Manifest: captions.font_size", strict=True))
    if "color" in captions:
        parse_hex_color(captions["color"])
        result["color"] = captions["color"]
    if "position" in captions:
        position = captions["position"]
        if position not in VALID_CAPTION_POSITIONS:
            raise ValueError(
                f"Manifest: invalid captions.position '{position}'. "
                f"Valid: {sorted(VALID_CAPTION_POSITIONS)}"
            )
        result["position"] = position
    if "max_words" in captions:
        result["max_words"] = int(_number(captions["max_words"], "Manifest: captions.max_words", minimum=1))
    return result


def _load_summary(summary: dict) -> dict:
    items = []
    for i, item in enumerate(summary.get("items") or []):
        if not isinstance(item, dict) or not (item.get("emoji") or item.get("text")):
            raise ValueError(f"Summary item {i}: needs an emoji or text")
        items.append({"emoji": str(item.get("emoji", "")), "text": str(item.get("text", ""))})
    return {
        "enabled": bool(summary.get("enabled", True)),
        "duration": _number(summary.get("duration", DEFAULT_SUMMARY_DURATION), "Manifest: summary.duration"),
        "items": items,
    }


def validate_paths(config: dict) -> None:
    """Check that all media referenced by the manifest exists on disk.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    wanted = []
    for clip in config["clips"]:
        wanted.append(clip["path"])
        if clip["captions_file"]:
            wanted.append(clip["captions_file"])
    if config.get("overlay"):
        wanted.append(config["overlay"]["path"])

    missing = [p for p in wanted if not Path(p).exists()]
    if missing:
        msg = f"Missing {len(missing)} file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)


# ── Project state ─────────────────────────────────────────────────


def build_state(config: dict, probe=probe_metadata, registry=None) -> ProjectState:
    """Replay a normalized manifest as state events.

    Args:
        config: Output of load_manifest().
        probe: Metadata probe for clips without a duration.
        registry: Optional MediaRegistry; when given, clips and the overlay
            get registry locators as their source reference.

    Returns:
        ProjectState with every clip loaded.
    """
    video = config["video"]
    state = ProjectState()
    if video["fps"] is not None or video["resolution"] is not None:
        width, height = video["resolution"] or DEFAULT_RESOLUTION
        state = replace(
            state, fps=video["fps"] or state.fps, width=width, height=height,
            metadata_locked=True,
        )

    def source_reference(path):
        return registry.register(path) if registry is not None else path

    clip_ids = [f"clip-{i}" for i in range(len(config["clips"]))]
    state = transition(state, AddClips(items=tuple(
        (clip_id, source_reference(clip["path"]), clip["path"])
        for clip_id, clip in zip(clip_ids, config["clips"])
    )))

    for clip_id, clip in zip(clip_ids, config["clips"]):
        if clip["duration"] is not None:
            result = MetadataResult(
                width=state.width, height=state.height,
                duration=clip["duration"], fps=state.fps,
            )
        else:
            result = probe(clip["path"])
        state = transition(state, ApplyMetadata(clip_id, result))

        if clip["trim_start"] or clip["trim_end"]:
            state = transition(state, BeginTrim(clip_id))
            state = transition(state, UpdateTrimDraft(clip["trim_start"], clip["trim_end"]))
            state = transition(state, CommitTrim())

        captions = clip["captions"]
        if clip["captions_file"]:
            captions = load_caption_file(clip["captions_file"])
        if captions is not None:
            state = transition(state, SetClipCaptions(clip_id, tuple(captions)))

    # Crossfades after all durations are known, so neighbours constrain them.
    for clip_id, clip in zip(clip_ids, config["clips"]):
        state = transition(state, SetCrossfade(clip_id, clip["crossfade"]))

    overlay = config.get("overlay")
    if overlay:
        state = transition(state, SetOverlay(source_reference(overlay["path"]), overlay["path"]))
        if overlay["width"] is None:
            with Image.open(overlay["path"]) as image:
                state = transition(state, SetOverlayNaturalSize(*image.size))
        else:
            state = transition(state, SetOverlaySize(overlay["width"], overlay["height"]))
        state = transition(state, SetOverlayPosition(overlay["x"], overlay["y"]))
        state = transition(state, SetOverlayDuration(overlay["duration"]))
        state = transition(state, SetFadeDuration(overlay["fade"]))

    if config.get("captions"):
        state = transition(state, SetCaptionSettings(**config["captions"]))

    summary = config.get("summary")
    if summary:
        for i, item in enumerate(summary["items"]):
            state = transition(state, AddSummaryItem(f"item-{i}", item["emoji"], item["text"]))
        state = transition(state, SetSummaryDuration(summary["duration"]))
        state = transition(state, SetSummaryEnabled(summary["enabled"]))

    return state


def load_project(manifest_path: str | Path, probe=probe_metadata, registry=None) -> ProjectState:
    """Load a manifest, check its files and build the project state."""
    config = load_manifest(manifest_path)
    validate_paths(config)
    return build_state(config, probe=probe, registry=registry)
