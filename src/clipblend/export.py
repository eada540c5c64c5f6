"""Export — the serialisable export request and the export orchestration.

export_request() snapshots a ProjectState into a plain dict (strings,
numbers, lists) that build_composition() consumes. Preview builds its
Composition from the same dict, so what is exported is exactly what was
previewed.

run_export() is the boundary to the render backend: it never raises,
returning {"success": True} or {"success": False, "error": message}.

Request shape:
  clips:         [{id, src, path, duration, trim_start, trim_end, crossfade_duration}]
  clip_captions: [{clip_id, captions: [{id, start, end, text}]}]
  overlay:       {src, path, x, y, width, height, duration, fade_duration}
  captions:      {enabled, font_size, color, position, max_words}
  summary:       {enabled, items: [{id, emoji, text}], duration}
  output_path, fps, width, height
"""

from pathlib import Path

from .composition import build_composition
from .model import Clip, ProjectState
from .render import write_composition


def export_request(
    state: ProjectState,
    output_path: str | Path | None = None,
    clips: tuple[Clip, ...] | None = None,
) -> dict:
    """Build the export request for a project.

    Args:
        state: Project state to export.
        output_path: Destination video file, if known yet.
        clips: Clip list to use instead of state.clips (e.g. with an open
            trim draft applied, see state.display_clips).
    """
    clips = state.clips if clips is None else clips
    overlay = state.overlay
    return {
        "clips": [
            {
                "id": c.id,
                "src": c.source_reference or c.file_path,
                "path": c.file_path,
                "duration": c.natural_duration,
                "trim_start": c.trim_start,
                "trim_end": c.trim_end,
                "crossfade_duration": c.crossfade_duration,
            }
            for c in clips
        ],
        "clip_captions": [
            {"clip_id": c.id, "captions": [seg.to_dict() for seg in c.captions]}
            for c in clips
            if c.captions
        ],
        "overlay": {
            "src": overlay.source_reference or overlay.file_path,
            "path": overlay.file_path,
            "x": overlay.x,
            "y": overlay.y,
            "width": overlay.width,
            "height": overlay.height,
            "duration": overlay.duration,
            "fade_duration": overlay.fade_duration,
        },
        "captions": state.captions.to_dict(),
        "summary": {
            "enabled": state.summary.enabled,
            "items": [
                {"id": i.id, "emoji": i.emoji, "text": i.text}
                for i in state.summary.items
            ],
            "duration": state.summary.duration,
        },
        "output_path": str(output_path) if output_path is not None else None,
        "fps": state.fps,
        "width": state.width,
        "height": state.height,
    }


def run_export(request: dict, on_progress=None, resolver=None, quiet: bool = False) -> dict:
    """Render an export request to its output_path.

    Args:
        request: Export request from export_request().
        on_progress: Optional callable receiving progress in [0, 1].
        resolver: Optional locator -> path lookup for media without a path.
        quiet: Suppress moviepy's console bar.

    Returns:
        {"success": True} or {"success": False, "error": message}.
    """
    output_path = request.get("output_path")
    if not output_path:
        return {"success": False, "error": "No output path given"}

    try:
        composition = build_composition(request)
        if not composition.segments:
            return {"success": False, "error": "No clips with known duration to export"}
        write_composition(
            composition, output_path,
            on_progress=on_progress, resolver=resolver, quiet=quiet,
        )
    except Exception as e:
        return {"success": False, "error": str(e)}
    return {"success": True}
