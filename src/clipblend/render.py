"""Render backend — rasterise a Composition with moviepy, numpy and Pillow.

render_frame() draws one timeline frame from the Composition: clips blended
in timeline order with their crossfade opacity, then the image overlay,
then the caption. The summary slide replaces the whole frame after the
clip section. Preview and export both call render_frame(); they differ only
in how FrameSource gets at the video frames:

  - preview: FrameSource opens each source lazily on first seek.
  - export: every source is opened up front (FrameSource.open_all), then
    moviepy pulls frames in order, so decoding streams forward.

write_composition() drives a full export through moviepy's writer and
reports progress in [0, 1] through a proglog logger.
"""

from functools import lru_cache
from pathlib import Path

import numpy as np
from PIL import Image
from moviepy import VideoClip
from proglog import ProgressBarLogger

from .common import load_clip
from .composition import ClipSegment, Composition, resolve_frame
from .overlays import (
    CAPTION_SIDE_FRAC,
    blend_frames,
    blend_patch,
    compute_caption_position,
    compute_overlay_box,
    render_caption_patch,
    render_image_overlay,
)
from .summary import render_summary_frame
from .timing import seconds_to_frames


# Fraction of export progress spent before the first frame is written.
PREPARE_PROGRESS = 0.2


# ── Frame sources ────────────────────────────────────────────────


class FrameSource:
    """Decoded source video frames for clip segments.

    Each file is opened once and kept until close(). Locators are turned
    into file paths through an optional resolver (MediaRegistry.lookup)
    when a segment carries no path.
    """

    def __init__(self, resolution: tuple[int, int], resolver=None):
        self.resolution = resolution
        self._resolver = resolver
        self._clips = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _path_for(self, segment: ClipSegment) -> str:
        if segment.path:
            return segment.path
        if self._resolver is not None:
            path = self._resolver(segment.src)
            if path:
                return path
        raise FileNotFoundError(f"No media for clip '{segment.clip_id}' ({segment.src})")

    def _open(self, path: str):
        clip = self._clips.get(path)
        if clip is None:
            clip = load_clip(path)
            self._clips[path] = clip
        return clip

    def open_all(self, segments) -> None:
        """Open every segment's source now instead of on first use."""
        for segment in segments:
            self._open(self._path_for(segment))

    def get_frame(self, segment: ClipSegment, t: float) -> np.ndarray:
        """Source frame at time t, scaled to the output resolution."""
        clip = self._open(self._path_for(segment))
        last = clip.duration - 1.0 / clip.fps if clip.fps else clip.duration
        frame = clip.get_frame(max(0.0, min(t, last)))
        w, h = self.resolution
        if frame.shape[0] != h or frame.shape[1] != w:
            frame = np.array(Image.fromarray(frame).resize((w, h), resample=Image.BILINEAR))
        return frame[:, :, :3]

    def close(self) -> None:
        for clip in self._clips.values():
            clip.close()
        self._clips.clear()


# ── Layer patches (cached: identical across many frames) ────────


@lru_cache(maxsize=8)
def _overlay_patch(path: str, box: tuple[int, int, int, int]):
    with Image.open(path) as image:
        return render_image_overlay(image, box)


@lru_cache(maxsize=64)
def _caption_patch(text: str, font_size: int, color: str, max_width: int) -> np.ndarray:
    return render_caption_patch(text, font_size, color, max_width)


# ── Per-frame rendering ──────────────────────────────────────────


def render_frame(
    composition: Composition,
    frame: int,
    source: FrameSource,
    resolver=None,
) -> np.ndarray:
    """Rasterise one timeline frame.

    Args:
        composition: Built Composition.
        frame: Timeline frame index.
        source: FrameSource for decoding clip video.
        resolver: Optional locator -> path lookup for the overlay image.

    Returns:
        RGB frame, shape (height, width, 3), dtype uint8.
    """
    w, h = composition.width, composition.height
    state = resolve_frame(composition, frame)

    if state.summary_frame is not None:
        return render_summary_frame(
            list(composition.summary.items), state.summary_frame, (w, h),
        )

    result = np.zeros((h, w, 3), dtype=np.uint8)

    # Clip layer: later clips sit on top of earlier ones.
    for visible in state.clips:
        if visible.opacity <= 0:
            continue
        segment = composition.segments[visible.segment_index]
        result = blend_frames(result, source.get_frame(segment, visible.source_time), visible.opacity)

    # Overlay layer: skipped entirely once faded out.
    overlay = composition.overlay
    if state.overlay_opacity > 0:
        path = overlay.path or (resolver(overlay.src) if resolver else None)
        if path:
            box = compute_overlay_box(overlay.x, overlay.y, overlay.width, overlay.height, w, h)
            patch, x, y = _overlay_patch(path, box)
            result = blend_patch(result, patch, x, y, state.overlay_opacity)

    # Caption layer: text is None when captions are disabled or in a gap.
    if state.caption_text:
        layer = composition.captions
        max_width = int(w * (1 - 2 * CAPTION_SIDE_FRAC))
        patch = _caption_patch(state.caption_text, layer.font_size, layer.color, max_width)
        x, y = compute_caption_position(layer.position, patch.shape[1], patch.shape[0], w, h)
        result = blend_patch(result, patch, x, y)

    return result


# ── Export ───────────────────────────────────────────────────────


class ExportProgressLogger(ProgressBarLogger):
    """Bridge moviepy/proglog bar updates to a fractional progress callback.

    Writing frames covers [start, 1.0]; anything before that is preparation.
    """

    def __init__(self, on_progress, start: float = PREPARE_PROGRESS):
        super().__init__()
        self._on_progress = on_progress
        self._start = start

    def bars_callback(self, bar, attr, value, old_value=None):
        if attr != "index":
            return
        total = self.bars.get(bar, {}).get("total")
        if not total:
            return
        fraction = max(0.0, min(1.0, value / total))
        self._on_progress(self._start + (1.0 - self._start) * fraction)


def write_composition(
    composition: Composition,
    output_path: str | Path,
    on_progress=None,
    resolver=None,
    quiet: bool = False,
) -> None:
    """Render a Composition to an mp4 file.

    Args:
        composition: Built Composition.
        output_path: Destination file; parent directories are created.
        on_progress: Optional callable receiving progress in [0, 1].
        resolver: Optional locator -> path lookup for media without a path.
        quiet: Suppress moviepy's console bar when no callback is given.

    Raises:
        FileNotFoundError / OSError: Source media cannot be opened.
        Any error from the moviepy/ffmpeg writer is propagated; a partially
        written output file is left for the caller to deal with.
    """
    fps = composition.fps
    total = composition.total_frames

    def report(value):
        if on_progress is not None:
            on_progress(value)

    report(0.0)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    with FrameSource((composition.width, composition.height), resolver) as source:
        source.open_all(composition.segments)
        report(PREPARE_PROGRESS)

        def frame_function(t):
            frame = min(max(0, seconds_to_frames(t, fps)), total - 1)
            return render_frame(composition, frame, source, resolver)

        clip = VideoClip(frame_function, duration=total / fps)
        if on_progress is not None:
            logger = ExportProgressLogger(on_progress)
        else:
            logger = None if quiet else "bar"
        clip.write_videofile(
            str(output_path),
            fps=fps,
            codec="libx264",
            audio=False,
            preset="medium",
            ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
            logger=logger,
        )

    report(1.0)
