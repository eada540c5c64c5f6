"""Editor session — project state, media, background jobs and a playhead.

An EditorSession is the interactive counterpart of the export CLI. It owns
everything with a lifetime: the MediaRegistry, the BackgroundJobs pool and
the decoded-frame cache. close() (or leaving the `with` block) tears all
of it down.

    with EditorSession() as session:
        session.add_files(["a.mp4", "b.mp4"])
        session.wait_idle()
        session.dispatch(SetCrossfade(session.state.clips[1].id, 1.0))
        session.seek(90)
        session.save_frame("frame.png")
        session.export("out.mp4")

State changes only happen on the caller's thread: background results are
queued by the job pool and applied by poll().
"""

import time
import uuid
from pathlib import Path

from PIL import Image

from .captions import active_segment_index, find_matches, seek_frame_for_segment
from .composition import Composition, FrameState, build_composition, resolve_frame
from .export import export_request, run_export
from .jobs import BackgroundJobs
from .media import MediaRegistry
from .model import ProjectState
from .render import FrameSource, render_frame
from .state import AddClips, SetOverlay, SetOverlayNaturalSize, transition


class EditorSession:
    """One editing session: state plus the resources that serve it."""

    def __init__(
        self,
        state: ProjectState | None = None,
        registry: MediaRegistry | None = None,
        jobs: BackgroundJobs | None = None,
    ):
        self.state = state if state is not None else ProjectState()
        self.registry = registry if registry is not None else MediaRegistry()
        self.jobs = jobs if jobs is not None else BackgroundJobs()
        self.playhead = 0
        self._composition = None
        self._composition_state = None
        self._sources = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── State ────────────────────────────────────────────────────

    def dispatch(self, event) -> ProjectState:
        """Apply one event, then start any transcriptions it makes due."""
        self.state = transition(self.state, event)
        self._request_transcriptions()
        return self.state

    def _request_transcriptions(self) -> None:
        for event in self.jobs.request_transcriptions(self.state, self.registry.lookup):
            self.state = transition(self.state, event)

    def poll(self) -> int:
        """Apply finished background results. Returns how many were applied."""
        events = self.jobs.collect()
        for event in events:
            self.state = transition(self.state, event)
        if events:
            self._request_transcriptions()
        return len(events)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Poll until no background job is outstanding.

        Returns:
            False if timeout (seconds) ran out first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.jobs.outstanding:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            self.jobs.wait(remaining)
            self.poll()
        return True

    def add_files(self, paths) -> list[str]:
        """Register media files, append them as clips and start their probes.

        Returns:
            The new clip ids, in order.
        """
        items = []
        for path in paths:
            path = str(Path(path))
            items.append((uuid.uuid4().hex, self.registry.register(path), path))
        self.dispatch(AddClips(items=tuple(items)))
        for clip_id, _src, path in items:
            self.jobs.submit_probe(clip_id, path)
        return [clip_id for clip_id, _src, _path in items]

    def set_overlay_image(self, path) -> None:
        """Use an image as the overlay, sized to fill the frame width."""
        path = str(Path(path))
        with Image.open(path) as image:
            image_width, image_height = image.size
        self.dispatch(SetOverlay(self.registry.register(path), path))
        self.dispatch(SetOverlayNaturalSize(image_width, image_height))

    # ── Composition / playhead ───────────────────────────────────

    def composition(self) -> Composition:
        """Composition of the committed state (cached until the state changes)."""
        if self._composition is None or self._composition_state is not self.state:
            self._composition = build_composition(export_request(self.state))
            self._composition_state = self.state
        return self._composition

    def seek(self, frame: int) -> int:
        """Move the playhead, clamped to the timeline. Returns the new frame."""
        total = self.composition().total_frames
        self.playhead = max(0, min(int(frame), total - 1))
        return self.playhead

    def frame_state(self, frame: int | None = None) -> FrameState:
        return resolve_frame(self.composition(), self.playhead if frame is None else frame)

    def render_frame(self, frame: int | None = None):
        """Rasterise a frame (default: the playhead) as an RGB array."""
        composition = self.composition()
        resolution = (composition.width, composition.height)
        if self._sources is None or self._sources.resolution != resolution:
            if self._sources is not None:
                self._sources.close()
            self._sources = FrameSource(resolution, self.registry.lookup)
        frame = self.playhead if frame is None else frame
        return render_frame(composition, frame, self._sources, self.registry.lookup)

    def save_frame(self, path, frame: int | None = None) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(self.render_frame(frame)).save(str(path))

    # ── Transcript ───────────────────────────────────────────────

    def _segment_start_frame(self, clip_id: str) -> int | None:
        for segment in self.composition().segments:
            if segment.clip_id == clip_id:
                return segment.start_frame
        return None

    def active_segment(self, clip_id: str) -> int:
        """Index of the clip's caption under the playhead, or -1."""
        clip = self.state.get_clip(clip_id)
        start = self._segment_start_frame(clip_id)
        if clip is None or start is None:
            return -1
        return active_segment_index(clip.captions, start, self.playhead, self.composition().fps)

    def seek_to_caption(self, clip_id: str, caption_id: str) -> int:
        """Move the playhead to where a caption segment starts.

        Raises:
            ValueError: Unknown clip or caption, or the clip is not on the
                timeline yet.
        """
        clip = self.state.get_clip(clip_id)
        start = self._segment_start_frame(clip_id)
        if clip is None or start is None:
            raise ValueError(f"Clip '{clip_id}' is not on the timeline")
        for segment in clip.captions:
            if segment.id == caption_id:
                return self.seek(seek_frame_for_segment(segment, start, self.composition().fps))
        raise ValueError(f"Unknown caption '{caption_id}' in clip '{clip_id}'")

    def search_captions(self, query: str) -> list[tuple[str, str, list[tuple[int, int]]]]:
        """Find query in every clip's captions.

        Returns:
            (clip_id, caption_id, matches) per caption with at least one
            match, in timeline order; matches are (start, end) text offsets.
        """
        results = []
        for clip in self.state.clips:
            for segment in clip.captions:
                matches = find_matches(segment.text, query)
                if matches:
                    results.append((clip.id, segment.id, matches))
        return results

    # ── Export / teardown ────────────────────────────────────────

    def export(self, output_path, on_progress=None, quiet: bool = True) -> dict:
        """Render the committed state to a video file. See export.run_export."""
        request = export_request(self.state, output_path)
        return run_export(request, on_progress=on_progress, resolver=self.registry.lookup, quiet=quiet)

    def close(self) -> None:
        if self._sources is not None:
            self._sources.close()
            self._sources = None
        self.jobs.shutdown(wait=False)
        self.registry.close()
