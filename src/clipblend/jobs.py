"""Background jobs — metadata probes and transcriptions off the edit loop.

Work runs on a small thread pool. Finished results are not applied
directly: collect() turns them into state events, which the owner feeds
through state.transition() on its own thread. A result for a clip that
was removed meanwhile becomes an event for an unknown id, which
transition() ignores.

Transcription requests are guarded by a pending set keyed on clip id, so
a clip is never transcribed twice while a request is in flight, even if
request_transcriptions() is called again before its status event lands.
"""

import concurrent.futures
import threading

from .media import probe_metadata
from .model import CaptionSegment, CaptionStatus, ProjectState
from .state import ApplyMetadata, SetCaptionStatus, SetClipCaptions
from .transcribe import transcribe_file


PROBE = "probe"
TRANSCRIBE = "transcribe"


class BackgroundJobs:
    """Thread-pool runner for probes and transcriptions."""

    def __init__(self, max_workers: int = 2, probe=probe_metadata, transcriber=transcribe_file):
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="clipblend",
        )
        self._probe = probe
        self._transcriber = transcriber
        self._lock = threading.Lock()
        self._futures = []  # (kind, clip_id, future)
        self._pending_transcriptions = set()

    @property
    def outstanding(self) -> int:
        with self._lock:
            return len(self._futures)

    def is_transcribing(self, clip_id: str) -> bool:
        with self._lock:
            return clip_id in self._pending_transcriptions

    def submit_probe(self, clip_id: str, path: str) -> None:
        future = self._executor.submit(self._probe, path)
        with self._lock:
            self._futures.append((PROBE, clip_id, future))

    def submit_transcription(self, clip_id: str, path: str) -> bool:
        """Start a transcription unless one is already pending for the clip.

        Returns:
            True if a new request was started.
        """
        with self._lock:
            if clip_id in self._pending_transcriptions:
                return False
            self._pending_transcriptions.add(clip_id)
            future = self._executor.submit(self._transcriber, path)
            self._futures.append((TRANSCRIBE, clip_id, future))
        return True

    def request_transcriptions(self, state: ProjectState, resolver=None) -> list[SetCaptionStatus]:
        """Start transcriptions for loaded clips still idle, if captions are on.

        Args:
            state: Current project state.
            resolver: Optional locator -> path lookup for clips without a path.

        Returns:
            SetCaptionStatus(TRANSCRIBING) events for the clips just started.
        """
        if not state.captions.enabled:
            return []
        events = []
        for clip in state.clips:
            if clip.caption_status != CaptionStatus.IDLE or not clip.is_loaded:
                continue
            path = clip.file_path
            if not path and resolver is not None:
                path = resolver(clip.source_reference) or ""
            if self.submit_transcription(clip.id, path):
                events.append(SetCaptionStatus(clip.id, CaptionStatus.TRANSCRIBING))
        return events

    def _result_events(self, kind: str, clip_id: str, future) -> list:
        if kind == PROBE:
            try:
                result = future.result()
            except Exception as e:
                # The clip stays pending; it simply never joins the timeline.
                print(f"  FAIL   probe {clip_id}: {e}", flush=True)
                return []
            return [ApplyMetadata(clip_id, result)]

        with self._lock:
            self._pending_transcriptions.discard(clip_id)
        try:
            result = future.result()
        except Exception as e:
            result = {"success": False, "segments": [], "error": str(e)}
        if not result.get("success"):
            print(f"  FAIL   transcription {clip_id}: {result.get('error')}", flush=True)
            return [SetCaptionStatus(clip_id, CaptionStatus.ERROR)]
        segments = tuple(CaptionSegment.from_dict(s) for s in result["segments"])
        return [SetClipCaptions(clip_id, segments)]

    def collect(self) -> list:
        """Events for every job finished since the last call, in submit order."""
        with self._lock:
            done, running = [], []
            for job in self._futures:
                (done if job[2].done() else running).append(job)
            self._futures = running
        events = []
        for kind, clip_id, future in done:
            events.extend(self._result_events(kind, clip_id, future))
        return events

    def wait(self, timeout: float | None = None) -> None:
        """Block until at least one outstanding job finishes (or timeout)."""
        with self._lock:
            futures = [job[2] for job in self._futures]
        if futures:
            concurrent.futures.wait(
                futures, timeout=timeout, return_when=concurrent.futures.FIRST_COMPLETED,
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
