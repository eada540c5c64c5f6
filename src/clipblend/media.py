"""Media registry and metadata probe.

Clips and the overlay refer to media by locator (``<base_url>/<token>``)
rather than by file path, so a project can be serialised and handed to the
renderer without exposing local paths. A MediaRegistry is owned by one
session: it is created with it and torn down with it.

    with MediaRegistry() as registry:
        src = registry.register("/videos/a.mp4")   # media://local/3f0c...
        registry.lookup(src)                        # "/videos/a.mp4"
"""

import secrets
from pathlib import Path

from .common import load_clip
from .model import DEFAULT_FPS, MetadataResult


DEFAULT_BASE_URL = "media://local"


class MediaRegistry:
    """Token <-> file path table for one editing session."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url.rstrip("/")
        self._paths = {}
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __len__(self):
        return len(self._paths)

    @property
    def closed(self) -> bool:
        return self._closed

    def _locator(self, token: str) -> str:
        return f"{self.base_url}/{token}"

    def register(self, path: str | Path) -> str:
        """Register a file and return its locator.

        Registering the same path again returns the existing locator.

        Raises:
            RuntimeError: The registry has been closed.
        """
        if self._closed:
            raise RuntimeError("MediaRegistry is closed")
        path = str(path)
        for token, known in self._paths.items():
            if known == path:
                return self._locator(token)
        token = secrets.token_hex(16)
        self._paths[token] = path
        return self._locator(token)

    def lookup(self, locator: str) -> str | None:
        """File path for a locator or bare token, or None if unknown."""
        if not locator:
            return None
        token = locator.rsplit("/", 1)[-1]
        return self._paths.get(token)

    def unregister(self, path: str | Path) -> None:
        path = str(path)
        self._paths = {t: p for t, p in self._paths.items() if p != path}

    def close(self) -> None:
        self._paths.clear()
        self._closed = True


def probe_metadata(path: str | Path) -> MetadataResult:
    """Read frame size, duration and frame rate from a video file.

    Raises:
        FileNotFoundError: path does not exist.
        OSError: ffmpeg could not read the file.
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"Video file not found: {path}")
    clip = load_clip(path)
    try:
        width, height = clip.size
        return MetadataResult(
            width=int(width),
            height=int(height),
            duration=float(clip.duration),
            fps=float(clip.fps or DEFAULT_FPS),
        )
    finally:
        clip.close()
