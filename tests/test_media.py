"""Tests for the media registry and metadata probe."""

import pytest

from clipblend.media import MediaRegistry, probe_metadata


class TestMediaRegistry:
    def test_register_returns_locator(self):
        registry = MediaRegistry("media://test")
        locator = registry.register("/videos/a.mp4")
        assert locator.startswith("media://test/")
        assert registry.lookup(locator) == "/videos/a.mp4"

    def test_reregister_reuses_token(self):
        registry = MediaRegistry()
        assert registry.register("/a.mp4") == registry.register("/a.mp4")
        assert len(registry) == 1

    def test_distinct_paths_distinct_tokens(self):
        registry = MediaRegistry()
        assert registry.register("/a.mp4") != registry.register("/b.mp4")

    def test_lookup_by_bare_token(self):
        registry = MediaRegistry()
        token = registry.register("/a.mp4").rsplit("/", 1)[-1]
        assert registry.lookup(token) == "/a.mp4"

    def test_lookup_unknown(self):
        registry = MediaRegistry()
        assert registry.lookup("media://local/nope") is None
        assert registry.lookup("") is None

    def test_unregister(self):
        registry = MediaRegistry()
        locator = registry.register("/a.mp4")
        registry.unregister("/a.mp4")
        assert registry.lookup(locator) is None

    def test_registries_are_independent(self):
        one, two = MediaRegistry(), MediaRegistry()
        locator = one.register("/a.mp4")
        assert two.lookup(locator) is None

    def test_close_tears_down(self):
        with MediaRegistry() as registry:
            locator = registry.register("/a.mp4")
        assert registry.closed
        assert registry.lookup(locator) is None
        with pytest.raises(RuntimeError, match="closed"):
            registry.register("/b.mp4")


class TestProbeMetadata:
    def test_reads_video(self, source_video):
        meta = probe_metadata(source_video)
        assert (meta.width, meta.height) == (320, 240)
        assert meta.fps == pytest.approx(10)
        assert meta.duration == pytest.approx(5.0, abs=0.2)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            probe_metadata(tmp_path / "missing.mp4")
