"""Tests for clipblend.common utilities."""

import pytest

from clipblend.common import (
    load_clip,
    load_font,
    parse_hex_color,
    resolve_path_vars,
    text_size,
    wrap_text,
)


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#e04c77") == (224, 76, 119)

    def test_without_hash(self):
        assert parse_hex_color("1A1A1A") == (26, 26, 26)

    def test_white(self):
        assert parse_hex_color("#FFFFFF") == (255, 255, 255)

    @pytest.mark.parametrize("value", ["#FFF", "white", "#GGGGGG", ""])
    def test_invalid_raises(self, value):
        with pytest.raises(ValueError, match="Invalid color"):
            parse_hex_color(value)


class TestResolvePathVars:
    def test_single_var(self):
        result = resolve_path_vars("${raw}/a.mp4", {"raw": "/data/raw"})
        assert result == "/data/raw/a.mp4"

    def test_multiple_vars(self):
        paths = {"raw": "/data/raw", "assets": "/data/assets"}
        result = resolve_path_vars("${raw}/a and ${assets}/b", paths)
        assert result == "/data/raw/a and /data/assets/b"

    def test_no_vars(self):
        assert resolve_path_vars("/plain/path", {}) == "/plain/path"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/x", {})


class TestText:
    def test_load_font(self):
        assert load_font(size=24) is not None

    def test_text_size_grows_with_text(self):
        font = load_font(size=24)
        short_w, _ = text_size("ab", font)
        long_w, _ = text_size("abcdefgh", font)
        assert long_w > short_w > 0

    def test_wrap_fits_width(self):
        font = load_font(size=24)
        text = "the quick brown fox jumps over the lazy dog"
        max_w = text_size("the quick brown", font)[0]
        lines = wrap_text(text, font, max_w)
        assert len(lines) > 1
        assert " ".join(lines) == text

    def test_wrap_long_word_gets_own_line(self):
        font = load_font(size=24)
        assert wrap_text("a enormousword b", font, 1) == ["a", "enormousword", "b"]

    def test_wrap_empty(self):
        assert wrap_text("", load_font(size=24), 100) == []


class TestLoadClip:
    def test_loads_without_audio(self, source_video):
        clip = load_clip(source_video)
        try:
            assert clip.audio is None
            assert tuple(clip.size) == (320, 240)
        finally:
            clip.close()
