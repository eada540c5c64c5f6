"""Tests for caption splitting, trim re-basing and active-chunk lookup."""

import pytest

from clipblend.captions import (
    active_caption,
    active_chunk,
    active_segment_index,
    adjust_captions_for_trim,
    current_clip_index,
    find_matches,
    seek_frame_for_segment,
    split_captions,
    split_segment,
)
from clipblend.model import CaptionChunk, CaptionSegment


def _seg(start, end, text="hello", seg_id="s"):
    return CaptionSegment(id=seg_id, start=start, end=end, text=text)


class TestSplitSegment:
    def test_twelve_words_into_three_chunks(self):
        text = " ".join(f"w{i}" for i in range(12))
        chunks = split_segment(_seg(10.0, 16.0, text), 5)
        assert [len(c.text.split()) for c in chunks] == [5, 5, 2]
        assert [(c.start, c.end) for c in chunks] == [(10.0, 12.0), (12.0, 14.0), (14.0, 16.0)]
        assert " ".join(c.text for c in chunks) == text

    def test_fits_returns_segment_unchanged(self):
        chunks = split_segment(_seg(1.0, 2.0, "  two  words "), 5)
        assert chunks == [CaptionChunk(1.0, 2.0, "  two  words ")]

    def test_exactly_max_words_is_one_chunk(self):
        assert len(split_segment(_seg(0, 1, "a b c"), 3)) == 1

    def test_empty_text(self):
        assert split_segment(_seg(0, 1, ""), 3) == [CaptionChunk(0, 1, "")]

    def test_split_captions_keeps_order(self):
        chunks = split_captions([_seg(0, 2, "a b c d"), _seg(2, 3, "e")], 2)
        assert [c.text for c in chunks] == ["a b", "c d", "e"]


class TestAdjustCaptionsForTrim:
    def test_rebases_inside_window(self):
        result = adjust_captions_for_trim([_seg(5, 8)], 3, 2, 20)
        assert [(c.start, c.end) for c in result] == [(2, 5)]

    def test_drops_before_trim_start(self):
        assert adjust_captions_for_trim([_seg(0, 3)], 3, 0, 20) == []

    def test_drops_after_trim_end(self):
        assert adjust_captions_for_trim([_seg(18, 20)], 0, 2, 20) == []

    def test_clips_straddling_boundaries(self):
        result = adjust_captions_for_trim([_seg(2, 4), _seg(17, 19)], 3, 2, 20)
        assert [(c.start, c.end) for c in result] == [(0.0, 1), (14, 15)]

    def test_keeps_id_and_text(self):
        result = adjust_captions_for_trim([_seg(5, 8, "hi", "abc")], 3, 2, 20)
        assert (result[0].id, result[0].text) == ("abc", "hi")

    def test_no_trim_is_identity(self):
        caps = [_seg(0, 1), _seg(1, 2)]
        assert adjust_captions_for_trim(caps, 0, 0, 10) == caps


class TestActiveChunk:
    chunks = [CaptionChunk(0.0, 1.0, "first"), CaptionChunk(1.0, 2.0, "second")]

    def test_finds_chunk_by_local_time(self):
        assert active_chunk(100, 90, 90, self.chunks, 30) == "first"
        assert active_chunk(125, 90, 90, self.chunks, 30) == "second"

    def test_end_is_exclusive(self):
        assert active_chunk(120, 90, 90, self.chunks, 30) == "second"

    def test_gap_returns_none(self):
        assert active_chunk(160, 90, 90, self.chunks, 30) is None

    def test_outside_clip_window_returns_none(self):
        # Local time would be 0.33s, but frame 10 is before the clip starts.
        assert active_chunk(10, 90, 90, self.chunks, 30) is None
        assert active_chunk(180, 90, 90, self.chunks, 30) is None


class TestActiveCaption:
    def _clips(self):
        return [
            {"start_frame": 0, "duration_in_frames": 120,
             "chunks": [CaptionChunk(0.0, 10.0, "stale A")]},
            {"start_frame": 90, "duration_in_frames": 180,
             "chunks": [CaptionChunk(2.0, 3.0, "B")]},
        ]

    def test_outgoing_clip_owns_crossfade(self):
        assert current_clip_index(100, [(0, 120), (90, 180)]) == 0
        assert active_caption(100, self._clips(), 30) == "stale A"

    def test_frame_owned_by_b_ignores_a_chunks(self):
        # Clip A's chunk spans 0-10s, which frame 130 would match locally.
        assert active_caption(130, self._clips(), 30) is None

    def test_b_chunk(self):
        assert active_caption(90 + 75, self._clips(), 30) == "B"

    def test_outside_timeline(self):
        assert current_clip_index(400, [(0, 120), (90, 180)]) is None
        assert active_caption(400, self._clips(), 30) is None


class TestTranscriptHelpers:
    def test_active_segment_index(self):
        caps = [_seg(0, 1), _seg(1, 2), _seg(5, 6)]
        assert active_segment_index(caps, 30, 75, 30) == 1
        assert active_segment_index(caps, 30, 30 + 90, 30) == -1

    def test_seek_frame(self):
        assert seek_frame_for_segment(_seg(2.5, 3), 60, 30) == 135

    def test_find_matches_case_insensitive(self):
        assert find_matches("Hello hello", "HELLO") == [(0, 5), (6, 11)]

    def test_find_matches_overlapping(self):
        assert find_matches("aaa", "aa") == [(0, 2), (1, 3)]

    @pytest.mark.parametrize("query", ["", "   "])
    def test_find_matches_blank_query(self, query):
        assert find_matches("anything", query) == []
