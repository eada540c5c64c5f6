"""Tests for the composition model — build_composition and resolve_frame."""

import pytest

from clipblend.composition import build_composition, resolve_frame
from clipblend.model import CaptionPosition


def _clip(clip_id, duration, crossfade=0.0, trim_start=0.0, trim_end=0.0):
    return {
        "id": clip_id,
        "src": f"media://local/{clip_id}",
        "path": f"/tmp/{clip_id}.mp4",
        "duration": duration,
        "trim_start": trim_start,
        "trim_end": trim_end,
        "crossfade_duration": crossfade,
    }


def _request(clips, **overrides):
    r = {
        "clips": clips,
        "clip_captions": [],
        "overlay": {"src": "", "path": "", "x": 0, "y": 0, "width": 100,
                    "height": 20, "duration": 5.0, "fade_duration": 1.0},
        "captions": {"enabled": False, "font_size": 48, "color": "#FFFFFF",
                     "position": "bottom", "max_words": 10},
        "summary": {"enabled": False, "items": [], "duration": 5.0},
        "output_path": None,
        "fps": 30,
        "width": 1920,
        "height": 1080,
    }
    r.update(overrides)
    return r


class TestBuildComposition:
    def test_two_clip_scenario(self):
        comp = build_composition(_request([_clip("a", 4.0), _clip("b", 6.0, crossfade=1.0)]))
        a, b = comp.segments
        assert (a.start_frame, a.duration_in_frames) == (0, 120)
        assert (b.start_frame, b.end_frame) == (90, 270)
        assert comp.total_frames == 270

    def test_crossfade_frames_wired_both_ways(self):
        comp = build_composition(_request([_clip("a", 3.0), _clip("b", 3.0, crossfade=1.0)]))
        a, b = comp.segments
        assert (a.crossfade_in_frames, a.crossfade_out_frames) == (0, 30)
        assert (b.crossfade_in_frames, b.crossfade_out_frames) == (30, 0)
        assert a.is_first and not a.is_last
        assert b.is_last and not b.is_first
        assert comp.total_frames == 150

    def test_first_clip_crossfade_ignored(self):
        comp = build_composition(_request([_clip("a", 2.0, crossfade=1.0)]))
        assert comp.segments[0].crossfade_in_frames == 0
        assert comp.total_frames == 60

    def test_pending_clip_skipped(self):
        comp = build_composition(_request([
            _clip("a", 2.0), _clip("pending", 0.0, crossfade=1.0), _clip("c", 2.0),
        ]))
        assert [s.clip_id for s in comp.segments] == ["a", "c"]
        assert comp.total_frames == 120

    def test_trim_sets_duration_and_source_offset(self):
        comp = build_composition(_request([_clip("a", 10.0, trim_start=2.0, trim_end=3.0)]))
        seg = comp.segments[0]
        assert seg.duration_in_frames == 150
        assert seg.source_start_frame == 60
        assert seg.source_time(0, 30) == 2.0

    def test_empty_timeline_is_one_frame(self):
        comp = build_composition(_request([]))
        assert comp.segments == ()
        assert comp.total_frames == 1

    def test_summary_appended(self):
        comp = build_composition(_request(
            [_clip("a", 2.0)],
            summary={"enabled": True, "items": [{"id": "1", "emoji": "x", "text": "y"}], "duration": 5.0},
        ))
        assert comp.summary.start_frame == 60
        assert comp.summary.duration_in_frames == 150
        assert comp.total_frames == 210

    def test_summary_disabled(self):
        comp = build_composition(_request(
            [_clip("a", 2.0)],
            summary={"enabled": False, "items": [], "duration": 5.0},
        ))
        assert comp.summary is None
        assert comp.total_frames == 60

    def test_caption_settings_parsed(self):
        comp = build_composition(_request(
            [_clip("a", 2.0)],
            captions={"enabled": True, "font_size": 32, "color": "#FF0000",
                      "position": "top", "max_words": 4},
        ))
        assert comp.captions.position == CaptionPosition.TOP
        assert comp.captions.font_size == 32

    def test_invalid_caption_position(self):
        with pytest.raises(ValueError):
            build_composition(_request(
                [_clip("a", 2.0)],
                captions={"enabled": True, "position": "sideways"},
            ))


class TestResolveFrame:
    def test_single_clip_fully_visible(self):
        comp = build_composition(_request([_clip("a", 2.0)]))
        state = resolve_frame(comp, 30)
        assert len(state.clips) == 1
        assert state.clips[0].opacity == 1.0
        assert state.clips[0].source_time == 1.0

    def test_crossfade_shows_both_clips(self):
        comp = build_composition(_request([_clip("a", 4.0), _clip("b", 6.0, crossfade=1.0)]))
        state = resolve_frame(comp, 105)
        assert [c.segment_index for c in state.clips] == [0, 1]
        assert state.clips[0].opacity == pytest.approx(0.5)
        assert state.clips[1].opacity == pytest.approx(0.5)
        assert state.clips[1].local_frame == 15

    def test_after_crossfade_only_incoming(self):
        comp = build_composition(_request([_clip("a", 4.0), _clip("b", 6.0, crossfade=1.0)]))
        state = resolve_frame(comp, 120)
        assert [c.segment_index for c in state.clips] == [1]

    def test_overlay_requires_source(self):
        comp = build_composition(_request([_clip("a", 10.0)]))
        assert resolve_frame(comp, 0).overlay_opacity == 0.0

    def test_overlay_fades_out(self):
        overlay = {"src": "media://local/logo", "path": "", "x": 0, "y": 0,
                   "width": 100, "height": 20, "duration": 5.0, "fade_duration": 1.0}
        comp = build_composition(_request([_clip("a", 10.0)], overlay=overlay))
        assert resolve_frame(comp, 0).overlay_opacity == 1.0
        assert resolve_frame(comp, 135).overlay_opacity == pytest.approx(0.5)
        assert resolve_frame(comp, 150).overlay_opacity == 0.0

    def test_summary_frames(self):
        comp = build_composition(_request(
            [_clip("a", 2.0)],
            summary={"enabled": True, "items": [], "duration": 2.0},
        ))
        state = resolve_frame(comp, 70)
        assert state.summary_frame == 10
        assert state.clips == ()

    def test_out_of_range(self):
        comp = build_composition(_request([_clip("a", 2.0)]))
        state = resolve_frame(comp, 500)
        assert state.clips == () and state.summary_frame is None


class TestCaptionLayer:
    def _comp(self, enabled=True, trim_start=0.0):
        return build_composition(_request(
            [_clip("a", 4.0, trim_start=trim_start), _clip("b", 6.0, crossfade=1.0)],
            captions={"enabled": enabled, "font_size": 48, "color": "#FFFFFF",
                      "position": "bottom", "max_words": 2},
            clip_captions=[
                {"clip_id": "a", "captions": [
                    {"id": "1", "start": 0.0, "end": 10.0, "text": "stale words from a"},
                ]},
                {"clip_id": "b", "captions": [
                    {"id": "2", "start": 1.0, "end": 2.0, "text": "hello b"},
                ]},
            ],
        ))

    def test_chunks_split_by_max_words(self):
        comp = self._comp()
        track_a = comp.captions.tracks[0]
        assert [c.text for c in track_a.chunks] == ["stale words", "from a"]

    def test_caption_outside_active_clip(self):
        comp = self._comp()
        # Frame 130 belongs to b (local 1.33s is inside b's caption).
        assert resolve_frame(comp, 130).caption_text == "hello b"
        # Frame 180 is 3.0s into b; a's chunk list has text at 3.0s.
        assert resolve_frame(comp, 180).caption_text is None

    def test_outgoing_clip_owns_overlap(self):
        comp = self._comp()
        assert resolve_frame(comp, 100).caption_text == "from a"

    def test_disabled_captions(self):
        comp = self._comp(enabled=False)
        assert resolve_frame(comp, 130).caption_text is None

    def test_trim_rebases_captions(self):
        comp = self._comp(trim_start=1.0)
        assert comp.captions.tracks[0].chunks[0].start == 0.0
