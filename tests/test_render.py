"""Tests for the render backend — frame rasterisation and mp4 export."""

import numpy as np
import pytest
from moviepy import VideoFileClip

from clipblend.composition import build_composition
from clipblend.render import (
    PREPARE_PROGRESS,
    ExportProgressLogger,
    FrameSource,
    render_frame,
    write_composition,
)


def _request(red, blue, **overrides):
    """Red (2s) then blue (2s, 1s crossfade) at 64x48, 10fps: 30 frames."""
    r = {
        "clips": [
            {"id": "red", "src": "media://local/red", "path": str(red), "duration": 2.0,
             "trim_start": 0.0, "trim_end": 0.0, "crossfade_duration": 0.0},
            {"id": "blue", "src": "media://local/blue", "path": str(blue), "duration": 2.0,
             "trim_start": 0.0, "trim_end": 0.0, "crossfade_duration": 1.0},
        ],
        "clip_captions": [],
        "overlay": {"src": "", "path": "", "x": 0, "y": 0, "width": 100,
                    "height": 20, "duration": 0.0, "fade_duration": 0.0},
        "captions": {"enabled": False, "font_size": 24, "color": "#FFFFFF",
                     "position": "bottom", "max_words": 10},
        "summary": {"enabled": False, "items": [], "duration": 1.0},
        "output_path": None,
        "fps": 10,
        "width": 64,
        "height": 48,
    }
    r.update(overrides)
    return r


def _center(frame):
    return frame[24, 32].astype(int)


class TestFrameSource:
    def test_scales_to_resolution(self, red_video):
        comp = build_composition(_request(red_video, red_video, width=128, height=96))
        with FrameSource((128, 96)) as source:
            frame = source.get_frame(comp.segments[0], 0.5)
        assert frame.shape == (96, 128, 3)

    def test_clamps_past_end(self, red_video, blue_video):
        comp = build_composition(_request(red_video, blue_video))
        with FrameSource((64, 48)) as source:
            frame = source.get_frame(comp.segments[0], 10.0)
        assert _center(frame)[0] > 200

    def test_resolver_for_missing_path(self, red_video, blue_video):
        request = _request(red_video, blue_video)
        request["clips"][0]["path"] = ""
        comp = build_composition(request)
        lookup = {"media://local/red": str(red_video)}.get
        with FrameSource((64, 48), resolver=lookup) as source:
            assert _center(source.get_frame(comp.segments[0], 0.0))[0] > 200

    def test_unresolvable_source(self, red_video, blue_video):
        request = _request(red_video, blue_video)
        request["clips"][0]["path"] = ""
        comp = build_composition(request)
        with FrameSource((64, 48)) as source:
            with pytest.raises(FileNotFoundError, match="red"):
                source.get_frame(comp.segments[0], 0.0)


class TestRenderFrame:
    def test_single_clip_frames(self, red_video, blue_video):
        comp = build_composition(_request(red_video, blue_video))
        with FrameSource((64, 48)) as source:
            red = _center(render_frame(comp, 5, source))
            blue = _center(render_frame(comp, 25, source))
        assert red[0] > 200 and red[2] < 50
        assert blue[2] > 200 and blue[0] < 50

    def test_crossfade_midpoint(self, red_video, blue_video):
        comp = build_composition(_request(red_video, blue_video))
        with FrameSource((64, 48)) as source:
            mid = _center(render_frame(comp, 15, source))
        # Both clips at 0.5 over black: red half-faded, then blue on top.
        assert mid[0] == pytest.approx(64, abs=20)
        assert mid[2] == pytest.approx(128, abs=20)

    def test_output_shape(self, red_video, blue_video):
        comp = build_composition(_request(red_video, blue_video))
        with FrameSource((64, 48)) as source:
            frame = render_frame(comp, 0, source)
        assert frame.shape == (48, 64, 3)
        assert frame.dtype == np.uint8

    def test_overlay_drawn_then_gone(self, red_video, blue_video, overlay_png):
        overlay = {"src": "media://local/logo", "path": str(overlay_png), "x": 0, "y": 0,
                   "width": 100, "height": 20, "duration": 1.0, "fade_duration": 0.0}
        comp = build_composition(_request(red_video, blue_video, overlay=overlay))
        with FrameSource((64, 48)) as source:
            during = render_frame(comp, 5, source)
            after = render_frame(comp, 12, source)
        # 40x10 logo fits the 64x10 box centered: x 12..52, y 0..10.
        assert (during[5, 32] > 240).all()
        assert during[30, 32][0] > 200 and during[30, 32][1] < 50
        assert after[5, 32][1] < 50

    def test_overlay_through_resolver(self, red_video, blue_video, overlay_png):
        overlay = {"src": "media://local/logo", "path": "", "x": 0, "y": 0,
                   "width": 100, "height": 20, "duration": 1.0, "fade_duration": 0.0}
        comp = build_composition(_request(red_video, blue_video, overlay=overlay))
        lookup = {"media://local/logo": str(overlay_png)}.get
        with FrameSource((64, 48)) as source:
            frame = render_frame(comp, 0, source, resolver=lookup)
        assert (frame[5, 32] > 240).all()

    def test_caption_drawn(self, red_video, blue_video):
        request = _request(red_video, blue_video)
        request["captions"]["enabled"] = True
        request["clip_captions"] = [{"clip_id": "red", "captions": [
            {"id": "c1", "start": 0.0, "end": 1.0, "text": "Hi"},
        ]}]
        comp = build_composition(request)
        with FrameSource((64, 48)) as source:
            with_caption = render_frame(comp, 2, source)
            without = render_frame(comp, 12, source)
        # White text raises green somewhere on an otherwise red frame.
        assert with_caption[:, :, 1].max() > 200
        assert without[:, :, 1].max() < 80

    def test_summary_frame(self, red_video, blue_video):
        summary = {"enabled": True, "items": [], "duration": 1.0}
        comp = build_composition(_request(red_video, blue_video, summary=summary))
        assert comp.total_frames == 40
        with FrameSource((64, 48)) as source:
            frame = render_frame(comp, 35, source)
        assert (frame == (10, 10, 10)).all()


class TestExportProgressLogger:
    def test_maps_index_to_fraction(self):
        values = []
        logger = ExportProgressLogger(values.append)
        logger.bars["frame_index"] = {"total": 10, "index": 0}
        logger.bars_callback("frame_index", "index", 5)
        logger.bars_callback("frame_index", "index", 10)
        assert values == pytest.approx([
            PREPARE_PROGRESS + (1 - PREPARE_PROGRESS) * 0.5,
            1.0,
        ])

    def test_ignores_other_attrs(self):
        values = []
        logger = ExportProgressLogger(values.append)
        logger.bars["chunk"] = {"total": 10}
        logger.bars_callback("chunk", "total", 10)
        assert values == []


class TestWriteComposition:
    def test_writes_mp4(self, red_video, blue_video, tmp_path):
        comp = build_composition(_request(red_video, blue_video))
        out = tmp_path / "out" / "final.mp4"
        progress = []
        write_composition(comp, out, on_progress=progress.append)

        assert out.exists()
        clip = VideoFileClip(str(out))
        try:
            assert tuple(clip.size) == (64, 48)
            assert clip.duration == pytest.approx(3.0, abs=0.15)
        finally:
            clip.close()

        assert progress[0] == 0.0
        assert progress[-1] == 1.0
        assert all(0.0 <= p <= 1.0 for p in progress)

    def test_missing_source_raises(self, red_video, tmp_path):
        comp = build_composition(_request(red_video, tmp_path / "gone.mp4"))
        with pytest.raises(OSError):
            write_composition(comp, tmp_path / "out.mp4", quiet=True)
