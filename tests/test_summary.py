"""Tests for the summary slide renderer."""

import numpy as np

from clipblend.summary import SUMMARY_BACKGROUND, _summary_layout, render_summary_frame
from clipblend.common import parse_hex_color


ITEMS = [
    {"id": "1", "emoji": "", "text": "First takeaway"},
    {"id": "2", "emoji": "", "text": "Second takeaway"},
]


class TestSummaryLayout:
    def test_reference_values_at_1080(self):
        layout = _summary_layout(1080)
        assert layout["emoji_size"] == 64
        assert layout["text_size"] == 48

    def test_scales_with_floor(self):
        assert _summary_layout(540)["text_size"] == 24
        assert _summary_layout(100)["text_size"] == 11


class TestRenderSummaryFrame:
    def test_shape_and_background(self):
        frame = render_summary_frame([], 0, (320, 180))
        assert frame.shape == (180, 320, 3)
        assert frame.dtype == np.uint8
        assert tuple(frame[0, 0]) == parse_hex_color(SUMMARY_BACKGROUND)

    def test_items_hidden_at_frame_zero(self):
        frame = render_summary_frame(ITEMS, 0, (640, 360))
        assert frame.max() == max(parse_hex_color(SUMMARY_BACKGROUND))

    def test_items_visible_after_entrance(self):
        frame = render_summary_frame(ITEMS, 60, (640, 360))
        assert frame.max() > 200

    def test_entrance_brightens_over_time(self):
        # Frame 12: first item partly in, second barely started. Frame 40: both in.
        early = render_summary_frame(ITEMS, 12, (640, 360)).astype(int).sum()
        late = render_summary_frame(ITEMS, 40, (640, 360)).astype(int).sum()
        assert late > early
