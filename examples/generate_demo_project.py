#!/usr/bin/env python3
"""Generate a synthetic demo project for clipblend.

Creates examples/demo-project/ with four colored clips, a logo image and
a caption file. Each clip shows its own name and a running source-time
counter, so trims and crossfade overlaps are easy to read off a frame.

Usage:
    python examples/generate_demo_project.py
    # Then:
    clipblend inspect --manifest examples/demo-project.yaml
    clipblend preview --manifest examples/demo-project.yaml --frame 75 --output /tmp/f.png
    clipblend export  --manifest examples/demo-project.yaml --output /tmp/demo.mp4
"""

import json
from pathlib import Path

import numpy as np
from moviepy import VideoClip
from PIL import Image, ImageDraw, ImageFont

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-project"
SIZE = (640, 360)
FPS = 30

# Distinct colors and durations; clip-02 is trimmed and clip-03 is short,
# so its crossfade gets clamped in the manifest.
CLIPS = [
    ("clip-01", (180, 60, 60),  4.0),  # red
    ("clip-02", (60, 60, 180),  5.0),  # blue
    ("clip-03", (60, 160, 60),  2.0),  # green
    ("clip-04", (200, 130, 40), 4.0),  # orange
]

CAPTIONS = [
    {"id": "intro-1", "start": 0.2, "end": 1.8, "text": "This is the first demo clip"},
    {"id": "intro-2", "start": 2.0, "end": 3.8, "text": "it crossfades into a blue one right about now"},
]


def _font(size: int):
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _make_clip(name: str, color: tuple[int, int, int], duration: float) -> VideoClip:
    """Solid color clip with the clip name and source time drawn on it."""
    big, small = _font(48), _font(28)

    def frame_function(t):
        img = Image.new("RGB", SIZE, color)
        draw = ImageDraw.Draw(img)
        draw.text((SIZE[0] / 2, SIZE[1] / 2 - 30), name, fill=(255, 255, 255), font=big, anchor="mm")
        draw.text((SIZE[0] / 2, SIZE[1] / 2 + 30), f"{t:5.2f}s", fill=(255, 255, 255), font=small, anchor="mm")
        return np.array(img)

    return VideoClip(frame_function, duration=duration)


def _make_logo(out: Path) -> None:
    """Semi-transparent banner with a label, 800x100."""
    img = Image.new("RGBA", (800, 100), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle((0, 0, 799, 99), radius=20, fill=(20, 20, 20, 180))
    draw.text((400, 50), "clipblend demo", fill=(255, 255, 255, 255), font=_font(56), anchor="mm")
    img.save(out)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, duration in CLIPS:
        out = OUTPUT_DIR / f"{name}.mp4"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue
        _make_clip(name, color, duration).write_videofile(str(out), fps=FPS, logger=None)
        print(f"  wrote {name} ({duration}s)")

    logo = OUTPUT_DIR / "logo.png"
    _make_logo(logo)
    print(f"  wrote {logo.name}")

    captions = OUTPUT_DIR / "clip-01.captions.json"
    with open(captions, "w") as f:
        json.dump(CAPTIONS, f, indent=2)
    print(f"  wrote {captions.name}")

    print(f"\nDone. {len(CLIPS)} clips in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
