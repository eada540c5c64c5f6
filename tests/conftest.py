"""Shared test fixtures for clipblend tests."""

import subprocess

import numpy as np
import pytest
import imageio_ffmpeg
from PIL import Image

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _color_video(out, color: str, duration: float, size: str = "64x48", fps: int = 10, audio: bool = False):
    """Render a solid-color test video with ffmpeg's lavfi source."""
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"color=c={color}:s={size}:d={duration}:r={fps}",
    ]
    if audio:
        cmd += ["-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono", "-shortest"]
    cmd += ["-c:v", "libx264", "-crf", "18", "-pix_fmt", "yuv420p"]
    if audio:
        cmd += ["-c:a", "aac", "-b:a", "32k"]
    cmd.append(str(out))
    subprocess.run(cmd, check=True, capture_output=True)
    return out


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second test video (320x240, 10fps) with audio using ffmpeg.

    Shared across test_transcribe.py and test_media.py.
    """
    return _color_video(tmp_path / "source.mp4", "blue", 5, size="320x240", audio=True)


@pytest.fixture
def red_video(tmp_path):
    """2-second solid red clip, 64x48 at 10fps."""
    return _color_video(tmp_path / "red.mp4", "red", 2)


@pytest.fixture
def blue_video(tmp_path):
    """2-second solid blue clip, 64x48 at 10fps."""
    return _color_video(tmp_path / "blue.mp4", "blue", 2)


@pytest.fixture
def overlay_png(tmp_path):
    """Opaque 40x10 white PNG for overlay tests."""
    path = tmp_path / "logo.png"
    Image.fromarray(np.full((10, 40, 4), 255, dtype=np.uint8), "RGBA").save(path)
    return path
