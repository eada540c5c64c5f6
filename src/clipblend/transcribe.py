"""Transcription — faster-whisper segments as caption data.

Requires optional dependencies: pip install clipblend[transcribe]
Import-guarded so the rest of clipblend works without the model runtime.

Segment times are relative to the start of the untrimmed source file;
clipblend.captions.adjust_captions_for_trim maps them onto the timeline.
"""

import json
import subprocess
import tempfile
import uuid
from pathlib import Path

import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

DEFAULT_MODEL = "base.en"

# Import-guarded heavy dependency.
try:
    from faster_whisper import WhisperModel
    _WHISPER_AVAILABLE = True
except ImportError:
    WhisperModel = None
    _WHISPER_AVAILABLE = False


def _extract_audio(source: str, work_dir: Path) -> str:
    """Extract audio from video to 16 kHz mono WAV using ffmpeg.

    Returns path to the extracted WAV file.
    """
    wav_path = str(work_dir / "audio.wav")
    cmd = [
        _FFMPEG, "-y",
        "-i", source,
        "-vn",
        "-acodec", "pcm_s16le",
        "-ar", "16000",
        "-ac", "1",
        wav_path,
    ]
    subprocess.run(cmd, check=True, capture_output=True)
    return wav_path


def _build_segments(raw_segments) -> list[dict]:
    """Convert whisper segments to caption dicts, dropping empty text."""
    segments = []
    for seg in raw_segments:
        text = seg.text.strip()
        if not text:
            continue
        segments.append({
            "id": uuid.uuid4().hex,
            "start": round(seg.start, 3),
            "end": round(seg.end, 3),
            "text": text,
        })
    return segments


def transcribe(
    source: str,
    model: str = DEFAULT_MODEL,
    language: str | None = None,
) -> list[dict]:
    """Transcribe a video/audio file into caption segments.

    Args:
        source: Path to video or audio file.
        model: Whisper model name (tiny.en, base.en, small, medium, ...).
        language: Language code or None for auto-detection.

    Returns:
        List of {"id", "start", "end", "text"} dicts in time order.

    Raises:
        RuntimeError: If clipblend[transcribe] is not installed.
        FileNotFoundError: source does not exist.
    """
    if not _WHISPER_AVAILABLE:
        raise RuntimeError(
            "Transcription requires extra dependencies.\n"
            "Run: pip install clipblend[transcribe]"
        )
    if not Path(source).exists():
        raise FileNotFoundError(f"Source not found: {source}")

    with tempfile.TemporaryDirectory() as work_dir:
        wav_path = _extract_audio(str(source), Path(work_dir))
        whisper_model = WhisperModel(model)
        raw_segments, _info = whisper_model.transcribe(wav_path, language=language)
        # faster-whisper yields lazily; consume while the WAV still exists.
        return _build_segments(list(raw_segments))


def transcribe_file(path: str, model: str = DEFAULT_MODEL) -> dict:
    """Transcribe one clip's media, reporting failure as data.

    Returns:
        {"success": True, "segments": [...]} or
        {"success": False, "segments": [], "error": message}.
    """
    try:
        segments = transcribe(path, model=model)
    except Exception as e:
        return {"success": False, "segments": [], "error": str(e)}
    return {"success": True, "segments": segments}


def write_segments(segments: list[dict], output: str) -> None:
    """Write caption segments as a JSON list (the manifest captions format)."""
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump(segments, f, indent=2)
