"""CLI for transcription — caption segments for one source video.

Writes a JSON list of {id, start, end, text} segments that a project
manifest can reference from a clip's `captions:` field.

Usage:
    clipblend transcribe source.mp4
    clipblend transcribe source.mp4 --model small.en --output captions.json
    clipblend transcribe source.mp4 --language de --model medium
"""

import argparse
from pathlib import Path

from .transcribe import DEFAULT_MODEL, transcribe, write_segments


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Transcribe video/audio into caption segments.",
    )
    parser.add_argument(
        "source",
        help="Path to video or audio file",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output JSON path (default: <source>.captions.json)",
    )
    parser.add_argument(
        "--model", default=DEFAULT_MODEL,
        help=f"Whisper model name (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--language", default=None,
        help="Source language code (default: auto-detect)",
    )
    return parser.parse_args(args)


def main(args=None):
    parsed = _parse_args(args)
    output = parsed.output or str(Path(parsed.source).with_suffix(".captions.json"))

    print(f"Transcribing: {parsed.source}")
    print(f"Model: {parsed.model}")

    segments = transcribe(
        source=parsed.source,
        model=parsed.model,
        language=parsed.language,
    )
    write_segments(segments, output)

    print(f"\nDone: {len(segments)} segments")
    print(f"Output: {output}")


if __name__ == "__main__":
    main()
