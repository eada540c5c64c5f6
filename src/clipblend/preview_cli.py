"""CLI for previewing single frames of a project manifest.

Renders frames through an EditorSession, i.e. the same composition and
rasteriser the export uses, and saves them as images.

Usage:
    clipblend preview --manifest project.yaml --frame 90 --output frame.png
    clipblend preview --manifest project.yaml --frame 0 --frame 90 --output frames/
"""

import argparse
from pathlib import Path

from .manifest import load_project
from .media import MediaRegistry
from .session import EditorSession


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Render preview frames of a clipblend project manifest.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML project manifest",
    )
    parser.add_argument(
        "--frame", type=int, action="append", required=True,
        help="Timeline frame to render (repeatable)",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output image path, or a directory when several frames are given",
    )
    return parser.parse_args(args)


def main(args=None):
    parsed = _parse_args(args)

    registry = MediaRegistry()
    state = load_project(parsed.manifest, registry=registry)

    with EditorSession(state=state, registry=registry) as session:
        total = session.composition().total_frames
        print(f"Timeline: {total} frames at {state.fps:g}fps")

        for frame in parsed.frame:
            frame = session.seek(frame)
            if len(parsed.frame) == 1:
                out_path = Path(parsed.output)
            else:
                out_path = Path(parsed.output) / f"frame_{frame:06d}.png"
            session.save_frame(out_path)

            visible = session.frame_state()
            if visible.summary_frame is not None:
                what = "summary"
            else:
                what = f"{len(visible.clips)} clip(s)"
                if visible.caption_text:
                    what += f", caption \"{visible.caption_text}\""
            print(f"  DONE   frame {frame} ({what}) -> {out_path}", flush=True)


if __name__ == "__main__":
    main()
