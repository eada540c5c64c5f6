"""CLI for export and inspection of a project manifest.

Export renders the whole timeline (clips with crossfades, image overlay,
captions, summary slide) to an mp4. Inspect prints the frame layout
without rendering anything.

Usage:
    clipblend export  --manifest project.yaml --output final.mp4
    clipblend export  --manifest project.yaml --output final.mp4 --quiet
    clipblend inspect --manifest project.yaml
"""

import argparse
import sys
import time

from .composition import build_composition
from .export import export_request, run_export
from .manifest import load_project
from .media import MediaRegistry
from .timing import frames_to_seconds, project_duration, seconds_to_frames, total_duration


def _parse_export_args(args=None):
    parser = argparse.ArgumentParser(
        description="Render a clipblend project manifest to an mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML project manifest",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output mp4 path",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Only print start/finish lines, no progress",
    )
    return parser.parse_args(args)


def _parse_inspect_args(args=None):
    parser = argparse.ArgumentParser(
        description="Print the frame layout of a clipblend project manifest.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML project manifest",
    )
    return parser.parse_args(args)


def _progress_printer():
    """Print export progress in 10% steps."""
    last = [-1]

    def on_progress(fraction):
        step = int(fraction * 10)
        if step != last[0]:
            last[0] = step
            print(f"  {fraction * 100:5.1f}%", flush=True)

    return on_progress


def main(args=None):
    parsed = _parse_export_args(args)

    with MediaRegistry() as registry:
        state = load_project(parsed.manifest, registry=registry)
        request = export_request(state, parsed.output)

        print(f"Resolution: {state.width}x{state.height}, {state.fps:g}fps")
        print(f"Writing to: {parsed.output}")
        print(f"  START  {len(state.clips)} clips", flush=True)
        t0 = time.time()
        result = run_export(
            request,
            on_progress=None if parsed.quiet else _progress_printer(),
            resolver=registry.lookup,
            quiet=True,
        )

    if not result["success"]:
        print(f"  FAIL   {result['error']}", flush=True)
        sys.exit(1)
    print(f"  DONE   {parsed.output} — {time.time() - t0:.1f}s wall", flush=True)


def inspect_main(args=None):
    parsed = _parse_inspect_args(args)

    state = load_project(parsed.manifest)
    composition = build_composition(export_request(state))
    fps = composition.fps

    print(f"Project: {len(state.clips)} clips, {composition.width}x{composition.height}, {fps:g}fps")
    print(f"  {'#':>2}  {'start':>6}  {'frames':>6}  {'xf_in':>5}  {'xf_out':>6}  {'src_in':>6}  path")
    for i, seg in enumerate(composition.segments):
        print(
            f"  {i:>2}  {seg.start_frame:>6}  {seg.duration_in_frames:>6}  "
            f"{seg.crossfade_in_frames:>5}  {seg.crossfade_out_frames:>6}  "
            f"{seg.source_start_frame:>6}  {seg.path}"
        )

    seconds = total_duration(state.clips)
    drift = composition.clip_frames - seconds_to_frames(seconds, fps)
    print(f"\nClip section: {composition.clip_frames} frames ({seconds:.3f}s, drift {drift:+d})")
    if composition.summary is not None:
        print(
            f"Summary: {composition.summary.duration_in_frames} frames "
            f"from frame {composition.summary.start_frame}"
        )
    overlay = composition.overlay
    if overlay.src:
        print(f"Overlay: {overlay.duration:.2f}s, fade {overlay.fade_duration:.2f}s")
    if composition.captions.enabled:
        n_chunks = sum(len(t.chunks) for t in composition.captions.tracks)
        print(f"Captions: {n_chunks} chunks, max {composition.captions.max_words} words")
    seconds = project_duration(state.clips, composition.summary is not None, state.summary.duration)
    print(
        f"Total: {composition.total_frames} frames "
        f"({frames_to_seconds(composition.total_frames, fps):.2f}s, {seconds:.3f}s unrounded)"
    )


if __name__ == "__main__":
    main()
