"""Subcommand dispatcher for clipblend.

Usage:
    clipblend export     --manifest ... --output ...
    clipblend preview    --manifest ... --frame 90 --output frame.png
    clipblend inspect    --manifest ...
    clipblend transcribe source.mp4 --output captions.json
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipblend",
        description="Timeline composition: crossfaded clips, overlay, captions, summary slide.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("export", help="Render a project manifest to mp4")
    subparsers.add_parser("preview", help="Render single frames of a project to images")
    subparsers.add_parser("inspect", help="Print the frame layout of a project")
    subparsers.add_parser("transcribe", help="Transcribe a video into caption segments")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "export":
        from .export_cli import main as export_main
        export_main(remaining)
    elif parsed.command == "preview":
        from .preview_cli import main as preview_main
        preview_main(remaining)
    elif parsed.command == "inspect":
        from .export_cli import inspect_main
        inspect_main(remaining)
    elif parsed.command == "transcribe":
        from .transcribe_cli import main as transcribe_main
        transcribe_main(remaining)


if __name__ == "__main__":
    main()
