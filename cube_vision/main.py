"""
Cube Vision – Main Entry Point
==============================

Commands:

  1. **Classify** – Rectify a photograph of a marker-framed grid face
                    and print its 4×4 colour grid.

Usage examples
--------------

**Text output**::

    python cube_vision.py classify images/rot_5.png

**JSON output with the rectified face saved for inspection**::

    python cube_vision.py classify images/rot_5.png \\
        --json \\
        --save-rectified rectified.png

**Debug overlay**::

    python cube_vision.py classify images/rot_5.png --visualize
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from cube_vision.errors import CubeVisionError

log = logging.getLogger("cube_vision")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ═══════════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════════

def cmd_classify(args: argparse.Namespace) -> int:
    """Run the pipeline on one image and print the grid."""
    from cube_vision.imaging import save_image, show_image
    from cube_vision.inference.pipeline import FaceReader

    reader = FaceReader()
    try:
        reading = reader.read_file(args.image)
    except CubeVisionError as exc:
        log.error("%s", exc)
        return 1

    if args.json:
        print(reading.grid.to_json())
    else:
        print()
        print(reading.grid.to_text())

    if args.save_rectified:
        save_image(args.save_rectified, reading.rectified_image)
    if args.show:
        show_image(reading.rectified_image, title="Rectified Face")
    if args.visualize or args.save_debug:
        reader.visualize(reading, show=args.visualize, save_path=args.save_debug)

    return 0


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cube_vision",
        description="Read the colour grid of a puzzle-cube face from a photograph.",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # ── classify ──
    p_cls = sub.add_parser("classify", help="Classify the face in an image")
    p_cls.add_argument("image", help="Path to the photograph")
    p_cls.add_argument("--json", action="store_true",
                       help="Print the grid as JSON")
    p_cls.add_argument("--show", action="store_true",
                       help="Display the rectified face")
    p_cls.add_argument("--save-rectified", default=None,
                       help="Save the rectified face to path")
    p_cls.add_argument("--visualize", action="store_true",
                       help="Show the sampling-window overlay")
    p_cls.add_argument("--save-debug", default=None,
                       help="Save the sampling-window overlay to path")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    dispatch = {
        "classify": cmd_classify,
    }

    sys.exit(dispatch[args.command](args))


if __name__ == "__main__":
    main()
