"""Command-line interface for spatch: split, list, and show modes."""

import argparse
import logging
import re
import sys

from . import __version__
from .config import get_config


def _regex(value: str) -> re.Pattern:
    try:
        return re.compile(value)
    except re.error as e:
        raise argparse.ArgumentTypeError(f"invalid regex {value!r}: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spatch",
        description="Split a multi-file git diff into one patch per file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--mode",
        default="split",
        choices=["split", "list", "show"],
        help="Operation mode (default: split)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging",
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="Patch files or http(s) URLs to read. Reads from stdin if not specified",
    )

    # ── Selection (all modes) ──
    sel = parser.add_argument_group("selection")
    added_removed = sel.add_mutually_exclusive_group()
    added_removed.add_argument(
        "-n", "--only-new", action="store_true",
        help="Only select patches for newly added files",
    )
    added_removed.add_argument(
        "-r", "--only-removed", action="store_true",
        help="Only select patches for removed files",
    )
    name_filter = sel.add_mutually_exclusive_group()
    name_filter.add_argument(
        "--regex", type=_regex, default=None,
        help="Filter patches by filename regex",
    )
    name_filter.add_argument(
        "--glob", default=None,
        help="Filter patches by filename glob pattern",
    )

    # ── Split mode arguments ──
    split = parser.add_argument_group(
        "split mode", "Only accepted with --mode split"
    )
    split.add_argument(
        "-o", "--output-dir", default=None,
        help="Output directory for split patches "
             "(default: SPATCH_OUTPUT_DIR env or the current directory)",
    )
    split.add_argument(
        "-x", "--extract-file", action="store_true",
        help="Extract file contents rather than patches (requires either -n or -r)",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode != "split" and (args.output_dir or args.extract_file):
        parser.error(
            f"-o/--output-dir and -x/--extract-file are not valid with --mode {args.mode}"
        )

    try:
        config = get_config()
    except ValueError as e:
        sys.exit(f"[error] {e}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config["log_level"],
        format="%(levelname)8s %(name)s: %(message)s",
    )

    if args.mode == "split":
        from .split.command import handler
        handler(args, config)
    elif args.mode == "list":
        from .report.command import list_handler
        list_handler(args, config)
    elif args.mode == "show":
        from .report.command import show_handler
        show_handler(args, config)
