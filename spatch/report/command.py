"""List and show modes: inspect the patches in a diff without writing files."""

import sys

import requests

from ..diff_parser import DiffParser
from ..fetcher import open_source, stdin_handle
from ..split.filters import build_filter, should_skip
from .renderer import render_list_entry, render_patch


def _selected_patches(args, config: dict):
    """Yield ``(input_label, patch)`` for every patch passing the filters.

    Inputs that cannot be opened are reported on stderr and skipped.  If any
    were skipped, exits with status 1 once the remaining inputs are done.
    """
    try:
        flt = build_filter(
            only_new=args.only_new,
            only_removed=args.only_removed,
            regex=args.regex,
            glob=args.glob,
        )
    except ValueError as e:
        sys.exit(f"[error] {e}")

    encoding = config["encoding"]

    if not args.files:
        for patch in DiffParser.from_handle(stdin_handle(), encoding=encoding):
            if not should_skip(patch, flt):
                yield "-", patch
        return

    failed = False
    for value in args.files:
        try:
            handle, _ = open_source(value, timeout=config["http_timeout"])
        except (FileNotFoundError, RuntimeError, requests.RequestException) as e:
            print(f"[error] {e}", file=sys.stderr)
            failed = True
            continue
        with handle:
            for patch in DiffParser.from_handle(handle, encoding=encoding):
                if not should_skip(patch, flt):
                    yield value, patch
    if failed:
        sys.exit(1)


def list_handler(args, config: dict):
    """Entry point for list mode."""
    multiple = len(args.files) > 1
    current = None
    for label, patch in _selected_patches(args, config):
        if multiple and label != current:
            print(f"{label}:")
            current = label
        body_lines = sum(1 for _ in patch.lines())
        entry = render_list_entry(patch, body_lines)
        print(f"  {entry}" if multiple else entry)


def show_handler(args, config: dict):
    """Entry point for show mode."""
    color = sys.stdout.isatty()
    for _, patch in _selected_patches(args, config):
        sys.stdout.write(render_patch(patch, color=color))
