"""Split mode: write one patch file per changed file."""

import sys
from pathlib import Path

import requests

from ..fetcher import open_source, stdin_handle
from .filters import build_filter
from .writer import split_patch


def resolve_output_dir(output_dir: str | None, default: str | None = None) -> Path:
    """Pick the output directory: CLI flag, then config, then the cwd.

    Raises:
        NotADirectoryError: If the chosen path is not an existing directory.
    """
    out = Path(output_dir or default or Path.cwd())
    if not out.is_dir():
        raise NotADirectoryError(f"Output path {out} is not a directory")
    return out


def handler(args, config: dict):
    """Entry point for split mode."""
    try:
        flt = build_filter(
            only_new=args.only_new,
            only_removed=args.only_removed,
            extract_file=args.extract_file,
            regex=args.regex,
            glob=args.glob,
        )
        out = resolve_output_dir(args.output_dir, config["output_dir"])
    except (ValueError, NotADirectoryError) as e:
        sys.exit(f"[error] {e}")

    encoding = config["encoding"]

    if not args.files:
        errors: list[str] = []
        try:
            written = split_patch(
                stdin_handle(), flt, "", out, encoding=encoding, errors=errors
            )
        except (OSError, ValueError) as e:
            sys.exit(f"[error] {e}")
        for message in errors:
            print(f"[error] <stdin>: {message}", file=sys.stderr)
        print(f"[ok] Wrote {len(written)} file(s) to {out}")
        if errors:
            sys.exit(1)
        return

    failed = False
    for value in args.files:
        try:
            handle, stem = open_source(value, timeout=config["http_timeout"])
        except (FileNotFoundError, RuntimeError, requests.RequestException) as e:
            print(f"[error] {e}", file=sys.stderr)
            failed = True
            continue

        print(f"[..] Splitting {value}")
        errors = []
        try:
            with handle:
                written = split_patch(
                    handle, flt, stem, out, encoding=encoding, errors=errors
                )
        except (OSError, ValueError) as e:
            print(f"[error] {value}: {e}", file=sys.stderr)
            failed = True
            continue
        for message in errors:
            print(f"[error] {value}: {message}", file=sys.stderr)
            failed = True
        print(f"[ok] Wrote {len(written)} file(s) to {out}")

    if failed:
        sys.exit(1)
