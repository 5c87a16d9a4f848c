"""Selecting which patches to keep."""

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase

from ..diff_parser import Patch

NONE = "none"
REGEX = "regex"
GLOB = "glob"
ONLY_NEW = "only_new"
ONLY_REMOVED = "only_removed"


@dataclass(frozen=True)
class PatchFilter:
    kind: str = NONE
    pattern: re.Pattern | str | None = None
    # Write file contents instead of patches (only with ONLY_NEW/ONLY_REMOVED).
    extract_file: bool = False


def build_filter(
    only_new: bool = False,
    only_removed: bool = False,
    extract_file: bool = False,
    regex: re.Pattern | str | None = None,
    glob: str | None = None,
) -> PatchFilter:
    """Combine CLI options into a single :class:`PatchFilter`.

    Added/removed selection takes precedence over name patterns.

    Raises:
        ValueError: On conflicting options.
    """
    if only_new and only_removed:
        raise ValueError("--only-new and --only-removed are mutually exclusive")
    if regex is not None and glob is not None:
        raise ValueError("--regex and --glob are mutually exclusive")
    if extract_file and not (only_new or only_removed):
        raise ValueError("--extract-file requires either --only-new or --only-removed")

    if only_new:
        return PatchFilter(ONLY_NEW, extract_file=extract_file)
    if only_removed:
        return PatchFilter(ONLY_REMOVED, extract_file=extract_file)
    if glob is not None:
        return PatchFilter(GLOB, glob)
    if regex is not None:
        if isinstance(regex, str):
            regex = re.compile(regex)
        return PatchFilter(REGEX, regex)
    return PatchFilter()


def _names(patch: Patch) -> list[str]:
    return [n for n in (patch.old_filename, patch.new_filename) if n is not None]


def should_skip(patch: Patch, flt: PatchFilter) -> bool:
    """Return True when *patch* is not selected by *flt*.

    Name patterns must match every filename the patch has (both sides of a
    rename, or the one existing side of an add/delete).
    """
    if flt.kind == NONE:
        return False
    if flt.kind == ONLY_NEW:
        return not patch.is_added
    if flt.kind == ONLY_REMOVED:
        return not patch.is_removed
    if flt.kind == GLOB:
        return not all(fnmatchcase(n, flt.pattern) for n in _names(patch))
    if flt.kind == REGEX:
        return not all(flt.pattern.search(n) for n in _names(patch))
    raise ValueError(f"Unknown filter kind: {flt.kind!r}")
