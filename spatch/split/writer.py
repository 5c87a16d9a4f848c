"""Writing selected patches (or extracted file contents) to disk."""

import logging
from pathlib import Path, PurePosixPath

from ..diff_parser import HUNK_PREFIX, DiffParser, Patch
from .filters import ONLY_NEW, ONLY_REMOVED, PatchFilter, should_skip

logger = logging.getLogger(__name__)


def _safe_relative(name: str) -> PurePosixPath:
    """Reject names that would land outside the output directory."""
    rel = PurePosixPath(name)
    if rel.is_absolute() or ".." in rel.parts or not rel.parts:
        raise ValueError(f"Refusing to write outside the output directory: {name!r}")
    return rel


def output_path(
    patch: Patch,
    flt: PatchFilter,
    source_stem: str,
    output_dir: Path,
) -> Path:
    """Where *patch* should be written.

    In extract mode this is the file's own (relative) path.  Otherwise the
    patch's name with ``/`` flattened to ``-``, tagged with ``+<source_stem>``
    when the input had a name, plus a ``.patch`` suffix::

        src/lib.rs from 0001-fix.patch  ->  src-lib.rs+0001-fix.patch
    """
    if flt.extract_file and flt.kind == ONLY_REMOVED:
        if patch.old_filename is None:
            raise ValueError("Cannot extract a removed file whose old side is /dev/null")
        return output_dir.joinpath(*_safe_relative(patch.old_filename).parts)
    if flt.extract_file and flt.kind == ONLY_NEW:
        if patch.new_filename is None:
            raise ValueError("Cannot extract an added file whose new side is /dev/null")
        return output_dir.joinpath(*_safe_relative(patch.new_filename).parts)

    name = patch.name
    if name is None:
        raise ValueError("Patch has /dev/null on both sides")
    name = name.replace("/", "-")
    if source_stem:
        name = f"{name}+{source_stem}"
    return output_dir / f"{name}.patch"


def extracted_lines(patch: Patch, side: str):
    """Yield the file contents carried by the *side* (``+``/``-``) of a patch.

    Hunk markers and lines of the other side are dropped; the one-character
    prefix is removed from the rest.  Each yielded line ends in ``\\n`` unless
    a ``\\ No newline at end of file`` note follows it.
    """
    held = None
    for line in patch.lines():
        if line.startswith("\\"):
            if held is not None:
                yield held[:-1]
                held = None
            continue
        if held is not None:
            yield held
            held = None
        if line.startswith(HUNK_PREFIX):
            continue
        if line.startswith((side, " ")) or not line:
            held = f"{line[1:]}\n"
    if held is not None:
        yield held


def write_patch(patch: Patch, path: Path, flt: PatchFilter) -> None:
    """Write *patch* to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as f:
        if flt.extract_file:
            side = "+" if flt.kind == ONLY_NEW else "-"
            f.writelines(extracted_lines(patch, side))
            return
        f.write(patch.header)
        for line in patch.lines():
            f.write(f"{line}\n")


def split_patch(
    handle,
    flt: PatchFilter,
    source_stem: str,
    output_dir: Path,
    encoding: str = "utf-8",
    errors: list[str] | None = None,
) -> list[Path]:
    """Split every patch in *handle* into its own file under *output_dir*.

    A patch that has no usable output path is skipped with a warning and its
    message appended to *errors* (when given); the rest are still written.

    Returns the written paths in input order.
    """
    written: list[Path] = []
    for patch in DiffParser.from_handle(handle, encoding=encoding):
        if should_skip(patch, flt):
            logger.debug("Skipping %r", patch)
            continue
        try:
            path = output_path(patch, flt, source_stem, output_dir)
        except ValueError as e:
            logger.warning("Skipping %r: %s", patch, e)
            if errors is not None:
                errors.append(f"{patch.header.splitlines()[0]}: {e}")
            continue
        write_patch(patch, path, flt)
        logger.info("Wrote %s", path)
        written.append(path)
    return written
