"""Streaming parser that splits a multi-file git diff into per-file patches.

The parser and the patches it produces share a single :class:`LineSource`.
Only one consumer may pull from it at a time: either the parser searching
for the next ``diff --git`` boundary, or the body stream of the most recent
patch.  Lines a caller does not drain from a patch are simply skipped by the
next boundary search.
"""

import io
import logging
import re

logger = logging.getLogger(__name__)

GIT_DIFF_PREFIX = "diff --git "
HUNK_PREFIX = "@@ -"
DEV_NULL = "/dev/null"

_OLD_PREFIX = "--- "
_NEW_PREFIX = "+++ "
_BINARY_PREFIX = "Binary files "
_BINARY_SUFFIX = " differ"

_COUNT_RE = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Line source
# ---------------------------------------------------------------------------


class LineSource:
    """One-line-lookahead cursor over a readable handle.

    *handle* may yield ``bytes`` (decoded with *encoding*) or ``str``.
    Line endings are stripped.  A read error or a line that cannot be
    decoded is reported as end of input.
    """

    def __init__(self, handle, encoding: str = "utf-8"):
        self._handle = handle
        self._encoding = encoding
        self._peeked: str | None = None
        self._has_peeked = False
        self._exhausted = False
        # Bumped by the parser each time it starts looking for a new patch.
        self.generation = 0

    def _read(self) -> str | None:
        if self._exhausted:
            return None
        try:
            raw = self._handle.readline()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Read failed, treating as end of input: %s", e)
            self._exhausted = True
            return None
        if not raw:
            self._exhausted = True
            return None
        if isinstance(raw, bytes):
            try:
                raw = raw.decode(self._encoding)
            except UnicodeDecodeError as e:
                logger.debug("Undecodable line, treating as end of input: %s", e)
                self._exhausted = True
                return None
        if raw.endswith("\n"):
            raw = raw[:-1]
            if raw.endswith("\r"):
                raw = raw[:-1]
        return raw

    def peek(self) -> str | None:
        """Return the next line without consuming it."""
        if not self._has_peeked:
            self._peeked = self._read()
            self._has_peeked = True
        return self._peeked

    def next(self) -> str | None:
        """Consume and return the next line."""
        if self._has_peeked:
            self._has_peeked = False
            line, self._peeked = self._peeked, None
            return line
        return self._read()


# ---------------------------------------------------------------------------
# Filename and hunk marker helpers
# ---------------------------------------------------------------------------


def normalize_filename(token: str) -> str | None:
    """Normalize a filename token taken from a diff header.

    Surrounding whitespace is trimmed and ``/dev/null`` maps to ``None``.
    Otherwise at most one leading ``../`` and then at most one leading
    ``./`` are removed.
    """
    name = token.strip()
    if name == DEV_NULL:
        return None
    if name.startswith("../"):
        name = name[3:]
    if name.startswith("./"):
        name = name[2:]
    return name


def _strip_side(token: str, side: str) -> str:
    """Remove one leading ``a/`` or ``b/`` side prefix."""
    if token.startswith(side):
        return token[len(side):]
    return token


def _parse_binary_line(line: str) -> tuple[str, str] | None:
    """Extract both paths from ``Binary files <A> and <B> differ``."""
    if not line.startswith(_BINARY_PREFIX):
        return None
    rest = line[len(_BINARY_PREFIX):]
    if not rest.endswith(_BINARY_SUFFIX):
        return None
    old, sep, new = rest[:-len(_BINARY_SUFFIX)].partition(" and ")
    if not sep:
        return None
    return old, new


def _range_count(value: str) -> int | None:
    # "start,count" -> count; a bare number is used as the count itself.
    start, sep, count = value.partition(",")
    if not sep:
        count = start
    if not _COUNT_RE.fullmatch(count):
        return None
    return int(count)


def parse_hunk_start(line: str) -> tuple[int, int] | None:
    """Return ``(old_count, new_count)`` from a ``@@ -R +R @@`` marker.

    ``@@ -56,7 +56,8 @@ def foo():`` gives ``(7, 8)``.  Returns ``None``
    when the line is not a well-formed marker.
    """
    if not line.startswith(HUNK_PREFIX):
        return None
    old_range, sep, rest = line[len(HUNK_PREFIX):].partition("+")
    if not sep:
        return None
    new_range, sep, _ = rest.strip().partition(" @@")
    if not sep:
        return None
    old_count = _range_count(old_range.strip())
    new_count = _range_count(new_range)
    if old_count is None or new_count is None:
        return None
    return old_count, new_count


def tracked_side(old_count: int, new_count: int) -> tuple[str, int]:
    """Pick which side bounds a hunk: ``("-", old)`` or ``("+", new)``.

    Ties go to the new side.
    """
    if old_count > new_count:
        return "-", old_count
    return "+", new_count


# ---------------------------------------------------------------------------
# Patch and its body stream
# ---------------------------------------------------------------------------


class Patch:
    """The change to a single file within a larger diff."""

    def __init__(
        self,
        old_filename: str | None,
        new_filename: str | None,
        header: str,
        source: LineSource,
    ):
        self._old_filename = old_filename
        self._new_filename = new_filename
        self._header = header
        self._source = source
        self._generation = source.generation
        self._remaining = 0
        self._tracked = "+"

    def __repr__(self) -> str:
        return (
            f"Patch(old_filename={self._old_filename!r}, "
            f"new_filename={self._new_filename!r})"
        )

    @property
    def old_filename(self) -> str | None:
        return self._old_filename

    @property
    def new_filename(self) -> str | None:
        return self._new_filename

    @property
    def header(self) -> str:
        return self._header

    @property
    def is_added(self) -> bool:
        return self._old_filename is None

    @property
    def is_removed(self) -> bool:
        return self._new_filename is None

    @property
    def name(self) -> str | None:
        """The new filename, or the old one for deleted files."""
        if self._new_filename is not None:
            return self._new_filename
        return self._old_filename

    @property
    def tracked(self) -> str:
        """Prefix character (``+`` or ``-``) bounding the active hunk."""
        return self._tracked

    @property
    def remaining(self) -> int:
        """Lines of the tracked side still expected in the active hunk."""
        return self._remaining

    def lines(self) -> "PatchLines":
        """Return a lazy iterator over this patch's hunk lines."""
        return PatchLines(self)


class PatchLines:
    """Lazy iterator over the hunk lines of one :class:`Patch`.

    Each hunk starts with its ``@@`` marker (yielded as the first item) and
    runs until the tracked side's declared count is used up.  Lines with the
    tracked prefix or a leading space count against it; lines of the other
    side do not.  A ``\\ No newline at end of file`` note right after a hunk
    still belongs to it.  The stream stops at the first line that is neither
    inside a hunk nor a new hunk marker, leaving that line for the parser.
    """

    def __init__(self, patch: Patch):
        self._patch = patch

    def __iter__(self):
        return self

    def __next__(self) -> str:
        patch = self._patch
        source = patch._source
        if source.generation != patch._generation:
            # The parser has moved on to a later patch.
            raise StopIteration

        if patch._remaining == 0:
            line = source.peek()
            if line is not None and line.startswith("\\"):
                # "\ No newline at end of file" after the hunk's last line.
                return source.next()
            counts = parse_hunk_start(line) if line is not None else None
            if counts is None:
                raise StopIteration
            patch._tracked, patch._remaining = tracked_side(*counts)
            return source.next()

        line = source.next()
        if line is None:
            raise StopIteration
        if line.startswith((patch._tracked, " ")):
            patch._remaining -= 1
        return line


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class DiffParser:
    """Produce :class:`Patch` objects, in document order, from a diff stream.

    Text before, between, and after the ``diff --git`` blocks (mail headers,
    commit messages, signature footers) is skipped.  A boundary line that
    cannot be split into two paths ends the whole sequence.
    """

    def __init__(self, source: LineSource):
        self._source = source
        self._finished = False

    @classmethod
    def from_handle(cls, handle, encoding: str = "utf-8") -> "DiffParser":
        return cls(LineSource(handle, encoding=encoding))

    @classmethod
    def from_text(cls, text: str) -> "DiffParser":
        return cls(LineSource(io.StringIO(text)))

    def __iter__(self):
        return self

    def __next__(self) -> Patch:
        patch = self.next_patch()
        if patch is None:
            raise StopIteration
        return patch

    def next_patch(self) -> Patch | None:
        """Scan forward to the next file boundary and return its patch."""
        if self._finished:
            return None
        patch = self._scan()
        if patch is None:
            self._finished = True
        return patch

    def _scan(self) -> Patch | None:
        source = self._source
        source.generation += 1

        while True:
            line = source.next()
            if line is None:
                return None
            if line.startswith(GIT_DIFF_PREFIX):
                break

        old_token, sep, new_token = line[len(GIT_DIFF_PREFIX):].partition(" ")
        if not sep:
            logger.warning("Malformed diff boundary, stopping: %r", line)
            return None
        old_filename = normalize_filename(_strip_side(old_token, "a/"))
        new_filename = normalize_filename(_strip_side(new_token, "b/"))

        header = [line]
        while True:
            line = source.peek()
            if (line is None
                    or line.startswith(GIT_DIFF_PREFIX)
                    or line.startswith(HUNK_PREFIX)):
                break
            source.next()

            if line.startswith(_OLD_PREFIX):
                old_filename = normalize_filename(
                    _strip_side(line[len(_OLD_PREFIX):], "a/")
                )
            elif line.startswith(_NEW_PREFIX):
                new_filename = normalize_filename(
                    _strip_side(line[len(_NEW_PREFIX):], "b/")
                )
            else:
                binary = _parse_binary_line(line)
                if binary:
                    old_filename = normalize_filename(_strip_side(binary[0], "a/"))
                    new_filename = normalize_filename(_strip_side(binary[1], "b/"))
            header.append(line)

        logger.debug(
            "Found patch %s -> %s (%d header lines)",
            old_filename, new_filename, len(header),
        )
        return Patch(
            old_filename,
            new_filename,
            "".join(f"{h}\n" for h in header),
            source,
        )
