"""Tests for spatch.split: filters, output paths, writing, split mode."""

import io
import re
from pathlib import Path

import pytest

from spatch.diff_parser import DiffParser

SERIES = (
    "Subject: [PATCH] mixed\n"
    "\n"
    "diff --git a/src/lib.rs b/src/lib.rs\n"
    "index 1111111..2222222 100644\n"
    "--- a/src/lib.rs\n"
    "+++ b/src/lib.rs\n"
    "@@ -1,2 +1,2 @@\n"
    " fn main() {\n"
    "-    old();\n"
    "+    new();\n"
    "diff --git a/docs/new.txt b/docs/new.txt\n"
    "new file mode 100644\n"
    "--- /dev/null\n"
    "+++ b/docs/new.txt\n"
    "@@ -0,0 +1,2 @@\n"
    "+hello\n"
    "+world\n"
    "diff --git a/gone.txt b/gone.txt\n"
    "deleted file mode 100644\n"
    "--- a/gone.txt\n"
    "+++ /dev/null\n"
    "@@ -1,2 +0,0 @@\n"
    "-bye\n"
    "-now\n"
    "-- \n"
    "2.43.0\n"
)


def _patches(text=SERIES):
    return list(DiffParser.from_text(text))


def _patch_at(index, text=SERIES):
    """Return the index-th patch with its body still readable."""
    for i, patch in enumerate(DiffParser.from_text(text)):
        if i == index:
            return patch
    raise IndexError(index)


# ---------------------------------------------------------------------------
# filters
# ---------------------------------------------------------------------------
from spatch.split.filters import (
    GLOB,
    NONE,
    ONLY_NEW,
    ONLY_REMOVED,
    REGEX,
    PatchFilter,
    build_filter,
    should_skip,
)


class TestBuildFilter:
    def test_default_is_none(self):
        assert build_filter() == PatchFilter()
        assert build_filter().kind == NONE

    def test_only_new(self):
        flt = build_filter(only_new=True, extract_file=True)
        assert flt.kind == ONLY_NEW
        assert flt.extract_file is True

    def test_only_removed(self):
        assert build_filter(only_removed=True).kind == ONLY_REMOVED

    def test_regex_string_compiled(self):
        flt = build_filter(regex=r"\.rs$")
        assert flt.kind == REGEX
        assert isinstance(flt.pattern, re.Pattern)

    def test_glob(self):
        flt = build_filter(glob="*.txt")
        assert (flt.kind, flt.pattern) == (GLOB, "*.txt")

    def test_added_removed_conflict(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            build_filter(only_new=True, only_removed=True)

    def test_regex_glob_conflict(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            build_filter(regex="x", glob="y")

    def test_extract_requires_added_or_removed(self):
        with pytest.raises(ValueError, match="requires either"):
            build_filter(extract_file=True)


class TestShouldSkip:
    def test_none_keeps_everything(self):
        flt = build_filter()
        assert [should_skip(p, flt) for p in _patches()] == [False, False, False]

    def test_only_new(self):
        flt = build_filter(only_new=True)
        assert [should_skip(p, flt) for p in _patches()] == [True, False, True]

    def test_only_removed(self):
        flt = build_filter(only_removed=True)
        assert [should_skip(p, flt) for p in _patches()] == [True, True, False]

    def test_glob_matches_any_depth(self):
        flt = build_filter(glob="*.txt")
        assert [should_skip(p, flt) for p in _patches()] == [True, False, False]

    def test_regex_search(self):
        flt = build_filter(regex=r"^src/")
        assert [should_skip(p, flt) for p in _patches()] == [False, True, True]

    def test_rename_requires_both_names_to_match(self):
        patch = DiffParser.from_text("diff --git a/a.py b/b.txt\n").next_patch()
        assert should_skip(patch, build_filter(glob="*.py")) is True
        assert should_skip(patch, build_filter(regex=r"\.(py|txt)$")) is False


# ---------------------------------------------------------------------------
# writer: output paths
# ---------------------------------------------------------------------------
from spatch.split.writer import extracted_lines, output_path, split_patch, write_patch


class TestOutputPath:
    def test_flattened_with_stem(self, tmp_path):
        patch = _patches()[0]
        path = output_path(patch, build_filter(), "0001-fix", tmp_path)
        assert path == tmp_path / "src-lib.rs+0001-fix.patch"

    def test_flattened_without_stem(self, tmp_path):
        patch = _patches()[0]
        assert output_path(patch, build_filter(), "", tmp_path) == tmp_path / "src-lib.rs.patch"

    def test_removed_uses_old_name(self, tmp_path):
        patch = _patches()[2]
        assert output_path(patch, build_filter(), "", tmp_path) == tmp_path / "gone.txt.patch"

    def test_extract_new_keeps_directories(self, tmp_path):
        patch = _patches()[1]
        flt = build_filter(only_new=True, extract_file=True)
        assert output_path(patch, flt, "ignored", tmp_path) == tmp_path / "docs" / "new.txt"

    def test_extract_removed(self, tmp_path):
        patch = _patches()[2]
        flt = build_filter(only_removed=True, extract_file=True)
        assert output_path(patch, flt, "", tmp_path) == tmp_path / "gone.txt"

    def test_extract_rejects_escaping_paths(self, tmp_path):
        patch = DiffParser.from_text(
            "diff --git a/x b/x\n--- /dev/null\n+++ b/../../etc/passwd\n"
        ).next_patch()
        flt = build_filter(only_new=True, extract_file=True)
        with pytest.raises(ValueError, match="outside the output directory"):
            output_path(patch, flt, "", tmp_path)

    def test_both_sides_dev_null(self, tmp_path):
        patch = DiffParser.from_text(
            "diff --git a/x b/x\n--- /dev/null\n+++ /dev/null\n"
        ).next_patch()
        with pytest.raises(ValueError, match="both sides"):
            output_path(patch, build_filter(), "", tmp_path)


# ---------------------------------------------------------------------------
# writer: contents
# ---------------------------------------------------------------------------


class TestWritePatch:
    def test_header_and_body(self, tmp_path):
        patch = _patch_at(0)
        target = tmp_path / "out" / "lib.patch"
        write_patch(patch, target, build_filter())
        assert target.read_text(encoding="utf-8") == (
            "diff --git a/src/lib.rs b/src/lib.rs\n"
            "index 1111111..2222222 100644\n"
            "--- a/src/lib.rs\n"
            "+++ b/src/lib.rs\n"
            "@@ -1,2 +1,2 @@\n"
            " fn main() {\n"
            "-    old();\n"
            "+    new();\n"
        )

    def test_extract_new_file(self, tmp_path):
        patch = _patch_at(1)
        target = tmp_path / "docs" / "new.txt"
        write_patch(patch, target, build_filter(only_new=True, extract_file=True))
        assert target.read_text(encoding="utf-8") == "hello\nworld\n"

    def test_extracted_lines_drop_notes_and_other_side(self):
        text = (
            "diff --git a/n b/n\n"
            "--- a/n\n"
            "+++ b/n\n"
            "@@ -1,1 +1,2 @@\n"
            "-old\n"
            "\\ No newline at end of file\n"
            "+first\n"
            "+last\n"
        )
        patch = DiffParser.from_text(text).next_patch()
        assert list(extracted_lines(patch, "+")) == ["first\n", "last\n"]
        patch = DiffParser.from_text(text).next_patch()
        assert list(extracted_lines(patch, "-")) == ["old"]

    def test_extract_keeps_missing_final_newline(self, tmp_path):
        text = (
            "diff --git a/docs/new.txt b/docs/new.txt\n"
            "new file mode 100644\n"
            "--- /dev/null\n"
            "+++ b/docs/new.txt\n"
            "@@ -0,0 +1,2 @@\n"
            "+hello\n"
            "+world\n"
            "\\ No newline at end of file\n"
        )
        patch = DiffParser.from_text(text).next_patch()
        target = tmp_path / "docs" / "new.txt"
        write_patch(patch, target, build_filter(only_new=True, extract_file=True))
        assert target.read_bytes() == b"hello\nworld"


class TestSplitPatch:
    def test_writes_one_file_per_patch(self, tmp_path):
        written = split_patch(io.BytesIO(SERIES.encode()), build_filter(), "series", tmp_path)
        assert [p.name for p in written] == [
            "src-lib.rs+series.patch",
            "docs-new.txt+series.patch",
            "gone.txt+series.patch",
        ]
        gone = (tmp_path / "gone.txt+series.patch").read_text(encoding="utf-8")
        assert gone.startswith("diff --git a/gone.txt b/gone.txt\n")
        assert gone.endswith("-bye\n-now\n")
        assert "2.43.0" not in gone

    def test_filtered(self, tmp_path):
        written = split_patch(
            io.BytesIO(SERIES.encode()), build_filter(only_removed=True), "", tmp_path
        )
        assert written == [tmp_path / "gone.txt.patch"]

    def test_extract_removed(self, tmp_path):
        flt = build_filter(only_removed=True, extract_file=True)
        written = split_patch(io.BytesIO(SERIES.encode()), flt, "", tmp_path)
        assert written == [tmp_path / "gone.txt"]
        assert (tmp_path / "gone.txt").read_text(encoding="utf-8") == "bye\nnow\n"

    def test_no_patches(self, tmp_path):
        assert split_patch(io.BytesIO(b"just prose\n"), build_filter(), "", tmp_path) == []
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_patch_skipped_rest_written(self, tmp_path, caplog):
        text = (
            "diff --git a/x b/x\n"
            "--- /dev/null\n"
            "+++ /dev/null\n"
            "diff --git a/good b/good\n"
            "--- a/good\n"
            "+++ b/good\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
        )
        errors = []
        with caplog.at_level("WARNING", logger="spatch.split.writer"):
            written = split_patch(
                io.BytesIO(text.encode()), build_filter(), "", tmp_path, errors=errors
            )
        assert written == [tmp_path / "good.patch"]
        assert (tmp_path / "good.patch").read_text(encoding="utf-8").endswith("-a\n+b\n")
        assert errors == ["diff --git a/x b/x: Patch has /dev/null on both sides"]
        assert "both sides" in caplog.text


# ---------------------------------------------------------------------------
# command: output directory resolution
# ---------------------------------------------------------------------------
from spatch.split.command import resolve_output_dir


class TestResolveOutputDir:
    def test_flag_wins(self, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        assert resolve_output_dir(str(tmp_path), str(other)) == tmp_path

    def test_config_default(self, tmp_path):
        assert resolve_output_dir(None, str(tmp_path)) == tmp_path

    def test_cwd_fallback(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert resolve_output_dir(None) == Path.cwd()

    def test_not_a_directory(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x", encoding="utf-8")
        with pytest.raises(NotADirectoryError, match="is not a directory"):
            resolve_output_dir(str(f))
