"""Tests for the diff walker.

Covers:
- New-file, multi-file and multi-hunk diffs
- Mixed context / removed / added lines
- Zero-context diffs (``git diff --unified=0``), new and deleted files
- Malformed file and hunk headers, lines without a file section
- Paths with spaces and tab-suffixed headers
- Line classification priority
- Idempotence and the non-string contract error
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from greenline.core.diff_walker import (
    AddedLine,
    DiffWalker,
    LineKind,
    classify_line,
    parse_diff,
)
from greenline.core.exceptions import InvalidArgumentError

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "diffs"


def _load_fixture(name: str) -> str:
    """Load a diff fixture file."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def _triples(added_lines: list[AddedLine]) -> list[tuple[str, int, str]]:
    return [(added.file, added.line, added.code) for added in added_lines]


# =============================================================================
#  Fixture-based parsing
# =============================================================================


class TestNewFileLines:
    """All lines of a fresh hunk are additions."""

    def test_three_added_lines(self) -> None:
        result = parse_diff(_load_fixture("new_file_lines.diff"))
        assert result == [
            AddedLine("file1.txt", 1, "This is the first added line."),
            AddedLine("file1.txt", 2, "This is the second added line."),
            AddedLine("file1.txt", 3, "And a third one."),
        ]

    def test_to_dict(self) -> None:
        result = parse_diff(_load_fixture("new_file_lines.diff"))
        assert result[0].to_dict() == {
            "file": "file1.txt",
            "line": 1,
            "code": "This is the first added line.",
        }


class TestMultiFile:
    def test_lines_attributed_to_each_file(self) -> None:
        result = parse_diff(_load_fixture("multi_file.diff"))
        assert _triples(result) == [
            ("file1.txt", 1, "Added line in file1."),
            ("path/to/file2.ex", 5, "  def new_function do"),
            ("path/to/file2.ex", 6, "    :ok"),
            ("path/to/file2.ex", 7, "  end"),
        ]


class TestMultiHunk:
    def test_each_hunk_numbered_from_its_own_start(self) -> None:
        result = parse_diff(_load_fixture("multi_hunk.diff"))
        assert _triples(result) == [
            ("config.exs", 11, "config :my_app, new_key: :new_value"),
            ("config.exs", 27, "config :another_app, setting: true"),
            ("config.exs", 28, 'config :another_app, feature: "enabled"'),
        ]


class TestMixedLines:
    """Context lines advance the counter, removed lines do not."""

    def test_line_numbers(self) -> None:
        result = parse_diff(_load_fixture("mixed_lines.diff"))
        assert [added.line for added in result] == [6, 7, 9]

    def test_leading_space_after_plus_is_kept(self) -> None:
        result = parse_diff(_load_fixture("mixed_lines.diff"))
        assert result[0].code == " added_line_1 = True"
        assert result[2].code == ' another_added = "bar"'


class TestZeroContext:
    """``git diff --unified=0`` output with new and deleted files."""

    def test_all_added_lines(self) -> None:
        result = parse_diff(_load_fixture("zero_context.diff"))
        assert _triples(result) == [
            ("lib/greeter.ex", 3, "  def hello, do: :elixir"),
            ("lib/greeter.ex", 13, ""),
            ("lib/greeter.ex", 14, "  def goodbye(name) do"),
            ("lib/greeter.ex", 15, '    "Goodbye, #{name}"'),
            ("lib/greeter.ex", 16, "  end"),
            ("lib/new_module.ex", 1, "defmodule NewModule do"),
            ("lib/new_module.ex", 2, "end"),
        ]

    def test_deleted_file_emits_nothing(self) -> None:
        result = parse_diff(_load_fixture("zero_context.diff"))
        assert all(added.file != "lib/obsolete.ex" for added in result)


class TestNoNewlineMarker:
    def test_marker_is_ignored(self) -> None:
        result = parse_diff(_load_fixture("no_newline.diff"))
        assert result == [AddedLine("README.md", 2, "New last line")]


class TestSpacesInFilename:
    def test_paths_with_spaces(self) -> None:
        result = parse_diff(_load_fixture("spaces_in_filename.diff"))
        assert _triples(result) == [
            ("my file with spaces.txt", 1, "First line in spaced file."),
            ("my file with spaces.txt", 2, ""),
            ("my file with spaces.txt", 3, "Third line after a blank one."),
            ("another/path with space/file.ex", 6, "def new_func(), do: :ok"),
        ]


# =============================================================================
#  Inline scenarios
# =============================================================================


class TestScenarios:
    def test_context_then_removal_then_addition(self) -> None:
        diff = (
            "diff --git a/f.ex b/f.ex\n"
            "@@ -5,2 +5,3 @@\n"
            " context_line\n"
            "-removed_line\n"
            "+added_line\n"
        )
        assert parse_diff(diff) == [AddedLine("f.ex", 6, "added_line")]

    def test_no_added_lines(self) -> None:
        diff = (
            "diff --git a/README.md b/README.md\n"
            "index 1111111..2222222 100644\n"
            "--- a/README.md\n"
            "+++ b/README.md\n"
            "@@ -1,3 +1,2 @@\n"
            " # Project Title\n"
            "-Old description\n"
            " Some paragraph.\n"
        )
        assert parse_diff(diff) == []

    def test_headers_only(self) -> None:
        diff = (
            "diff --git a/file.txt b/file.txt\n"
            "index 0000000..e69de29 100644\n"
            "--- a/file.txt\n"
            "+++ b/file.txt\n"
        )
        assert parse_diff(diff) == []

    def test_tab_suffix_on_file_header_is_dropped(self) -> None:
        diff = (
            "diff --git a/notes.txt b/notes.txt\t(extra metadata)\n"
            "@@ -1 +1 @@\n"
            "+hello\n"
        )
        assert parse_diff(diff) == [AddedLine("notes.txt", 1, "hello")]

    def test_renamed_file_uses_new_path(self) -> None:
        diff = (
            "diff --git a/old_name.py b/new_name.py\n"
            "similarity index 90%\n"
            "rename from old_name.py\n"
            "rename to new_name.py\n"
            "@@ -1,1 +1,2 @@\n"
            " import os\n"
            "+import sys\n"
        )
        assert parse_diff(diff) == [AddedLine("new_name.py", 2, "import sys")]

    def test_trailing_newline_does_not_change_result(self) -> None:
        diff = "diff --git a/a.py b/a.py\n@@ -0,0 +1 @@\n+x = 1"
        assert parse_diff(diff) == parse_diff(diff + "\n")

    def test_blank_line_inside_hunk_is_not_counted(self) -> None:
        diff = "diff --git a/a.py b/a.py\n@@ -1,2 +1,3 @@\n a\n\n+b\n"
        assert parse_diff(diff) == [AddedLine("a.py", 2, "b")]


class TestEmptyDiff:
    def test_empty_string(self) -> None:
        assert parse_diff("") == []

    def test_whitespace_only(self) -> None:
        assert parse_diff("\n\n\n") == []

    def test_added_lines_before_any_hunk_are_ignored(self) -> None:
        diff = "diff --git a/a.py b/a.py\n+stray\n context\n-gone\n"
        assert parse_diff(diff) == []


# =============================================================================
#  Recovery from malformed input
# =============================================================================


class TestMalformedInput:
    def test_bad_hunk_header_skips_its_body(self, caplog: pytest.LogCaptureFixture) -> None:
        diff = (
            "diff --git a/file1.txt b/file1.txt\n"
            "index 0000000..e69de29 100644\n"
            "--- a/file1.txt\n"
            "+++ b/file1.txt\n"
            "@@ -1,1 +NotANumber,3 @@\n"
            "+This line should be skipped because the hunk header is bad.\n"
            "@@ -5,1 +5,2 @@\n"
            " Context\n"
            "+This line should be parsed.\n"
        )
        with caplog.at_level(logging.WARNING, logger="greenline.core.diff_walker"):
            result = parse_diff(diff)

        assert result == [AddedLine("file1.txt", 6, "This line should be parsed.")]
        assert "Failed to parse hunk header" in caplog.text

    def test_hunk_header_without_plus_segment(self) -> None:
        diff = (
            "diff --git a/a.py b/a.py\n"
            "@@ -1,1 @@\n"
            "+skipped\n"
            "@@ -1 +1 @@\n"
            "+kept\n"
        )
        assert parse_diff(diff) == [AddedLine("a.py", 1, "kept")]

    def test_bad_hunk_header_keeps_previous_hunk(self) -> None:
        diff = (
            "diff --git a/a.py b/a.py\n"
            "@@ -1 +10 @@\n"
            "+first\n"
            "@@ -2 +x @@\n"
            "+second\n"
        )
        assert _triples(parse_diff(diff)) == [("a.py", 10, "first"), ("a.py", 11, "second")]

    def test_lines_without_file_context(self, caplog: pytest.LogCaptureFixture) -> None:
        diff = (
            "@@ -1,1 +1,2 @@\n"
            "+This added line has no file context.\n"
            "diff --git a/real_file.txt b/real_file.txt\n"
            "--- a/real_file.txt\n"
            "+++ b/real_file.txt\n"
            "@@ -1,1 +1,1 @@\n"
            "+This line should be included.\n"
            "+So should this one.\n"
        )
        with caplog.at_level(logging.WARNING, logger="greenline.core.diff_walker"):
            result = parse_diff(diff)

        assert _triples(result) == [
            ("real_file.txt", 1, "This line should be included."),
            ("real_file.txt", 2, "So should this one."),
        ]
        assert "without a file section" in caplog.text

    def test_unparseable_file_header_drops_its_section(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        diff = (
            "diff --git a/good.py b/good.py\n"
            "@@ -1 +1 @@\n"
            "+good\n"
            "diff --git a/no-separator-here\n"
            "@@ -1 +1 @@\n"
            "+dropped\n"
            "diff --git a/later.py b/later.py\n"
            "@@ -3 +3 @@\n"
            "+later\n"
        )
        with caplog.at_level(logging.WARNING, logger="greenline.core.diff_walker"):
            result = parse_diff(diff)

        assert _triples(result) == [("good.py", 1, "good"), ("later.py", 3, "later")]
        assert "Could not parse file path" in caplog.text

    def test_new_file_header_resets_incomplete_hunk(self) -> None:
        diff = (
            "diff --git a/a.py b/a.py\n"
            "@@ -1,5 +1,5 @@\n"
            " one\n"
            "diff --git a/b.py b/b.py\n"
            "+not in a hunk yet\n"
            "@@ -1 +4 @@\n"
            "+in b\n"
        )
        assert parse_diff(diff) == [AddedLine("b.py", 4, "in b")]


# =============================================================================
#  Classification and contract
# =============================================================================


class TestClassifyLine:
    @pytest.mark.parametrize(
        ("line", "kind"),
        [
            ("diff --git a/x b/x", LineKind.FILE_HEADER),
            ("index 123..456 100644", LineKind.METADATA),
            ("--- a/x", LineKind.METADATA),
            ("+++ b/x", LineKind.METADATA),
            ("@@ -1 +1 @@", LineKind.HUNK_HEADER),
            ("+added", LineKind.ADDED),
            ("+++ /dev/null", LineKind.ADDED),
            (" context", LineKind.CONTEXT),
            ("-removed", LineKind.REMOVED),
            ("--- /dev/null", LineKind.REMOVED),
            ("", LineKind.OTHER),
            ("\\ No newline at end of file", LineKind.OTHER),
            ("new file mode 100644", LineKind.OTHER),
        ],
    )
    def test_kind(self, line: str, kind: LineKind) -> None:
        assert classify_line(line) is kind


class TestContract:
    @pytest.mark.parametrize("bad_input", [None, b"diff --git a/x b/x", 42, ["+x"]])
    def test_non_string_raises(self, bad_input: object) -> None:
        with pytest.raises(InvalidArgumentError):
            parse_diff(bad_input)  # type: ignore[arg-type]

    def test_invalid_argument_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            DiffWalker().parse(None)  # type: ignore[arg-type]

    def test_idempotent(self) -> None:
        diff = _load_fixture("multi_file.diff")
        walker = DiffWalker()
        assert walker.parse(diff) == walker.parse(diff) == parse_diff(diff)

    def test_added_line_is_immutable(self) -> None:
        added = AddedLine("a.py", 1, "x")
        with pytest.raises(AttributeError):
            added.line = 2  # type: ignore[misc]
