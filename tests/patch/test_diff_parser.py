# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for unified diff parsing."""

from __future__ import annotations

import pytest

from scopefs.errors import PatchParseError
from scopefs.patch import (
    ChangeKind,
    LineTag,
    normalize_diff_path,
    parse_header_path,
    parse_unified_diff,
    strip_ansi,
)

MODIFY_DIFF = """\
diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,3 @@ def main():
 import os
-print("old")
+print("new")
 done
"""


class TestParseUnifiedDiff:
    """Structure of parsed patches."""

    def test_modify_section(self) -> None:
        (patch,) = parse_unified_diff(MODIFY_DIFF)

        assert patch.old_path == patch.new_path == "src/app.py"
        assert patch.kind is ChangeKind.MODIFY
        (hunk,) = patch.hunks
        assert (hunk.old_start, hunk.old_length, hunk.new_start, hunk.new_length) == (
            1,
            3,
            1,
            3,
        )
        assert [line.tag for line in hunk.lines] == [
            LineTag.CONTEXT,
            LineTag.REMOVE,
            LineTag.ADD,
            LineTag.CONTEXT,
        ]
        assert hunk.old_lines == ("import os", 'print("old")', "done")
        assert hunk.new_lines == ("import os", 'print("new")', "done")
        assert not hunk.is_lenient

    def test_kinds_from_headers(self) -> None:
        diff = (
            "--- /dev/null\n+++ b/new.txt\n@@ -0,0 +1 @@\n+hi\n"
            "--- a/old.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-bye\n"
            "--- a/from.txt\n+++ b/to.txt\n@@ -1 +1 @@\n-x\n+y\n"
        )

        patches = parse_unified_diff(diff)

        assert [p.kind for p in patches] == [
            ChangeKind.CREATE,
            ChangeKind.DELETE,
            ChangeKind.RENAME,
        ]
        assert patches[0].old_path is None
        assert patches[0].target_path == "new.txt"
        assert patches[1].new_path is None
        assert patches[1].target_path == "old.txt"

    def test_omitted_counts_default_to_one(self) -> None:
        (patch,) = parse_unified_diff("--- a/f\n+++ b/f\n@@ -5 +5 @@\n-a\n+b\n")

        hunk = patch.hunks[0]
        assert (hunk.old_length, hunk.new_length) == (1, 1)

    def test_numbered_body_lines_that_look_like_headers(self) -> None:
        diff = (
            "--- a/notes.md\n+++ b/notes.md\n@@ -1,2 +1,3 @@\n"
            " # Title\n"
            "+--- heading\n"
            "--- [ ] item\n"
            "+- [x] item\n"
        )

        (patch,) = parse_unified_diff(diff)

        texts = [(line.tag, line.text) for line in patch.hunks[0].lines]
        assert texts == [
            (LineTag.CONTEXT, "# Title"),
            (LineTag.ADD, "--- heading"),
            (LineTag.REMOVE, "-- [ ] item"),
            (LineTag.ADD, "- [x] item"),
        ]

    def test_body_past_declared_counts_is_recounted(self) -> None:
        diff = "--- a/f.txt\n+++ b/f.txt\n@@ -1,1 +1,1 @@\n-a\n+A\n-b\n+B\n"

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert hunk.old_lines == ("a", "b")
        assert hunk.new_lines == ("A", "B")
        assert (hunk.old_start, hunk.old_length, hunk.new_length) == (1, 2, 2)

    def test_overflow_stops_at_next_section_and_signature(self) -> None:
        diff = (
            "--- a/one\n+++ b/one\n@@ -1 +1 @@\n-a\n+b\n"
            "--- a/two\n+++ b/two\n@@ -1 +1 @@\n-c\n+d\n"
            "-- \n2.43.0\n"
        )

        patches = parse_unified_diff(diff)

        assert [p.hunks[0].old_lines for p in patches] == [("a",), ("c",)]
        assert patches[1].hunks[0].old_length == 1

    def test_empty_body_line_is_context(self) -> None:
        (patch,) = parse_unified_diff("--- a/f\n+++ b/f\n@@ -1,3 +1,3 @@\n a\n\n-b\n+c\n")

        assert patch.hunks[0].old_lines == ("a", "", "b")

    def test_multiple_hunks_and_files(self) -> None:
        diff = (
            "--- a/one\n+++ b/one\n@@ -1 +1 @@\n-a\n+b\n@@ -10 +10 @@\n-c\n+d\n"
            "--- a/two\n+++ b/two\n@@ -1 +1 @@\n-e\n+f\n"
        )

        patches = parse_unified_diff(diff)

        assert [p.target_path for p in patches] == ["one", "two"]
        assert len(patches[0].hunks) == 2

    def test_no_newline_markers(self) -> None:
        diff = (
            "--- a/f\n+++ b/f\n@@ -1 +1 @@\n"
            "-old\n\\ No newline at end of file\n"
            "+new\n\\ No newline at end of file\n"
        )

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert hunk.old_missing_newline
        assert hunk.new_missing_newline
        assert hunk.old_lines == ("old",)

    def test_marker_on_added_line_only(self) -> None:
        diff = "--- a/f\n+++ b/f\n@@ -1 +1 @@\n-old\n+new\n\\ No newline at end of file\n"

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert not hunk.old_missing_newline
        assert hunk.new_missing_newline

    def test_crlf_diff(self) -> None:
        diff = MODIFY_DIFF.replace("\n", "\r\n")

        (patch,) = parse_unified_diff(diff)

        assert patch.hunks[0].new_lines[1] == 'print("new")'

    def test_header_without_hunks(self) -> None:
        (patch,) = parse_unified_diff("--- a/f\n+++ b/f\n")

        assert patch.hunks == ()
        assert not patch.has_changes

    def test_hunk_before_header_raises(self) -> None:
        with pytest.raises(PatchParseError, match="line 1"):
            _ = parse_unified_diff("@@ -1 +1 @@\n-a\n+b\n")

    def test_two_null_paths_raise(self) -> None:
        with pytest.raises(PatchParseError):
            _ = parse_unified_diff("--- /dev/null\n+++ /dev/null\n@@ -0,0 +0,0 @@\n")

    def test_text_without_sections(self) -> None:
        assert parse_unified_diff("just some prose\n") == []


class TestLenientHunks:
    """Hunks without line numbers."""

    def test_bare_header(self) -> None:
        diff = "--- a/f\n+++ b/f\n@@\n a\n-b\n+B\n c\n"

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert hunk.is_lenient
        assert hunk.old_start is None
        assert hunk.old_lines == ("a", "b", "c")
        assert hunk.new_lines == ("a", "B", "c")

    def test_double_at_header(self) -> None:
        diff = "--- a/f\n+++ b/f\n@@ @@\n-x\n+y\n@@ @@\n-z\n+w\n"

        hunks = parse_unified_diff(diff)[0].hunks

        assert len(hunks) == 2
        assert all(hunk.is_lenient for hunk in hunks)

    def test_body_ends_at_next_file(self) -> None:
        diff = (
            "--- a/one\n+++ b/one\n@@\n-a\n+b\n"
            "diff --git a/two b/two\n"
            "--- a/two\n+++ b/two\n@@\n-c\n+d\n"
        )

        patches = parse_unified_diff(diff)

        assert [p.hunks[0].new_lines for p in patches] == [("b",), ("d",)]

    def test_blank_line_inside_body_is_context(self) -> None:
        diff = "--- a/f\n+++ b/f\n@@\n a\n\n-b\n+c\n\n\n"

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert hunk.old_lines == ("a", "", "b")

    def test_prose_ends_body(self) -> None:
        diff = "--- a/f\n+++ b/f\n@@\n-a\n+b\nThat is all.\n"

        hunk = parse_unified_diff(diff)[0].hunks[0]

        assert hunk.new_lines == ("b",)


class TestPathHelpers:
    """Header path handling."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a/src/x.py", "src/x.py"),
            ("b/src/x.py", "src/x.py"),
            ("src/x.py", "src/x.py"),
            ("/abs/x.py", "abs/x.py"),
            ("a/src/../lib/x.py", "lib/x.py"),
            ("a\\win\\x.py", "win/x.py"),
            ("/dev/null", None),
            ("", None),
            (None, None),
        ],
    )
    def test_normalize_diff_path(self, raw: str | None, expected: str | None) -> None:
        assert normalize_diff_path(raw) == expected

    def test_header_path_strips_tab_and_timestamp(self) -> None:
        assert parse_header_path("a/f.txt\t2024-01-01 10:00:00.000 +0000") == "a/f.txt"
        assert parse_header_path("a/f.txt 2024-01-01 10:00:00") == "a/f.txt"

    def test_quoted_header_path(self) -> None:
        assert parse_header_path('"a/with space.txt"') == "a/with space.txt"

    def test_strip_ansi(self) -> None:
        assert strip_ansi("\x1b[31m-old\x1b[0m") == "-old"
        assert strip_ansi("\x1b]8;;http://x\x07link\x1b]8;;\x07") == "link"
