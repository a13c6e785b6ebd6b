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

"""Unified diff parsing.

Accepted input, per file section::

    --- a/path/to/old      (or /dev/null)
    +++ b/path/to/new      (or /dev/null)
    @@ -3,4 +3,5 @@ optional section text
     context
    -removed
    +added
    \\ No newline at end of file

Numbered hunks consume at least as many body lines as their header declares,
so a body line such as ``--- heading`` or ``- [ ] item`` is always content.
Tagged lines past the declared counts also belong to the hunk, and its
ranges are recounted from the body; they end at a blank line, a ``--- ``
line, ``-- `` or anything that ends a lenient body.
Lenient hunks (``@@`` or ``@@ @@``) have no counts; their body runs until the
next ``@@``, a ``diff --git`` line or a ``---``/``+++`` header pair.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Final

from ..errors import PatchParseError
from ..storage import normalize_segments
from ._types import ChangeKind, Hunk, HunkLine, LineTag, StructuredPatch

DEV_NULL: Final[str] = "/dev/null"

_ANSI_RE: Final[re.Pattern[str]] = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"  # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC
    r"|\x1b[@-Z\\-_]"
)
_HUNK_HEADER_RE: Final[re.Pattern[str]] = re.compile(
    r"^@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@"
)
_FILE_HEADER_RE: Final[re.Pattern[str]] = re.compile(r"^(?:---|\+\+\+)\s", re.MULTILINE)
_ANY_HUNK_RE: Final[re.Pattern[str]] = re.compile(r"^@@", re.MULTILINE)
_TIMESTAMP_RE: Final[re.Pattern[str]] = re.compile(
    r"\s+\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}.*$"
)
_NO_NEWLINE_PREFIX: Final[str] = "\\"
_SIGNATURE_SEPARATOR: Final[str] = "-- "
_BODY_TAGS: Final[dict[str, LineTag]] = {tag.value: tag for tag in LineTag}


def strip_ansi(text: str) -> str:
    """Remove terminal color and control escape sequences."""
    return _ANSI_RE.sub("", text)


def has_file_headers(text: str) -> bool:
    return _FILE_HEADER_RE.search(text) is not None


def has_hunks(text: str) -> bool:
    return _ANY_HUNK_RE.search(text) is not None


def normalize_diff_path(raw: str | None) -> str | None:
    """Normalize a header path; ``None`` for ``/dev/null`` or an empty path.

    Strips the ``a/``/``b/`` prefixes and leading slashes, converts
    backslashes, and clamps ``..`` at the root.

    Example::

        normalize_diff_path("a/src/../lib/x.py")  # 'lib/x.py'
        normalize_diff_path("/dev/null")  # None
    """
    if not raw or raw == DEV_NULL:
        return None
    path = raw.replace("\\", "/")
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return "/".join(normalize_segments(path.lstrip("/"))) or None


def parse_header_path(raw: str) -> str:
    """Extract the path from the text after ``--- `` or ``+++ ``."""
    path = raw.split("\t", 1)[0].strip()
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return _TIMESTAMP_RE.sub("", path)


def _empty_hunks() -> list[Hunk]:
    return []


@dataclass(slots=True)
class _FileSection:
    old_raw: str
    new_raw: str
    hunks: list[Hunk] = field(default_factory=_empty_hunks)

    def build(self) -> StructuredPatch:
        old_path = normalize_diff_path(self.old_raw)
        new_path = normalize_diff_path(self.new_raw)
        if old_path is None and new_path is None:
            msg = f"File header has no usable path: {self.old_raw!r} -> {self.new_raw!r}"
            raise PatchParseError(msg)
        return StructuredPatch(
            old_path=old_path,
            new_path=new_path,
            hunks=tuple(self.hunks),
            kind=ChangeKind.classify(old_path, new_path),
        )


def parse_unified_diff(text: str) -> list[StructuredPatch]:
    """Parse diff text into one :class:`StructuredPatch` per file section.

    Lines outside file sections (``diff --git``, ``index``, mail headers)
    are ignored. A file section may have no hunks.

    Raises:
        PatchParseError: If a hunk appears before any file header, or a file
            header has neither an old nor a new path.
    """

    lines = text.split("\n")
    if lines and lines[-1] == "":
        _ = lines.pop()
    lines = [line.removesuffix("\r") for line in lines]

    sections: list[_FileSection] = []
    index = 0
    while index < len(lines):
        line = lines[index]
        if _is_header_pair(lines, index):
            sections.append(
                _FileSection(
                    old_raw=parse_header_path(line[4:]),
                    new_raw=parse_header_path(lines[index + 1][4:]),
                )
            )
            index += 2
            continue
        if line.startswith("@@"):
            if not sections:
                msg = f"Hunk header before any file header at line {index + 1}."
                raise PatchParseError(msg)
            hunk, index = _parse_hunk(lines, index)
            sections[-1].hunks.append(hunk)
            continue
        index += 1

    return [section.build() for section in sections]


def _is_header_pair(lines: Sequence[str], index: int) -> bool:
    return (
        lines[index].startswith("--- ")
        and index + 1 < len(lines)
        and lines[index + 1].startswith("+++ ")
    )


def _parse_hunk(lines: Sequence[str], index: int) -> tuple[Hunk, int]:
    header = _HUNK_HEADER_RE.match(lines[index])
    if header is None:
        return _parse_lenient_body(lines, index + 1)
    old_start = int(header.group(1))
    old_length = int(header.group(2)) if header.group(2) is not None else 1
    new_start = int(header.group(3))
    new_length = int(header.group(4)) if header.group(4) is not None else 1
    return _parse_numbered_body(
        lines, index + 1, old_start, old_length, new_start, new_length
    )


def _parse_numbered_body(
    lines: Sequence[str],
    index: int,
    old_start: int,
    old_length: int,
    new_start: int,
    new_length: int,
) -> tuple[Hunk, int]:
    body: list[HunkLine] = []
    old_seen = new_seen = 0
    flags = _NewlineFlags()
    while index < len(lines) and (old_seen < old_length or new_seen < new_length):
        line = lines[index]
        if line.startswith(_NO_NEWLINE_PREFIX):
            flags.mark(body)
            index += 1
            continue
        tagged = _tag_line(line) if line else HunkLine(LineTag.CONTEXT, "")
        if tagged is None:
            break
        body.append(tagged)
        old_seen += tagged.in_old
        new_seen += tagged.in_new
        index += 1
    # Miscounted headers: body lines past the declared counts still belong
    # to this hunk, and the ranges are recounted from the body.
    overflow = False
    while index < len(lines) and not _ends_counted_body(lines, index):
        line = lines[index]
        if line.startswith(_NO_NEWLINE_PREFIX):
            flags.mark(body)
            index += 1
            continue
        tagged = _tag_line(line)
        if tagged is None:
            break
        body.append(tagged)
        overflow = True
        index += 1
    if overflow:
        old_length = sum(line.in_old for line in body)
        new_length = sum(line.in_new for line in body)
    hunk = Hunk(
        lines=tuple(body),
        old_start=old_start,
        old_length=old_length,
        new_start=new_start,
        new_length=new_length,
        old_missing_newline=flags.old,
        new_missing_newline=flags.new,
    )
    return hunk, index


def _ends_counted_body(lines: Sequence[str], index: int) -> bool:
    # ``-- `` is the mail signature separator that follows format-patch output.
    line = lines[index]
    return (
        not line
        or line == _SIGNATURE_SEPARATOR
        or line.startswith("--- ")
        or _ends_lenient_body(lines, index)
    )


def _parse_lenient_body(lines: Sequence[str], index: int) -> tuple[Hunk, int]:
    body: list[HunkLine] = []
    flags = _NewlineFlags()
    while index < len(lines):
        line = lines[index]
        if _ends_lenient_body(lines, index):
            break
        if line.startswith(_NO_NEWLINE_PREFIX):
            flags.mark(body)
            index += 1
            continue
        if not line:
            if not _body_resumes(lines, index + 1):
                break
            body.append(HunkLine(LineTag.CONTEXT, ""))
            index += 1
            continue
        tagged = _tag_line(line)
        if tagged is None:
            break
        body.append(tagged)
        index += 1
    hunk = Hunk(
        lines=tuple(body),
        old_missing_newline=flags.old,
        new_missing_newline=flags.new,
    )
    return hunk, index


def _ends_lenient_body(lines: Sequence[str], index: int) -> bool:
    line = lines[index]
    return (
        line.startswith("@@")
        or line.startswith("diff --git ")
        or _is_header_pair(lines, index)
    )


def _body_resumes(lines: Sequence[str], index: int) -> bool:
    while index < len(lines) and not lines[index]:
        index += 1
    if index >= len(lines) or _ends_lenient_body(lines, index):
        return False
    return _tag_line(lines[index]) is not None


def _tag_line(line: str) -> HunkLine | None:
    tag = _BODY_TAGS.get(line[:1])
    if tag is None:
        return None
    return HunkLine(tag, line[1:])


@dataclass(slots=True)
class _NewlineFlags:
    old: bool = False
    new: bool = False

    def mark(self, body: Sequence[HunkLine]) -> None:
        if not body:
            return
        tag = body[-1].tag
        if tag is not LineTag.ADD:
            self.old = True
        if tag is not LineTag.REMOVE:
            self.new = True


__all__ = [
    "DEV_NULL",
    "has_file_headers",
    "has_hunks",
    "normalize_diff_path",
    "parse_header_path",
    "parse_unified_diff",
    "strip_ansi",
]
