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

"""Hunk placement and application on in-memory text.

Placement rules:

- Numbered hunks are expected at ``old_start`` shifted by the line delta of
  earlier hunks. The pre-image is searched outward from there, nearest
  first, up to ``max_offset_lines`` lines away.
- Lenient hunks are searched forward from the end of the previous hunk.
  If the whole pre-image is not found contiguously, the hunk is split into
  edit groups (a context run followed by changes) that must each be found,
  in order. Nothing is modified unless every group is found.
- Hunks never overlap: each search starts where the previous hunk ended.

Text is split on ``\\n`` with ``\\r`` stripped and joined back with the
file's dominant line ending. Whether the result ends with a newline follows
the ``\\ No newline at end of file`` markers of the hunk that reaches the end
of the file, and otherwise the original text.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import HunkMismatchError
from ._types import DEFAULT_MAX_OFFSET_LINES, Hunk, HunkLine, LineTag


@dataclass(slots=True)
class TextLines:
    """Mutable line view of a text with its line-ending conventions."""

    lines: list[str]
    final_newline: bool
    eol: str

    @classmethod
    def split(cls, text: str) -> TextLines:
        eol = "\r\n" if "\r\n" in text else "\n"
        if not text:
            return cls(lines=[], final_newline=True, eol=eol)
        final_newline = text.endswith("\n")
        body = text[:-1] if final_newline else text
        lines = [line.removesuffix("\r") for line in body.split("\n")]
        return cls(lines=lines, final_newline=final_newline, eol=eol)

    def join(self) -> str:
        if not self.lines:
            return ""
        text = self.eol.join(self.lines)
        return text + self.eol if self.final_newline else text


@dataclass(slots=True, frozen=True)
class _EditGroup:
    old: tuple[str, ...]
    new: tuple[str, ...]


def apply_hunks(
    text: str, hunks: Sequence[Hunk], *, max_offset_lines: int | None = None
) -> str:
    """Apply ``hunks`` in order to ``text`` and return the new text.

    Raises:
        HunkMismatchError: If a hunk's pre-image cannot be located.
    """

    if not hunks:
        return text
    buffer = TextLines.split(text)
    cursor = 0
    delta = 0
    for index, hunk in enumerate(hunks):
        if hunk.is_lenient:
            end = _apply_lenient(buffer, hunk, index, cursor, max_offset_lines)
        else:
            end = _apply_numbered(buffer, hunk, index, cursor, delta, max_offset_lines)
        if end == len(buffer.lines) and (
            hunk.old_missing_newline or hunk.new_missing_newline
        ):
            buffer.final_newline = not hunk.new_missing_newline
        delta += len(hunk.new_lines) - len(hunk.old_lines)
        cursor = end
    return buffer.join()


def _apply_numbered(
    buffer: TextLines,
    hunk: Hunk,
    index: int,
    cursor: int,
    delta: int,
    max_offset_lines: int | None,
) -> int:
    old, new = hunk.old_lines, hunk.new_lines
    start = hunk.old_start or 0
    expected = (start - 1 if hunk.old_length else start) + delta
    offset = DEFAULT_MAX_OFFSET_LINES if max_offset_lines is None else max_offset_lines
    position = _find_nearest(buffer.lines, old, expected, offset, cursor)
    if position is None:
        raise HunkMismatchError(
            index,
            f"pre-image not found within {offset} lines of line {start}"
            f"{_first_line_hint(old)}",
        )
    buffer.lines[position : position + len(old)] = new
    return position + len(new)


def _apply_lenient(
    buffer: TextLines,
    hunk: Hunk,
    index: int,
    cursor: int,
    max_offset_lines: int | None,
) -> int:
    old, new = hunk.old_lines, hunk.new_lines
    position = _find_forward(buffer.lines, old, cursor, max_offset_lines)
    if position is not None:
        buffer.lines[position : position + len(old)] = new
        return position + len(new)

    groups = _edit_groups(hunk.lines)
    placements: list[int] = []
    search_from = cursor
    for group in groups:
        found = _find_forward(buffer.lines, group.old, search_from, max_offset_lines)
        if found is None:
            raise HunkMismatchError(
                index, f"context not found{_first_line_hint(group.old)}"
            )
        placements.append(found)
        search_from = found + len(group.old)

    rebuilt: list[str] = []
    consumed = 0
    end = cursor
    for group, found in zip(groups, placements, strict=True):
        rebuilt.extend(buffer.lines[consumed:found])
        rebuilt.extend(group.new)
        consumed = found + len(group.old)
        end = len(rebuilt)
    rebuilt.extend(buffer.lines[consumed:])
    buffer.lines[:] = rebuilt
    return end


def _edit_groups(lines: Sequence[HunkLine]) -> list[_EditGroup]:
    """Split a hunk body at every context line that follows a change."""
    groups: list[_EditGroup] = []
    old: list[str] = []
    new: list[str] = []
    changed = False
    for line in lines:
        if line.tag is LineTag.CONTEXT and changed:
            groups.append(_EditGroup(tuple(old), tuple(new)))
            old, new, changed = [], [], False
        if line.in_old:
            old.append(line.text)
        if line.in_new:
            new.append(line.text)
        changed = changed or line.tag is not LineTag.CONTEXT
    if old or new:
        groups.append(_EditGroup(tuple(old), tuple(new)))
    return groups


def _matches_at(lines: Sequence[str], needle: Sequence[str], position: int) -> bool:
    return all(lines[position + offset] == text for offset, text in enumerate(needle))


def _find_nearest(
    lines: Sequence[str],
    needle: Sequence[str],
    expected: int,
    max_offset: int,
    lower: int,
) -> int | None:
    upper = len(lines) - len(needle)
    if upper < lower:
        return None
    anchor = min(max(expected, lower), upper)
    for distance in range(max_offset + 1):
        for candidate in (anchor - distance, anchor + distance):
            if lower <= candidate <= upper and _matches_at(lines, needle, candidate):
                return candidate
    return None


def _find_forward(
    lines: Sequence[str],
    needle: Sequence[str],
    start: int,
    max_offset: int | None,
) -> int | None:
    upper = len(lines) - len(needle)
    if max_offset is not None:
        upper = min(upper, start + max_offset)
    for candidate in range(start, upper + 1):
        if _matches_at(lines, needle, candidate):
            return candidate
    return None


def _first_line_hint(needle: Sequence[str]) -> str:
    return f": {needle[0]!r}" if needle else ""


__all__ = ["TextLines", "apply_hunks"]
