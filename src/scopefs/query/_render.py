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

"""Text renderers for listing results."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Final

from ..storage import EntryKind, parent_of
from ._types import Entry

_SIZE_UNITS: Final[tuple[str, ...]] = ("B", "KB", "MB", "GB", "TB")
_EMPTY_TREE: Final[str] = "<empty>"


def format_size(size: int | None) -> str:
    """Human readable size: ``"512 B"``, ``"1.5 KB"``; ``"-"`` when unknown."""
    if size is None:
        return "-"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{size} {_SIZE_UNITS[0]}"
    return f"{value:.1f} {_SIZE_UNITS[unit]}"


def format_mtime(value: datetime | None) -> str:
    """Local ``YYYY-MM-DD HH:MM``; ``"-"`` when unknown."""
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def format_long(entries: Iterable[Entry]) -> str:
    """One ``ls -l`` style line per entry: kind flag, size, mtime, path."""
    lines: list[str] = []
    for entry in entries:
        if entry.is_directory:
            flag, size, mtime = "d", "-", "-"
        else:
            flag = "-"
            size = format_size(entry.size)
            mtime = format_mtime(entry.last_modified)
        lines.append(f"{flag} {size:>10}  {mtime}  {entry.path}")
    return "\n".join(lines)


def format_tree(entries: Iterable[Entry]) -> str:
    """Render entries as an indented tree.

    Parent directories implied by a path but absent from ``entries`` are
    synthesized, so a files-only listing still renders. Siblings are ordered
    directories first, then by name. Returns ``"<empty>"`` for no entries.
    """

    children: dict[str, list[tuple[str, str, EntryKind]]] = {}
    present: set[str] = set()

    def ensure_dir(path: str) -> None:
        if not path or path in present:
            return
        parent = parent_of(path)
        ensure_dir(parent)
        children.setdefault(parent, []).append(
            (path, path.rsplit("/", 1)[-1], EntryKind.DIRECTORY)
        )
        present.add(path)

    for entry in entries:
        path = entry.path.replace("\\", "/")
        if entry.is_directory:
            ensure_dir(path)
            continue
        parent = parent_of(path)
        ensure_dir(parent)
        if path not in present:
            children.setdefault(parent, []).append((path, entry.name, EntryKind.FILE))
            present.add(path)

    for siblings in children.values():
        siblings.sort(
            key=lambda item: (item[2] is not EntryKind.DIRECTORY, item[1].casefold())
        )

    lines: list[str] = []

    def visit(parent: str, indent: str) -> None:
        siblings = children.get(parent, [])
        for index, (path, name, kind) in enumerate(siblings):
            last = index == len(siblings) - 1
            connector = "└── " if last else "├── "
            is_dir = kind is EntryKind.DIRECTORY
            lines.append(f"{indent}{connector}{name}/" if is_dir else f"{indent}{connector}{name}")
            if is_dir:
                visit(path, indent + ("    " if last else "│   "))

    visit("", "")
    return "\n".join(lines) or _EMPTY_TREE


__all__ = ["format_long", "format_mtime", "format_size", "format_tree"]
