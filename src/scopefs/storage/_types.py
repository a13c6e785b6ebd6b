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

"""Value types returned by storage adapters."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum


class EntryKind(StrEnum):
    """Kind of a storage node."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(slots=True, frozen=True)
class DirEntry:
    """Child reported by ``StorageAdapter.readdir()``.

    Carries the kind alongside the name so a walk can decide whether to
    descend without a separate ``stat`` per child.

    Attributes:
        name: Child name without any parent path.
        kind: Whether the child is a file or a directory.
    """

    name: str
    kind: EntryKind

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(slots=True, frozen=True)
class FileStat:
    """Metadata for a file or directory.

    Attributes:
        path: Normalized path relative to the storage root.
        is_file: True for regular files.
        is_directory: True for directories.
        size_bytes: Size in bytes (0 for directories).
        modified_at: Last modification time, if the backend tracks it.
        mime_type: Type guessed from the file name, if any.
    """

    path: str
    is_file: bool
    is_directory: bool
    size_bytes: int
    modified_at: datetime | None = None
    mime_type: str | None = None


def guess_mime_type(name: str) -> str | None:
    mime, _ = mimetypes.guess_type(name, strict=False)
    return mime


def now() -> datetime:
    """Return the current UTC time truncated to milliseconds."""
    value = datetime.now(UTC)
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


__all__ = ["DirEntry", "EntryKind", "FileStat", "guess_mime_type", "now"]
