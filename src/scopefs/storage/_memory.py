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

"""In-memory storage adapter."""

from __future__ import annotations

import errno
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from ._path import normalize_path, parent_of, validate_path
from ._types import DirEntry, EntryKind, FileStat, guess_mime_type, now


@dataclass(slots=True)
class _StoredFile:
    content: bytes
    modified_at: datetime


def _empty_files() -> dict[str, _StoredFile]:
    return {}


def _root_only() -> set[str]:
    return {""}


@dataclass(slots=True)
class InMemoryStorage:
    """Dict-backed tree implementing :class:`StorageAdapter`.

    Directories are tracked explicitly, so empty directories survive and
    ``write_file`` registers every missing parent. Modification times come
    from ``clock`` so tests can pin them.

    Example::

        storage = InMemoryStorage.from_files({"src/app.py": b"print()\\n"})
        entries = await storage.readdir("src")
    """

    _files: dict[str, _StoredFile] = field(default_factory=_empty_files)
    _directories: set[str] = field(default_factory=_root_only)
    _read_only: bool = False
    _clock: Callable[[], datetime] = now

    @classmethod
    def from_files(
        cls,
        files: Mapping[str, bytes | str],
        *,
        clock: Callable[[], datetime] = now,
    ) -> InMemoryStorage:
        """Build a storage pre-populated with ``files`` (text is UTF-8 encoded)."""
        storage = cls(_clock=clock)
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            storage.put(path, data)
        return storage

    @property
    def read_only(self) -> bool:
        return self._read_only

    def put(self, path: str, data: bytes, *, modified_at: datetime | None = None) -> None:
        """Synchronously store ``data`` at ``path``, creating parents."""
        normalized = self._normalize(path)
        if not normalized or normalized in self._directories:
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        self._ensure_parents(normalized)
        self._files[normalized] = _StoredFile(data, modified_at or self._clock())

    def snapshot(self) -> dict[str, bytes]:
        """Return a copy of all file contents keyed by path."""
        return {path: stored.content for path, stored in self._files.items()}

    async def read_file(self, path: str) -> bytes:
        normalized = self._normalize(path)
        if normalized in self._directories:
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        stored = self._files.get(normalized)
        if stored is None:
            raise FileNotFoundError(path)
        return stored.content

    async def write_file(self, path: str, data: bytes) -> None:
        self._require_writable()
        self.put(path, data)

    async def delete_file(self, path: str) -> None:
        self._require_writable()
        normalized = self._normalize(path)
        if normalized in self._directories:
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        if self._files.pop(normalized, None) is None:
            raise FileNotFoundError(path)

    async def stat(self, path: str) -> FileStat:
        normalized = self._normalize(path)
        if normalized in self._directories:
            return FileStat(
                path=normalized, is_file=False, is_directory=True, size_bytes=0
            )
        stored = self._files.get(normalized)
        if stored is None:
            raise FileNotFoundError(path)
        return FileStat(
            path=normalized,
            is_file=True,
            is_directory=False,
            size_bytes=len(stored.content),
            modified_at=stored.modified_at,
            mime_type=guess_mime_type(normalized),
        )

    async def readdir(self, path: str) -> Sequence[DirEntry]:
        normalized = self._normalize(path)
        if normalized in self._files:
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        if normalized not in self._directories:
            raise FileNotFoundError(path)
        children: list[DirEntry] = [
            DirEntry(name=_child_name(d, normalized), kind=EntryKind.DIRECTORY)
            for d in self._directories
            if d and parent_of(d) == normalized
        ]
        children.extend(
            DirEntry(name=_child_name(f, normalized), kind=EntryKind.FILE)
            for f in self._files
            if parent_of(f) == normalized
        )
        children.sort(key=lambda entry: entry.name)
        return children

    async def mkdir(self, path: str) -> None:
        self._require_writable()
        normalized = self._normalize(path)
        if normalized in self._files:
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        self._ensure_parents(normalized)
        self._directories.add(normalized)

    async def rmdir(self, path: str) -> None:
        self._require_writable()
        normalized = self._normalize(path)
        if not normalized:
            msg = "Cannot remove the root directory."
            raise PermissionError(msg)
        if normalized in self._files:
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        if normalized not in self._directories:
            raise FileNotFoundError(path)
        prefix = f"{normalized}/"
        if any(p.startswith(prefix) for p in (*self._directories, *self._files)):
            raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
        self._directories.discard(normalized)

    def _normalize(self, path: str) -> str:
        normalized = normalize_path(path)
        validate_path(normalized)
        return normalized

    def _ensure_parents(self, normalized: str) -> None:
        parent = parent_of(normalized)
        missing: list[str] = []
        while parent and parent not in self._directories:
            if parent in self._files:
                msg = f"Not a directory: {parent}"
                raise NotADirectoryError(msg)
            missing.append(parent)
            parent = parent_of(parent)
        self._directories.update(missing)

    def _require_writable(self) -> None:
        if self._read_only:
            msg = "Storage is read-only."
            raise PermissionError(msg)


def _child_name(path: str, parent: str) -> str:
    return path[len(parent) + 1 :] if parent else path


__all__ = ["InMemoryStorage"]
