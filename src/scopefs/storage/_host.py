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

"""Host directory storage adapter.

Example usage::

    from scopefs.storage import HostStorage

    storage = HostStorage(_root="/path/to/workspace")
    await storage.write_file("src/main.py", b"print('hello')\\n")
    stat = await storage.stat("src/main.py")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
import aiofiles.os

from ..errors import PathEscapeError
from ._path import normalize_path
from ._types import DirEntry, EntryKind, FileStat, guess_mime_type

__all__ = ["HostStorage"]


@dataclass(slots=True)
class HostStorage:
    """Storage backed by a host directory, confined to ``root``.

    Paths are resolved against the root (following symlinks) and any result
    outside of it raises :class:`~scopefs.errors.PathEscapeError`. File I/O is
    performed through ``aiofiles`` so the event loop is never blocked.
    """

    _root: str
    _read_only: bool = False

    @property
    def root(self) -> str:
        return self._root

    @property
    def read_only(self) -> bool:
        return self._read_only

    def _resolve_path(self, path: str) -> Path:
        """Resolve ``path`` to an absolute path inside the root.

        Raises:
            PathEscapeError: If the resolved path leaves the root directory.
        """
        root_path = Path(self._root).resolve()
        relative = path.replace("\\", "/").strip().strip("/")
        if not relative or relative == ".":
            return root_path
        candidate = (root_path / relative).resolve()
        if not candidate.is_relative_to(root_path):
            msg = f"Path escapes root directory: {path}"
            raise PathEscapeError(msg)
        return candidate

    async def read_file(self, path: str) -> bytes:
        resolved = self._resolve_path(path)
        if await aiofiles.os.path.isdir(resolved):
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        async with aiofiles.open(resolved, mode="rb") as handle:
            return await handle.read()

    async def write_file(self, path: str, data: bytes) -> None:
        self._require_writable()
        resolved = self._resolve_path(path)
        if await aiofiles.os.path.isdir(resolved):
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        await aiofiles.os.makedirs(resolved.parent, exist_ok=True)
        async with aiofiles.open(resolved, mode="wb") as handle:
            _ = await handle.write(data)

    async def delete_file(self, path: str) -> None:
        self._require_writable()
        resolved = self._resolve_path(path)
        if await aiofiles.os.path.isdir(resolved):
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        await aiofiles.os.remove(resolved)

    async def stat(self, path: str) -> FileStat:
        resolved = self._resolve_path(path)
        result = await aiofiles.os.stat(resolved)
        is_directory = await aiofiles.os.path.isdir(resolved)
        normalized = normalize_path(path)
        return FileStat(
            path=normalized,
            is_file=not is_directory,
            is_directory=is_directory,
            size_bytes=0 if is_directory else result.st_size,
            modified_at=datetime.fromtimestamp(result.st_mtime, tz=UTC),
            mime_type=None if is_directory else guess_mime_type(resolved.name),
        )

    async def readdir(self, path: str) -> Sequence[DirEntry]:
        resolved = self._resolve_path(path)
        if not await aiofiles.os.path.exists(resolved):
            raise FileNotFoundError(path)
        if not await aiofiles.os.path.isdir(resolved):
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        entries: list[DirEntry] = []
        for name in sorted(await aiofiles.os.listdir(resolved)):
            child = resolved / name
            if await aiofiles.os.path.islink(child):
                continue
            kind = (
                EntryKind.DIRECTORY
                if await aiofiles.os.path.isdir(child)
                else EntryKind.FILE
            )
            entries.append(DirEntry(name=name, kind=kind))
        return entries

    async def mkdir(self, path: str) -> None:
        self._require_writable()
        await aiofiles.os.makedirs(self._resolve_path(path), exist_ok=True)

    async def rmdir(self, path: str) -> None:
        self._require_writable()
        if not normalize_path(path):
            msg = "Cannot remove the root directory."
            raise PermissionError(msg)
        await aiofiles.os.rmdir(self._resolve_path(path))

    def _require_writable(self) -> None:
        if self._read_only:
            msg = "Storage is read-only."
            raise PermissionError(msg)
