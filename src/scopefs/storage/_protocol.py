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

"""Storage adapter protocol consumed by the query and patch engines.

The engines never touch a real filesystem directly. Every read, listing and
mutation goes through a :class:`StorageAdapter`, whose methods are all
coroutines so that latency-heavy, handle-based backends can be plugged in.

Paths passed to an adapter are normalized and relative to the adapter's
root; the empty string denotes the root directory.

Error contract (builtin exceptions):

- ``FileNotFoundError``: the path does not exist.
- ``IsADirectoryError``: a file operation targeted a directory.
- ``NotADirectoryError``: ``readdir`` targeted a file, or a parent is a file.
- ``PermissionError``: the path escapes the root, the adapter is read-only,
  or ``rmdir`` targeted the root.
- ``OSError`` with ``errno.ENOTEMPTY``: ``rmdir`` targeted a non-empty
  directory.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ._types import DirEntry, FileStat


@runtime_checkable
class StorageAdapter(Protocol):
    """Asynchronous capability set required by the engines.

    Implementations: :class:`~scopefs.storage.InMemoryStorage` for tests and
    session-scoped state, :class:`~scopefs.storage.HostStorage` for a
    sandboxed host directory.
    """

    async def read_file(self, path: str) -> bytes:
        """Return the full contents of the file at ``path``."""
        ...

    async def write_file(self, path: str, data: bytes) -> None:
        """Create or replace ``path``, creating parent directories as needed."""
        ...

    async def delete_file(self, path: str) -> None:
        """Remove the file at ``path``."""
        ...

    async def stat(self, path: str) -> FileStat:
        """Return metadata for ``path`` (file or directory)."""
        ...

    async def readdir(self, path: str) -> Sequence[DirEntry]:
        """Return the direct children of the directory at ``path``."""
        ...

    async def mkdir(self, path: str) -> None:
        """Create ``path`` and any missing parents; existing directories are fine."""
        ...

    async def rmdir(self, path: str) -> None:
        """Remove the empty directory at ``path``."""
        ...


__all__ = ["StorageAdapter"]
