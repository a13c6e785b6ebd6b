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

"""Storage adapters and path utilities.

Backends:

- :class:`InMemoryStorage`: dict-backed tree, used by tests and
  session-scoped workspaces.
- :class:`HostStorage`: a host directory confined to its root, using
  ``aiofiles`` for non-blocking I/O.

:func:`move_file` and :func:`delete_directory` compose adapter primitives
and work against any backend.
"""

from __future__ import annotations

from ._host import HostStorage
from ._memory import InMemoryStorage
from ._ops import delete_directory, delete_directory_contents, move_file
from ._path import (
    MAX_PATH_DEPTH,
    MAX_SEGMENT_LENGTH,
    basename,
    has_parent_traversal,
    is_path_under,
    is_within_root,
    join_path,
    join_under_workspace,
    normalize_path,
    normalize_segments,
    normalize_slashes,
    parent_of,
    validate_path,
)
from ._protocol import StorageAdapter
from ._types import DirEntry, EntryKind, FileStat, guess_mime_type

__all__ = [
    "MAX_PATH_DEPTH",
    "MAX_SEGMENT_LENGTH",
    "DirEntry",
    "EntryKind",
    "FileStat",
    "HostStorage",
    "InMemoryStorage",
    "StorageAdapter",
    "basename",
    "delete_directory",
    "delete_directory_contents",
    "guess_mime_type",
    "has_parent_traversal",
    "is_path_under",
    "is_within_root",
    "join_path",
    "join_under_workspace",
    "move_file",
    "normalize_path",
    "normalize_segments",
    "normalize_slashes",
    "parent_of",
    "validate_path",
]
