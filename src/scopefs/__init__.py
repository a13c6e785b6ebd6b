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

"""Unix-like query and patch primitives over sandboxed async storage.

The package is organised in layers:

- :mod:`scopefs.storage`: the async :class:`StorageAdapter` protocol, its
  in-memory and host-directory backends, and path normalization.
- :mod:`scopefs.query`: glob compilation, listing, grep, glob search
  and windowed file reads.
- :mod:`scopefs.patch`: unified diff parsing and application.
- :mod:`scopefs.runtime`: worker pool, cancellation and structured logging.
"""

from __future__ import annotations

from .errors import (
    HunkMismatchError,
    PatchParseError,
    PathEscapeError,
    PatternSyntaxError,
    ScopeFsError,
)
from .patch import (
    ChangeKind,
    PatchDetails,
    PatchOptions,
    PatchOutcome,
    StageHook,
    StructuredPatch,
    apply_hunks,
    apply_patch,
    parse_unified_diff,
)
from .query import (
    Entry,
    FileRead,
    GlobMatcher,
    GlobOptions,
    GlobResult,
    GrepOptions,
    ListOptions,
    Match,
    SkipReason,
    SkipRecord,
    compile_glob,
    expand_braces,
    format_long,
    format_tree,
    glob_files,
    grep,
    ls,
    read_file_content,
)
from .runtime import CancellationToken, configure_logging, get_logger
from .storage import (
    DirEntry,
    EntryKind,
    FileStat,
    HostStorage,
    InMemoryStorage,
    StorageAdapter,
    delete_directory,
    move_file,
    normalize_path,
)

__all__ = [
    "CancellationToken",
    "ChangeKind",
    "DirEntry",
    "Entry",
    "EntryKind",
    "FileRead",
    "FileStat",
    "GlobMatcher",
    "GlobOptions",
    "GlobResult",
    "GrepOptions",
    "HostStorage",
    "HunkMismatchError",
    "InMemoryStorage",
    "ListOptions",
    "Match",
    "PatchDetails",
    "PatchOptions",
    "PatchOutcome",
    "PatchParseError",
    "PathEscapeError",
    "PatternSyntaxError",
    "ScopeFsError",
    "SkipReason",
    "SkipRecord",
    "StageHook",
    "StorageAdapter",
    "StructuredPatch",
    "apply_hunks",
    "apply_patch",
    "compile_glob",
    "configure_logging",
    "delete_directory",
    "expand_braces",
    "format_long",
    "format_tree",
    "get_logger",
    "glob_files",
    "grep",
    "ls",
    "move_file",
    "normalize_path",
    "parse_unified_diff",
    "read_file_content",
]
