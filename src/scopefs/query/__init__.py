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

"""Read-only queries over a storage adapter.

- :func:`compile_glob` / :func:`expand_braces`: glob grammar.
- :func:`ls`: recursive listing with :func:`format_long` and
  :func:`format_tree` renderers.
- :func:`grep`: per-line regex search.
- :func:`glob_files`: pattern search honouring ``.gitignore``.
- :func:`read_file_content`: windowed reads with file-kind detection.
"""

from __future__ import annotations

from ._find import RECENCY_WINDOW, glob_files, sort_by_recency
from ._gitignore import GitIgnore, IgnoreRule, load_gitignore, parse_gitignore
from ._glob import (
    GlobMatcher,
    compile_glob,
    compile_globs,
    escape_glob,
    expand_braces,
    glob_to_regex,
    matches_any,
)
from ._grep import grep, iter_matches
from ._listing import ls, sort_entries
from ._read import (
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_READ_LIMIT,
    MAX_LINE_LENGTH,
    FileKind,
    FileRead,
    ReadOptions,
    detect_file_kind,
    is_binary_content,
    read_file_content,
)
from ._render import format_long, format_mtime, format_size, format_tree
from ._types import (
    DEFAULT_GLOB_IGNORE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_FILE_SIZE,
    Entry,
    GlobEntry,
    GlobOptions,
    GlobResult,
    GrepOptions,
    ListOptions,
    Match,
    SkipReason,
    SkipRecord,
)

__all__ = [
    "DEFAULT_GLOB_IGNORE",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_FILE_SIZE",
    "DEFAULT_MAX_READ_BYTES",
    "DEFAULT_READ_LIMIT",
    "MAX_LINE_LENGTH",
    "RECENCY_WINDOW",
    "Entry",
    "FileKind",
    "FileRead",
    "GitIgnore",
    "GlobEntry",
    "GlobMatcher",
    "GlobOptions",
    "GlobResult",
    "GrepOptions",
    "IgnoreRule",
    "ListOptions",
    "Match",
    "ReadOptions",
    "SkipReason",
    "SkipRecord",
    "compile_glob",
    "compile_globs",
    "detect_file_kind",
    "escape_glob",
    "expand_braces",
    "format_long",
    "format_mtime",
    "format_size",
    "format_tree",
    "glob_files",
    "glob_to_regex",
    "grep",
    "is_binary_content",
    "iter_matches",
    "load_gitignore",
    "ls",
    "matches_any",
    "parse_gitignore",
    "read_file_content",
    "sort_by_recency",
    "sort_entries",
]
