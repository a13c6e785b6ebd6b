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

"""Unified diff parsing and application.

:func:`parse_unified_diff` turns diff text into :class:`StructuredPatch`
values, :func:`apply_hunks` applies hunks to a string, and
:func:`apply_patch` drives both against a storage adapter.
"""

from __future__ import annotations

from ._apply import TextLines, apply_hunks
from ._engine import apply_patch
from ._parser import (
    DEV_NULL,
    normalize_diff_path,
    parse_header_path,
    parse_unified_diff,
    strip_ansi,
)
from ._types import (
    DEFAULT_MAX_OFFSET_LINES,
    ChangeKind,
    FailedPath,
    Hunk,
    HunkLine,
    LineTag,
    PatchDetails,
    PatchOptions,
    PatchOutcome,
    RenamedPath,
    StageHook,
    StructuredPatch,
)

__all__ = [
    "DEFAULT_MAX_OFFSET_LINES",
    "DEV_NULL",
    "ChangeKind",
    "FailedPath",
    "Hunk",
    "HunkLine",
    "LineTag",
    "PatchDetails",
    "PatchOptions",
    "PatchOutcome",
    "RenamedPath",
    "StageHook",
    "StructuredPatch",
    "TextLines",
    "apply_hunks",
    "apply_patch",
    "normalize_diff_path",
    "parse_header_path",
    "parse_unified_diff",
    "strip_ansi",
]
