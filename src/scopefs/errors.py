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

"""Base exception hierarchy for :mod:`scopefs`."""

from __future__ import annotations


class ScopeFsError(Exception):
    """Base class for all scopefs exceptions.

    Library errors also derive from the closest builtin exception so callers
    that only know about ``ValueError`` or ``PermissionError`` keep working.

    Example:
        Catch any scopefs-specific error::

            try:
                matcher = compile_glob(user_pattern)
            except ScopeFsError as e:
                logger.error("Rejected pattern: %s", e)
    """


class PathEscapeError(ScopeFsError, PermissionError):
    """Raised when a path would resolve outside of its declared root.

    Generic normalization clamps ``..`` at the root instead of raising. Only
    scoped helpers (workspace staging paths, host-backed storage) reject.
    """


class PatternSyntaxError(ScopeFsError, ValueError):
    """Raised when a glob or regular expression cannot be compiled."""

    def __init__(self, pattern: str, message: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {message}")
        self.pattern = pattern


class PatchParseError(ScopeFsError, ValueError):
    """Raised when unified diff text is structurally malformed."""


class HunkMismatchError(ScopeFsError, ValueError):
    """Raised when a hunk's pre-image cannot be located in the target text.

    Attributes:
        hunk_index: Zero-based index of the failing hunk within its file.
    """

    def __init__(self, hunk_index: int, message: str) -> None:
        super().__init__(f"Hunk {hunk_index + 1}: {message}")
        self.hunk_index = hunk_index


__all__ = [
    "HunkMismatchError",
    "PatchParseError",
    "PathEscapeError",
    "PatternSyntaxError",
    "ScopeFsError",
]
