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

"""Result and option types for listing, grep and glob search."""

from __future__ import annotations

import codecs
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Final, Literal

from ..errors import PatternSyntaxError
from ..runtime import DEFAULT_CONCURRENCY, CancellationToken
from ..storage import EntryKind, normalize_path

DEFAULT_MAX_DEPTH: Final[int] = 1
DEFAULT_MAX_FILE_SIZE: Final[int] = 20 * 1024 * 1024
DEFAULT_GLOB_IGNORE: Final[tuple[str, ...]] = ("**/node_modules/**", "**/.git/**")

SortKey = Literal["name", "path", "size", "mtime"]
SortOrder = Literal["asc", "desc"]

_SORT_KEYS: Final[frozenset[str]] = frozenset({"name", "path", "size", "mtime"})
_SORT_ORDERS: Final[frozenset[str]] = frozenset({"asc", "desc"})
_REGEX_FLAGS: Final[dict[str, re.RegexFlag]] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
# Accepted for compatibility; matching is always global and unicode-aware.
_IGNORED_FLAGS: Final[frozenset[str]] = frozenset("guy")


@dataclass(slots=True, frozen=True)
class Entry:
    """One node produced by :func:`~scopefs.query.ls`.

    Attributes:
        path: Path relative to the listing root.
        name: Final path segment.
        kind: File or directory.
        depth: Segments below the listing root (1 = direct child).
        size: Size in bytes, when stat collection was requested and succeeded.
        last_modified: Modification time, under the same conditions.
        mime_type: Guessed type, under the same conditions.
    """

    path: str
    name: str
    kind: EntryKind
    depth: int
    size: int | None = None
    last_modified: datetime | None = None
    mime_type: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(slots=True, frozen=True)
class Match:
    """One regex occurrence reported by :func:`~scopefs.query.grep`.

    ``column`` is 1-based and counted in UTF-16 code units, so characters
    outside the BMP advance it by two.
    """

    file: str
    line: int
    column: int
    matched_text: str
    line_text: str


class SkipReason(StrEnum):
    """Why a walk, listing or search passed over a path."""

    HIDDEN = "hidden"
    EXCLUDED = "excluded"
    IGNORED = "ignored"
    UNREADABLE = "unreadable"
    STAT_FAILED = "stat_failed"
    TOO_LARGE = "too_large"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class SkipRecord:
    """A path that was skipped, with the reason and optional error detail."""

    path: str
    reason: SkipReason
    detail: str | None = None


type EntryCallback = Callable[[Entry], Awaitable[None] | None]
type MatchCallback = Callable[[Match], Awaitable[None] | None]
type SkipCallback = Callable[[SkipRecord], None]


def _no_patterns() -> tuple[str, ...]:
    return ()


def _all_kinds() -> frozenset[EntryKind]:
    return frozenset(EntryKind)


def _check_concurrency(concurrency: int) -> None:
    if concurrency < 1:
        msg = "concurrency must be at least 1."
        raise ValueError(msg)


@dataclass(slots=True, frozen=True)
class ListOptions:
    """Options for :func:`~scopefs.query.ls`.

    Attributes:
        max_depth: Deepest level returned (1 = direct children). ``None``
            walks the full subtree.
        include: Globs an entry's relative path must match (any of).
        exclude: Globs that drop entries and prune matching directories.
        show_hidden: Include and descend into dot-prefixed names.
        kinds: Kinds of entries to return. Directories are still descended.
        stat: Collect size, mtime and mime type after the walk.
        concurrency: Width of the stat worker pool.
        sort_by: ``name``, ``path``, ``size`` or ``mtime``.
        sort_order: ``asc`` or ``desc``. Only the key is reversed.
        dirs_first: Place directories before files regardless of the key.
        on_entry: Called (and awaited if needed) once per accepted entry,
            after stat enrichment when ``stat`` is set.
        on_skip: Receives every :class:`SkipRecord`.
        token: Cooperative cancellation token.

    Raises:
        ValueError: On out-of-range depth or concurrency, or an unknown sort
            key or order.
    """

    max_depth: int | None = DEFAULT_MAX_DEPTH
    include: tuple[str, ...] = field(default_factory=_no_patterns)
    exclude: tuple[str, ...] = field(default_factory=_no_patterns)
    show_hidden: bool = False
    kinds: frozenset[EntryKind] = field(default_factory=_all_kinds)
    stat: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    sort_by: SortKey = "name"
    sort_order: SortOrder = "asc"
    dirs_first: bool = True
    on_entry: EntryCallback | None = None
    on_skip: SkipCallback | None = None
    token: CancellationToken | None = None

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 1:
            msg = "max_depth must be at least 1 or None."
            raise ValueError(msg)
        _check_concurrency(self.concurrency)
        if self.sort_by not in _SORT_KEYS:
            msg = f"Unknown sort key: {self.sort_by!r}"
            raise ValueError(msg)
        if self.sort_order not in _SORT_ORDERS:
            msg = f"Unknown sort order: {self.sort_order!r}"
            raise ValueError(msg)
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "kinds", frozenset(self.kinds))


@dataclass(slots=True, frozen=True)
class GrepOptions:
    """Options for :func:`~scopefs.query.grep`.

    Attributes:
        pattern: Regular expression source or a compiled pattern.
        flags: Letter flags: ``i`` ignore case, ``m`` multiline, ``s``
            dotall. ``g``, ``u`` and ``y`` are accepted and ignored.
        include: Globs a file's relative path must match (any of).
        exclude: Globs that drop files and prune matching directories.
        show_hidden: Descend into dot-prefixed directories.
        max_file_size: Files larger than this many bytes are skipped.
        concurrency: Number of files scanned at once.
        encoding: Text encoding; undecodable bytes become U+FFFD.
        on_match: Called (and awaited if needed) for every match as found.
        on_skip: Receives every :class:`SkipRecord`.
        token: Cooperative cancellation token.
    """

    pattern: str | re.Pattern[str]
    flags: str = ""
    include: tuple[str, ...] = field(default_factory=_no_patterns)
    exclude: tuple[str, ...] = field(default_factory=_no_patterns)
    show_hidden: bool = False
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    encoding: str = "utf-8"
    on_match: MatchCallback | None = None
    on_skip: SkipCallback | None = None
    token: CancellationToken | None = None

    def __post_init__(self) -> None:
        _check_concurrency(self.concurrency)
        if self.max_file_size < 0:
            msg = "max_file_size must not be negative."
            raise ValueError(msg)
        try:
            _ = codecs.lookup(self.encoding)
        except LookupError as error:
            msg = f"Unknown encoding: {self.encoding!r}"
            raise ValueError(msg) from error
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))

    def regex_flags(self) -> re.RegexFlag:
        """Translate :attr:`flags` letters into :mod:`re` flags.

        Raises:
            PatternSyntaxError: On an unknown flag letter.
        """
        resolved = re.RegexFlag(0)
        for letter in self.flags:
            if letter in _REGEX_FLAGS:
                resolved |= _REGEX_FLAGS[letter]
            elif letter not in _IGNORED_FLAGS:
                raise PatternSyntaxError(self.flags, f"unknown flag {letter!r}")
        return resolved


@dataclass(slots=True, frozen=True)
class GlobOptions:
    """Options for :func:`~scopefs.query.glob_files`.

    Attributes:
        pattern: Glob matched against paths relative to ``path``.
        path: Directory to search, relative to the storage root.
        case_sensitive: Case sensitivity of ``pattern``.
        dot: Whether wildcards match dot-prefixed names.
        ignore: Globs that drop matches and prune directories.
        respect_gitignore: Apply rules from the root ``.gitignore``.
        stat: Collect modification times for recency sorting.
        concurrency: Width of the stat worker pool.
        token: Cooperative cancellation token.
    """

    pattern: str
    path: str = ""
    case_sensitive: bool = False
    dot: bool = True
    ignore: tuple[str, ...] = DEFAULT_GLOB_IGNORE
    respect_gitignore: bool = True
    stat: bool = True
    concurrency: int = DEFAULT_CONCURRENCY
    token: CancellationToken | None = None

    def __post_init__(self) -> None:
        if not self.pattern.strip():
            msg = "pattern must be a non-empty string."
            raise ValueError(msg)
        if not normalize_path(self.pattern):
            msg = f"pattern {self.pattern!r} names the search root, not files below it."
            raise ValueError(msg)
        _check_concurrency(self.concurrency)
        object.__setattr__(self, "ignore", tuple(self.ignore))


@dataclass(slots=True, frozen=True)
class GlobEntry:
    """File found by :func:`~scopefs.query.glob_files`."""

    path: str
    modified_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class GlobResult:
    """Matched files, the number dropped by ``.gitignore`` and a summary."""

    entries: tuple[GlobEntry, ...]
    git_ignored: int
    summary: str

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(entry.path for entry in self.entries)


__all__ = [
    "DEFAULT_GLOB_IGNORE",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_FILE_SIZE",
    "Entry",
    "EntryCallback",
    "GlobEntry",
    "GlobOptions",
    "GlobResult",
    "GrepOptions",
    "ListOptions",
    "Match",
    "MatchCallback",
    "SkipCallback",
    "SkipReason",
    "SkipRecord",
    "SortKey",
    "SortOrder",
]
