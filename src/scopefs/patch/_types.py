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

"""Structured unified-diff model and patch results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Final, Protocol, runtime_checkable

from ..runtime import CancellationToken

DEFAULT_MAX_OFFSET_LINES: Final[int] = 200
NO_HUNKS_MESSAGE: Final[str] = "No changes in patch (no hunks)."
NO_FILES_MESSAGE: Final[str] = "No file hunks found in patch."


class LineTag(StrEnum):
    """Prefix of a hunk body line."""

    CONTEXT = " "
    ADD = "+"
    REMOVE = "-"


@dataclass(slots=True, frozen=True)
class HunkLine:
    tag: LineTag
    text: str

    @property
    def in_old(self) -> bool:
        return self.tag is not LineTag.ADD

    @property
    def in_new(self) -> bool:
        return self.tag is not LineTag.REMOVE


@dataclass(slots=True, frozen=True)
class Hunk:
    """One ``@@`` block.

    Numbered hunks carry their header ranges. Lenient hunks (``@@`` or
    ``@@ @@``) leave every range ``None`` and are placed by content.

    Attributes:
        lines: Tagged body lines in diff order.
        old_start: 1-based first line of the pre-image (0 for an empty one).
        old_length: Number of pre-image lines covered.
        new_start: 1-based first line of the post-image.
        new_length: Number of post-image lines covered.
        old_missing_newline: The pre-image's last line had no newline.
        new_missing_newline: The post-image's last line has no newline.
    """

    lines: tuple[HunkLine, ...]
    old_start: int | None = None
    old_length: int | None = None
    new_start: int | None = None
    new_length: int | None = None
    old_missing_newline: bool = False
    new_missing_newline: bool = False

    @property
    def is_lenient(self) -> bool:
        return self.old_start is None

    @property
    def old_lines(self) -> tuple[str, ...]:
        return tuple(line.text for line in self.lines if line.in_old)

    @property
    def new_lines(self) -> tuple[str, ...]:
        return tuple(line.text for line in self.lines if line.in_new)

    @property
    def has_changes(self) -> bool:
        return any(line.tag is not LineTag.CONTEXT for line in self.lines)


class ChangeKind(Enum):
    """What a file section does, derived once from its header paths."""

    CREATE = "create"
    DELETE = "delete"
    RENAME = "rename"
    MODIFY = "modify"

    @classmethod
    def classify(cls, old_path: str | None, new_path: str | None) -> ChangeKind:
        if old_path is None:
            return cls.CREATE
        if new_path is None:
            return cls.DELETE
        if old_path != new_path:
            return cls.RENAME
        return cls.MODIFY


@dataclass(slots=True, frozen=True)
class StructuredPatch:
    """One file section of a unified diff.

    ``old_path`` is ``None`` for ``/dev/null`` (creation) and ``new_path`` is
    ``None`` for deletion; at least one is set.
    """

    old_path: str | None
    new_path: str | None
    hunks: tuple[Hunk, ...]
    kind: ChangeKind

    @property
    def target_path(self) -> str:
        path = self.new_path if self.new_path is not None else self.old_path
        if path is None:  # pragma: no cover - rejected by the parser
            msg = "Patch has neither an old nor a new path."
            raise ValueError(msg)
        return path

    @property
    def has_changes(self) -> bool:
        return any(hunk.has_changes for hunk in self.hunks)


@dataclass(slots=True, frozen=True)
class RenamedPath:
    source: str
    destination: str


@dataclass(slots=True, frozen=True)
class FailedPath:
    path: str
    reason: str


@dataclass(slots=True, frozen=True)
class PatchDetails:
    """Per-file outcomes of one :func:`apply_patch` call, in diff order."""

    created: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    renamed: tuple[RenamedPath, ...] = ()
    failed: tuple[FailedPath, ...] = ()


@dataclass(slots=True, frozen=True)
class PatchOutcome:
    """Aggregate result of :func:`apply_patch`.

    ``details`` is ``None`` when nothing was attempted: header-only diffs,
    parse failures and diffs without file sections.
    """

    success: bool
    output: str
    details: PatchDetails | None = None

    @property
    def failed(self) -> tuple[FailedPath, ...]:
        return () if self.details is None else self.details.failed


@runtime_checkable
class StageHook(Protocol):
    """Receives workspace-relative paths after each successful mutation.

    Typically backed by a version-control index. Failures raised here are
    recorded as failed entries but never undo the file change.
    """

    async def add(self, path: str) -> None: ...

    async def remove(self, path: str) -> None: ...


@dataclass(slots=True, frozen=True)
class PatchOptions:
    """Options for :func:`apply_patch`.

    Attributes:
        work_dir: Directory the diff paths are relative to. Also prefixes
            the paths handed to ``stage_hook``.
        max_offset_lines: How far a hunk may drift from its expected
            position. ``None`` means 200 lines for numbered hunks and an
            unbounded forward search for lenient ones.
        sanitize_ansi: Strip terminal escape sequences before parsing.
        stage_hook: Optional staging target.
        token: Checked between files.
    """

    work_dir: str = ""
    max_offset_lines: int | None = None
    sanitize_ansi: bool = True
    stage_hook: StageHook | None = field(default=None, compare=False)
    token: CancellationToken | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.max_offset_lines is not None and self.max_offset_lines < 0:
            msg = "max_offset_lines must not be negative."
            raise ValueError(msg)


__all__ = [
    "DEFAULT_MAX_OFFSET_LINES",
    "NO_FILES_MESSAGE",
    "NO_HUNKS_MESSAGE",
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
]
