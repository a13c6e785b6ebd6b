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

"""Apply unified diffs to a storage adapter."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import PatchParseError
from ..runtime import is_cancelled
from ..runtime.logging import StructuredLogger, get_logger
from ..storage import StorageAdapter, join_path, join_under_workspace, normalize_path
from ._apply import apply_hunks
from ._parser import has_file_headers, has_hunks, parse_unified_diff, strip_ansi
from ._types import (
    NO_FILES_MESSAGE,
    NO_HUNKS_MESSAGE,
    ChangeKind,
    FailedPath,
    PatchDetails,
    PatchOptions,
    PatchOutcome,
    RenamedPath,
    StageHook,
    StructuredPatch,
)

logger: StructuredLogger = get_logger(__name__, context={"component": "patch"})


async def apply_patch(
    storage: StorageAdapter,
    diff_text: str,
    options: PatchOptions | None = None,
) -> PatchOutcome:
    """Apply every file section of ``diff_text`` under ``options.work_dir``.

    Sections are applied one at a time in diff order. Each file either
    receives all of its hunks or is left untouched and listed in
    ``details.failed``; other files are unaffected. The call never raises for
    a single file's failure.

    Outcomes by section kind:

    - create: hunks applied to an empty text, then written.
    - delete: hunks verified against the current text, then the file is
      removed. A missing file counts as already deleted.
    - modify: the file must exist, otherwise the failure reason is
      ``"Target file not found: <path>"``.
    - rename: the new path is written and the old one removed. A rename
      without changes keeps the content as is.

    After each successful mutation ``options.stage_hook`` is called with the
    path joined under ``work_dir``. A staging error becomes a failed entry
    but does not undo the mutation.

    Example::

        outcome = await apply_patch(storage, diff_text)
        if not outcome.success:
            for failure in outcome.failed:
                print(failure.path, failure.reason)
    """

    options = options or PatchOptions()
    text = strip_ansi(diff_text) if options.sanitize_ansi else diff_text

    if has_file_headers(text) and not has_hunks(text):
        return PatchOutcome(success=True, output=NO_HUNKS_MESSAGE)
    try:
        patches = parse_unified_diff(text)
    except PatchParseError as error:
        return PatchOutcome(success=False, output=f"Failed to parse patch: {error}")
    if not patches:
        return PatchOutcome(success=False, output=NO_FILES_MESSAGE)

    run = _PatchRun(
        storage=storage,
        base=normalize_path(options.work_dir),
        work_dir=options.work_dir,
        max_offset_lines=options.max_offset_lines,
        stage_hook=options.stage_hook,
    )
    aborted = False
    for patch in patches:
        if is_cancelled(options.token):
            aborted = True
            break
        await run.apply(patch)

    success = not run.failed and not aborted
    details = run.details()
    output = _summarize(details, success=success, aborted=aborted)
    logger.info(
        "Patch finished.",
        event="patch.complete",
        context={
            "success": success,
            "aborted": aborted,
            "files": len(patches),
            "failed": len(details.failed),
        },
    )
    return PatchOutcome(success=success, output=output, details=details)


def _paths() -> list[str]:
    return []


def _renames() -> list[RenamedPath]:
    return []


def _failures() -> list[FailedPath]:
    return []


@dataclass(slots=True)
class _PatchRun:
    """Per-call accumulator; applies one file section at a time."""

    storage: StorageAdapter
    base: str
    work_dir: str
    max_offset_lines: int | None
    stage_hook: StageHook | None
    created: list[str] = field(default_factory=_paths)
    modified: list[str] = field(default_factory=_paths)
    deleted: list[str] = field(default_factory=_paths)
    renamed: list[RenamedPath] = field(default_factory=_renames)
    failed: list[FailedPath] = field(default_factory=_failures)

    async def apply(self, patch: StructuredPatch) -> None:
        target = patch.target_path
        try:
            match patch.kind:
                case ChangeKind.CREATE:
                    await self._create(patch)
                case ChangeKind.DELETE:
                    await self._delete(patch)
                case ChangeKind.RENAME:
                    await self._rename(patch)
                case ChangeKind.MODIFY:
                    await self._modify(patch)
        except Exception as error:
            self._fail(target, str(error) or type(error).__name__)
            return
        logger.info(
            "Applied file patch.",
            event="patch.file_applied",
            context={"path": target, "kind": patch.kind.value},
        )

    async def _create(self, patch: StructuredPatch) -> None:
        path = self._required(patch.new_path)
        content = apply_hunks("", patch.hunks, max_offset_lines=self.max_offset_lines)
        await self._write(path, content)
        self.created.append(path)
        await self._stage_add(path)

    async def _delete(self, patch: StructuredPatch) -> None:
        path = self._required(patch.old_path)
        before = await self._read_optional(path)
        if before is not None:
            _ = apply_hunks(before, patch.hunks, max_offset_lines=self.max_offset_lines)
            await self.storage.delete_file(self._resolve(path))
        self.deleted.append(path)
        await self._stage_remove(path)

    async def _modify(self, patch: StructuredPatch) -> None:
        path = self._required(patch.old_path)
        before = await self._read_optional(path)
        if before is None:
            raise FileNotFoundError(f"Target file not found: {path}")
        after = apply_hunks(before, patch.hunks, max_offset_lines=self.max_offset_lines)
        await self._write(path, after)
        self.modified.append(path)
        await self._stage_add(path)

    async def _rename(self, patch: StructuredPatch) -> None:
        source = self._required(patch.old_path)
        destination = self._required(patch.new_path)
        before = await self._read_optional(source)
        if before is None:
            raise FileNotFoundError(f"Target file not found: {source}")
        after = (
            apply_hunks(before, patch.hunks, max_offset_lines=self.max_offset_lines)
            if patch.has_changes
            else before
        )
        previous = await self._read_bytes_optional(destination)
        await self._write(destination, after)
        try:
            await self.storage.delete_file(self._resolve(source))
        except Exception as error:
            rollback = await self._restore(destination, previous)
            msg = f"Could not remove rename source {source}: {error}; {rollback}"
            raise OSError(msg) from error
        self.renamed.append(RenamedPath(source=source, destination=destination))
        await self._stage_add(destination)
        await self._stage_remove(source)

    async def _read_optional(self, path: str) -> str | None:
        data = await self._read_bytes_optional(path)
        return None if data is None else data.decode("utf-8")

    async def _read_bytes_optional(self, path: str) -> bytes | None:
        try:
            return await self.storage.read_file(self._resolve(path))
        except FileNotFoundError:
            return None

    async def _restore(self, path: str, previous: bytes | None) -> str:
        """Undo a rename's write to ``path``; describes what was left behind."""
        try:
            if previous is None:
                await self.storage.delete_file(self._resolve(path))
            else:
                await self.storage.write_file(self._resolve(path), previous)
        except Exception as error:
            return f"{path} was left in place ({error})"
        return f"{path} was rolled back"

    async def _write(self, path: str, content: str) -> None:
        await self.storage.write_file(self._resolve(path), content.encode("utf-8"))

    def _resolve(self, path: str) -> str:
        return join_path(self.base, path)

    async def _stage_add(self, path: str) -> None:
        if self.stage_hook is None:
            return
        try:
            await self.stage_hook.add(join_under_workspace(self.work_dir, path))
        except Exception as error:
            self._fail(path, f"stage add failed: {error}")

    async def _stage_remove(self, path: str) -> None:
        if self.stage_hook is None:
            return
        try:
            await self.stage_hook.remove(join_under_workspace(self.work_dir, path))
        except Exception as error:
            self._fail(path, f"stage remove failed: {error}")

    def _fail(self, path: str, reason: str) -> None:
        self.failed.append(FailedPath(path=path, reason=reason))
        logger.warning(
            "File patch failed.",
            event="patch.file_failed",
            context={"path": path, "reason": reason},
        )

    @staticmethod
    def _required(path: str | None) -> str:
        if path is None:  # pragma: no cover - guaranteed by ChangeKind
            msg = "Patch section is missing a path."
            raise PatchParseError(msg)
        return path

    def details(self) -> PatchDetails:
        return PatchDetails(
            created=tuple(self.created),
            modified=tuple(self.modified),
            deleted=tuple(self.deleted),
            renamed=tuple(self.renamed),
            failed=tuple(self.failed),
        )


def _summarize(details: PatchDetails, *, success: bool, aborted: bool) -> str:
    if aborted:
        headline = "Patch aborted."
    elif success:
        headline = "Patch applied successfully."
    else:
        headline = "Patch completed with errors."
    counts = (
        ("Created", len(details.created)),
        ("Modified", len(details.modified)),
        ("Deleted", len(details.deleted)),
        ("Renamed", len(details.renamed)),
        ("Failed", len(details.failed)),
    )
    return " ".join([headline, *(f"{label}: {count}" for label, count in counts if count)])


__all__ = ["apply_patch"]
