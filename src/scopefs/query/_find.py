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

"""File search by glob pattern, honouring ``.gitignore``."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Final

from ..runtime import run_pool
from ..runtime.logging import StructuredLogger, get_logger
from ..storage import EntryKind, StorageAdapter, join_path, normalize_path
from ._gitignore import load_gitignore
from ._glob import compile_glob, compile_globs, escape_glob, matches_any
from ._types import GlobEntry, GlobOptions, GlobResult, SkipReason
from ._walk import SkipLog, require_directory, walk

logger: StructuredLogger = get_logger(__name__, context={"component": "glob"})

RECENCY_WINDOW: Final[timedelta] = timedelta(hours=24)
ALWAYS_PRUNED: Final[frozenset[str]] = frozenset({".git", "node_modules"})


async def glob_files(
    storage: StorageAdapter,
    options: GlobOptions,
    *,
    current_time: datetime | None = None,
) -> GlobResult:
    """Find files under ``options.path`` whose relative path matches the pattern.

    A pattern that names an existing path is matched literally. ``.git`` and
    ``node_modules`` are never descended; ``ignore`` globs drop matches.
    With ``respect_gitignore`` the search root's ``.gitignore`` is applied
    and the number of files it removed is reported.

    Files modified within the last 24 hours come first, newest first; the
    rest follow in path order.

    Raises:
        PatternSyntaxError: If the pattern or an ignore glob is invalid.
        FileNotFoundError: If ``options.path`` does not exist.
    """

    root = normalize_path(options.path)
    await require_directory(storage, root)

    pattern = options.pattern
    if await _exists(storage, join_path(root, pattern)):
        pattern = escape_glob(normalize_path(pattern))
    matcher = compile_glob(
        pattern, dot=options.dot, case_sensitive=options.case_sensitive
    )
    ignore = compile_globs(
        options.ignore, dot=True, case_sensitive=options.case_sensitive
    )

    skips = SkipLog("glob")
    matched: list[str] = []
    async for node in walk(
        storage,
        root,
        skips=skips,
        show_hidden=True,
        prune_names=ALWAYS_PRUNED,
        token=options.token,
    ):
        if node.kind is not EntryKind.FILE:
            continue
        if matches_any(node.path, ignore):
            skips.record(node.path, SkipReason.EXCLUDED)
            continue
        if matcher.matches(node.path):
            matched.append(node.path)

    git_ignored = 0
    if options.respect_gitignore:
        rules = await load_gitignore(storage, root)
        if rules is not None:
            kept = [path for path in matched if not rules.is_ignored(path)]
            git_ignored = len(matched) - len(kept)
            matched = kept

    modified: dict[str, datetime | None] = dict.fromkeys(matched)
    if options.stat:

        async def collect(relative: str) -> None:
            try:
                stat = await storage.stat(join_path(root, relative))
            except OSError as error:
                skips.record(relative, SkipReason.STAT_FAILED, str(error))
                return
            modified[relative] = stat.modified_at

        _ = await run_pool(
            matched, collect, concurrency=options.concurrency, token=options.token
        )

    entries = sort_by_recency(
        [
            GlobEntry(path=join_path(root, relative), modified_at=modified[relative])
            for relative in matched
        ],
        current_time or datetime.now(UTC),
    )
    summary = _summarize(options.pattern, root, entries, git_ignored)
    logger.debug(
        "Glob complete.",
        event="glob.complete",
        context={"root": root, "matches": len(entries), "git_ignored": git_ignored},
    )
    return GlobResult(entries=tuple(entries), git_ignored=git_ignored, summary=summary)


def sort_by_recency(
    entries: Sequence[GlobEntry],
    current_time: datetime,
    window: timedelta = RECENCY_WINDOW,
) -> list[GlobEntry]:
    """Recently modified entries first (newest first), then by path."""

    def is_recent(entry: GlobEntry) -> bool:
        return entry.modified_at is not None and current_time - entry.modified_at < window

    recent = sorted(
        (entry for entry in entries if is_recent(entry)),
        key=lambda entry: entry.modified_at or current_time,
        reverse=True,
    )
    older = sorted(
        (entry for entry in entries if not is_recent(entry)),
        key=lambda entry: (entry.path.casefold(), entry.path),
    )
    return recent + older


def _summarize(
    pattern: str, root: str, entries: Sequence[GlobEntry], git_ignored: int
) -> str:
    where = root or "/"
    ignored_note = (
        f" ({git_ignored} additional files were git-ignored)" if git_ignored else ""
    )
    header = (
        f'Found {len(entries)} file(s) matching "{pattern}" within {where}'
        f"{ignored_note}, sorted by modification time (newest first):"
    )
    return "\n".join([header, *(f"/{entry.path}" for entry in entries)])


async def _exists(storage: StorageAdapter, path: str) -> bool:
    try:
        _ = await storage.stat(path)
    except (OSError, ValueError):
        return False
    return True


__all__ = ["RECENCY_WINDOW", "glob_files", "sort_by_recency"]
