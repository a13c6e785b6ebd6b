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

"""Depth-first directory walk shared by ``ls``, ``grep`` and ``glob_files``.

Descent is sequential: a directory's children are read before recursing into
any of them. Expensive per-file work (stat, content scans) happens afterwards
in a worker pool, so the walk only issues ``readdir`` calls.

Nothing the walk passes over disappears silently. Every pruned or unreadable
path becomes a :class:`SkipRecord` handed to a :class:`SkipLog`.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from ..runtime import CancellationToken, is_cancelled
from ..runtime.logging import StructuredLogger, get_logger
from ..storage import EntryKind, StorageAdapter, join_path
from ._glob import GlobMatcher, matches_any
from ._types import SkipCallback, SkipReason, SkipRecord

logger: StructuredLogger = get_logger(__name__, context={"component": "walk"})


@dataclass(slots=True, frozen=True)
class WalkNode:
    """A child found during the walk.

    ``path`` is relative to the walk root and ``depth`` counts segments below
    it (1 = direct child).
    """

    path: str
    name: str
    kind: EntryKind
    depth: int


def _no_records() -> list[SkipRecord]:
    return []


@dataclass(slots=True)
class SkipLog:
    """Collects skip records for one operation and forwards them."""

    operation: str
    callback: SkipCallback | None = None
    records: list[SkipRecord] = field(default_factory=_no_records)

    def record(self, path: str, reason: SkipReason, detail: str | None = None) -> None:
        entry = SkipRecord(path=path, reason=reason, detail=detail)
        self.records.append(entry)
        logger.debug(
            "Skipped path.",
            event=f"{self.operation}.skip",
            context={"path": path, "reason": reason.value, "detail": detail},
        )
        if self.callback is not None:
            self.callback(entry)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


async def walk(
    storage: StorageAdapter,
    root: str,
    *,
    skips: SkipLog,
    max_depth: int | None = None,
    show_hidden: bool = False,
    prune: Sequence[GlobMatcher] = (),
    prune_names: frozenset[str] = frozenset(),
    token: CancellationToken | None = None,
) -> AsyncIterator[WalkNode]:
    """Yield every reachable child of ``root`` depth first.

    Directories are yielded before their contents. A directory is not
    yielded or descended when it is hidden (unless ``show_hidden``), when its
    relative path matches a ``prune`` glob, or when its name is in
    ``prune_names``. Directories at ``max_depth`` are yielded but not read.
    Hidden files are always yielded; filtering them is up to the caller.
    """

    async for node in _walk_dir(
        storage,
        root,
        "",
        0,
        skips=skips,
        max_depth=max_depth,
        show_hidden=show_hidden,
        prune=prune,
        prune_names=prune_names,
        token=token,
    ):
        yield node


async def _walk_dir(
    storage: StorageAdapter,
    root: str,
    prefix: str,
    depth: int,
    *,
    skips: SkipLog,
    max_depth: int | None,
    show_hidden: bool,
    prune: Sequence[GlobMatcher],
    prune_names: frozenset[str],
    token: CancellationToken | None,
) -> AsyncIterator[WalkNode]:
    if is_cancelled(token):
        skips.record(prefix, SkipReason.CANCELLED)
        return
    if max_depth is not None and depth >= max_depth:
        return

    try:
        children = await storage.readdir(join_path(root, prefix))
    except OSError as error:
        skips.record(prefix, SkipReason.UNREADABLE, str(error))
        return

    for child in children:
        if is_cancelled(token):
            skips.record(prefix, SkipReason.CANCELLED)
            return
        path = f"{prefix}/{child.name}" if prefix else child.name
        if child.kind is EntryKind.FILE:
            yield WalkNode(path=path, name=child.name, kind=child.kind, depth=depth + 1)
            continue
        if is_hidden(child.name) and not show_hidden:
            skips.record(path, SkipReason.HIDDEN)
            continue
        if child.name in prune_names:
            skips.record(path, SkipReason.IGNORED)
            continue
        if matches_any(path, prune):
            skips.record(path, SkipReason.EXCLUDED)
            continue
        yield WalkNode(path=path, name=child.name, kind=child.kind, depth=depth + 1)
        async for node in _walk_dir(
            storage,
            root,
            path,
            depth + 1,
            skips=skips,
            max_depth=max_depth,
            show_hidden=show_hidden,
            prune=prune,
            prune_names=prune_names,
            token=token,
        ):
            yield node


async def require_directory(storage: StorageAdapter, path: str) -> None:
    """Raise unless ``path`` names an existing directory.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        NotADirectoryError: If ``path`` is a file.
    """
    stat = await storage.stat(path)
    if not stat.is_directory:
        msg = f"Not a directory: {path}"
        raise NotADirectoryError(msg)


async def notify[T](callback: Callable[[T], Awaitable[None] | None] | None, item: T) -> None:
    """Invoke ``callback`` with ``item``, awaiting the result when needed."""
    if callback is None:
        return
    result = callback(item)
    if inspect.isawaitable(result):
        await result


__all__ = [
    "SkipLog",
    "WalkNode",
    "is_hidden",
    "notify",
    "require_directory",
    "walk",
]
