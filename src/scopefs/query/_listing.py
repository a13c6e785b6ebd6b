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

"""Recursive directory listing."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable

from ..runtime import run_pool
from ..runtime.logging import StructuredLogger, get_logger
from ..storage import EntryKind, StorageAdapter, join_path, normalize_path
from ._glob import compile_globs, matches_any
from ._types import Entry, ListOptions, SkipReason, SortKey, SortOrder
from ._walk import SkipLog, is_hidden, notify, require_directory, walk

logger: StructuredLogger = get_logger(__name__, context={"component": "ls"})


async def ls(
    storage: StorageAdapter,
    path: str = "",
    options: ListOptions | None = None,
) -> list[Entry]:
    """List the tree under ``path``.

    Entries are filtered in this order: kind, hidden name, ``exclude``, then
    ``include`` (all globs see the path relative to ``path``). With
    ``options.stat`` the file metadata is collected after the walk through a
    bounded pool; a failed stat leaves the fields unset. The result is sorted
    per ``sort_by``/``sort_order``/``dirs_first``.

    Cancellation stops the walk and the pool; entries gathered so far are
    still sorted and returned.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        NotADirectoryError: If ``path`` is a file.
        PatternSyntaxError: If an include or exclude glob is invalid.

    Example::

        entries = await ls(storage, "src", ListOptions(max_depth=None, stat=True))
        print(format_long(entries))
    """

    options = options or ListOptions()
    include = compile_globs(options.include)
    exclude = compile_globs(options.exclude)
    root = normalize_path(path)
    await require_directory(storage, root)

    skips = SkipLog("ls", options.on_skip)
    entries: list[Entry] = []
    pending_stat: list[int] = []

    async for node in walk(
        storage,
        root,
        skips=skips,
        max_depth=options.max_depth,
        show_hidden=options.show_hidden,
        prune=exclude,
        token=options.token,
    ):
        if node.kind not in options.kinds:
            continue
        if is_hidden(node.name) and not options.show_hidden:
            skips.record(node.path, SkipReason.HIDDEN)
            continue
        if matches_any(node.path, exclude):
            skips.record(node.path, SkipReason.EXCLUDED)
            continue
        if include and not matches_any(node.path, include):
            continue
        entry = Entry(path=node.path, name=node.name, kind=node.kind, depth=node.depth)
        entries.append(entry)
        if options.stat and node.kind is EntryKind.FILE:
            pending_stat.append(len(entries) - 1)
        else:
            await notify(options.on_entry, entry)

    async def enrich(index: int) -> None:
        entry = entries[index]
        try:
            stat = await storage.stat(join_path(root, entry.path))
        except OSError as error:
            skips.record(entry.path, SkipReason.STAT_FAILED, str(error))
        else:
            entry = dataclasses.replace(
                entry,
                size=stat.size_bytes,
                last_modified=stat.modified_at,
                mime_type=stat.mime_type,
            )
            entries[index] = entry
        await notify(options.on_entry, entry)

    _ = await run_pool(
        pending_stat, enrich, concurrency=options.concurrency, token=options.token
    )

    ordered = sort_entries(
        entries,
        sort_by=options.sort_by,
        sort_order=options.sort_order,
        dirs_first=options.dirs_first,
    )
    logger.debug(
        "Listing complete.",
        event="ls.complete",
        context={"root": root, "entries": len(ordered), "skipped": len(skips.records)},
    )
    return ordered


def sort_entries(
    entries: Iterable[Entry],
    *,
    sort_by: SortKey = "name",
    sort_order: SortOrder = "asc",
    dirs_first: bool = True,
) -> list[Entry]:
    """Return ``entries`` sorted by key, with directories optionally first.

    ``sort_order`` only reverses the key; the directory partition always
    comes first. Missing sizes and times sort as ``-1``.
    """

    ordered = sorted(entries, key=_sort_key(sort_by), reverse=sort_order == "desc")
    if dirs_first:
        ordered.sort(key=lambda entry: not entry.is_directory)
    return ordered


def _sort_key(sort_by: SortKey) -> Callable[[Entry], tuple[str, str] | float]:
    match sort_by:
        case "name":
            return lambda entry: (entry.name.casefold(), entry.name)
        case "path":
            return lambda entry: (entry.path.casefold(), entry.path)
        case "size":
            return lambda entry: -1 if entry.size is None else entry.size
        case _:
            return lambda entry: (
                -1 if entry.last_modified is None else entry.last_modified.timestamp()
            )


__all__ = ["ls", "sort_entries"]
