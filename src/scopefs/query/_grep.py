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

"""Concurrent per-line regex search."""

from __future__ import annotations

import re
from collections.abc import Iterator

from ..errors import PatternSyntaxError
from ..runtime import run_pool
from ..runtime.logging import StructuredLogger, get_logger
from ..storage import EntryKind, StorageAdapter, join_path, normalize_path
from ._glob import compile_globs, matches_any
from ._types import GrepOptions, Match, SkipReason
from ._walk import SkipLog, notify, require_directory, walk

logger: StructuredLogger = get_logger(__name__, context={"component": "grep"})


async def grep(
    storage: StorageAdapter,
    options: GrepOptions,
    path: str = "",
) -> list[Match]:
    """Search every file under ``path`` for ``options.pattern``.

    The walk has no depth limit, prunes hidden directories (unless
    ``show_hidden``) and directories matching ``exclude``. Remaining files
    are filtered by ``exclude`` and ``include`` on their path relative to
    ``path``, then scanned in a bounded pool.

    Matching is per line and always global: every occurrence on a line is
    reported. Files over ``max_file_size`` and files that fail to stat or
    read are skipped with a :class:`SkipRecord`; the search itself never
    fails for a single file.

    Ordering across files depends on scheduling; within a file matches are
    reported by line, then column.

    Raises:
        PatternSyntaxError: If the pattern, a flag or a glob is invalid.
        FileNotFoundError: If ``path`` does not exist.
        NotADirectoryError: If ``path`` is a file.
    """

    regex = compile_pattern(options)
    include = compile_globs(options.include)
    exclude = compile_globs(options.exclude)
    root = normalize_path(path)
    await require_directory(storage, root)

    skips = SkipLog("grep", options.on_skip)
    files: list[str] = []
    async for node in walk(
        storage,
        root,
        skips=skips,
        show_hidden=options.show_hidden,
        prune=exclude,
        token=options.token,
    ):
        if node.kind is not EntryKind.FILE:
            continue
        if matches_any(node.path, exclude):
            skips.record(node.path, SkipReason.EXCLUDED)
            continue
        if include and not matches_any(node.path, include):
            continue
        files.append(node.path)

    results: list[Match] = []

    async def scan(relative: str) -> None:
        target = join_path(root, relative)
        try:
            stat = await storage.stat(target)
            if stat.size_bytes > options.max_file_size:
                skips.record(
                    relative,
                    SkipReason.TOO_LARGE,
                    f"{stat.size_bytes} bytes exceeds {options.max_file_size}",
                )
                return
            data = await storage.read_file(target)
        except OSError as error:
            skips.record(relative, SkipReason.UNREADABLE, str(error))
            return

        text = data.decode(options.encoding, errors="replace")
        found: list[Match] = []
        for line_number, line in enumerate(split_lines(text), start=1):
            for start, matched in iter_matches(regex, line):
                match = Match(
                    file=relative,
                    line=line_number,
                    column=utf16_column(line, start),
                    matched_text=matched,
                    line_text=line,
                )
                found.append(match)
                await notify(options.on_match, match)
        results.extend(found)

    scanned = await run_pool(
        files, scan, concurrency=options.concurrency, token=options.token
    )
    logger.debug(
        "Search complete.",
        event="grep.complete",
        context={
            "root": root,
            "files": len(files),
            "scanned": scanned,
            "matches": len(results),
            "skipped": len(skips.records),
        },
    )
    return results


def compile_pattern(options: GrepOptions) -> re.Pattern[str]:
    """Compile ``options.pattern`` with its letter flags.

    Raises:
        PatternSyntaxError: On an invalid expression or unknown flag.
    """
    flags = options.regex_flags()
    pattern = options.pattern
    if isinstance(pattern, re.Pattern):
        if not flags:
            return pattern
        source, flags = pattern.pattern, flags | re.RegexFlag(pattern.flags)
    else:
        source = pattern
    try:
        return re.compile(source, flags)
    except re.error as error:
        raise PatternSyntaxError(source, str(error)) from error


def split_lines(text: str) -> list[str]:
    """Split on ``\\n``, dropping a trailing ``\\r`` per line and an empty tail."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        _ = lines.pop()
    return [line.removesuffix("\r") for line in lines]


def iter_matches(regex: re.Pattern[str], line: str) -> Iterator[tuple[int, str]]:
    """Yield ``(start, text)`` for each occurrence in ``line``.

    The scan position is advanced explicitly; after an empty match it moves
    one character forward so patterns like ``a*`` terminate.
    """
    position = 0
    while position <= len(line):
        found = regex.search(line, position)
        if found is None:
            return
        yield found.start(), found.group(0)
        end = found.end()
        position = end if end > found.start() else end + 1


def utf16_column(line: str, index: int) -> int:
    """1-based column of ``index`` measured in UTF-16 code units."""
    return len(line[:index].encode("utf-16-le", errors="surrogatepass")) // 2 + 1


__all__ = ["compile_pattern", "grep", "iter_matches", "split_lines", "utf16_column"]
