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

"""Glob compilation and brace expansion.

Grammar, matched against a whole normalized relative path:

- ``**`` matches zero or more path segments. ``**/`` may match nothing, as
  may a trailing ``/**``; anywhere else ``**`` matches any run of characters.
- ``*`` matches any run within a segment, ``?`` a single non-``/`` character.
- ``[abc]``, ``[a-z]`` and ``[!abc]`` character classes. A ``]`` right after
  the opening bracket is literal; an unterminated ``[`` is a literal ``[``.
- A backslash makes the next character literal. A trailing lone backslash is
  itself literal.
- With ``dot=False`` a ``*`` or ``?`` at the start of a segment does not match
  a leading ``.``.

Brace lists (``{a,b}``, nested) are expanded before compilation by
:func:`expand_braces`. A group without a top-level comma is not a list and is
kept verbatim, so ``{1..3}`` and ``{x}`` stay literal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..errors import PatternSyntaxError

_CLASS_SPECIALS = frozenset("\\^$.|+(){}[&~")


def glob_to_regex(
    glob: str, *, dot: bool = True, case_sensitive: bool = True
) -> re.Pattern[str]:
    """Compile a single brace-free glob to an anchored regular expression.

    Raises:
        PatternSyntaxError: If the translated expression is invalid, for
            example a reversed range such as ``[z-a]``.
    """

    pieces: list[str] = []
    i = 0
    segment_start = True
    length = len(glob)
    while i < length:
        char = glob[i]
        if char == "*":
            run = i
            while run < length and glob[run] == "*":
                run += 1
            if run - i >= 2:
                pieces.append(_globstar(glob, i, run, pieces))
                if run < length and glob[run] == "/" and pieces[-1] == "(?:.*/)?":
                    run += 1
                i = run
                segment_start = i == 0 or glob[i - 1] == "/"
                continue
            pieces.append("[^/]*" if dot or not segment_start else r"(?!\.)[^/]*")
            i += 1
            segment_start = False
            continue
        if char == "?":
            pieces.append("[^/]" if dot or not segment_start else r"(?!\.)[^/]")
            i += 1
            segment_start = False
            continue
        if char == "[":
            source, i = _char_class(glob, i)
            pieces.append(source)
            segment_start = False
            continue
        if char == "\\":
            if i + 1 < length:
                pieces.append(re.escape(glob[i + 1]))
                i += 2
            else:
                pieces.append(r"\\")
                i += 1
            segment_start = False
            continue
        if char == "/":
            pieces.append("/")
            segment_start = True
            i += 1
            continue
        pieces.append(re.escape(char))
        segment_start = False
        i += 1

    flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
    try:
        return re.compile("^" + "".join(pieces) + r"\Z", flags)
    except re.error as error:
        raise PatternSyntaxError(glob, str(error)) from error


def _globstar(glob: str, start: int, end: int, pieces: list[str]) -> str:
    after_separator = start == 0 or glob[start - 1] == "/"
    if after_separator and end < len(glob) and glob[end] == "/":
        return "(?:.*/)?"
    if after_separator and end == len(glob) and pieces and pieces[-1] == "/":
        _ = pieces.pop()
        return "(?:/.*)?"
    return ".*"


def _char_class(glob: str, start: int) -> tuple[str, int]:
    i = start + 1
    negate = i < len(glob) and glob[i] == "!"
    if negate:
        i += 1
    content: list[str] = []
    if i < len(glob) and glob[i] == "]":
        content.append(r"\]")
        i += 1
    while i < len(glob) and glob[i] != "]":
        char = glob[i]
        if char == "\\" and i + 1 < len(glob):
            content.append(re.escape(glob[i + 1]))
            i += 2
            continue
        content.append("\\" + char if char in _CLASS_SPECIALS else char)
        i += 1
    if i >= len(glob):
        return r"\[", start + 1
    prefix = "[^/" if negate else "["
    return prefix + "".join(content) + "]", i + 1


def expand_braces(pattern: str) -> list[str]:
    """Expand brace lists, outermost first, until none remain.

    Example::

        expand_braces("src/**/*.{ts,tsx}")
        # ['src/**/*.ts', 'src/**/*.tsx']
        expand_braces("a/{b,{c,d}}/e")
        # ['a/b/e', 'a/c/e', 'a/d/e']
        expand_braces("file{1..3}")
        # ['file{1..3}']
    """

    return _expand_from(pattern, 0)


def _expand_from(pattern: str, offset: int) -> list[str]:
    group = _find_brace_group(pattern, offset)
    if group is None:
        return [pattern]
    start, end = group
    alternatives = _split_top_level(pattern[start + 1 : end])
    if len(alternatives) <= 1:
        return _expand_from(pattern, end + 1)
    before, after = pattern[:start], pattern[end + 1 :]
    expanded: list[str] = []
    for alternative in alternatives:
        expanded.extend(_expand_from(f"{before}{alternative}{after}", start))
    return expanded


def _find_brace_group(pattern: str, offset: int) -> tuple[int, int] | None:
    depth = 0
    start = -1
    i = offset
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return start, i
        i += 1
    return None


def _split_top_level(inner: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    i = 0
    while i < len(inner):
        char = inner[i]
        if char == "\\":
            current.append(inner[i : i + 2])
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


@dataclass(slots=True, frozen=True)
class GlobMatcher:
    """Compiled glob: one regex per brace alternative, OR'd together.

    Attributes:
        source: The pattern as given.
        patterns: Brace-expanded alternatives.
        regexes: One anchored regex per alternative.
        dot: Whether segment-leading wildcards match a leading ``.``.
        case_sensitive: Whether matching is case sensitive.
    """

    source: str
    patterns: tuple[str, ...]
    regexes: tuple[re.Pattern[str], ...]
    dot: bool = True
    case_sensitive: bool = True

    def matches(self, path: str) -> bool:
        return any(regex.match(path) for regex in self.regexes)


def compile_glob(
    pattern: str, *, dot: bool = True, case_sensitive: bool = True
) -> GlobMatcher:
    """Expand braces in ``pattern`` and compile every alternative.

    Raises:
        PatternSyntaxError: If any alternative fails to compile.
    """

    patterns = tuple(expand_braces(pattern))
    regexes = tuple(
        glob_to_regex(item, dot=dot, case_sensitive=case_sensitive)
        for item in patterns
    )
    return GlobMatcher(
        source=pattern,
        patterns=patterns,
        regexes=regexes,
        dot=dot,
        case_sensitive=case_sensitive,
    )


def compile_globs(
    patterns: Iterable[str], *, dot: bool = True, case_sensitive: bool = True
) -> tuple[GlobMatcher, ...]:
    return tuple(
        compile_glob(item, dot=dot, case_sensitive=case_sensitive)
        for item in patterns
    )


def matches_any(path: str, matchers: Sequence[GlobMatcher]) -> bool:
    return any(matcher.matches(path) for matcher in matchers)


def escape_glob(text: str) -> str:
    """Escape glob and brace metacharacters so ``text`` matches literally."""
    return "".join("\\" + char if char in "*?[]{}\\" else char for char in text)


__all__ = [
    "GlobMatcher",
    "compile_glob",
    "compile_globs",
    "escape_glob",
    "expand_braces",
    "glob_to_regex",
    "matches_any",
]
