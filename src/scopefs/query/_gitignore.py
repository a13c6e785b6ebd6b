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

"""Single-file ``.gitignore`` evaluation.

Only the ``.gitignore`` at the search root is read. Supported syntax:

- blank lines and ``#`` comments are skipped;
- ``!pattern`` re-includes a previously ignored path;
- ``dir/`` ignores everything below ``dir``;
- a leading ``/`` anchors the pattern at the root, and a pattern without any
  ``/`` matches at any depth;
- the last matching rule wins. Matching is case-insensitive.

Nested ``.gitignore`` files and the "parent directory excluded" rule are not
implemented.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import PatternSyntaxError
from ..storage import StorageAdapter, join_path
from ._glob import GlobMatcher, compile_glob

GITIGNORE_NAME = ".gitignore"


@dataclass(slots=True, frozen=True)
class IgnoreRule:
    source: str
    negate: bool
    directory_only: bool
    matchers: tuple[GlobMatcher, ...]

    def matches(self, path: str) -> bool:
        return any(matcher.matches(path) for matcher in self.matchers)


@dataclass(slots=True, frozen=True)
class GitIgnore:
    """Ordered rule set parsed from one ``.gitignore`` file."""

    rules: tuple[IgnoreRule, ...]

    def is_ignored(self, path: str) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(path):
                ignored = not rule.negate
        return ignored


def parse_gitignore(text: str) -> GitIgnore:
    """Parse rules; lines that fail to compile are dropped."""
    rules: list[IgnoreRule] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        body = line[1:] if negate else line
        directory_only = body.endswith("/")
        body = body.rstrip("/")
        anchored = body.startswith("/") or "/" in body
        body = body.lstrip("/")
        if not body:
            continue
        base = body if anchored else f"**/{body}"
        globs: Sequence[str] = (
            (f"{base}/**",) if directory_only else (base, f"{base}/**")
        )
        try:
            matchers = tuple(
                compile_glob(glob, dot=True, case_sensitive=False) for glob in globs
            )
        except PatternSyntaxError:
            continue
        rules.append(
            IgnoreRule(
                source=line,
                negate=negate,
                directory_only=directory_only,
                matchers=matchers,
            )
        )
    return GitIgnore(rules=tuple(rules))


async def load_gitignore(storage: StorageAdapter, root: str) -> GitIgnore | None:
    """Read ``root/.gitignore``; ``None`` when absent, unreadable or empty."""
    try:
        data = await storage.read_file(join_path(root, GITIGNORE_NAME))
    except OSError:
        return None
    text = data.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    return parse_gitignore(text)


__all__ = ["GITIGNORE_NAME", "GitIgnore", "IgnoreRule", "load_gitignore", "parse_gitignore"]
