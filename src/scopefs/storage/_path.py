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

"""Path normalization shared by every engine.

All paths handled by :mod:`scopefs` are relative to a storage root, use
``/`` as separator and never contain empty, ``.`` or ``..`` segments once
normalized. The root itself is the empty string.

Two escape policies coexist:

- :func:`normalize_path` clamps: a ``..`` with nothing left to pop is dropped.
- :func:`join_under_workspace` rejects: climbing above the workspace raises
  :class:`~scopefs.errors.PathEscapeError`.

Constants:
    MAX_PATH_DEPTH: Maximum number of segments accepted by :func:`validate_path`.
    MAX_SEGMENT_LENGTH: Maximum characters per segment.
"""

from __future__ import annotations

from typing import Final

from ..errors import PathEscapeError

MAX_PATH_DEPTH: Final[int] = 64
MAX_SEGMENT_LENGTH: Final[int] = 255


def normalize_slashes(path: str) -> str:
    """Convert backslashes to ``/`` and collapse repeated separators."""
    converted = path.replace("\\", "/")
    while "//" in converted:
        converted = converted.replace("//", "/")
    return converted


def normalize_segments(path: str) -> list[str]:
    """Split ``path`` into clean segments, clamping ``..`` at the root.

    Examples:
        >>> normalize_segments("/a/./b/../c/")
        ['a', 'c']
        >>> normalize_segments("../../etc")
        ['etc']
    """
    result: list[str] = []
    for raw in normalize_slashes(path).split("/"):
        segment = raw.strip()
        if not segment or segment == ".":
            continue
        if segment == "..":
            if result:
                _ = result.pop()
            continue
        result.append(segment)
    return result


def normalize_path(path: str) -> str:
    """Return the canonical relative form of ``path`` (``""`` for the root)."""
    return "/".join(normalize_segments(path))


def join_path(*parts: str) -> str:
    """Join and normalize path fragments."""
    return normalize_path("/".join(part for part in parts if part))


def parent_of(path: str) -> str:
    """Return the parent of ``path``; the root is its own parent."""
    segments = normalize_segments(path)
    return "/".join(segments[:-1])


def basename(path: str) -> str:
    segments = normalize_segments(path)
    return segments[-1] if segments else ""


def has_parent_traversal(path: str) -> bool:
    """Return True when any raw segment of ``path`` is ``..``."""
    return any(segment.strip() == ".." for segment in normalize_slashes(path).split("/"))


def is_path_under(path: str, base: str) -> bool:
    """Return True if normalized ``path`` equals ``base`` or descends from it.

    Example::

        is_path_under("src/main.py", "src")  # True
        is_path_under("srcs/main.py", "src")  # False
        is_path_under("anything", "")  # True
    """
    if not base:
        return True
    return path == base or path.startswith(f"{base}/")


def is_within_root(path: str, root: str) -> bool:
    """Containment check that normalizes both sides first."""
    return is_path_under(normalize_path(path), normalize_path(root))


def join_under_workspace(workspace: str, path: str) -> str:
    """Resolve ``path`` relative to ``workspace`` without clamping.

    Used to remap patched paths for staging hooks. Unlike
    :func:`normalize_path`, a ``..`` that would climb above ``workspace`` is
    an error.

    Returns:
        The workspace-relative path, or ``"."`` for the workspace itself.

    Raises:
        PathEscapeError: If ``path`` resolves outside ``workspace``.
    """
    depth: list[str] = []
    for raw in normalize_slashes(path).split("/"):
        segment = raw.strip()
        if not segment or segment == ".":
            continue
        if segment == "..":
            if not depth:
                msg = f"Path escapes workspace: {path}"
                raise PathEscapeError(msg)
            _ = depth.pop()
            continue
        depth.append(segment)
    base = normalize_path(workspace)
    joined = "/".join(part for part in (base, *depth) if part)
    return joined or "."


def validate_path(path: str) -> None:
    """Validate depth and segment length of a normalized path.

    Raises:
        ValueError: If ``path`` exceeds :data:`MAX_PATH_DEPTH` segments or a
            segment exceeds :data:`MAX_SEGMENT_LENGTH` characters.
    """
    if not path:
        return
    segments = path.split("/")
    if len(segments) > MAX_PATH_DEPTH:
        msg = f"Path depth exceeds limit of {MAX_PATH_DEPTH} segments."
        raise ValueError(msg)
    if any(len(segment) > MAX_SEGMENT_LENGTH for segment in segments):
        msg = f"Path segment exceeds limit of {MAX_SEGMENT_LENGTH} characters."
        raise ValueError(msg)


__all__ = [
    "MAX_PATH_DEPTH",
    "MAX_SEGMENT_LENGTH",
    "basename",
    "has_parent_traversal",
    "is_path_under",
    "is_within_root",
    "join_path",
    "join_under_workspace",
    "normalize_path",
    "normalize_segments",
    "normalize_slashes",
    "parent_of",
    "validate_path",
]
