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

"""Windowed file reads with file-kind detection.

Text files are returned as a window of lines (2000 by default) with long
lines shortened. Media files (images, PDF, audio, video) are returned as raw
bytes with their MIME type. Binary files and oversized SVGs are reported
but not returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from ..storage import StorageAdapter, basename, guess_mime_type, normalize_path

DEFAULT_READ_LIMIT: Final[int] = 2_000
MAX_LINE_LENGTH: Final[int] = 2_000
DEFAULT_MAX_READ_BYTES: Final[int] = 20 * 1024 * 1024
MAX_SVG_BYTES: Final[int] = 1024 * 1024
BINARY_SAMPLE_BYTES: Final[int] = 4_096
TRUNCATION_MARKER: Final[str] = "... [truncated]"

# Suffixes the MIME registry misclassifies (``.ts`` as MPEG transport stream).
_TEXT_SUFFIXES: Final[frozenset[str]] = frozenset({".ts", ".mts", ".cts", ".tsx"})
_BINARY_SUFFIXES: Final[frozenset[str]] = frozenset(
    (
        ".zip .tar .gz .7z .exe .dll .so .class .jar .war .doc .docx .xls .xlsx"
        " .ppt .pptx .odt .ods .odp .bin .dat .obj .o .a .lib .wasm .pyc .pyo"
    ).split()
)


class FileKind(StrEnum):
    TEXT = "text"
    SVG = "svg"
    IMAGE = "image"
    PDF = "pdf"
    AUDIO = "audio"
    VIDEO = "video"
    BINARY = "binary"


_MEDIA_KINDS: Final[frozenset[FileKind]] = frozenset(
    {FileKind.IMAGE, FileKind.PDF, FileKind.AUDIO, FileKind.VIDEO}
)


@dataclass(slots=True, frozen=True)
class ReadOptions:
    """Limits for :func:`read_file_content`.

    Attributes:
        max_file_size: Files larger than this many bytes are rejected.
        default_limit: Lines returned when the caller passes no ``limit``.
        max_line_length: Characters kept per line before it is shortened.
        encoding: Text encoding; undecodable bytes become U+FFFD.
    """

    max_file_size: int = DEFAULT_MAX_READ_BYTES
    default_limit: int = DEFAULT_READ_LIMIT
    max_line_length: int = MAX_LINE_LENGTH
    encoding: str = "utf-8"


@dataclass(slots=True, frozen=True)
class FileRead:
    """Result of :func:`read_file_content`.

    Attributes:
        path: Normalized path of the file.
        kind: Detected file kind.
        content: The selected lines joined by ``\\n`` (text and SVG only).
        data: Raw bytes for media kinds, otherwise ``None``.
        mime_type: MIME type guessed from the name, if any.
        total_lines: Number of lines in a text file.
        offset: Zero-based first line returned.
        limit: Number of lines returned.
        truncated: Lines exist outside the window or were shortened.
        summary: One-line description of what was read.
    """

    path: str
    kind: FileKind
    content: str = ""
    data: bytes | None = None
    mime_type: str | None = None
    total_lines: int = 0
    offset: int = 0
    limit: int = 0
    truncated: bool = False
    summary: str = ""


def is_binary_content(data: bytes) -> bool:
    """Guess whether ``data`` is binary from its first 4 KiB.

    A NUL byte is decisive; otherwise more than 30% control characters
    (other than tab, newline, vertical tab, form feed and carriage return)
    marks the sample as binary.
    """
    sample = data[:BINARY_SAMPLE_BYTES]
    if not sample:
        return False
    if 0 in sample:
        return True
    control = sum(1 for byte in sample if byte < 9 or 13 < byte < 32)
    return control / len(sample) > 0.3


def detect_file_kind(path: str, data: bytes | None = None) -> FileKind:
    """Classify ``path`` by suffix and MIME type, then by content if given."""
    name = basename(path).lower()
    dot = name.rfind(".")
    suffix = name[dot:] if dot > 0 else ""
    if suffix in _TEXT_SUFFIXES:
        return FileKind.TEXT
    if suffix == ".svg":
        return FileKind.SVG
    mime = guess_mime_type(name) or ""
    if mime.startswith("image/"):
        return FileKind.IMAGE
    if mime.startswith("audio/"):
        return FileKind.AUDIO
    if mime.startswith("video/"):
        return FileKind.VIDEO
    if mime == "application/pdf":
        return FileKind.PDF
    if suffix in _BINARY_SUFFIXES:
        return FileKind.BINARY
    if data is not None and is_binary_content(data):
        return FileKind.BINARY
    return FileKind.TEXT


async def read_file_content(
    storage: StorageAdapter,
    path: str,
    *,
    offset: int = 0,
    limit: int | None = None,
    options: ReadOptions | None = None,
) -> FileRead:
    """Read ``path`` according to its kind.

    For text, ``offset`` is the zero-based first line and ``limit`` the
    number of lines (``options.default_limit`` when omitted). A trailing
    newline does not count as an extra line.

    Example::

        first = await read_file_content(storage, "big.log", limit=100)
        if first.truncated:
            more = await read_file_content(storage, "big.log", offset=100, limit=100)

    Raises:
        ValueError: If ``offset`` is negative, ``limit`` is not positive, or
            the file exceeds ``options.max_file_size``.
        FileNotFoundError: If ``path`` does not exist.
        IsADirectoryError: If ``path`` is a directory.
    """
    options = options or ReadOptions()
    if offset < 0:
        msg = "offset must not be negative."
        raise ValueError(msg)
    if limit is not None and limit < 1:
        msg = "limit must be at least 1."
        raise ValueError(msg)

    normalized = normalize_path(path)
    stat = await storage.stat(normalized)
    if stat.is_directory:
        msg = f"Is a directory: {path}"
        raise IsADirectoryError(msg)
    if stat.size_bytes > options.max_file_size:
        msg = (
            f"File size exceeds the {options.max_file_size} byte limit: "
            f"{normalized} ({stat.size_bytes} bytes)"
        )
        raise ValueError(msg)

    mime = guess_mime_type(normalized)
    kind = detect_file_kind(normalized)
    if kind is FileKind.SVG and stat.size_bytes > MAX_SVG_BYTES:
        return FileRead(
            path=normalized,
            kind=kind,
            mime_type=mime,
            summary=f"Skipped large SVG file (>1MB): {normalized}",
        )
    if kind is FileKind.BINARY:
        return _skipped_binary(normalized, mime)

    data = await storage.read_file(normalized)
    if kind in _MEDIA_KINDS:
        return FileRead(
            path=normalized,
            kind=kind,
            data=data,
            mime_type=mime or "application/octet-stream",
            summary=f"Read {kind} file: {normalized}",
        )
    if kind is FileKind.TEXT and is_binary_content(data):
        return _skipped_binary(normalized, mime)

    text = data.decode(options.encoding, errors="replace")
    if kind is FileKind.SVG:
        return FileRead(
            path=normalized,
            kind=kind,
            content=text,
            mime_type=mime,
            summary=f"Read SVG as text: {normalized}",
        )
    return _text_window(
        normalized,
        text,
        mime=mime,
        offset=offset,
        limit=options.default_limit if limit is None else limit,
        max_line_length=options.max_line_length,
    )


def _skipped_binary(path: str, mime: str | None) -> FileRead:
    return FileRead(
        path=path,
        kind=FileKind.BINARY,
        mime_type=mime,
        summary=f"Skipped binary file: {path}",
    )


def _text_window(
    path: str,
    text: str,
    *,
    mime: str | None,
    offset: int,
    limit: int,
    max_line_length: int,
) -> FileRead:
    lines = text.split("\n")
    if lines[-1] == "":
        _ = lines.pop()
    total = len(lines)
    start = min(offset, total)
    end = min(start + limit, total)

    shortened = False
    selected: list[str] = []
    for line in lines[start:end]:
        line = line.removesuffix("\r")
        if len(line) > max_line_length:
            shortened = True
            line = line[:max_line_length] + TRUNCATION_MARKER
        selected.append(line)

    partial = start > 0 or end < total
    if partial:
        summary = f"Read lines {start + 1}-{end} of {total} from {path}"
    else:
        summary = f"Read all {total} lines from {path}"
    if shortened:
        summary += " (some lines were shortened)"
    return FileRead(
        path=path,
        kind=FileKind.TEXT,
        content="\n".join(selected),
        mime_type=mime,
        total_lines=total,
        offset=start,
        limit=end - start,
        truncated=partial or shortened,
        summary=summary,
    )


__all__ = [
    "DEFAULT_MAX_READ_BYTES",
    "DEFAULT_READ_LIMIT",
    "MAX_LINE_LENGTH",
    "FileKind",
    "FileRead",
    "ReadOptions",
    "detect_file_kind",
    "is_binary_content",
    "read_file_content",
]
