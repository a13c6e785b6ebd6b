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

"""Tests for move and directory deletion helpers."""

from __future__ import annotations

import asyncio

import pytest

from scopefs.storage import (
    InMemoryStorage,
    delete_directory,
    delete_directory_contents,
    move_file,
)
from tests.helpers.storage import FaultyStorage


class TestMoveFile:
    """Copy-then-delete moves."""

    def test_moves_into_new_directory(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": b"\x00data"})

        asyncio.run(move_file(storage, "a.txt", "nested/dir/b.txt"))

        assert storage.snapshot() == {"nested/dir/b.txt": b"\x00data"}

    def test_replaces_existing_destination(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "new", "b.txt": "old"})

        asyncio.run(move_file(storage, "a.txt", "b.txt"))

        assert storage.snapshot() == {"b.txt": b"new"}

    def test_same_path_is_a_no_op(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a"})

        asyncio.run(move_file(storage, "a.txt", "./a.txt"))

        assert storage.snapshot() == {"a.txt": b"a"}

    def test_missing_source_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            asyncio.run(move_file(InMemoryStorage(), "ghost.txt", "b.txt"))

    @pytest.mark.parametrize(("source", "destination"), [("", "b.txt"), ("a.txt", "/")])
    def test_root_paths_are_rejected(self, source: str, destination: str) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a"})

        with pytest.raises(ValueError, match="empty"):
            asyncio.run(move_file(storage, source, destination))


class TestDeleteDirectory:
    """Recursive removal through rmdir and delete_file."""

    def test_removes_tree_including_hidden_entries(self) -> None:
        storage = InMemoryStorage.from_files(
            {
                "sandbox/a/b.txt": "1",
                "sandbox/a/c/d.txt": "2",
                "sandbox/.hidden/e.txt": "3",
                "keep.txt": "k",
            }
        )

        asyncio.run(delete_directory(storage, "sandbox"))

        assert storage.snapshot() == {"keep.txt": b"k"}
        with pytest.raises(FileNotFoundError):
            asyncio.run(storage.stat("sandbox"))

    def test_contents_only_keeps_directory(self) -> None:
        storage = InMemoryStorage.from_files({"sandbox/a/b.txt": "1", "sandbox/c.txt": "2"})

        asyncio.run(delete_directory_contents(storage, "sandbox"))

        assert storage.snapshot() == {}
        assert asyncio.run(storage.readdir("sandbox")) == []

    def test_missing_directory_is_ignored(self) -> None:
        storage = InMemoryStorage.from_files({"keep.txt": "k"})

        asyncio.run(delete_directory(storage, "ghost"))
        asyncio.run(delete_directory_contents(storage, "ghost"))

        assert storage.snapshot() == {"keep.txt": b"k"}

    def test_root_is_refused(self) -> None:
        storage = InMemoryStorage.from_files({"keep.txt": "k"})

        with pytest.raises(PermissionError):
            asyncio.run(delete_directory(storage, "/"))

        assert storage.snapshot() == {"keep.txt": b"k"}

    def test_file_is_refused(self) -> None:
        storage = InMemoryStorage.from_files({"plain.txt": "p"})

        with pytest.raises(NotADirectoryError):
            asyncio.run(delete_directory(storage, "plain.txt"))

    def test_errors_propagate(self) -> None:
        inner = InMemoryStorage.from_files({"dir/locked.txt": "x"})
        storage = FaultyStorage(inner, fail_delete=["dir/locked.txt"])

        with pytest.raises(PermissionError, match="delete denied"):
            asyncio.run(delete_directory(storage, "dir"))

        assert inner.snapshot() == {"dir/locked.txt": b"x"}
