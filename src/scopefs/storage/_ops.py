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

"""File and directory operations composed from adapter primitives."""

from __future__ import annotations

from ._path import join_path, normalize_path
from ._protocol import StorageAdapter
from ._types import EntryKind


async def move_file(storage: StorageAdapter, source: str, destination: str) -> None:
    """Move the file at ``source`` to ``destination``.

    The move is a copy followed by a delete, so it works against any adapter.
    Missing destination parents are created and an existing destination file
    is replaced. Moving a file onto itself does nothing.

    Raises:
        ValueError: If either path names the root.
        FileNotFoundError: If ``source`` does not exist.
        IsADirectoryError: If ``source`` or ``destination`` is a directory.
    """
    from_path = normalize_path(source)
    to_path = normalize_path(destination)
    if not from_path:
        msg = "move_file: source path is empty."
        raise ValueError(msg)
    if not to_path:
        msg = "move_file: destination path is empty."
        raise ValueError(msg)
    if from_path == to_path:
        return
    data = await storage.read_file(from_path)
    await storage.write_file(to_path, data)
    await storage.delete_file(from_path)


async def delete_directory_contents(storage: StorageAdapter, path: str) -> None:
    """Remove everything below ``path``, keeping the directory itself.

    Hidden entries are removed too. A missing directory is left alone.
    """
    root = normalize_path(path)
    try:
        children = await storage.readdir(root)
    except FileNotFoundError:
        return
    for entry in children:
        child = join_path(root, entry.name)
        if entry.kind is EntryKind.DIRECTORY:
            await delete_directory_contents(storage, child)
            await storage.rmdir(child)
        else:
            await storage.delete_file(child)


async def delete_directory(storage: StorageAdapter, path: str) -> None:
    """Remove the directory at ``path`` and everything below it.

    Raises:
        PermissionError: If ``path`` names the root.
        NotADirectoryError: If ``path`` is a file.
    """
    root = normalize_path(path)
    if not root:
        msg = "Cannot delete the root directory."
        raise PermissionError(msg)
    try:
        stat = await storage.stat(root)
    except FileNotFoundError:
        return
    if not stat.is_directory:
        msg = f"Not a directory: {path}"
        raise NotADirectoryError(msg)
    await delete_directory_contents(storage, root)
    await storage.rmdir(root)


__all__ = ["delete_directory", "delete_directory_contents", "move_file"]
