"""Local filesystem backend built on aiofiles."""

import asyncio
import contextlib
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from entity_store.filesystem.base import FileSystem


class LocalFileSystem(FileSystem):
    """Filesystem backend for the local disk.

    Blocking calls run in the default executor via `aiofiles`. Atomic writes
    go to a hidden sibling temp file which is fsynced and then moved over the
    destination with `os.replace`, so a reader sees either the old file or
    the complete new one.

    Example:
        ```python
        fs = LocalFileSystem()
        await fs.create_directory(Path("/tmp/data"))
        await fs.write_file_atomic(Path("/tmp/data/a.json"), b"{}")
        ```
    """

    def __init__(self, fsync: bool = True) -> None:
        """Initialize the backend.

        Args:
            fsync: Whether to fsync temp files before replacing the destination.
        """
        self._fsync = fsync

    async def exists(self, path: Path) -> bool:
        return await aiofiles.os.path.exists(path)

    async def is_file(self, path: Path) -> bool:
        return await aiofiles.os.path.isfile(path)

    async def read_file(self, path: Path) -> bytes:
        async with aiofiles.open(path, mode="rb") as f:
            return await f.read()

    async def write_file_atomic(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` atomically.

        Args:
            path: Destination file. Its parent directory must exist.
            data: Full file content.

        Raises:
            OSError: If the temp file cannot be written or moved into place.
                The destination is left untouched in that case.
        """
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_path, mode="wb") as f:
                await f.write(data)
                await f.flush()
                if self._fsync:
                    await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp_path, path)
        except BaseException:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp_path)
            raise

    async def create_directory(self, path: Path) -> None:
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def list_directory(self, path: Path) -> list[Path]:
        names = await aiofiles.os.listdir(path)
        return [path / name for name in names]

    async def remove_file(self, path: Path) -> None:
        await aiofiles.os.remove(path)
