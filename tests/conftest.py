"""Pytest configuration and fixtures for entity-store tests."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import pytest

from entity_store import LocalFileSystem, Store


class FailingFileSystem(LocalFileSystem):
    """LocalFileSystem that raises injected errors for selected operations.

    ``fail("remove_file", PermissionError(), after=1)`` lets the first
    removal through and makes every later one raise.
    """

    def __init__(self) -> None:
        super().__init__(fsync=False)
        self.calls: Counter[str] = Counter()
        self._failures: dict[str, tuple[BaseException, int]] = {}

    def fail(self, operation: str, error: BaseException, after: int = 0) -> None:
        self._failures[operation] = (error, after)

    def _check(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self._failures:
            error, after = self._failures[operation]
            if self.calls[operation] > after:
                raise error

    async def read_file(self, path: Path) -> bytes:
        self._check("read_file")
        return await super().read_file(path)

    async def write_file_atomic(self, path: Path, data: bytes) -> None:
        self._check("write_file_atomic")
        await super().write_file_atomic(path, data)

    async def create_directory(self, path: Path) -> None:
        self._check("create_directory")
        await super().create_directory(path)

    async def list_directory(self, path: Path) -> list[Path]:
        self._check("list_directory")
        return await super().list_directory(path)

    async def remove_file(self, path: Path) -> None:
        self._check("remove_file")
        await super().remove_file(path)


@pytest.fixture()
def store_root(tmp_path: Path) -> Path:
    """Provide a container root that does not exist yet."""
    return tmp_path / "container"


@pytest.fixture()
def store(store_root: Path) -> Store:
    """Provide a Store backed by the local disk."""
    return Store(store_root, filesystem=LocalFileSystem(fsync=False))


@pytest.fixture()
def failing_fs() -> FailingFileSystem:
    """Provide a filesystem with injectable failures."""
    return FailingFileSystem()


@pytest.fixture()
def failing_store(store_root: Path, failing_fs: FailingFileSystem) -> Store:
    """Provide a Store wired to the failure-injecting filesystem."""
    return Store(store_root, filesystem=failing_fs)
