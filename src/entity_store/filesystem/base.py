"""Base protocol for filesystem backends."""

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Protocol for the filesystem primitives used by the store.

    All methods are coroutines so that backends never block the event loop.
    """

    async def exists(self, path: Path) -> bool:
        """Return True if anything exists at ``path``."""
        ...

    async def is_file(self, path: Path) -> bool:
        """Return True if ``path`` is a regular file."""
        ...

    async def read_file(self, path: Path) -> bytes:
        """Read a whole file. Raises FileNotFoundError if it is missing."""
        ...

    async def write_file_atomic(self, path: Path, data: bytes) -> None:
        """Replace ``path`` with ``data`` so readers never see a partial write."""
        ...

    async def create_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents. Existing directories are fine."""
        ...

    async def list_directory(self, path: Path) -> list[Path]:
        """Return the full paths of all entries in a directory."""
        ...

    async def remove_file(self, path: Path) -> None:
        """Remove a single file."""
        ...
