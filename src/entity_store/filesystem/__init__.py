"""Filesystem backends."""

from entity_store.filesystem.base import FileSystem
from entity_store.filesystem.local import LocalFileSystem

__all__ = [
    "FileSystem",
    "LocalFileSystem",
]
