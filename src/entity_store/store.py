"""File-per-record store.

Records are laid out on disk as::

    root/
    ├── Note/
    │   ├── 1.json
    │   ├── 2.json
    │   └── user1/
    │       └── 1.json
    └── Task/
        └── 7.json

The first segment is the record type's ``__name__``, the optional second
segment is the namespace, and the file name is the record id plus the codec
extension.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from entity_store.codec import Codec, JsonCodec
from entity_store.errors import (
    DeleteFailedError,
    LoadFailedError,
    StorageError,
    StoreFailedError,
)
from entity_store.filesystem import FileSystem, LocalFileSystem
from entity_store.models import StoreConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SEPARATORS = frozenset(sep for sep in ("/", "\\", "\x00", os.sep, os.altsep) if sep)


def _check_segment(value: str, kind: str) -> str:
    """Validate a single path segment derived from caller input."""
    if not value or value in (".", ".."):
        raise ValueError(f"Invalid {kind}: {value!r}")
    if any(sep in value for sep in _SEPARATORS):
        raise ValueError(f"{kind.capitalize()} {value!r} contains a path separator")
    return value


class Store:
    """Async file-based persistence for identifiable records.

    The store is a stateless facade over the filesystem: every call
    re-derives its path and re-queries the disk. Operations on different
    records may run concurrently. Operations on the same record are not
    coordinated; the last completed write wins and readers never observe a
    partially written file.

    Args:
        root: Container root under which all records are stored.
        filesystem: Filesystem backend. Defaults to `LocalFileSystem`.
        codec: Record codec. Defaults to `JsonCodec`.
        structured_logging: Whether to emit JSON log entries. Default True.

    Example:
        ```python
        store = Store("/var/lib/app")

        await store.store(Note(id=1, text="hello"), namespace="user1")
        note = await store.load(Note, 1, namespace="user1")
        notes = await store.load_all(Note, namespace="user1")
        await store.delete(note, namespace="user1")
        ```
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        filesystem: FileSystem | None = None,
        codec: Codec | None = None,
        structured_logging: bool = True,
    ) -> None:
        self._root = Path(root).expanduser().absolute()
        self._fs: FileSystem = filesystem or LocalFileSystem()
        self._codec: Codec = codec or JsonCodec()
        self._structured_logging = structured_logging

    @classmethod
    def from_config(cls, config: StoreConfig) -> Store:
        """Build a store backed by the local disk from a StoreConfig."""
        return cls(
            config.root,
            filesystem=LocalFileSystem(fsync=config.fsync),
            codec=JsonCodec(indent=config.indent),
            structured_logging=config.structured_logging,
        )

    @property
    def root(self) -> Path:
        """Container root of this store."""
        return self._root

    def resolve_path(
        self,
        record_type: type[Any],
        id: Any = None,
        namespace: str | None = None,
    ) -> Path:
        """Resolve the location of a record, or of its directory when id is None.

        Args:
            record_type: Record class; its ``__name__`` is the first segment.
            id: Record id. Rendered with ``str()``.
            namespace: Optional sub-folder between type and id.

        Returns:
            An absolute path strictly inside the container root.

        Raises:
            ValueError: If any segment is empty, ``.``/``..``, or contains a
                path separator, or if the namespace ends in the codec extension.
        """
        path = self._root / _check_segment(record_type.__name__, "type name")
        if namespace:
            if namespace.endswith(self._codec.extension):
                raise ValueError(
                    f"Namespace {namespace!r} ends in {self._codec.extension!r} "
                    "and would collide with a record file"
                )
            path /= _check_segment(namespace, "namespace")
        if id is not None:
            file_name = _check_segment(str(id), "id") + self._codec.extension
            path /= file_name
        if self._root not in path.parents:
            raise ValueError(f"Resolved path {path} escapes {self._root}")
        return path

    async def load(self, record_type: type[T], id: Any, *, namespace: str | None = None) -> T:
        """Load one record.

        Raises:
            LoadFailedError: If the file is missing, unreadable or undecodable.
        """
        path: Path | None = None
        try:
            path = self.resolve_path(record_type, id, namespace)
            data = await self._fs.read_file(path)
            record = self._codec.decode(data, record_type)
        except Exception as exc:
            raise self._failure(
                LoadFailedError, "load", record_type, namespace, exc, id=id, path=path
            ) from exc

        self._log(logging.DEBUG, "load", record_type, namespace, id=id, path=path)
        return record

    async def load_all(self, record_type: type[T], *, namespace: str | None = None) -> list[T]:
        """Load every record of a type within a namespace.

        A missing directory yields an empty list. Records come back sorted by
        file name. If any file fails to load, nothing is returned.

        Raises:
            LoadFailedError: If the directory cannot be listed or any record
                cannot be read or decoded.
        """
        directory: Path | None = None
        records: list[T] = []
        try:
            directory = self.resolve_path(record_type, namespace=namespace)
            if not await self._fs.exists(directory):
                return records
            for path in await self._record_files(directory):
                data = await self._fs.read_file(path)
                records.append(self._codec.decode(data, record_type))
        except Exception as exc:
            raise self._failure(
                LoadFailedError, "load_all", record_type, namespace, exc, path=directory
            ) from exc

        self._log(
            logging.DEBUG, "load_all", record_type, namespace, path=directory, count=len(records)
        )
        return records

    async def store(self, record: Any, *, namespace: str | None = None) -> None:
        """Create or overwrite a record.

        Parent directories are created on demand; a failure to create them is
        only logged, since the write that follows reports any real problem.
        Once the write has started it runs to completion even if the calling
        task is cancelled; a failure at that point is logged instead of raised.

        Raises:
            StoreFailedError: If encoding fails or the file cannot be written.
                The previous content of the file is left intact.
        """
        record_type = type(record)
        try:
            data = self._codec.encode(record)
            path = self.resolve_path(record_type, record.id, namespace)
        except Exception as exc:
            raise self._failure(
                StoreFailedError,
                "store",
                record_type,
                namespace,
                exc,
                id=getattr(record, "id", None),
            ) from exc

        try:
            await self._fs.create_directory(path.parent)
        except OSError as exc:
            self._log(
                logging.WARNING,
                "create_directory_failed",
                record_type,
                namespace,
                path=path.parent,
                error=repr(exc),
            )

        write = asyncio.ensure_future(self._fs.write_file_atomic(path, data))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            write.add_done_callback(
                functools.partial(
                    self._report_detached_write, record_type, namespace, record.id, path
                )
            )
            raise
        except Exception as exc:
            raise self._failure(
                StoreFailedError, "store", record_type, namespace, exc, id=record.id, path=path
            ) from exc

        self._log(logging.DEBUG, "store", record_type, namespace, id=record.id, path=path)

    async def delete(self, record: Any, *, namespace: str | None = None) -> None:
        """Delete a record. Deleting a record that does not exist is a no-op.

        Raises:
            DeleteFailedError: If the file exists but cannot be removed.
        """
        record_type = type(record)
        path: Path | None = None
        try:
            path = self.resolve_path(record_type, record.id, namespace)
            if not await self._fs.exists(path):
                return
            await self._fs.remove_file(path)
        except FileNotFoundError:
            # Removed concurrently between the existence check and the unlink.
            return
        except Exception as exc:
            raise self._failure(
                DeleteFailedError,
                "delete",
                record_type,
                namespace,
                exc,
                id=getattr(record, "id", None),
                path=path,
            ) from exc

        self._log(logging.DEBUG, "delete", record_type, namespace, id=record.id, path=path)

    async def delete_all(self, record_type: type[Any], *, namespace: str | None = None) -> None:
        """Delete every record of a type within a namespace.

        A missing directory counts as already empty. Namespace sub-folders of
        the type directory are not touched. Removal stops at the first
        failure; files removed before it stay removed.

        Raises:
            DeleteFailedError: If the directory cannot be listed or a record
                file cannot be removed.
        """
        directory: Path | None = None
        removed = 0
        try:
            directory = self.resolve_path(record_type, namespace=namespace)
            if not await self._fs.exists(directory):
                return
            for path in await self._record_files(directory):
                try:
                    await self._fs.remove_file(path)
                except FileNotFoundError:
                    continue
                removed += 1
        except Exception as exc:
            raise self._failure(
                DeleteFailedError,
                "delete_all",
                record_type,
                namespace,
                exc,
                path=directory,
                removed=removed,
            ) from exc

        self._log(
            logging.DEBUG, "delete_all", record_type, namespace, path=directory, count=removed
        )

    def _report_detached_write(
        self,
        record_type: type[Any],
        namespace: str | None,
        id: Any,
        path: Path,
        write: asyncio.Future[None],
    ) -> None:
        """Log the outcome of a write whose caller was cancelled."""
        if write.cancelled():
            return
        exc = write.exception()
        if exc is not None:
            self._log(
                logging.WARNING,
                "store_failed",
                record_type,
                namespace,
                id=id,
                path=path,
                error=repr(exc),
                detached=True,
            )
        else:
            self._log(
                logging.DEBUG, "store", record_type, namespace, id=id, path=path, detached=True
            )

    async def _record_files(self, directory: Path) -> list[Path]:
        """List record files in a directory, sorted by name.

        Skips sub-directories (namespaces) and in-flight temp files.
        """
        extension = self._codec.extension
        files = []
        for entry in sorted(await self._fs.list_directory(directory)):
            if entry.name.endswith(extension) and await self._fs.is_file(entry):
                files.append(entry)
        return files

    def _failure(
        self,
        error_cls: type[StorageError],
        operation: str,
        record_type: type[Any],
        namespace: str | None,
        cause: Exception,
        **fields: Any,
    ) -> StorageError:
        """Log a failed operation and build the error to raise."""
        self._log(
            logging.WARNING,
            f"{operation}_failed",
            record_type,
            namespace,
            error=repr(cause),
            **fields,
        )
        return error_cls(f"{operation} {record_type.__name__} failed: {cause}", cause)

    def _log(
        self,
        level: int,
        event: str,
        record_type: type[Any],
        namespace: str | None,
        id: Any = None,
        path: Path | None = None,
        **extra: Any,
    ) -> None:
        if not logger.isEnabledFor(level):
            return

        type_name = getattr(record_type, "__name__", repr(record_type))
        if self._structured_logging:
            log_entry = {
                "event": event,
                "type": type_name,
                "namespace": namespace or None,
                "id": None if id is None else str(id),
                "path": None if path is None else str(path),
                "timestamp": datetime.now(UTC).isoformat(),
                **extra,
            }
            logger.log(level, json.dumps(log_entry, default=str))
        else:
            logger.log(
                level,
                "%s type=%s namespace=%s id=%s path=%s %s",
                event,
                type_name,
                namespace,
                id,
                path,
                " ".join(f"{key}={value}" for key, value in extra.items()),
            )
