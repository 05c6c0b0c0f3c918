"""Entity Store.

Async, file-per-record persistence: each record lives in its own file under
``<root>/<TypeName>/[<namespace>/]<id>.json``.
"""

from entity_store.codec import Codec, JsonCodec
from entity_store.errors import (
    DeleteFailedError,
    LoadFailedError,
    StorageError,
    StoreFailedError,
)
from entity_store.filesystem import FileSystem, LocalFileSystem
from entity_store.models import Record, StoreConfig
from entity_store.store import Store

__version__ = "0.1.0"

__all__ = [
    "Codec",
    "DeleteFailedError",
    "FileSystem",
    "JsonCodec",
    "LoadFailedError",
    "LocalFileSystem",
    "Record",
    "StorageError",
    "Store",
    "StoreConfig",
    "StoreFailedError",
]
