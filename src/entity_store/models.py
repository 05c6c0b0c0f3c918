"""Domain models for the entity store.

This module defines the record protocol accepted by the store and the
configuration used to build one.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Record(Protocol):
    """Protocol for values the store can persist.

    A record only needs a stable ``id`` whose ``str()`` form is a valid file
    name. Encoding is left to the configured codec.

    Example:
        >>> from dataclasses import dataclass
        >>> @dataclass
        ... class Note:
        ...     id: int
        ...     text: str
        >>> isinstance(Note(id=1, text="hi"), Record)
        True
    """

    @property
    def id(self) -> Any:
        """Identifier unique within the record's (type, namespace) scope."""
        ...


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Configuration for a Store.

    Attributes:
        root: Container root under which all records are stored.
        indent: JSON indentation for written files (None for compact output).
        fsync: Whether atomic writes fsync the temp file before replacing.
        structured_logging: Whether to emit JSON log entries.
    """

    root: Path
    indent: int | None = None
    fsync: bool = True
    structured_logging: bool = True

