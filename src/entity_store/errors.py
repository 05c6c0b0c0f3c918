"""Error kinds raised by the Store.

Every filesystem or codec failure is re-raised as exactly one of the three
kinds below, chained to the original exception.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all store failures.

    Attributes:
        cause: The underlying exception, kept for diagnostics only.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class LoadFailedError(StorageError):
    """Raised when a record file is missing, unreadable or undecodable."""

    pass


class StoreFailedError(StorageError):
    """Raised when a record cannot be encoded or written."""

    pass


class DeleteFailedError(StorageError):
    """Raised when a record directory cannot be listed or a file removed."""

    pass
