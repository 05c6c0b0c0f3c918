"""Base protocol for record codecs."""

from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class Codec(Protocol):
    """Protocol for turning records into bytes and back."""

    @property
    def extension(self) -> str:
        """File extension for encoded records, including the leading dot."""
        ...

    def encode(self, record: Any) -> bytes:
        """Encode a record to bytes."""
        ...

    def decode(self, data: bytes, record_type: type[T]) -> T:
        """Decode bytes into an instance of ``record_type``."""
        ...
