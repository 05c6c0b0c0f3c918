"""JSON codec for dataclass records."""

import dataclasses
import json
import types
import typing
from collections.abc import Mapping
from typing import Any, TypeVar

from entity_store.codec.base import Codec

T = TypeVar("T")


class JsonCodec(Codec):
    """Encode records as UTF-8 JSON objects.

    Records may provide ``to_dict()`` / ``from_dict()`` hooks; otherwise
    dataclass instances are serialized via `dataclasses.asdict()` and rebuilt
    field by field from their type hints, including nested dataclasses and
    tuple fields.

    Example:
        ```python
        codec = JsonCodec(indent=2)
        data = codec.encode(Note(id=1, text="hi"))
        note = codec.decode(data, Note)
        ```
    """

    def __init__(self, indent: int | None = None, sort_keys: bool = False) -> None:
        """Initialize the codec.

        Args:
            indent: Indentation passed to `json.dumps` (None for compact).
            sort_keys: Whether to sort object keys in the output.
        """
        self._indent = indent
        self._sort_keys = sort_keys

    @property
    def extension(self) -> str:
        return ".json"

    def encode(self, record: Any) -> bytes:
        """Encode a record to JSON bytes.

        Args:
            record: A record with ``to_dict()``, a dataclass instance or a mapping.

        Returns:
            The UTF-8 encoded JSON document.

        Raises:
            TypeError: If the record cannot be converted to a dict or holds
                values JSON cannot represent.
        """
        if hasattr(record, "to_dict") and callable(record.to_dict):
            payload = record.to_dict()
        elif dataclasses.is_dataclass(record) and not isinstance(record, type):
            payload = dataclasses.asdict(record)
        elif isinstance(record, Mapping):
            payload = dict(record)
        else:
            raise TypeError(f"Cannot encode {type(record).__name__} as a JSON object")

        text = json.dumps(
            payload,
            ensure_ascii=False,
            indent=self._indent,
            sort_keys=self._sort_keys,
        )
        return text.encode("utf-8")

    def decode(self, data: bytes, record_type: type[T]) -> T:
        """Decode JSON bytes into ``record_type``.

        Raises:
            ValueError: If the content is not valid JSON or not a JSON object.
            TypeError: If the object does not match the record's fields.
        """
        payload = json.loads(data.decode("utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(
                f"Expected a JSON object for {record_type.__name__}, "
                f"got {type(payload).__name__}"
            )

        return _rebuild(record_type, payload)  # type: ignore[no-any-return]


def _rebuild(record_type: type[Any], payload: dict[str, Any]) -> Any:
    """Build ``record_type`` from a decoded JSON object.

    Dataclass fields are converted back according to their type hints, so
    nested dataclasses and tuples come back as they were stored.
    """
    from_dict = getattr(record_type, "from_dict", None)
    if callable(from_dict):
        return from_dict(payload)
    if not dataclasses.is_dataclass(record_type):
        return record_type(**payload)

    hints = typing.get_type_hints(record_type)
    init_fields = [f for f in dataclasses.fields(record_type) if f.init]
    unknown = payload.keys() - {f.name for f in init_fields}
    if unknown:
        raise TypeError(f"{record_type.__name__} got unexpected fields: {sorted(unknown)}")

    kwargs = {
        f.name: _convert(payload[f.name], hints.get(f.name, Any))
        for f in init_fields
        if f.name in payload
    }
    return record_type(**kwargs)


def _convert(value: Any, hint: Any) -> Any:
    """Convert one decoded JSON value to match ``hint``."""
    if value is None:
        return None

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is typing.Union or origin is types.UnionType:
        options = [arg for arg in args if arg is not type(None)]
        if len(options) == 1:
            return _convert(value, options[0])
        return value

    if isinstance(hint, type) and dataclasses.is_dataclass(hint) and isinstance(value, dict):
        return _rebuild(hint, value)

    if (origin is tuple or hint is tuple) and isinstance(value, list):
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_convert(item, args[0]) for item in value)
        if args and len(args) == len(value):
            return tuple(_convert(item, arg) for item, arg in zip(args, value))
        return tuple(value)

    if origin is list and args and isinstance(value, list):
        return [_convert(item, args[0]) for item in value]

    if origin is dict and len(args) == 2 and isinstance(value, dict):
        return {key: _convert(item, args[1]) for key, item in value.items()}

    return value
