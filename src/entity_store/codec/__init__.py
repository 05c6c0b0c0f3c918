"""Record codecs."""

from entity_store.codec.base import Codec
from entity_store.codec.json_codec import JsonCodec

__all__ = [
    "Codec",
    "JsonCodec",
]
