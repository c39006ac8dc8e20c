"""
Key and value codec.

Everything sent to Redis is canonical JSON text. Reads are decoded
against a shape supplied by the caller: any type pydantic can validate
(models, dataclasses, TypedDicts, builtins, ``list[int]``, ...). Without
a shape the plain JSON structure comes back (dict, list, str, int, float,
bool, None).

Usage:
    raw = encode(City(city="1", last_update="2222"))
    city = decode(raw, City)
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import PydanticUserError, TypeAdapter
from pydantic_core import from_json, to_json

from rediscache.cache.exceptions import SerializationError


@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def _get_adapter(shape: Any) -> TypeAdapter:
    try:
        hash(shape)
    except TypeError:
        return TypeAdapter(shape)
    return _adapter(shape)


def encode(value: Any) -> str:
    """
    Encode a key or value as JSON text.

    Raises:
        SerializationError: if the value has no JSON representation
    """
    try:
        return to_json(value).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise SerializationError(f"cannot encode {type(value).__name__}: {e}") from e


def decode(raw: str, shape: Optional[Any] = None) -> Any:
    """
    Decode JSON text, validating it into ``shape`` when one is given.

    Raises:
        SerializationError: if the text is not JSON or does not fit the shape
    """
    try:
        if shape is None:
            return from_json(raw)
        return _get_adapter(shape).validate_json(raw)
    except (ValueError, TypeError, PydanticUserError) as e:
        # PydanticUserError: the shape itself has no schema
        target = getattr(shape, "__name__", repr(shape)) if shape is not None else "json"
        raise SerializationError(f"cannot decode value as {target}: {e}") from e


__all__ = ["encode", "decode"]
