"""Decoding of msgpack documents wrapped in an outer map."""

from __future__ import annotations

import enum
from typing import Any, Callable, Mapping, Optional, TypeVar

import msgpack

T = TypeVar("T")


class HelperErrorCode(enum.IntEnum):
    """Reasons a conversion can fail."""

    OK = 0
    OUT_OF_MEMORY = 1
    INVALID_FIRST_ELEMENT = 2
    MISSING_WRAPPER = 3


class ObjectType(enum.Enum):
    """The kinds of value a msgpack document can hold."""

    NIL = "nil"
    BOOLEAN = "boolean"
    POSITIVE_INTEGER = "positive_integer"
    NEGATIVE_INTEGER = "negative_integer"
    FLOAT = "float"
    STR = "str"
    ARRAY = "array"
    MAP = "map"
    BIN = "bin"
    EXT = "ext"


class ConversionError(Exception):
    """A msgpack buffer could not be converted."""

    def __init__(self, code: HelperErrorCode, message: str = "") -> None:
        self.code = code
        super().__init__(message or code.name.lower().replace("_", " "))


def object_type(obj: Any) -> ObjectType:
    """Return the msgpack kind of a decoded value."""
    if obj is None:
        return ObjectType.NIL
    if isinstance(obj, bool):
        return ObjectType.BOOLEAN
    if isinstance(obj, int):
        return ObjectType.POSITIVE_INTEGER if obj >= 0 else ObjectType.NEGATIVE_INTEGER
    if isinstance(obj, float):
        return ObjectType.FLOAT
    if isinstance(obj, str):
        return ObjectType.STR
    if isinstance(obj, (bytes, bytearray)):
        return ObjectType.BIN
    if isinstance(obj, (list, tuple)):
        return ObjectType.ARRAY
    if isinstance(obj, dict):
        return ObjectType.MAP
    if isinstance(obj, (msgpack.ExtType, msgpack.Timestamp)):
        return ObjectType.EXT
    raise TypeError(f"not a msgpack value: {type(obj).__name__}")


def _key_matches(key: str, name: str) -> bool:
    # The key is compared over its own length only, so a key that is a
    # prefix of the wanted name also matches.
    return name.startswith(key)


def find_wrapper(name: str, expect_type: ObjectType, mapping: Mapping[Any, Any]) -> Any:
    """Return the value under a string key matching ``name`` with the expected type.

    Raises ConversionError with MISSING_WRAPPER when there is none.
    """
    for key, value in mapping.items():
        if (
            isinstance(key, str)
            and object_type(value) is expect_type
            and _key_matches(key, name)
        ):
            return value
    raise ConversionError(HelperErrorCode.MISSING_WRAPPER, f"missing wrapper {name!r}")


def _unpack_first(buf: bytes) -> Any:
    unpacker = msgpack.Unpacker(
        raw=False,
        use_list=True,
        strict_map_key=False,
        unicode_errors="surrogateescape",
    )
    unpacker.feed(bytes(buf))
    try:
        return unpacker.unpack()
    except Exception as exc:
        raise ConversionError(
            HelperErrorCode.INVALID_FIRST_ELEMENT, f"cannot decode first element: {exc}"
        ) from exc


def convert(
    buf: Optional[bytes],
    process: Callable[[Any], T],
    wrapper: Optional[str] = None,
    expect_type: ObjectType = ObjectType.MAP,
    optional: bool = False,
) -> Optional[T]:
    """Decode the first msgpack object of ``buf`` and hand it to ``process``.

    The outermost object must be a map. When ``wrapper`` is given, the value
    under that key (of ``expect_type``) is processed instead of the whole map.
    Returns None for an empty buffer, or when the wrapper is optional and
    absent. Anything after the first object is ignored.
    """
    if not buf:
        return None
    outer = _unpack_first(buf)
    if not isinstance(outer, dict):
        raise ConversionError(
            HelperErrorCode.INVALID_FIRST_ELEMENT,
            f"first element is {object_type(outer).value}, expected map",
        )
    inner: Any = outer
    if wrapper is not None:
        try:
            inner = find_wrapper(wrapper, expect_type, outer)
        except ConversionError:
            if optional:
                return None
            raise
    return process(inner)