"""Decoding of the "parameters" array carried by each configuration sub-document."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from webcfgsync.helpers import ConversionError, ObjectType, convert, object_type

_UINT16_MAX = 0xFFFF

_NAME_BIT = 1 << 1
_VALUE_BIT = 1 << 2
_TYPE_BIT = 1 << 0
_ALL_FIELDS = _TYPE_BIT | _NAME_BIT | _VALUE_BIT


class ParamErrorCode(enum.IntEnum):
    """Reasons a parameters document can fail to decode."""

    OK = 0
    OUT_OF_MEMORY = 1
    INVALID_FIRST_ELEMENT = 2
    INVALID_DATATYPE = 3
    INVALID_PM_OBJECT = 4
    INVALID_BLOB_OBJECT = 5


_MESSAGES = {
    ParamErrorCode.OK: "No errors.",
    ParamErrorCode.OUT_OF_MEMORY: "Out of memory.",
    ParamErrorCode.INVALID_FIRST_ELEMENT: "Invalid first element.",
    ParamErrorCode.INVALID_DATATYPE: "Invalid 'datatype' value.",
    ParamErrorCode.INVALID_PM_OBJECT: "Invalid 'parameters' array.",
    ParamErrorCode.INVALID_BLOB_OBJECT: "Invalid 'blob' object.",
}


def strerror(errnum: int) -> str:
    """Return a short description of a decoding error code."""
    for code, text in _MESSAGES.items():
        if code == errnum:
            return text
    return "Unknown error."


class ParamError(Exception):
    """A parameters document could not be decoded."""

    def __init__(self, code: ParamErrorCode) -> None:
        self.code = code
        super().__init__(strerror(code))


@dataclass
class Param:
    """One parameter: its name, value and data type."""

    name: Optional[str] = None
    value: Optional[str] = None
    value_size: int = 0
    type: int = 0

    @property
    def value_bytes(self) -> Optional[bytes]:
        """The value as the raw bytes it was sent as."""
        if self.value is None:
            return None
        return self.value.encode("utf-8", "surrogateescape")


@dataclass
class ParamDocument:
    """The decoded list of parameters of one sub-document."""

    entries: List[Param] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def _matches(key: str, name: str) -> bool:
    # Keys are compared over their own length only.
    return name.startswith(key)


def _process_entry(mapping: Mapping[Any, Any]) -> Param:
    param = Param()
    left = _ALL_FIELDS
    for key, value in mapping.items():
        if not left:
            break
        if not isinstance(key, str):
            continue
        kind = object_type(value)
        if kind is ObjectType.POSITIVE_INTEGER:
            if _matches(key, "dataType"):
                if value > _UINT16_MAX:
                    raise ParamError(ParamErrorCode.INVALID_DATATYPE)
                param.type = value
                left &= ~_TYPE_BIT
            elif _matches(key, "notify_attribute"):
                left = 0
        elif kind is ObjectType.STR:
            if _matches(key, "name"):
                param.name = value
                left &= ~_NAME_BIT
            if _matches(key, "value"):
                param.value = value
                param.value_size = len(value.encode("utf-8", "surrogateescape"))
                left &= ~_VALUE_BIT
    if left:
        raise ParamError(ParamErrorCode.INVALID_BLOB_OBJECT)
    return param


def _process_array(array: List[Any]) -> ParamDocument:
    entries: List[Param] = []
    for item in array:
        if not isinstance(item, dict):
            raise ParamError(ParamErrorCode.INVALID_PM_OBJECT)
        try:
            entries.append(_process_entry(item))
        except ParamError as exc:
            raise ParamError(ParamErrorCode.INVALID_BLOB_OBJECT) from exc
    return ParamDocument(entries)


def decode_params(buf: Optional[bytes]) -> ParamDocument:
    """Decode a msgpack ``{"parameters": [...]}`` document.

    An empty buffer, or a map without a "parameters" array, gives an empty
    document. Raises ParamError when the content is malformed.
    """
    try:
        document = convert(
            buf,
            _process_array,
            wrapper="parameters",
            expect_type=ObjectType.ARRAY,
            optional=True,
        )
    except ConversionError as exc:
        raise ParamError(ParamErrorCode(int(exc.code))) from exc
    return document if document is not None else ParamDocument()