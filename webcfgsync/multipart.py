"""Splitting of a multipart sync response into its sub-documents."""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from webcfgsync.notify import WebcfgErrorCode

logger = logging.getLogger(__name__)

MAX_PARAMETERNAME_LEN = 4096
SUBDOC_TAG_COUNT = 4

_ULONG_MAX = 0xFFFFFFFFFFFFFFFF
_C_SPACE = b" \t\n\v\f\r"


class MultipartError(Exception):
    """A multipart response or one of its parts could not be used.

    ``code`` is the failure kind reported to the cloud, when there is one;
    ``namespace`` names the sub-document concerned, when it is known.
    """

    def __init__(
        self,
        message: str,
        code: Optional[WebcfgErrorCode] = None,
        namespace: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.namespace = namespace


@dataclass
class MultipartDoc:
    """One sub-document taken from a multipart response."""

    etag: int
    name_space: str
    data: bytes
    supplementary: bool = False

    @property
    def data_size(self) -> int:
        return len(self.data)


class MultipartCache:
    """The thread-safe, ordered list of sub-documents of the latest syncs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: List[MultipartDoc] = []

    def add(self, doc: MultipartDoc) -> None:
        """Append a document at the end of the list."""
        with self._lock:
            self._docs.append(doc)

    def delete(self, name: str) -> MultipartDoc:
        """Remove and return the first document with the given namespace.

        Raises KeyError when there is none.
        """
        with self._lock:
            for position, doc in enumerate(self._docs):
                if doc.name_space == name:
                    return self._docs.pop(position)
        raise KeyError(name)

    def delete_for_sync(self, supplementary: bool) -> int:
        """Remove every document of the given sync kind; return how many went."""
        with self._lock:
            kept = [doc for doc in self._docs if doc.supplementary != supplementary]
            removed = len(self._docs) - len(kept)
            self._docs = kept
        return removed

    def clear(self) -> None:
        """Remove every document."""
        with self._lock:
            self._docs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)

    def __iter__(self) -> Iterator[MultipartDoc]:
        with self._lock:
            snapshot = list(self._docs)
        return iter(snapshot)


def parse_boundary(content_type: Optional[str]) -> Optional[str]:
    """Return the boundary named in a ``multipart/mixed; boundary=...`` header.

    The boundary is the second '='-separated token of the second
    ';'-separated field. Returns None when there is none.
    """
    if not content_type:
        return None
    fields = [field for field in content_type.split(";") if field]
    if len(fields) < 2:
        return None
    tokens = [token for token in fields[1].split("=") if token]
    if len(tokens) < 2:
        return None
    return tokens[1]


def _boundary_marks(data: bytes, line_boundary: bytes, last_boundary: bytes) -> List[Tuple[int, bool]]:
    # Each line is checked once, at its first '-'. Marks are (offset, is_last).
    marks: List[Tuple[int, bool]] = []
    position = 0
    while position < len(data):
        dash = data.find(b"-", position)
        if dash < 0:
            break
        if data.startswith(last_boundary, dash):
            marks.append((dash, True))
            break
        if data.startswith(line_boundary, dash):
            marks.append((dash, False))
        newline = data.find(b"\n", dash)
        if newline < 0:
            break
        position = newline + 1
    return marks


def split_parts(data: bytes, boundary: str) -> List[bytes]:
    """Return the body of each part of a multipart document.

    A part runs from the line after ``--boundary`` to just before the
    CRLF that precedes the next boundary line. Scanning stops at the
    closing ``--boundary--``; a part with no following boundary is dropped.
    """
    encoded = boundary.encode("utf-8")
    line_boundary = b"--" + encoded + b"\r\n"
    last_boundary = b"--" + encoded + b"--"
    marks = _boundary_marks(bytes(data), line_boundary, last_boundary)
    parts: List[bytes] = []
    for (start, is_last), (end, _) in zip(marks, marks[1:]):
        if is_last:
            break
        body_start = start + len(line_boundary)
        parts.append(bytes(data[body_start:max(end - 2, body_start)]))
    return parts


def _strtoul(text: bytes) -> int:
    """Parse an unsigned number with automatic base, as a 32-bit value."""
    position = 0
    while position < len(text) and text[position] in _C_SPACE:
        position += 1
    negative = False
    if position < len(text) and text[position : position + 1] in (b"+", b"-"):
        negative = text[position : position + 1] == b"-"
        position += 1
    rest = text[position:]
    if rest[:2].lower() == b"0x" and rest[2:3] and rest[2:3] in b"0123456789abcdefABCDEF":
        base, digits = 16, rest[2:]
    elif rest[:1] == b"0":
        base, digits = 8, rest
    else:
        base, digits = 10, rest
    value = 0
    for byte in digits:
        try:
            digit = int(chr(byte), 16)
        except ValueError:
            break
        if digit >= base:
            break
        value = value * base + digit
    if value > _ULONG_MAX:
        value = _ULONG_MAX
    elif negative:
        value = (-value) & _ULONG_MAX
    return value & 0xFFFFFFFF


def _until_nul(raw: bytes) -> bytes:
    return raw.split(b"\0", 1)[0]


def _parse_line(line: bytes, fields: dict) -> None:
    if line.startswith(b"Content-type"):
        content_type = _until_nul(line[len(b"Content-type: "):])
        if not content_type.startswith(b"application/msgpack"):
            logger.error("Content-type not msgpack: %s", content_type.decode("utf-8", "replace"))
    elif line[:9].lower() == b"namespace":
        fields["name_space"] = _until_nul(line[len(b"Namespace: "):]).decode(
            "utf-8", "surrogateescape"
        )
    elif line[:4].lower() == b"etag":
        fields["etag"] = _strtoul(_until_nul(line[len(b"Etag: "):]))
    elif b"parameters" in _until_nul(line):
        fields["data"] = line


def parse_subdoc(part: bytes) -> MultipartDoc:
    """Parse the body of one part: four header lines, then the msgpack data.

    Raises MultipartError when the etag, namespace or data is missing; its
    code is MULTIPART_CACHE_NULL when at least the namespace was found.
    """
    content = bytes(part)
    size = len(content)
    fields: dict = {"etag": 0, "name_space": None, "data": None}
    position = 0
    count = 0
    while position <= size:
        if count < SUBDOC_TAG_COUNT:
            end = content.find(b"\n", position)
            if end < 0:
                break
            line_end = end
            if end == 0 or content[end - 1 : end] != b"\r":
                following = content.find(b"\n", end + 1)
                if following >= 0:
                    line_end = following
            _parse_line(content[position:max(line_end - 1, position)], fields)
            position = end + 1
            count += 1
        else:
            _parse_line(content[position:size], fields)
            break

    etag, name_space, data = fields["etag"], fields["name_space"], fields["data"]
    if etag != 0 and name_space is not None and data:
        return MultipartDoc(etag=etag, name_space=name_space, data=data)
    if name_space is not None:
        raise MultipartError(
            f"incomplete sub-document {name_space!r}",
            code=WebcfgErrorCode.MULTIPART_CACHE_NULL,
            namespace=name_space,
        )
    raise MultipartError("sub-document without namespace")


def parse_multipart_document(
    data: bytes,
    content_type: str,
    cache: MultipartCache,
    supplementary: bool = False,
) -> Tuple[List[MultipartDoc], List[str]]:
    """Split a multipart response into the cache.

    Documents of the same sync kind already in the cache are dropped first.
    Returns the documents added and the namespaces of incomplete parts.
    Raises MultipartError when the boundary is missing or the cache ends up
    empty.
    """
    boundary = parse_boundary(content_type)
    if boundary is None:
        raise MultipartError(
            "multipart boundary is missing",
            code=WebcfgErrorCode.MULTIPART_BOUNDARY_NULL,
        )
    cache.delete_for_sync(supplementary)
    added: List[MultipartDoc] = []
    rejected: List[str] = []
    for part in split_parts(data, boundary):
        try:
            doc = parse_subdoc(part)
        except MultipartError as exc:
            if exc.namespace is not None:
                rejected.append(exc.namespace)
            continue
        doc = dataclasses.replace(doc, supplementary=supplementary)
        cache.add(doc)
        added.append(doc)
    if len(cache) == 0:
        raise MultipartError("multipart list is empty")
    return added, rejected


def _text_length(value: Any) -> int:
    if isinstance(value, (bytes, bytearray)):
        return len(_until_nul(bytes(value)))
    return len(str(value).encode("utf-8", "surrogateescape"))


def validate_request_params(params: Iterable[Any]) -> None:
    """Check that every parameter has a non-empty name and value.

    Names must be shorter than MAX_PARAMETERNAME_LEN bytes. Raises
    MultipartError with BLOB_PARAM_VALIDATION_FAILURE otherwise.
    """
    for param in params:
        name = getattr(param, "name", None)
        value = getattr(param, "value", None)
        if name is None or value is None or _text_length(name) == 0 or _text_length(value) == 0:
            raise MultipartError(
                "parameter name/value is empty",
                code=WebcfgErrorCode.BLOB_PARAM_VALIDATION_FAILURE,
            )
        if _text_length(name) >= MAX_PARAMETERNAME_LEN:
            raise MultipartError(
                "parameter name is too long",
                code=WebcfgErrorCode.BLOB_PARAM_VALIDATION_FAILURE,
            )