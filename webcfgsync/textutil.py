"""Small text and file helpers used while preparing a sync request."""

from __future__ import annotations

import os
import uuid
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

INIT_URL_KEY = "WEBCONFIG_INIT_URL"
INTERFACE_KEY = "WEBCONFIG_INTERFACE"


def replace_mac_word(text: str, mac_word: str, device_mac: Optional[str]) -> Optional[str]:
    """Replace every occurrence of ``mac_word`` in ``text`` with ``device_mac``.

    Occurrences are replaced left to right without overlapping. Returns None
    when no device MAC is known.
    """
    if device_mac is None:
        return None
    if not mac_word:
        raise ValueError("mac_word must not be empty")
    return text.replace(mac_word, device_mac)


def strip_spaces(text: str) -> str:
    """Remove all spaces, newlines and carriage returns from a header value."""
    return text.translate({ord(" "): None, ord("\n"): None, ord("\r"): None})


def read_properties_value(path: PathLike, key: str) -> Optional[str]:
    """Return the value of the first ``key=`` entry found in a properties file.

    The entry may appear anywhere on a line; the value is the rest of that
    line without its line ending. Returns None when the file cannot be read
    or holds no such entry.
    """
    marker = f"{key}="
    try:
        with open(path, "r", encoding="utf-8", errors="surrogateescape") as handle:
            for line in handle:
                position = line.find(marker)
                if position < 0:
                    continue
                value = line[position + len(marker):]
                if value.endswith("\n"):
                    value = value[:-1]
                return value
    except OSError:
        return None
    return None


def load_init_url(path: PathLike) -> Optional[str]:
    """Return the initial sync URL configured in a device properties file."""
    return read_properties_value(path, INIT_URL_KEY)


def load_interface(path: PathLike) -> Optional[str]:
    """Return the network interface configured in a device properties file."""
    return read_properties_value(path, INTERFACE_KEY)


def read_file(path: PathLike) -> bytes:
    """Read a file whole, leaving out its final byte (normally the closing newline).

    Raises OSError when the file cannot be opened and ValueError when nothing
    is left to return.
    """
    with open(path, "rb") as handle:
        content = handle.read()
    data = content[:-1]
    if not data:
        raise ValueError(f"no data read from {os.fspath(path)!r}")
    return data


def generate_transaction_id() -> str:
    """Return a new random transaction identifier in canonical UUID form."""
    return str(uuid.uuid4())