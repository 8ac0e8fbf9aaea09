"""Msgpack encoding of the stored document list and its status blob."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import msgpack

DB_KEY = "webcfgdb"
BLOB_KEY = "webcfgblob"


@dataclass
class DocRecord:
    """A document stored in the local database."""

    name: str
    version: int
    root_string: Optional[str] = None


@dataclass
class PendingDoc:
    """A document of the current sync that is still being applied."""

    name: str
    version: int
    status: Optional[str]
    error_details: str = "none"
    error_code: int = 0


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


def _u16(value: int) -> int:
    return value & 0xFFFF


def pack_db(records: Iterable[DocRecord]) -> bytes:
    """Encode the document database as ``{"webcfgdb": [...]}``."""
    records = list(records)
    if not records:
        raise ValueError("no documents to pack")
    entries: List[Dict[str, Any]] = []
    for record in records:
        entry: Dict[str, Any] = {"name": record.name, "version": _u32(record.version)}
        if record.root_string is not None:
            entry["root_string"] = record.root_string
        entries.append(entry)
    return msgpack.packb({DB_KEY: entries}, use_bin_type=True)


def pack_blob(records: Iterable[DocRecord], pending: Iterable[PendingDoc]) -> bytes:
    """Encode stored documents and unfinished pending ones as ``{"webcfgblob": [...]}``.

    Stored documents are reported as successful. Pending documents whose
    status is missing or "success" are left out to avoid duplicates.
    """
    records = list(records)
    pending = list(pending)
    if not records and not pending:
        raise ValueError("no documents to pack")
    entries: List[Dict[str, Any]] = []
    for record in records:
        entry: Dict[str, Any] = {
            "name": record.name,
            "version": _u32(record.version),
            "status": "success",
            "error_details": "none",
            "error_code": 0,
        }
        if record.root_string is not None:
            entry["root_string"] = record.root_string
        entries.append(entry)
    for doc in pending:
        if doc.status is None or doc.status == "success":
            continue
        entries.append(
            {
                "name": doc.name,
                "version": _u32(doc.version),
                "status": doc.status,
                "error_details": doc.error_details,
                "error_code": _u16(doc.error_code),
            }
        )
    return msgpack.packb({BLOB_KEY: entries}, use_bin_type=True)