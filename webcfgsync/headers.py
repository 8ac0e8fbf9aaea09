"""Request headers for a sync and the response headers it reads back."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from webcfgsync.multipart import _strtoul
from webcfgsync.textutil import generate_transaction_id, strip_spaces

ETAG_HEADER = "Etag:"
CONTENT_LENGTH_HEADER = "Content-Length:"
MAX_HEADER_LEN = 4096
SCHEMA_VERSION = "v1.0"
TELEMETRY_PROFILE_VERSION = "2.0"

_FIELD_LEN = 63


def _field(value: Optional[str]) -> str:
    return (value or "")[:_FIELD_LEN]


@dataclass
class DeviceInfo:
    """Device properties announced in the sync request."""

    boot_time: Optional[str] = None
    firmware_version: Optional[str] = None
    system_ready_time: Optional[str] = None
    product_class: Optional[str] = None
    model_name: Optional[str] = None
    partner_id: Optional[str] = None
    account_id: Optional[str] = None


def build_sync_headers(
    auth_token: Optional[str],
    versions: Optional[str],
    device: DeviceInfo,
    status: int = 0,
    transaction_id: Optional[str] = None,
    supplementary: bool = False,
    supported_docs: Optional[str] = None,
    supported_version: Optional[str] = None,
    supplementary_docs: Optional[str] = None,
    current_time: Optional[int] = None,
) -> Tuple[List[str], str]:
    """Return the request header lines and the transaction id they carry.

    ``versions`` is the version list sent as IF-NONE-MATCH on a primary sync.
    A new transaction id is generated when none is given, and the current
    time is taken from the clock when none is given.
    """
    headers: List[str] = []

    token = auth_token if auth_token else "(null)"
    headers.append(f"Authorization:Bearer {token}"[: MAX_HEADER_LEN - 1])

    if not supplementary:
        headers.append(f"IF-NONE-MATCH:{versions or '0'}")

    headers.append("Accept: application/msgpack")
    headers.append(f"Schema-Version: {SCHEMA_VERSION}")

    if not supplementary:
        if supported_version is not None:
            headers.append(f"X-System-Schema-Version: {supported_version}")
        if supported_docs is not None:
            headers.append(f"X-System-Supported-Docs: {supported_docs}")
    elif supplementary_docs is not None:
        headers.append(f"X-System-SupplementaryService-Sync: {supplementary_docs}")

    boot_time = _field(device.boot_time)
    if boot_time:
        headers.append(f"X-System-Boot-Time: {boot_time}")

    firmware = _field(device.firmware_version)
    if firmware:
        headers.append(f"X-System-Firmware-Version: {firmware}")

    state = "Non-Operational" if status != 0 else "Operational"
    headers.append(f"X-System-Status: {state}")

    now = int(time.time()) if current_time is None else int(current_time)
    headers.append(f"X-System-Current-Time: {now}")

    ready_time = _field(device.system_ready_time)
    if ready_time:
        headers.append(f"X-System-Ready-Time: {ready_time}")

    if not transaction_id:
        transaction_id = generate_transaction_id()
    headers.append(f"Transaction-ID: {transaction_id}")

    product_class = _field(device.product_class)
    if product_class:
        headers.append(f"X-System-Product-Class: {product_class}")

    model_name = _field(device.model_name)
    if model_name:
        headers.append(f"X-System-Model-Name: {model_name}")

    if supplementary:
        headers.append(f"X-System-Telemetry-Profile-Version: {TELEMETRY_PROFILE_VERSION}")
        partner_id = _field(device.partner_id)
        if partner_id:
            headers.append(f"X-System-PartnerID: {partner_id}")
        account_id = _field(device.account_id)
        if account_id:
            headers.append(f"X-System-AccountID: {account_id}")

    return headers, transaction_id


def _last_value(line: str) -> Optional[str]:
    tokens = [token for token in line.split(":") if token]
    if len(tokens) < 2:
        return None
    return strip_spaces(tokens[-1][:_FIELD_LEN])


class SyncHeaderState:
    """What the response headers of a sync have told so far."""

    def __init__(self) -> None:
        self.etag: str = ""
        self.content_length: Optional[str] = None

    def handle_header(self, line: Union[str, bytes], supplementary: bool = False) -> int:
        """Take note of an Etag or Content-Length header line.

        The Etag is only recorded for a primary sync. Returns the length of
        the line, as a header callback does.
        """
        if isinstance(line, (bytes, bytearray)):
            line = bytes(line).decode("utf-8", "surrogateescape")
        if len(line) > len(ETAG_HEADER):
            lowered = line.lower()
            if lowered.startswith(ETAG_HEADER.lower()):
                value = _last_value(line)
                if value is not None and not supplementary:
                    self.etag = value[:_FIELD_LEN]
            elif lowered.startswith(CONTENT_LENGTH_HEADER.lower()):
                value = _last_value(line)
                if value is not None:
                    self.content_length = value
        return len(line)

    def root_version(self) -> int:
        """The root version announced by the Etag, as a 32-bit number."""
        return _strtoul(self.etag.encode("utf-8", "surrogateescape"))