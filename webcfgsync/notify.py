"""Queueing and delivery of sync status notifications."""

from __future__ import annotations

import collections
import enum
import json
import threading
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Tuple, Union

_DEVICE_ID_LEN = 31
_DEST_LEN = 511
_VERSION_LEN = 31

SendFn = Callable[[str, str, str], None]
MacSource = Union[str, None, Callable[[], Optional[str]]]


class WebcfgErrorCode(enum.Enum):
    """Failure kinds reported to the cloud."""

    DECODE_ROOT_FAILURE = enum.auto()
    INCORRECT_BLOB_TYPE = enum.auto()
    BLOB_PARAM_VALIDATION_FAILURE = enum.auto()
    WEBCONFIG_DATA_EMPTY = enum.auto()
    MULTIPART_BOUNDARY_NULL = enum.auto()
    INVALID_CONTENT_TYPE = enum.auto()
    ADD_TO_CACHE_LIST_FAILURE = enum.auto()
    FAILED_TO_SET_BLOB = enum.auto()
    MULTIPART_CACHE_NULL = enum.auto()
    AKER_SUBDOC_PROCESSING_FAILED = enum.auto()
    AKER_RESPONSE_PARSE_FAILURE = enum.auto()
    INVALID_AKER_RESPONSE = enum.auto()
    LIBPARODUS_RECEIVE_FAILURE = enum.auto()
    COMPONENT_EVENT_PARSE_FAILURE = enum.auto()
    SUBDOC_RETRY_FAILED = enum.auto()


_ERRORS = {
    WebcfgErrorCode.DECODE_ROOT_FAILURE: (111, "decode_root_failure"),
    WebcfgErrorCode.INCORRECT_BLOB_TYPE: (211, "incorrect_blob_type"),
    WebcfgErrorCode.BLOB_PARAM_VALIDATION_FAILURE: (211, "blob_param_validation_failure"),
    WebcfgErrorCode.WEBCONFIG_DATA_EMPTY: (211, "webconfig_data_empty"),
    WebcfgErrorCode.MULTIPART_BOUNDARY_NULL: (211, "multipart_boundary_NULL"),
    WebcfgErrorCode.INVALID_CONTENT_TYPE: (211, "invalid_content_type"),
    WebcfgErrorCode.ADD_TO_CACHE_LIST_FAILURE: (311, "add_to_cache_list_failure"),
    WebcfgErrorCode.FAILED_TO_SET_BLOB: (311, "failed_to_set_blob"),
    WebcfgErrorCode.MULTIPART_CACHE_NULL: (311, "multipart_cache_NULL"),
    WebcfgErrorCode.AKER_SUBDOC_PROCESSING_FAILED: (411, "aker_subdoc_processing_failed"),
    WebcfgErrorCode.AKER_RESPONSE_PARSE_FAILURE: (411, "aker_response_parse_failure"),
    WebcfgErrorCode.INVALID_AKER_RESPONSE: (411, "invalid_aker_response"),
    WebcfgErrorCode.LIBPARODUS_RECEIVE_FAILURE: (411, "libparodus_receive_failure"),
    WebcfgErrorCode.COMPONENT_EVENT_PARSE_FAILURE: (511, "component_event_parse_failure"),
    WebcfgErrorCode.SUBDOC_RETRY_FAILED: (611, "subdoc_retry_failed"),
}


def error_code_and_message(status: object) -> Tuple[int, str]:
    """Return the numeric code and message reported for a failure kind."""
    return _ERRORS.get(status, (0, "Unknown Error"))  # type: ignore[arg-type]


@dataclass
class NotifyParams:
    """One queued notification."""

    name: Optional[str]
    application_status: Optional[str]
    version: Optional[str]
    error_details: Optional[str]
    transaction_uuid: Optional[str]
    type: Optional[str]
    timeout: int = 0
    error_code: int = 0
    response_code: int = 200


def _or_null(value: Optional[str]) -> str:
    return value if value is not None else "(null)"


class Notifier:
    """Queues notifications and delivers them through a send callback.

    ``send`` is called with the JSON payload, the source and the destination.
    """

    def __init__(self, device_mac: MacSource, send: SendFn) -> None:
        self._device_mac = device_mac
        self._send = send
        self._queue: Deque[NotifyParams] = collections.deque()
        self._cond = threading.Condition()
        self._shutdown = False
        self._thread: Optional[threading.Thread] = None

    def _mac(self) -> Optional[str]:
        if callable(self._device_mac):
            return self._device_mac()
        return self._device_mac

    def add(
        self,
        docname: Optional[str],
        version: int,
        status: Optional[str],
        error_details: Optional[str],
        transaction_uuid: Optional[str],
        timeout: int = 0,
        type: Optional[str] = "status",
        error_code: int = 0,
        root_string: Optional[str] = None,
        response_code: int = 200,
    ) -> NotifyParams:
        """Queue a notification and wake the delivery thread."""
        version &= 0xFFFFFFFF
        if version == 0 and root_string is not None:
            version_str = root_string[:_VERSION_LEN]
        else:
            version_str = str(version)
        params = NotifyParams(
            name=docname,
            application_status=status,
            version=version_str or None,
            error_details=error_details,
            transaction_uuid=transaction_uuid,
            type=type,
            timeout=timeout & 0xFFFFFFFF,
            error_code=error_code & 0xFFFF,
            response_code=response_code,
        )
        with self._cond:
            self._queue.append(params)
            self._cond.notify()
        return params

    def build_message(self, params: NotifyParams) -> Optional[Tuple[str, str, str]]:
        """Return (payload, source, destination), or None without a device MAC."""
        mac = self._mac()
        if not mac:
            return None
        device_id = f"mac:{mac}"[:_DEVICE_ID_LEN]
        payload: dict = {"device_id": device_id}
        if params.name is not None:
            payload["namespace"] = params.name or "unknown"
        if params.application_status is not None:
            payload["application_status"] = params.application_status
        if params.timeout != 0:
            payload["timeout"] = params.timeout
        if params.error_code != 0:
            payload["error_code"] = params.error_code
        if params.error_details is not None and params.error_details != "none":
            payload["error_details"] = params.error_details
        if params.response_code != 200:
            payload["http_status_code"] = params.response_code
        payload["transaction_uuid"] = params.transaction_uuid or "unknown"
        payload["version"] = params.version or "0"
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        if params.response_code == 200:
            dest = (
                f"event:subdoc-report/{_or_null(params.name)}/{device_id}/"
                f"{_or_null(params.type)}"
            )
        else:
            dest = f"event:rootdoc-report/{device_id}/{_or_null(params.type)}"
        return text, device_id, dest[:_DEST_LEN]

    def _deliver(self, params: NotifyParams) -> bool:
        message = self.build_message(params)
        if message is None:
            return False
        self._send(*message)
        return True

    def process_pending(self) -> int:
        """Deliver every queued notification now; return how many were sent."""
        sent = 0
        while True:
            with self._cond:
                if not self._queue:
                    return sent
                params = self._queue.popleft()
            if self._deliver(params):
                sent += 1

    def pending(self) -> List[NotifyParams]:
        """Return the notifications still waiting in the queue."""
        with self._cond:
            return list(self._queue)

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._queue and not self._shutdown:
                    self._cond.wait()
                if not self._queue:
                    return
                params = self._queue.popleft()
            self._deliver(params)

    def start(self) -> None:
        """Start the background delivery thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("notifier already running")
        with self._cond:
            self._shutdown = False
        self._thread = threading.Thread(
            target=self._run, name="webcfg-notify", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        """Deliver what is queued, then stop the delivery thread."""
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join()
            self._thread = None