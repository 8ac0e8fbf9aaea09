import json

import pytest

from webcfgsync.notify import (
    Notifier,
    NotifyParams,
    WebcfgErrorCode,
    error_code_and_message,
)

MAC = "aabbccddeeff"


@pytest.fixture
def sent():
    return []


@pytest.fixture
def notifier(sent):
    return Notifier(MAC, lambda payload, source, dest: sent.append((payload, source, dest)))


@pytest.mark.parametrize(
    "status, expected",
    [
        (WebcfgErrorCode.DECODE_ROOT_FAILURE, (111, "decode_root_failure")),
        (WebcfgErrorCode.MULTIPART_BOUNDARY_NULL, (211, "multipart_boundary_NULL")),
        (WebcfgErrorCode.FAILED_TO_SET_BLOB, (311, "failed_to_set_blob")),
        (WebcfgErrorCode.INVALID_AKER_RESPONSE, (411, "invalid_aker_response")),
        (WebcfgErrorCode.COMPONENT_EVENT_PARSE_FAILURE, (511, "component_event_parse_failure")),
        (WebcfgErrorCode.SUBDOC_RETRY_FAILED, (611, "subdoc_retry_failed")),
    ],
)
def test_error_code_and_message(status, expected):
    assert error_code_and_message(status) == expected


def test_unknown_error():
    assert error_code_and_message("bogus") == (0, "Unknown Error")


def test_add_queues_params(notifier):
    notifier.add("lan", 42, "success", "none", "tid", 0, "status", 0, None, 200)
    queued = notifier.pending()
    assert len(queued) == 1
    assert queued[0].name == "lan"
    assert queued[0].version == "42"


def test_root_string_used_for_zero_version(notifier):
    params = notifier.add("root", 0, "failed", "x", "tid", root_string="NONE-REBOOT")
    assert params.version == "NONE-REBOOT"


def test_root_string_ignored_for_nonzero_version(notifier):
    params = notifier.add("root", 7, "failed", "x", "tid", root_string="NONE")
    assert params.version == "7"


def test_subdoc_message(notifier):
    params = notifier.add("lan", 42, "success", "none", "tid", 0, "status", 0, None, 200)
    payload, source, dest = notifier.build_message(params)
    assert source == "mac:" + MAC
    assert dest == "event:subdoc-report/lan/mac:" + MAC + "/status"
    body = json.loads(payload)
    assert body == {
        "device_id": "mac:" + MAC,
        "namespace": "lan",
        "application_status": "success",
        "transaction_uuid": "tid",
        "version": "42",
    }
    assert list(body) == [
        "device_id",
        "namespace",
        "application_status",
        "transaction_uuid",
        "version",
    ]


def test_rootdoc_message_with_error_fields(notifier):
    params = notifier.add(
        "root", 9, "failed", "multipart_boundary_NULL", None, 30, "status", 211, None, 404
    )
    payload, _, dest = notifier.build_message(params)
    assert dest == "event:rootdoc-report/mac:" + MAC + "/status"
    body = json.loads(payload)
    assert body["http_status_code"] == 404
    assert body["error_code"] == 211
    assert body["timeout"] == 30
    assert body["error_details"] == "multipart_boundary_NULL"
    assert body["transaction_uuid"] == "unknown"


def test_empty_name_reported_as_unknown(notifier):
    params = NotifyParams("", "success", None, None, "", "status")
    body = json.loads(notifier.build_message(params)[0])
    assert body["namespace"] == "unknown"
    assert body["version"] == "0"
    assert body["transaction_uuid"] == "unknown"


def test_no_mac_means_no_message(sent):
    notifier = Notifier(lambda: "", lambda *a: sent.append(a))
    notifier.add("lan", 1, "success", "none", "tid")
    assert notifier.process_pending() == 0
    assert sent == []
    assert notifier.pending() == []


def test_process_pending_sends_in_order(notifier, sent):
    notifier.add("a", 1, "success", "none", "t1")
    notifier.add("b", 2, "success", "none", "t2")
    assert notifier.process_pending() == 2
    assert [json.loads(p)["namespace"] for p, _, _ in sent] == ["a", "b"]
    assert notifier.pending() == []


def test_background_thread_delivers_before_shutdown(notifier, sent):
    notifier.start()
    notifier.add("lan", 5, "success", "none", "tid")
    notifier.add("wan", 6, "failed", "doc_rejected", "tid")
    notifier.shutdown()
    assert [json.loads(p)["namespace"] for p, _, _ in sent] == ["lan", "wan"]
    assert notifier.pending() == []


def test_start_twice_raises(notifier):
    notifier.start()
    try:
        with pytest.raises(RuntimeError):
            notifier.start()
    finally:
        notifier.shutdown()