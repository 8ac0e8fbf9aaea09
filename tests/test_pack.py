import msgpack
import pytest

from webcfgsync.pack import DocRecord, PendingDoc, pack_blob, pack_db


def test_pack_db_wire_bytes():
    data = pack_db([DocRecord("root", 1)])
    expected = (
        b"\x81\xa8webcfgdb\x91\x82"
        b"\xa4name\xa4root"
        b"\xa7version\x01"
    )
    assert data == expected


def test_pack_db_round_trip_with_root_string():
    records = [DocRecord("root", 0, "NONE"), DocRecord("lan", 1234)]
    decoded = msgpack.unpackb(pack_db(records), raw=False)
    assert decoded == {
        "webcfgdb": [
            {"name": "root", "version": 0, "root_string": "NONE"},
            {"name": "lan", "version": 1234},
        ]
    }


def test_pack_db_key_order():
    decoded = msgpack.unpackb(pack_db([DocRecord("root", 9, "POST-NONE")]), raw=False)
    assert list(decoded["webcfgdb"][0]) == ["name", "version", "root_string"]


def test_pack_db_version_is_32_bit():
    decoded = msgpack.unpackb(pack_db([DocRecord("mesh", 2**32 + 5)]), raw=False)
    assert decoded["webcfgdb"][0]["version"] == 5


def test_pack_db_empty_raises():
    with pytest.raises(ValueError):
        pack_db([])


def test_pack_blob_db_entries_marked_success():
    decoded = msgpack.unpackb(pack_blob([DocRecord("lan", 3)], []), raw=False)
    assert decoded == {
        "webcfgblob": [
            {
                "name": "lan",
                "version": 3,
                "status": "success",
                "error_details": "none",
                "error_code": 0,
            }
        ]
    }


def test_pack_blob_db_entry_with_root_string():
    decoded = msgpack.unpackb(pack_blob([DocRecord("root", 0, "NONE")], []), raw=False)
    entry = decoded["webcfgblob"][0]
    assert entry["root_string"] == "NONE"
    assert list(entry) == ["name", "version", "status", "error_details", "error_code", "root_string"]


def test_pack_blob_skips_successful_and_missing_status():
    pending = [
        PendingDoc("lan", 3, "success"),
        PendingDoc("mesh", 4, None),
        PendingDoc("moca", 5, "failed", "doc_rejected:x", 204),
    ]
    decoded = msgpack.unpackb(pack_blob([DocRecord("root", 1)], pending), raw=False)
    names = [e["name"] for e in decoded["webcfgblob"]]
    assert names == ["root", "moca"]
    moca = decoded["webcfgblob"][1]
    assert moca["status"] == "failed"
    assert moca["error_details"] == "doc_rejected:x"
    assert moca["error_code"] == 204


def test_pack_blob_only_pending():
    pending = [PendingDoc("wan", 7, "pending", "none", 0)]
    decoded = msgpack.unpackb(pack_blob([], pending), raw=False)
    assert decoded["webcfgblob"][0]["name"] == "wan"
    assert decoded["webcfgblob"][0]["status"] == "pending"


def test_pack_blob_error_code_is_16_bit():
    pending = [PendingDoc("wan", 7, "failed", "none", 0x10000 + 190)]
    decoded = msgpack.unpackb(pack_blob([], pending), raw=False)
    assert decoded["webcfgblob"][0]["error_code"] == 190


def test_pack_blob_empty_raises():
    with pytest.raises(ValueError):
        pack_blob([], [])


def test_pack_blob_all_pending_success_gives_empty_array():
    decoded = msgpack.unpackb(pack_blob([], [PendingDoc("lan", 1, "success")]), raw=False)
    assert decoded == {"webcfgblob": []}