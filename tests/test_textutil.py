import uuid

import pytest

from webcfgsync.textutil import (
    generate_transaction_id,
    load_init_url,
    load_interface,
    read_file,
    read_properties_value,
    replace_mac_word,
    strip_spaces,
)


def test_replace_mac_word_single():
    url = "https://cfg.example.com/api/v1/device/{mac}/config"
    result = replace_mac_word(url, "{mac}", "0a0b0c0d0e0f")
    assert result == "https://cfg.example.com/api/v1/device/0a0b0c0d0e0f/config"


def test_replace_mac_word_multiple_occurrences():
    result = replace_mac_word("{mac}-{mac}{mac}", "{mac}", "M")
    assert result == "M-MM"


def test_replace_mac_word_no_occurrence_keeps_text():
    text = "https://cfg.example.com/config"
    assert replace_mac_word(text, "{mac}", "0a0b0c0d0e0f") == text


def test_replace_mac_word_without_mac_returns_none():
    assert replace_mac_word("https://cfg.example.com/{mac}", "{mac}", None) is None


def test_replace_mac_word_empty_word_rejected():
    with pytest.raises(ValueError):
        replace_mac_word("abc", "", "x")


def test_replace_mac_word_removes_all_words():
    result = replace_mac_word("a{mac}b{mac}c", "{mac}", "0a0b0c0d0e0f")
    assert "{mac}" not in result
    assert result.count("0a0b0c0d0e0f") == 2


def test_strip_spaces_removes_whitespace_chars():
    assert strip_spaces(" 12345 \r\n") == "12345"


def test_strip_spaces_keeps_tabs_and_other_chars():
    assert strip_spaces("a\tb c") == "a\tbc"


def test_strip_spaces_empty():
    assert strip_spaces("") == ""


def _write(tmp_path, text):
    path = tmp_path / "device.properties"
    path.write_text(text)
    return path


def test_load_init_url_found(tmp_path):
    path = _write(
        tmp_path,
        "BOX_TYPE=test\nWEBCONFIG_INIT_URL=https://cfg.example.com/{mac}\nOTHER=1\n",
    )
    assert load_init_url(path) == "https://cfg.example.com/{mac}"


def test_load_interface_found(tmp_path):
    path = _write(tmp_path, "WEBCONFIG_INTERFACE=erouter0\n")
    assert load_interface(path) == "erouter0"


def test_load_interface_missing_key(tmp_path):
    path = _write(tmp_path, "BOX_TYPE=test\n")
    assert load_interface(path) is None


def test_missing_file_gives_none(tmp_path):
    assert load_init_url(tmp_path / "absent.properties") is None


def test_read_properties_first_entry_wins(tmp_path):
    path = _write(tmp_path, "KEY=first\nKEY=second\n")
    assert read_properties_value(path, "KEY") == "first"


def test_read_properties_key_inside_line(tmp_path):
    path = _write(tmp_path, "export KEY=value\n")
    assert read_properties_value(path, "KEY") == "value"


def test_read_file_drops_last_byte(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"payload\n")
    assert read_file(path) == b"payload"


def test_read_file_too_short(tmp_path):
    path = tmp_path / "one.bin"
    path.write_bytes(b"\n")
    with pytest.raises(ValueError):
        read_file(path)


def test_read_file_missing(tmp_path):
    with pytest.raises(OSError):
        read_file(tmp_path / "absent.bin")


def test_generate_transaction_id_is_uuid4():
    value = generate_transaction_id()
    assert len(value) == 36
    parsed = uuid.UUID(value)
    assert parsed.version == 4
    assert str(parsed) == value


def test_generate_transaction_id_unique():
    ids = {generate_transaction_id() for _ in range(50)}
    assert len(ids) == 50