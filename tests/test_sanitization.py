"""Tests for bounded text and digest normalization."""

from coverage_ledger.utils.sanitization import (
    MAX_BRAND,
    MAX_REASON,
    MAX_STATUS,
    normalize_digest,
    sanitize_brand,
    sanitize_reason,
    sanitize_status,
)


def test_control_characters_are_stripped():
    assert sanitize_reason("Bell\x07 cracked\x00\n") == "Bell cracked"


def test_newlines_and_tabs_inside_text_are_kept():
    assert sanitize_reason("line one\nline\ttwo") == "line one\nline\ttwo"


def test_text_is_truncated_to_bound():
    assert len(sanitize_brand("b" * 200)) == MAX_BRAND
    assert len(sanitize_reason("r" * 1000)) == MAX_REASON
    assert len(sanitize_status("s" * 100)) == MAX_STATUS


def test_none_and_non_string_become_empty():
    assert sanitize_brand(None) == ""
    assert sanitize_status(42) == ""


def test_digest_from_bytes():
    raw = bytes(range(32))
    assert normalize_digest(raw, 32) == raw
    assert normalize_digest(bytearray(raw), 32) == raw


def test_digest_from_hex():
    assert normalize_digest("00" * 32, 32) == bytes(32)
    assert normalize_digest("0x" + "ff" * 32, 32) == b"\xff" * 32
    assert normalize_digest("  " + "AB" * 32 + " ", 32) == b"\xab" * 32


def test_malformed_digests():
    assert normalize_digest(b"\x00" * 31, 32) is None
    assert normalize_digest("abc", 32) is None
    assert normalize_digest("gg" * 32, 32) is None
    assert normalize_digest(None, 32) is None
    assert normalize_digest(12345, 32) is None
