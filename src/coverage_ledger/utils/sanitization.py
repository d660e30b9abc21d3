"""Normalization of bounded text and digest inputs before they reach the store."""

import re

# Maximum lengths for text fields (characters)
MAX_BRAND = 50
MAX_REASON = 256
MAX_STATUS = 32

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HEX_DIGEST = re.compile(r"^(0x)?[0-9a-fA-F]+$")


def _sanitize_text(text: str | None, max_length: int) -> str:
    """Strip control characters and truncate to max_length."""
    if text is None or not isinstance(text, str):
        return ""
    cleaned = _CONTROL_CHARS.sub("", text).strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    return cleaned


def sanitize_brand(brand: str | None) -> str:
    return _sanitize_text(brand, MAX_BRAND)


def sanitize_reason(reason: str | None) -> str:
    return _sanitize_text(reason, MAX_REASON)


def sanitize_status(status: str | None) -> str:
    return _sanitize_text(status, MAX_STATUS)


def normalize_digest(value: bytes | bytearray | str | None, size: int) -> bytes | None:
    """Return the digest as exactly ``size`` bytes, or None if it is malformed.

    Accepts raw bytes or a hex string (optionally 0x-prefixed).
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str) and _HEX_DIGEST.match(value.strip()):
        text = value.strip()
        if text.startswith("0x"):
            text = text[2:]
        if len(text) % 2:
            return None
        raw = bytes.fromhex(text)
    else:
        return None
    return raw if len(raw) == size else None
