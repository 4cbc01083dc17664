"""Base64 encoding and the lenient decoder used for proxy credentials."""

from __future__ import annotations

import base64

__all__ = ["encoded_size", "encode", "decode"]

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_DECODE = {char: value for value, char in enumerate(_ALPHABET)}

_MAX_INPUT = 0xFFFFFFFF // 4


def encoded_size(length: int) -> int:
    """Return the length of the base64 text for ``length`` input bytes."""
    if length < 0:
        raise ValueError("length must not be negative")
    return (length + 2) // 3 * 4


def encode(data: bytes) -> str:
    """Encode ``data`` as padded base64 text."""
    data = bytes(data)
    if len(data) >= _MAX_INPUT:
        raise ValueError("input too large to encode")
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode base64 ``text``.

    Decoding stops at the first ``=`` (or NUL); anything after it is ignored.
    A character outside the base64 alphabet raises ``ValueError``.
    """
    out = bytearray()
    acc = 0
    for position, char in enumerate(text):
        if char in ("=", "\0"):
            break
        value = _DECODE.get(char)
        if value is None:
            raise ValueError(f"invalid base64 character {char!r} at {position}")
        acc = ((acc << 6) | value) & 0xFFFFFF
        phase = position & 3
        if phase:
            out.append((acc >> (6 - 2 * phase)) & 0xFF)
    return bytes(out)