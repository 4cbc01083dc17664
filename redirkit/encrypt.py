"""Session encryption: table, stream-cipher and AEAD (SIP004) framing."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Any

from .ciphers import (
    AEAD_CHUNK_MAX,
    AEAD_TAG_LEN,
    Method,
    aead_decrypt,
    aead_encrypt,
    bytes_to_key,
    cipher_spec,
    hkdf_sha1,
    is_aead,
    make_nonce,
    md5_table,
    new_stream_cipher,
)

__all__ = ["CryptoError", "EncryptionInfo", "EncryptionContext"]

_LENGTH_FRAME = 2 + AEAD_TAG_LEN
# Stream (CFB/RC4) ciphers report a block size of one byte.
_STREAM_BLOCK_SIZE = 1


class CryptoError(Exception):
    """Raised when a method is unknown or data cannot be encrypted or decrypted."""


def _method_by_name(name: str | None) -> Method:
    if name is None:
        return Method.TABLE
    for method in Method:
        if method.cipher_name == name:
            return method
    raise CryptoError(f"invalid encryption method {name!r}")


@dataclass(frozen=True)
class EncryptionInfo:
    """Method and key material shared by all contexts of one configuration."""

    method: Method
    key: bytes = b""
    key_len: int = 0
    iv_len: int = 0
    enc_table: bytes | None = None
    dec_table: bytes | None = None

    @classmethod
    def from_password(cls, password: str | bytes, method: str | None = None) -> "EncryptionInfo":
        """Derive the key (or substitution tables) for ``method`` from ``password``.

        ``method`` is a configuration name such as ``aes-256-cfb``; ``None``
        selects the table method.
        """
        chosen = _method_by_name(method)
        if chosen == Method.TABLE:
            enc_table, dec_table = md5_table(password)
            return cls(method=chosen, enc_table=enc_table, dec_table=dec_table)

        spec = cipher_spec(chosen)
        key, _iv = bytes_to_key(password, spec.key_len, spec.iv_len)
        if not key:
            raise CryptoError("cannot generate key")
        if not is_aead(chosen):
            try:
                new_stream_cipher(chosen, key, bytes(spec.iv_len), True)
            except ValueError as exc:
                raise CryptoError(str(exc)) from exc
        return cls(method=chosen, key=key, key_len=spec.key_len, iv_len=spec.iv_len)


class _Direction(enum.Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class EncryptionContext:
    """State of one direction of an encrypted stream.

    The first call to :meth:`encrypt` or :meth:`decrypt` fixes the direction;
    it carries the IV or salt, later calls carry only data.
    """

    def __init__(self, info: EncryptionInfo) -> None:
        self.info = info
        self.initialized = False
        self.counter = 0
        self._direction: _Direction | None = None
        self._cipher: Any = None
        self._subkey = b""
        self._pending = b""

    def _claim(self, direction: _Direction) -> None:
        if self._direction is None:
            self._direction = direction
        elif self._direction is not direction:
            raise CryptoError(f"context is already used to {self._direction.value}")

    def _next_nonce(self) -> bytes:
        nonce = make_nonce(self.counter)
        self.counter += 1
        return nonce

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt ``data``; the first result starts with the IV or salt."""
        self._claim(_Direction.ENCRYPT)
        data = bytes(data)
        method = self.info.method
        if method == Method.TABLE:
            return data.translate(self.info.enc_table)
        if is_aead(method):
            return self._aead_encrypt(data)

        prefix = b""
        if not self.initialized:
            iv = os.urandom(self.info.iv_len)
            try:
                self._cipher = new_stream_cipher(method, self.info.key, iv, True)
            except ValueError as exc:
                raise CryptoError(str(exc)) from exc
            prefix = iv
            self.counter = 0
            self.initialized = True
        return prefix + self._cipher.update(data)

    def _aead_encrypt(self, data: bytes) -> bytes:
        out = bytearray()
        key_len = self.info.key_len
        if not self.initialized:
            salt = os.urandom(key_len)
            self._subkey = hkdf_sha1(self.info.key, salt, key_len)
            out += salt
            self.counter = 0
            self.initialized = True
        method = self.info.method
        for start in range(0, len(data), AEAD_CHUNK_MAX):
            chunk = data[start : start + AEAD_CHUNK_MAX]
            length = len(chunk).to_bytes(2, "big")
            out += aead_encrypt(self._subkey, method, self._next_nonce(), length)
            out += aead_encrypt(self._subkey, method, self._next_nonce(), chunk)
        return bytes(out)

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data``; the first call must start with the IV or salt."""
        self._claim(_Direction.DECRYPT)
        data = bytes(data)
        method = self.info.method
        if method == Method.TABLE:
            return data.translate(self.info.dec_table)
        if is_aead(method):
            return self._aead_decrypt(data)

        if not self.initialized:
            iv_len = self.info.iv_len
            if len(data) < iv_len:
                raise CryptoError("input shorter than the IV")
            try:
                self._cipher = new_stream_cipher(method, self.info.key, data[:iv_len], False)
            except ValueError as exc:
                raise CryptoError(str(exc)) from exc
            data = data[iv_len:]
            self.counter = 0
            self.initialized = True
        return self._cipher.update(data)

    def _aead_decrypt(self, data: bytes) -> bytes:
        key_len = self.info.key_len
        method = self.info.method
        if not self.initialized:
            if len(data) < key_len:
                raise CryptoError("input shorter than the salt")
            self._subkey = hkdf_sha1(self.info.key, data[:key_len], key_len)
            data = data[key_len:]
            self.counter = 0
            self.initialized = True

        buffer = self._pending + data
        out = bytearray()
        pos = 0
        while len(buffer) - pos >= _LENGTH_FRAME:
            frame = buffer[pos : pos + _LENGTH_FRAME]
            try:
                length_plain = aead_decrypt(
                    self._subkey, method, make_nonce(self.counter), frame[:2], frame[2:]
                )
            except ValueError as exc:
                raise CryptoError(str(exc)) from exc
            chunk = int.from_bytes(length_plain, "big")
            if chunk > AEAD_CHUNK_MAX:
                raise CryptoError(f"chunk length {chunk} exceeds {AEAD_CHUNK_MAX}")
            payload_start = pos + _LENGTH_FRAME
            payload_end = payload_start + chunk + AEAD_TAG_LEN
            if len(buffer) < payload_end:
                break
            body = buffer[payload_start : payload_start + chunk]
            tag = buffer[payload_start + chunk : payload_end]
            try:
                plain = aead_decrypt(
                    self._subkey, method, make_nonce(self.counter + 1), body, tag
                )
            except ValueError as exc:
                raise CryptoError(str(exc)) from exc
            self.counter += 2
            out += plain
            pos = payload_end
        self._pending = buffer[pos:]
        return bytes(out)

    def buffer_size(self, length: int) -> int:
        """Upper bound on the output size for ``length`` input bytes."""
        if length < 0:
            raise ValueError("length must not be negative")
        method = self.info.method
        if is_aead(method):
            salt_len = 0 if self.initialized else self.info.key_len
            chunks = max(1, -(-length // AEAD_CHUNK_MAX))
            return salt_len + chunks * (2 + AEAD_TAG_LEN + AEAD_CHUNK_MAX + AEAD_TAG_LEN)
        if method == Method.TABLE:
            return length
        if self.initialized:
            return length + _STREAM_BLOCK_SIZE
        return self.info.iv_len + length + _STREAM_BLOCK_SIZE