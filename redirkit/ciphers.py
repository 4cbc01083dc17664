"""Cipher primitives: method table, key derivation, AEAD and stream ciphers."""

from __future__ import annotations

import enum
import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

try:
    from cryptography.hazmat.decrepit.ciphers import algorithms as _legacy
except ImportError:
    _legacy = algorithms

__all__ = [
    "AEAD_TAG_LEN",
    "AEAD_NONCE_LEN",
    "AEAD_CHUNK_MAX",
    "Method",
    "CipherSpec",
    "is_aead",
    "cipher_spec",
    "md5_table",
    "bytes_to_key",
    "hkdf_sha1",
    "make_nonce",
    "aead_encrypt",
    "aead_decrypt",
    "new_stream_cipher",
]

AEAD_TAG_LEN = 16
AEAD_NONCE_LEN = 12
AEAD_CHUNK_MAX = 0x3FFF

_HKDF_INFO = b"ss-subkey"
_SHA1_LEN = 20
_U64 = (1 << 64) - 1


class Method(enum.IntEnum):
    """Supported encryption methods, with their configuration names."""

    cipher_name: str

    def __new__(cls, value: int, cipher_name: str) -> "Method":
        obj = int.__new__(cls, value)
        obj._value_ = value
        obj.cipher_name = cipher_name
        return obj

    TABLE = 0, "table"
    RC4 = 1, "rc4"
    RC4_MD5 = 2, "rc4-md5"
    AES_128_CFB = 3, "aes-128-cfb"
    AES_192_CFB = 4, "aes-192-cfb"
    AES_256_CFB = 5, "aes-256-cfb"
    BF_CFB = 6, "bf-cfb"
    CAMELLIA_128_CFB = 7, "camellia-128-cfb"
    CAMELLIA_192_CFB = 8, "camellia-192-cfb"
    CAMELLIA_256_CFB = 9, "camellia-256-cfb"
    CAST5_CFB = 10, "cast5-cfb"
    DES_CFB = 11, "des-cfb"
    IDEA_CFB = 12, "idea-cfb"
    RC2_CFB = 13, "rc2-cfb"
    SEED_CFB = 14, "seed-cfb"
    AES_128_GCM = 15, "aes-128-gcm"
    AES_192_GCM = 16, "aes-192-gcm"
    AES_256_GCM = 17, "aes-256-gcm"
    CHACHA20_IETF_POLY1305 = 18, "chacha20-ietf-poly1305"


@dataclass(frozen=True)
class CipherSpec:
    """Name and key/IV sizes of a cipher method."""

    name: str
    key_len: int
    iv_len: int


_SIZES: dict[Method, tuple[int, int]] = {
    Method.RC4: (16, 0),
    Method.RC4_MD5: (16, 16),
    Method.AES_128_CFB: (16, 16),
    Method.AES_192_CFB: (24, 16),
    Method.AES_256_CFB: (32, 16),
    Method.BF_CFB: (16, 8),
    Method.CAMELLIA_128_CFB: (16, 16),
    Method.CAMELLIA_192_CFB: (24, 16),
    Method.CAMELLIA_256_CFB: (32, 16),
    Method.CAST5_CFB: (16, 8),
    Method.DES_CFB: (8, 8),
    Method.IDEA_CFB: (16, 8),
    Method.RC2_CFB: (16, 8),
    Method.SEED_CFB: (16, 16),
    Method.AES_128_GCM: (16, 12),
    Method.AES_192_GCM: (24, 12),
    Method.AES_256_GCM: (32, 12),
    Method.CHACHA20_IETF_POLY1305: (32, 12),
}

_BLOCK_ALGORITHMS: dict[Method, str] = {
    Method.AES_128_CFB: "AES",
    Method.AES_192_CFB: "AES",
    Method.AES_256_CFB: "AES",
    Method.BF_CFB: "Blowfish",
    Method.CAMELLIA_128_CFB: "Camellia",
    Method.CAMELLIA_192_CFB: "Camellia",
    Method.CAMELLIA_256_CFB: "Camellia",
    Method.CAST5_CFB: "CAST5",
    # Triple DES with a single 8-byte key is plain DES.
    Method.DES_CFB: "TripleDES",
    Method.IDEA_CFB: "IDEA",
    Method.RC2_CFB: "RC2",
    Method.SEED_CFB: "SEED",
}

_AEAD_METHODS = frozenset(
    {
        Method.AES_128_GCM,
        Method.AES_192_GCM,
        Method.AES_256_GCM,
        Method.CHACHA20_IETF_POLY1305,
    }
)


def _coerce(method: int) -> Method:
    try:
        return Method(method)
    except ValueError:
        raise ValueError(f"unknown encryption method {method!r}") from None


def is_aead(method: int) -> bool:
    """Return whether ``method`` is an AEAD cipher."""
    try:
        return Method(method) in _AEAD_METHODS
    except ValueError:
        return False


def cipher_spec(method: int) -> CipherSpec:
    """Return the key and IV sizes of a cipher method (not the table method)."""
    method = _coerce(method)
    if method == Method.TABLE:
        raise ValueError("the table method has no cipher")
    key_len, iv_len = _SIZES[method]
    return CipherSpec(method.cipher_name, key_len, iv_len)


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def md5_table(password: bytes | str) -> tuple[bytes, bytes]:
    """Build the substitution table of the table method.

    Returns ``(encrypt_table, decrypt_table)``, each a permutation of 0..255.
    """
    digest = hashlib.md5(_as_bytes(password)).digest()
    key = int.from_bytes(digest[:8], "little")
    table = list(range(256))
    for salt in range(1, 1024):
        # A stable merge sort on this comparison is a stable sort by key.
        table.sort(key=lambda x, s=salt: key % (x + s))
    decrypt = bytearray(256)
    for index, value in enumerate(table):
        decrypt[value] = index
    return bytes(table), bytes(decrypt)


def bytes_to_key(password: bytes | str, key_len: int, iv_len: int) -> tuple[bytes, bytes]:
    """Derive ``(key, iv)`` from a password with MD5, one round, no salt."""
    if key_len < 0 or iv_len < 0:
        raise ValueError("lengths must not be negative")
    secret = _as_bytes(password)
    stream = b""
    block = b""
    while len(stream) < key_len + iv_len:
        block = hashlib.md5(block + secret).digest()
        stream += block
    return stream[:key_len], stream[key_len : key_len + iv_len]


def hkdf_sha1(key: bytes, salt: bytes, length: int) -> bytes:
    """HKDF-SHA1 (RFC 5869) with the info string ``ss-subkey``."""
    if length < 0 or length > 255 * _SHA1_LEN:
        raise ValueError("invalid HKDF output length")
    prk = hmac.new(bytes(salt), bytes(key), hashlib.sha1).digest()
    out = b""
    block = b""
    counter = 1
    while len(out) < length:
        block = hmac.new(prk, block + _HKDF_INFO + bytes([counter]), hashlib.sha1).digest()
        out += block
        counter += 1
    return out[:length]


def make_nonce(counter: int) -> bytes:
    """Return the 12-byte little-endian nonce for ``counter``."""
    return (counter & _U64).to_bytes(8, "little") + bytes(AEAD_NONCE_LEN - 8)


def _aead(subkey: bytes, method: int) -> Any:
    method = _coerce(method)
    if method not in _AEAD_METHODS:
        raise ValueError(f"{method.cipher_name} is not an AEAD method")
    if method == Method.CHACHA20_IETF_POLY1305:
        return ChaCha20Poly1305(bytes(subkey))
    return AESGCM(bytes(subkey))


def _check_nonce(nonce: bytes) -> bytes:
    nonce = bytes(nonce)
    if len(nonce) != AEAD_NONCE_LEN:
        raise ValueError(f"nonce must be {AEAD_NONCE_LEN} bytes")
    return nonce


def aead_encrypt(subkey: bytes, method: int, nonce: bytes, plaintext: bytes) -> bytes:
    """Encrypt one AEAD record; the 16-byte tag follows the ciphertext."""
    aead = _aead(subkey, method)
    return aead.encrypt(_check_nonce(nonce), bytes(plaintext), None)


def aead_decrypt(
    subkey: bytes, method: int, nonce: bytes, ciphertext: bytes, tag: bytes
) -> bytes:
    """Decrypt one AEAD record; raise ``ValueError`` if it does not verify."""
    tag = bytes(tag)
    if len(tag) != AEAD_TAG_LEN:
        raise ValueError(f"tag must be {AEAD_TAG_LEN} bytes")
    aead = _aead(subkey, method)
    try:
        return aead.decrypt(_check_nonce(nonce), bytes(ciphertext) + tag, None)
    except InvalidTag:
        raise ValueError("AEAD authentication failed") from None


def _algorithm(name: str, key: bytes) -> Any:
    factory = getattr(_legacy, name, None) or getattr(algorithms, name, None)
    if factory is None:
        raise ValueError(f"cipher {name} is not available")
    return factory(key)


def new_stream_cipher(method: int, key: bytes, iv: bytes, encrypt: bool) -> Any:
    """Create a stream cipher context with an ``update`` method."""
    method = _coerce(method)
    if method == Method.TABLE or method in _AEAD_METHODS:
        raise ValueError(f"{method.cipher_name} is not a stream cipher")
    spec = cipher_spec(method)
    key = bytes(key)
    if len(key) < spec.key_len:
        raise ValueError(f"key must be at least {spec.key_len} bytes")
    key = key[: spec.key_len]
    iv = bytes(iv) if iv is not None else b""
    try:
        if method in (Method.RC4, Method.RC4_MD5):
            if method == Method.RC4_MD5:
                if len(iv) < spec.iv_len:
                    raise ValueError(f"iv must be {spec.iv_len} bytes")
                key = hashlib.md5(key[:16] + iv[:16]).digest()
            cipher = Cipher(_algorithm("ARC4", key), None)
        else:
            if len(iv) != spec.iv_len:
                raise ValueError(f"iv must be {spec.iv_len} bytes")
            cipher = Cipher(_algorithm(_BLOCK_ALGORITHMS[method], key), modes.CFB(iv))
        return cipher.encryptor() if encrypt else cipher.decryptor()
    except UnsupportedAlgorithm as exc:
        raise ValueError(f"cipher {spec.name} is not supported") from exc