import pytest

from redirkit.ciphers import AEAD_CHUNK_MAX, AEAD_TAG_LEN, Method, bytes_to_key, md5_table
from redirkit.encrypt import CryptoError, EncryptionContext, EncryptionInfo

PASSWORD = "password"

ROUND_TRIP_METHODS = [
    None,
    "aes-128-cfb",
    "aes-256-cfb",
    "aes-128-gcm",
    "aes-256-gcm",
    "chacha20-ietf-poly1305",
]


def _pair(method):
    info = EncryptionInfo.from_password(PASSWORD, method)
    return EncryptionContext(info), EncryptionContext(info)


@pytest.mark.parametrize("method", ROUND_TRIP_METHODS)
def test_round_trip_multiple_calls(method):
    enc, dec = _pair(method)
    parts = [b"hello ", b"", b"world", bytes(range(256))]
    wire = b"".join(enc.encrypt(p) for p in parts)
    assert dec.decrypt(wire) == b"".join(parts)


@pytest.mark.parametrize("method", ROUND_TRIP_METHODS)
def test_round_trip_split_wire(method):
    enc, dec = _pair(method)
    payload = b"GET / HTTP/1.1\r\n\r\n" * 10
    wire = enc.encrypt(payload)
    # Split after the IV/salt so the first decrypt call is complete enough.
    cut = EncryptionInfo.from_password(PASSWORD, method).key_len + 5
    assert dec.decrypt(wire[:cut]) + dec.decrypt(wire[cut:]) == payload


def test_unknown_method_raises():
    with pytest.raises(CryptoError):
        EncryptionInfo.from_password(PASSWORD, "no-such-cipher")


def test_table_method_default():
    info = EncryptionInfo.from_password(PASSWORD)
    assert info.method == Method.TABLE
    enc_table, dec_table = md5_table(PASSWORD)
    assert info.enc_table == enc_table
    assert info.dec_table == dec_table


def test_table_encrypt_is_substitution():
    enc, _ = _pair(None)
    out = enc.encrypt(bytes(range(256)))
    assert sorted(out) == list(range(256))
    assert len(out) == 256


def test_key_derivation_matches_bytes_to_key():
    info = EncryptionInfo.from_password(PASSWORD, "aes-256-cfb")
    assert info.key_len == 32
    assert info.iv_len == 16
    assert info.key == bytes_to_key(PASSWORD, 32, 16)[0]


def test_stream_first_output_carries_iv():
    enc, _ = _pair("aes-128-cfb")
    first = enc.encrypt(b"abc")
    assert len(first) == 16 + 3
    assert len(enc.encrypt(b"abc")) == 3


def test_aead_frame_layout():
    enc, _ = _pair("aes-128-gcm")
    first = enc.encrypt(b"abcde")
    assert len(first) == 16 + (2 + AEAD_TAG_LEN) + (5 + AEAD_TAG_LEN)
    assert enc.counter == 2
    second = enc.encrypt(b"xy")
    assert len(second) == (2 + AEAD_TAG_LEN) + (2 + AEAD_TAG_LEN)
    assert enc.counter == 4


def test_aead_large_payload_is_chunked():
    enc, dec = _pair("chacha20-ietf-poly1305")
    payload = bytes(range(256)) * 100
    wire = enc.encrypt(payload)
    assert enc.counter == 4
    assert dec.decrypt(wire) == payload


def test_aead_empty_first_call_emits_only_salt():
    enc, dec = _pair("aes-256-gcm")
    wire = enc.encrypt(b"")
    assert len(wire) == 32
    assert dec.decrypt(wire) == b""


def test_aead_tampered_data_raises():
    enc, dec = _pair("aes-128-gcm")
    wire = bytearray(enc.encrypt(b"some payload"))
    wire[-1] ^= 0x01
    with pytest.raises(CryptoError):
        dec.decrypt(bytes(wire))


def test_aead_short_salt_raises():
    _, dec = _pair("aes-128-gcm")
    with pytest.raises(CryptoError):
        dec.decrypt(b"short")


def test_stream_short_iv_raises():
    _, dec = _pair("aes-128-cfb")
    with pytest.raises(CryptoError):
        dec.decrypt(b"tiny")


def test_wrong_password_fails_aead():
    enc = EncryptionContext(EncryptionInfo.from_password(PASSWORD, "aes-128-gcm"))
    dec = EncryptionContext(EncryptionInfo.from_password("secret", "aes-128-gcm"))
    with pytest.raises(CryptoError):
        dec.decrypt(enc.encrypt(b"data"))


def test_direction_is_fixed():
    enc, _ = _pair("aes-128-cfb")
    enc.encrypt(b"x")
    with pytest.raises(CryptoError):
        enc.decrypt(b"x")


def test_buffer_size_aead():
    enc, _ = _pair("aes-128-gcm")
    frame = 2 + AEAD_TAG_LEN + AEAD_CHUNK_MAX + AEAD_TAG_LEN
    assert enc.buffer_size(10) == 16 + frame
    assert enc.buffer_size(0) == 16 + frame
    assert enc.buffer_size(AEAD_CHUNK_MAX + 1) == 16 + 2 * frame
    enc.encrypt(b"x")
    assert enc.buffer_size(10) == frame


def test_buffer_size_stream_and_table():
    enc, _ = _pair("aes-128-cfb")
    assert enc.buffer_size(100) == 16 + 100 + 1
    enc.encrypt(b"x")
    assert enc.buffer_size(100) == 101
    table_ctx, _ = _pair(None)
    assert table_ctx.buffer_size(100) == 100


def test_buffer_size_bounds_output():
    enc, _ = _pair("aes-256-gcm")
    payload = b"z" * 5000
    bound = enc.buffer_size(len(payload))
    assert len(enc.encrypt(payload)) <= bound


def test_buffer_size_negative_raises():
    enc, _ = _pair(None)
    with pytest.raises(ValueError):
        enc.buffer_size(-1)