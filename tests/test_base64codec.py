import pytest

from redirkit.base64codec import decode, encode, encoded_size


@pytest.mark.parametrize(
    "data, text",
    [(b"f", "Zg=="), (b"fo", "Zm8="), (b"foobar", "Zm9vYmFy")],
)
def test_encode_known_vectors(data, text):
    assert encode(data) == text


def test_encode_empty():
    assert encode(b"") == ""


@pytest.mark.parametrize("length", range(0, 20))
def test_encoded_size_matches_encode(length):
    assert encoded_size(length) == len(encode(bytes(range(length))))


def test_encoded_size_rejects_negative():
    with pytest.raises(ValueError):
        encoded_size(-1)


@pytest.mark.parametrize(
    "data",
    [b"", b"a", b"ab", b"abc", b"abcd", bytes(range(256)), b"\xff\xfe\x00" * 7],
)
def test_round_trip(data):
    assert decode(encode(data)) == data


def test_encoded_length_is_multiple_of_four():
    for length in range(1, 30):
        assert len(encode(b"x" * length)) % 4 == 0


def test_decode_stops_at_padding():
    assert decode("Zm9v=garbage!!") == decode("Zm9v")


def test_decode_without_padding():
    assert decode(encode(b"fo").rstrip("=")) == b"fo"


@pytest.mark.parametrize("text", ["Zm 9v", "Zm9v\n", "Zm9-", "Z*==", "é"])
def test_decode_rejects_invalid_characters(text):
    with pytest.raises(ValueError):
        decode(text)


def test_decode_url_safe_chars_are_invalid():
    with pytest.raises(ValueError):
        decode("ab_c")