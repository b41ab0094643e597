import pytest

import varint


@pytest.mark.parametrize("value, encoded", [
    (0, b"\x00"),
    (1, b"\x01"),
    (127, b"\x7f"),
    (128, b"\x80\x01"),
    (300, b"\xac\x02"),
    (16384, b"\x80\x80\x01"),
    (2**64 - 1, b"\xff" * 9 + b"\x01"),
])
def test_known_vectors(value, encoded):
    assert varint.encode(value) == encoded
    assert varint.encoded_length(value) == len(encoded)
    assert varint.decode(encoded) == (value, len(encoded))


def test_decode_with_offset_and_trailing_bytes():
    assert varint.decode(b"\xff\xac\x02\x05", offset=1) == (300, 2)


def test_truncated_varint():
    with pytest.raises(varint.VarintError):
        varint.decode(b"\x80\x80")
    with pytest.raises(varint.VarintError):
        varint.decode(b"")


def test_varint_too_long():
    with pytest.raises(varint.VarintError):
        varint.decode(b"\x80" * 11 + b"\x01")


def test_encode_rejects_out_of_range():
    with pytest.raises(ValueError):
        varint.encode(-1)
    with pytest.raises(ValueError):
        varint.encode(2**64)
