import pytest

from ledger_tx.errors import MalformedMessage
from ledger_tx.shortvec import decode_length, encode_length


@pytest.mark.parametrize('value, encoded', [
    (0, b'\x00'),
    (1, b'\x01'),
    (127, b'\x7f'),
    (128, b'\x80\x01'),
    (255, b'\xff\x01'),
    (16383, b'\xff\x7f'),
    (16384, b'\x80\x80\x01'),
    (65535, b'\xff\xff\x03'),
])
def test_fixed_points(value, encoded):
    assert encode_length(value) == encoded
    assert decode_length(encoded) == (value, len(encoded))


def test_bijective_over_full_range():
    seen = set()
    for value in range(0x10000):
        encoded = encode_length(value)
        assert 1 <= len(encoded) <= 3
        assert decode_length(encoded) == (value, len(encoded))
        seen.add(encoded)
    assert len(seen) == 0x10000


def test_decode_at_offset():
    data = b'\xaa\xbb\x80\x01\xcc'
    assert decode_length(data, 2) == (128, 2)


@pytest.mark.parametrize('value', [-1, 65536, 1 << 20])
def test_encode_out_of_range(value):
    with pytest.raises(MalformedMessage):
        encode_length(value)


@pytest.mark.parametrize('data, reason', [
    (b'', 'truncated'),
    (b'\x80', 'truncated'),
    (b'\xff\xff', 'truncated'),
    (b'\x80\x00', 'non-canonical'),
    (b'\x80\x80\x00', 'non-canonical'),
    (b'\xff\xff\x04', 'overflow'),
    (b'\x80\x80\x80\x01', 'longer than 3 bytes'),
])
def test_decode_rejects_bad_input(data, reason):
    with pytest.raises(MalformedMessage, match=reason):
        decode_length(data, field='account_keys length')


def test_decode_error_names_field():
    with pytest.raises(MalformedMessage, match='instructions length'):
        decode_length(b'\x80', field='instructions length')
