"""Compact-u16 length encoding

Little-endian, 7 payload bits per byte, high bit set while more bytes follow.
Values 0..65535 take 1 to 3 bytes.
"""

from typing import Tuple

from .constants import MAX_COMPACT_U16
from .errors import MalformedMessage


def encode_length(length: int) -> bytes:
    """Encode length as compact-u16"""
    if length < 0 or length > MAX_COMPACT_U16:
        raise MalformedMessage(f"length {length} does not fit in compact-u16")
    result = []
    while length > 0x7f:
        result.append((length & 0x7f) | 0x80)
        length >>= 7
    result.append(length)
    return bytes(result)


def decode_length(data: bytes, offset: int = 0, field: str = 'length') -> Tuple[int, int]:
    """Decode a compact-u16 at offset

    Returns:
        (value, number of bytes consumed)
    """
    value = 0
    for size in range(3):
        if offset + size >= len(data):
            raise MalformedMessage(f"truncated compact-u16 in {field}")
        elem = data[offset + size]
        value |= (elem & 0x7f) << (size * 7)
        if not elem & 0x80:
            # zero continuation byte means an overlong encoding
            if size > 0 and elem == 0:
                raise MalformedMessage(f"non-canonical compact-u16 in {field}")
            if value > MAX_COMPACT_U16:
                raise MalformedMessage(f"compact-u16 overflow in {field}")
            return value, size + 1
    raise MalformedMessage(f"compact-u16 longer than 3 bytes in {field}")
