"""
Unsigned LEB128 varint encoding.

A varint splits an integer into 7-bit groups, least significant group
first. Every byte except the last has its MSB (0x80) set to signal that
more bytes follow::

    [C|D D D D D D D]
     ^-- Continuation bit (1 = more bytes, 0 = last byte)
       ^-----------^-- 7 bits of data

Example: 300 = 0b1_0010_1100 encodes as [0xAC, 0x02].

libp2p uses varints for protobuf field tags and lengths, which is where
they appear when a public key is serialized for PeerId derivation.

References:
    https://protobuf.dev/programming-guides/encoding/#varints
"""

from __future__ import annotations

MAX_VARINT = (1 << 64) - 1
"""Largest value representable in a 10-byte protobuf varint."""


def encode_varint(value: int) -> bytes:
    """
    Encode an unsigned integer as LEB128 varint.

    Args:
        value: Non-negative integer to encode. Maximum: 2^64 - 1.

    Returns:
        Varint-encoded bytes (1 byte for 0-127, up to 10 bytes).

    Raises:
        ValueError: If value is negative or exceeds 64 bits.
    """
    if value < 0:
        raise ValueError("Varint must be non-negative")
    if value > MAX_VARINT:
        raise ValueError("Varint exceeds 64 bits")

    result = bytearray()

    # Emit low 7 bits with the continuation bit until the rest fits in 7 bits.
    while value >= 0x80:
        result.append((value & 0x7F) | 0x80)
        value >>= 7

    result.append(value)

    return bytes(result)
