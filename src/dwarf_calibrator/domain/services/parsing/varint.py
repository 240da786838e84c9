#!/usr/bin/env python3

"""LEB128 variable-length integer codec."""

from ...exceptions import IntegerOverflowError
from .byte_cursor import ByteCursor

_MASK64 = (1 << 64) - 1


def _to_signed64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value & (1 << 63) else value


def read_uleb128(cursor: ByteCursor) -> int:
    """Decode an unsigned LEB128 value.

    Raises:
        IntegerOverflowError: If the encoding continues past 64 bits
        TruncatedDataError: If the buffer ends mid-encoding
    """
    result = 0
    shift = 0
    start = cursor.pos
    while True:
        byte = cursor.read_u8()
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _MASK64
        shift += 7
        if shift >= 64:
            raise IntegerOverflowError(f"ULEB128 at offset 0x{start:x} exceeds 64 bits")


def read_sleb128(cursor: ByteCursor) -> int:
    """Decode a signed LEB128 value into a signed 64-bit integer.

    Raises:
        IntegerOverflowError: If the encoding continues past 64 bits
        TruncatedDataError: If the buffer ends mid-encoding
    """
    result = 0
    shift = 0
    start = cursor.pos
    while True:
        byte = cursor.read_u8()
        result |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            break
        if shift >= 64:
            raise IntegerOverflowError(f"SLEB128 at offset 0x{start:x} exceeds 64 bits")

    if shift < 64 and byte & 0x40:
        result -= 1 << shift
    return _to_signed64(result)


def encode_uleb128(value: int) -> bytes:
    """Encode a non-negative integer as unsigned LEB128."""
    if value < 0:
        raise ValueError(f"ULEB128 cannot encode negative value {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_sleb128(value: int) -> bytes:
    """Encode an integer as signed LEB128."""
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        sign_bit_clear = not byte & 0x40
        if (value == 0 and sign_bit_clear) or (value == -1 and not sign_bit_clear):
            out.append(byte)
            return bytes(out)
        out.append(byte | 0x80)
