#!/usr/bin/env python3

"""Bounded little-endian reader over a byte buffer."""

import struct

from ...exceptions import TruncatedDataError


class ByteCursor:
    """Reads fixed and variable sized values while tracking the position.

    The cursor never reads at or beyond ``end``; doing so raises
    TruncatedDataError and leaves the position unchanged.
    """

    _U16 = struct.Struct("<H")
    _U32 = struct.Struct("<I")
    _U64 = struct.Struct("<Q")

    def __init__(self, data: bytes | bytearray | memoryview, pos: int = 0, end: int | None = None):
        self.data = data
        self.pos = pos
        self.end = len(data) if end is None else min(end, len(data))

    def remaining(self) -> int:
        return max(self.end - self.pos, 0)

    def at_end(self) -> bool:
        return self.pos >= self.end

    def _require(self, size: int) -> None:
        if size < 0 or self.pos + size > self.end:
            raise TruncatedDataError(
                f"Need {size} bytes at offset 0x{self.pos:x}, only {self.remaining()} available"
            )

    def read_u8(self) -> int:
        self._require(1)
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_u16(self) -> int:
        self._require(2)
        (value,) = self._U16.unpack_from(self.data, self.pos)
        self.pos += 2
        return value

    def read_u32(self) -> int:
        self._require(4)
        (value,) = self._U32.unpack_from(self.data, self.pos)
        self.pos += 4
        return value

    def read_u64(self) -> int:
        self._require(8)
        (value,) = self._U64.unpack_from(self.data, self.pos)
        self.pos += 8
        return value

    def read_bytes(self, size: int) -> bytes:
        self._require(size)
        value = bytes(self.data[self.pos : self.pos + size])
        self.pos += size
        return value

    def read_cstring(self) -> bytes:
        """Read up to a NUL byte and consume the terminator."""
        start = self.pos
        stop = start
        while stop < self.end and self.data[stop] != 0:
            stop += 1
        if stop >= self.end:
            raise TruncatedDataError(f"Unterminated string at offset 0x{start:x}")
        self.pos = stop + 1
        return bytes(self.data[start:stop])

    def skip(self, size: int) -> None:
        self._require(size)
        self.pos += size
