#!/usr/bin/env python3

"""Intel HEX record codec."""

from dataclasses import dataclass
from enum import IntEnum

from ...exceptions import ChecksumMismatchError, MalformedRecordError


class RecordType(IntEnum):
    DATA = 0x00
    END_OF_FILE = 0x01
    EXTENDED_SEGMENT_ADDRESS = 0x02
    START_SEGMENT_ADDRESS = 0x03
    EXTENDED_LINEAR_ADDRESS = 0x04
    START_LINEAR_ADDRESS = 0x05


# Record types whose payload is a 16-bit base address word
_ADDRESS_WORD_TYPES = frozenset(
    {RecordType.EXTENDED_SEGMENT_ADDRESS, RecordType.EXTENDED_LINEAR_ADDRESS}
)


def checksum(raw: bytes) -> int:
    """Two's complement of the byte sum, as stored in the last record byte."""
    return -sum(raw) & 0xFF


@dataclass(frozen=True)
class HexRecord:
    """One ``:LLAAAATT<data>CC`` line."""

    record_type: int
    address: int
    data: bytes = b""

    @classmethod
    def parse(cls, line: str) -> "HexRecord":
        """Decode and verify one record line.

        Args:
            line: Text of the line, surrounding whitespace allowed

        Returns:
            The decoded record

        Raises:
            MalformedRecordError: If the line is not a record
            ChecksumMismatchError: If the checksum does not match
        """
        text = line.strip()
        if not text.startswith(":"):
            raise MalformedRecordError(f"Record does not start with ':': {text[:16]!r}")
        try:
            raw = bytes.fromhex(text[1:])
        except ValueError as e:
            raise MalformedRecordError(f"Record is not hexadecimal: {text[:16]!r}") from e

        if len(raw) < 5:
            raise MalformedRecordError(f"Record too short: {text!r}")
        count = raw[0]
        if len(raw) != count + 5:
            raise MalformedRecordError(
                f"Record declares {count} data bytes but carries {len(raw) - 5}"
            )
        if sum(raw) & 0xFF:
            raise ChecksumMismatchError(
                f"Checksum 0x{raw[-1]:02X} does not match, expected 0x{checksum(raw[:-1]):02X}"
            )

        record = cls(record_type=raw[3], address=(raw[1] << 8) | raw[2], data=raw[4:-1])
        if record.record_type in _ADDRESS_WORD_TYPES and count != 2:
            raise MalformedRecordError(
                f"Address record of type 0x{record.record_type:02X} carries {count} bytes, expected 2"
            )
        return record

    @property
    def word(self) -> int:
        """Big-endian 16-bit payload of an address record."""
        return int.from_bytes(self.data[:2], "big")

    def encode(self) -> str:
        """Render the record as a line without terminator."""
        if len(self.data) > 0xFF:
            raise ValueError(f"Record payload of {len(self.data)} bytes exceeds 255")
        raw = (
            bytes([len(self.data), (self.address >> 8) & 0xFF, self.address & 0xFF, self.record_type])
            + self.data
        )
        return ":" + (raw + bytes([checksum(raw)])).hex().upper()
