#!/usr/bin/env python3

"""Exception hierarchy for debug-info parsing and calibration images.

Everything derives from ValueError: each of these describes input that is
not what it claims to be.
"""


class DwarfParseError(ValueError):
    """Base class for malformed or unsupported debug information."""


class TruncatedDataError(DwarfParseError):
    """A read ran past the end of the available bytes."""


class IntegerOverflowError(DwarfParseError):
    """A variable-length integer does not fit in 64 bits."""


class MalformedAbbrevError(DwarfParseError):
    """An abbreviation table could not be decoded."""


class UnsupportedVersionError(DwarfParseError):
    """A compile unit uses a DWARF version or format this parser does not read."""


class TruncatedUnitError(DwarfParseError):
    """A compile unit claims more bytes than its section holds."""


class UnknownAbbrevCodeError(DwarfParseError):
    """An entry references an abbreviation code missing from its table."""


class TreeDepthExceededError(DwarfParseError):
    """Entries nest deeper than the configured limit."""


class ObjectContainerError(ValueError):
    """The object file cannot provide what the parser needs."""


class MemoryImageError(ValueError):
    """Base class for calibration image errors."""


class AddressOutOfRangeError(MemoryImageError):
    """An address lies outside every page of the image."""

    def __init__(self, address: int, message: str | None = None):
        self.address = address
        super().__init__(message or f"Address 0x{address:08X} is out of range")


class MalformedRecordError(MemoryImageError):
    """An Intel HEX line is not a well-formed record."""


class ChecksumMismatchError(MalformedRecordError):
    """An Intel HEX record's checksum does not match its contents."""
