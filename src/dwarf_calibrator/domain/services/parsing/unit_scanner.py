#!/usr/bin/env python3

"""Splits .debug_info into compile units and decodes their headers."""

from ....infrastructure.logging import get_logger
from ...exceptions import TruncatedUnitError, UnsupportedVersionError
from ...models.dwarf import CompileUnit, UnitType
from .byte_cursor import ByteCursor

logger = get_logger(__name__)

# unit_length marking the 64-bit DWARF format
DWARF64_ESCAPE = 0xFFFFFFFF

# Bytes a DWARF 5 unit header carries after the abbreviation offset
_V5_EXTRA_HEADER: dict[int, int] = {
    UnitType.TYPE: 12,  # type signature + type offset
    UnitType.SPLIT_TYPE: 12,
    UnitType.SKELETON: 8,  # dwo id
    UnitType.SPLIT_COMPILE: 8,
}


class CompileUnitScanner:
    """Walks the unit headers of one .debug_info section."""

    def __init__(self, data: bytes | bytearray | memoryview, info_offset: int, info_length: int):
        """
        Args:
            data: Whole-file bytes
            info_offset: File offset of .debug_info
            info_length: Size of .debug_info in bytes
        """
        self.data = data
        self.info_offset = info_offset
        self.info_length = info_length

    def scan(self) -> list[CompileUnit]:
        """Decode every unit header in section order.

        Returns:
            Compile units, numbered by position

        Raises:
            TruncatedUnitError: If a unit claims more bytes than the section has
            UnsupportedVersionError: On DWARF versions above 5, or 64-bit DWARF
        """
        units: list[CompileUnit] = []
        offset = 0

        while offset < self.info_length:
            if self.info_length - offset < 4:
                logger.debug(f"Ignoring {self.info_length - offset} trailing bytes in .debug_info")
                break

            cursor = ByteCursor(self.data, self.info_offset + offset, self.info_offset + self.info_length)
            unit_length = cursor.read_u32()
            if unit_length == 0:
                break
            if unit_length == DWARF64_ESCAPE:
                raise UnsupportedVersionError(
                    f"Unit at 0x{offset:x} uses the 64-bit DWARF format, which is not supported"
                )
            if offset + 4 + unit_length > self.info_length:
                raise TruncatedUnitError(
                    f"Unit at 0x{offset:x} declares {unit_length} bytes but only "
                    f"{self.info_length - offset - 4} remain in .debug_info"
                )

            units.append(self._read_header(cursor, len(units), offset, unit_length))
            offset += unit_length + 4

        logger.debug(f"Found {len(units)} compile units")
        return units

    def _read_header(
        self, cursor: ByteCursor, index: int, offset: int, unit_length: int
    ) -> CompileUnit:
        version = cursor.read_u16()
        unit_type = None

        if version <= 4:
            abbrev_offset = cursor.read_u32()
            address_size = cursor.read_u8()
            header_size = 11
        elif version == 5:
            unit_type = cursor.read_u8()
            address_size = cursor.read_u8()
            abbrev_offset = cursor.read_u32()
            header_size = 12 + _V5_EXTRA_HEADER.get(unit_type, 0)
        else:
            raise UnsupportedVersionError(
                f"Unit at 0x{offset:x} has unsupported DWARF version {version}"
            )

        return CompileUnit(
            index=index,
            byte_offset=offset,
            length_bytes=unit_length,
            version=version,
            abbrev_offset=abbrev_offset,
            address_size=address_size,
            header_size=header_size,
            unit_type=unit_type,
        )
