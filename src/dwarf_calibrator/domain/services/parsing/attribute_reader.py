#!/usr/bin/env python3

"""Decoding of attribute values according to their DWARF form.

Values come back as raw little-endian byte strings; interpreting them is
left to the entry builder, which knows what the attribute means.
"""

from ....infrastructure.logging import get_logger
from ...exceptions import TruncatedDataError
from ...models.dwarf import Form, form_name
from .byte_cursor import ByteCursor
from .varint import read_sleb128, read_uleb128

logger = get_logger(__name__)

_FIXED_SIZES: dict[int, int] = {
    Form.DATA1: 1,
    Form.REF1: 1,
    Form.FLAG: 1,
    Form.DATA2: 2,
    Form.REF2: 2,
    Form.DATA4: 4,
    Form.REF4: 4,
    Form.SEC_OFFSET: 4,
    Form.REF_SUP4: 4,
    Form.STRP_SUP: 4,
    Form.DATA8: 8,
    Form.REF8: 8,
    Form.REF_SIG8: 8,
    Form.REF_SUP8: 8,
    Form.DATA16: 16,
}

_BLOCK_LENGTH_SIZES: dict[int, int] = {
    Form.BLOCK1: 1,
    Form.BLOCK2: 2,
    Form.BLOCK4: 4,
}

# Indices into tables (.debug_str_offsets, .debug_addr, ...) the container
# does not expose; consumed to keep the cursor aligned, value left empty
_INDEX_SIZES: dict[int, int] = {
    Form.STRX1: 1,
    Form.ADDRX1: 1,
    Form.STRX2: 2,
    Form.ADDRX2: 2,
    Form.STRX3: 3,
    Form.ADDRX3: 3,
    Form.STRX4: 4,
    Form.ADDRX4: 4,
}
_ULEB_INDEX_FORMS = frozenset({Form.STRX, Form.ADDRX, Form.LOCLISTX, Form.RNGLISTX})


def decode_unsigned(value: bytes) -> int:
    """Interpret a raw attribute value as an unsigned little-endian integer."""
    return int.from_bytes(value, "little")


def decode_signed(value: bytes) -> int:
    """Interpret a raw attribute value as a signed little-endian integer."""
    return int.from_bytes(value, "little", signed=True)


def _minimal_le(value: int) -> bytes:
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "little")


class AttributeValueReader:
    """Reads one attribute value from an entry's byte stream."""

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        string_offset: int | None,
        string_length: int = 0,
        line_string_offset: int | None = None,
        line_string_length: int = 0,
    ):
        """
        Args:
            data: Whole-file bytes
            string_offset: File offset of .debug_str, None if the file has none
            string_length: Size of .debug_str
            line_string_offset: File offset of .debug_line_str, None if absent
            line_string_length: Size of .debug_line_str
        """
        self.data = data
        self.string_offset = string_offset
        self.string_length = string_length
        self.line_string_offset = line_string_offset
        self.line_string_length = line_string_length

    def read(
        self,
        cursor: ByteCursor,
        form: int,
        address_size: int,
        version: int = 4,
        implicit_const: int | None = None,
    ) -> bytes:
        """Decode the value at the cursor.

        Args:
            cursor: Cursor positioned at the value, advanced past it
            form: DW_FORM_* code
            address_size: Address width of the owning unit
            version: DWARF version of the owning unit
            implicit_const: Constant stored in the abbreviation, for DW_FORM_implicit_const

        Returns:
            Raw value bytes; empty for forms that are not supported

        Raises:
            IntegerOverflowError: If a variable-length value overflows
            TruncatedDataError: If the value runs past the unit
        """
        size = _FIXED_SIZES.get(form)
        if size is not None:
            return cursor.read_bytes(size)

        if form == Form.ADDR:
            return cursor.read_bytes(address_size)

        if form == Form.REF_ADDR:
            # DWARF 2 sized these like addresses, later versions use the offset size
            return cursor.read_bytes(address_size if version <= 2 else 4)

        size = _BLOCK_LENGTH_SIZES.get(form)
        if size is not None:
            length = decode_unsigned(cursor.read_bytes(size))
            return cursor.read_bytes(length)

        if form in (Form.BLOCK, Form.EXPRLOC):
            return cursor.read_bytes(read_uleb128(cursor))

        if form == Form.STRING:
            return cursor.read_cstring()

        if form == Form.STRP:
            return self._table_string(
                ".debug_str", self.string_offset, self.string_length, cursor.read_u32()
            )

        if form == Form.LINE_STRP:
            return self._table_string(
                ".debug_line_str",
                self.line_string_offset,
                self.line_string_length,
                cursor.read_u32(),
            )

        if form in (Form.UDATA, Form.REF_UDATA):
            return _minimal_le(read_uleb128(cursor))

        if form == Form.SDATA:
            return read_sleb128(cursor).to_bytes(8, "little", signed=True)

        if form == Form.IMPLICIT_CONST:
            return (implicit_const or 0).to_bytes(8, "little", signed=True)

        if form == Form.FLAG_PRESENT:
            return b"\x01"

        if form == Form.INDIRECT:
            actual_form = read_uleb128(cursor)
            return self.read(cursor, actual_form, address_size, version, implicit_const)

        size = _INDEX_SIZES.get(form)
        if size is not None:
            cursor.skip(size)
            logger.debug(f"Skipped indexed value of form {form_name(form)}")
            return b""

        if form in _ULEB_INDEX_FORMS:
            read_uleb128(cursor)
            logger.debug(f"Skipped indexed value of form {form_name(form)}")
            return b""

        logger.error(f"Unsupported attribute form {form_name(form)} at offset 0x{cursor.pos:x}")
        return b""

    def _table_string(
        self, section: str, base: int | None, length: int, offset: int
    ) -> bytes:
        if base is None:
            logger.warning(f"String reference 0x{offset:x} into missing section {section}")
            return b""
        try:
            return ByteCursor(self.data, base + offset, base + length).read_cstring()
        except TruncatedDataError as e:
            logger.error(f"Bad string reference 0x{offset:x} into {section}: {e}")
            return b""
