#!/usr/bin/env python3

"""Fixed-offset extraction from DWARF location attributes.

Two shapes matter for calibration symbols:

- DW_AT_data_member_location: a plain constant (DWARF 3 and later) or a
  DWARF 2 expression ``[DW_OP_plus_uconst, uleb offset]``.
- DW_AT_location of a static variable: ``[DW_OP_addr, address]``.

Anything else would need an expression evaluator and yields None.

Example:
    [0x23, 0x04] -> member offset 4
    [0x03, 0x00, 0x10, 0x00, 0x20] -> address 0x20001000
"""

from ....infrastructure.logging import get_logger
from ...exceptions import DwarfParseError
from ...models.dwarf.constants import DW_OP_ADDR, DW_OP_PLUS_UCONST, EXPRESSION_FORMS, SIGNED_FORMS
from .attribute_reader import decode_signed, decode_unsigned
from .byte_cursor import ByteCursor
from .varint import read_uleb128

logger = get_logger(__name__)


def _parse_offset_expression(expression: bytes) -> int | None:
    if len(expression) >= 2 and expression[0] == DW_OP_PLUS_UCONST:
        try:
            offset = read_uleb128(ByteCursor(expression, 1))
        except DwarfParseError as e:
            logger.warning(f"Bad DW_OP_plus_uconst operand in {expression.hex()}: {e}")
            return None
        logger.debug(f"Parsed DW_OP_plus_uconst location expression: offset={offset}")
        return offset

    logger.warning(
        f"Unknown member location expression {expression.hex()} "
        f"(opcode 0x{expression[0]:02x})"
    )
    return None


def parse_member_offset(value: bytes, form: int) -> int | None:
    """Extract a member's byte offset from DW_AT_data_member_location.

    Args:
        value: Raw attribute bytes
        form: Form the value was encoded with

    Returns:
        Offset in bytes, or None if it cannot be determined
    """
    if not value:
        return None
    if form in EXPRESSION_FORMS:
        return _parse_offset_expression(value)
    if form in SIGNED_FORMS:
        return decode_signed(value)
    return decode_unsigned(value)


def parse_variable_address(value: bytes, form: int, address_size: int) -> int | None:
    """Extract a static variable's address from DW_AT_location.

    Args:
        value: Raw attribute bytes
        form: Form the value was encoded with
        address_size: Address width of the owning unit

    Returns:
        The DW_OP_addr operand, or None for location lists and other expressions
    """
    if form not in EXPRESSION_FORMS:
        logger.debug(f"Location list reference 0x{decode_unsigned(value):x} not evaluated")
        return None
    if len(value) < 2:
        return None
    if value[0] != DW_OP_ADDR:
        logger.debug(f"Location expression {value.hex()} is not a fixed address")
        return None
    return decode_unsigned(value[1 : 1 + address_size])
