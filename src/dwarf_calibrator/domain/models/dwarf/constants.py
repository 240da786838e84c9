#!/usr/bin/env python3

"""DWARF numeric constants used by the parser.

Only the tags, attributes and forms the parser interprets get enum members.
Human-readable names for any code come from the tables shipped with
pyelftools, so dumps stay complete even for vendor extensions.
"""

from collections.abc import Mapping
from enum import IntEnum

from elftools.dwarf.enums import ENUM_DW_AT, ENUM_DW_FORM, ENUM_DW_TAG


class Tag(IntEnum):
    ARRAY_TYPE = 0x01
    CLASS_TYPE = 0x02
    ENUMERATION_TYPE = 0x04
    MEMBER = 0x0D
    POINTER_TYPE = 0x0F
    COMPILE_UNIT = 0x11
    STRUCTURE_TYPE = 0x13
    TYPEDEF = 0x16
    UNION_TYPE = 0x17
    SUBRANGE_TYPE = 0x21
    BASE_TYPE = 0x24
    CONST_TYPE = 0x26
    ENUMERATOR = 0x28
    SUBPROGRAM = 0x2E
    VARIABLE = 0x34
    VOLATILE_TYPE = 0x35


class Attr(IntEnum):
    SIBLING = 0x01
    LOCATION = 0x02
    NAME = 0x03
    BYTE_SIZE = 0x0B
    CONST_VALUE = 0x1C
    UPPER_BOUND = 0x2F
    COUNT = 0x37
    DATA_MEMBER_LOCATION = 0x38
    DECLARATION = 0x3C
    ENCODING = 0x3E
    EXTERNAL = 0x3F
    SPECIFICATION = 0x47
    TYPE = 0x49


class Form(IntEnum):
    ADDR = 0x01
    BLOCK2 = 0x03
    BLOCK4 = 0x04
    DATA2 = 0x05
    DATA4 = 0x06
    DATA8 = 0x07
    STRING = 0x08
    BLOCK = 0x09
    BLOCK1 = 0x0A
    DATA1 = 0x0B
    FLAG = 0x0C
    SDATA = 0x0D
    STRP = 0x0E
    UDATA = 0x0F
    REF_ADDR = 0x10
    REF1 = 0x11
    REF2 = 0x12
    REF4 = 0x13
    REF8 = 0x14
    REF_UDATA = 0x15
    INDIRECT = 0x16
    SEC_OFFSET = 0x17
    EXPRLOC = 0x18
    FLAG_PRESENT = 0x19
    STRX = 0x1A
    ADDRX = 0x1B
    REF_SUP4 = 0x1C
    STRP_SUP = 0x1D
    DATA16 = 0x1E
    LINE_STRP = 0x1F
    REF_SIG8 = 0x20
    IMPLICIT_CONST = 0x21
    LOCLISTX = 0x22
    RNGLISTX = 0x23
    REF_SUP8 = 0x24
    STRX1 = 0x25
    STRX2 = 0x26
    STRX3 = 0x27
    STRX4 = 0x28
    ADDRX1 = 0x29
    ADDRX2 = 0x2A
    ADDRX3 = 0x2B
    ADDRX4 = 0x2C


class UnitType(IntEnum):
    COMPILE = 0x01
    TYPE = 0x02
    PARTIAL = 0x03
    SKELETON = 0x04
    SPLIT_COMPILE = 0x05
    SPLIT_TYPE = 0x06


# Location expression opcodes
DW_OP_ADDR = 0x03
DW_OP_PLUS_UCONST = 0x23

# Forms whose value is a signed integer
SIGNED_FORMS = frozenset({Form.SDATA, Form.IMPLICIT_CONST})

# Forms carrying a location expression rather than a constant
EXPRESSION_FORMS = frozenset({Form.BLOCK1, Form.BLOCK2, Form.BLOCK4, Form.BLOCK, Form.EXPRLOC})


def _reverse(table: Mapping[str, object]) -> dict[int, str]:
    # Several vendor names share a code; the first (standard) one wins
    names: dict[int, str] = {}
    for name, value in table.items():
        if isinstance(value, int):
            names.setdefault(value, name)
    return names


_TAG_NAMES = _reverse(ENUM_DW_TAG)
_ATTR_NAMES = _reverse(ENUM_DW_AT)
_FORM_NAMES = _reverse(ENUM_DW_FORM)


def tag_name(code: int) -> str:
    """Return the DW_TAG_* name for a tag code."""
    return _TAG_NAMES.get(code, f"DW_TAG_unknown_0x{code:x}")


def attr_name(code: int) -> str:
    """Return the DW_AT_* name for an attribute code."""
    return _ATTR_NAMES.get(code, f"DW_AT_unknown_0x{code:x}")


def form_name(code: int) -> str:
    """Return the DW_FORM_* name for a form code."""
    return _FORM_NAMES.get(code, f"DW_FORM_unknown_0x{code:x}")
