#!/usr/bin/env python3

"""Name tables used while turning debug entries into typed variables.

Base types are recognised by their DW_AT_name string, matched exactly and
case-sensitively. The spellings below cover what GCC, Clang and the
embedded compilers in use emit for the C integer and floating types.
"""

import struct

from .tag_registry import EntryRole
from .variable_info import VALUE_FORMATS, VarType

PRIMITIVE_TYPE_KINDS: dict[str, VarType] = {
    "_Bool": VarType.BOOLEAN,
    "bool": VarType.BOOLEAN,
    "char": VarType.UINT8,
    "unsigned char": VarType.UINT8,
    "signed char": VarType.SINT8,
    "unsigned short": VarType.UINT16,
    "short unsigned int": VarType.UINT16,
    "short": VarType.SINT16,
    "short int": VarType.SINT16,
    "unsigned int": VarType.UINT32,
    "unsigned long": VarType.UINT32,
    "long unsigned int": VarType.UINT32,
    "int": VarType.SINT32,
    "long": VarType.SINT32,
    "long int": VarType.SINT32,
    "unsigned long long": VarType.UINT64,
    "long long unsigned int": VarType.UINT64,
    "long long": VarType.SINT64,
    "long long int": VarType.SINT64,
    "float": VarType.FLOAT32,
    "double": VarType.FLOAT64,
}

# Names given to the wrapper nodes the resolver inserts
QUALIFIER_MARKERS: dict[EntryRole, bytes] = {
    EntryRole.TYPEDEF: b"typedef",
    EntryRole.CONST: b"const",
    EntryRole.VOLATILE: b"volatile",
    EntryRole.STRUCT: b"struct",
    EntryRole.ENUMERATION: b"enum",
    EntryRole.ARRAY: b"array",
}


def primitive_kind(name: bytes) -> VarType:
    """Map a base type name to its value type, UNKNOWN when unmapped."""
    return PRIMITIVE_TYPE_KINDS.get(name.decode("utf-8", errors="replace"), VarType.UNKNOWN)


def primitive_width(var_type: VarType) -> int:
    """Byte width a value type is encoded with, 0 for types without an encoding."""
    layout = VALUE_FORMATS.get(var_type)
    return struct.calcsize(layout) if layout else 0
