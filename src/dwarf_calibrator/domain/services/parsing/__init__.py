"""Debug information decoding services."""

from .abbrev_cache import AbbreviationCache
from .attribute_reader import AttributeValueReader, decode_signed, decode_unsigned
from .byte_cursor import ByteCursor
from .entry_builder import EntryTreeBuilder
from .location_parser import parse_member_offset, parse_variable_address
from .type_resolver import TypeResolver
from .unit_scanner import CompileUnitScanner
from .varint import encode_sleb128, encode_uleb128, read_sleb128, read_uleb128

__all__ = [
    "AbbreviationCache",
    "AttributeValueReader",
    "ByteCursor",
    "CompileUnitScanner",
    "EntryTreeBuilder",
    "TypeResolver",
    "decode_signed",
    "decode_unsigned",
    "encode_sleb128",
    "encode_uleb128",
    "parse_member_offset",
    "parse_variable_address",
    "read_sleb128",
    "read_uleb128",
]
