"""Core parsing entry points."""

from .dwarf_parser import DWARFParser, ParseResult

__all__ = ["DWARFParser", "ParseResult"]
