#!/usr/bin/env python3

"""Compile unit header model."""

from dataclasses import dataclass, field

from .abbreviation import AbbrevTable


@dataclass
class CompileUnit:
    """One unit of the .debug_info section.

    ``byte_offset`` is relative to the start of the section. ``type_index``
    and ``declaration_index`` map unit-relative entry offsets to indices in
    the unit's entry tree.
    """

    index: int
    byte_offset: int
    length_bytes: int
    version: int
    abbrev_offset: int
    address_size: int
    header_size: int
    unit_type: int | None = None
    abbrev_table: AbbrevTable | None = None
    type_index: dict[int, int] = field(default_factory=dict)
    declaration_index: dict[int, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def end_offset(self) -> int:
        """Section offset one past the unit's last byte."""
        return self.byte_offset + 4 + self.length_bytes

    def register_type(self, offset: int, entry_index: int) -> bool:
        """Record a type entry; an offset keeps its first entry."""
        if offset in self.type_index:
            return False
        self.type_index[offset] = entry_index
        return True

    def register_declaration(self, offset: int, entry_index: int) -> bool:
        """Record a declaration-only variable; an offset keeps its first entry."""
        if offset in self.declaration_index:
            return False
        self.declaration_index[offset] = entry_index
        return True
