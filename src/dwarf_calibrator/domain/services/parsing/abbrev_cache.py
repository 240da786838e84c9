#!/usr/bin/env python3

"""Abbreviation table decoding and per-session memoization."""

import threading
from types import MappingProxyType
from typing import Any

from ....infrastructure.logging import get_logger
from ...exceptions import IntegerOverflowError, MalformedAbbrevError, TruncatedDataError
from ...models.dwarf import (
    AbbrevAttribute,
    AbbrevTable,
    Abbreviation,
    Form,
    attr_name,
    form_name,
    tag_name,
)
from .byte_cursor import ByteCursor
from .varint import read_sleb128, read_uleb128

logger = get_logger(__name__)


class AbbreviationCache:
    """Decodes abbreviation tables and keeps them by file byte offset.

    Compile units sharing a table offset share the same AbbrevTable object.
    One cache belongs to one parse session; a new parse builds a new cache.
    """

    def __init__(self, data: bytes | bytearray | memoryview, section_end: int | None = None):
        """Initialize the cache.

        Args:
            data: Whole-file bytes
            section_end: File offset where .debug_abbrev ends; tables may not run past it
        """
        self.data = data
        self.section_end = section_end
        self._tables: dict[int, AbbrevTable] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def resolve(self, byte_offset: int) -> AbbrevTable:
        """Return the table starting at ``byte_offset``, decoding it on first use.

        Args:
            byte_offset: File offset of the table

        Returns:
            The cached AbbrevTable

        Raises:
            MalformedAbbrevError: If the table cannot be decoded
        """
        with self._lock:
            table = self._tables.get(byte_offset)
            if table is not None:
                self.hits += 1
                return table

            self.misses += 1
            table = self._decode(byte_offset)
            self._tables[byte_offset] = table
            logger.debug(f"Decoded abbreviation table at 0x{byte_offset:x} ({len(table)} entries)")
            return table

    def _decode(self, byte_offset: int) -> AbbrevTable:
        cursor = ByteCursor(self.data, byte_offset, self.section_end)
        entries: dict[int, Abbreviation] = {}

        try:
            while True:
                code = read_uleb128(cursor)
                if code == 0:
                    break
                tag = read_uleb128(cursor)
                has_children = cursor.read_u8() != 0

                attributes: list[AbbrevAttribute] = []
                while True:
                    attribute = read_uleb128(cursor)
                    form = read_uleb128(cursor)
                    if attribute == 0 and form == 0:
                        break
                    implicit_const = read_sleb128(cursor) if form == Form.IMPLICIT_CONST else None
                    attributes.append(AbbrevAttribute(attribute, form, implicit_const))

                if code in entries:
                    logger.warning(
                        f"Duplicate abbreviation code {code} in table at 0x{byte_offset:x}, "
                        f"keeping the first declaration"
                    )
                    continue
                entries[code] = Abbreviation(code, tag, has_children, tuple(attributes))
        except (IntegerOverflowError, TruncatedDataError) as e:
            raise MalformedAbbrevError(
                f"Abbreviation table at 0x{byte_offset:x} is malformed: {e}"
            ) from e

        return AbbrevTable(offset=byte_offset, entries=MappingProxyType(entries))

    def clear(self) -> None:
        """Drop all tables and reset statistics."""
        with self._lock:
            self._tables.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, byte_offset: object) -> bool:
        return byte_offset in self._tables

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with size, hit and miss counts and the hit rate
        """
        total = self.hits + self.misses
        hit_rate = (self.hits / total * 100) if total > 0 else 0.0
        return {
            "size": len(self._tables),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": f"{hit_rate:.1f}%",
        }

    def describe(self) -> list[str]:
        """Render every cached table, in offset order, as text lines."""
        lines: list[str] = []
        for offset in sorted(self._tables):
            table = self._tables[offset]
            lines.append(f"Abbreviation table at 0x{offset:08x} ({len(table)} entries)")
            for code in sorted(table.entries):
                abbrev = table.entries[code]
                children = "children" if abbrev.has_children else "no children"
                lines.append(f"  [{code}] {tag_name(abbrev.tag)} ({children})")
                for attr in abbrev.attributes:
                    line = f"      {attr_name(attr.attribute):<28} {form_name(attr.form)}"
                    if attr.implicit_const is not None:
                        line += f" = {attr.implicit_const}"
                    lines.append(line)
        return lines
