#!/usr/bin/env python3

"""Object file access contract used by the debug info parser."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..domain.exceptions import AddressOutOfRangeError


@dataclass(frozen=True)
class SectionSpan:
    """Location of a section inside the file."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class SectionLayout:
    """File positions of the DWARF sections the parser reads."""

    abbrev: SectionSpan
    info: SectionSpan
    string: SectionSpan | None = None
    line_string: SectionSpan | None = None


@dataclass(frozen=True)
class LoadSegment:
    """Bytes that end up at ``address`` when the image is loaded."""

    address: int
    data: bytes

    @property
    def end(self) -> int:
        return self.address + len(self.data)


class ObjectContainer(ABC):
    """Raw file bytes, DWARF section positions and load-image reads."""

    name: str = "<unnamed>"

    @property
    @abstractmethod
    def file_bytes(self) -> bytes:
        """The whole file."""

    @property
    @abstractmethod
    def layout(self) -> SectionLayout:
        """Where the debug sections sit in ``file_bytes``."""

    @abstractmethod
    def read_bytes(self, address: int, length: int) -> bytes:
        """Read initial image contents at a load address.

        Raises:
            AddressOutOfRangeError: If no loadable section covers the range
        """


@dataclass
class RawObjectContainer(ObjectContainer):
    """Container over bytes already in memory, with optional load segments."""

    data: bytes
    section_layout: SectionLayout
    segments: list[LoadSegment] = field(default_factory=list)
    name: str = "<memory>"

    @property
    def file_bytes(self) -> bytes:
        return self.data

    @property
    def layout(self) -> SectionLayout:
        return self.section_layout

    def read_bytes(self, address: int, length: int) -> bytes:
        for segment in self.segments:
            if segment.address <= address and address + length <= segment.end:
                start = address - segment.address
                return segment.data[start : start + length]
        raise AddressOutOfRangeError(
            address, f"No segment of {self.name} holds {length} bytes at 0x{address:08X}"
        )
