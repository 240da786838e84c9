#!/usr/bin/env python3

"""ELF object container built on pyelftools.

pyelftools locates the sections; the DWARF bytes themselves are decoded by
this package's own parser, which reads them straight out of the file.
"""

from pathlib import Path
from types import TracebackType

from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile

from ..domain.exceptions import AddressOutOfRangeError, ObjectContainerError
from .logging import get_logger
from .object_container import ObjectContainer, SectionLayout, SectionSpan

logger = get_logger(__name__)


class ElfObjectContainer(ObjectContainer):
    """Debug sections and load image of an ELF file."""

    def __init__(self, elf_path: Path):
        """
        Args:
            elf_path: Path to the ELF file

        Raises:
            FileNotFoundError: If the file does not exist
            ObjectContainerError: If the file is not ELF or lacks usable debug sections
        """
        self.elf_path = Path(elf_path)
        self.name = str(self.elf_path)
        if not self.elf_path.is_file():
            raise FileNotFoundError(f"ELF file not found: {self.elf_path}")

        self._handle = self.elf_path.open("rb")
        try:
            self.elf = ELFFile(self._handle)
            self._data = self.elf_path.read_bytes()
            self._layout = self._locate_sections()
        except ELFError as e:
            self._handle.close()
            raise ObjectContainerError(f"Not a valid ELF file: {self.elf_path}: {e}") from e
        except Exception:
            self._handle.close()
            raise

        if not self.elf.little_endian:
            logger.warning(f"{self.elf_path} is big-endian; values are decoded little-endian")
        logger.debug(
            f"Opened {self.elf_path}: machine={self.elf.header['e_machine']}, "
            f"{self.elf.elfclass}-bit, .debug_info {self._layout.info.length} bytes"
        )

    def _span(self, name: str, required: bool) -> SectionSpan | None:
        section = self.elf.get_section_by_name(name)
        if section is None:
            if required:
                raise ObjectContainerError(f"{self.elf_path} has no {name} section")
            return None
        if section["sh_flags"] & SH_FLAGS.SHF_COMPRESSED:
            raise ObjectContainerError(f"{name} in {self.elf_path} is compressed")
        return SectionSpan(offset=section["sh_offset"], length=section["sh_size"])

    def _locate_sections(self) -> SectionLayout:
        abbrev = self._span(".debug_abbrev", required=True)
        info = self._span(".debug_info", required=True)
        assert abbrev is not None and info is not None
        return SectionLayout(
            abbrev=abbrev,
            info=info,
            string=self._span(".debug_str", required=False),
            line_string=self._span(".debug_line_str", required=False),
        )

    @property
    def file_bytes(self) -> bytes:
        return self._data

    @property
    def layout(self) -> SectionLayout:
        return self._layout

    def read_bytes(self, address: int, length: int) -> bytes:
        """Read initialized data from the allocated section covering the range.

        Sections without file contents (.bss) read as zeros.
        """
        for section in self.elf.iter_sections():
            if not section["sh_flags"] & SH_FLAGS.SHF_ALLOC:
                continue
            start = section["sh_addr"]
            if not (start <= address and address + length <= start + section["sh_size"]):
                continue
            if section["sh_type"] == "SHT_NOBITS":
                return bytes(length)
            offset = section["sh_offset"] + address - start
            return self._data[offset : offset + length]

        raise AddressOutOfRangeError(
            address, f"No allocated section of {self.elf_path.name} holds 0x{address:08X}+{length}"
        )

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    def __enter__(self) -> "ElfObjectContainer":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
