"""Minimal little-endian ELF32 writer for container and CLI tests."""

import struct
import zlib
from dataclasses import dataclass
from pathlib import Path

from dwarf_fixtures import CAL_BASE, CAL_DATA, calibration_sections

SHT_PROGBITS = 1
SHT_STRTAB = 3
SHT_NOBITS = 8

SHF_WRITE = 0x1
SHF_ALLOC = 0x2
SHF_COMPRESSED = 0x800

EM_ARM = 40

BSS_ADDRESS = CAL_BASE + 0x100
BSS_SIZE = 16


@dataclass
class ElfSection:
    name: str
    data: bytes = b""
    sh_type: int = SHT_PROGBITS
    flags: int = 0
    address: int = 0
    size: int | None = None


def build_elf32(sections: list[ElfSection], machine: int = EM_ARM) -> bytes:
    """Lay out an executable with the given sections and a section name table."""
    names = bytearray(b"\0")
    name_offsets = []
    for section in sections:
        name_offsets.append(len(names))
        names += section.name.encode("ascii") + b"\0"
    name_offsets.append(len(names))
    names += b".shstrtab\0"
    all_sections = [*sections, ElfSection(".shstrtab", bytes(names), SHT_STRTAB)]

    out = bytearray(52)
    headers = [bytes(40)]
    for section, name_offset in zip(all_sections, name_offsets):
        while len(out) % 4:
            out.append(0)
        offset = len(out)
        if section.sh_type == SHT_NOBITS:
            size = section.size or 0
        else:
            out += section.data
            size = len(section.data)
        headers.append(
            struct.pack(
                "<10I",
                name_offset,
                section.sh_type,
                section.flags,
                section.address,
                offset,
                size,
                0,
                0,
                1,
                0,
            )
        )

    while len(out) % 4:
        out.append(0)
    section_header_offset = len(out)
    for header in headers:
        out += header

    ident = b"\x7fELF" + bytes([1, 1, 1, 0]) + bytes(8)
    out[:52] = ident + struct.pack(
        "<HHIIIIIHHHHHH",
        2,  # ET_EXEC
        machine,
        1,
        0,
        0,
        section_header_offset,
        0,
        52,
        32,
        0,
        40,
        len(headers),
        len(headers) - 1,
    )
    return bytes(out)


def calibration_elf_sections(
    compress_info: bool = False, omit_info: bool = False
) -> list[ElfSection]:
    dwarf = calibration_sections()
    info = ElfSection(".debug_info", dwarf.info)
    if compress_info:
        payload = zlib.compress(dwarf.info)
        # Elf32_Chdr: ELFCOMPRESS_ZLIB, uncompressed size, alignment
        info = ElfSection(
            ".debug_info",
            struct.pack("<III", 1, len(dwarf.info), 1) + payload,
            flags=SHF_COMPRESSED,
        )

    sections = [
        ElfSection(".data", CAL_DATA, flags=SHF_WRITE | SHF_ALLOC, address=CAL_BASE),
        ElfSection(
            ".bss", sh_type=SHT_NOBITS, flags=SHF_WRITE | SHF_ALLOC, address=BSS_ADDRESS, size=BSS_SIZE
        ),
        ElfSection(".debug_abbrev", dwarf.abbrev),
    ]
    if not omit_info:
        sections.append(info)
    sections.append(ElfSection(".debug_str", dwarf.string))
    return sections


def write_calibration_elf(
    path: Path, compress_info: bool = False, omit_info: bool = False
) -> Path:
    """Write the calibration program as an ELF file and return its path."""
    path.write_bytes(build_elf32(calibration_elf_sections(compress_info, omit_info)))
    return path
