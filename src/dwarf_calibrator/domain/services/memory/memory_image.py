#!/usr/bin/env python3

"""Paged calibration memory with typed little-endian access.

Pages are kept sorted by base address. Typed reads and writes that fall
outside the loaded data are logged with the offending address and turn
into a zero read or a skipped write; pages never grow on write.
"""

import struct
from collections.abc import Iterable
from pathlib import Path

from ....infrastructure.config import get_config
from ....infrastructure.logging import get_logger, log_timing
from ...exceptions import AddressOutOfRangeError, MalformedRecordError, MemoryImageError
from ...models.memory import BinaryFormat, MemoryPage
from .hex_record import HexRecord, RecordType

logger = get_logger(__name__)

_U8 = struct.Struct("<B")
_S8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_S16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_S32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_S64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")

_MAX_ADDRESS = 0xFFFFFFFF
_SEGMENT_LIMIT = 0x100000


class MemoryImage:
    """Calibration image made of address-sorted pages."""

    def __init__(
        self,
        pages: list[MemoryPage] | None = None,
        page_alignment: int | None = None,
        record_size: int | None = None,
    ):
        """
        Args:
            pages: Initial pages, sorted by base address
            page_alignment: Boundary a page is zero-padded to when the next one starts
            record_size: Data bytes per saved Intel HEX record (1 to 255)
        """
        config = get_config()
        self.pages: list[MemoryPage] = pages if pages is not None else []
        self.page_alignment = page_alignment or config["HEX_PAGE_ALIGNMENT"]
        self.record_size = record_size or config["HEX_RECORD_SIZE"]
        if not 0 < self.record_size <= 0xFF:
            raise ValueError(f"Record size must be between 1 and 255, got {self.record_size}")

    @classmethod
    def from_file(cls, path: Path, fmt: BinaryFormat | None = None, strict: bool = True) -> "MemoryImage":
        image = cls()
        image.load(path, fmt, strict)
        return image

    @property
    def total_size(self) -> int:
        return sum(len(page.data) for page in self.pages)

    def clear(self) -> None:
        self.pages.clear()

    # Address lookup

    def locate(self, address: int) -> tuple[int, int]:
        """Find the page holding ``address``.

        Args:
            address: Absolute address

        Returns:
            (page index, offset inside the page)

        Raises:
            AddressOutOfRangeError: If the address precedes the first page or
                lies past the end of the last one
        """
        if not self.pages:
            raise AddressOutOfRangeError(address, f"Address 0x{address:08X}: image is empty")

        first, last = self.pages[0], self.pages[-1]
        if address < first.base_address or address > last.end_address:
            raise AddressOutOfRangeError(
                address,
                f"Address 0x{address:08X} outside image range "
                f"0x{first.base_address:08X}-0x{last.end_address:08X}",
            )

        index = 0
        while index + 1 < len(self.pages) and self.pages[index + 1].base_address <= address:
            index += 1
        return index, address - self.pages[index].base_address

    def _slot(self, address: int, size: int, action: str) -> tuple[MemoryPage, int] | None:
        try:
            index, offset = self.locate(address)
        except AddressOutOfRangeError as e:
            logger.error(f"{action} of {size} bytes failed: {e}")
            return None

        page = self.pages[index]
        if offset + size > len(page.data):
            logger.error(
                f"{action} of {size} bytes at 0x{address:08X} runs past the page at "
                f"0x{page.base_address:08X} ({len(page.data)} bytes)"
            )
            return None
        return page, offset

    def _read(self, address: int, layout: struct.Struct) -> int | float:
        slot = self._slot(address, layout.size, "Read")
        if slot is None:
            return 0
        page, offset = slot
        return layout.unpack_from(page.data, offset)[0]

    def _write(self, address: int, layout: struct.Struct, value: int | float) -> None:
        slot = self._slot(address, layout.size, "Write")
        if slot is None:
            return
        page, offset = slot
        layout.pack_into(page.data, offset, value)

    def read_bytes(self, address: int, length: int) -> bytes:
        """Strict raw read.

        Raises:
            AddressOutOfRangeError: If any byte lies outside the located page
        """
        index, offset = self.locate(address)
        page = self.pages[index]
        if offset + length > len(page.data):
            raise AddressOutOfRangeError(
                address,
                f"Read of {length} bytes at 0x{address:08X} runs past the page at "
                f"0x{page.base_address:08X}",
            )
        return bytes(page.data[offset : offset + length])

    # Typed access

    def read_uint8(self, address: int) -> int:
        return int(self._read(address, _U8))

    def read_sint8(self, address: int) -> int:
        return int(self._read(address, _S8))

    def read_uint16(self, address: int) -> int:
        return int(self._read(address, _U16))

    def read_sint16(self, address: int) -> int:
        return int(self._read(address, _S16))

    def read_uint32(self, address: int) -> int:
        return int(self._read(address, _U32))

    def read_sint32(self, address: int) -> int:
        return int(self._read(address, _S32))

    def read_uint64(self, address: int) -> int:
        return int(self._read(address, _U64))

    def read_sint64(self, address: int) -> int:
        return int(self._read(address, _S64))

    def read_float32(self, address: int) -> float:
        return float(self._read(address, _F32))

    def read_float64(self, address: int) -> float:
        return float(self._read(address, _F64))

    def read_boolean(self, address: int) -> bool:
        return self.read_uint8(address) != 0

    # Signed writes store the two's complement, so both share the unsigned layout
    def write_uint8(self, address: int, value: int) -> None:
        self._write(address, _U8, int(value) & 0xFF)

    write_sint8 = write_uint8

    def write_uint16(self, address: int, value: int) -> None:
        self._write(address, _U16, int(value) & 0xFFFF)

    write_sint16 = write_uint16

    def write_uint32(self, address: int, value: int) -> None:
        self._write(address, _U32, int(value) & 0xFFFFFFFF)

    write_sint32 = write_uint32

    def write_uint64(self, address: int, value: int) -> None:
        self._write(address, _U64, int(value) & 0xFFFFFFFFFFFFFFFF)

    write_sint64 = write_uint64

    def write_float32(self, address: int, value: float) -> None:
        self._write(address, _F32, float(value))

    def write_float64(self, address: int, value: float) -> None:
        self._write(address, _F64, float(value))

    def write_boolean(self, address: int, value: bool) -> None:
        self.write_uint8(address, 1 if value else 0)

    # Loading

    @log_timing
    def load(self, path: Path, fmt: BinaryFormat | None = None, strict: bool = True) -> None:
        """Replace the image with the contents of a calibration file.

        Args:
            path: Intel HEX or raw binary file
            fmt: File format, guessed from the extension when omitted
            strict: Raise on bad Intel HEX records instead of skipping them
        """
        fmt = fmt or BinaryFormat.from_path(path)
        if fmt is BinaryFormat.HEX:
            with path.open(encoding="ascii") as handle:
                self.load_hex_lines(handle, strict)
        else:
            self.load_binary(path.read_bytes())
        logger.info(f"Loaded {path}: {len(self.pages)} pages, {self.total_size} bytes")

    def load_binary(self, data: bytes) -> None:
        """Replace the image with one page at address 0."""
        self.pages = [MemoryPage(base_address=0, data=bytearray(data))]

    def load_hex_lines(self, lines: Iterable[str], strict: bool = True) -> int:
        """Replace the image with the records in ``lines``.

        Args:
            lines: Intel HEX text, one record per line
            strict: Raise on the first bad record; otherwise log and skip it

        Returns:
            Number of records applied

        Raises:
            MalformedRecordError: On a bad record in strict mode
            ChecksumMismatchError: On a checksum failure in strict mode
        """
        self.pages = []
        current: MemoryPage | None = None
        window = 0
        # Set by 02/04 records: the next data record opens a page unless it continues this one
        new_run = True
        applied = 0

        for line_number, line in enumerate(lines, 1):
            if not line.strip():
                continue
            try:
                record = HexRecord.parse(line)
            except MalformedRecordError as e:
                if strict:
                    raise type(e)(f"Line {line_number}: {e}") from e
                logger.error(f"Skipping line {line_number}: {e}")
                continue

            if record.record_type == RecordType.DATA:
                address = window + record.address
                current = self._page_for(current, address, new_run)
                new_run = False
                offset = address - current.base_address
                current.pad_to(offset)
                current.data[offset : offset + len(record.data)] = record.data
            elif record.record_type == RecordType.END_OF_FILE:
                applied += 1
                break
            elif record.record_type == RecordType.EXTENDED_SEGMENT_ADDRESS:
                window = record.word << 4
                new_run = True
            elif record.record_type == RecordType.EXTENDED_LINEAR_ADDRESS:
                window = record.word << 16
                new_run = True
            elif record.record_type in (
                RecordType.START_SEGMENT_ADDRESS,
                RecordType.START_LINEAR_ADDRESS,
            ):
                logger.debug(f"Ignoring start address record on line {line_number}")
            else:
                message = f"Line {line_number}: unknown record type 0x{record.record_type:02X}"
                if strict:
                    raise MalformedRecordError(message)
                logger.error(message)
                continue
            applied += 1

        self._sort_pages()
        return applied

    def _page_for(self, current: MemoryPage | None, address: int, new_run: bool) -> MemoryPage:
        """Pick the page a data record at ``address`` goes into.

        Data continues the current page when it lands inside it or right
        after it. Past the end, the gap is zero-filled unless an address
        record came in between, in which case a new page starts at
        ``address``.
        """
        if current is not None and current.base_address <= address:
            if address <= current.end_address or not new_run:
                return current
        return self._start_page(address)

    def _start_page(self, base_address: int) -> MemoryPage:
        if self.pages:
            self.pages[-1].align(self.page_alignment)
        page = MemoryPage(base_address=base_address)
        self.pages.append(page)
        return page

    def _sort_pages(self) -> None:
        self.pages = [page for page in self.pages if page.data]
        self.pages.sort(key=lambda page: page.base_address)
        for previous, page in zip(self.pages, self.pages[1:]):
            if previous.end_address > page.base_address:
                logger.warning(
                    f"Page at 0x{previous.base_address:08X} overlaps the page at "
                    f"0x{page.base_address:08X}"
                )

    # Saving

    def _base_for(self, address: int) -> tuple[int, HexRecord]:
        """Pick the record base for a run of data starting at ``address``.

        Segment records keep a page's base exact on reload when it is not
        64 KiB aligned; everything else uses linear records.
        """
        if address % 0x10000 and address % 16 == 0 and address < _SEGMENT_LIMIT:
            segment = address >> 4
            return address, HexRecord(
                RecordType.EXTENDED_SEGMENT_ADDRESS, 0, segment.to_bytes(2, "big")
            )
        upper = address >> 16
        return upper << 16, HexRecord(
            RecordType.EXTENDED_LINEAR_ADDRESS, 0, upper.to_bytes(2, "big")
        )

    def to_hex_lines(self) -> list[str]:
        """Encode every page as Intel HEX records, ending with the EOF record."""
        lines: list[str] = []

        for page in self.pages:
            if page.end_address - 1 > _MAX_ADDRESS:
                raise MemoryImageError(
                    f"Page at 0x{page.base_address:X} exceeds the 32-bit address space"
                )
            # Each page opens with an address record so pages sharing a window stay apart on reload
            base: int | None = None
            offset = 0
            while offset < len(page.data):
                address = page.base_address + offset
                length = min(self.record_size, len(page.data) - offset)
                if base is None or address + length - base > 0x10000:
                    base, record = self._base_for(address)
                    lines.append(record.encode())
                    # Stay inside the 64 KiB window of the new base
                    length = min(length, base + 0x10000 - address)

                chunk = bytes(page.data[offset : offset + length])
                lines.append(HexRecord(RecordType.DATA, address - base, chunk).encode())
                offset += length

        lines.append(HexRecord(RecordType.END_OF_FILE, 0).encode())
        return lines

    @log_timing
    def save(self, path: Path) -> None:
        """Write the image as Intel HEX."""
        lines = self.to_hex_lines()
        path.write_text("\n".join(lines) + "\n", encoding="ascii")
        logger.info(f"Saved {path}: {len(lines)} records")
