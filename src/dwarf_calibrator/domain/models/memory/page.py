#!/usr/bin/env python3

"""Calibration image page model."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass
class MemoryPage:
    """Contiguous bytes starting at ``base_address``."""

    base_address: int
    data: bytearray = field(default_factory=bytearray)

    @property
    def end_address(self) -> int:
        """Address one past the last byte."""
        return self.base_address + len(self.data)

    def pad_to(self, length: int) -> None:
        """Zero-fill up to ``length`` bytes; never shrinks."""
        if len(self.data) < length:
            self.data.extend(bytes(length - len(self.data)))

    def align(self, boundary: int) -> None:
        """Zero-fill to the next multiple of ``boundary``."""
        remainder = len(self.data) % boundary
        if remainder:
            self.pad_to(len(self.data) + boundary - remainder)


class BinaryFormat(Enum):
    """On-disk calibration image formats."""

    HEX = "hex"
    BIN = "bin"

    @classmethod
    def from_path(cls, path: Path) -> "BinaryFormat":
        """Pick the format from a file extension; anything unknown is raw binary."""
        if path.suffix.lower() in (".hex", ".ihex", ".h86"):
            return cls.HEX
        return cls.BIN
