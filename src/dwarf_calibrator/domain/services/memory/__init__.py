"""Calibration image services."""

from .hex_record import HexRecord, RecordType, checksum
from .memory_image import MemoryImage
from .value_access import (
    CalibratableSymbol,
    iter_calibratables,
    parse_value,
    read_default_value,
    read_typed,
    read_value,
    storage_type,
    write_typed,
    write_value,
)

__all__ = [
    "CalibratableSymbol",
    "HexRecord",
    "MemoryImage",
    "RecordType",
    "checksum",
    "iter_calibratables",
    "parse_value",
    "read_default_value",
    "read_typed",
    "read_value",
    "storage_type",
    "write_typed",
    "write_value",
]
