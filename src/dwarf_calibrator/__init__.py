"""DWARF Calibrator - typed calibration symbols from ELF debug information.

Parses DWARF 2-5 debug information into typed variable trees and edits
Intel HEX / raw binary calibration images through them.
"""

__version__ = "0.1.0"

from .core import DWARFParser, ParseResult
from .domain.services.memory import MemoryImage

__all__ = [
    "DWARFParser",
    "MemoryImage",
    "ParseResult",
    "__version__",
]
