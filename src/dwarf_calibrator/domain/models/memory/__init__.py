"""Calibration image models."""

from .page import BinaryFormat, MemoryPage

__all__ = ["BinaryFormat", "MemoryPage"]
