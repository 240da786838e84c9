#!/usr/bin/env python3

"""Domain services: debug info parsing, symbol resolution and calibration memory."""

from .symbol_walker import ParallelSymbolWalker

__all__ = ["ParallelSymbolWalker"]
