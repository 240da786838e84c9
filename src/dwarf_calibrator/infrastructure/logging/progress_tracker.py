#!/usr/bin/env python3

"""Progress tracking for parse sessions."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter
from typing import TYPE_CHECKING

import psutil

if TYPE_CHECKING:
    from ...domain.models.dwarf.compile_unit import CompileUnit


class ProgressTracker:
    """
    Timing and entry counts for one parse session.

    Phases nest, so while entry trees are built the context reads
    "build entry trees → unit #3".
    """

    def __init__(self, logger: logging.Logger):
        """
        Args:
            logger: Receives the progress records
        """
        self.logger = logger
        self.started = perf_counter()
        self.unit_count = 0
        self.entry_count = 0
        self.phases: list[tuple[str, float]] = []

    @contextmanager
    def track_operation(self, name: str) -> Iterator[None]:
        """
        Time one phase of the session.

        Args:
            name: Phase label used in log records

        Yields:
            None
        """
        began = perf_counter()
        self.phases.append((name, began))
        self.logger.debug(f"Phase '{name}' started")

        try:
            yield
        except Exception as e:
            self.logger.error(f"Phase '{name}' failed after {perf_counter() - began:.3f}s: {e}")
            raise
        else:
            self.logger.debug(f"Phase '{name}' finished in {perf_counter() - began:.3f}s")
        finally:
            self.phases.pop()

    @contextmanager
    def track_unit(self, unit: "CompileUnit") -> Iterator[None]:
        """
        Time the entry decoding of one compile unit.

        Args:
            unit: Unit being decoded

        Yields:
            None
        """
        self.unit_count += 1
        entries_before = self.entry_count
        with self.track_operation(f"unit #{unit.index}"):
            self.logger.debug(
                f"Unit #{unit.index}: offset 0x{unit.byte_offset:x}, "
                f"{unit.length_bytes} bytes, DWARF {unit.version}"
            )
            yield
        self.logger.debug(f"Unit #{unit.index}: {self.entry_count - entries_before} entries")

    def count_entry(self) -> None:
        self.entry_count += 1

    def report_summary(self) -> None:
        """Log unit and entry totals with the overall throughput."""
        elapsed = perf_counter() - self.started
        rate = self.entry_count / elapsed if elapsed > 0 else 0.0
        self.logger.info(
            f"Decoded {self.entry_count} entries in {self.unit_count} units "
            f"in {elapsed:.2f}s ({rate:.0f} entries/s)"
        )

    def get_current_context(self) -> str:
        """
        Returns:
            Names of the open phases joined by arrows, or "idle"
        """
        if not self.phases:
            return "idle"
        return " → ".join(name for name, _ in self.phases)

    def log_memory_usage(self) -> None:
        """Log the resident set size of this process."""
        try:
            rss = psutil.Process().memory_info().rss
        except psutil.Error as e:
            self.logger.debug(f"Could not get memory usage: {e}")
            return
        self.logger.debug(f"Resident memory: {rss / (1024 * 1024):.1f} MB")

    def reset(self) -> None:
        """Start a new session: zero the counters and restart the clock."""
        self.started = perf_counter()
        self.unit_count = 0
        self.entry_count = 0
        self.phases.clear()
