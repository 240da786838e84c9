"""DWARF parser producing entry trees and typed symbol trees from an object file."""

from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Any

from ..domain.exceptions import DwarfParseError
from ..domain.models.dwarf import CompileUnit, EntryTree, VariableInfoTree
from ..domain.services.parsing import (
    AbbreviationCache,
    AttributeValueReader,
    CompileUnitScanner,
    EntryTreeBuilder,
)
from ..domain.services.symbol_walker import ParallelSymbolWalker
from ..infrastructure.config import get_config
from ..infrastructure.elf_container import ElfObjectContainer
from ..infrastructure.logging import ProgressTracker, get_logger, log_timing
from ..infrastructure.object_container import ObjectContainer

logger = get_logger(__name__)


@dataclass
class ParseResult:
    """Everything one parse session produced, in compile unit order."""

    source: str
    units: list[CompileUnit] = field(default_factory=list)
    entry_trees: list[EntryTree] = field(default_factory=list)
    symbol_trees: list[VariableInfoTree] = field(default_factory=list)
    abbrev_stats: dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> list[str]:
        """Recoverable problems recorded by units and symbol trees."""
        messages = [message for unit in self.units for message in unit.errors]
        messages.extend(message for tree in self.symbol_trees for message in tree.errors)
        return messages


class DWARFParser:
    """Runs parse sessions over object containers.

    A session scans the compile units, resolves their abbreviation tables
    and builds their entry trees one after another, then resolves symbol
    types for all units in parallel. Each call to parse() throws away the
    previous session's results first.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        max_depth: int | None = None,
        max_type_depth: int | None = None,
    ) -> None:
        """
        Initialize the parser.

        Args:
            max_workers: Worker threads for type resolution (default from config, 0 = CPU count)
            max_depth: Deepest entry nesting accepted per unit
            max_type_depth: Longest type chain followed per variable
        """
        config = get_config()
        self.max_workers = max_workers if max_workers is not None else config["MAX_WORKERS"]
        self.max_depth = max_depth if max_depth is not None else config["MAX_TREE_DEPTH"]
        self.max_type_depth = (
            max_type_depth if max_type_depth is not None else config["MAX_TYPE_DEPTH"]
        )
        self.abbrev_cache: AbbreviationCache | None = None
        self.result: ParseResult | None = None
        self.tracker = ProgressTracker(logger)

    def invalidate(self) -> None:
        """Drop the previous session's trees and abbreviation cache."""
        if self.abbrev_cache is not None:
            self.abbrev_cache.clear()
        self.abbrev_cache = None
        self.result = None
        self.tracker.reset()

    @log_timing
    def parse(self, container: ObjectContainer) -> ParseResult:
        """
        Parse the debug information of ``container``.

        Args:
            container: Object file providing the DWARF sections

        Returns:
            ParseResult with units, entry trees and symbol trees

        Raises:
            DwarfParseError: If the debug information is structurally invalid
        """
        self.invalidate()
        try:
            result = self._run(container)
        except DwarfParseError as e:
            logger.error(f"Failed to parse debug information of {container.name}: {e}")
            self.invalidate()
            raise

        self.result = result
        for message in result.errors:
            logger.warning(f"{container.name}: {message}")
        return result

    def _run(self, container: ObjectContainer) -> ParseResult:
        data = container.file_bytes
        layout = container.layout
        result = ParseResult(source=container.name)

        with self.tracker.track_operation("scan compile units"):
            result.units = CompileUnitScanner(data, layout.info.offset, layout.info.length).scan()
        if not result.units:
            logger.warning(f"{container.name} contains no compile units")
            return result

        self.abbrev_cache = AbbreviationCache(data, layout.abbrev.end)
        reader = AttributeValueReader(
            data,
            layout.string.offset if layout.string else None,
            layout.string.length if layout.string else 0,
            layout.line_string.offset if layout.line_string else None,
            layout.line_string.length if layout.line_string else 0,
        )
        builder = EntryTreeBuilder(data, layout.info.offset, reader, self.max_depth, self.tracker)

        with self.tracker.track_operation("build entry trees"):
            for unit in result.units:
                with self.tracker.track_unit(unit):
                    unit.abbrev_table = self.abbrev_cache.resolve(
                        layout.abbrev.offset + unit.abbrev_offset
                    )
                    result.entry_trees.append(builder.build(unit))

        walker = ParallelSymbolWalker(self.max_workers or None, self.max_type_depth)
        with self.tracker.track_operation("resolve symbols"):
            result.symbol_trees = walker.walk(result.entry_trees)

        result.abbrev_stats = self.abbrev_cache.stats()
        logger.debug(f"Abbreviation cache: {result.abbrev_stats}")
        self.tracker.report_summary()
        self.tracker.log_memory_usage()
        return result

    def parse_file(self, elf_path: Path) -> ParseResult:
        """Parse an ELF file from disk."""
        with ElfObjectContainer(elf_path) as container:
            return self.parse(container)

    def close(self) -> None:
        self.invalidate()

    def __enter__(self) -> "DWARFParser":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
