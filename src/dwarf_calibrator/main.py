"""Main entry point for the DWARF Calibrator."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from .core import DWARFParser, ParseResult
from .domain.exceptions import (
    AddressOutOfRangeError,
    DwarfParseError,
    MemoryImageError,
    ObjectContainerError,
)
from .domain.services.memory import (
    CalibratableSymbol,
    MemoryImage,
    iter_calibratables,
    parse_value,
)
from .infrastructure.config import Config
from .infrastructure.elf_container import ElfObjectContainer
from .infrastructure.logging import LoggerSetup, get_logger, log_timing
from .infrastructure.object_container import ObjectContainer

logger = get_logger(__name__)

# Array values shown per symbol in listings
MAX_LISTED_ELEMENTS = 8


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="List and edit calibration values using the DWARF debug "
        "information of an ELF file",
        epilog="""
Examples:
  # List calibratable symbols with their initial values from the ELF
  dwarf-calibrator firmware.elf

  # List values stored in a calibration image
  dwarf-calibrator firmware.elf --calibration cal.hex --filter gains

  # Change values and save the edited image
  dwarf-calibrator firmware.elf --calibration cal.hex \\
      --set cal.gains.kp=12 --set cal.limits[2]=0x40 -o cal_new.hex

  # Show the abbreviation tables
  dwarf-calibrator firmware.elf --dump-abbrev

  # Using .env file for configuration
  echo 'ELF_FILE_PATH=build/firmware.elf' > .env
  dwarf-calibrator --calibration cal.hex
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "elf_file",
        type=Path,
        nargs="?",
        help="ELF file with DWARF debug information (optional if using .env)",
    )
    parser.add_argument(
        "-c",
        "--calibration",
        type=Path,
        metavar="FILE",
        help="Calibration image to read and edit (Intel HEX, or raw binary from address 0)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Save the (edited) calibration image to FILE as Intel HEX",
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="PATH=VALUE",
        help="Assign VALUE to the symbol PATH; append [n] to address an array element. "
        "Repeatable",
    )
    parser.add_argument(
        "--filter",
        metavar="TEXT",
        help="Only list symbols whose path contains TEXT",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print calibratable symbols with addresses, types and values "
        "(default when no other action is given)",
    )
    parser.add_argument(
        "--dump-abbrev",
        action="store_true",
        help="Print the decoded abbreviation tables",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Worker threads for symbol resolution (default: one per CPU)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with debug logs",
    )
    return parser.parse_args(argv)


def collect_symbols(result: ParseResult) -> list[CalibratableSymbol]:
    """Flatten every unit's variables, in unit order."""
    return [symbol for tree in result.symbol_trees for symbol in iter_calibratables(tree)]


def split_assignment(assignment: str) -> tuple[str, int, str]:
    """Split ``path[index]=value`` into its parts; the index defaults to 0.

    Raises:
        ValueError: If the text is not an assignment
    """
    path, separator, value = assignment.partition("=")
    if not separator or not path or not value:
        raise ValueError(f"Expected PATH=VALUE, got {assignment!r}")

    path = path.strip()
    index = 0
    if path.endswith("]") and "[" in path:
        head, _, tail = path.rpartition("[")
        try:
            index = int(tail[:-1], 0)
            path = head
        except ValueError:
            # Struct array paths such as table[1].gain keep their brackets
            pass
    return path, index, value.strip()


def apply_assignments(
    image: MemoryImage, symbols: list[CalibratableSymbol], assignments: list[str]
) -> None:
    """Write ``--set`` values into the image.

    Raises:
        ValueError: If a path is unknown, an index is out of range, the element
            lies outside the image or a value does not parse
    """
    by_path = {symbol.path: symbol for symbol in symbols}

    for assignment in assignments:
        path, index, text = split_assignment(assignment)
        symbol = by_path.get(path)
        if symbol is None:
            raise ValueError(f"Unknown symbol: {path}")
        if not 0 <= index < symbol.element_count:
            raise ValueError(f"Index {index} out of range for {path} ({symbol.element_count} elements)")

        address = symbol.element_address(index)
        try:
            image.read_bytes(address, symbol.byte_size)
        except AddressOutOfRangeError as e:
            raise ValueError(
                f"{path}[{index}] at 0x{address:08X} is not covered by the calibration image"
            ) from e

        value = parse_value(symbol.var_type, text)
        symbol.write(image, value, index)
        logger.info(f"Set {path}[{index}] at 0x{address:08X} to {value}")


def format_value(
    symbol: CalibratableSymbol, image: MemoryImage | None, container: ObjectContainer
) -> str:
    """Render a symbol's value from the image, or its ELF default without one."""
    values = []
    try:
        for index in range(min(symbol.element_count, MAX_LISTED_ELEMENTS)):
            if image is not None:
                values.append(symbol.read(image, index))
            else:
                values.append(symbol.read_default(container, index))
    except ValueError as e:
        logger.debug(f"No value for '{symbol.path}': {e}")
        return "n/a"

    rendered = ", ".join(f"{value:g}" if isinstance(value, float) else str(value) for value in values)
    if symbol.element_count == 1:
        return rendered
    if symbol.element_count > MAX_LISTED_ELEMENTS:
        rendered += ", ..."
    return f"[{rendered}]"


def print_listing(
    symbols: list[CalibratableSymbol], image: MemoryImage | None, container: ObjectContainer
) -> None:
    for symbol in symbols:
        shape = "x".join(str(size) for size in symbol.node.sizes) or "?"
        print(
            f"0x{symbol.address:08X}  {symbol.var_type.value:<8} {shape:<10} "
            f"{symbol.path} = {format_value(symbol, image, container)}"
        )


@log_timing
def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point for listing and editing calibration values."""
    args = parse_args(argv)

    try:
        config = Config.from_args(
            elf_file_path=args.elf_file,
            calibration_file=args.calibration,
            output_file=args.output,
            verbose=args.verbose,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger.debug(f"ELF file: {config.elf_file_path}")
    logger.debug(f"Calibration file: {config.calibration_file}")

    if args.set and config.calibration_file is None:
        logger.error("--set requires a calibration file")
        sys.exit(1)

    assert config.elf_file_path is not None
    try:
        with ElfObjectContainer(config.elf_file_path) as container, DWARFParser(
            max_workers=args.workers
        ) as parser:
            result = parser.parse(container)

            if args.dump_abbrev and parser.abbrev_cache is not None:
                for line in parser.abbrev_cache.describe():
                    print(line)

            image = None
            if config.calibration_file is not None:
                image = MemoryImage.from_file(config.calibration_file)

            symbols = collect_symbols(result)
            logger.info(f"Found {len(symbols)} calibratable symbols in {len(result.units)} units")

            if image is not None and args.set:
                apply_assignments(image, symbols, args.set)

            if args.list or not (args.set or args.dump_abbrev or config.output_file):
                listed = [s for s in symbols if not args.filter or args.filter in s.path]
                print_listing(listed, image, container)

            if image is not None and config.output_file is not None:
                image.save(config.output_file)

    except (DwarfParseError, ObjectContainerError, MemoryImageError, OSError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.debug("Main program completed successfully")
    sys.exit(0)


if __name__ == "__main__":
    main()
