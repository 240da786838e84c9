"""Pytest configuration and shared fixtures."""

import os
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Add src and the test helpers to the path for imports
tests_path = Path(__file__).parent
src_path = tests_path.parent / "src"
for path in (src_path, tests_path):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dwarf_fixtures import CAL_BASE, CAL_DATA, calibration_container
from elf_fixtures import write_calibration_elf

from dwarf_calibrator.core import DWARFParser, ParseResult
from dwarf_calibrator.domain.models.memory import MemoryPage
from dwarf_calibrator.domain.services.memory import MemoryImage
from dwarf_calibrator.infrastructure.logging import LoggerSetup
from dwarf_calibrator.infrastructure.object_container import RawObjectContainer


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def cal_container() -> RawObjectContainer:
    """In-memory object file holding the calibration program."""
    return calibration_container()


@pytest.fixture
def cal_result(cal_container: RawObjectContainer) -> ParseResult:
    """Parse result of the calibration program, resolved on two workers."""
    with DWARFParser(max_workers=2) as parser:
        return parser.parse(cal_container)


@pytest.fixture
def cal_elf(tmp_path: Path) -> Path:
    """The calibration program written out as an ELF file."""
    return write_calibration_elf(tmp_path / "cal.elf")


@pytest.fixture
def cal_image() -> MemoryImage:
    """Calibration image holding the program's initial values."""
    return MemoryImage([MemoryPage(CAL_BASE, bytearray(CAL_DATA))])


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory without calibrator environment variables.

    The environment is a private copy, so values loaded from .env files do
    not leak into other tests.
    """
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for name in ("ELF_FILE_PATH", "CALIBRATION_FILE", "OUTPUT_FILE", "VERBOSE", "LOG_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Tear down handlers installed by LoggerSetup during a test."""
    yield
    if LoggerSetup.is_initialized():
        LoggerSetup.shutdown()
