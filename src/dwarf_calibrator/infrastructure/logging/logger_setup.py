#!/usr/bin/env python3

"""Root logger configuration for command line runs."""

import logging
import sys
from datetime import datetime
from pathlib import Path

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"


class LoggerSetup:
    """Installs the console and file handlers once per process."""

    _initialized = False
    _log_file_path: Path | None = None
    _handlers: list[logging.Handler] = []

    @classmethod
    def initialize(cls, log_dir: Path, verbose: bool = False) -> None:
        """
        Route all records to stdout and to a new timestamped file in ``log_dir``.

        Args:
            log_dir: Directory for the log file, created when missing
            verbose: Show DEBUG records on the console (the file always gets them)
        """
        if cls._initialized:
            return

        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        cls._log_file_path = log_dir / f"dwarf_calibrator_{stamp}.log"

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

        log_file = logging.FileHandler(cls._log_file_path, encoding="utf-8")
        log_file.setLevel(logging.DEBUG)
        log_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

        root = logging.getLogger()
        root.setLevel(logging.DEBUG)
        root.handlers.clear()
        for handler in (console, log_file):
            root.addHandler(handler)

        cls._handlers = [console, log_file]
        cls._initialized = True
        logging.getLogger(__name__).debug(
            f"Logging to {cls._log_file_path} (console level: {'DEBUG' if verbose else 'INFO'})"
        )

    @classmethod
    def shutdown(cls) -> None:
        """Detach and close the handlers installed by initialize()."""
        root = logging.getLogger()
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._initialized = False
        cls._log_file_path = None

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        return cls._log_file_path

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized
