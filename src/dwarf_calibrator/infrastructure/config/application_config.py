#!/usr/bin/env python3

"""Application configuration for the calibrator CLI."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

TRUE_VALUES = ("true", "1", "yes", "on")


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


@dataclass
class Config:
    """Paths and switches for one calibrator run."""

    elf_file_path: Path | None = None
    calibration_file: Path | None = None
    output_file: Path | None = None
    verbose: bool = False
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, env_path: Path | None = None) -> "Config":
        """
        Load configuration from environment variables and an optional .env file.

        Variables already present in the environment win over the file.

        Args:
            env_path: Path to the .env file (defaults to .env in the working directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            elf_file_path=_optional_path(os.getenv("ELF_FILE_PATH")),
            calibration_file=_optional_path(os.getenv("CALIBRATION_FILE")),
            output_file=_optional_path(os.getenv("OUTPUT_FILE")),
            verbose=os.getenv("VERBOSE", "false").lower() in TRUE_VALUES,
            log_dir=Path(os.getenv("LOG_DIR", "logs")),
        )

    @classmethod
    def from_args(
        cls,
        elf_file_path: Path | None = None,
        calibration_file: Path | None = None,
        output_file: Path | None = None,
        verbose: bool | None = None,
        env_path: Path | None = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to the environment.

        Args:
            elf_file_path: ELF file carrying the debug information
            calibration_file: Intel HEX or raw binary calibration image
            output_file: Destination for the edited image
            verbose: Enable debug output on the console
            env_path: Optional .env file to read first

        Returns:
            Config object
        """
        config = cls.from_env(env_path)

        if elf_file_path is not None:
            config.elf_file_path = elf_file_path
        if calibration_file is not None:
            config.calibration_file = calibration_file
        if output_file is not None:
            config.output_file = output_file
        if verbose:
            config.verbose = verbose

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If a required file is missing
        """
        if self.elf_file_path is None:
            raise ValueError("No ELF file given (pass it as an argument or set ELF_FILE_PATH)")

        if not self.elf_file_path.exists():
            raise ValueError(f"ELF file not found: {self.elf_file_path}")

        if not self.elf_file_path.is_file():
            raise ValueError(f"Not a file: {self.elf_file_path}")

        if self.calibration_file is not None and not self.calibration_file.is_file():
            raise ValueError(f"Calibration file not found: {self.calibration_file}")

    def ensure_log_dir(self) -> None:
        """Create the log directory if it doesn't exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
