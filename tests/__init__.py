"""Test suite for the DWARF calibrator.

Test Structure:
- core/: End-to-end parse sessions
- config/: Configuration management
- domain/: Parsing stages, symbol resolution and calibration images
- infrastructure/: Object containers and logging

Run tests with pytest:
    pytest                    # Run all tests
    pytest -m unit            # Run unit tests only
    pytest -m integration     # Run tests that touch files or several stages
    pytest -m "not slow"      # Skip slow tests
"""

__version__ = "0.1.0"
