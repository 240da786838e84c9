#!/usr/bin/env python3

"""Tuning knobs for parsing and calibration image handling."""

import os

DEFAULT_CONFIG: dict[str, int] = {
    # Worker threads for type resolution, 0 means one per CPU
    "MAX_WORKERS": 0,
    # Nesting limit for debug entries inside one compile unit
    "MAX_TREE_DEPTH": 128,
    # Nesting limit when following type references
    "MAX_TYPE_DEPTH": 64,
    # Pages are zero-padded to this boundary when a new segment starts
    "HEX_PAGE_ALIGNMENT": 32,
    # Data bytes per record when saving Intel HEX
    "HEX_RECORD_SIZE": 16,
}


def get_config() -> dict[str, int]:
    """Get configuration with ``DWARF_*`` environment variable overrides.

    Values that do not parse as integers are ignored.

    Returns:
        Configuration dictionary
    """
    config = DEFAULT_CONFIG.copy()

    for key in config:
        env_value = os.getenv(f"DWARF_{key}")
        if env_value is None:
            continue
        try:
            config[key] = int(env_value, 0)
        except ValueError:
            pass

    return config
