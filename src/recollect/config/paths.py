"""Centralized path management for recollect.

All state (config and session journals) is stored under a single base
directory. The base directory can be overridden with the RECOLLECT_HOME
environment variable.

Default locations:
- Linux/macOS: ~/.recollect
- Windows: %USERPROFILE%\\.recollect
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "RECOLLECT_HOME"


@lru_cache(maxsize=1)
def get_recollect_home() -> Path:
    """Get the base directory for all recollect data.

    Resolution order:
    1. RECOLLECT_HOME environment variable (if set)
    2. Platform default (~/.recollect)

    Returns:
        Path to the recollect home directory.
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".recollect"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_recollect_home() / "config.toml"


def get_db_path() -> Path:
    """Get the default memory root (journals live in ``<db>/sessions``)."""
    return get_recollect_home() / "memory"
