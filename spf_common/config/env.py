"""Environment variable parsing utilities."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_STORE_FILENAME = "spf_options.json"


def parse_bool_env(value: str | None) -> bool | None:
    """Parse a boolean from an environment variable string.

    Returns True for "1", "true", "yes", "on" (case-insensitive).
    Returns None if value is None.
    """
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_store_path(override: str | Path | None = None) -> Path:
    """
    Determine which JSON file backs the option store.

    Preference order:
    1) explicit override (CLI flag).
    2) `SPF_STORE_PATH` env var.
    3) `spf_options.json` in the current working directory.
    """
    if override:
        return Path(override).expanduser()
    env_path = os.environ.get("SPF_STORE_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / DEFAULT_STORE_FILENAME
