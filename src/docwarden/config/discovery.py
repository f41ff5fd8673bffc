"""Locating docwarden.toml.

``DOCWARDEN_CONFIG`` names the file explicitly; otherwise the nearest
``docwarden.toml`` in the start directory or one of its ancestors is used,
the way git finds ``.git/``. ``--config`` bypasses discovery entirely.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "docwarden.toml"
CONFIG_ENV_VAR = "DOCWARDEN_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """The config file governing *start* (default: cwd), or None."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        return path if path.is_file() else None

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
