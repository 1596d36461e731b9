"""Runtime data directory for config, the content database and media files."""

from __future__ import annotations

import os
from pathlib import Path

DATA_DIR_ENV = "PRX_SYNC_DATA_DIR"
DEFAULT_DATA_DIR = Path.home() / ".prx_sync"


def get_data_dir() -> Path:
    """Return ``$PRX_SYNC_DATA_DIR`` when set (and non-blank), else ``~/.prx_sync``."""
    override = (os.getenv(DATA_DIR_ENV) or "").strip()
    base = Path(override).expanduser() if override else DEFAULT_DATA_DIR
    return base.resolve()


def ensure_data_dir() -> Path:
    """Create the data directory if needed and return it."""
    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def resolve_data_file(path: str, ensure_parent: bool = False) -> Path:
    """Resolve a configured storage path (``storage.database`` and the like).

    Absolute paths are kept; relative ones live under the data directory.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = ensure_data_dir() / candidate
    if ensure_parent:
        candidate.parent.mkdir(parents=True, exist_ok=True)
    return candidate


def resolve_data_dir(path: str, ensure_exists: bool = False) -> Path:
    """Like :func:`resolve_data_file`, for a directory (``storage.media_dir``)."""
    directory = resolve_data_file(path)
    if ensure_exists:
        directory.mkdir(parents=True, exist_ok=True)
    return directory


__all__ = [
    "get_data_dir",
    "ensure_data_dir",
    "resolve_data_file",
    "resolve_data_dir",
]
