"""Path utilities for chime."""

import os
from pathlib import Path


def get_cache_dir() -> Path:
    """Get the chime cache directory.

    Uses $XDG_CACHE_HOME/chime/ when set, otherwise ~/.cache/chime/.
    The directory is not created here; writers create it on demand.
    """
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "chime"


def get_history_path() -> Path:
    """Get the path to the persisted notification history."""
    return get_cache_dir() / "notifications.json"


def get_log_dir() -> Path:
    """Get the directory for chime logs.

    Uses XDG state directory: ~/.local/state/chime/
    """
    log_dir = Path.home() / ".local" / "state" / "chime"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_path(name: str) -> Path:
    """Get the path to a specific log file.

    Args:
        name: Log file name (e.g., "chime")

    Returns:
        Path to ~/.local/state/chime/{name}.log
    """
    return get_log_dir() / f"{name}.log"
