"""Clipboard copy via an external utility."""

import subprocess
from collections.abc import Sequence

from .log import get_logger

_log = get_logger("clipboard")

DEFAULT_COMMAND = ("wl-copy",)


def copy_to_clipboard(content: str, command: Sequence[str] = DEFAULT_COMMAND) -> bool:
    """Pipe content into the clipboard command. Returns False on failure."""
    try:
        subprocess.run(list(command), input=content.encode(), check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        _log.error("copy to clipboard: %s", e)
        return False
    return True
