"""Shared logging for chime.

All components log to ~/.local/state/chime/chime.log via Python's logging module.
Filter with grep: grep 'chime.bus' ~/.local/state/chime/chime.log
"""

import logging

from .paths import get_log_path

_handler = logging.FileHandler(get_log_path("chime"))
_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(message)s", datefmt="%H:%M:%S"))

_root = logging.getLogger("chime")
_root.addHandler(_handler)
_root.setLevel(logging.DEBUG)
# don't propagate to root logger (avoids duplicate output if someone
# configures the root logger elsewhere)
_root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return _root.getChild(name)
