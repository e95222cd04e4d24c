"""Chime TUI package."""

from .app import ChimeApp, main
from .utils import set_terminal_title

__all__ = ["ChimeApp", "main", "set_terminal_title"]
