"""TUI utilities and helpers."""

import sys

from rich.text import Text


def set_terminal_title(title: str) -> None:
    """Set the terminal/pane title via OSC escape sequence."""
    # OSC 0 sets both icon name and window title
    sys.stdout.write(f"\033]0;{title}\007")
    sys.stdout.flush()


def highlight(value: str, positions: list[int], offset: int = 0) -> Text:
    """Bold the characters of value at the given match positions.

    Positions index into a longer search string; offset is where value
    starts within it.
    """
    text = Text(value)
    for pos in positions:
        i = pos - offset
        if 0 <= i < len(value):
            text.stylize("bold cyan", i, i + 1)
    return text
