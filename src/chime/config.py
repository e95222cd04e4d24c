"""Configuration management for chime."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def get_config_path() -> Path:
    """Get the path to the chime config file."""
    xdg_config = Path.home() / ".config"
    return xdg_config / "chime" / "config.toml"


def get_default_config() -> str:
    """Return the default config file contents."""
    return """\
# Chime configuration

# Max number of notifications to keep in history
max_items = 100

# Persist notifications across restarts (~/.cache/chime/notifications.json)
persist = true

# Icon shown for notifications that don't carry their own
icon = "preferences-system-notifications"

# Minimum fuzzy score (0-100) for a notification to match a query
min_score = 30

# Command that reads text on stdin and puts it on the clipboard
clipboard_command = ["wl-copy"]

[tui]
transparent = false

[tui.keybindings]
quit = "q"
dismiss = "d"
dismiss_all = "D"
copy = "c"
copy_body = "b"
"""


@dataclass
class KeybindingsConfig:
    """Configuration for TUI keybindings.

    Each command field is a string where each character is a valid key binding.
    For example, quit="qQ" means both 'q' and 'Q' will quit.

    The up_down field is a 2-character string: up, down.
    For vim: "kj". Empty string means use default arrow keys only.
    """

    quit: str = "q"
    dismiss: str = "d"
    dismiss_all: str = "D"
    copy: str = "c"
    copy_body: str = "b"
    up_down: str = ""  # 2-char string: up, down (e.g., "kj" for vim)


@dataclass
class TuiConfig:
    """Configuration for the TUI."""

    transparent: bool = False  # Use ANSI colors for terminal transparency
    keybindings: KeybindingsConfig = field(default_factory=KeybindingsConfig)


@dataclass
class Config:
    """Chime configuration."""

    max_items: int = 100
    persist: bool = True
    icon: str = "preferences-system-notifications"
    min_score: int = 30
    hide_from_providerlist: bool = False
    name_pretty: str = ""
    clipboard_command: list[str] = field(default_factory=lambda: ["wl-copy"])
    tui: TuiConfig = field(default_factory=TuiConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file, or return defaults."""
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return Config()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # Log warning but return defaults
        print(f"Warning: Could not load config from {config_path}: {e}")
        return Config()

    return _parse_config(data)


def _typed(data: dict[str, Any], key: str, default: Any) -> Any:
    """Get data[key] if it has the same type as default, else default."""
    value = data.get(key, default)
    # bool is a subclass of int; don't let `max_items = true` through
    if type(value) is not type(default):
        return default
    return value


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse config dict into Config object."""
    defaults = Config()

    clipboard_command = data.get("clipboard_command", defaults.clipboard_command)
    if isinstance(clipboard_command, str):
        clipboard_command = clipboard_command.split()
    if not clipboard_command or not all(isinstance(c, str) for c in clipboard_command):
        clipboard_command = defaults.clipboard_command

    max_items = _typed(data, "max_items", defaults.max_items)
    if max_items < 1:
        max_items = defaults.max_items

    tui_data = data.get("tui", {})
    keybindings_data = tui_data.get("keybindings", {})
    # Use dataclass defaults for any unspecified keybindings
    kb_defaults = KeybindingsConfig()
    keybindings = KeybindingsConfig(
        **{
            field: _typed(keybindings_data, field, getattr(kb_defaults, field))
            for field in kb_defaults.__dataclass_fields__
        }
    )
    tui = TuiConfig(
        transparent=_typed(tui_data, "transparent", False),
        keybindings=keybindings,
    )

    return Config(
        max_items=max_items,
        persist=_typed(data, "persist", defaults.persist),
        icon=_typed(data, "icon", defaults.icon),
        min_score=_typed(data, "min_score", defaults.min_score),
        hide_from_providerlist=_typed(
            data, "hide_from_providerlist", defaults.hide_from_providerlist
        ),
        name_pretty=_typed(data, "name_pretty", defaults.name_pretty),
        clipboard_command=list(clipboard_command),
        tui=tui,
    )


def ensure_config_exists() -> Path:
    """Ensure the config file exists, creating with defaults if needed."""
    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(get_default_config())

    return config_path
