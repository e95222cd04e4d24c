"""CLI entry point for chime.

Chime keeps a history of desktop notifications. Current features:
- daemon: act as (or listen next to) the freedesktop notification daemon
- tui: browse, search and dismiss the history
- list/state: read the persisted history from scripts
"""

import argparse
import json
import sys
from dataclasses import asdict
from datetime import datetime

from .config import ensure_config_exists, get_config_path, load_config
from .history import HistoryStore, Persistence
from .query import query


def _load_history() -> HistoryStore:
    """Read-only view of the persisted history (no bus, no writes)."""
    config = load_config()
    store = HistoryStore(max_items=config.max_items, persistence=Persistence())
    store.load()
    return store


def cmd_daemon(args: argparse.Namespace) -> None:
    """Run the notification daemon in the foreground."""
    from .bus import BusState
    from .provider import NotificationsProvider

    provider = NotificationsProvider(start_bus=False)
    provider.setup()
    if provider.read_only:
        provider.teardown()
        print(
            f"Error: another chime process owns {provider.persistence.lock_path}",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        # Blocks until the bus connection goes away
        provider.daemon.run_forever()
    except KeyboardInterrupt:
        pass
    finally:
        provider.teardown()

    if provider.daemon.state is BusState.UNAVAILABLE:
        print("Error: DBus session bus not available", file=sys.stderr)
        sys.exit(1)


def cmd_tui(args: argparse.Namespace) -> None:
    """Launch the history TUI."""
    from .tui import main as tui_main

    tui_main()


def cmd_list(args: argparse.Namespace) -> None:
    """List (or search) the persisted history."""
    config = load_config()
    items = query(
        _load_history(),
        args.query,
        args.exact,
        icon=config.icon,
        min_score=config.min_score,
    )
    items.sort(key=lambda i: i.score, reverse=True)

    if args.json:
        print(json.dumps([asdict(i) for i in items]))
        return

    if not items:
        print("No notifications.")
        return

    for item in items:
        created = datetime.fromtimestamp(item.time).strftime("%Y-%m-%d %H:%M:%S")
        print(f"[{item.identifier}] {created} | {item.text}")
        if args.verbose and item.subtext:
            print(f"    {item.subtext}")


def cmd_state(args: argparse.Namespace) -> None:
    """Show how many notifications are stored."""
    count = len(_load_history())
    if args.json:
        print(json.dumps({"states": [f"{count} notifications"], "count": count}))
    else:
        print(f"{count} notifications")


def cmd_config_init(args: argparse.Namespace) -> None:
    """Initialize config file with defaults."""
    config_path = ensure_config_exists()
    print(f"Config file at: {config_path}")


def cmd_config_path(args: argparse.Namespace) -> None:
    """Print config file path."""
    print(get_config_path())


def cmd_config_show(args: argparse.Namespace) -> None:
    """Show current config."""
    config_path = get_config_path()
    if config_path.exists():
        print(config_path.read_text())
    else:
        print(f"No config file at {config_path}")
        print("Run 'chime config init' to create one.")


def setup_config_parser(subparsers: argparse._SubParsersAction) -> None:
    """Set up the config subcommand."""
    config_parser = subparsers.add_parser(
        "config",
        help="Manage chime configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    # config init
    init_parser = config_subparsers.add_parser("init", help="Create default config file")
    init_parser.set_defaults(func=cmd_config_init)

    # config path
    path_parser = config_subparsers.add_parser("path", help="Print config file path")
    path_parser.set_defaults(func=cmd_config_path)

    # config show
    show_parser = config_subparsers.add_parser("show", help="Show current config")
    show_parser.set_defaults(func=cmd_config_show)

    config_parser.set_defaults(func=cmd_config_show, config_command=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chime",
        description="Desktop notification history and notification daemon",
    )
    subparsers = parser.add_subparsers(dest="command")

    # daemon
    daemon_parser = subparsers.add_parser(
        "daemon",
        help="Serve org.freedesktop.Notifications (or listen if another daemon owns it)",
    )
    daemon_parser.set_defaults(func=cmd_daemon)

    # tui
    tui_parser = subparsers.add_parser("tui", help="Browse the history (default)")
    tui_parser.set_defaults(func=cmd_tui)

    # list
    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List or search history")
    list_parser.add_argument("query", nargs="?", default="", help="Fuzzy search text")
    list_parser.add_argument("--exact", action="store_true", help="Substring match only")
    list_parser.add_argument("-v", "--verbose", action="store_true", help="Show bodies")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=cmd_list)

    # state
    state_parser = subparsers.add_parser("state", help="Show history size")
    state_parser.add_argument("--json", action="store_true", help="Output as JSON")
    state_parser.set_defaults(func=cmd_state)

    setup_config_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        # Bare "chime" is the TUI
        cmd_tui(args)
    elif hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
