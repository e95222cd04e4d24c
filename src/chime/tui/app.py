"""Main Chime TUI application: search and act on the notification history."""

import time
from datetime import datetime

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Input, Static

from ..actions import ACTION_COPY, ACTION_COPY_BODY, ACTION_DISMISS, ACTION_DISMISS_ALL
from ..bus import BusState
from ..config import load_config
from ..log import get_logger
from ..provider import NotificationsProvider
from .screens import ConfirmScreen
from .utils import highlight, set_terminal_title

_DAY_SECONDS = 86400
# How often a read-only TUI checks the history file
_POLL_SECONDS = 2.0


_log = get_logger("tui")


def _format_timestamp(ts: float) -> str:
    dt = datetime.fromtimestamp(ts)
    if time.time() - ts < _DAY_SECONDS:
        return dt.strftime("%H:%M:%S")
    return dt.strftime("%Y-%m-%d")


def _build_bindings(keys: str, action: str, label: str, show: bool = True) -> list[Binding]:
    """Build Binding objects for all keys mapped to an action.

    Args:
        keys: String of characters, each is a key binding
        action: The action name (without 'action_' prefix)
        label: Human-readable label for the action
        show: Whether to show in footer (only first key will be shown)

    Returns:
        List of Binding objects
    """
    if not keys:
        return []

    bindings = []
    # First key gets the visible binding
    bindings.append(Binding(keys[0], action, label, show=show))

    # Additional keys get hidden bindings
    for key in keys[1:]:
        bindings.append(Binding(key, action, label, show=False))

    return bindings


class ChimeApp(App):
    """Chime TUI - notification history with search."""

    CSS = """
    #filter {
        height: 3;
        border: solid $accent;
    }

    #results {
        height: 1fr;
    }

    #status {
        height: 1;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(self, provider: NotificationsProvider | None = None) -> None:
        super().__init__()
        self.config = provider.config if provider is not None else load_config()
        self.provider = provider or NotificationsProvider(self.config)
        self._query = ""
        self._setup_keybindings()
        # Enable ANSI colors for terminal transparency support
        if self.config.tui.transparent:
            self.ansi_color = True

    def _setup_keybindings(self) -> None:
        """Build keybindings from config."""
        kb = self.config.tui.keybindings

        for b in _build_bindings(kb.quit, "quit", "Quit"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.dismiss, "dismiss", "Dismiss"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.dismiss_all, "dismiss_all", "Dismiss All"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.copy, "copy", "Copy"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.copy_body, "copy_body", "Copy Body"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        self.bind("slash", "focus_filter", description="Filter", show=False)

        # Arrow key alternatives (if configured)
        if len(kb.up_down) == 2:
            up, down = kb.up_down
            self.bind(up, "cursor_up", description="Up", show=False)
            self.bind(down, "cursor_down", description="Down", show=False)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Search summary, body, app...", id="filter")
        yield DataTable(id="results")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "chime"
        self.sub_title = self.provider.name_pretty.lower()

        if self.config.tui.transparent:
            self.screen.styles.background = "transparent"
            self.query_one("#results", DataTable).styles.background = "transparent"

        table = self.query_one("#results", DataTable)
        table.cursor_type = "row"
        table.add_column("Time", width=10)
        table.add_column("Summary", width=30)
        table.add_column("Message", width=60)

        self.provider.setup()
        self.provider.subscribe(self._on_provider_update)
        if self.provider.read_only:
            self.set_interval(_POLL_SECONDS, self._poll_history)
            self.notify("Another chime process owns the history; browsing read-only")

        self._refresh_results()
        table.focus()
        self.refresh_bindings()

    def on_unmount(self) -> None:
        self.provider.unsubscribe(self._on_provider_update)
        self.provider.teardown()

    def _on_provider_update(self, event: str) -> None:
        """Called from the bus thread when a notification arrives."""
        _log.debug("provider update: %s", event)
        self.call_from_thread(self._refresh_results)

    def _poll_history(self) -> None:
        if self.provider.refresh():
            self._refresh_results()

    def _refresh_results(self) -> None:
        table = self.query_one("#results", DataTable)
        current_row = table.cursor_coordinate.row if table.row_count > 0 else 0

        table.clear()
        items = self.provider.query(self._query)
        if self._query:
            items.sort(key=lambda i: i.score, reverse=True)

        for item in items:
            table.add_row(
                Text(_format_timestamp(item.time), style="dim"),
                highlight(item.text, item.fuzzy.positions),
                Text(item.subtext.replace("\n", " ")),
                key=item.identifier,
            )

        if table.row_count > 0:
            table.move_cursor(row=min(current_row, table.row_count - 1))

        state = self.provider.state()
        status = " | ".join(state.states)
        if self.provider.daemon.state is not BusState.UNINITIALIZED:
            status += f" | bus: {self.provider.daemon.state.value}"
        self.query_one("#status", Static).update(status)

    def _current_identifier(self) -> str | None:
        table = self.query_one("#results", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value if row_key else None

    def _activate_current(self, action: str) -> None:
        identifier = self._current_identifier()
        if identifier is None:
            return
        if not self.provider.activate(identifier, action):
            if self.provider.read_only and action == ACTION_DISMISS:
                self.notify("History is read-only", severity="warning")
                return
            self.notify(f"{action} failed for notification {identifier}", severity="warning")
        elif action in (ACTION_COPY, ACTION_COPY_BODY):
            self.notify("Copied to clipboard")
        self._refresh_results()

    # --- Actions ---

    def action_dismiss(self) -> None:
        self._activate_current(ACTION_DISMISS)

    def action_copy(self) -> None:
        self._activate_current(ACTION_COPY)

    def action_copy_body(self) -> None:
        self._activate_current(ACTION_COPY_BODY)

    def action_dismiss_all(self) -> None:
        count = len(self.provider.store)
        if count == 0:
            return
        if self.provider.read_only:
            self.notify("History is read-only", severity="warning")
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self.provider.activate("", ACTION_DISMISS_ALL)
                self._refresh_results()

        self.push_screen(ConfirmScreen(f"Dismiss all {count} notifications?"), on_confirm)

    def action_focus_filter(self) -> None:
        self.query_one("#filter", Input).focus()

    def action_cursor_up(self) -> None:
        self.query_one("#results", DataTable).action_cursor_up()

    def action_cursor_down(self) -> None:
        self.query_one("#results", DataTable).action_cursor_down()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "filter":
            self._query = event.value
            self._refresh_results()

    def on_key(self, event: events.Key) -> None:
        """Handle special keys in the filter input."""
        if not (isinstance(self.focused, Input) and self.focused.id == "filter"):
            return

        # Down/Enter: keep filter active, move focus to table for navigation
        if event.key in ("down", "enter"):
            event.prevent_default()
            event.stop()
            self.query_one("#results", DataTable).focus()
            return

        # Escape: clear filter, focus table
        if event.key == "escape":
            event.prevent_default()
            event.stop()
            self.query_one("#filter", Input).value = ""
            self.query_one("#results", DataTable).focus()


def main() -> None:
    set_terminal_title("chime")
    app = ChimeApp()
    app.run()
