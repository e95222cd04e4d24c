"""The notifications provider: history, bus daemon and persistence in one object."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from . import actions
from .bus import BusDaemon, BusState, session_bus_available
from .clipboard import copy_to_clipboard
from .config import Config, load_config
from .fuzzy import fuzzy_score
from .history import HistoryStore, Persistence
from .log import get_logger
from .query import PROVIDER_NAME, QueryItem, Scorer, query

_log = get_logger("provider")


@dataclass
class ProviderState:
    """Human-readable status plus the bulk actions currently available."""

    states: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)


class NotificationsProvider:
    """Notification history exposed as a searchable provider.

    setup() loads the persisted history, starts the persistence worker and
    starts the bus daemon thread. teardown() stops both and writes the
    history one last time.

    If another chime process already owns the history file, the provider is
    read-only: no bus, no writes, no dismissing. refresh() follows the file.
    """

    NAME = PROVIDER_NAME

    def __init__(
        self,
        config: Config | None = None,
        persistence: Persistence | None = None,
        copy: Callable[[str], object] | None = None,
        scorer: Scorer = fuzzy_score,
        start_bus: bool = True,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.name_pretty = self.config.name_pretty or "Notifications"

        if persistence is None and self.config.persist:
            persistence = Persistence()
        self.persistence = persistence

        self._subscribers: list[Callable[[str], None]] = []
        self.store = HistoryStore(
            max_items=self.config.max_items,
            persistence=self.persistence,
            on_insert=self._publish_update,
        )
        self.daemon = BusDaemon(self.store)
        self._start_bus = start_bus
        self._copy = copy or partial(copy_to_clipboard, command=self.config.clipboard_command)
        self._scorer = scorer
        self.read_only = False
        self._loaded_mtime: tuple[int, int] | None = None

    # --- Lifecycle ---

    def setup(self) -> None:
        start = time.monotonic()

        if self.persistence is not None:
            if not self.persistence.acquire():
                # Another chime (usually `chime daemon`) writes the history;
                # follow its file instead of competing with it
                self.persistence.read_only = True
                self.read_only = True
            self._reload()
            if not self.read_only:
                self.persistence.start()

        if self._start_bus and not self.read_only:
            self.daemon.start()

        _log.info(
            "%s: history=%d time=%.3fs", self.NAME, len(self.store), time.monotonic() - start
        )

    def teardown(self) -> None:
        self.daemon.stop()
        if self.persistence is not None:
            self.persistence.stop()
            self.persistence.release()

    def _reload(self) -> None:
        self._loaded_mtime = self.persistence.modified()
        self.store.load()

    def refresh(self) -> bool:
        """Re-read the history file if another process changed it.

        Only does anything in read-only mode. Returns True if the history
        was reloaded.
        """
        if not self.read_only or self.persistence is None:
            return False
        if self.persistence.modified() == self._loaded_mtime:
            return False
        self._reload()
        _log.debug("reloaded history: %d notifications", len(self.store))
        return True

    def available(self) -> bool:
        """Whether the session bus can be reached at all."""
        if self.daemon.state is BusState.UNAVAILABLE:
            return False
        return session_bus_available()

    # --- Host-facing ---

    def query(self, text: str, exact: bool = False) -> list[QueryItem]:
        return query(
            self.store,
            text,
            exact,
            icon=self.config.icon,
            min_score=self.config.min_score,
            scorer=self._scorer,
        )

    def activate(self, identifier: str, action: str = "") -> bool:
        if self.read_only and action in ("", actions.ACTION_DISMISS, actions.ACTION_DISMISS_ALL):
            _log.warning("activate: history is read-only, not running %r", action or "dismiss")
            return False
        return actions.activate(self.store, identifier, action, copy=self._copy)

    def state(self) -> ProviderState:
        count = len(self.store)
        bulk = [actions.ACTION_DISMISS_ALL] if count > 0 and not self.read_only else []
        states = [f"{count} notifications"]
        if self.read_only:
            states.append("read-only")
        return ProviderState(states=states, actions=bulk)

    def icon(self) -> str:
        return self.config.icon

    def hide_from_providerlist(self) -> bool:
        return self.config.hide_from_providerlist

    # --- Updates ---

    def subscribe(self, callback: Callable[[str], None]) -> None:
        """Call callback(event) whenever a notification is stored."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[str], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish_update(self, event: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                _log.error("subscriber %r failed: %s", callback, e, exc_info=True)
