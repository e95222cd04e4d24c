"""In-memory notification history with bounded size."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from ..log import get_logger
from .hints import wrap_hints
from .models import Notification
from .rwlock import RWLock

if TYPE_CHECKING:
    from .persistence import Persistence

_log = get_logger("history")

UPDATE_NEW = "notifications:new"


class HistoryStore:
    """Maps notification ID to Notification.

    All mutations hold the write lock, all reads the read lock. Insert and the
    eviction it may cause happen under a single write lock.
    """

    def __init__(
        self,
        max_items: int = 100,
        persistence: Persistence | None = None,
        on_insert: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_items = max_items
        self._persistence = persistence
        self._on_insert = on_insert
        self._clock = clock
        self._lock = RWLock()
        self._history: dict[int, Notification] = {}
        self._next_id = 1

    def load(self) -> int:
        """Replace the contents with the persisted history. Returns the count.

        The ID counter is recomputed from the loaded records. Loading never
        trims, even if the file holds more than max_items.
        """
        if self._persistence is None:
            return 0

        loaded = self._persistence.load()
        with self._lock.write():
            self._history = loaded
            self._next_id = max(loaded, default=0) + 1
            return len(self._history)

    # --- Mutations ---

    def insert(
        self,
        app_name: str,
        replaces_id: int,
        app_icon: str,
        summary: str,
        body: str,
        actions: Sequence[str],
        hints: dict[str, Any] | None,
        expire_timeout: int,
    ) -> int:
        """Store a notification and return its ID.

        A nonzero replaces_id is used as-is, replacing any record with that ID
        (or creating one). Otherwise a fresh ID is allocated.
        """
        with self._lock.write():
            if replaces_id > 0:
                notification_id = replaces_id
                # keep next_id above every ID we've handed out
                if notification_id >= self._next_id:
                    self._next_id = notification_id + 1
            else:
                notification_id = self._next_id
                self._next_id += 1

            self._history[notification_id] = Notification(
                id=notification_id,
                app_name=app_name,
                app_icon=app_icon,
                summary=summary,
                body=body,
                actions=list(actions),
                expire_timeout=expire_timeout,
                hints=wrap_hints(hints),
                time=self._clock(),
            )

            if len(self._history) > self.max_items:
                self._evict_oldest()

        _log.debug("stored %d from %r: %s", notification_id, app_name, summary)

        if self._persistence is not None:
            self._persistence.schedule(self)

        if self._on_insert is not None:
            self._on_insert(UPDATE_NEW)

        return notification_id

    def _evict_oldest(self) -> None:
        """Drop the single oldest record. Caller must hold the write lock."""
        if not self._history:
            return
        oldest = min(self._history.values(), key=lambda n: (n.time, n.id))
        del self._history[oldest.id]
        _log.debug("evicted %d (history over %d)", oldest.id, self.max_items)

    def remove(self, notification_id: int) -> bool:
        """Delete a notification if present. Returns True if one was removed."""
        with self._lock.write():
            removed = self._history.pop(notification_id, None) is not None

        if self._persistence is not None:
            self._persistence.save(self)

        return removed

    def clear(self) -> int:
        """Delete every notification. Returns how many were removed.

        The ID counter is not reset.
        """
        with self._lock.write():
            count = len(self._history)
            self._history = {}

        if self._persistence is not None:
            self._persistence.save(self)

        return count

    # --- Queries ---

    def get(self, notification_id: int) -> Notification | None:
        with self._lock.read():
            return self._history.get(notification_id)

    def snapshot(self) -> list[Notification]:
        """All notifications, in insertion order."""
        with self._lock.read():
            return list(self._history.values())

    def to_mapping(self) -> dict[int, Notification]:
        """Point-in-time copy of the ID -> Notification mapping."""
        with self._lock.read():
            return dict(self._history)

    @property
    def next_id(self) -> int:
        with self._lock.read():
            return self._next_id

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._history)
