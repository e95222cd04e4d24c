"""Whole-history persistence to a single JSON file.

Saves are either synchronous (`save`) or handed to a single worker thread
(`schedule`). Both take the snapshot and write it under one write lock, so
snapshots land on disk in the order they were taken.

Only one process may write the file. The writer holds an exclusive flock on
`notifications.json.lock`; anyone else opens the history read-only.
"""

from __future__ import annotations

import fcntl
import json
import os
import queue
import threading
from pathlib import Path
from typing import IO, TYPE_CHECKING

from ..log import get_logger
from ..paths import get_history_path
from .models import Notification

if TYPE_CHECKING:
    from .store import HistoryStore

_log = get_logger("persistence")

FORMAT_VERSION = 1


def encode(mapping: dict[int, Notification]) -> str:
    """Serialize an ID -> Notification mapping."""
    return json.dumps(
        {
            "version": FORMAT_VERSION,
            "notifications": [mapping[k].to_json() for k in sorted(mapping)],
        }
    )


def decode(text: str) -> dict[int, Notification]:
    """Parse the output of encode(). Raises ValueError/KeyError/TypeError."""
    data = json.loads(text)
    version = data["version"]
    if version != FORMAT_VERSION:
        raise ValueError(f"unsupported history format version: {version!r}")

    history: dict[int, Notification] = {}
    for item in data["notifications"]:
        notification = Notification.from_json(item)
        history[notification.id] = notification
    return history


class Persistence:
    """Reads and writes the notification history file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else get_history_path()
        self._write_lock = threading.Lock()
        self._requests: queue.Queue[HistoryStore | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._last_source: HistoryStore | None = None
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._owner_file: IO[str] | None = None
        # set when another process owns the file; saves become no-ops
        self.read_only = False

    def load(self) -> dict[int, Notification]:
        """Load the history file. Missing or broken files give an empty history."""
        if not self.path.exists():
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            _log.error("load %s: %s", self.path, e)
            return {}

        try:
            history = decode(text)
        except (ValueError, KeyError, TypeError) as e:
            _log.error("decoding %s: %s", self.path, e)
            return {}

        _log.info("loaded %d notifications from %s", len(history), self.path)
        return history

    def save(self, source: HistoryStore) -> bool:
        """Write the source's current history now. Returns False on failure."""
        self._last_source = source
        if self.read_only:
            _log.debug("read-only, not writing %s", self.path)
            return False

        with self._write_lock:
            # Snapshot under the write lock: a later snapshot is never
            # overwritten by an earlier one
            mapping = source.to_mapping()
            try:
                payload = encode(mapping)
            except (TypeError, ValueError) as e:
                _log.error("encode: %s", e)
                return False

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                _log.error("createdirs %s: %s", self.path.parent, e)
                return False

            try:
                fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.chmod(self.path, 0o600)
            except OSError as e:
                _log.error("writefile %s: %s", self.path, e)
                return False

        return True

    def modified(self) -> tuple[int, int] | None:
        """(mtime_ns, size) of the history file, or None if there is none."""
        try:
            st = self.path.stat()
            return st.st_mtime_ns, st.st_size
        except OSError:
            return None

    # --- Single writer ---

    @property
    def owned(self) -> bool:
        return self._owner_file is not None

    def acquire(self) -> bool:
        """Become the only writer of the history file.

        Returns False if another process already holds the lock. The lock
        goes away with the process, so a crashed owner never blocks anyone.
        """
        if self._owner_file is not None:
            return True

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = open(self.lock_path, "a+")
        except OSError as e:
            # Can't even create the lock; saves will report their own errors
            _log.error("open %s: %s", self.lock_path, e)
            return True

        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            _log.warning("%s is owned by another chime process", self.path)
            return False
        except OSError as e:
            lock_file.close()
            _log.error("flock %s: %s", self.lock_path, e)
            return True

        lock_file.seek(0)
        lock_file.truncate()
        lock_file.write(f"{os.getpid()}\n")
        lock_file.flush()
        self._owner_file = lock_file
        return True

    def release(self) -> None:
        """Give up ownership (no-op if we don't own the file)."""
        if self._owner_file is None:
            return
        try:
            fcntl.flock(self._owner_file.fileno(), fcntl.LOCK_UN)
        finally:
            self._owner_file.close()
            self._owner_file = None

    # --- Background worker ---

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def schedule(self, source: HistoryStore) -> None:
        """Ask the worker to save source. Saves inline if no worker is running."""
        self._last_source = source
        if not self.running:
            self.save(source)
            return
        self._requests.put(source)

    def start(self) -> None:
        """Start the worker thread (no-op if it is already running)."""
        if self.running:
            return

        self._thread = threading.Thread(
            target=self._worker_loop, name="chime-persistence", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the worker, then write the latest history one last time."""
        if self._thread is not None:
            self._requests.put(None)
            self._thread.join(timeout)
            self._thread = None

        if self._last_source is not None:
            self.save(self._last_source)

    def _worker_loop(self) -> None:
        while True:
            source = self._requests.get()
            stopping = source is None

            # Coalesce: anything queued behind this request is covered by one write
            while True:
                try:
                    pending = self._requests.get_nowait()
                except queue.Empty:
                    break
                if pending is None:
                    stopping = True
                else:
                    source = pending

            if source is not None:
                self.save(source)

            if stopping:
                return
