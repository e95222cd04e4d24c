"""Shared fixtures for chime tests."""

import itertools

import pytest

from chime.history import HistoryStore, Persistence


class Ticker:
    """Deterministic clock: every call is one second later."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._ticks = itertools.count()
        self.start = start

    def __call__(self) -> float:
        return self.start + next(self._ticks)


def add(store: HistoryStore, summary: str = "summary", replaces_id: int = 0, **kwargs) -> int:
    """Insert a notification with sensible defaults."""
    return store.insert(
        kwargs.get("app_name", "app"),
        replaces_id,
        kwargs.get("app_icon", ""),
        summary,
        kwargs.get("body", ""),
        kwargs.get("actions", []),
        kwargs.get("hints", {}),
        kwargs.get("expire_timeout", -1),
    )


@pytest.fixture(name="add")
def add_fixture():
    """The add() helper, as a fixture."""
    return add


@pytest.fixture
def clock() -> Ticker:
    return Ticker()


@pytest.fixture
def history_path(tmp_path):
    return tmp_path / "cache" / "notifications.json"


@pytest.fixture
def persistence(history_path) -> Persistence:
    return Persistence(history_path)
