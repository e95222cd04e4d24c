"""Notification history: the store, its records and persistence."""

from .hints import Hint, wrap_hints
from .models import Notification
from .persistence import Persistence
from .rwlock import RWLock
from .store import UPDATE_NEW, HistoryStore

__all__ = [
    # Types
    "Hint",
    "Notification",
    # Store
    "HistoryStore",
    "RWLock",
    "UPDATE_NEW",
    "wrap_hints",
    # Persistence
    "Persistence",
]
