"""Project the notification history into ranked search results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from email.utils import formatdate

from .actions import ITEM_ACTIONS
from .fuzzy import Match, fuzzy_score
from .history import HistoryStore, Notification

PROVIDER_NAME = "notifications"
PREVIEW_TYPE_TEXT = "text"

# Base for the synthetic newest-first scores of an empty query
_RECENCY_SCORE_BASE = 10000

Scorer = Callable[[str, str, bool], Match]


@dataclass
class FuzzyInfo:
    """Where the query matched, for highlighting."""

    field_name: str = "text"
    positions: list[int] = field(default_factory=list)
    start: int = -1


@dataclass
class QueryItem:
    """A single search result."""

    identifier: str
    text: str
    subtext: str
    icon: str
    preview: str
    provider: str = PROVIDER_NAME
    actions: list[str] = field(default_factory=lambda: list(ITEM_ACTIONS))
    preview_type: str = PREVIEW_TYPE_TEXT
    score: int = 0
    fuzzy: FuzzyInfo = field(default_factory=FuzzyInfo)
    time: float = 0.0


def _format_time(ts: float) -> str:
    """RFC 1123 timestamp in local time, e.g. 'Mon, 19 Oct 2026 14:03:00 +0200'."""
    return formatdate(ts, localtime=True)


def build_item(n: Notification, fallback_icon: str) -> QueryItem:
    subtext = f"[{n.app_name}] {n.body}" if n.app_name else n.body
    return QueryItem(
        identifier=str(n.id),
        text=n.summary,
        subtext=subtext,
        icon=n.app_icon or fallback_icon,
        preview=f"{n.summary}\n\n{n.body}\n\nApp: {n.app_name}\nTime: {_format_time(n.time)}",
        time=n.time,
    )


def query(
    store: HistoryStore,
    text: str,
    exact: bool = False,
    *,
    icon: str = "",
    min_score: int = 0,
    scorer: Scorer = fuzzy_score,
) -> list[QueryItem]:
    """Search the history.

    An empty query returns everything, newest first, with descending scores
    that encode that order. Otherwise items are scored against
    "summary body app_name" and kept if the score beats min_score; matches
    are left in history order for the caller to rank by score.
    """
    items: list[QueryItem] = []

    for n in store.snapshot():
        item = build_item(n, icon)

        if text:
            match = scorer(text, f"{n.summary} {n.body} {n.app_name}", exact)
            item.score = match.score
            item.fuzzy.positions = match.positions
            item.fuzzy.start = match.start
            if item.score > min_score:
                items.append(item)
        else:
            items.append(item)

    if not text:
        # Newest first; ties broken by the higher ID
        items.sort(key=lambda i: (i.time, int(i.identifier)), reverse=True)
        for rank, item in enumerate(items):
            item.score = _RECENCY_SCORE_BASE - rank

    return items
