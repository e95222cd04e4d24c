"""Notification record stored in the history."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from .hints import Hint


@dataclass(frozen=True)
class Notification:
    """A desktop notification kept in the history."""

    id: int
    app_name: str = ""
    app_icon: str = ""
    summary: str = ""
    body: str = ""
    actions: list[str] = field(default_factory=list)
    expire_timeout: int = -1
    hints: dict[str, Hint] = field(default_factory=dict)
    time: float = field(default_factory=time.time)

    def to_json(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "id": self.id,
            "app_name": self.app_name,
            "app_icon": self.app_icon,
            "summary": self.summary,
            "body": self.body,
            "actions": list(self.actions),
            "expire_timeout": self.expire_timeout,
            "hints": {k: h.to_json() for k, h in self.hints.items()},
            "time": self.time,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Notification:
        """Create a Notification from a dict written by to_json().

        Raises KeyError, TypeError or ValueError on malformed data.
        """
        notification_id = data["id"]
        if type(notification_id) is not int or not 0 < notification_id <= 0xFFFFFFFF:
            raise ValueError(f"invalid notification id: {notification_id!r}")

        return cls(
            id=notification_id,
            app_name=str(data.get("app_name", "")),
            app_icon=str(data.get("app_icon", "")),
            summary=str(data.get("summary", "")),
            body=str(data.get("body", "")),
            actions=[str(a) for a in data.get("actions", [])],
            expire_timeout=int(data.get("expire_timeout", -1)),
            hints={str(k): Hint.from_json(v) for k, v in data.get("hints", {}).items()},
            time=float(data["time"]),
        )
