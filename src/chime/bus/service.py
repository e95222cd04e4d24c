"""org.freedesktop.Notifications server interface.

Annotations on the exported methods are D-Bus signatures, read by dbus-next.
This module must not use `from __future__ import annotations`.
"""

from dbus_next.service import ServiceInterface, method, signal

from .. import __version__
from ..history import HistoryStore
from ..log import get_logger

_log = get_logger("bus")

DBUS_INTERFACE = "org.freedesktop.Notifications"
DBUS_PATH = "/org/freedesktop/Notifications"

CAPABILITIES = ("body", "body-markup", "actions", "icon-static", "persistence")

SERVER_NAME = "Chime Notifications"
SERVER_VENDOR = "chime"
SPEC_VERSION = "1.2"

# NotificationClosed reasons (freedesktop Desktop Notifications)
CLOSE_REASON_EXPIRED = 1
CLOSE_REASON_DISMISSED = 2
CLOSE_REASON_CALL = 3
CLOSE_REASON_UNDEFINED = 4


class NotificationServer(ServiceInterface):
    """Serves Notify and friends, storing everything in the history."""

    def __init__(self, store: HistoryStore) -> None:
        super().__init__(DBUS_INTERFACE)
        self.store = store

    # dbus-next drops the return value when a @method is called directly,
    # so the exported methods delegate to these plain ones.

    def capabilities(self) -> list[str]:
        return list(CAPABILITIES)

    def server_information(self) -> list[str]:
        return [SERVER_NAME, SERVER_VENDOR, __version__, SPEC_VERSION]

    def notify(
        self,
        app_name: str,
        replaces_id: int,
        app_icon: str,
        summary: str,
        body: str,
        actions: list[str],
        hints: dict,
        expire_timeout: int,
    ) -> int:
        return self.store.insert(
            app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout
        )

    def close_notification(self, notification_id: int) -> None:
        self.store.remove(notification_id)
        self.NotificationClosed(notification_id, CLOSE_REASON_CALL)

    # --- Exported ---

    @method()
    def GetCapabilities(self) -> "as":
        return self.capabilities()

    @method()
    def Notify(
        self,
        app_name: "s",
        replaces_id: "u",
        app_icon: "s",
        summary: "s",
        body: "s",
        actions: "as",
        hints: "a{sv}",
        expire_timeout: "i",
    ) -> "u":
        return self.notify(
            app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout
        )

    @method()
    def CloseNotification(self, id: "u"):
        self.close_notification(id)

    @method()
    def GetServerInformation(self) -> "ssss":
        return self.server_information()

    @signal()
    def NotificationClosed(self, id: "u", reason: "u") -> "uu":
        _log.info("NotificationClosed id=%d reason=%d", id, reason)
        return [id, reason]

    @signal()
    def ActionInvoked(self, id: "u", action_key: "s") -> "us":
        return [id, action_key]
