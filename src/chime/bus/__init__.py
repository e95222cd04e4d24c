"""Session bus side of chime: the notification server and its daemon."""

from .daemon import (
    ActiveServer,
    BusDaemon,
    BusState,
    PassiveListener,
    decode_notify_args,
    session_bus_available,
)
from .service import DBUS_INTERFACE, DBUS_PATH, NotificationServer

__all__ = [
    "ActiveServer",
    "BusDaemon",
    "BusState",
    "DBUS_INTERFACE",
    "DBUS_PATH",
    "NotificationServer",
    "PassiveListener",
    "decode_notify_args",
    "session_bus_available",
]
