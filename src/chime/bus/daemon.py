"""Session bus daemon: own org.freedesktop.Notifications, or eavesdrop on it.

On startup the daemon connects to the session bus and asks for the
notification service name without queueing. If it gets the name it serves
the interface (ActiveServer). If another daemon has it, it subscribes to
Notify signals on the interface and stores what it sees (PassiveListener).
The mode is picked once and never revisited.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any

from dbus_next import Message
from dbus_next.aio import MessageBus
from dbus_next.constants import BusType, MessageType, NameFlag, RequestNameReply
from dbus_next.errors import AuthError, DBusError, InvalidAddressError

from ..history import HistoryStore
from ..log import get_logger
from .service import DBUS_INTERFACE, DBUS_PATH, NotificationServer

_log = get_logger("bus")

BUS_ERRORS = (OSError, InvalidAddressError, AuthError, DBusError)

MATCH_RULE = f"type='signal',interface='{DBUS_INTERFACE}'"

NOTIFY_ARITY = 8


class BusState(Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    UNAVAILABLE = "unavailable"
    PRIMARY = "primary"
    PASSIVE = "passive"


def _is_uint32(value: Any) -> bool:
    return type(value) is int and 0 <= value <= 0xFFFFFFFF


def _is_int32(value: Any) -> bool:
    return type(value) is int and -0x80000000 <= value <= 0x7FFFFFFF


def decode_notify_args(body: Sequence[Any]) -> tuple | None:
    """Decode the positional Notify arguments, or None if they are malformed.

    Expects (app_name, replaces_id, app_icon, summary, body, actions, hints,
    expire_timeout); extra trailing arguments are ignored.
    """
    if len(body) < NOTIFY_ARITY:
        return None

    app_name, replaces_id, app_icon, summary, text, actions, hints, expire_timeout = body[
        :NOTIFY_ARITY
    ]

    if not all(isinstance(s, str) for s in (app_name, app_icon, summary, text)):
        return None
    if not _is_uint32(replaces_id) or not _is_int32(expire_timeout):
        return None
    if not isinstance(actions, list) or not all(isinstance(a, str) for a in actions):
        return None
    if not isinstance(hints, dict) or not all(isinstance(k, str) for k in hints):
        return None

    return (app_name, replaces_id, app_icon, summary, text, actions, hints, expire_timeout)


class ActiveServer:
    """Primary owner of the notification name: export and serve."""

    def __init__(self, store: HistoryStore) -> None:
        self.server = NotificationServer(store)

    async def run(self, bus: MessageBus) -> None:
        bus.export(DBUS_PATH, self.server)
        _log.info("notification server started")
        await bus.wait_for_disconnect()


class PassiveListener:
    """Another daemon owns the name: record the Notify signals we observe."""

    QUEUE_DEPTH = 10

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self._queue: asyncio.Queue[list[Any]] = asyncio.Queue(maxsize=self.QUEUE_DEPTH)

    async def run(self, bus: MessageBus) -> None:
        reply = await bus.call(
            Message(
                destination="org.freedesktop.DBus",
                path="/org/freedesktop/DBus",
                interface="org.freedesktop.DBus",
                member="AddMatch",
                signature="s",
                body=[MATCH_RULE],
            )
        )
        if reply is None or reply.message_type == MessageType.ERROR:
            error = reply.body if reply is not None else "no reply"
            _log.error("dbus add match: %s", error)
            return

        bus.add_message_handler(self.on_message)
        consumer = asyncio.create_task(self._consume())
        _log.info("listening for notification signals")
        try:
            await bus.wait_for_disconnect()
        finally:
            consumer.cancel()
            bus.remove_message_handler(self.on_message)

    def on_message(self, msg: Message) -> None:
        """Bus message handler: queue Notify signals, drop when full."""
        if msg.interface != DBUS_INTERFACE or msg.member != "Notify":
            return None

        try:
            self._queue.put_nowait(list(msg.body))
        except asyncio.QueueFull:
            _log.warning("signal queue full, dropping Notify from %s", msg.sender)
        return None

    async def _consume(self) -> None:
        while True:
            body = await self._queue.get()
            self.handle_notify(body)

    def handle_notify(self, body: Sequence[Any]) -> int | None:
        """Store a Notify signal body. Malformed bodies are ignored."""
        args = decode_notify_args(body)
        if args is None:
            _log.debug("ignoring malformed Notify signal (%d args)", len(body))
            return None
        return self.store.insert(*args)


class BusDaemon:
    """Runs the ActiveServer/PassiveListener negotiation on its own event loop."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self.state = BusState.UNINITIALIZED
        self.mode: ActiveServer | PassiveListener | None = None
        self._bus: MessageBus | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._stopping = False

    async def run(self) -> None:
        """Connect, negotiate the name, then serve or listen until disconnected."""
        self._loop = asyncio.get_running_loop()

        try:
            bus = await MessageBus(bus_type=BusType.SESSION).connect()
        except BUS_ERRORS as e:
            _log.error("dbus connect: %s", e)
            self.state = BusState.UNAVAILABLE
            return

        self._bus = bus
        self.state = BusState.CONNECTED
        if self._stopping:
            bus.disconnect()
            return

        try:
            reply = await bus.request_name(DBUS_INTERFACE, NameFlag.DO_NOT_QUEUE)
        except DBusError as e:
            _log.error("dbus request name: %s", e)
            self.state = BusState.UNAVAILABLE
            bus.disconnect()
            return

        if reply == RequestNameReply.PRIMARY_OWNER:
            self.mode = ActiveServer(self.store)
            self.state = BusState.PRIMARY
        else:
            _log.warning("another notification daemon is running, listening for signals only")
            self.mode = PassiveListener(self.store)
            self.state = BusState.PASSIVE

        # stop() may have landed while the name request was in flight
        if self._stopping:
            bus.disconnect()
            return

        try:
            await self.mode.run(bus)
        except BUS_ERRORS as e:
            _log.error("dbus: %s", e)

    def run_forever(self) -> None:
        """Run in the calling thread (blocks until the bus goes away)."""
        asyncio.run(self.run())

    def start(self) -> None:
        """Run the daemon in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return  # Already running

        self._stopping = False
        self._thread = threading.Thread(
            target=self.run_forever, name="chime-dbus", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = 2.0) -> None:
        """Disconnect from the bus and wait for the daemon thread to finish."""
        self._stopping = True
        loop, bus = self._loop, self._bus
        if loop is not None and bus is not None and not loop.is_closed():
            loop.call_soon_threadsafe(bus.disconnect)

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


def session_bus_available() -> bool:
    """Check whether we can connect to the session bus at all."""

    async def probe() -> None:
        bus = await MessageBus(bus_type=BusType.SESSION).connect()
        bus.disconnect()

    # asyncio.run() refuses to nest inside a running loop (e.g. the TUI),
    # so probe on a throwaway thread
    with ThreadPoolExecutor(max_workers=1) as pool:
        try:
            pool.submit(asyncio.run, probe()).result()
        except BUS_ERRORS as e:
            _log.info("DBus session bus not available: %s", e)
            return False
    return True
