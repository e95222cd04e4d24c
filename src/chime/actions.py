"""Activation: what happens when the user picks an action on a notification."""

from collections.abc import Callable

from .clipboard import copy_to_clipboard
from .history import HistoryStore
from .log import get_logger

_log = get_logger("actions")

ACTION_DISMISS = "dismiss"
ACTION_DISMISS_ALL = "dismiss_all"
ACTION_COPY = "copy"
ACTION_COPY_BODY = "copy_body"

ITEM_ACTIONS = [ACTION_DISMISS, ACTION_COPY, ACTION_COPY_BODY]


def parse_id(identifier: str) -> int | None:
    """Parse a notification identifier as a uint32, or None if it isn't one."""
    # int() would also take signs, whitespace and underscores
    if not (identifier.isascii() and identifier.isdigit()):
        return None
    value = int(identifier)
    if value > 0xFFFFFFFF:
        return None
    return value


def activate(
    store: HistoryStore,
    identifier: str,
    action: str = "",
    copy: Callable[[str], object] = copy_to_clipboard,
) -> bool:
    """Run action on the notification named by identifier.

    An empty action means dismiss. dismiss_all ignores the identifier.
    Returns True if the action was carried out. Bad identifiers and unknown
    actions are logged and leave everything untouched.
    """
    if not action:
        action = ACTION_DISMISS

    if action == ACTION_DISMISS_ALL:
        count = store.clear()
        _log.info("dismissed all (%d)", count)
        return True

    if action not in (ACTION_DISMISS, ACTION_COPY, ACTION_COPY_BODY):
        _log.error("activate: unknown action: %s", action)
        return False

    notification_id = parse_id(identifier)
    if notification_id is None:
        _log.error("parse id: invalid notification id %r", identifier)
        return False

    if action == ACTION_DISMISS:
        store.remove(notification_id)
        return True

    notification = store.get(notification_id)
    if notification is None:
        return False

    if action == ACTION_COPY_BODY:
        content = notification.body
    else:
        content = f"{notification.summary}\n{notification.body}"

    copy(content)
    return True
