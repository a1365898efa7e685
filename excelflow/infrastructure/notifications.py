"""Transient user notifications ("toasts").

The workflow emits a notification for every failure and for key milestones.
Whatever renders the UI drains them; :class:`BufferedNotifier` keeps them in
memory until then. Another channel only needs to provide a compatible client
and call :func:`configure_notifier` during application start-up.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


class Notifier(Protocol):
    """Contract for notification channels."""

    def notify(self, notification: Notification) -> None:
        """Deliver one notification."""


class BufferedNotifier:
    """Keep the most recent notifications until they are drained."""

    def __init__(self, maxlen: int = 50) -> None:
        self._pending: deque[Notification] = deque(maxlen=maxlen)

    def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.variant == "destructive" else logging.INFO
        logger.log(level, "%s: %s", notification.title, notification.description)
        self._pending.append(notification)

    def drain(self) -> list[Notification]:
        items = list(self._pending)
        self._pending.clear()
        return items

    def clear(self) -> None:
        self._pending.clear()


_notifier: Notifier = BufferedNotifier()


def configure_notifier(notifier: Notifier) -> None:
    """Install the notifier used by the workflow session."""

    global _notifier
    _notifier = notifier


def get_notifier() -> Notifier:
    """Return the currently configured notifier."""

    return _notifier
