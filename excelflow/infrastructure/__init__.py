"""Infrastructure layer exports."""

from .notifications import BufferedNotifier, Notification, Notifier, configure_notifier, get_notifier
from .sources import load_raw_file

__all__ = [
    "BufferedNotifier",
    "Notification",
    "Notifier",
    "configure_notifier",
    "get_notifier",
    "load_raw_file",
]
