from __future__ import annotations

from .base import (
    LinkButton,
    Notification,
    Notifier,
    swap_failure_message,
    swap_success_message,
)
from .queue import NotificationQueue
from .telegram import TelegramNotifier

__all__ = [
    "LinkButton",
    "Notification",
    "NotificationQueue",
    "Notifier",
    "TelegramNotifier",
    "swap_failure_message",
    "swap_success_message",
]
