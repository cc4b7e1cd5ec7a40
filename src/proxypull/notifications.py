"""User-facing notification queue for proxypull."""

from __future__ import annotations

import logging
import threading
from collections import deque

from .models import Notification, NotificationLevel


class Notifier:
    """FIFO queue of notifications owned by the application.

    Producers call :meth:`enqueue`; the front end calls :meth:`drain` when it
    is ready to show messages. Safe to use from background threads.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self._queue: deque[Notification] = deque()
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Number of notifications waiting to be drained."""
        with self._lock:
            return len(self._queue)

    def enqueue(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> Notification:
        """Append a notification and return it."""
        notification = Notification(message=message, level=level)
        with self._lock:
            self._queue.append(notification)
        self.logger.debug(f"Queued {level.value} notification: {message}")
        return notification

    def drain(self) -> list[Notification]:
        """Remove and return every queued notification, oldest first."""
        with self._lock:
            drained = list(self._queue)
            self._queue.clear()
        return drained

    def clear(self) -> None:
        """Discard all queued notifications."""
        with self._lock:
            self._queue.clear()
