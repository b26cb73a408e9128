"""
Notification center

Bounded queue of user-facing toasts. Pages drain it into every response.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Any

from interfaces import INotifier
from models import Notification, NotificationLevel


class NotificationCenter(INotifier):
    """Per-session notification queue"""

    def __init__(self, max_items: int = 50):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._items: Deque[Notification] = deque(maxlen=max(max_items, 1))

    def push(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self._items.append(notification)
        self.logger.debug(f"{level.value}: {message}")
        return notification

    def success(self, message: str) -> Notification:
        return self.push(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.push(NotificationLevel.ERROR, message)

    def info(self, message: str) -> Notification:
        return self.push(NotificationLevel.INFO, message)

    def warning(self, message: str) -> Notification:
        return self.push(NotificationLevel.WARNING, message)

    def peek(self) -> List[Notification]:
        return list(self._items)

    def drain(self) -> List[Dict[str, Any]]:
        """Return and clear queued notifications, oldest first."""
        drained = [n.to_dict() for n in self._items]
        self._items.clear()
        return drained

    def __len__(self) -> int:
        return len(self._items)
