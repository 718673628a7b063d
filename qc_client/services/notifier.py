# qc_client/services/notifier.py
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set
from datetime import datetime, timezone
import logging

from ..config import settings

logger = logging.getLogger(__name__)

class Notice:
    """A short user-facing message (success or error toast)"""
    def __init__(self, level: str, message: str):
        self.level = level  # success, error
        self.message = message
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self):
        return {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return f"<Notice {self.level}: {self.message}>"


NoticeCallback = Callable[[Notice], None]


class Notifier:
    """
    Delivers notices to registered callbacks (the presentation layer).
    Keeps a bounded history so a view attached later can show recent notices.
    """

    def __init__(self, history_size: Optional[int] = None):
        self._callbacks: Set[NoticeCallback] = set()
        self._history: Deque[Notice] = deque(maxlen=history_size or settings.NOTICE_HISTORY)

    def register_callback(self, callback: NoticeCallback):
        """Register a callback to be notified of new notices"""
        self._callbacks.add(callback)
        logger.debug(f"Registered notice callback. Total callbacks: {len(self._callbacks)}")

    def unregister_callback(self, callback: NoticeCallback):
        """Unregister a callback"""
        self._callbacks.discard(callback)
        logger.debug(f"Unregistered notice callback. Remaining: {len(self._callbacks)}")

    def success(self, message: str):
        self._emit(Notice("success", message))

    def error(self, message: str):
        self._emit(Notice("error", message))

    def _emit(self, notice: Notice):
        self._history.append(notice)
        logger.info(f"[Notice] {notice.level} | {notice.message}")

        for callback in list(self._callbacks):
            try:
                callback(notice)
            except Exception as e:
                logger.error(f"Error in notice callback: {e}")

    @property
    def history(self) -> List[Dict]:
        return [notice.to_dict() for notice in self._history]

    def clear(self):
        self._history.clear()
