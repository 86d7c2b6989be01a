"""
Proxy Match: Crossed-paths history

Keeps, per user, the most recent people surfaced to them by discovery.
Newest first, one entry per other user, bounded length.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from proxymatch.config import get_settings
from proxymatch.models.history import CrossedPath
from proxymatch.utils.keyed_lock import KeyedLock

logger = structlog.get_logger("proxymatch.history_service")


class HistoryService:
    def __init__(self, limit: int | None = None) -> None:
        self.limit = limit or get_settings().CROSSED_PATHS_LIMIT
        self._paths: dict[str, tuple[CrossedPath, ...]] = {}
        self._locks = KeyedLock()

    def record(self, user_id: str, paths: Iterable[CrossedPath]) -> None:
        """Prepend ``paths`` (already newest-first) to the user's history."""
        incoming = list(paths)
        if not incoming:
            return
        with self._locks.hold(user_id):
            seen = {path.user_id for path in incoming}
            kept = [path for path in self._paths.get(user_id, ()) if path.user_id not in seen]
            self._paths[user_id] = tuple((incoming + kept)[: self.limit])

    def list(self, user_id: str) -> list[CrossedPath]:
        return list(self._paths.get(user_id, ()))

    def clear(self, user_id: str) -> int:
        with self._locks.hold(user_id):
            removed = len(self._paths.pop(user_id, ()))
        logger.info("history_cleared", user_id=user_id, removed=removed)
        return removed
