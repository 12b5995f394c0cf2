"""Per-add-on outcome of the most recent indexing attempt."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class IndexingStatusEntry:
    uid: str
    attempted_at: datetime
    last_success: Optional[datetime] = None
    error: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "attemptedAt": self.attempted_at.isoformat(),
            "lastSuccess": self.last_success.isoformat() if self.last_success else None,
            "error": self.error,
        }


class IndexingStatus:
    """Thread-safe map of uid -> latest ``IndexingStatusEntry``."""

    def __init__(self):
        self._lock = threading.Lock()
        self._statuses: Dict[str, IndexingStatusEntry] = {}

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def success(self, uid: str) -> None:
        now = self._now()
        with self._lock:
            self._statuses[uid] = IndexingStatusEntry(uid=uid, attempted_at=now, last_success=now)

    def error(self, uid: str, message: str) -> None:
        now = self._now()
        with self._lock:
            previous = self._statuses.get(uid)
            self._statuses[uid] = IndexingStatusEntry(
                uid=uid,
                attempted_at=now,
                last_success=previous.last_success if previous else None,
                error=message,
            )

    def get(self, uid: str) -> Optional[IndexingStatusEntry]:
        with self._lock:
            return self._statuses.get(uid)

    def to_json(self) -> Dict[str, Any]:
        with self._lock:
            return {uid: entry.to_json() for uid, entry in self._statuses.items()}
