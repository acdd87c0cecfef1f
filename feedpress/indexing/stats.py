"""
Indexing Statistics
===================

Running totals of successful indexing notifications, kept either in the
single-row ``indexing_stats`` table or in memory.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.models import as_utc, utc_now


@dataclass
class IndexingStatsSnapshot:
    total_indexed: int = 0
    last_indexed_at: Optional[datetime] = None


class IndexingStats(ABC):
    """Read-modify-write counter of indexed URLs."""

    @abstractmethod
    def record_success(self, when: Optional[datetime] = None) -> None:
        pass

    @abstractmethod
    def snapshot(self) -> IndexingStatsSnapshot:
        pass


class DatabaseIndexingStats(IndexingStats):
    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def record_success(self, when: Optional[datetime] = None) -> None:
        with self.db.get_connection() as conn:
            # single statement so concurrent writers cannot lose increments
            conn.execute(
                """
                UPDATE indexing_stats
                SET total_indexed = total_indexed + 1, last_indexed_at = ?
                WHERE id = 1
            """,
                ((when or utc_now()).isoformat(),),
            )
            conn.commit()

    def snapshot(self) -> IndexingStatsSnapshot:
        row = self.db.execute_one(
            "SELECT total_indexed, last_indexed_at FROM indexing_stats WHERE id = 1"
        )
        if row is None:
            return IndexingStatsSnapshot()

        last = row["last_indexed_at"]
        if isinstance(last, str):
            last = datetime.fromisoformat(last)
        return IndexingStatsSnapshot(total_indexed=row["total_indexed"] or 0,
                                     last_indexed_at=as_utc(last))


class MemoryIndexingStats(IndexingStats):
    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = IndexingStatsSnapshot()

    def record_success(self, when: Optional[datetime] = None) -> None:
        with self._lock:
            self._snapshot = IndexingStatsSnapshot(
                total_indexed=self._snapshot.total_indexed + 1,
                last_indexed_at=when or utc_now(),
            )

    def snapshot(self) -> IndexingStatsSnapshot:
        with self._lock:
            return IndexingStatsSnapshot(self._snapshot.total_indexed, self._snapshot.last_indexed_at)
