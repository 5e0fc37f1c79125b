from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import List, Optional, Sequence

from app.schemas import CombinedRecord
from datastore.base import RecordStore, latest_for_tray, newest_first, stamp

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Process-local store; contents are lost when the process exits.

    Identifiers are ``len + 1`` taken under the same lock as the append, so
    concurrent batches never share an id.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._records: List[CombinedRecord] = []
        self._lock = Lock()

    def save(self, records: Sequence[CombinedRecord]) -> list[CombinedRecord]:
        logger.info(
            "Saving combined records in memory.",
            extra={"record_count": len(records), "backend": self.backend},
        )
        created_at = datetime.now(timezone.utc)
        stored: list[CombinedRecord] = []
        with self._lock:
            for record in records:
                item = stamp(record, len(self._records) + 1, created_at)
                self._records.append(item)
                stored.append(item)
        return stored

    def list_all(self) -> list[CombinedRecord]:
        with self._lock:
            snapshot = list(self._records)
        return newest_first(snapshot)

    def get_by_key(self, tray_id: str) -> Optional[CombinedRecord]:
        with self._lock:
            snapshot = list(self._records)
        return latest_for_tray(snapshot, tray_id)
