"""Storage contract shared by every combined-record backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from app.schemas import CombinedRecord


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def stamp(record: CombinedRecord, record_id: int, created_at: datetime) -> CombinedRecord:
    """Return a stored copy of ``record`` carrying its storage-assigned fields."""
    return record.model_copy(
        update={
            "id": record_id,
            "created_at": created_at,
            "timestamp": as_utc(record.timestamp),
        }
    )


def _recency(record: CombinedRecord) -> tuple[datetime, int]:
    return (as_utc(record.timestamp), record.id or 0)


def newest_first(records: Iterable[CombinedRecord]) -> list[CombinedRecord]:
    return sorted(records, key=_recency, reverse=True)


def latest_for_tray(records: Iterable[CombinedRecord], tray_id: str) -> Optional[CombinedRecord]:
    matches = [record for record in records if record.tray_id == tray_id]
    if not matches:
        return None
    return max(matches, key=_recency)


class RecordStore(ABC):
    """Append-only store of combined records.

    ``list_all`` and ``get_by_key`` order by timestamp, newest first, with ties
    broken by the higher identifier. Unrecoverable backend failures raise
    :class:`errors.StorageError`; a missing tray is reported as ``None``.
    """

    backend: str = "abstract"

    @abstractmethod
    def save(self, records: Sequence[CombinedRecord]) -> list[CombinedRecord]:
        """Append ``records`` and return the stored copies with ids assigned."""

    @abstractmethod
    def list_all(self) -> list[CombinedRecord]:
        """Return every stored record, newest first."""

    @abstractmethod
    def get_by_key(self, tray_id: str) -> Optional[CombinedRecord]:
        """Return the newest record for ``tray_id`` or ``None``."""

    def close(self) -> None:
        return None
