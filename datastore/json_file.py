from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from app.schemas import CombinedRecord
from datastore.base import RecordStore, latest_for_tray, newest_first, stamp
from errors import StorageError

logger = logging.getLogger(__name__)

_RECORD_LIST = TypeAdapter(List[CombinedRecord])


class JsonFileRecordStore(RecordStore):
    """Keeps the whole collection as one JSON array on disk.

    Every operation holds the instance lock for the full read (and rewrite),
    so readers never see a partial file and writers never interleave. Ids are
    ``max(existing) + 1`` computed under that lock.
    """

    backend = "json"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()
        path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, records: Sequence[CombinedRecord]) -> list[CombinedRecord]:
        logger.info(
            "Saving combined records to JSON file.",
            extra={"record_count": len(records), "backend": self.backend, "path": self.path},
        )
        created_at = datetime.now(timezone.utc)
        with self._lock:
            existing = self._read()
            next_id = max((item.id or 0 for item in existing), default=0)
            stored: list[CombinedRecord] = []
            for record in records:
                next_id += 1
                stored.append(stamp(record, next_id, created_at))
            self._write(existing + stored)
        return stored

    def list_all(self) -> list[CombinedRecord]:
        with self._lock:
            items = self._read()
        return newest_first(items)

    def get_by_key(self, tray_id: str) -> Optional[CombinedRecord]:
        with self._lock:
            items = self._read()
        return latest_for_tray(items, tray_id)

    def _read(self) -> list[CombinedRecord]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read JSON store.", exc_info=True, extra={"path": self.path})
            raise StorageError(f"Could not read {self.path}.", details=str(exc)) from exc

        if not raw.strip():
            return []
        try:
            return _RECORD_LIST.validate_json(raw)
        except ValidationError as exc:
            logger.error("JSON store is corrupt.", exc_info=True, extra={"path": self.path})
            raise StorageError(
                f"Stored data in {self.path} is not a valid record array.", details=str(exc)
            ) from exc

    def _write(self, items: list[CombinedRecord]) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in items]
        temp_path = self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")
        try:
            temp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as exc:
            logger.error("Failed to write JSON store.", exc_info=True, extra={"path": self.path})
            temp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write {self.path}.", details=str(exc)) from exc
