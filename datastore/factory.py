from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from datastore.base import RecordStore
from datastore.json_file import JsonFileRecordStore
from datastore.memory import InMemoryRecordStore
from datastore.relational import SqlRecordStore
from settings import BACKEND_JSON, BACKEND_RELATIONAL, Settings, get_settings

logger = logging.getLogger(__name__)


def build_record_store(settings: Optional[Settings] = None) -> RecordStore:
    """Construct the backend selected by ``settings.storage_backend``."""
    settings = settings or get_settings()

    store: RecordStore
    if settings.storage_backend == BACKEND_RELATIONAL:
        sql_store = SqlRecordStore(settings.database_url)
        sql_store.create_schema()
        store = sql_store
    elif settings.storage_backend == BACKEND_JSON:
        store = JsonFileRecordStore(Path(settings.json_storage_path))
    else:
        store = InMemoryRecordStore()

    logger.info("Configured record store.", extra={"backend": store.backend})
    return store
