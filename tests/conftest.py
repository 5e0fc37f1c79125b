from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Iterator

import pytest

from app.schemas import CombinedRecord
from datastore.base import RecordStore
from datastore.json_file import JsonFileRecordStore
from datastore.memory import InMemoryRecordStore
from datastore.relational import SqlRecordStore


def build_record(
    tray_id: str = "1",
    timestamp: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    **overrides: Any,
) -> CombinedRecord:
    values: dict[str, Any] = {
        "tray_id": tray_id,
        "plant_type": "Lettuce",
        "timestamp": timestamp,
        "actual_temperature": 26.4,
        "actual_humidity": 60.0,
        "actual_light_intensity": 800.0,
        "actual_ph_level": 6.0,
        "target_temperature": 24.0,
        "target_humidity": 60.0,
        "target_light_intensity": 800.0,
        "target_ph_level": 6.0,
        "tolerance_percentage": 5.0,
        "temperature_deviation": 10.0,
        "humidity_deviation": 0.0,
        "light_intensity_deviation": 0.0,
        "ph_level_deviation": 0.0,
        "is_temperature_in_range": False,
        "is_humidity_in_range": True,
        "is_light_intensity_in_range": True,
        "is_ph_level_in_range": True,
    }
    values.update(overrides)
    return CombinedRecord(**values)


@pytest.fixture()
def make_record() -> Callable[..., CombinedRecord]:
    return build_record


@pytest.fixture(params=["memory", "json", "relational"])
def store(request, tmp_path) -> Iterator[RecordStore]:
    backend: RecordStore
    if request.param == "memory":
        backend = InMemoryRecordStore()
    elif request.param == "json":
        backend = JsonFileRecordStore(tmp_path / "records.json")
    else:
        sql_store = SqlRecordStore(f"sqlite:///{tmp_path / 'records.db'}")
        sql_store.create_schema()
        backend = sql_store
    yield backend
    backend.close()
