"""Unit tests for the JSON file record store."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from datastore.json_file import JsonFileRecordStore
from errors import ErrorKind, StorageError


def test_missing_and_blank_files_read_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "records.json"
    store = JsonFileRecordStore(path)

    assert store.list_all() == []
    assert not path.exists()

    path.write_text("   \n")
    assert store.list_all() == []
    assert store.get_by_key("1") is None


def test_file_holds_a_camel_case_array(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    store = JsonFileRecordStore(path)

    store.save([make_record("1"), make_record("2")])

    payload = json.loads(path.read_text())
    assert isinstance(payload, list)
    assert [item["trayId"] for item in payload] == ["1", "2"]
    assert [item["id"] for item in payload] == [1, 2]
    first = payload[0]
    assert first["temperatureDeviation"] == 10.0
    assert first["isTemperatureInRange"] is False
    assert first["allInRange"] is False
    assert first["createdAt"] is not None
    assert {"actualTemperature", "targetPhLevel", "tolerancePercentage", "plantType"} <= first.keys()


def test_records_survive_a_new_instance(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    JsonFileRecordStore(path).save([make_record("1")])

    reopened = JsonFileRecordStore(path)
    stored = reopened.save([make_record("2")])

    assert stored[0].id == 2
    assert [record.tray_id for record in reopened.list_all()] == ["2", "1"]
    assert reopened.get_by_key("1") is not None


def test_ids_continue_from_the_highest_existing_id(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    store = JsonFileRecordStore(path)
    store.save([make_record("1")])

    payload = json.loads(path.read_text())
    payload[0]["id"] = 41
    path.write_text(json.dumps(payload))

    (stored,) = store.save([make_record("2")])
    assert stored.id == 42


def test_corrupt_file_raises_storage_error(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    path.write_text("{not json")
    store = JsonFileRecordStore(path)

    with pytest.raises(StorageError) as excinfo:
        store.list_all()
    assert excinfo.value.kind is ErrorKind.storage_failed

    with pytest.raises(StorageError):
        store.save([make_record("1")])
    assert path.read_text() == "{not json"


def test_undecodable_file_raises_storage_error(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    path.write_bytes(b"\xff\xfe[]")
    store = JsonFileRecordStore(path)

    with pytest.raises(StorageError) as excinfo:
        store.list_all()
    assert excinfo.value.kind is ErrorKind.storage_failed

    with pytest.raises(StorageError):
        store.get_by_key("1")
    with pytest.raises(StorageError):
        store.save([make_record("1")])
    assert path.read_bytes() == b"\xff\xfe[]"


def test_concurrent_saves_never_corrupt_the_file(tmp_path: Path, make_record) -> None:
    path = tmp_path / "records.json"
    store = JsonFileRecordStore(path)
    writers = 6
    batch_size = 10
    barrier = threading.Barrier(writers)
    errors: list[BaseException] = []

    def worker(index: int) -> None:
        try:
            barrier.wait(timeout=5)
            store.save([make_record(f"{index}") for _ in range(batch_size)])
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    payload = json.loads(path.read_text())
    assert len(payload) == writers * batch_size
    ids = [item["id"] for item in payload]
    assert ids == list(range(1, writers * batch_size + 1))
    per_tray = {str(index): 0 for index in range(writers)}
    for item in payload:
        per_tray[item["trayId"]] += 1
    assert set(per_tray.values()) == {batch_size}


def test_reads_during_writes_see_whole_batches(tmp_path: Path, make_record) -> None:
    store = JsonFileRecordStore(tmp_path / "records.json")
    stop = threading.Event()
    observed: list[int] = []

    def reader() -> None:
        while not stop.is_set():
            observed.append(len(store.list_all()))

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for _ in range(10):
            store.save([make_record("1"), make_record("2"), make_record("3")])
    finally:
        stop.set()
        thread.join(timeout=10)

    assert all(count % 3 == 0 for count in observed)
    assert len(store.list_all()) == 30
