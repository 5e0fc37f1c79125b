from __future__ import annotations

from typing import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.memory import InMemoryRecordStore
from errors import StorageError
from services.reconciliation import ReconciliationService
from services.upstream import UpstreamClient

SENSOR_URL = "http://sensors.test/sensor-readings"
CONFIG_URL = "http://configs.test/plant-configurations"

FEEDS = {
    SENSOR_URL: [
        {
            "tray_id": "TRAY001",
            "timestamp": "2024-01-01T12:00:00Z",
            "temperature": 26.4,
            "humidity": 60,
            "light_intensity": 800,
            "ph_level": 6.0,
        },
        {"tray_id": "TRAY404", "temperature": 20},
    ],
    CONFIG_URL: [
        {
            "tray_id": 1,
            "plant_type": "Lettuce",
            "target_temperature": 24.0,
            "target_humidity": 60,
            "target_light_intensity": 800,
            "target_ph_level": 6.0,
            "tolerance_percentage": 5.0,
        }
    ],
}


class BrokenStore(InMemoryRecordStore):
    def list_all(self):
        raise StorageError("database unavailable", details="connection refused")


def _build_client(handler, store=None) -> TestClient:
    upstream = UpstreamClient(
        sensor_url=SENSOR_URL,
        config_url=CONFIG_URL,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    service = ReconciliationService(upstream=upstream, store=store or InMemoryRecordStore())
    return TestClient(create_app(service=service))


def _feed_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=FEEDS[str(request.url)])


@pytest.fixture
def api_client() -> Iterator[TestClient]:
    with _build_client(_feed_handler) as client:
        yield client


def test_reconcile_returns_combined_records(api_client: TestClient) -> None:
    response = api_client.get("/api/plant-sensor/plant-sensor-data")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully retrieved and stored data for 1 trays"
    (record,) = body["data"]
    assert record["id"] == 1
    assert record["trayId"] == "1"
    assert record["plantType"] == "Lettuce"
    assert record["temperatureDeviation"] == pytest.approx(10.0)
    assert record["isTemperatureInRange"] is False
    assert record["allInRange"] is False
    assert record["createdAt"] is not None


def test_stored_data_lists_every_pass(api_client: TestClient) -> None:
    api_client.get("/api/plant-sensor/plant-sensor-data")
    api_client.get("/api/plant-sensor/plant-sensor-data")

    response = api_client.get("/api/plant-sensor/stored-data")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Successfully retrieved 2 stored records"
    assert sorted(item["id"] for item in body["data"]) == [1, 2]


def test_tray_lookup_accepts_raw_identifier(api_client: TestClient) -> None:
    api_client.get("/api/plant-sensor/plant-sensor-data")

    for tray_id in ("TRAY001", "1"):
        response = api_client.get(f"/api/plant-sensor/tray/{tray_id}")
        assert response.status_code == 200
        assert response.json()["data"]["trayId"] == "1"



def test_unresolvable_tray_identifier_is_not_found(make_record) -> None:
    store = InMemoryRecordStore()
    store.save([make_record("0")])

    with _build_client(lambda request: httpx.Response(200, json=[]), store) as client:
        response = client.get("/api/plant-sensor/tray/abc")

    assert response.status_code == 404
    assert response.json()["data"]["code"] == "NOT_FOUND"

def test_missing_tray_returns_not_found_envelope(api_client: TestClient) -> None:
    response = api_client.get("/api/plant-sensor/tray/TRAY777")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["data"]["code"] == "NOT_FOUND"
    assert "TRAY777" in body["data"]["message"]


def test_upstream_status_failure_maps_to_bad_gateway() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == SENSOR_URL:
            return httpx.Response(500)
        return httpx.Response(200, json=FEEDS[CONFIG_URL])

    with _build_client(handler) as client:
        response = client.get("/api/plant-sensor/plant-sensor-data")
        stored = client.get("/api/plant-sensor/stored-data").json()

    assert response.status_code == 502
    body = response.json()
    assert body["success"] is False
    assert body["data"]["code"] == "EXTERNAL_API_ERROR"
    assert stored["data"] == []


def test_upstream_timeout_maps_to_gateway_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow", request=request)

    with _build_client(handler) as client:
        response = client.get("/api/plant-sensor/plant-sensor-data")

    assert response.status_code == 504
    assert response.json()["data"]["code"] == "TIMEOUT_ERROR"


def test_malformed_payload_maps_to_unprocessable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": "object"})

    with _build_client(handler) as client:
        response = client.get("/api/plant-sensor/plant-sensor-data")

    assert response.status_code == 422
    assert response.json()["data"]["code"] == "DATA_PROCESSING_ERROR"


def test_storage_failure_maps_to_server_error() -> None:
    with _build_client(_feed_handler, store=BrokenStore()) as client:
        response = client.get("/api/plant-sensor/stored-data")

    assert response.status_code == 500
    body = response.json()
    assert body["data"]["code"] == "STORAGE_ERROR"
    assert body["data"]["details"] == "connection refused"


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"

    body = api_client.get("/api/plant-sensor/health").json()
    assert body["status"] == "healthy"
    assert body["storage"] == "memory"


def test_lifespan_closes_the_service() -> None:
    closed: list[bool] = []

    class ClosingStore(InMemoryRecordStore):
        def close(self) -> None:
            closed.append(True)

    with _build_client(_feed_handler, store=ClosingStore()):
        assert closed == []

    assert closed == [True]
