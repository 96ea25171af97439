from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.base import StoreError
from datastore.memory import InMemoryReadingStore
from services.aggregator import Aggregator
from services.readings import ReadingService


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FailingStore:
    name = "failing"

    def _fail(self, *args, **kwargs):
        raise StoreError("connection refused")

    add = latest = by_node = since = ping = _fail

    def close(self) -> None:
        return None


def _payload(**overrides) -> dict:
    payload = {
        "node_id": "floodnode_01",
        "rain_analog": 2180,
        "rain_intensity": "HEAVY RAIN",
        "water_distance_cm": 9.5,
        "flood_status": "CRITICAL FLOOD",
    }
    payload.update(overrides)
    return payload


def _client_for(service: ReadingService, monkeypatch) -> TestClient:
    def build_test_service() -> ReadingService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_service", build_test_service)
    monkeypatch.setattr("app.web.build_default_service", build_test_service)
    return TestClient(create_app())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 12, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock: FakeClock) -> InMemoryReadingStore:
    return InMemoryReadingStore(name="sensor_readings", clock=clock)


@pytest.fixture
def api_client(store, clock, monkeypatch) -> Iterator[TestClient]:
    service = ReadingService(store=store, aggregator=Aggregator(), clock=clock)
    with _client_for(service, monkeypatch) as client:
        yield client


@pytest.fixture
def failing_client(monkeypatch) -> Iterator[TestClient]:
    service = ReadingService(store=FailingStore(), aggregator=Aggregator())
    with _client_for(service, monkeypatch) as client:
        yield client


def test_root_reports_liveness(api_client: TestClient) -> None:
    response = api_client.get("/")

    assert response.status_code == 200
    assert "Ready to receive sensor data" in response.json()["message"]


def test_end_to_end_reading_reaches_latest_and_flood_risk(api_client: TestClient) -> None:
    response = api_client.post("/api/sensor-data", json=_payload())

    assert response.status_code == 200
    assert response.json() == {"message": "Sensor data received and stored successfully"}

    latest = api_client.get("/api/latest-readings").json()
    assert latest[0]["node_id"] == "floodnode_01"
    assert latest[0]["rain_analog"] == 2180
    assert latest[0]["rain_intensity"] == "HEAVY RAIN"
    assert latest[0]["water_distance_cm"] == 9.5
    assert latest[0]["flood_status"] == "CRITICAL FLOOD"
    assert latest[0]["id"] is not None
    assert latest[0]["created_at"] is not None

    risk = api_client.get("/api/flood-risk").json()
    assert [item["node_id"] for item in risk] == ["floodnode_01"]
    assert risk[0]["max_flood_status_level"] == 3
    assert risk[0]["total_readings"] == 1
    assert risk[0]["avg_rain_analog"] == 2180
    assert risk[0]["avg_water_distance"] == 9.5


@pytest.mark.parametrize("field", ["node_id", "rain_intensity", "flood_status"])
@pytest.mark.parametrize("value", ["", "x" * 51])
def test_invalid_labels_are_rejected(api_client: TestClient, store, field: str, value: str) -> None:
    response = api_client.post("/api/sensor-data", json=_payload(**{field: value}))

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == [field]
    assert store.latest(20) == []


def test_label_of_fifty_characters_is_accepted(api_client: TestClient) -> None:
    response = api_client.post("/api/sensor-data", json=_payload(node_id="n" * 50))

    assert response.status_code == 200


@pytest.mark.parametrize("field", ["rain_analog", "water_distance_cm"])
@pytest.mark.parametrize("value", ["heavy", True, None, [1]])
def test_non_numeric_values_are_rejected(api_client: TestClient, store, field: str, value) -> None:
    response = api_client.post("/api/sensor-data", json=_payload(**{field: value}))

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == [field]
    assert store.latest(20) == []


def test_numeric_strings_are_coerced(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/sensor-data", json=_payload(rain_analog="2180", water_distance_cm="9.5")
    )

    assert response.status_code == 200
    reading = api_client.get("/api/latest-readings").json()[0]
    assert reading["rain_analog"] == 2180
    assert reading["water_distance_cm"] == 9.5


def test_every_violated_field_is_reported(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/sensor-data",
        json={"node_id": "", "rain_analog": "wet", "flood_status": "NORMAL"},
    )

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"node_id", "rain_analog", "rain_intensity", "water_distance_cm"}
    assert all(error["message"] for error in response.json()["errors"])


def test_duplicate_submissions_create_duplicate_rows(api_client: TestClient) -> None:
    api_client.post("/api/sensor-data", json=_payload())
    api_client.post("/api/sensor-data", json=_payload())

    latest = api_client.get("/api/latest-readings").json()
    assert len(latest) == 2
    assert latest[0]["id"] != latest[1]["id"]


def test_latest_readings_are_capped_and_newest_first(api_client: TestClient, clock: FakeClock) -> None:
    for index in range(25):
        api_client.post("/api/sensor-data", json=_payload(node_id=f"node-{index % 3}", rain_analog=index))
        clock.advance(minutes=1)

    latest = api_client.get("/api/latest-readings").json()

    assert len(latest) == 20
    assert [item["rain_analog"] for item in latest] == list(range(24, 4, -1))


def test_latest_readings_break_timestamp_ties_by_insertion(api_client: TestClient) -> None:
    api_client.post("/api/sensor-data", json=_payload(rain_analog=1))
    api_client.post("/api/sensor-data", json=_payload(rain_analog=2))

    latest = api_client.get("/api/latest-readings").json()

    assert [item["rain_analog"] for item in latest] == [2, 1]
    assert latest[0]["created_at"] == latest[1]["created_at"]


def test_node_history_filters_and_caps(api_client: TestClient, clock: FakeClock) -> None:
    for index in range(55):
        api_client.post("/api/sensor-data", json=_payload(rain_analog=index))
        api_client.post("/api/sensor-data", json=_payload(node_id="floodnode_02"))
        clock.advance(seconds=30)

    history = api_client.get("/api/node-history/floodnode_01").json()

    assert len(history) == 50
    assert {item["node_id"] for item in history} == {"floodnode_01"}
    assert history[0]["rain_analog"] == 54


def test_node_history_for_unknown_node_is_empty(api_client: TestClient) -> None:
    api_client.post("/api/sensor-data", json=_payload())

    response = api_client.get("/api/node-history/ghost")

    assert response.status_code == 200
    assert response.json() == []


def test_flood_risk_uses_trailing_day_and_sorts_by_severity(
    api_client: TestClient, clock: FakeClock
) -> None:
    api_client.post("/api/sensor-data", json=_payload(node_id="stale", rain_analog=1000))
    clock.advance(hours=25)
    api_client.post("/api/sensor-data", json=_payload(node_id="dry", rain_analog=3500, water_distance_cm=40))
    api_client.post("/api/sensor-data", json=_payload(node_id="storm", rain_analog=1500))
    api_client.post("/api/sensor-data", json=_payload(node_id="storm", rain_analog=1900))
    clock.advance(hours=1)

    risk = api_client.get("/api/flood-risk").json()

    assert [item["node_id"] for item in risk] == ["storm", "dry"]
    storm = risk[0]
    assert storm["total_readings"] == 2
    assert storm["avg_rain_analog"] == 1700
    assert storm["max_flood_status_level"] == 4
    assert risk[1]["max_flood_status_level"] == 1
    assert risk[1]["avg_water_distance"] == 40


def test_flood_risk_window_includes_boundary(api_client: TestClient, clock: FakeClock) -> None:
    api_client.post("/api/sensor-data", json=_payload())
    clock.advance(hours=24)

    assert [item["node_id"] for item in api_client.get("/api/flood-risk").json()] == ["floodnode_01"]

    clock.advance(seconds=1)
    assert api_client.get("/api/flood-risk").json() == []


def test_store_failures_return_server_errors(failing_client: TestClient) -> None:
    response = failing_client.post("/api/sensor-data", json=_payload())
    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to store sensor data"}

    for path in ("/api/latest-readings", "/api/node-history/floodnode_01", "/api/flood-risk"):
        response = failing_client.get(path)
        assert response.status_code == 500
        assert "errors" not in response.json()


def test_validation_is_checked_before_the_store(failing_client: TestClient) -> None:
    response = failing_client.post("/api/sensor-data", json=_payload(node_id=""))

    assert response.status_code == 400


def test_ui_renders_current_data(api_client: TestClient) -> None:
    api_client.post("/api/sensor-data", json=_payload())

    response = api_client.get("/ui")

    assert response.status_code == 200
    assert "FloodNode Dashboard" in response.text
    assert "floodnode_01" in response.text
    assert "54%" in response.text
    assert "FLOOD RISK" in response.text
    assert "sample data" not in response.text


def test_ui_falls_back_to_sample_data_when_store_fails(failing_client: TestClient) -> None:
    response = failing_client.get("/ui")

    assert response.status_code == 200
    assert "sample data" in response.text
    assert "floodnode_03" in response.text


def test_malformed_json_is_reported_against_the_body(api_client: TestClient, store) -> None:
    response = api_client.post(
        "/api/sensor-data",
        content=b'{"node_id": "floodnode_01",',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["body"]
    assert store.latest(20) == []
