from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest

from src.adapters.api.dependencies import get_tracking_service
from src.adapters.persistence.in_memory_vehicle_state_store import (
    InMemoryVehicleStateStore,
)
from src.app.services.progress_estimator import ProgressEstimator
from src.app.services.vehicle_tracking_service import VehicleTrackingService
from src.domain.exceptions import OracleUnavailable
from src.domain.models import GeoPoint, Route, RouteGeometry, Stop
from src.main import app

STOPS = {
    "S1": Stop(id="S1", name="Fort", location=GeoPoint(lat=6.9344, lon=79.8428)),
    "S2": Stop(id="S2", name="Pettah", location=GeoPoint(lat=6.9366, lon=79.85)),
    "S3": Stop(id="S3", name="Maradana", location=GeoPoint(lat=6.929, lon=79.865)),
}

ADMIN = {"X-Actor-Role": "SYSTEM_ADMIN"}
STATION_S2 = {"X-Actor-Role": "STATION_ADMIN", "X-Actor-Station": "S2"}
STATION_FAR = {"X-Actor-Role": "STATION_ADMIN", "X-Actor-Station": "S9"}


@dataclass(slots=True)
class _FakeRouteSource:
    def get_stop(self, stop_id: str) -> Stop | None:
        return STOPS.get(stop_id)

    def get_route(self, route_id: str) -> Route | None:
        if route_id == "138":
            return Route(stop_ids=("S1", "S2", "S3"), route_id="138")
        return None


@dataclass(slots=True)
class _FakeOracle:
    down: bool = False

    async def duration_s(self, origin: GeoPoint, destination: GeoPoint) -> float:
        if self.down:
            raise OracleUnavailable("down")
        return 300.0

    async def distance_m(self, origin: GeoPoint, destination: GeoPoint) -> float:
        if self.down:
            raise OracleUnavailable("down")
        return 1500.0

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteGeometry:
        if self.down:
            raise OracleUnavailable("down")
        return RouteGeometry(distance_m=2100.0, duration_s=420.0, geometry="xyz")


@pytest.fixture
def service():
    source = _FakeRouteSource()
    svc = VehicleTrackingService(
        store=InMemoryVehicleStateStore(),
        route_source=source,
        estimator=ProgressEstimator(oracle=_FakeOracle(), route_source=source),
    )
    app.dependency_overrides[get_tracking_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


def _client(**kwargs) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, **kwargs)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


async def _create(client: httpx.AsyncClient, n: int = 1) -> dict:
    resp = await client.post(
        "/vehicles",
        headers=ADMIN,
        json={
            "bus_number": f"NB-{n}",
            "route_number": "138",
            "capacity": 50,
            "device_id": f"dev-{n}",
            "route_id": "138",
        },
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.unit
@pytest.mark.anyio
async def test_create_and_get_vehicle(service) -> None:
    async with _client() as client:
        created = await _create(client)
        resp = await client.get(f"/vehicles/{created['id']}")

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["bus_number"] == "NB-1"
    assert payload["status"] == "INACTIVE"
    assert payload["route"]["stop_ids"] == ["S1", "S2", "S3"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_create_requires_system_admin(service) -> None:
    async with _client() as client:
        resp = await client.post(
            "/vehicles", headers=STATION_S2, json={"bus_number": "NB-1"}
        )
        anonymous = await client.post("/vehicles", json={"bus_number": "NB-1"})

    assert resp.status_code == 403
    assert "error" in resp.json()
    assert anonymous.status_code == 401


@pytest.mark.unit
@pytest.mark.anyio
async def test_create_duplicate_and_missing_fields_are_bad_requests(service) -> None:
    async with _client() as client:
        await _create(client)
        duplicate = await client.post(
            "/vehicles",
            headers=ADMIN,
            json={
                "bus_number": "NB-1",
                "route_number": "138",
                "capacity": 50,
                "device_id": "dev-other",
            },
        )
        missing = await client.post("/vehicles", headers=ADMIN, json={"capacity": 5})

    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "Bus number or device ID already exists"
    assert missing.status_code == 400


@pytest.mark.unit
@pytest.mark.anyio
async def test_location_report_returns_snapshot(service) -> None:
    async with _client() as client:
        created = await _create(client)
        await client.patch(
            f"/vehicles/{created['id']}", headers=ADMIN, json={"current_stop_id": "S2"}
        )
        resp = await client.post(
            f"/vehicles/{created['id']}/location",
            json={"lat": 6.935, "lon": 79.851, "speed": 8.5},
        )
        tracking = await client.get(f"/vehicles/{created['id']}/tracking")

    assert resp.status_code == 200
    snap = resp.json()
    assert snap["next_stop_id"] == "S3"
    assert snap["eta"] == 5
    assert snap["distance_to_next"] == 1500
    assert snap["quality"] == "full"

    assert tracking.status_code == 200
    assert tracking.json()["location"] == {"lat": 6.935, "lon": 79.851}


@pytest.mark.unit
@pytest.mark.anyio
async def test_location_report_with_oracle_down_still_succeeds(service) -> None:
    service.estimator.oracle.down = True
    async with _client() as client:
        created = await _create(client)
        await client.patch(
            f"/vehicles/{created['id']}", headers=ADMIN, json={"current_stop_id": "S1"}
        )
        resp = await client.post(
            f"/vehicles/{created['id']}/location", json={"lat": 6.935, "lon": 79.851}
        )

    assert resp.status_code == 200
    assert resp.json()["eta"] is None
    assert resp.json()["quality"] == "degraded"
    assert service.get_vehicle(created["id"]).current_location is not None


@pytest.mark.unit
@pytest.mark.anyio
async def test_location_report_for_unknown_vehicle_is_404(service) -> None:
    async with _client() as client:
        resp = await client.post("/vehicles/ghost/location", json={"lat": 1, "lon": 2})
        invalid = await client.post("/vehicles/ghost/location", json={"lat": 91, "lon": 2})

    assert resp.status_code == 404
    assert invalid.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_station_admin_updates_are_filtered(service) -> None:
    async with _client() as client:
        created = await _create(client)
        resp = await client.patch(
            f"/vehicles/{created['id']}",
            headers=STATION_S2,
            json={"status": "ACTIVE", "capacity": 5},
        )
        denied = await client.patch(
            f"/vehicles/{created['id']}",
            headers=STATION_FAR,
            json={"status": "MAINTENANCE"},
        )
        driver = await client.patch(
            f"/vehicles/{created['id']}",
            headers={"X-Actor-Role": "DRIVER"},
            json={"status": "MAINTENANCE"},
        )

    assert resp.status_code == 200
    assert resp.json()["status"] == "ACTIVE"
    assert resp.json()["capacity"] == 50
    assert denied.status_code == 403
    assert driver.status_code == 403
    assert service.get_vehicle(created["id"]).status.value == "ACTIVE"


@pytest.mark.unit
@pytest.mark.anyio
async def test_station_vehicle_endpoints(service) -> None:
    async with _client() as client:
        created = await _create(client)
        await client.post(
            f"/vehicles/{created['id']}/location", json={"lat": 6.935, "lon": 79.851}
        )
        vehicles = await client.get("/stations/me/vehicles", headers=STATION_S2)
        locations = await client.get(
            "/stations/me/vehicle-locations", headers=STATION_S2
        )
        far = await client.get("/stations/me/vehicles", headers=STATION_FAR)
        admin = await client.get("/stations/me/vehicles", headers=ADMIN)

    assert [v["id"] for v in vehicles.json()] == [created["id"]]
    loc = locations.json()[0]
    assert loc["device_id"] == "dev-1"
    assert loc["status"] == "inactive"
    assert loc["location"] == {"lat": 6.935, "lon": 79.851}
    assert far.json() == []
    assert admin.status_code == 403


@pytest.mark.unit
@pytest.mark.anyio
async def test_driver_assignment_and_delete(service) -> None:
    async with _client() as client:
        created = await _create(client)
        assigned = await client.post(
            f"/vehicles/{created['id']}/driver", headers=ADMIN, json={"driver_id": "d-1"}
        )
        deleted = await client.delete(f"/vehicles/{created['id']}", headers=ADMIN)
        gone = await client.get(f"/vehicles/{created['id']}")

    assert assigned.json()["driver_id"] == "d-1"
    assert deleted.status_code == 204
    assert gone.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_list_vehicles_filters_by_status(service) -> None:
    async with _client() as client:
        first = await _create(client, 1)
        await _create(client, 2)
        await client.patch(
            f"/vehicles/{first['id']}", headers=ADMIN, json={"status": "ACTIVE"}
        )
        active = await client.get("/vehicles", params={"status": "active"})
        everything = await client.get("/vehicles")

    assert [v["id"] for v in active.json()] == [first["id"]]
    assert len(everything.json()) == 2


@pytest.mark.unit
@pytest.mark.anyio
async def test_calculate_route_between_stations(service) -> None:
    async with _client() as client:
        resp = await client.get("/routes/S1/S3")
        missing = await client.get("/routes/S1/NOPE")

    assert resp.status_code == 200
    assert resp.json() == {"distance": 2100.0, "duration": 420.0, "geometry": "xyz"}
    assert missing.status_code == 404
    assert missing.json() == {"error": "Station not found"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_calculate_route_with_oracle_down_is_503(service) -> None:
    service.estimator.oracle.down = True
    async with _client() as client:
        resp = await client.get("/routes/S1/S3")

    assert resp.status_code == 503
