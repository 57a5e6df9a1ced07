from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from src.domain.models import GeoPoint, Route, Schedule, VehicleState, VehicleStatus


def vehicle_to_document(vehicle: VehicleState) -> dict[str, Any]:
    """JSON-compatible representation of a vehicle document."""

    loc = vehicle.current_location
    return {
        "id": vehicle.id,
        "bus_number": vehicle.bus_number,
        "route_number": vehicle.route_number,
        "capacity": vehicle.capacity,
        "device_id": vehicle.device_id,
        "route": {
            "route_id": vehicle.route.route_id,
            "stop_ids": list(vehicle.route.stop_ids),
            "estimated_time": vehicle.route.estimated_time_min,
        },
        "schedule": {
            "departure_time": vehicle.schedule.departure_time,
            "arrival_time": vehicle.schedule.arrival_time,
        },
        "status": vehicle.status.value,
        "current_stop_id": vehicle.current_stop_id,
        "current_location": (
            {"type": "Point", "coordinates": list(loc.lon_lat())} if loc else None
        ),
        "last_speed_mps": vehicle.last_speed_mps,
        "last_heading_deg": vehicle.last_heading_deg,
        "last_update_time": (
            vehicle.last_update_time.isoformat() if vehicle.last_update_time else None
        ),
        "last_observed_at": (
            vehicle.last_observed_at.isoformat() if vehicle.last_observed_at else None
        ),
        "driver_id": vehicle.driver_id,
        "is_on_route": vehicle.is_on_route,
        "current_passenger_count": vehicle.current_passenger_count,
        "version": vehicle.version,
    }


def vehicle_from_document(doc: Mapping[str, Any]) -> VehicleState:
    route_raw = doc.get("route") or {}
    schedule_raw = doc.get("schedule") or {}
    loc_raw = doc.get("current_location") or None
    updated_raw = doc.get("last_update_time")
    observed_raw = doc.get("last_observed_at")

    location = None
    if loc_raw and loc_raw.get("coordinates"):
        lon, lat = loc_raw["coordinates"][:2]
        location = GeoPoint(lat=float(lat), lon=float(lon))

    return VehicleState(
        id=str(doc["id"]),
        bus_number=str(doc["bus_number"]),
        route_number=str(doc["route_number"]),
        capacity=int(doc["capacity"]),
        device_id=str(doc["device_id"]),
        route=Route(
            stop_ids=tuple(route_raw.get("stop_ids") or ()),
            estimated_time_min=route_raw.get("estimated_time"),
            route_id=route_raw.get("route_id"),
        ),
        schedule=Schedule(
            departure_time=schedule_raw.get("departure_time"),
            arrival_time=schedule_raw.get("arrival_time"),
        ),
        status=VehicleStatus(doc.get("status") or VehicleStatus.INACTIVE.value),
        current_stop_id=doc.get("current_stop_id"),
        current_location=location,
        last_speed_mps=doc.get("last_speed_mps"),
        last_heading_deg=doc.get("last_heading_deg"),
        last_update_time=(
            datetime.fromisoformat(updated_raw) if isinstance(updated_raw, str) else None
        ),
        last_observed_at=(
            datetime.fromisoformat(observed_raw)
            if isinstance(observed_raw, str)
            else None
        ),
        driver_id=doc.get("driver_id"),
        is_on_route=bool(doc.get("is_on_route", False)),
        current_passenger_count=int(doc.get("current_passenger_count") or 0),
        version=int(doc.get("version") or 0),
    )
