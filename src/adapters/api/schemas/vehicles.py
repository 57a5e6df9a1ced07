from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.adapters.api.schemas.common import GeoPointSchema


class RouteSchema(BaseModel):
    route_id: str | None = None
    stop_ids: list[str] = []
    estimated_time: int | None = None


class ScheduleSchema(BaseModel):
    departure_time: str | None = None
    arrival_time: str | None = None


class VehicleCreateSchema(BaseModel):
    bus_number: str | None = None
    route_number: str | None = None
    capacity: int | None = None
    device_id: str | None = None
    route: RouteSchema | None = None
    # Resolve the stop sequence from the route source instead of `route`.
    route_id: str | None = None
    schedule: ScheduleSchema | None = None
    status: str | None = None


class VehicleSchema(BaseModel):
    id: str
    bus_number: str
    route_number: str
    capacity: int
    device_id: str
    route: RouteSchema
    schedule: ScheduleSchema
    status: str
    current_stop_id: str | None = None
    current_location: GeoPointSchema | None = None
    speed_mps: float | None = None
    heading_deg: float | None = None
    last_update_time: datetime | None = None
    driver_id: str | None = None
    is_on_route: bool = False
    current_passenger_count: int = 0


class LocationReportSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    speed: float | None = None
    heading: float | None = None
    observed_at: datetime | None = None


class TrackingSnapshotSchema(BaseModel):
    vehicle_id: str
    location: GeoPointSchema | None = None
    current_stop_id: str | None = None
    next_stop_id: str | None = None
    eta: int | None = None  # minutes
    distance_to_next: int | None = None  # meters
    progress: str
    quality: str
    computed_at: datetime


class DriverAssignmentSchema(BaseModel):
    driver_id: str | None = None


class VehicleLocationSchema(BaseModel):
    device_id: str
    bus_number: str
    route_number: str
    location: GeoPointSchema | None = None
    speed: float = 0.0
    heading: float = 0.0
    status: str
    last_update: datetime | None = None


class RouteGeometrySchema(BaseModel):
    distance: float
    duration: float
    geometry: str | None = None
