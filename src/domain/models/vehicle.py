from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .geo import GeoPoint
from .route import Route


class VehicleStatus(str, Enum):
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    MAINTENANCE = "MAINTENANCE"


@dataclass(frozen=True, slots=True)
class Schedule:
    departure_time: str | None = None  # ISO-8601
    arrival_time: str | None = None  # ISO-8601


@dataclass(frozen=True, slots=True)
class VehiclePosition:
    """A single device report. Not retained beyond the snapshot it produces."""

    location: GeoPoint
    observed_at: datetime
    speed_mps: float | None = None
    heading_deg: float | None = None


@dataclass(frozen=True, slots=True)
class VehicleState:
    id: str
    bus_number: str
    route_number: str
    capacity: int
    device_id: str
    route: Route = field(default_factory=Route)
    schedule: Schedule = field(default_factory=Schedule)
    status: VehicleStatus = VehicleStatus.INACTIVE
    current_stop_id: str | None = None
    current_location: GeoPoint | None = None
    last_speed_mps: float | None = None
    last_heading_deg: float | None = None
    last_update_time: datetime | None = None
    # Device timestamp of the last recorded report.
    last_observed_at: datetime | None = None
    driver_id: str | None = None
    is_on_route: bool = False
    current_passenger_count: int = 0
    # Incremented by stores on every successful write.
    version: int = 0
