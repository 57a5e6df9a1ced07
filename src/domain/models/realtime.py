from __future__ import annotations

from dataclasses import dataclass

from .vehicle import VehiclePosition


@dataclass(frozen=True, slots=True)
class PositionReport:
    """A position addressed to a vehicle, as received from a device or feed."""

    vehicle_id: str
    position: VehiclePosition
