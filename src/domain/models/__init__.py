from .actor import Actor, RestrictedActor, ScopedActor, UnrestrictedActor, UserRole
from .geo import GeoPoint
from .realtime import PositionReport
from .route import Route, Stop
from .tracking import (
    EstimateQuality,
    LegEstimate,
    ProgressState,
    RouteGeometry,
    TrackingSnapshot,
)
from .vehicle import Schedule, VehiclePosition, VehicleState, VehicleStatus

__all__ = [
    "Actor",
    "EstimateQuality",
    "GeoPoint",
    "LegEstimate",
    "PositionReport",
    "ProgressState",
    "RestrictedActor",
    "Route",
    "RouteGeometry",
    "Schedule",
    "ScopedActor",
    "Stop",
    "TrackingSnapshot",
    "UnrestrictedActor",
    "UserRole",
    "VehiclePosition",
    "VehicleState",
    "VehicleStatus",
]
