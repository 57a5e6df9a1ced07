from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .geo import GeoPoint


class ProgressState(str, Enum):
    NOT_STARTED = "not_started"
    EN_ROUTE = "en_route"
    END_OF_ROUTE = "end_of_route"


class EstimateQuality(str, Enum):
    FULL = "full"
    DEGRADED = "degraded"
    # No leg to estimate (not started or end of route).
    NONE = "none"


@dataclass(frozen=True, slots=True)
class LegEstimate:
    """Joined result of the duration and distance oracle queries.

    Each field is None when its query failed; they fail independently.
    """

    duration_s: float | None = None
    distance_m: float | None = None

    @property
    def is_complete(self) -> bool:
        return self.duration_s is not None and self.distance_m is not None


@dataclass(frozen=True, slots=True)
class RouteGeometry:
    distance_m: float
    duration_s: float
    geometry: str | None = None  # encoded polyline


@dataclass(frozen=True, slots=True)
class TrackingSnapshot:
    vehicle_id: str
    location: GeoPoint | None
    current_stop_id: str | None
    next_stop_id: str | None
    eta_min: int | None
    distance_to_next_m: int | None
    progress: ProgressState
    quality: EstimateQuality
    computed_at: datetime
