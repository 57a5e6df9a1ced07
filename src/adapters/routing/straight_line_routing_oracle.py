from __future__ import annotations

import os
from dataclasses import dataclass

from src.app.ports.output import IRoutingOracle
from src.domain.algorithms.geo_utils import haversine_distance_m
from src.domain.models import GeoPoint, RouteGeometry


@dataclass(slots=True)
class StraightLineRoutingOracle(IRoutingOracle):
    """Great-circle estimates for local development without an OSRM server.

    Env vars:
      - STRAIGHT_LINE_SPEED_KMH: assumed average speed (default 25)
    """

    speed_kmh: float = 25.0
    # Road distance is longer than the great-circle distance.
    detour_factor: float = 1.3

    def __post_init__(self) -> None:
        if os.getenv("STRAIGHT_LINE_SPEED_KMH"):
            self.speed_kmh = float(os.environ["STRAIGHT_LINE_SPEED_KMH"])

    async def distance_m(self, origin: GeoPoint, destination: GeoPoint) -> float:
        return haversine_distance_m(origin, destination) * self.detour_factor

    async def duration_s(self, origin: GeoPoint, destination: GeoPoint) -> float:
        meters = await self.distance_m(origin, destination)
        return meters / (self.speed_kmh / 3.6)

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteGeometry:
        return RouteGeometry(
            distance_m=await self.distance_m(origin, destination),
            duration_s=await self.duration_s(origin, destination),
        )
