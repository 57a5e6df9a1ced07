from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import GeoPoint, RouteGeometry


class IRoutingOracle(ABC):
    """Port for an external routing service (e.g. OSRM).

    Implementations raise `OracleUnavailable` for timeouts, unreachable
    services, malformed responses and responses without a usable route.
    """

    @abstractmethod
    async def duration_s(self, origin: GeoPoint, destination: GeoPoint) -> float:
        """Estimated travel time in seconds."""

    @abstractmethod
    async def distance_m(self, origin: GeoPoint, destination: GeoPoint) -> float:
        """Estimated travel distance in meters."""

    @abstractmethod
    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteGeometry:
        """Full route summary including geometry."""
