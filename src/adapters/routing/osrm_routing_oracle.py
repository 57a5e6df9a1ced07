from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import httpx

from src.app.ports.output import IRoutingOracle
from src.domain.exceptions import OracleUnavailable
from src.domain.models import GeoPoint, RouteGeometry


@dataclass(slots=True)
class OsrmRoutingOracle(IRoutingOracle):
    """Routing oracle backed by an OSRM `/route` endpoint.

    Env vars:
      - OSRM_BASE_URL (default: https://router.project-osrm.org)
      - OSRM_PROFILE (default: driving)
      - OSRM_TIMEOUT_S: request timeout (default 5)

    Network errors, non-2xx responses, non-JSON bodies, OSRM error codes and
    responses without a route all raise OracleUnavailable.
    """

    base_url: str | None = None
    profile: str | None = None
    timeout_s: float = 5.0
    # Injected in tests (httpx.MockTransport).
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv(
                "OSRM_BASE_URL", "https://router.project-osrm.org"
            )
        if self.profile is None:
            self.profile = os.getenv("OSRM_PROFILE", "driving")
        if os.getenv("OSRM_TIMEOUT_S"):
            self.timeout_s = float(os.environ["OSRM_TIMEOUT_S"])

    def _url(self, origin: GeoPoint, destination: GeoPoint) -> str:
        coords = ";".join(
            "{},{}".format(*point.lon_lat()) for point in (origin, destination)
        )
        base = (self.base_url or "").rstrip("/")
        return f"{base}/route/v1/{self.profile}/{coords}"

    async def _first_route(
        self, origin: GeoPoint, destination: GeoPoint, *, with_geometry: bool
    ) -> dict[str, Any]:
        params = {"overview": "full", "geometries": "polyline"}
        if not with_geometry:
            params = {"overview": "false"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(self._url(origin, destination), params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise OracleUnavailable(f"OSRM request failed: {exc}") from exc
        except ValueError as exc:
            raise OracleUnavailable("OSRM returned a malformed body") from exc

        if not isinstance(data, dict):
            raise OracleUnavailable("OSRM returned a malformed body")
        if data.get("code") != "Ok":
            raise OracleUnavailable(
                f"OSRM error: {data.get('message') or data.get('code') or 'unknown'}"
            )

        routes = data.get("routes") or []
        if not routes or not isinstance(routes[0], dict):
            raise OracleUnavailable("OSRM returned no route")
        return routes[0]

    @staticmethod
    def _number(route: dict[str, Any], key: str) -> float:
        try:
            return float(route[key])
        except (KeyError, TypeError, ValueError):
            raise OracleUnavailable(f"OSRM route has no usable {key}") from None

    async def duration_s(self, origin: GeoPoint, destination: GeoPoint) -> float:
        route = await self._first_route(origin, destination, with_geometry=False)
        return self._number(route, "duration")

    async def distance_m(self, origin: GeoPoint, destination: GeoPoint) -> float:
        route = await self._first_route(origin, destination, with_geometry=False)
        return self._number(route, "distance")

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteGeometry:
        route = await self._first_route(origin, destination, with_geometry=True)
        geometry = route.get("geometry")
        return RouteGeometry(
            distance_m=self._number(route, "distance"),
            duration_s=self._number(route, "duration"),
            geometry=geometry if isinstance(geometry, str) else None,
        )
