from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Header, HTTPException

from src.adapters.persistence import (
    DynamoDbVehicleStateStore,
    InMemoryVehicleStateStore,
    LocalRouteSource,
)
from src.adapters.routing import OsrmRoutingOracle, StraightLineRoutingOracle
from src.app.ports.output import IRoutingOracle, IVehicleStateStore
from src.app.services.progress_estimator import ProgressEstimator
from src.app.services.vehicle_tracking_service import VehicleTrackingService
from src.domain.models import Actor
from src.domain.models.actor import actor_from_role


def build_routing_oracle() -> IRoutingOracle:
    kind = (os.getenv("ROUTING_ORACLE") or "osrm").strip().lower()
    if kind == "straight_line":
        return StraightLineRoutingOracle()
    return OsrmRoutingOracle()


def build_vehicle_store() -> IVehicleStateStore:
    kind = (os.getenv("VEHICLE_STORE") or "memory").strip().lower()
    if kind == "dynamodb":
        return DynamoDbVehicleStateStore()
    return InMemoryVehicleStateStore()


def build_tracking_service() -> VehicleTrackingService:
    route_source = LocalRouteSource()
    estimator = ProgressEstimator(
        oracle=build_routing_oracle(), route_source=route_source
    )

    # Allow tuning via env without changing code.
    if os.getenv("ORACLE_TIMEOUT_S"):
        estimator.timeout_s = float(os.environ["ORACLE_TIMEOUT_S"])

    return VehicleTrackingService(
        store=build_vehicle_store(),
        route_source=route_source,
        estimator=estimator,
    )


@lru_cache(maxsize=1)
def get_tracking_service() -> VehicleTrackingService:
    # Shared so the in-memory store lives as long as the process.
    return build_tracking_service()


def get_actor(
    x_actor_role: str | None = Header(default=None),
    x_actor_station: str | None = Header(default=None),
) -> Actor:
    """Actor of the current request.

    Authentication happens upstream; the gateway forwards the verified role
    and station in headers.
    """

    if not x_actor_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    return actor_from_role(x_actor_role, x_actor_station)
