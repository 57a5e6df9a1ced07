from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from uuid import uuid4

from src.app.ports.output import IRouteSource, IVehicleStateStore
from src.app.services.progress_estimator import ProgressEstimator
from src.app.services.vehicle_updates import (
    apply_field_updates,
    parse_int,
    parse_status,
)
from src.domain.algorithms.field_authorization import filter_fields
from src.domain.exceptions import (
    AuthorizationDenied,
    DuplicateVehicle,
    NotFoundError,
    ValidationError,
)
from src.domain.models import (
    Actor,
    Route,
    RouteGeometry,
    Schedule,
    ScopedActor,
    TrackingSnapshot,
    VehiclePosition,
    VehicleState,
    VehicleStatus,
)

logger = logging.getLogger(__name__)

# Statuses shown on a station's live map.
LOCATION_VISIBLE_STATUSES = (VehicleStatus.ACTIVE, VehicleStatus.INACTIVE)


def _new_vehicle_id() -> str:
    return str(uuid4())


@dataclass(slots=True)
class VehicleTrackingService:
    """Application service for vehicle tracking.

    Entry points used by the request layer and the ingestion worker. Actors
    are always passed in explicitly; nothing here reads request context.
    """

    store: IVehicleStateStore
    route_source: IRouteSource
    estimator: ProgressEstimator
    id_factory: Callable[[], str] = field(default=_new_vehicle_id)

    async def record_position(
        self, vehicle_id: str, position: VehiclePosition
    ) -> TrackingSnapshot:
        """Record a device report and return the fresh snapshot.

        Oracle problems only degrade the snapshot; the location is always
        written. A report observed before the last recorded one is not
        written and the snapshot is computed from the stored location.
        Store errors propagate unchanged.
        """

        vehicle = self.get_vehicle(vehicle_id)
        last_observed = vehicle.last_observed_at
        if (
            last_observed is not None
            and position.observed_at is not None
            and position.observed_at < last_observed
        ):
            logger.info(
                "Ignoring stale report for vehicle %s (observed %s, last %s)",
                vehicle_id,
                position.observed_at.isoformat(),
                last_observed.isoformat(),
            )
            return await self._stored_snapshot(vehicle)

        updated, snapshot = await self.estimator.apply(vehicle, position, vehicle.route)
        self.store.save(updated)

        logger.debug(
            "Recorded position for vehicle %s (next=%s, quality=%s)",
            vehicle_id,
            snapshot.next_stop_id,
            snapshot.quality.value,
        )
        return snapshot

    async def tracking_info(self, vehicle_id: str) -> TrackingSnapshot:
        """Snapshot from the last stored location. Nothing is written."""

        return await self._stored_snapshot(self.get_vehicle(vehicle_id))

    async def _stored_snapshot(self, vehicle: VehicleState) -> TrackingSnapshot:
        if vehicle.current_location is None:
            return self.estimator.unlocated(vehicle, vehicle.route)

        position = VehiclePosition(
            location=vehicle.current_location,
            observed_at=vehicle.last_update_time or datetime.now(timezone.utc),
            speed_mps=vehicle.last_speed_mps,
            heading_deg=vehicle.last_heading_deg,
        )
        return await self.estimator.estimate(vehicle, position, vehicle.route)

    async def calculate_route(
        self, start_stop_id: str, end_stop_id: str
    ) -> RouteGeometry:
        start = self.route_source.get_stop(start_stop_id)
        end = self.route_source.get_stop(end_stop_id)
        if start is None or end is None:
            raise NotFoundError("Station not found")
        return await self.estimator.oracle.route(start.location, end.location)

    def propose_mutation(
        self, actor: Actor, vehicle_id: str, fields: Mapping[str, Any]
    ) -> VehicleState:
        vehicle = self.get_vehicle(vehicle_id)

        result = filter_fields(actor, vehicle.route, fields)
        if result.is_denied:
            logger.info(
                "Denied update of vehicle %s by %r: %s",
                vehicle_id,
                actor,
                result.denial,
            )
            raise AuthorizationDenied(result.denial)

        if result.dropped:
            logger.info(
                "Dropped fields %s from update of vehicle %s by %r",
                ", ".join(result.dropped),
                vehicle_id,
                actor,
            )

        if not result.allowed:
            return vehicle

        updated = apply_field_updates(vehicle, result.allowed)
        return self.store.save(updated)

    def register_vehicle(
        self,
        *,
        bus_number: str | None,
        route_number: str | None,
        capacity: int | None,
        device_id: str | None,
        route: Route | None = None,
        route_id: str | None = None,
        schedule: Schedule | None = None,
        status: str | VehicleStatus | None = None,
    ) -> VehicleState:
        missing = [
            name
            for name, value in (
                ("bus_number", bus_number),
                ("route_number", route_number),
                ("capacity", capacity),
                ("device_id", device_id),
            )
            if not value
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if route is None and route_id:
            route = self.route_source.get_route(route_id)
            if route is None:
                raise NotFoundError(f"Route {route_id} not found")

        for existing in self.store.find():
            if existing.bus_number == bus_number or existing.device_id == device_id:
                raise DuplicateVehicle("Bus number or device ID already exists")

        now = datetime.now(timezone.utc)
        vehicle = VehicleState(
            id=self.id_factory(),
            bus_number=str(bus_number),
            route_number=str(route_number),
            capacity=parse_int("capacity", capacity, minimum=1),
            device_id=str(device_id),
            route=route or Route(),
            schedule=schedule
            or Schedule(departure_time=now.isoformat(), arrival_time=now.isoformat()),
            status=parse_status(status) if status else VehicleStatus.INACTIVE,
            last_update_time=now,
        )
        created = self.store.create(vehicle)
        logger.info("Registered vehicle %s (bus %s)", created.id, created.bus_number)
        return created

    def assign_driver(self, vehicle_id: str, driver_id: str | None) -> VehicleState:
        vehicle = self.get_vehicle(vehicle_id)
        return self.store.save(apply_field_updates(vehicle, {"driver_id": driver_id}))

    def deregister_vehicle(self, vehicle_id: str) -> None:
        if not self.store.delete(vehicle_id):
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        logger.info("Deregistered vehicle %s", vehicle_id)

    def get_vehicle(self, vehicle_id: str) -> VehicleState:
        if not vehicle_id:
            raise ValidationError("Vehicle id is required")
        vehicle = self.store.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    def list_vehicles(
        self,
        *,
        status: str | VehicleStatus | None = None,
        route_number: str | None = None,
    ) -> tuple[VehicleState, ...]:
        status_in = (parse_status(status),) if status else None
        return self.store.find(status_in=status_in, route_number=route_number)

    def station_vehicles(self, actor: Actor) -> tuple[VehicleState, ...]:
        """All vehicles whose route serves the actor's station."""

        station_id = _station_of(actor)
        return self.store.find(serving_stop_id=station_id)

    def station_vehicle_locations(self, actor: Actor) -> tuple[VehicleState, ...]:
        station_id = _station_of(actor)
        return self.store.find(
            serving_stop_id=station_id, status_in=LOCATION_VISIBLE_STATUSES
        )


def _station_of(actor: Actor) -> str:
    match actor:
        case ScopedActor(station_id=str() as station_id) if station_id:
            return station_id
        case ScopedActor():
            raise AuthorizationDenied("User is not associated with any station")
    raise AuthorizationDenied("Only station admins can access station vehicles")
