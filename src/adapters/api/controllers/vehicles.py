from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response

from src.adapters.api.dependencies import get_actor, get_tracking_service
from src.adapters.api.schemas.common import GeoPointSchema
from src.adapters.api.schemas.vehicles import (
    DriverAssignmentSchema,
    LocationReportSchema,
    RouteSchema,
    ScheduleSchema,
    TrackingSnapshotSchema,
    VehicleCreateSchema,
    VehicleSchema,
)
from src.app.services.vehicle_tracking_service import VehicleTrackingService
from src.domain.exceptions import AuthorizationDenied
from src.domain.models import (
    Actor,
    GeoPoint,
    Route,
    Schedule,
    TrackingSnapshot,
    UnrestrictedActor,
    VehiclePosition,
    VehicleState,
)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _point(p: GeoPoint | None) -> GeoPointSchema | None:
    return GeoPointSchema(lat=p.lat, lon=p.lon) if p is not None else None


def vehicle_to_schema(v: VehicleState) -> VehicleSchema:
    return VehicleSchema(
        id=v.id,
        bus_number=v.bus_number,
        route_number=v.route_number,
        capacity=v.capacity,
        device_id=v.device_id,
        route=RouteSchema(
            route_id=v.route.route_id,
            stop_ids=list(v.route.stop_ids),
            estimated_time=v.route.estimated_time_min,
        ),
        schedule=ScheduleSchema(
            departure_time=v.schedule.departure_time,
            arrival_time=v.schedule.arrival_time,
        ),
        status=v.status.value,
        current_stop_id=v.current_stop_id,
        current_location=_point(v.current_location),
        speed_mps=v.last_speed_mps,
        heading_deg=v.last_heading_deg,
        last_update_time=v.last_update_time,
        driver_id=v.driver_id,
        is_on_route=v.is_on_route,
        current_passenger_count=v.current_passenger_count,
    )


def snapshot_to_schema(s: TrackingSnapshot) -> TrackingSnapshotSchema:
    return TrackingSnapshotSchema(
        vehicle_id=s.vehicle_id,
        location=_point(s.location),
        current_stop_id=s.current_stop_id,
        next_stop_id=s.next_stop_id,
        eta=s.eta_min,
        distance_to_next=s.distance_to_next_m,
        progress=s.progress.value,
        quality=s.quality.value,
        computed_at=s.computed_at,
    )


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not isinstance(actor, UnrestrictedActor):
        raise AuthorizationDenied("Only system admins can manage vehicles")
    return actor


@router.post("", response_model=VehicleSchema, status_code=201)
def create_vehicle(
    req: VehicleCreateSchema,
    _: Actor = Depends(require_admin),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> VehicleSchema:
    route = (
        Route(
            stop_ids=tuple(req.route.stop_ids),
            estimated_time_min=req.route.estimated_time,
            route_id=req.route.route_id,
        )
        if req.route is not None
        else None
    )
    schedule = (
        Schedule(
            departure_time=req.schedule.departure_time,
            arrival_time=req.schedule.arrival_time,
        )
        if req.schedule is not None
        else None
    )
    vehicle = service.register_vehicle(
        bus_number=req.bus_number,
        route_number=req.route_number,
        capacity=req.capacity,
        device_id=req.device_id,
        route=route,
        route_id=req.route_id,
        schedule=schedule,
        status=req.status,
    )
    return vehicle_to_schema(vehicle)


@router.get("", response_model=list[VehicleSchema])
def list_vehicles(
    status: str | None = Query(default=None),
    route_number: str | None = Query(default=None),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> list[VehicleSchema]:
    vehicles = service.list_vehicles(status=status, route_number=route_number)
    return [vehicle_to_schema(v) for v in vehicles]


@router.get("/{vehicle_id}", response_model=VehicleSchema)
def get_vehicle(
    vehicle_id: str,
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> VehicleSchema:
    return vehicle_to_schema(service.get_vehicle(vehicle_id))


@router.patch("/{vehicle_id}", response_model=VehicleSchema)
def update_vehicle(
    vehicle_id: str,
    fields: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_actor),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> VehicleSchema:
    return vehicle_to_schema(service.propose_mutation(actor, vehicle_id, fields))


@router.delete("/{vehicle_id}", status_code=204)
def delete_vehicle(
    vehicle_id: str,
    _: Actor = Depends(require_admin),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> Response:
    service.deregister_vehicle(vehicle_id)
    return Response(status_code=204)


@router.post("/{vehicle_id}/location", response_model=TrackingSnapshotSchema)
async def update_location(
    vehicle_id: str,
    req: LocationReportSchema,
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> TrackingSnapshotSchema:
    observed_at = req.observed_at or datetime.now(timezone.utc)
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=timezone.utc)
    position = VehiclePosition(
        location=GeoPoint(lat=req.lat, lon=req.lon),
        observed_at=observed_at,
        speed_mps=req.speed,
        heading_deg=req.heading,
    )
    snapshot = await service.record_position(vehicle_id, position)
    return snapshot_to_schema(snapshot)


@router.get("/{vehicle_id}/tracking", response_model=TrackingSnapshotSchema)
async def get_tracking_info(
    vehicle_id: str,
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> TrackingSnapshotSchema:
    return snapshot_to_schema(await service.tracking_info(vehicle_id))


@router.post("/{vehicle_id}/driver", response_model=VehicleSchema)
def assign_driver(
    vehicle_id: str,
    req: DriverAssignmentSchema,
    _: Actor = Depends(require_admin),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> VehicleSchema:
    return vehicle_to_schema(service.assign_driver(vehicle_id, req.driver_id))
