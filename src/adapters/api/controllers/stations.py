from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.controllers.vehicles import vehicle_to_schema
from src.adapters.api.dependencies import get_actor, get_tracking_service
from src.adapters.api.schemas.common import GeoPointSchema
from src.adapters.api.schemas.vehicles import VehicleLocationSchema, VehicleSchema
from src.app.services.vehicle_tracking_service import VehicleTrackingService
from src.domain.models import Actor

router = APIRouter(prefix="/stations/me", tags=["stations"])


@router.get("/vehicles", response_model=list[VehicleSchema])
def list_station_vehicles(
    actor: Actor = Depends(get_actor),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> list[VehicleSchema]:
    return [vehicle_to_schema(v) for v in service.station_vehicles(actor)]


@router.get("/vehicle-locations", response_model=list[VehicleLocationSchema])
def list_station_vehicle_locations(
    actor: Actor = Depends(get_actor),
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> list[VehicleLocationSchema]:
    return [
        VehicleLocationSchema(
            device_id=v.device_id,
            bus_number=v.bus_number,
            route_number=v.route_number,
            location=(
                GeoPointSchema(lat=v.current_location.lat, lon=v.current_location.lon)
                if v.current_location is not None
                else None
            ),
            speed=v.last_speed_mps or 0.0,
            heading=v.last_heading_deg or 0.0,
            status=v.status.value.lower(),
            last_update=v.last_update_time,
        )
        for v in service.station_vehicle_locations(actor)
    ]
