from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_tracking_service
from src.adapters.api.schemas.vehicles import RouteGeometrySchema
from src.app.services.vehicle_tracking_service import VehicleTrackingService

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("/{start_stop_id}/{end_stop_id}", response_model=RouteGeometrySchema)
async def calculate_route(
    start_stop_id: str,
    end_stop_id: str,
    service: VehicleTrackingService = Depends(get_tracking_service),
) -> RouteGeometrySchema:
    route = await service.calculate_route(start_stop_id, end_stop_id)
    return RouteGeometrySchema(
        distance=route.distance_m,
        duration=route.duration_s,
        geometry=route.geometry,
    )
