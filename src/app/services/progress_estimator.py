from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable

from src.app.ports.output import IRouteSource, IRoutingOracle
from src.domain.algorithms.route_progress import (
    locate_stop_index,
    next_stop_id,
    progress_state,
)
from src.domain.exceptions import OracleUnavailable, ValidationError
from src.domain.models import (
    EstimateQuality,
    GeoPoint,
    LegEstimate,
    ProgressState,
    Route,
    TrackingSnapshot,
    VehiclePosition,
    VehicleState,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer; .5 goes away from zero (2.5 -> 3)."""

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(slots=True)
class ProgressEstimator:
    """Derives route progress and next-stop estimates for a vehicle.

    - Current/next stop come from the vehicle's route (pure lookups).
    - Duration and distance to the next stop are two independent oracle
      queries, run concurrently and each bounded by `timeout_s`.
    - A failed or timed-out query only blanks its own snapshot field.
    """

    oracle: IRoutingOracle
    route_source: IRouteSource
    timeout_s: float = 5.0
    clock: Callable[[], datetime] = field(default=utcnow)

    async def estimate(
        self, vehicle: VehicleState, position: VehiclePosition, route: Route
    ) -> TrackingSnapshot:
        self._validate(vehicle, position)

        index = locate_stop_index(route, vehicle.current_stop_id)
        next_id = next_stop_id(route, index)
        progress = progress_state(route, index)

        if next_id is None:
            # Not started or end of route: nothing to estimate, no oracle call.
            return self._snapshot(
                vehicle,
                position,
                next_id=None,
                leg=LegEstimate(),
                quality=EstimateQuality.NONE,
                progress=progress,
            )

        next_stop = self.route_source.get_stop(next_id)
        if next_stop is None:
            logger.warning(
                "Next stop %s of vehicle %s cannot be resolved; skipping estimate",
                next_id,
                vehicle.id,
            )
            leg = LegEstimate()
        else:
            leg = await self._leg_estimate(
                vehicle.id, position.location, next_stop.location
            )

        quality = EstimateQuality.FULL if leg.is_complete else EstimateQuality.DEGRADED
        return self._snapshot(
            vehicle,
            position,
            next_id=next_id,
            leg=leg,
            quality=quality,
            progress=progress,
        )

    def unlocated(self, vehicle: VehicleState, route: Route) -> TrackingSnapshot:
        """Snapshot for a vehicle that has never reported a position."""

        index = locate_stop_index(route, vehicle.current_stop_id)
        return TrackingSnapshot(
            vehicle_id=vehicle.id,
            location=None,
            current_stop_id=vehicle.current_stop_id,
            next_stop_id=next_stop_id(route, index),
            eta_min=None,
            distance_to_next_m=None,
            progress=progress_state(route, index),
            quality=EstimateQuality.NONE,
            computed_at=self.clock(),
        )

    async def apply(
        self, vehicle: VehicleState, position: VehiclePosition, route: Route
    ) -> tuple[VehicleState, TrackingSnapshot]:
        """Estimate, then fold the result into a new VehicleState.

        The input vehicle is left untouched; the returned state is complete
        and ready to be written as a whole.
        """

        snapshot = await self.estimate(vehicle, position, route)

        now = self.clock()
        previous = vehicle.last_update_time
        last_update = now if previous is None or now >= previous else previous

        # Keep the last good aggregate estimate when this pass produced none.
        new_route = (
            route.with_estimated_time(snapshot.eta_min)
            if snapshot.eta_min is not None
            else route
        )

        updated = replace(
            vehicle,
            route=new_route,
            current_location=position.location,
            last_speed_mps=position.speed_mps,
            last_heading_deg=position.heading_deg,
            last_update_time=last_update,
            last_observed_at=position.observed_at,
        )
        return updated, snapshot

    async def _leg_estimate(
        self, vehicle_id: str, origin: GeoPoint, destination: GeoPoint
    ) -> LegEstimate:
        duration_s, distance_m = await asyncio.gather(
            self._bounded(
                self.oracle.duration_s(origin, destination), "duration", vehicle_id
            ),
            self._bounded(
                self.oracle.distance_m(origin, destination), "distance", vehicle_id
            ),
        )
        return LegEstimate(duration_s=duration_s, distance_m=distance_m)

    async def _bounded(
        self, call: Awaitable[float], what: str, vehicle_id: str
    ) -> float | None:
        try:
            value = await asyncio.wait_for(call, timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning(
                "Routing oracle %s query timed out after %.1fs (vehicle %s)",
                what,
                self.timeout_s,
                vehicle_id,
            )
            return None
        except OracleUnavailable as exc:
            logger.warning(
                "Routing oracle %s query failed (vehicle %s): %s", what, vehicle_id, exc
            )
            return None

        if value is None or not math.isfinite(value) or value < 0:
            logger.warning(
                "Routing oracle returned unusable %s %r (vehicle %s)",
                what,
                value,
                vehicle_id,
            )
            return None
        return float(value)

    def _snapshot(
        self,
        vehicle: VehicleState,
        position: VehiclePosition,
        *,
        next_id: str | None,
        leg: LegEstimate,
        quality: EstimateQuality,
        progress: ProgressState,
    ) -> TrackingSnapshot:
        eta_min = (
            round_half_away_from_zero(leg.duration_s / 60.0)
            if leg.duration_s is not None
            else None
        )
        distance = (
            round_half_away_from_zero(leg.distance_m)
            if leg.distance_m is not None
            else None
        )
        return TrackingSnapshot(
            vehicle_id=vehicle.id,
            location=position.location,
            current_stop_id=vehicle.current_stop_id,
            next_stop_id=next_id,
            eta_min=eta_min,
            distance_to_next_m=distance,
            progress=progress,
            quality=quality,
            computed_at=self.clock(),
        )

    @staticmethod
    def _validate(vehicle: VehicleState, position: VehiclePosition) -> None:
        if not vehicle.id:
            raise ValidationError("Vehicle id is required")
        if not isinstance(position.location, GeoPoint):
            raise ValidationError("Position location is required")
        if position.observed_at is None:
            raise ValidationError("Position timestamp is required")
