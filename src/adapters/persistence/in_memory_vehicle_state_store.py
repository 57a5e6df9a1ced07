from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Iterable

from src.app.ports.output import IVehicleStateStore
from src.domain.algorithms.route_progress import route_includes_stop
from src.domain.exceptions import DuplicateVehicle, PersistenceConflict
from src.domain.models import VehicleState, VehicleStatus


@dataclass(slots=True)
class InMemoryVehicleStateStore(IVehicleStateStore):
    """Process-local store; last writer wins.

    Vehicles are frozen, so stored objects are shared without copying.
    """

    _items: dict[str, VehicleState] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, vehicle_id: str) -> VehicleState | None:
        with self._lock:
            return self._items.get(vehicle_id)

    def create(self, vehicle: VehicleState) -> VehicleState:
        with self._lock:
            if vehicle.id in self._items:
                raise DuplicateVehicle(f"Vehicle {vehicle.id} already exists")
            stored = replace(vehicle, version=1)
            self._items[vehicle.id] = stored
            return stored

    def save(self, vehicle: VehicleState) -> VehicleState:
        with self._lock:
            current = self._items.get(vehicle.id)
            if current is None:
                raise PersistenceConflict(f"Vehicle {vehicle.id} vanished before save")
            stored = replace(vehicle, version=current.version + 1)
            self._items[vehicle.id] = stored
            return stored

    def delete(self, vehicle_id: str) -> bool:
        with self._lock:
            return self._items.pop(vehicle_id, None) is not None

    def find(
        self,
        *,
        status_in: Iterable[VehicleStatus] | None = None,
        route_number: str | None = None,
        serving_stop_id: str | None = None,
    ) -> tuple[VehicleState, ...]:
        statuses = set(status_in) if status_in is not None else None
        with self._lock:
            items = list(self._items.values())

        return tuple(
            v
            for v in items
            if (statuses is None or v.status in statuses)
            and (route_number is None or v.route_number == route_number)
            and (
                serving_stop_id is None or route_includes_stop(v.route, serving_stop_id)
            )
        )
