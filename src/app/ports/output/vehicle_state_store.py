from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from src.domain.models import VehicleState, VehicleStatus


class IVehicleStateStore(ABC):
    """Persistence port for vehicle documents.

    `save` is last-writer-wins; adapters raise `NotFoundError` when the record
    vanished and `PersistenceConflict` when the write could not be completed.
    """

    @abstractmethod
    def get(self, vehicle_id: str) -> VehicleState | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, vehicle: VehicleState) -> VehicleState:
        raise NotImplementedError

    @abstractmethod
    def save(self, vehicle: VehicleState) -> VehicleState:
        raise NotImplementedError

    @abstractmethod
    def delete(self, vehicle_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find(
        self,
        *,
        status_in: Iterable[VehicleStatus] | None = None,
        route_number: str | None = None,
        serving_stop_id: str | None = None,
    ) -> tuple[VehicleState, ...]:
        """Vehicles matching every provided filter.

        `serving_stop_id` keeps vehicles whose route includes that stop.
        """
