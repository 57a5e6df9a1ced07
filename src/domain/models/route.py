from __future__ import annotations

from dataclasses import dataclass, field, replace

from src.domain.exceptions.tracking import ValidationError

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class Stop:
    """A station. Routes refer to it by `id` only."""

    id: str
    name: str
    location: GeoPoint


@dataclass(frozen=True, slots=True)
class Route:
    """Ordered stop sequence a vehicle traverses.

    `stop_ids` order is traversal order. `estimated_time_min` is the aggregate
    estimate (minutes) last computed for the route; it is None until the first
    successful estimate.
    """

    stop_ids: tuple[str, ...] = field(default_factory=tuple)
    estimated_time_min: int | None = None
    route_id: str | None = None

    def __post_init__(self) -> None:
        if len(set(self.stop_ids)) != len(self.stop_ids):
            raise ValidationError("Route stop ids must be unique")

    def with_estimated_time(self, minutes: int) -> Route:
        return replace(self, estimated_time_min=int(minutes))
