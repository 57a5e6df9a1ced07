from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from src.domain.algorithms.route_progress import route_includes_stop
from src.domain.models.actor import (
    Actor,
    RestrictedActor,
    ScopedActor,
    UnrestrictedActor,
)
from src.domain.models.route import Route

STATION_ADMIN_FIELDS = frozenset({"status", "schedule"})
STATION_ADMIN_PREFIXES = ("schedule.", "route.")


@dataclass(frozen=True, slots=True)
class FieldFilterResult:
    """Outcome of filtering a proposed mutation.

    When `denial` is set the whole mutation is rejected and `allowed` is empty.
    `dropped` lists keys removed silently by the allow-list.
    """

    allowed: dict[str, Any] = field(default_factory=dict)
    dropped: tuple[str, ...] = ()
    denial: str | None = None

    @property
    def is_denied(self) -> bool:
        return self.denial is not None


def _station_admin_may_set(key: str) -> bool:
    return key in STATION_ADMIN_FIELDS or key.startswith(STATION_ADMIN_PREFIXES)


def filter_fields(
    actor: Actor, route: Route, proposed: Mapping[str, Any]
) -> FieldFilterResult:
    """Restrict `proposed` to the fields `actor` may write on a vehicle.

    `route` is the target vehicle's current route. Pure: the inputs are not
    mutated and nothing is persisted.
    """

    match actor:
        case UnrestrictedActor():
            return FieldFilterResult(allowed=dict(proposed))

        case ScopedActor(station_id=None):
            return FieldFilterResult(
                denial="Station admin not associated with any station"
            )

        case ScopedActor(station_id=station_id):
            if not route_includes_stop(route, station_id):
                return FieldFilterResult(
                    denial="This vehicle is not assigned to your station"
                )

            allowed: dict[str, Any] = {}
            dropped: list[str] = []
            for key, value in proposed.items():
                if _station_admin_may_set(key):
                    allowed[key] = value
                else:
                    dropped.append(key)
            return FieldFilterResult(allowed=allowed, dropped=tuple(dropped))

        case RestrictedActor(role=role):
            return FieldFilterResult(
                denial=f"Role {role or '<none>'} cannot update vehicles"
            )

    raise TypeError(f"Unsupported actor: {actor!r}")
