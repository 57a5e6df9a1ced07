from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from src.domain.exceptions import ValidationError
from src.domain.models import Route, Schedule, VehicleState, VehicleStatus

# Fields owned by the tracking pipeline or the store; never set by callers.
READ_ONLY_FIELDS = frozenset(
    {"id", "version", "current_location", "last_update_time", "last_observed_at"}
)


def parse_status(raw: Any) -> VehicleStatus:
    if isinstance(raw, VehicleStatus):
        return raw
    try:
        return VehicleStatus(str(raw).strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in VehicleStatus)
        raise ValidationError(
            f"Invalid status {raw!r}; expected one of {allowed}"
        ) from None


def parse_int(key: str, raw: Any, *, minimum: int = 0) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"{key} must be an integer")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer") from None
    if value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    return value


def _as_optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _schedule_from(raw: Any, base: Schedule) -> Schedule:
    if not isinstance(raw, Mapping):
        raise ValidationError("schedule must be an object")
    out = base
    for key, value in raw.items():
        out = _set_schedule_field(out, key, value)
    return out


def _set_schedule_field(schedule: Schedule, key: str, raw: Any) -> Schedule:
    if key == "departure_time":
        return replace(schedule, departure_time=_as_optional_str(raw))
    if key == "arrival_time":
        return replace(schedule, arrival_time=_as_optional_str(raw))
    raise ValidationError(f"Unknown schedule field: {key}")


def _set_route_field(route: Route, key: str, raw: Any) -> Route:
    if key == "estimated_time":
        if raw is None:
            return replace(route, estimated_time_min=None)
        minutes = parse_int("route.estimated_time", raw)
        return replace(route, estimated_time_min=minutes)
    if key == "stop_ids":
        if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
            raise ValidationError("route.stop_ids must be a list")
        return Route(
            stop_ids=tuple(str(s) for s in raw),
            estimated_time_min=route.estimated_time_min,
            route_id=route.route_id,
        )
    if key == "route_id":
        return replace(route, route_id=_as_optional_str(raw))
    raise ValidationError(f"Unknown route field: {key}")


def apply_field_updates(
    vehicle: VehicleState, fields: Mapping[str, Any]
) -> VehicleState:
    """Return a new VehicleState with `fields` applied.

    Keys are top-level field names or dotted paths under `schedule.` and
    `route.` (e.g. `schedule.departure_time`, `route.estimated_time`).
    Unknown or read-only keys raise ValidationError; nothing is applied
    partially since the input vehicle is never modified.
    """

    out = vehicle
    for key, raw in fields.items():
        if key in READ_ONLY_FIELDS:
            raise ValidationError(f"Field {key} cannot be updated directly")

        head, _, rest = key.partition(".")
        if head == "schedule":
            schedule = (
                _set_schedule_field(out.schedule, rest, raw)
                if rest
                else _schedule_from(raw, Schedule())
            )
            out = replace(out, schedule=schedule)
        elif head == "route":
            if rest:
                route = _set_route_field(out.route, rest, raw)
            else:
                if not isinstance(raw, Mapping):
                    raise ValidationError("route must be an object")
                route = out.route
                for sub_key, sub_value in raw.items():
                    route = _set_route_field(route, sub_key, sub_value)
            out = replace(out, route=route)
        elif key == "status":
            out = replace(out, status=parse_status(raw))
        elif key in {"bus_number", "route_number", "device_id"}:
            value = _as_optional_str(raw)
            if value is None:
                raise ValidationError(f"{key} cannot be empty")
            out = replace(out, **{key: value})
        elif key == "capacity":
            out = replace(out, capacity=parse_int(key, raw, minimum=1))
        elif key == "current_passenger_count":
            out = replace(out, current_passenger_count=parse_int(key, raw))
        elif key in {"driver_id", "current_stop_id"}:
            out = replace(out, **{key: _as_optional_str(raw)})
        elif key == "is_on_route":
            if not isinstance(raw, bool):
                raise ValidationError("is_on_route must be a boolean")
            out = replace(out, is_on_route=raw)
        else:
            raise ValidationError(f"Unknown vehicle field: {key}")

    if out.current_passenger_count > out.capacity:
        raise ValidationError("current_passenger_count exceeds capacity")
    return out
