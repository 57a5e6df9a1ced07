from __future__ import annotations

import pytest

from src.app.services.vehicle_updates import apply_field_updates, parse_status
from src.domain.exceptions import ValidationError
from src.domain.models import Route, Schedule, VehicleState, VehicleStatus

VEHICLE = VehicleState(
    id="bus-1",
    bus_number="NB-1",
    route_number="138",
    capacity=40,
    device_id="dev-1",
    route=Route(stop_ids=("A", "B"), estimated_time_min=7, route_id="R1"),
    schedule=Schedule(departure_time="08:00", arrival_time="09:00"),
)


def test_dotted_paths_update_nested_fields() -> None:
    out = apply_field_updates(
        VEHICLE,
        {
            "schedule.arrival_time": "09:30",
            "route.estimated_time": "12",
            "status": "active",
        },
    )

    assert out.schedule == Schedule(departure_time="08:00", arrival_time="09:30")
    assert out.route.estimated_time_min == 12
    assert out.route.stop_ids == ("A", "B")
    assert out.status is VehicleStatus.ACTIVE
    assert VEHICLE.status is VehicleStatus.INACTIVE


def test_whole_schedule_object_replaces_schedule() -> None:
    out = apply_field_updates(VEHICLE, {"schedule": {"departure_time": "10:00"}})
    assert out.schedule == Schedule(departure_time="10:00", arrival_time=None)


def test_route_object_updates_stops() -> None:
    out = apply_field_updates(VEHICLE, {"route": {"stop_ids": ["C", "D", "E"]}})

    assert out.route.stop_ids == ("C", "D", "E")
    assert out.route.estimated_time_min == 7


def test_route_with_repeated_stop_is_rejected() -> None:
    with pytest.raises(ValidationError):
        apply_field_updates(VEHICLE, {"route.stop_ids": ["A", "B", "A"]})


@pytest.mark.parametrize(
    "fields",
    [
        {"id": "other"},
        {"version": 9},
        {"current_location": {"lat": 1, "lon": 2}},
        {"colour": "red"},
        {"schedule.platform": "3"},
        {"capacity": 0},
        {"capacity": True},
        {"current_passenger_count": -1},
        {"current_passenger_count": 41},
        {"bus_number": "  "},
        {"is_on_route": "yes"},
        {"route.estimated_time": "soon"},
    ],
)
def test_invalid_updates_raise(fields) -> None:
    with pytest.raises(ValidationError):
        apply_field_updates(VEHICLE, fields)


def test_optional_strings_are_cleared_by_blank_values() -> None:
    out = apply_field_updates(VEHICLE, {"driver_id": "drv-1"})
    assert out.driver_id == "drv-1"

    assert apply_field_updates(out, {"driver_id": ""}).driver_id is None


def test_parse_status() -> None:
    assert parse_status(" maintenance ") is VehicleStatus.MAINTENANCE
    assert parse_status(VehicleStatus.ACTIVE) is VehicleStatus.ACTIVE
    with pytest.raises(ValidationError, match="OUT_OF_SERVICE"):
        parse_status("broken")
