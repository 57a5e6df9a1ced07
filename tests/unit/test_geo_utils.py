from __future__ import annotations

import asyncio

from src.adapters.routing import StraightLineRoutingOracle
from src.domain.algorithms.geo_utils import haversine_distance_m
from src.domain.models.geo import GeoPoint


def test_haversine_zero_for_identical_points() -> None:
    p = GeoPoint(lat=6.93, lon=79.85)
    assert haversine_distance_m(p, p) == 0.0


def test_haversine_is_symmetric_and_reasonable_scale() -> None:
    # 1 degree of longitude on the equator is about 111km.
    a = GeoPoint(lat=0.0, lon=0.0)
    b = GeoPoint(lat=0.0, lon=1.0)

    d1 = haversine_distance_m(a, b)
    d2 = haversine_distance_m(b, a)

    assert abs(d1 - d2) < 1e-6
    assert 110_000.0 < d1 < 112_000.0


def test_straight_line_oracle_derives_duration_from_speed(monkeypatch) -> None:
    monkeypatch.delenv("STRAIGHT_LINE_SPEED_KMH", raising=False)
    oracle = StraightLineRoutingOracle(speed_kmh=36.0, detour_factor=1.0)
    a = GeoPoint(lat=0.0, lon=0.0)
    b = GeoPoint(lat=0.0, lon=0.01)

    distance = asyncio.run(oracle.distance_m(a, b))
    duration = asyncio.run(oracle.duration_s(a, b))

    # 36 km/h is 10 m/s.
    assert abs(duration - distance / 10.0) < 1e-6
    route = asyncio.run(oracle.route(a, b))
    assert route.geometry is None
    assert route.distance_m == distance
