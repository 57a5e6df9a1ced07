from __future__ import annotations

import asyncio

import httpx
import pytest

from src.adapters.routing.osrm_routing_oracle import OsrmRoutingOracle
from src.domain.exceptions import OracleUnavailable
from src.domain.models import GeoPoint

ORIGIN = GeoPoint(lat=28.12, lon=-15.43)
DESTINATION = GeoPoint(lat=28.13, lon=-15.44)

OK_BODY = {
    "code": "Ok",
    "routes": [{"duration": 312.4, "distance": 1840.2, "geometry": "abc"}],
}


def _oracle(handler) -> OsrmRoutingOracle:
    return OsrmRoutingOracle(
        base_url="http://osrm.test/",
        profile="driving",
        transport=httpx.MockTransport(handler),
    )


def test_duration_and_distance_from_first_route() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OK_BODY)

    oracle = _oracle(handler)

    assert asyncio.run(oracle.duration_s(ORIGIN, DESTINATION)) == 312.4
    assert asyncio.run(oracle.distance_m(ORIGIN, DESTINATION)) == 1840.2

    url = seen[0].url
    assert url.path == "/route/v1/driving/-15.43,28.12;-15.44,28.13"
    assert url.params["overview"] == "false"


def test_route_includes_geometry() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["overview"] == "full"
        return httpx.Response(200, json=OK_BODY)

    geometry = asyncio.run(_oracle(handler).route(ORIGIN, DESTINATION))

    assert geometry.distance_m == 1840.2
    assert geometry.duration_s == 312.4
    assert geometry.geometry == "abc"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"}),
        httpx.Response(200, json={"code": "Ok", "routes": []}),
        httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 1.0}]}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["unexpected"]),
    ],
)
def test_bad_responses_raise_oracle_unavailable(response: httpx.Response) -> None:
    oracle = _oracle(lambda request: response)

    with pytest.raises(OracleUnavailable):
        asyncio.run(oracle.duration_s(ORIGIN, DESTINATION))


def test_network_errors_raise_oracle_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(OracleUnavailable):
        asyncio.run(_oracle(handler).distance_m(ORIGIN, DESTINATION))


def test_env_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OSRM_BASE_URL", "http://router.local")
    monkeypatch.setenv("OSRM_PROFILE", "bus")
    monkeypatch.setenv("OSRM_TIMEOUT_S", "2.5")

    oracle = OsrmRoutingOracle()

    assert oracle.base_url == "http://router.local"
    assert oracle.profile == "bus"
    assert oracle.timeout_s == 2.5
