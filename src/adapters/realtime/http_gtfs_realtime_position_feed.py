from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx
from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from src.app.ports.output import IPositionFeed
from src.domain.exceptions import ValidationError
from src.domain.models import GeoPoint, PositionReport, VehiclePosition

logger = logging.getLogger(__name__)


def parse_header_spec(raw: str | None) -> dict[str, str]:
    """'Key:Value;Key2:Value2' -> {"Key": "Value", "Key2": "Value2"}."""

    pairs = (part.partition(":") for part in (raw or "").split(";"))
    return {
        name.strip(): value.strip()
        for name, sep, value in pairs
        if sep and name.strip()
    }


@dataclass(slots=True)
class HttpGtfsRealtimePositionFeed(IPositionFeed):
    """Polls a GTFS-Realtime VehiclePositions feed over HTTP.

    Env vars (used when the matching argument is not given):
      - GTFS_RT_VEHICLE_POSITIONS_URL: feed URL; without it nothing is polled
      - GTFS_RT_HEADERS: extra request headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout in seconds (default 10)

    A vehicle's report is only returned when its timestamp is newer than the
    last one this instance returned, so repeated polls of an unchanged feed
    do not re-record stale positions.
    """

    url: str | None = None
    headers_raw: str | None = None
    timeout_s: float | None = None
    transport: httpx.AsyncBaseTransport | None = None

    _headers: dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _last_seen: dict[str, datetime] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self.url = self.url or os.getenv("GTFS_RT_VEHICLE_POSITIONS_URL") or None
        if self.timeout_s is None:
            self.timeout_s = float(os.getenv("GTFS_RT_TIMEOUT_S") or 10.0)
        self._headers = parse_header_spec(
            self.headers_raw
            if self.headers_raw is not None
            else os.getenv("GTFS_RT_HEADERS")
        )

    async def list_reports(self) -> tuple[PositionReport, ...]:
        if not self.url:
            return ()

        async with self._lock:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(self.url, headers=self._headers)
                resp.raise_for_status()
                content = resp.content

            fresh: list[PositionReport] = []
            for report in parse_vehicle_positions(content):
                seen = self._last_seen.get(report.vehicle_id)
                if seen is not None and report.position.observed_at <= seen:
                    continue
                self._last_seen[report.vehicle_id] = report.position.observed_at
                fresh.append(report)
            return tuple(fresh)


def parse_vehicle_positions(
    content: bytes, *, received_at: datetime | None = None
) -> tuple[PositionReport, ...]:
    """Decode a VehiclePositions FeedMessage into position reports.

    Entities without a vehicle id or position are skipped, as are positions
    with out-of-range coordinates. Missing timestamps use `received_at`.
    """

    received_at = received_at or datetime.now(timezone.utc)

    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(content)
    except DecodeError:
        logger.warning("Ignoring undecodable GTFS-RT payload (%d bytes)", len(content))
        return ()

    out: list[PositionReport] = []
    for ent in feed.entity:
        if not ent.HasField("vehicle"):
            continue

        v = ent.vehicle
        if not v.HasField("position"):
            continue

        vehicle_id = v.vehicle.id if v.HasField("vehicle") else ""
        if not vehicle_id:
            continue

        pos = v.position
        try:
            location = GeoPoint(lat=float(pos.latitude), lon=float(pos.longitude))
        except ValidationError:
            logger.warning("Skipping vehicle %s with invalid coordinates", vehicle_id)
            continue

        observed_at = received_at
        if v.HasField("timestamp") and int(v.timestamp) > 0:
            observed_at = datetime.fromtimestamp(int(v.timestamp), tz=timezone.utc)

        out.append(
            PositionReport(
                vehicle_id=vehicle_id,
                position=VehiclePosition(
                    location=location,
                    observed_at=observed_at,
                    speed_mps=float(pos.speed) if pos.HasField("speed") else None,
                    heading_deg=(
                        float(pos.bearing) if pos.HasField("bearing") else None
                    ),
                ),
            )
        )

    return tuple(out)
