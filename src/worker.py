from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any, Mapping

from src.adapters.api.dependencies import build_tracking_service
from src.adapters.aws import env_bool
from src.adapters.messaging.sqs_queue_adapter import SQSQueueAdapter
from src.adapters.realtime.http_gtfs_realtime_position_feed import (
    HttpGtfsRealtimePositionFeed,
)
from src.app.ports.output import IPositionFeed, IQueueService
from src.app.services.vehicle_tracking_service import VehicleTrackingService
from src.domain.exceptions import TrackingError, ValidationError
from src.domain.models import GeoPoint, PositionReport, VehiclePosition

logger = logging.getLogger(__name__)


def _optional_float(msg: Mapping[str, Any], key: str) -> float | None:
    raw = msg.get(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Bad {key}: {raw!r}") from None


def report_from_message(msg: Mapping[str, Any]) -> PositionReport:
    """Decode a device report message.

    Expected body: {"vehicle_id", "lat", "lon", "speed"?, "heading"?,
    "observed_at"? (ISO-8601)}.
    """

    vehicle_id = str(msg.get("vehicle_id") or "").strip()
    if not vehicle_id:
        raise ValidationError("Report has no vehicle_id")

    try:
        lat = float(msg["lat"])
        lon = float(msg["lon"])
    except (KeyError, TypeError, ValueError):
        raise ValidationError("Report has no usable lat/lon") from None

    observed_raw = msg.get("observed_at")
    try:
        observed_at = (
            datetime.fromisoformat(observed_raw)
            if isinstance(observed_raw, str)
            else datetime.now(timezone.utc)
        )
    except ValueError:
        raise ValidationError(f"Bad observed_at: {observed_raw!r}") from None
    if observed_at.tzinfo is None:
        observed_at = observed_at.replace(tzinfo=timezone.utc)

    speed = _optional_float(msg, "speed")
    heading = _optional_float(msg, "heading")
    return PositionReport(
        vehicle_id=vehicle_id,
        position=VehiclePosition(
            location=GeoPoint(lat=lat, lon=lon),
            observed_at=observed_at,
            speed_mps=speed,
            heading_deg=heading,
        ),
    )


async def record_reports(
    service: VehicleTrackingService, reports: tuple[PositionReport, ...]
) -> int:
    """Record reports one by one; a failing report does not stop the batch."""

    recorded = 0
    for report in reports:
        try:
            await service.record_position(report.vehicle_id, report.position)
        except TrackingError as exc:
            logger.warning(
                "Skipping report for vehicle %s: %s: %s",
                report.vehicle_id,
                type(exc).__name__,
                exc,
            )
            continue
        except Exception:
            logger.exception("Failed to record report for vehicle %s", report.vehicle_id)
            continue
        recorded += 1
    return recorded


async def drain_queue(service: VehicleTrackingService, queue: IQueueService) -> int:
    messages = await asyncio.to_thread(
        queue.consume_reports, max_messages=10, wait_time_s=10
    )

    reports: list[PositionReport] = []
    for msg in messages:
        try:
            reports.append(report_from_message(msg))
        except ValidationError as exc:
            logger.warning("Dropping malformed report message: %s", exc)
    return await record_reports(service, tuple(reports))


async def poll_feed(service: VehicleTrackingService, feed: IPositionFeed) -> int:
    return await record_reports(service, await feed.list_reports())


async def run(
    service: VehicleTrackingService,
    *,
    queue: IQueueService | None,
    feed: IPositionFeed | None,
    loop: bool = True,
    feed_interval_s: float = 15.0,
) -> None:
    if queue is None and feed is None:
        raise RuntimeError("Neither SQS_QUEUE_URL nor a GTFS-RT feed is configured")

    while True:
        recorded = 0
        if queue is not None:
            try:
                recorded += await drain_queue(service, queue)
            except Exception:
                logger.exception("SQS drain failed")
        if feed is not None:
            try:
                recorded += await poll_feed(service, feed)
            except Exception:
                logger.exception("GTFS-RT poll failed")

        if not loop:
            return
        if recorded == 0 or queue is None:
            await asyncio.sleep(feed_interval_s if queue is None else 0.2)


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    queue = SQSQueueAdapter() if os.getenv("SQS_QUEUE_URL") else None
    feed = (
        HttpGtfsRealtimePositionFeed()
        if os.getenv("GTFS_RT_VEHICLE_POSITIONS_URL")
        else None
    )

    asyncio.run(
        run(
            build_tracking_service(),
            queue=queue,
            feed=feed,
            loop=env_bool("WORKER_LOOP", True),
            feed_interval_s=float(os.getenv("GTFS_RT_POLL_INTERVAL_S", "15")),
        )
    )


if __name__ == "__main__":
    main()
