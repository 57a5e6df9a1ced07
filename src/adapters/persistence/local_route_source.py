from __future__ import annotations

import csv
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path

from src.app.ports.output import IRouteSource
from src.domain.models import GeoPoint, Route, Stop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalRouteSource(IRouteSource):
    """Loads stations and route stop sequences from CSV files.

    Files (in the data directory):
      - stops.csv: stop_id, stop_name, stop_lat, stop_lon
      - route_stops.csv: route_id, stop_sequence, stop_id

    Env vars:
      - ROUTES_DATA_PATH: data directory (default: data/routes)

    Files are read once per instance; a missing file is treated as empty.
    """

    base_path: str | Path | None = None

    _stops: dict[str, Stop] | None = field(default=None, init=False, repr=False)
    _routes: dict[str, Route] | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def _base(self) -> Path:
        value = self.base_path or os.getenv("ROUTES_DATA_PATH") or "data/routes"
        return Path(value)

    def _load(self) -> tuple[dict[str, Stop], dict[str, Route]]:
        with self._lock:
            if self._stops is None or self._routes is None:
                self._stops = self._load_stops(self._base() / "stops.csv")
                self._routes = self._load_routes(self._base() / "route_stops.csv")
            return self._stops, self._routes

    @staticmethod
    def _load_stops(path: Path) -> dict[str, Stop]:
        stops: dict[str, Stop] = {}
        if not path.exists():
            logger.warning("Stops file %s not found; no stops loaded", path)
            return stops

        with path.open("r", encoding="utf-8", newline="") as fp:
            reader = csv.DictReader(fp)
            for row in reader:
                stop_id = (row.get("stop_id") or "").strip()
                if not stop_id:
                    continue
                try:
                    lat = float(row["stop_lat"])
                    lon = float(row["stop_lon"])
                except (TypeError, ValueError, KeyError):
                    logger.warning("Skipping stop %s with bad coordinates", stop_id)
                    continue
                name = (row.get("stop_name") or stop_id).strip()
                stops[stop_id] = Stop(
                    id=stop_id, name=name, location=GeoPoint(lat=lat, lon=lon)
                )
        return stops

    @staticmethod
    def _load_routes(path: Path) -> dict[str, Route]:
        if not path.exists():
            logger.warning("Route stops file %s not found; no routes loaded", path)
            return {}

        tmp: dict[str, list[tuple[int, str]]] = {}
        with path.open("r", encoding="utf-8", newline="") as fp:
            reader = csv.DictReader(fp)
            for row in reader:
                route_id = (row.get("route_id") or "").strip()
                stop_id = (row.get("stop_id") or "").strip()
                if not route_id or not stop_id:
                    continue
                seq = int(row.get("stop_sequence") or 0)
                tmp.setdefault(route_id, []).append((seq, stop_id))

        routes: dict[str, Route] = {}
        for route_id, entries in tmp.items():
            entries.sort(key=lambda x: x[0])
            stop_ids: list[str] = []
            for _, sid in entries:
                # A route visits each stop once; keep the first occurrence.
                if sid not in stop_ids:
                    stop_ids.append(sid)
            routes[route_id] = Route(stop_ids=tuple(stop_ids), route_id=route_id)
        return routes

    def get_stop(self, stop_id: str) -> Stop | None:
        stops, _ = self._load()
        return stops.get(stop_id)

    def get_route(self, route_id: str) -> Route | None:
        _, routes = self._load()
        return routes.get(route_id)
