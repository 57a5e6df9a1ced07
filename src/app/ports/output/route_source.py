from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from src.domain.models import Route, Stop


class IRouteSource(ABC):
    """Read-only lookup of route definitions and stops."""

    @abstractmethod
    def get_stop(self, stop_id: str) -> Stop | None:
        raise NotImplementedError

    @abstractmethod
    def get_route(self, route_id: str) -> Route | None:
        raise NotImplementedError

    def get_stops(self, stop_ids: Iterable[str]) -> dict[str, Stop]:
        out: dict[str, Stop] = {}
        for sid in stop_ids:
            stop = self.get_stop(sid)
            if stop is not None:
                out[sid] = stop
        return out
