from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import PositionReport


class IPositionFeed(ABC):
    """Port for obtaining vehicle positions in bulk (e.g., via GTFS-Realtime)."""

    @abstractmethod
    async def list_reports(self) -> tuple[PositionReport, ...]:
        raise NotImplementedError
