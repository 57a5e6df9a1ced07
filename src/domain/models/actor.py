from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    STATION_ADMIN = "STATION_ADMIN"
    DRIVER = "DRIVER"
    PASSENGER = "PASSENGER"


@dataclass(frozen=True, slots=True)
class UnrestrictedActor:
    """Administrator allowed to touch any vehicle and any field."""


@dataclass(frozen=True, slots=True)
class ScopedActor:
    """Administrator of a single station."""

    station_id: str | None


@dataclass(frozen=True, slots=True)
class RestrictedActor:
    """Any other authenticated role; no mutation rights."""

    role: str


Actor = UnrestrictedActor | ScopedActor | RestrictedActor


def actor_from_role(role: str, station_id: str | None = None) -> Actor:
    normalized = (role or "").strip().upper()
    if normalized == UserRole.SYSTEM_ADMIN.value:
        return UnrestrictedActor()
    if normalized == UserRole.STATION_ADMIN.value:
        return ScopedActor(station_id=(station_id or "").strip() or None)
    return RestrictedActor(role=normalized)
