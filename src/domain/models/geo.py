from __future__ import annotations

from dataclasses import dataclass

from src.domain.exceptions.tracking import ValidationError


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate. NaN and out-of-range values are rejected."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValidationError(f"Invalid latitude: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValidationError(f"Invalid longitude: {self.lon}")

    def lon_lat(self) -> tuple[float, float]:
        """Coordinates in GeoJSON / OSRM order."""

        return (self.lon, self.lat)
