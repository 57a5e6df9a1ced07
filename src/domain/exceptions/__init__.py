from .tracking import (
    AuthorizationDenied,
    DuplicateVehicle,
    NotFoundError,
    OracleUnavailable,
    PersistenceConflict,
    TrackingError,
    ValidationError,
)

__all__ = [
    "AuthorizationDenied",
    "DuplicateVehicle",
    "NotFoundError",
    "OracleUnavailable",
    "PersistenceConflict",
    "TrackingError",
    "ValidationError",
]
