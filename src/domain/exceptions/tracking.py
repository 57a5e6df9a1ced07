class TrackingError(Exception):
    """Base exception for vehicle tracking failures."""


class ValidationError(TrackingError, ValueError):
    """Raised for malformed input (coordinates, identifiers, field values)."""


class DuplicateVehicle(ValidationError):
    """Raised when a bus number or device id is already registered."""


class NotFoundError(TrackingError, LookupError):
    """Raised when a referenced vehicle, route or stop does not exist."""


class OracleUnavailable(TrackingError):
    """Raised by routing oracles on timeouts, bad responses or missing routes."""


class AuthorizationDenied(TrackingError):
    """Raised when an actor has no visibility over the target vehicle."""


class PersistenceConflict(TrackingError):
    """Raised when the store cannot complete a write."""
