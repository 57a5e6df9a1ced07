from .position_feed import IPositionFeed
from .queue_service import IQueueService
from .route_source import IRouteSource
from .routing_oracle import IRoutingOracle
from .vehicle_state_store import IVehicleStateStore

__all__ = [
    "IPositionFeed",
    "IQueueService",
    "IRouteSource",
    "IRoutingOracle",
    "IVehicleStateStore",
]
