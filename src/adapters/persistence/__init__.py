from .dynamodb_vehicle_state_store import DynamoDbVehicleStateStore
from .in_memory_vehicle_state_store import InMemoryVehicleStateStore
from .local_route_source import LocalRouteSource

__all__ = [
    "DynamoDbVehicleStateStore",
    "InMemoryVehicleStateStore",
    "LocalRouteSource",
]
