from .osrm_routing_oracle import OsrmRoutingOracle
from .straight_line_routing_oracle import StraightLineRoutingOracle

__all__ = [
    "OsrmRoutingOracle",
    "StraightLineRoutingOracle",
]
