from dataclasses import dataclass


@dataclass
class RunrouteConfig:
    """Configuration for route tracking and the replay CLI."""

    tie_epsilon: float = 1e-6
    off_route_threshold: float = 50.0
    split_distance: float = 1000.0
    simplify_tolerance: float = 0.0
    display_unit: str = "km"
    log_level: str = "WARNING"
    metrics: bool = False
